"""Scan command -- list the documents of a simulation folder."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..documents import DocumentIndex, Kind
from ..exceptions import FmuAnnotateError, NotFoundError
from ..logging_config import setup_from_config
from ..resolver import resolve_channel
from . import app
from ._common import console, resolve_config


def _format_labels(labels: dict) -> str:
    return ", ".join(f"{k}={v}" for k, v in labels.items())


@app.command()
def scan(
    sim: Optional[Path] = typer.Option(
        None, "--sim",
        help="Path to simulation (Simer layout), default /sim",
        file_okay=False, dir_okay=True,
    ),
    channels: bool = typer.Option(
        False, "--channels",
        help="Resolve the SimBus channel of each SignalGroup",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    List the documents found in a simulation folder.

    [bold cyan]Examples:[/bold cyan]

      fmu-annotate scan --sim out/sim --channels
    """
    try:
        settings = resolve_config(config=config, sim=sim, verbose=verbose)
    except FmuAnnotateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    setup_from_config(settings)

    index = DocumentIndex.from_config(settings)
    index.scan(settings.sim_dir)

    table = Table(title=f"Documents in {settings.sim_dir}")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Labels")
    if channels:
        table.add_column("Channel", style="green")
    table.add_column("File", style="blue")

    for path in index.files:
        for doc in index.file_documents(path):
            row = [doc.kind.value, doc.name, _format_labels(doc.labels)]
            if channels:
                row.append(_channel_of(index, doc))
            row.append(str(path.relative_to(settings.sim_dir)))
            table.add_row(*row)

    console.print(table)
    console.print(f"{len(index.files)} files, {len(index)} documents")


def _channel_of(index: DocumentIndex, doc) -> str:
    if doc.kind is not Kind.SIGNAL_GROUP:
        return ""
    try:
        return resolve_channel(index, doc)
    except NotFoundError:
        return "-"
    except FmuAnnotateError as e:
        return f"[red]{e}[/red]"
