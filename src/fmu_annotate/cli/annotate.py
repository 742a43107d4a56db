"""Annotation commands."""

from pathlib import Path
from typing import Optional

import typer

from ..api import annotate_signalgroup_file, run
from ..exceptions import FmuAnnotateError
from ..logging_config import setup_from_config, setup_logging
from . import app
from ._common import console, resolve_config


@app.command()
def annotate(
    sim: Optional[Path] = typer.Option(
        None, "--sim",
        help="Path to simulation (Simer layout), default /sim",
        file_okay=False, dir_okay=True,
    ),
    signal_groups: Optional[str] = typer.Option(
        None, "--signalgroups",
        help="Signal Groups to annotate, default is all, specify with comma-separated-list",
    ),
    rule: Optional[Path] = typer.Option(
        None, "--rule",
        help="Rules in a csv format",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    ruleset: Optional[str] = typer.Option(
        None, "--ruleset",
        help="Use a predefined set of rules ('signal-direction')",
    ),
    build_index: Optional[bool] = typer.Option(
        None, "--index/--no-index",
        help="Build a direct index for the FMU and use its offsets as vrefs",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML format)",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
):
    """
    Annotate the SignalGroups and Stack of a simulation.

    [bold cyan]Examples:[/bold cyan]

      fmu-annotate annotate --sim out/sim --ruleset signal-direction

      fmu-annotate annotate --sim out/sim --ruleset signal-direction --index
    """
    try:
        settings = resolve_config(
            config=config,
            sim=sim,
            signal_groups=signal_groups,
            rule=rule,
            ruleset=ruleset,
            build_index=build_index,
            verbose=verbose,
            quiet=quiet,
        )
        setup_from_config(settings)
        result = run(settings)
    except FmuAnnotateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if result.index_path is not None:
        console.print(f"Direct Index: [blue]{result.index_path}[/blue]")
    for name in result.annotated:
        console.print(f"Annotated SignalGroup: [green]{name}[/green]")
    for name in result.skipped:
        console.print(f"Skipped SignalGroup: [yellow]{name}[/yellow]")
    console.print(
        f"[green]{result.vref_count} vrefs assigned, {len(result.saved)} files saved[/green]"
    )


@app.command("annotate-file")
def annotate_file(
    input_file: Path = typer.Option(
        ..., "--input",
        help="Signal Group file (YAML) to be annotated",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    output_file: Path = typer.Option(
        ..., "--output",
        help="Signal Group file (YAML) with annotations added",
        dir_okay=False,
    ),
    rule: Optional[Path] = typer.Option(
        None, "--rule",
        help="Rules in a csv format",
        exists=True, file_okay=True, dir_okay=False, readable=True,
    ),
    ruleset: Optional[str] = typer.Option(
        None, "--ruleset",
        help="Use a predefined set of rules ('signal-direction')",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Annotate the SignalGroups of a single file."""
    setup_logging("verbose" if verbose else "normal")
    try:
        count = annotate_signalgroup_file(input_file, output_file, rule_file=rule, ruleset=ruleset)
    except FmuAnnotateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]{count} vrefs assigned, written to {output_file}[/green]")
