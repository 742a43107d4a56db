"""CLI entry point: the typer app and its subcommands."""

import typer

app = typer.Typer(
    name="fmu-annotate",
    help="fmu-annotate - SignalGroup annotation and direct indexing for FMU model runtimes",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .annotate import annotate as _annotate, annotate_file as _annotate_file  # noqa: F401, E402
from .scan import scan as _scan  # noqa: F401, E402


def main() -> None:
    app()
