"""App definition and root callback for the perfbaseline CLI."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from ._theme import PB_THEME

app = typer.Typer(
    help="Store GPU performance baselines and flag statistically significant regressions.",
    epilog=(
        "[dim]Common workflows:\n"
        "  Record a baseline  → perfbaseline update samples.json -w graphics-moderate\n"
        "  Check for slowdown → perfbaseline check samples.json -w graphics-moderate\n"
        "  Inspect baselines  → perfbaseline list[/dim]"
    ),
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console(theme=PB_THEME)


def _version_callback(value: bool) -> None:
    if value:
        import platform

        import numpy
        import scipy

        from perfbaseline import __version__

        console.print(
            f"perfbaseline [bold]{__version__}[/bold]  "
            f"(Python {platform.python_version()}, "
            f"NumPy {numpy.__version__}, SciPy {scipy.__version__})"
        )
        raise typer.Exit()


def _debug_callback(debug: bool) -> None:
    """Enable debug logging when --debug is passed."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """perfbaseline command-line interface."""
    _debug_callback(debug)
