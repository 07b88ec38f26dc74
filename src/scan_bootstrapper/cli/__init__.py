"""Command-line interface for scan-bootstrapper."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from scan_bootstrapper import __version__
from scan_bootstrapper.cli.commands.run import run_command

app = typer.Typer(
    name="scan-bootstrapper",
    help="Prepare and finalize static-analysis runs around a build.",
    no_args_is_help=True,
    add_completion=False,
)

err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"scan-bootstrapper {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Prepare and finalize static-analysis runs around a build."""
    _configure_logging(verbose)


app.command(
    "run",
    context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True},
)(run_command)


def main() -> None:
    app()


__all__ = ["app", "main"]
