"""Main CLI application for the Kentaa API client."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from kentaa_api import __version__
from kentaa_api.cli import resources as resources_cmd
from kentaa_api.config import get_settings
from kentaa_api.logging import setup_logging

app = typer.Typer(
    name="kentaa",
    help="Rate limited command line access to the Kentaa API.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"kentaa version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """Kentaa API - query actions, projects, donations and more."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


# Register subcommands
app.add_typer(resources_cmd.app, name="api")


if __name__ == "__main__":
    app()
