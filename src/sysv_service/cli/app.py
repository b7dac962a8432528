"""Main CLI application."""

from typing import Annotated

import typer

from sysv_service.cli.commands import service

app = typer.Typer(
    name="sysv-service",
    help="Install and control a System V init service",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log debug output",
        ),
    ] = False,
) -> None:
    """Install and control a System V init service."""
    from sysv_service.logging import configure_logging

    configure_logging("DEBUG" if verbose else None, use_rich=True)


service.register(app)
