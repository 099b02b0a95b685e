"""
Main entry point for the docwen CLI application.

This module sets up the Typer application and registers all commands
from the various submodules.
"""

from typing import Annotated

import typer
from dotenv import load_dotenv

from docwen import __version__
from docwen.cli import console as console_module
from docwen.cli.check import check
from docwen.cli.config_commands import create, update
from docwen.cli.parse import parse

# Create the main app
app = typer.Typer(
    help="docwen: keep C/C++ documentation consistent between headers and sources."
)


def version_callback(value: bool) -> None:
    """Prints the version of the application and exits."""
    if value:
        print(f"docwen v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show the application's version and exit.",
        ),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option("--no-color", help="Disable colored output", envvar="NO_COLOR"),
    ] = False,
    plain: Annotated[
        bool,
        typer.Option("--plain", help="Use plain text output (no Unicode or colors)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Compare function documentation across related C/C++ files.
    """
    # Load environment variables (DOCWEN_CONFIG) from .env file
    load_dotenv()
    console_module.setup_logging(verbose=verbose, plain=plain)
    console_module.configure_console(plain=plain, no_color=no_color)


# Register all commands
app.command("create")(create)
app.command("update")(update)
app.command("check")(check)
app.command("parse")(parse)


if __name__ == "__main__":
    app()
