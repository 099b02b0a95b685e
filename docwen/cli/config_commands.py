"""
Configuration commands for docwen CLI.

`create` writes a default docwen.yaml; `update` rediscovers filegroups
below the configured target directory and merges them into the file.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from docwen.cli.console import get_console
from docwen.utils.config import (
    create_default_config,
    default_config_path,
    update_config,
)
from docwen.utils.errors import ConfigurationError


def _fail(error: ConfigurationError) -> None:
    console = get_console()
    console.print(f"[red]Error: {escape(error.message)}[/red]")
    if error.recovery_hint:
        console.print(f"[dim]Hint: {escape(error.recovery_hint)}[/dim]")
    raise typer.Exit(1)


def create(
    path: Annotated[
        Path | None, typer.Argument(help="Where to write the configuration")
    ] = None,
) -> None:
    """Create a default docwen.yaml."""
    config_path = path or default_config_path()
    try:
        create_default_config(config_path)
    except ConfigurationError as e:
        _fail(e)
    get_console().print(f"Created default configuration at {escape(str(config_path))}")


def update(
    path: Annotated[Path | None, typer.Argument(help="Configuration file")] = None,
) -> None:
    """Rediscover filegroups and merge them into the configuration."""
    config_path = path or default_config_path()
    try:
        config = update_config(config_path)
    except ConfigurationError as e:
        _fail(e)
    get_console().print(
        f"Updated {escape(str(config_path))} successfully "
        f"({len(config.filegroups)} filegroups)"
    )
