"""
Console configuration for docwen CLI.

This module provides a centralized console so every command renders
through the same Rich settings, including plain and no-color modes.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


def create_console(plain: bool = False, no_color: bool = False) -> Console:
    """Create a console for the current environment."""
    no_color = no_color or bool(os.environ.get("NO_COLOR"))

    if plain:
        # ASCII boxes, no colors, no markup-driven styling
        return Console(
            no_color=True,
            highlight=False,
            emoji=False,
            safe_box=True,
            soft_wrap=True,
            log_time_format="[%X]",
        )
    return Console(
        no_color=no_color,
        highlight=False,
        soft_wrap=True,
        log_time_format="[%X]",
    )


# Singleton console, replaced by the app callback when options change it
console = create_console()


def get_console() -> Console:
    """Return the currently configured console."""
    return console


def configure_console(plain: bool = False, no_color: bool = False) -> Console:
    """Recreate the shared console with new output settings."""
    global console
    console = create_console(plain=plain, no_color=no_color)
    return console


def setup_logging(verbose: bool = False, plain: bool = False) -> None:
    """Route log records through Rich on stderr."""
    handler = RichHandler(
        console=Console(stderr=True, no_color=plain),
        show_path=False,
        markup=False,
        rich_tracebacks=not plain,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
