"""
docwen CLI package.

This package contains the command-line interface for docwen,
organized into one submodule per group of commands.
"""

from docwen.cli.main import app

__all__ = ["app"]
