"""
Parse command for docwen CLI.

This module contains the parse command which shows what the declaration
extractor finds in one C/C++ file.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from docwen.cli.console import get_console
from docwen.cli.formatting import display_declarations, serialize_declaration
from docwen.parser import load_source_file


def parse(
    path: Annotated[Path, typer.Argument(help="Path to a C/C++ source file")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON instead of pretty-printed table"),
    ] = False,
) -> None:
    """
    Parse a C/C++ file and display its function declarations.

    Shows each declaration's qualified name, parameters, line span and the
    first line of its attached documentation.
    """
    console = get_console()
    if not path.is_file():
        console.print(f"[red]Error: {escape(str(path))} is not a file[/red]")
        raise typer.Exit(1)

    source_file = load_source_file(str(path))

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "file": source_file.path,
                    "declarations": [
                        serialize_declaration(d) for d in source_file.declarations
                    ],
                    "errors": [
                        {
                            "message": e.message,
                            "line": e.line_number,
                            "recovery_hint": e.recovery_hint,
                        }
                        for e in source_file.errors
                    ],
                },
                indent=2,
            )
        )
    elif source_file.declarations:
        display_declarations(source_file.declarations, f"Functions in {path}")
    else:
        console.print("[yellow]No functions found in the file.[/yellow]")

    if source_file.has_errors:
        if not json_output:
            for error in source_file.errors:
                line = f" (line {error.line_number})" if error.line_number else ""
                console.print(f"[red]Parse error{line}: {escape(error.message)}[/red]")
                if error.recovery_hint:
                    console.print(f"[dim]Hint: {escape(error.recovery_hint)}[/dim]")
        raise typer.Exit(1)
