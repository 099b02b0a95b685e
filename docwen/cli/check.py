"""
Check command for docwen CLI.

This module contains the command that compares documentation across every
filegroup of a configuration file.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from docwen.analyzer import check_file_groups
from docwen.cli.console import get_console
from docwen.cli.formatting import display_reports, format_json_reports
from docwen.matcher import MatchMode
from docwen.utils.config import default_config_path, load_config
from docwen.utils.errors import ConfigurationError

OUTPUT_FORMATS = ("terminal", "json")


def check(
    path: Annotated[
        Path | None,
        typer.Argument(help="Configuration file (default: $DOCWEN_CONFIG or ./docwen.yaml)"),
    ] = None,
    mode: Annotated[
        MatchMode | None,
        typer.Option("--mode", "-m", help="Override the configured matching mode"),
    ] = None,
    output_format: Annotated[
        str, typer.Option("--format", "-f", help="Output format (terminal/json)")
    ] = "terminal",
    workers: Annotated[
        int, typer.Option("--workers", "-w", min=1, help="Groups checked in parallel")
    ] = 1,
    report_unmatched: Annotated[
        bool,
        typer.Option(
            "--report-unmatched",
            help="Also flag documented functions that exist in one file only",
        ),
    ] = False,
    group: Annotated[
        str | None, typer.Option("--group", "-g", help="Check a single filegroup")
    ] = None,
) -> None:
    """
    Compare documentation across the files of every filegroup.

    Exits with status 1 when mismatches are found and 2 when the
    configuration cannot be used.

    Example:
        docwen check docwen.yaml --mode unqualified --format json
    """
    console = get_console()
    if output_format not in OUTPUT_FORMATS:
        console.print(
            f"[red]Error: unknown format '{escape(output_format)}' "
            f"(expected one of: {', '.join(OUTPUT_FORMATS)})[/red]"
        )
        raise typer.Exit(2)

    config_path = path or default_config_path()
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        if e.recovery_hint:
            console.print(f"[dim]Hint: {escape(e.recovery_hint)}[/dim]")
        raise typer.Exit(2)

    base_dir = config_path.resolve().parent
    groups = config.resolved_groups(base_dir)
    if group is not None:
        groups = [g for g in groups if g.name == group]
        if not groups:
            console.print(f"[red]Error: no filegroup named '{escape(group)}'[/red]")
            raise typer.Exit(2)

    comparator_config = config.comparator_config()
    if report_unmatched:
        comparator_config.report_unmatched = True

    reports = check_file_groups(
        groups,
        mode or config.settings.mode,
        comparator_config,
        max_workers=workers,
    )

    root = config.target_root(base_dir)
    if output_format == "json":
        typer.echo(format_json_reports(reports, root))
    else:
        display_reports(reports, root)

    if any(report.has_mismatches for report in reports):
        raise typer.Exit(1)
