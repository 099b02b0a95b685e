"""
Formatting utilities for CLI output.

This module contains the display and formatting helpers shared by the
check and parse commands.
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

from rich.markup import escape
from rich.table import Table

from docwen.analyzer import GroupReport, Mismatch, MismatchKind
from docwen.cli.console import get_console
from docwen.parser import Declaration


def format_path(path: Union[str, Path], root: Optional[Union[str, Path]] = None) -> str:
    """Render a path relative to ``root`` when it lies inside it."""
    if root is None:
        return str(path)
    try:
        return Path(path).resolve().relative_to(Path(root).resolve()).as_posix()
    except ValueError:
        return str(path)


def format_location(
    path: Union[str, Path],
    line: Optional[int] = None,
    column: Optional[int] = None,
    root: Optional[Union[str, Path]] = None,
) -> str:
    """Render `path:line:column`, omitting the parts that are unknown."""
    text = format_path(path, root)
    if line is not None:
        text += f":{line}"
        if column is not None:
            text += f":{column}"
    return text


def serialize_declaration(declaration: Declaration) -> dict[str, Any]:
    """Serialize a declaration for JSON output."""
    signature = declaration.signature
    doc = declaration.doc
    return {
        "name": signature.name,
        "qualified_name": signature.qualified_name,
        "qualifiers": list(signature.qualifiers),
        "parameters": [
            {
                "type": p.type_text,
                "name": p.name,
                "default_value": p.default_value,
            }
            for p in signature.parameters
        ],
        "trailing_qualifiers": list(signature.trailing_qualifiers),
        "return_type": signature.return_type,
        "line_number": declaration.line_number,
        "end_line_number": declaration.end_line_number,
        "column": declaration.column,
        "is_definition": declaration.is_definition,
        "doc": (
            {
                "start_line": doc.start_line,
                "end_line": doc.end_line,
                "lines": list(doc.normalized_lines),
            }
            if doc is not None
            else None
        ),
        "signature_string": signature.to_string(),
    }


def doc_preview(declaration: Declaration, width: int = 40) -> str:
    """First content line of a declaration's documentation."""
    if not declaration.has_doc:
        return ""
    preview = declaration.doc.normalized_lines[0]
    if len(preview) > width - 3:
        preview = preview[: width - 3] + "..."
    return preview


def display_declarations(declarations: list[Declaration], title: str) -> None:
    """Display extracted declarations in a Rich table."""
    console = get_console()
    table = Table(title=escape(title))
    table.add_column("Name", style="cyan")
    table.add_column("Parameters", style="green")
    table.add_column("Qualifiers", style="magenta")
    table.add_column("Lines", style="yellow")
    table.add_column("Kind", style="blue")
    table.add_column("Doc", style="white", max_width=40)

    for declaration in declarations:
        signature = declaration.signature
        table.add_row(
            escape(signature.qualified_name),
            escape(", ".join(p.to_string() for p in signature.parameters)),
            escape(" ".join(signature.trailing_qualifiers)),
            f"{declaration.line_number}-{declaration.end_line_number}",
            "definition" if declaration.is_definition else "declaration",
            escape(doc_preview(declaration)),
        )
    console.print(table)


def display_mismatch(mismatch: Mismatch, root: Optional[Union[str, Path]] = None) -> None:
    """Print one mismatch block."""
    console = get_console()
    color = "red" if mismatch.kind is MismatchKind.PARSE_ERROR else "yellow"
    heading = f"[bold {color}]MISMATCH[/bold {color}] [{color}]{mismatch.label}[/{color}]"
    if mismatch.function_name:
        heading += f" {escape(mismatch.function_name)}"
    console.print(heading)

    if mismatch.kind is MismatchKind.PARSE_ERROR:
        location = format_location(mismatch.file_paths[0], mismatch.line_number, root=root)
        console.print(f"  {escape(location)}: {escape(mismatch.message)}")
        if mismatch.recovery_hint:
            console.print(f"  [dim]Hint: {escape(mismatch.recovery_hint)}[/dim]")
        console.print()
        return

    for declaration in mismatch.declarations:
        location = format_location(
            declaration.file_path, declaration.line_number, declaration.column, root
        )
        marker = "" if declaration.has_doc else " [dim](undocumented)[/dim]"
        console.print(f"  {escape(location)}{marker}")

    if mismatch.missing_files:
        missing = ", ".join(format_path(path, root) for path in mismatch.missing_files)
        console.print(f"  Missing in: {escape(missing)}")

    for difference in mismatch.diff:
        console.print(f"  line {difference.line}:")
        for path, text in difference.values:
            shown = escape(text) if text is not None else "[dim]<no line>[/dim]"
            console.print(f"    {escape(format_path(path, root))}: {shown}")

    if mismatch.kind is MismatchKind.AMBIGUOUS:
        console.print(f"  {escape(mismatch.message)}")
    console.print()


def display_reports(
    reports: list[GroupReport], root: Optional[Union[str, Path]] = None
) -> None:
    """Display every mismatch, or the all-clear message."""
    console = get_console()
    mismatches = [m for report in reports for m in report.mismatches]
    if not mismatches:
        console.print("[green]Found no mismatches![/green]")
        return

    for report in reports:
        if not report.mismatches:
            continue
        console.print(f"[bold]Group {escape(report.name)}[/bold]")
        for mismatch in report.mismatches:
            display_mismatch(mismatch, root)

    display_summary(reports)


def display_summary(reports: list[GroupReport]) -> None:
    """Display per-kind totals across all groups."""
    console = get_console()
    table = Table(title="Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    totals = {kind: 0 for kind in MismatchKind}
    for report in reports:
        for kind, items in report.get_mismatches_by_kind().items():
            totals[kind] += len(items)

    table.add_row("Groups", str(len(reports)))
    table.add_row(
        "Declarations", str(sum(report.total_declarations for report in reports))
    )
    for kind, count in totals.items():
        table.add_row(kind.value, str(count))
    console.print(table)


def format_json_reports(
    reports: list[GroupReport], root: Optional[Union[str, Path]] = None
) -> str:
    """Format group reports as JSON."""
    output = {
        "mismatch_count": sum(len(report.mismatches) for report in reports),
        "groups": [],
    }
    for report in reports:
        mismatches = []
        for mismatch in report.mismatches:
            data = mismatch.to_dict()
            data["files"] = [format_path(path, root) for path in data["files"]]
            data["missing_files"] = [
                format_path(path, root) for path in data["missing_files"]
            ]
            for item in data["locations"] + data["comments"]:
                item["file"] = format_path(item["file"], root)
            for difference in data["diff"]:
                for value in difference["values"]:
                    value["file"] = format_path(value["file"], root)
            mismatches.append(data)
        output["groups"].append(
            {
                "summary": report.get_summary(),
                "mismatches": mismatches,
            }
        )
    return json.dumps(output, indent=2)
