"""
Data models for parsed C/C++ declarations.

Declarations and everything they own are immutable once extracted. A
SourceFile collects the declarations of one file together with any
parsing problems found while reading it.
"""

import re
from dataclasses import dataclass, field

from ..utils.errors import ParsingError, ValidationError

_LINE_MARKER = re.compile(r"^//[/!]?<?")
_BLOCK_OPEN = re.compile(r"^(/\*)?[*!]*<?")
_LEADING_STARS = re.compile(r"^\*+")
_TRAILING_STARS = re.compile(r"\*+$")
_DECORATION_ONLY = re.compile(r"^[*/=\-#~+]*$")


def strip_comment_markers(lines: tuple[str, ...] | list[str]) -> list[str]:
    """
    Remove comment delimiters from a comment block's lines.

    Handles `//`, `///`, `//!`, `/* */`, `/** */`, `/*! */` and the
    leading `*` of block continuation lines. Lines made only of markers or
    decoration are blanked, and blank lines at either end are dropped.

    Args:
        lines: Raw source lines of one comment block

    Returns:
        Whitespace-trimmed content lines
    """
    content: list[str] = []
    in_block = False
    for raw in lines:
        line = raw.strip()
        if not in_block and line.startswith("//"):
            line = _LINE_MARKER.sub("", line, count=1)
        elif not in_block and line.startswith("/*"):
            closes = len(line) >= 4 and line.endswith("*/")
            line = _BLOCK_OPEN.sub("", line[2:] if closes else line, count=1)
            if closes:
                line = _TRAILING_STARS.sub("", line[:-2].rstrip())
            in_block = not closes
        elif in_block:
            closes = line.endswith("*/")
            if closes:
                line = _TRAILING_STARS.sub("", line[:-2].rstrip())
                in_block = False
            line = _LEADING_STARS.sub("", line, count=1)
        line = line.strip()
        if _DECORATION_ONLY.match(line):
            line = ""
        content.append(line)

    while content and not content[0]:
        content.pop(0)
    while content and not content[-1]:
        content.pop()
    return content


@dataclass(frozen=True)
class DocComment:
    """Documentation block attached to a declaration."""

    lines: tuple[str, ...]
    file_path: str
    start_line: int
    end_line: int

    def __post_init__(self) -> None:
        if self.start_line < 1:
            raise ValidationError(
                f"Invalid comment start line: {self.start_line}",
                recovery_hint="Line numbers must be positive integers",
            )
        if self.end_line < self.start_line:
            raise ValidationError(
                f"Comment end line ({self.end_line}) before start line "
                f"({self.start_line})",
                recovery_hint="End line number must be >= start line number",
            )

    @property
    def trimmed_lines(self) -> tuple[str, ...]:
        """Raw lines with surrounding whitespace removed, markers kept."""
        return tuple(line.strip() for line in self.lines)

    @property
    def normalized_lines(self) -> tuple[str, ...]:
        """Content lines with comment markers stripped."""
        return tuple(strip_comment_markers(self.lines))

    @property
    def folded_lines(self) -> tuple[str, ...]:
        """Case-normalized content lines."""
        return tuple(line.casefold() for line in self.normalized_lines)

    @property
    def is_empty(self) -> bool:
        return not self.normalized_lines


@dataclass(frozen=True)
class Parameter:
    """Single function parameter: type tokens plus optional name."""

    type_tokens: tuple[str, ...]
    name: str | None = None
    default_value: str | None = None

    @property
    def type_text(self) -> str:
        return " ".join(self.type_tokens)

    def to_string(self) -> str:
        text = self.type_text
        if self.name:
            text = f"{text} {self.name}" if text else self.name
        if self.default_value:
            text += f" = {self.default_value}"
        return text


@dataclass(frozen=True)
class FunctionSignature:
    """Function name with its scope path, parameters and trailing qualifiers."""

    name: str
    qualifiers: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    trailing_qualifiers: tuple[str, ...] = ()
    return_type: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValidationError(
                "Function name cannot be empty",
                recovery_hint="Declarations must carry an identifier",
            )

    @property
    def qualified_name(self) -> str:
        return "::".join(self.qualifiers + (self.name,))

    def to_string(self) -> str:
        """Convert function signature to readable string representation."""
        params = ", ".join(p.to_string() for p in self.parameters)
        text = f"{self.qualified_name}({params})"
        if self.return_type:
            text = f"{self.return_type} {text}"
        if self.trailing_qualifiers:
            text += " " + " ".join(self.trailing_qualifiers)
        return text


@dataclass(frozen=True)
class Declaration:
    """A function declaration or definition found in one file."""

    signature: FunctionSignature
    file_path: str
    line_number: int
    end_line_number: int
    column: int = 1
    doc: DocComment | None = None
    is_definition: bool = False

    def __post_init__(self) -> None:
        if self.line_number < 1:
            raise ValidationError(
                f"Invalid line number: {self.line_number}",
                recovery_hint="Line numbers must be positive integers",
            )
        if self.end_line_number < self.line_number:
            raise ValidationError(
                f"End line ({self.end_line_number}) before start line "
                f"({self.line_number})",
                recovery_hint="End line number must be >= start line number",
            )

    @property
    def has_doc(self) -> bool:
        """Check for documentation; an empty comment counts as none."""
        return self.doc is not None and not self.doc.is_empty

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line_number}:{self.column}"


@dataclass
class SourceFile:
    """One file's declarations plus the errors found while parsing it."""

    path: str
    declarations: list[Declaration] = field(default_factory=list)
    errors: list[ParsingError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
