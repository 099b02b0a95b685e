"""
Data models for the analyzer module.

These models are the contract between the comparator and the reporting
layer: every Mismatch carries enough context for a reporter to render it
without going back to the source files.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from docwen.matcher import SignatureKey
from docwen.parser import Declaration


class MismatchKind(Enum):
    """Classification of a reported problem."""

    PARSE_ERROR = "parse_error"
    AMBIGUOUS = "ambiguous"
    MISSING_ON_ONE_SIDE = "missing_on_one_side"
    CONTENT_DIFFERS = "content_differs"


# Report order within a group (lower first)
KIND_ORDER = {
    MismatchKind.PARSE_ERROR: 0,
    MismatchKind.AMBIGUOUS: 1,
    MismatchKind.MISSING_ON_ONE_SIDE: 2,
    MismatchKind.CONTENT_DIFFERS: 2,
}

KIND_LABELS = {
    MismatchKind.PARSE_ERROR: "Parse error",
    MismatchKind.AMBIGUOUS: "Ambiguous declaration",
    MismatchKind.MISSING_ON_ONE_SIDE: "Missing documentation",
    MismatchKind.CONTENT_DIFFERS: "Documentation differs",
}


@dataclass(frozen=True)
class LineDifference:
    """One position at which compared comments disagree.

    ``values`` holds one (file path, line text) pair per compared file;
    the text is None where that comment has fewer lines.
    """

    line: int
    values: tuple[tuple[str, Optional[str]], ...]

    def __post_init__(self) -> None:
        if self.line < 1:
            raise ValueError(f"line must be positive, got {self.line}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line,
            "values": [{"file": path, "text": text} for path, text in self.values],
        }


@dataclass
class Mismatch:
    """Single reported problem within one file group."""

    kind: MismatchKind
    message: str  # Human-readable description
    file_paths: list[str]  # Files involved, in group order
    declarations: list[Declaration] = field(default_factory=list)
    key: Optional[SignatureKey] = None
    line_number: Optional[int] = None  # For parse errors without a declaration
    missing_files: list[str] = field(default_factory=list)
    diff: list[LineDifference] = field(default_factory=list)
    recovery_hint: Optional[str] = None

    def __post_init__(self):
        """Validate mismatch fields."""
        if not self.message.strip():
            raise ValueError("message cannot be empty")
        if not self.file_paths:
            raise ValueError("file_paths cannot be empty")
        if self.kind is not MismatchKind.PARSE_ERROR and not self.declarations:
            raise ValueError(f"{self.kind.value} mismatch requires declarations")

    @property
    def label(self) -> str:
        return KIND_LABELS[self.kind]

    @property
    def function_name(self) -> Optional[str]:
        if self.key is not None:
            return self.key.to_string()
        return None

    @property
    def comments(self) -> list[tuple[Declaration, tuple[str, ...]]]:
        """Documented declarations with their raw comment lines."""
        return [(d, d.doc.lines) for d in self.declarations if d.has_doc]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "function": self.function_name,
            "files": list(self.file_paths),
            "locations": [
                {
                    "file": d.file_path,
                    "line": d.line_number,
                    "column": d.column,
                    "end_line": d.end_line_number,
                    "signature": d.signature.to_string(),
                }
                for d in self.declarations
            ],
            "line": self.line_number,
            "missing_files": list(self.missing_files),
            "comments": [
                {"file": d.file_path, "line": d.doc.start_line, "lines": list(lines)}
                for d, lines in self.comments
            ],
            "diff": [difference.to_dict() for difference in self.diff],
            "recovery_hint": self.recovery_hint,
        }


@dataclass
class GroupReport:
    """Complete comparison result for one file group."""

    name: str
    files: list[str]
    mismatches: list[Mismatch] = field(default_factory=list)
    total_declarations: int = 0
    compared_sets: int = 0
    duration_ms: float = 0.0

    def __post_init__(self):
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be non-negative, got {self.duration_ms}")

    @property
    def has_mismatches(self) -> bool:
        return bool(self.mismatches)

    def get_mismatches_by_kind(self) -> dict[MismatchKind, list[Mismatch]]:
        """Group mismatches by kind."""
        result: dict[MismatchKind, list[Mismatch]] = {kind: [] for kind in MismatchKind}
        for mismatch in self.mismatches:
            result[mismatch.kind].append(mismatch)
        return result

    def get_summary(self) -> dict[str, Any]:
        """Get summary statistics for this group."""
        by_kind = self.get_mismatches_by_kind()
        return {
            "name": self.name,
            "files": len(self.files),
            "total_declarations": self.total_declarations,
            "compared_sets": self.compared_sets,
            "total_mismatches": len(self.mismatches),
            **{kind.value: len(items) for kind, items in by_kind.items()},
            "duration_ms": self.duration_ms,
        }
