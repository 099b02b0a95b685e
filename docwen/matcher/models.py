"""Data models for the matching system."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

from docwen.parser import Declaration, SourceFile


class MatchMode(str, Enum):
    """Whether scope qualifiers are part of a function's identity."""

    QUALIFIED = "qualified"  # ns::C::m(int) and m(int) differ
    UNQUALIFIED = "unqualified"  # Qualifier path dropped entirely


class SignatureKey(NamedTuple):
    """Normalized identity of a function within one file group."""

    qualifiers: tuple[str, ...]
    name: str
    parameter_types: tuple[str, ...]
    method_qualifiers: tuple[str, ...] = ()

    def to_string(self) -> str:
        name = "::".join(self.qualifiers + (self.name,))
        text = f"{name}({', '.join(self.parameter_types)})"
        if self.method_qualifiers:
            text += " " + " ".join(self.method_qualifiers)
        return text


@dataclass
class MatchSet:
    """All declarations of one group sharing a signature key."""

    key: SignatureKey
    declarations: list[Declaration] = field(default_factory=list)

    @property
    def file_paths(self) -> list[str]:
        """Distinct contributing files, in order of first appearance."""
        return list(dict.fromkeys(d.file_path for d in self.declarations))

    @property
    def is_cross_file(self) -> bool:
        return len(self.file_paths) > 1

    @property
    def duplicate_files(self) -> list[str]:
        """Files contributing more than one declaration for this key."""
        counts: dict[str, int] = {}
        for declaration in self.declarations:
            counts[declaration.file_path] = counts.get(declaration.file_path, 0) + 1
        return [path for path, count in counts.items() if count > 1]

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.duplicate_files)


@dataclass
class MatchResult:
    """Complete result of matching one file group."""

    mode: MatchMode
    source_files: list[SourceFile] = field(default_factory=list)
    match_sets: list[MatchSet] = field(default_factory=list)
    total_declarations: int = 0
    match_duration_ms: float = 0.0

    @property
    def cross_file_sets(self) -> list[MatchSet]:
        return [
            s for s in self.match_sets if s.is_cross_file and not s.is_ambiguous
        ]

    @property
    def ambiguous_sets(self) -> list[MatchSet]:
        return [s for s in self.match_sets if s.is_ambiguous]

    @property
    def single_file_sets(self) -> list[MatchSet]:
        return [
            s for s in self.match_sets if not s.is_cross_file and not s.is_ambiguous
        ]

    def get_summary(self) -> dict[str, Any]:
        """Get summary statistics."""
        return {
            "mode": self.mode.value,
            "files": len(self.source_files),
            "total_declarations": self.total_declarations,
            "match_sets": len(self.match_sets),
            "cross_file": len(self.cross_file_sets),
            "ambiguous": len(self.ambiguous_sets),
            "single_file": len(self.single_file_sets),
            "duration_ms": self.match_duration_ms,
        }
