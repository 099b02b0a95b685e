"""
Configuration for the doc comparator.

This module provides the knobs that decide how two documentation blocks
are compared and which one-sided situations are reported.
"""

from dataclasses import dataclass
from typing import List

from docwen.parser.declaration_extractor import MAX_DOC_GAP_LINES


@dataclass
class ComparatorConfig:
    """Configuration for comparing documentation across files."""

    # Comparison policy
    strip_comment_markers: bool = True  # Compare content, not `//` vs `/* */`
    case_sensitive: bool = True  # False compares casefolded lines

    # Reporting policy
    report_unmatched: bool = False  # Flag documented keys found in one file only

    # Attachment
    max_doc_gap_lines: int = MAX_DOC_GAP_LINES  # Blank lines allowed before a declaration

    def validate(self) -> List[str]:
        """Validate configuration and return any errors."""
        errors = []
        if self.max_doc_gap_lines < 0:
            errors.append("max_doc_gap_lines must be non-negative")
        return errors
