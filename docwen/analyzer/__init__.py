"""
Analyzer module for comparing documentation across matched declarations.
"""

from .config import ComparatorConfig
from .doc_comparator import DocComparator
from .integration import check_file_group, check_file_groups
from .models import (
    KIND_LABELS,
    GroupReport,
    LineDifference,
    Mismatch,
    MismatchKind,
)

__all__ = [
    "ComparatorConfig",
    "DocComparator",
    "check_file_group",
    "check_file_groups",
    "GroupReport",
    "LineDifference",
    "Mismatch",
    "MismatchKind",
    "KIND_LABELS",
]
