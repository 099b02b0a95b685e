"""Matcher module for pairing declarations across the files of a group."""

from .cross_file_matcher import CrossFileMatcher
from .facade import MatchingFacade
from .models import MatchMode, MatchResult, MatchSet, SignatureKey
from .normalizer import (
    METHOD_QUALIFIERS,
    normalize_parameter_type,
    normalize_signature,
)

__all__ = [
    "MatchMode",
    "SignatureKey",
    "MatchSet",
    "MatchResult",
    "CrossFileMatcher",
    "MatchingFacade",
    "METHOD_QUALIFIERS",
    "normalize_parameter_type",
    "normalize_signature",
]
