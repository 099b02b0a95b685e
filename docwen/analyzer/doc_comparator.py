"""
Doc Comparator.

Turns the match sets of one group into mismatch records. A set is only
compared when its declarations come from at least two files and no file
contributes more than one of them. The whole comment block is the unit of
comparison: all documented declarations of a set must agree line for line.
"""

import logging
from itertools import zip_longest
from typing import Optional

from docwen.matcher import MatchResult, MatchSet
from docwen.parser import Declaration, DocComment, SourceFile

from .config import ComparatorConfig
from .models import KIND_ORDER, LineDifference, Mismatch, MismatchKind

logger = logging.getLogger(__name__)


class DocComparator:
    """Compares attached documentation across the files of a group."""

    def __init__(self, config: Optional[ComparatorConfig] = None):
        self.config = config or ComparatorConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid comparator configuration: {'; '.join(errors)}")

    def compare(self, match_result: MatchResult) -> list[Mismatch]:
        """
        Produce every mismatch of one matched group, in report order.

        Parse errors come first, then ambiguous keys, then documentation
        mismatches. Within each kind, mismatches follow the position of
        their first declaration (file order, then line).
        """
        file_index = {f.path: i for i, f in enumerate(match_result.source_files)}
        group_files = [f.path for f in match_result.source_files]

        mismatches = self.parse_error_mismatches(match_result.source_files)
        for match_set in match_result.match_sets:
            if match_set.is_ambiguous:
                mismatches.append(self.ambiguous_mismatch(match_set))
                continue
            if match_set.is_cross_file:
                mismatch = self.compare_match_set(match_set)
            elif self.config.report_unmatched:
                mismatch = self.unmatched_mismatch(match_set, group_files)
            else:
                mismatch = None
            if mismatch is not None:
                mismatches.append(mismatch)

        def order(mismatch: Mismatch) -> tuple[int, int, int]:
            if mismatch.declarations:
                first = mismatch.declarations[0]
                return (
                    KIND_ORDER[mismatch.kind],
                    file_index.get(first.file_path, len(file_index)),
                    first.line_number,
                )
            return (
                KIND_ORDER[mismatch.kind],
                file_index.get(mismatch.file_paths[0], len(file_index)),
                mismatch.line_number or 0,
            )

        mismatches.sort(key=order)
        return mismatches

    def compare_match_set(self, match_set: MatchSet) -> Optional[Mismatch]:
        """
        Compare the documentation of one cross-file match set.

        Returns:
            MISSING_ON_ONE_SIDE when only some declarations are documented,
            CONTENT_DIFFERS when all are documented but disagree, None when
            all agree or none is documented.
        """
        declarations = match_set.declarations
        if len(match_set.file_paths) < 2 or match_set.is_ambiguous:
            return None

        documented = [d for d in declarations if d.has_doc]
        if not documented:
            return None

        name = match_set.key.to_string()
        if len(documented) < len(declarations):
            missing = [d.file_path for d in declarations if not d.has_doc]
            present = [d.file_path for d in documented]
            logger.debug(f"{name}: documentation missing in {', '.join(missing)}")
            return Mismatch(
                kind=MismatchKind.MISSING_ON_ONE_SIDE,
                message=(
                    f"{name} is documented in {', '.join(present)} "
                    f"but not in {', '.join(missing)}"
                ),
                file_paths=match_set.file_paths,
                declarations=list(declarations),
                key=match_set.key,
                missing_files=missing,
            )

        compared = [self.comparison_lines(d.doc) for d in declarations]
        if all(lines == compared[0] for lines in compared[1:]):
            return None

        diff = self.line_differences(declarations, compared)
        logger.debug(f"{name}: documentation differs on {len(diff)} line(s)")
        return Mismatch(
            kind=MismatchKind.CONTENT_DIFFERS,
            message=(
                f"Documentation of {name} differs between "
                f"{', '.join(match_set.file_paths)}"
            ),
            file_paths=match_set.file_paths,
            declarations=list(declarations),
            key=match_set.key,
            diff=diff,
        )

    def comparison_lines(self, doc: DocComment) -> tuple[str, ...]:
        """Lines of a comment as seen by the comparison policy."""
        if self.config.strip_comment_markers:
            if self.config.case_sensitive:
                return doc.normalized_lines
            return doc.folded_lines
        lines = doc.trimmed_lines
        if not self.config.case_sensitive:
            lines = tuple(line.casefold() for line in lines)
        return lines

    @staticmethod
    def line_differences(
        declarations: list[Declaration], compared: list[tuple[str, ...]]
    ) -> list[LineDifference]:
        """Positional line diff: every index where the comments disagree."""
        differences = []
        for index, row in enumerate(zip_longest(*compared)):
            if all(value == row[0] for value in row[1:]):
                continue
            differences.append(
                LineDifference(
                    line=index + 1,
                    values=tuple(
                        (d.file_path, value) for d, value in zip(declarations, row)
                    ),
                )
            )
        return differences

    @staticmethod
    def ambiguous_mismatch(match_set: MatchSet) -> Mismatch:
        name = match_set.key.to_string()
        duplicates = match_set.duplicate_files
        return Mismatch(
            kind=MismatchKind.AMBIGUOUS,
            message=(
                f"{name} is declared more than once in {', '.join(duplicates)}; "
                f"its documentation is not compared"
            ),
            file_paths=match_set.file_paths,
            declarations=list(match_set.declarations),
            key=match_set.key,
            recovery_hint="Overloads that normalize to the same key cannot be paired",
        )

    @staticmethod
    def unmatched_mismatch(
        match_set: MatchSet, group_files: list[str]
    ) -> Optional[Mismatch]:
        """Report a documented declaration that no other file of the group has."""
        declarations = match_set.declarations
        if not declarations or not declarations[0].has_doc:
            return None
        present = declarations[0].file_path
        others = [path for path in group_files if path != present]
        if not others:
            return None
        name = match_set.key.to_string()
        return Mismatch(
            kind=MismatchKind.MISSING_ON_ONE_SIDE,
            message=f"{name} is documented in {present} but has no counterpart in "
            f"{', '.join(others)}",
            file_paths=[present],
            declarations=list(declarations),
            key=match_set.key,
            missing_files=others,
        )

    @staticmethod
    def parse_error_mismatches(source_files: list[SourceFile]) -> list[Mismatch]:
        mismatches = []
        for source_file in source_files:
            for error in source_file.errors:
                mismatches.append(
                    Mismatch(
                        kind=MismatchKind.PARSE_ERROR,
                        message=error.message,
                        file_paths=[source_file.path],
                        line_number=error.line_number,
                        recovery_hint=error.recovery_hint,
                    )
                )
        return mismatches
