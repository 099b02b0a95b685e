"""Cross-file matcher: buckets a group's declarations by signature key."""

import logging
import time

from docwen.parser import SourceFile

from .models import MatchMode, MatchResult, MatchSet, SignatureKey
from .normalizer import normalize_signature

logger = logging.getLogger(__name__)


class CrossFileMatcher:
    """Matches declarations across the files of one group."""

    def __init__(self, mode: MatchMode = MatchMode.QUALIFIED):
        """Initialize the matcher with an explicit matching mode."""
        self.mode = MatchMode(mode)
        self.stats = {
            "cross_file": 0,
            "ambiguous": 0,
            "single_file": 0,
            "total_processed": 0,
        }

    def match_declarations(self, source_files: list[SourceFile]) -> MatchResult:
        """
        Group every declaration of a file group into match sets.

        Match sets are ordered by the first declaration contributing to
        them, in file order then source order. Declarations inside a set
        keep the same order.

        Args:
            source_files: Parsed files of one group, in group order

        Returns:
            MatchResult containing all match sets

        Example:
            >>> matcher = CrossFileMatcher(MatchMode.UNQUALIFIED)
            >>> result = matcher.match_declarations([header, source])
            >>> print(len(result.cross_file_sets))
        """
        start_time = time.time()
        self._reset_stats()

        buckets: dict[SignatureKey, MatchSet] = {}
        total = 0
        for source_file in source_files:
            for declaration in source_file.declarations:
                total += 1
                key = normalize_signature(declaration.signature, self.mode)
                if key not in buckets:
                    buckets[key] = MatchSet(key=key)
                buckets[key].declarations.append(declaration)

        match_sets = list(buckets.values())
        for match_set in match_sets:
            self.stats["total_processed"] += len(match_set.declarations)
            if match_set.is_ambiguous:
                self.stats["ambiguous"] += 1
                logger.warning(
                    f"Ambiguous key {match_set.key.to_string()} in "
                    f"{', '.join(match_set.duplicate_files)}"
                )
            elif match_set.is_cross_file:
                self.stats["cross_file"] += 1
            else:
                self.stats["single_file"] += 1

        duration_ms = (time.time() - start_time) * 1000
        result = MatchResult(
            mode=self.mode,
            source_files=list(source_files),
            match_sets=match_sets,
            total_declarations=total,
            match_duration_ms=duration_ms,
        )

        logger.info(
            f"Cross-file matching complete: {self.stats['cross_file']} matched, "
            f"{self.stats['ambiguous']} ambiguous out of {len(match_sets)} keys "
            f"in {duration_ms:.1f}ms"
        )
        return result

    def _reset_stats(self) -> None:
        """Reset statistics for a new matching run."""
        for key in self.stats:
            self.stats[key] = 0

    def get_stats(self) -> dict[str, int]:
        """Get matching statistics."""
        return self.stats.copy()
