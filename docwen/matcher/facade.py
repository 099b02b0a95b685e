"""High-level facade for matching operations."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from docwen.parser import SourceFile, load_source_file

from .cross_file_matcher import CrossFileMatcher
from .models import MatchMode, MatchResult

logger = logging.getLogger(__name__)


class MatchingFacade:
    """Load the files of one group and match their declarations."""

    def __init__(
        self,
        mode: MatchMode = MatchMode.QUALIFIED,
        max_doc_gap: Optional[int] = None,
    ):
        """Initialize with an explicit matching mode."""
        self.matcher = CrossFileMatcher(mode)
        self.max_doc_gap = max_doc_gap

    def load_files(
        self, file_paths: list[Union[str, Path]], max_workers: int = 1
    ) -> list[SourceFile]:
        """
        Parse every file of a group, preserving the given order.

        Files are independent of each other, so they may be parsed on a
        thread pool. A file that cannot be read or parsed still yields a
        SourceFile carrying its errors.
        """
        paths = [str(path) for path in file_paths]
        if max_workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                return list(executor.map(self._load, paths))
        return [self._load(path) for path in paths]

    def match_files(
        self, file_paths: list[Union[str, Path]], max_workers: int = 1
    ) -> MatchResult:
        """
        Parse and match the files of one group.

        Args:
            file_paths: Files of the group, header first by convention
            max_workers: Threads used for parsing

        Returns:
            MatchResult with all match sets

        Example:
            >>> facade = MatchingFacade(MatchMode.QUALIFIED)
            >>> result = facade.match_files(["foo.h", "foo.c"])
            >>> print(result.get_summary()["cross_file"])
        """
        source_files = self.load_files(file_paths, max_workers)
        failed = [f.path for f in source_files if f.has_errors]
        if failed:
            logger.warning(f"Parse problems in {len(failed)} file(s): {', '.join(failed)}")
        return self.matcher.match_declarations(source_files)

    def _load(self, path: str) -> SourceFile:
        if self.max_doc_gap is None:
            return load_source_file(path)
        return load_source_file(path, self.max_doc_gap)
