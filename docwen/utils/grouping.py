"""Stem-based grouping of source files into candidate file groups."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = {".git", ".hg", ".svn", "build", "node_modules", "__pycache__"}


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and drop a leading dot."""
    return extension.strip().lstrip(".").lower()


def discover_files(root: Union[str, Path]) -> list[Path]:
    """
    List every regular file below ``root``, sorted for stable output.

    Version-control and build directories are skipped.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Target directory does not exist: {root}")
        return []

    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.is_file():
                files.append(path)

    logger.info(f"Found {len(files)} files in {root}")
    return sorted(files)


def group_by_stem(
    paths: Iterable[Union[str, Path]],
    match_extensions: Iterable[str],
    ignore: Iterable[str] = (),
) -> dict[str, list[Path]]:
    """
    Group files sharing a case-insensitive stem.

    Only files whose extension is in ``match_extensions`` take part; stems
    listed in ``ignore`` are skipped. Both comparisons ignore case. The
    stem is everything before the last dot, so `.hidden.c` has stem
    `.hidden`.

    Args:
        paths: Candidate files
        match_extensions: Extensions to consider, with or without a dot
        ignore: Stems never grouped

    Returns:
        Mapping of lower-cased stem to its files, both sorted
    """
    extensions = {normalize_extension(e) for e in match_extensions}
    ignored = {stem.lower() for stem in ignore}

    groups: dict[str, list[Path]] = {}
    for raw_path in paths:
        path = Path(raw_path)
        stem, dot, extension = path.name.rpartition(".")
        if not dot or not stem or extension.lower() not in extensions:
            continue
        stem = stem.lower()
        if stem in ignored:
            continue
        groups.setdefault(stem, []).append(path)

    return {name: sorted(files) for name, files in sorted(groups.items())}
