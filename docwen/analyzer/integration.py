"""
Integration module for the analyzer - runs the whole pipeline per group.

Each group is tokenized, extracted, matched and compared on its own. No
state is shared between groups, so several groups can run on a thread pool.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Optional, Sequence

from docwen.matcher import MatchingFacade, MatchMode

from .config import ComparatorConfig
from .doc_comparator import DocComparator
from .models import GroupReport

if TYPE_CHECKING:
    from docwen.utils.config import FileGroup

# Configure logger
logger = logging.getLogger(__name__)


def check_file_group(
    group: "FileGroup",
    mode: MatchMode,
    config: Optional[ComparatorConfig] = None,
) -> GroupReport:
    """
    Compare the documentation of one file group.

    Args:
        group: Named set of files, paths already resolved
        mode: Matching mode, passed explicitly per call
        config: Comparison policy

    Returns:
        GroupReport with ordered mismatches
    """
    start_time = time.time()
    config = config or ComparatorConfig()

    facade = MatchingFacade(mode, max_doc_gap=config.max_doc_gap_lines)
    match_result = facade.match_files(list(group.files))
    mismatches = DocComparator(config).compare(match_result)

    duration_ms = (time.time() - start_time) * 1000
    report = GroupReport(
        name=group.name,
        files=[str(path) for path in group.files],
        mismatches=mismatches,
        total_declarations=match_result.total_declarations,
        compared_sets=len(match_result.cross_file_sets),
        duration_ms=duration_ms,
    )
    logger.info(
        f"Checked group '{group.name}': {len(mismatches)} mismatches in "
        f"{duration_ms:.1f}ms"
    )
    return report


def check_file_groups(
    groups: Sequence["FileGroup"],
    mode: MatchMode,
    config: Optional[ComparatorConfig] = None,
    max_workers: int = 1,
) -> list[GroupReport]:
    """
    Compare every group, keeping the input order in the result.

    Args:
        groups: File groups to check
        mode: Matching mode applied to all groups
        config: Comparison policy
        max_workers: Threads to use; 1 runs sequentially

    Returns:
        One GroupReport per group, in input order
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be positive, got {max_workers}")

    if max_workers == 1 or len(groups) < 2:
        reports = [check_file_group(group, mode, config) for group in groups]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            reports = list(
                executor.map(lambda g: check_file_group(g, mode, config), groups)
            )

    total = sum(len(report.mismatches) for report in reports)
    logger.info(f"Checked {len(reports)} groups: {total} mismatches")
    return reports
