"""
Per-contributor aggregation of commit statistics.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List

from contrib_stats.stats.models import CommitRecord, ContributorStats
from contrib_stats.stats.summary_parser import parse_stat_totals


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


def aggregate_contributors(
    history: Iterable[CommitRecord],
    stat_fetcher: Callable[[str], str],
) -> List[ContributorStats]:
    """Fold the history into per-author statistics.

    Parameters
    ----------
    history : Iterable[CommitRecord]
        Commits in history order.
    stat_fetcher : Callable[[str], str]
        Returns the ``--stat`` output for a commit hash. It may raise;
        a failing commit still counts toward ``commit_count`` and
        ``commit_hashes`` but adds no insertions or deletions.

    Returns
    -------
    List[ContributorStats]
        Contributors sorted by commit count, most active first. Ties
        keep first-seen order.
    """
    contributors: Dict[str, ContributorStats] = {}

    for record in history:
        stats = contributors.get(record.author_name)
        if stats is None:
            stats = contributors[record.author_name] = ContributorStats(username=record.author_name)
        stats.commit_count += 1
        stats.commit_hashes.append(record.hash)

        try:
            text = stat_fetcher(record.hash)
        except Exception as exc:
            logger.warning("Could not fetch stats for commit %s: %s", record.hash, exc)
            continue
        _, insertions, deletions = parse_stat_totals(text)
        stats.total_insertions += insertions
        stats.total_deletions += deletions

    result = sorted(contributors.values(), key=lambda s: s.commit_count, reverse=True)
    logger.info("Found %d contributors", len(result))
    return result
