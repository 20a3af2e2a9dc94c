"""
Per-commit collection over a repository history.

Each commit's details come from a blocking fetch (a ``git show`` call
with a timeout). A failing fetch only affects its own commit: the
collectors below record a placeholder for it and carry on. Results are
always returned in history order, including when fetches run in a
thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from contrib_stats.stats.diff_filter import (
    DEFAULT_EXCLUDED_SEGMENT,
    filter_noise,
    parse_file_blocks,
)
from contrib_stats.stats.models import CommitDiff, CommitRecord, CommitSummary
from contrib_stats.stats.summary_parser import (
    DEFAULT_MAX_BODY_LINES,
    ERROR_PLACEHOLDER_HINT,
    TRUNCATION_MARKER,
    failed_summary,
    summarize_commit,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


T = TypeVar("T")
R = TypeVar("R")


@dataclass
class FetchResult(Generic[R]):
    """Outcome of one fetch: either ``value`` or ``error`` is set."""

    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _capture(fetch: Callable[[T], R], item: T) -> FetchResult[R]:
    try:
        return FetchResult(value=fetch(item))
    except Exception as exc:
        return FetchResult(error=exc)


def fetch_in_order(
    items: Sequence[T],
    fetch: Callable[[T], R],
    max_workers: int = 1,
) -> List[FetchResult[R]]:
    """Run ``fetch`` for every item and return the results by index.

    With ``max_workers`` greater than one the fetches run in a thread
    pool; each result is written back into the slot of its item, never
    in completion order.
    """
    if max_workers <= 1 or len(items) <= 1:
        return [_capture(fetch, item) for item in items]

    results: List[FetchResult[R]] = [FetchResult() for _ in items]
    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        futures = {ex.submit(_capture, fetch, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results


def summarize_history(
    history: Sequence[CommitRecord],
    detail_fetcher: Callable[[str], str],
    max_body_lines: int = DEFAULT_MAX_BODY_LINES,
    max_workers: int = 1,
) -> List[CommitSummary]:
    """Summarize every commit of ``history``, one entry per commit."""
    results = fetch_in_order([record.hash for record in history], detail_fetcher, max_workers)

    summaries: List[CommitSummary] = []
    for record, result in zip(history, results):
        if result.ok:
            summaries.append(summarize_commit(result.value, record, max_body_lines))
        else:
            logger.warning("Could not summarize commit %s: %s", record.hash, result.error)
            summaries.append(failed_summary(record, result.error))
    return summaries


def collect_contributor_diffs(
    history: Sequence[CommitRecord],
    username: str,
    diff_fetcher: Callable[[str], str],
    excluded_segment: str = DEFAULT_EXCLUDED_SEGMENT,
    max_lines: int = DEFAULT_MAX_BODY_LINES,
    max_workers: int = 1,
) -> List[CommitDiff]:
    """Build the diff listing for the commits authored by ``username``.

    Commits whose every file block lies under ``excluded_segment`` are
    left out. Commits that could not be fetched are kept with a pair of
    placeholder lines instead of their changes.
    """
    commits = [record for record in history if record.author_name == username]
    results = fetch_in_order([record.hash for record in commits], diff_fetcher, max_workers)

    diffs: List[CommitDiff] = []
    for record, result in zip(commits, results):
        if not result.ok:
            logger.error("Error fetching diff for commit %s: %s", record.hash, result.error)
            diffs.append(
                CommitDiff(
                    commit=record.short_hash,
                    message=record.message,
                    date=record.timestamp,
                    changes=[f"// Error loading changes: {result.error}", ERROR_PLACEHOLDER_HINT],
                )
            )
            continue

        blocks = filter_noise(parse_file_blocks(result.value), excluded_segment)
        if not blocks:
            logger.debug("Skipping commit %s: no changes outside %s", record.short_hash, excluded_segment)
            continue

        changes = [line for block in blocks for line in block.lines]
        if len(changes) > max_lines:
            changes = changes[:max_lines] + [TRUNCATION_MARKER]
        diffs.append(
            CommitDiff(
                commit=record.short_hash,
                message=record.message,
                date=record.timestamp,
                changes=changes,
            )
        )
        logger.debug("Processed commit %s with %d change lines", record.short_hash, len(changes))

    logger.info("Collected %d diffs for %s", len(diffs), username)
    return diffs
