"""
Commit summary parser.

Turns the combined output of ``git show`` for one commit (stat table,
numstat table, name-status table and patch body, in any order) into a
:class:`~contrib_stats.stats.models.CommitSummary`. The parser never
raises on unexpected input: lines it cannot classify are ignored and
counters keep their defaults.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from contrib_stats.stats.line_classifier import LineKind, classify_lines
from contrib_stats.stats.models import (
    NO_EXTENSION,
    CommitRecord,
    CommitSummary,
    ExtensionStats,
    FileChange,
    FileStatus,
    TopFile,
)


DEFAULT_MAX_BODY_LINES = 200
TOP_FILES_LIMIT = 3

TRUNCATION_MARKER = "// ... diff truncated, further changes omitted"
NO_TEXT_PLACEHOLDER = "// No textual changes to display (binary files or empty diff)"
ERROR_PLACEHOLDER_HINT = "// This commit may have too many changes or contain binary files"

STATUS_BY_LETTER = {
    "A": FileStatus.ADDED,
    "M": FileStatus.MODIFIED,
    "D": FileStatus.DELETED,
}

INSERTION_PHRASE_RE = re.compile(r"(\d+) insertions?\b")
DELETION_PHRASE_RE = re.compile(r"(\d+) deletions?\b")
HEADER_COMMIT_RE = re.compile(r"^commit ([0-9a-f]{7,64})\b")
HEADER_DATE_RE = re.compile(r"^Date:\s+(.*\S)")


def extension_of(path: str) -> str:
    """Return the extension bucket for ``path``.

    The extension is the text after the last ``.`` of the final path
    segment. Names without one (or ending in a dot) map to
    :data:`~contrib_stats.stats.models.NO_EXTENSION`.
    """
    name = path.rstrip("/").rsplit("/", 1)[-1]
    if "." not in name:
        return NO_EXTENSION
    ext = name.rsplit(".", 1)[1]
    return ext or NO_EXTENSION


def format_summary_line(files_changed: int, insertions: int, deletions: int) -> str:
    """Render a summary line the way ``git diff --stat`` does."""
    parts = [f" {files_changed} file{'' if files_changed == 1 else 's'} changed"]
    if insertions or not deletions:
        parts.append(f"{insertions} insertion{'' if insertions == 1 else 's'}(+)")
    if deletions or not insertions:
        parts.append(f"{deletions} deletion{'' if deletions == 1 else 's'}(-)")
    return ", ".join(parts)


def parse_stat_totals(text: str) -> Tuple[int, int, int]:
    """Extract ``(files_changed, insertions, deletions)`` from stat output.

    The explicit summary line is the only counting source when present.
    Individual ``N insertion(s)`` / ``N deletion(s)`` phrases are summed
    only when no summary line matched.
    """
    files_changed = insertions = deletions = 0
    seen_summary = False
    for item in classify_lines(text.splitlines()):
        if item.kind is not LineKind.SUMMARY:
            continue
        seen_summary = True
        files_changed = item.files_changed or 0
        if item.insertions is not None:
            insertions = item.insertions
        if item.deletions is not None:
            deletions = item.deletions
    if seen_summary:
        return files_changed, insertions, deletions

    for line in text.splitlines():
        m = INSERTION_PHRASE_RE.search(line)
        if m:
            insertions += int(m.group(1))
        m = DELETION_PHRASE_RE.search(line)
        if m:
            deletions += int(m.group(1))
    return files_changed, insertions, deletions


def _parse_header(lines: List[str]) -> Tuple[str, str, str]:
    """Read hash, date and subject from a ``--format=medium`` header."""
    commit = date = message = ""
    in_header = False
    for line in lines:
        if line.startswith("diff --git "):
            break
        m = HEADER_COMMIT_RE.match(line)
        if m and not commit:
            commit = m.group(1)[:7]
            in_header = True
            continue
        if not in_header:
            continue
        m = HEADER_DATE_RE.match(line)
        if m and not date:
            date = m.group(1)
            continue
        if line.startswith("    ") and line.strip() and not message:
            message = line.strip()
            break
    return commit, date, message


def _aggregate_extensions(file_changes: List[FileChange]) -> Dict[str, ExtensionStats]:
    by_extension: Dict[str, ExtensionStats] = {}
    for change in file_changes:
        stats = by_extension.setdefault(extension_of(change.path), ExtensionStats())
        stats.files += 1
        stats.insertions += change.insertions
        stats.deletions += change.deletions
    return by_extension


def summarize_commit(
    raw_text: str,
    record: Optional[CommitRecord] = None,
    max_body_lines: int = DEFAULT_MAX_BODY_LINES,
) -> CommitSummary:
    """Build a :class:`CommitSummary` from combined ``git show`` output.

    Parameters
    ----------
    raw_text : str
        Output containing any mix of ``--stat``, ``--numstat``,
        ``--name-status`` and patch lines for a single commit.
    record : CommitRecord, optional
        History entry for the commit. When omitted, hash, date and
        message are taken from a ``--format=medium`` header if present.
    max_body_lines : int
        Number of patch lines to retain before truncating.

    Returns
    -------
    CommitSummary
        The assembled summary. ``body_lines`` is never empty.
    """
    lines = raw_text.splitlines()

    files_changed = insertions = deletions = 0
    stat_candidates: Dict[str, int] = {}
    numstat: Dict[str, Tuple[int, int, bool]] = {}
    # path -> (status, rename source), in first-seen order
    changed: Dict[str, Tuple[FileStatus, Optional[str]]] = {}
    body: List[str] = []
    truncated = False

    for item in classify_lines(lines):
        kind = item.kind
        if kind is LineKind.SUMMARY:
            files_changed = item.files_changed or 0
            if item.insertions is not None:
                insertions = item.insertions
            if item.deletions is not None:
                deletions = item.deletions
        elif kind is LineKind.STAT_ROW:
            stat_candidates[item.path] = stat_candidates.get(item.path, 0) + (item.count or 0)
        elif kind is LineKind.NUMSTAT_ROW:
            numstat[item.path] = (item.insertions or 0, item.deletions or 0, item.binary)
        elif kind is LineKind.RENAME_ROW:
            changed[item.path] = (FileStatus.RENAMED, item.old_path)
        elif kind is LineKind.NAME_STATUS_ROW:
            changed.setdefault(item.path, (STATUS_BY_LETTER[item.status], None))
        elif kind is LineKind.DIFF_BODY_ROW and not truncated:
            if len(body) >= max_body_lines:
                body.append(TRUNCATION_MARKER)
                truncated = True
            else:
                body.append(item.line)

    file_changes: List[FileChange] = []
    for path, (status, source) in changed.items():
        counts = numstat.get(path)
        if counts is None and source is not None:
            counts = numstat.get(source)
        ins, dels, binary = counts if counts is not None else (0, 0, False)
        file_changes.append(
            FileChange(
                path=path,
                insertions=ins,
                deletions=dels,
                status=status,
                binary=binary,
                renamed_from=source,
            )
        )

    if file_changes:
        ranked = sorted(file_changes, key=lambda change: change.changes, reverse=True)
        top_files = [TopFile(change.path, change.changes) for change in ranked[:TOP_FILES_LIMIT]]
    else:
        ranked_stats = sorted(stat_candidates.items(), key=lambda kv: kv[1], reverse=True)
        top_files = [TopFile(path, count) for path, count in ranked_stats[:TOP_FILES_LIMIT]]

    if file_changes:
        binary_only = all(change.binary for change in file_changes)
    else:
        binary_only = bool(numstat) and all(binary for _, _, binary in numstat.values())
    if not body or binary_only:
        body = [NO_TEXT_PLACEHOLDER]

    if record is not None:
        commit, date, message = record.short_hash, record.timestamp, record.message
    else:
        commit, date, message = _parse_header(lines)

    return CommitSummary(
        commit=commit,
        message=message,
        date=date,
        files_changed=files_changed,
        insertions=insertions,
        deletions=deletions,
        top_files=top_files,
        file_changes=file_changes,
        by_extension=_aggregate_extensions(file_changes),
        body_lines=body,
    )


def failed_summary(record: CommitRecord, error: object) -> CommitSummary:
    """Zeroed summary for a commit whose details could not be fetched."""
    return CommitSummary(
        commit=record.short_hash,
        message=record.message,
        date=record.timestamp,
        body_lines=[f"// Error loading changes: {error}", ERROR_PLACEHOLDER_HINT],
    )
