"""
Line-shape classification of ``git show`` output.

Combined ``git show`` output mixes the stat table, the numstat table,
the name-status table and the patch body without any section headers.
:func:`classify_line` therefore looks at one line at a time and tries a
fixed, ordered list of matchers. The first match wins, so the rename
matcher runs before the generic name-status matcher (both start with a
status letter).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional


class LineKind(str, Enum):
    SUMMARY = "summary"
    STAT_ROW = "stat_row"
    NUMSTAT_ROW = "numstat_row"
    RENAME_ROW = "rename_row"
    NAME_STATUS_ROW = "name_status_row"
    DIFF_BODY_ROW = "diff_body_row"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ClassifiedLine:
    """Result of classifying one line.

    Only the attributes relevant to ``kind`` are populated:

    * ``SUMMARY``: ``files_changed``, ``insertions``, ``deletions``
      (the latter two are ``None`` when absent from the line)
    * ``STAT_ROW``: ``path``, ``count``
    * ``NUMSTAT_ROW``: ``path``, ``insertions``, ``deletions``, ``binary``
    * ``RENAME_ROW``: ``old_path``, ``path``
    * ``NAME_STATUS_ROW``: ``status`` (one of ``A``, ``M``, ``D``), ``path``
    """

    kind: LineKind
    line: str
    path: Optional[str] = None
    old_path: Optional[str] = None
    status: Optional[str] = None
    count: Optional[int] = None
    files_changed: Optional[int] = None
    insertions: Optional[int] = None
    deletions: Optional[int] = None
    binary: bool = False


# git indents the stat table by exactly one space. Commit message lines
# (four spaces) and patch context lines inside a file block must not match.
SUMMARY_RE = re.compile(
    r"^ (?P<files>\d+) files? changed"
    r"(?:, (?P<insertions>\d+) insertions?\(\+\))?"
    r"(?:, (?P<deletions>\d+) deletions?\(-\))?\s*$"
)
STAT_ROW_RE = re.compile(r"^ (?P<path>\S.*?) +\| +(?P<count>\d+|Bin)\b")
NUMSTAT_RE = re.compile(r"^(?P<insertions>\d+|-)\t(?P<deletions>\d+|-)\t(?P<path>.+)$")
RENAME_RE = re.compile(r"^R\d*\t(?P<old>[^\t]+)\t(?P<new>[^\t]+)$")
NAME_STATUS_RE = re.compile(r"^(?P<letter>[AMDC])\d*\t(?P<path>[^\t]+)(?:\t(?P<dest>[^\t]+))?$")
BRACE_RENAME_RE = re.compile(r"\{([^{}]*) => ([^{}]*)\}")

DIFF_MARKERS = (
    "diff --git ",
    "index ",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "similarity index",
    "rename from",
    "rename to",
    "Binary files",
    "@@",
    "+",
    "-",
)


def normalize_numstat_path(path: str) -> str:
    """Return the destination path of a numstat entry.

    Without ``-z`` git renders renames inline, either as
    ``old.txt => new.txt`` or as ``src/{old => new}/file.py``.
    """
    p = path.strip()
    if " => " not in p:
        return p
    if "{" in p:
        p = BRACE_RENAME_RE.sub(lambda m: m.group(2), p)
        p = re.sub(r"/{2,}", "/", p).lstrip("/")
        return p
    return p.split(" => ")[-1].strip()


def _count(value: Optional[str]) -> Optional[int]:
    return int(value) if value is not None else None


def classify_line(line: str) -> ClassifiedLine:
    """Classify a single line of ``git show`` output."""
    line = line.rstrip("\r\n")

    m = SUMMARY_RE.match(line)
    if m:
        return ClassifiedLine(
            LineKind.SUMMARY,
            line,
            files_changed=int(m.group("files")),
            insertions=_count(m.group("insertions")),
            deletions=_count(m.group("deletions")),
        )

    m = STAT_ROW_RE.match(line)
    if m:
        raw_count = m.group("count")
        count = 0 if raw_count == "Bin" else int(raw_count)
        return ClassifiedLine(LineKind.STAT_ROW, line, path=m.group("path"), count=count)

    m = NUMSTAT_RE.match(line)
    if m:
        ins, dels = m.group("insertions"), m.group("deletions")
        return ClassifiedLine(
            LineKind.NUMSTAT_ROW,
            line,
            path=normalize_numstat_path(m.group("path")),
            insertions=0 if ins == "-" else int(ins),
            deletions=0 if dels == "-" else int(dels),
            binary=ins == "-" or dels == "-",
        )

    m = RENAME_RE.match(line)
    if m:
        return ClassifiedLine(LineKind.RENAME_ROW, line, old_path=m.group("old"), path=m.group("new"))

    m = NAME_STATUS_RE.match(line)
    if m:
        letter = m.group("letter")
        if letter == "C":
            # Copies count as additions of the copy target.
            return ClassifiedLine(
                LineKind.NAME_STATUS_ROW, line, status="A", path=m.group("dest") or m.group("path")
            )
        return ClassifiedLine(LineKind.NAME_STATUS_ROW, line, status=letter, path=m.group("path"))

    if line.startswith(DIFF_MARKERS):
        return ClassifiedLine(LineKind.DIFF_BODY_ROW, line)

    return ClassifiedLine(LineKind.UNRECOGNIZED, line)


def classify_lines(lines: Iterable[str]) -> Iterator[ClassifiedLine]:
    """Classify a sequence of lines, tracking whether a patch is open.

    From a ``diff --git`` header up to the next empty line the text is
    patch content, so a context line that happens to look like a stat
    row or summary line is reported as ``UNRECOGNIZED``. git never emits
    an empty line inside a patch (blank context lines carry a leading
    space), so an empty line ends the patch and the next section is
    classified normally again.
    """
    in_patch = False
    for line in lines:
        item = classify_line(line)
        if item.line.startswith("diff --git "):
            in_patch = True
        elif not item.line:
            in_patch = False
        elif in_patch and item.kind in (LineKind.SUMMARY, LineKind.STAT_ROW):
            item = ClassifiedLine(LineKind.UNRECOGNIZED, item.line)
        yield item
