"""
Exclusion of dependency-directory noise from commit diffs.

Vendored dependency trees (``node_modules`` by default) can dwarf the
real changes of a commit. The helpers here split ``git show`` output
into per-file blocks and drop the blocks touching such a directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List


DEFAULT_EXCLUDED_SEGMENT = "node_modules"

# Either side may be C-quoted by git (non-ASCII or special characters).
QUOTED_PATH = r'"(?:[^"\\]|\\.)*"'
DIFF_HEADER_RE = re.compile(
    rf"^diff --git (?P<old>{QUOTED_PATH}|a/.+?) (?P<new>{QUOTED_PATH}|b/.+)$"
)


def _unquote_path(path: str, prefix: str) -> str:
    """Undo git's C-style quoting and strip the ``a/`` or ``b/`` prefix."""
    if path.startswith('"') and path.endswith('"'):
        # Octal escapes encode UTF-8 bytes, e.g. caf\303\251 for café.
        raw = path[1:-1].encode("utf-8").decode("unicode_escape")
        path = raw.encode("latin-1").decode("utf-8", errors="replace")
    if path.startswith(prefix):
        path = path[len(prefix):]
    return path


@dataclass
class FileBlock:
    """All patch lines belonging to one file, header line included."""

    old_path: str
    new_path: str
    lines: List[str] = field(default_factory=list)


def parse_file_blocks(raw_text: str) -> List[FileBlock]:
    """Split patch output at ``diff --git`` headers.

    Anything before the first header (commit header, stat table) is
    not part of any block and is dropped.
    """
    blocks: List[FileBlock] = []
    current = None
    for line in raw_text.splitlines():
        if line.startswith("diff --git "):
            m = DIFF_HEADER_RE.match(line)
            if m:
                old_path = _unquote_path(m.group("old"), "a/")
                new_path = _unquote_path(m.group("new"), "b/")
            else:
                old_path = new_path = ""
            current = FileBlock(old_path, new_path, [line])
            blocks.append(current)
        elif current is not None:
            current.lines.append(line)
    return blocks


def is_excluded_path(path: str, segment: str = DEFAULT_EXCLUDED_SEGMENT) -> bool:
    """Return True if one of the components of ``path`` equals ``segment``."""
    return segment in path.split("/")


def filter_noise(
    file_blocks: Iterable[FileBlock],
    excluded_segment: str = DEFAULT_EXCLUDED_SEGMENT,
) -> List[FileBlock]:
    """Drop blocks whose old or new path lies under ``excluded_segment``."""
    return [
        block
        for block in file_blocks
        if not (
            is_excluded_path(block.old_path, excluded_segment)
            or is_excluded_path(block.new_path, excluded_segment)
        )
    ]
