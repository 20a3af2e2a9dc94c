"""
Data models for commit and contributor statistics.

All results produced by the :mod:`contrib_stats.stats` package are
plain dataclasses. Each one offers a ``to_dict`` method returning the
JSON shape consumed by the dashboard, which uses camelCase keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


NO_EXTENSION = "(none)"


@dataclass(frozen=True)
class CommitRecord:
    """A single entry of the repository history.

    Attributes
    ----------
    hash : str
        Full commit hash.
    author_name : str
        Author display name. Used as the contributor key.
    message : str
        First line of the commit message.
    timestamp : str
        Author date as reported by git (ISO 8601).
    """

    hash: str
    author_name: str
    message: str
    timestamp: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class FileStatus(str, Enum):
    """Change classification of a single file within a commit."""

    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"
    RENAMED = "Renamed"


@dataclass
class FileChange:
    """Per-file change counts for one commit.

    For renames ``path`` is the destination and ``renamed_from`` the
    source path.
    """

    path: str
    insertions: int = 0
    deletions: int = 0
    status: FileStatus = FileStatus.MODIFIED
    binary: bool = False
    renamed_from: Optional[str] = None

    @property
    def changes(self) -> int:
        return self.insertions + self.deletions

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "insertions": self.insertions,
            "deletions": self.deletions,
            "status": self.status.value,
            "binary": self.binary,
        }
        if self.status is FileStatus.RENAMED:
            data["from"] = self.renamed_from
            data["to"] = self.path
        return data


@dataclass
class ExtensionStats:
    files: int = 0
    insertions: int = 0
    deletions: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"files": self.files, "insertions": self.insertions, "deletions": self.deletions}


@dataclass
class TopFile:
    path: str
    changes: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "changes": self.changes}


@dataclass
class CommitSummary:
    """Structured summary of a single commit.

    ``files_changed`` comes from git's summary line while
    ``file_changes`` is built from the per-file tables, so the two are
    not guaranteed to agree.
    """

    commit: str = ""
    message: str = ""
    date: str = ""
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    top_files: List[TopFile] = field(default_factory=list)
    file_changes: List[FileChange] = field(default_factory=list)
    by_extension: Dict[str, ExtensionStats] = field(default_factory=dict)
    body_lines: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commit": self.commit,
            "message": self.message,
            "date": self.date,
            "filesChanged": self.files_changed,
            "insertions": self.insertions,
            "deletions": self.deletions,
            "topFiles": [top.to_dict() for top in self.top_files],
            "fileChanges": [change.to_dict() for change in self.file_changes],
            "byExtension": {ext: stats.to_dict() for ext, stats in self.by_extension.items()},
            "changes": list(self.body_lines),
        }


@dataclass
class ContributorStats:
    """Running totals for one author display name.

    Two different people sharing a display name end up in the same
    record.
    """

    username: str
    commit_count: int = 0
    total_insertions: int = 0
    total_deletions: int = 0
    commit_hashes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "commits": self.commit_count,
            "additions": self.total_insertions,
            "deletions": self.total_deletions,
            "commitHashes": list(self.commit_hashes),
        }


@dataclass
class CommitDiff:
    """One commit of a contributor's diff listing."""

    commit: str
    message: str
    date: str
    changes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commit": self.commit,
            "message": self.message,
            "date": self.date,
            "changes": list(self.changes),
        }
