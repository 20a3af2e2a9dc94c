"""
Git client implementation for contrib_stats.

This module wraps the handful of Git commands the statistics extractor
needs: cloning, listing history and ``git show`` in its various output
formats. The parsing of that output lives in :mod:`contrib_stats.stats`;
this client only returns raw text. All subprocess calls go through
:meth:`GitClient._run` so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from contrib_stats.stats.models import CommitRecord


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings when the root
# logger is not configured. The CLI configures the root logger.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# Field and record separators for ``git log --format``. Neither can
# appear in author names or subjects.
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
LOG_FORMAT = f"%H{FIELD_SEP}%an{FIELD_SEP}%aI{FIELD_SEP}%s{RECORD_SEP}"

DEFAULT_COMMAND_TIMEOUT = 60.0


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class GitTimeoutError(GitError):
    """Raised when a Git command does not finish within its timeout."""

    pass


def _execute(
    args: List[str],
    cwd: Optional[Path],
    timeout: Optional[float],
    check: bool = True,
) -> subprocess.CompletedProcess:
    full_cmd = ["git"] + args
    logger.debug("Executing Git command: %s", " ".join(full_cmd))
    try:
        result = subprocess.run(
            full_cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",  # Replace invalid characters instead of failing
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.error("Git command timed out after %ss: %s", timeout, " ".join(full_cmd))
        raise GitTimeoutError(f"git {args[0]} timed out after {timeout}s") from e
    except OSError as e:
        logger.error("Could not execute git: %s", e)
        raise GitError(f"Failed to execute git: {e}") from e

    if check and result.returncode != 0:
        logger.error(
            "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
            " ".join(full_cmd),
            result.stdout,
            result.stderr,
        )
        raise GitError(result.stderr.strip() or result.stdout.strip())
    return result


class GitClient:
    """Client for reading statistics out of a Git working copy."""

    def __init__(self, repo_root: Path, command_timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self.repo_root = repo_root
        self.command_timeout = command_timeout

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def is_repo(path: Path) -> bool:
        """Return True if the given path is the root of a Git working copy."""
        return (path / ".git").exists()

    @staticmethod
    def clone(url: str, dest: Path, timeout: Optional[float] = None) -> None:
        """Clone ``url`` into ``dest`` with full history.

        Raises
        ------
        GitError
            If the clone fails or times out.
        """
        dest.parent.mkdir(parents=True, exist_ok=True)
        _execute(["clone", url, str(dest)], cwd=dest.parent, timeout=timeout)

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(
        self,
        args: List[str],
        check: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        ``timeout`` defaults to the client's ``command_timeout``.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True.
        GitTimeoutError
            If the command does not finish in time.
        """
        return _execute(
            args,
            cwd=self.repo_root,
            timeout=self.command_timeout if timeout is None else timeout,
            check=check,
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def list_history(self) -> List[CommitRecord]:
        """Return the commits reachable from HEAD, newest first.

        Raises
        ------
        GitError
            If the git log command fails.
        """
        result = self._run(["log", f"--format={LOG_FORMAT}"])
        records = []
        for entry in result.stdout.split(RECORD_SEP):
            entry = entry.strip("\n")
            if not entry:
                continue
            parts = entry.split(FIELD_SEP)
            if len(parts) != 4:
                logger.debug("Skipping malformed log entry: %r", entry)
                continue
            commit_hash, author, timestamp, subject = parts
            records.append(
                CommitRecord(hash=commit_hash, author_name=author, message=subject, timestamp=timestamp)
            )
        return records

    # ------------------------------------------------------------------
    # Commit details
    # ------------------------------------------------------------------
    def show_stat(self, commit: str, timeout: Optional[float] = None) -> str:
        """Return the ``--stat`` table of a single commit."""
        return self._run(["show", commit, "--stat", "--format="], timeout=timeout).stdout

    def show_detail(self, commit: str, timeout: Optional[float] = None) -> str:
        """Return stat, numstat, name-status and patch output of a commit.

        ``--name-status`` cannot be combined with a patch in one call,
        so the sections are fetched separately and concatenated. Each
        call gets the full ``timeout``.
        """
        sections = [
            self._run(["show", commit, "--stat", "--numstat", "--format="], timeout=timeout).stdout,
            self._run(["show", commit, "--name-status", "-M", "--format="], timeout=timeout).stdout,
            self._run(["show", commit, "--format=medium", "--unified=3"], timeout=timeout).stdout,
        ]
        return "\n".join(sections)

    def show_diff(self, commit: str, timeout: Optional[float] = None) -> str:
        """Return the medium-format patch of a commit, stat table included."""
        return self._run(
            ["show", commit, "--format=medium", "--unified=3", "--stat", "--patch"],
            timeout=timeout,
        ).stdout
