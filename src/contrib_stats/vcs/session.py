"""
Repository session.

A :class:`RepositorySession` owns the single working copy the tool
operates on. It replaces a process-wide "current repository" global:
callers create a session for a directory and pass it (or the
:class:`~contrib_stats.vcs.git_client.GitClient` it hands out) to the
extractor functions.

Only one checkout per session directory is supported; cloning again
replaces the previous working copy wholesale.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from .git_client import DEFAULT_COMMAND_TIMEOUT, GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class NoRepositoryError(Exception):
    """Raised when an operation needs a working copy and none is checked out."""

    def __init__(self, message: str = "No repository cloned yet") -> None:
        super().__init__(message)


class RepositorySession:
    """Working copy location plus the client for it."""

    def __init__(self, repo_dir: Path, command_timeout: float = DEFAULT_COMMAND_TIMEOUT) -> None:
        self.repo_dir = Path(repo_dir)
        self.command_timeout = command_timeout
        self._client: Optional[GitClient] = None

    def is_checked_out(self) -> bool:
        return self.repo_dir.exists() and GitClient.is_repo(self.repo_dir)

    def client(self) -> GitClient:
        """Return the client for the current working copy.

        Raises
        ------
        NoRepositoryError
            If nothing is checked out.
        """
        if not self.is_checked_out():
            self._client = None
            raise NoRepositoryError()
        if self._client is None:
            self._client = GitClient(self.repo_dir, command_timeout=self.command_timeout)
        return self._client

    def clone(self, url: str) -> GitClient:
        """Replace the working copy with a fresh clone of ``url``.

        Any existing working copy is removed completely before the new
        one is fetched.

        Raises
        ------
        GitError
            If the clone fails. The session is left without a checkout.
        """
        if self.repo_dir.exists():
            logger.info("Removing existing working copy at %s", self.repo_dir)
            shutil.rmtree(self.repo_dir)
        self._client = None

        logger.info("Cloning %s into %s", url, self.repo_dir)
        GitClient.clone(url, self.repo_dir, timeout=self.command_timeout)
        logger.info("Repository cloned successfully")
        return self.client()

    def delete(self) -> None:
        """Remove the working copy.

        Raises
        ------
        NoRepositoryError
            If there is nothing to delete.
        """
        self._client = None
        if not self.repo_dir.exists():
            raise NoRepositoryError("No repository to delete")
        shutil.rmtree(self.repo_dir)
        logger.info("Repository deleted: %s", self.repo_dir)
