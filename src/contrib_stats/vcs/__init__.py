"""
Version control system (VCS) integration.

This package contains the Git client used to clone repositories and
read their history and commit details, and the repository session that
owns the checked-out working copy.
"""

from .git_client import GitClient, GitError, GitTimeoutError  # noqa: F401
from .session import NoRepositoryError, RepositorySession  # noqa: F401
