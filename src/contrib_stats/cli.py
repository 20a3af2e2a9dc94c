"""
Command line interface for the contrib_stats tool.

This module defines the ``main`` command group used as the entry point
of the ``contribstats`` command. Each subcommand loads the
configuration, opens the repository session and prints its result as
JSON on stdout. Progress and status messages go to stderr so that the
output can be piped. Exit codes are listed below.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import click

from contrib_stats import __version__
from contrib_stats.config.loader import ConfigError, load_config
from contrib_stats.stats.aggregator import aggregate_contributors
from contrib_stats.stats.collector import collect_contributor_diffs, summarize_history
from contrib_stats.stats.models import CommitDiff
from contrib_stats.stats.summary_parser import summarize_commit
from contrib_stats.vcs.git_client import GitError
from contrib_stats.vcs.session import NoRepositoryError, RepositorySession

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Prints a start line and an elapsed-time line around a block."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"→ {self.message}...", err=True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.time() - self.start_time
        if exc_type is None:
            click.echo(f"  ✓ Done ({elapsed:.1f}s)", err=True)
        return False


def print_info(message: str) -> None:
    click.echo(f"ℹ {message}", err=True)


def print_success(message: str) -> None:
    click.echo(f"✓ {message}", err=True)


def print_error(message: str) -> None:
    click.echo(f"✗ {message}", err=True)


def emit_json(data: Any) -> None:
    """Write ``data`` to stdout as indented JSON."""
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _session(ctx: click.Context) -> RepositorySession:
    return ctx.obj["session"]


def _config(ctx: click.Context) -> dict:
    return ctx.obj["config"]


def _fail(message: str, code: int) -> None:
    print_error(message)
    raise click.exceptions.Exit(code)


def _client_or_exit(ctx: click.Context):
    try:
        return _session(ctx).client()
    except NoRepositoryError as exc:
        _fail(str(exc), EXIT_NO_REPO)


def _history_or_exit(client):
    try:
        return client.list_history()
    except GitError as exc:
        _fail(f"Failed to read history: {exc}", EXIT_VCS_FAILURE)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to a JSON configuration file.",
)
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="contribstats")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """Per-contributor statistics and diffs for a cloned Git repository."""
    # force=True so that repeated invocations (tests) reconfigure handlers.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        _fail(f"Configuration error: {exc}", EXIT_CONFIG_ERROR)

    repo_dir = Path(config["repo_dir"]).expanduser()
    ctx.obj = {
        "config": config,
        "session": RepositorySession(repo_dir, command_timeout=float(config["command_timeout"])),
    }
    logger.debug("Using working copy directory %s", repo_dir)


@main.command()
@click.argument("url")
@click.pass_context
def clone(ctx: click.Context, url: str) -> None:
    """Clone URL, replacing any previously cloned repository."""
    session = _session(ctx)
    try:
        with ProgressIndicator(f"Cloning {url}"):
            session.clone(url)
    except GitError as exc:
        _fail(f"Failed to clone repository: {exc}", EXIT_VCS_FAILURE)
    print_success("Repository fetched successfully")
    emit_json({"message": "Repository fetched successfully", "path": str(session.repo_dir)})


@main.command()
@click.pass_context
def contributors(ctx: click.Context) -> None:
    """List contributors with commit, addition and deletion counts."""
    client = _client_or_exit(ctx)
    history = _history_or_exit(client)
    stat_timeout = float(_config(ctx)["stat_timeout"])

    with ProgressIndicator(f"Collecting stats for {len(history)} commits"):
        result = aggregate_contributors(
            history, lambda commit: client.show_stat(commit, timeout=stat_timeout)
        )
    print_info(f"Found {len(result)} contributors")
    emit_json([stats.to_dict() for stats in result])


@main.command()
@click.argument("username")
@click.pass_context
def diffs(ctx: click.Context, username: str) -> None:
    """Show the code changes committed by USERNAME."""
    client = _client_or_exit(ctx)
    history = _history_or_exit(client)
    config = _config(ctx)
    diff_timeout = float(config["diff_timeout"])

    with ProgressIndicator(f"Fetching diffs for {username}"):
        result = collect_contributor_diffs(
            history,
            username,
            lambda commit: client.show_diff(commit, timeout=diff_timeout),
            excluded_segment=config["excluded_segment"],
            max_lines=config["max_body_lines"],
            max_workers=config["max_workers"],
        )

    if not result:
        result = [
            CommitDiff(
                commit="N/A",
                message="No commits found for this user",
                date=datetime.now(timezone.utc).isoformat(),
                changes=["// No commits available"],
            )
        ]
    emit_json([entry.to_dict() for entry in result])


@main.command()
@click.option("--author", help="Only summarize commits by this author display name.")
@click.pass_context
def commits(ctx: click.Context, author: Optional[str]) -> None:
    """Summarize every commit of the history, newest first."""
    client = _client_or_exit(ctx)
    history = _history_or_exit(client)
    if author is not None:
        history = [record for record in history if record.author_name == author]
    config = _config(ctx)
    diff_timeout = float(config["diff_timeout"])

    with ProgressIndicator(f"Summarizing {len(history)} commits"):
        summaries = summarize_history(
            history,
            lambda commit: client.show_detail(commit, timeout=diff_timeout),
            max_body_lines=config["max_body_lines"],
            max_workers=config["max_workers"],
        )
    emit_json([summary.to_dict() for summary in summaries])


@main.command()
@click.argument("commit")
@click.pass_context
def show(ctx: click.Context, commit: str) -> None:
    """Summarize a single COMMIT."""
    client = _client_or_exit(ctx)
    config = _config(ctx)
    try:
        text = client.show_detail(commit, timeout=float(config["diff_timeout"]))
    except GitError as exc:
        _fail(f"Failed to read commit {commit}: {exc}", EXIT_VCS_FAILURE)
    emit_json(summarize_commit(text, max_body_lines=config["max_body_lines"]).to_dict())


@main.command()
@click.pass_context
def delete(ctx: click.Context) -> None:
    """Delete the cloned repository."""
    try:
        _session(ctx).delete()
    except NoRepositoryError as exc:
        _fail(str(exc), EXIT_NO_REPO)
    except OSError as exc:
        _fail(f"Failed to delete repository: {exc}", EXIT_GENERIC_ERROR)
    print_success("Repository deleted successfully")
    emit_json({"message": "Repository deleted successfully"})
