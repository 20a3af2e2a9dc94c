import json
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

import contrib_stats.cli as cli
from contrib_stats.config.loader import DEFAULTS, ConfigError
from contrib_stats.stats.models import CommitRecord
from contrib_stats.vcs.git_client import GitError, GitTimeoutError
from contrib_stats.vcs.session import NoRepositoryError


HISTORY = [
    CommitRecord("a" * 40, "alice", "Add parser", "2025-01-03T00:00:00Z"),
    CommitRecord("b" * 40, "bob", "Vendor deps", "2025-01-02T00:00:00Z"),
    CommitRecord("c" * 40, "alice", "Fix parser", "2025-01-01T00:00:00Z"),
]


class DummyGitClient:
    def __init__(self):
        self.stats = {}
        self.diffs = {}
        self.details = {}
        self.timeouts = []

    def list_history(self):
        return list(HISTORY)

    def _lookup(self, table, commit, timeout):
        self.timeouts.append(timeout)
        value = table.get(commit, "")
        if isinstance(value, Exception):
            raise value
        return value

    def show_stat(self, commit, timeout=None):
        return self._lookup(self.stats, commit, timeout)

    def show_diff(self, commit, timeout=None):
        return self._lookup(self.diffs, commit, timeout)

    def show_detail(self, commit, timeout=None):
        return self._lookup(self.details, commit, timeout)


class DummySession:
    def __init__(self, client=None):
        self._client = client
        self.repo_dir = Path("/tmp/cloned_repo")
        self.cloned = []
        self.deleted = False

    def client(self):
        if self._client is None:
            raise NoRepositoryError()
        return self._client

    def clone(self, url):
        self.cloned.append(url)
        self._client = DummyGitClient()
        return self._client

    def delete(self):
        if self._client is None:
            raise NoRepositoryError("No repository to delete")
        self._client = None
        self.deleted = True


class TestCLI(unittest.TestCase):
    def invoke(self, session, args):
        runner = CliRunner()
        with patch.object(cli, "load_config", return_value=dict(DEFAULTS)):
            with patch.object(cli, "RepositorySession", return_value=session):
                return runner.invoke(cli.main, args)

    def test_contributors(self) -> None:
        client = DummyGitClient()
        client.stats = {
            "a" * 40: " 1 file changed, 3 insertions(+), 1 deletion(-)\n",
            "b" * 40: GitTimeoutError("timed out"),
            "c" * 40: " 2 files changed, 4 insertions(+)\n",
        }
        result = self.invoke(DummySession(client), ["contributors"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        data = json.loads(result.stdout)
        self.assertEqual([(c["username"], c["commits"]) for c in data], [("alice", 2), ("bob", 1)])
        self.assertEqual(data[0]["additions"], 7)
        self.assertEqual(data[1]["additions"], 0)
        self.assertEqual(set(client.timeouts), {DEFAULTS["stat_timeout"]})

    def test_no_repository(self) -> None:
        result = self.invoke(DummySession(), ["contributors"])
        self.assertEqual(result.exit_code, cli.EXIT_NO_REPO)
        self.assertIn("No repository cloned yet", result.stderr)

    def test_history_failure(self) -> None:
        client = DummyGitClient()
        with patch.object(DummyGitClient, "list_history", side_effect=GitError("corrupt")):
            result = self.invoke(DummySession(client), ["contributors"])
        self.assertEqual(result.exit_code, cli.EXIT_VCS_FAILURE)

    def test_diffs_filters_noise(self) -> None:
        client = DummyGitClient()
        client.diffs = {
            "a" * 40: "diff --git a/src/p.py b/src/p.py\n+x\n",
            "c" * 40: "diff --git a/node_modules/m.js b/node_modules/m.js\n+y\n",
        }
        result = self.invoke(DummySession(client), ["diffs", "alice"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        data = json.loads(result.stdout)
        self.assertEqual([d["commit"] for d in data], ["aaaaaaa"])
        self.assertEqual(data[0]["changes"], ["diff --git a/src/p.py b/src/p.py", "+x"])

    def test_diffs_unknown_user_placeholder(self) -> None:
        result = self.invoke(DummySession(DummyGitClient()), ["diffs", "nobody"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
        data = json.loads(result.stdout)
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["commit"], "N/A")
        self.assertEqual(data[0]["changes"], ["// No commits available"])

    def test_commits_author_filter(self) -> None:
        client = DummyGitClient()
        client.details = {"a" * 40: " 1 file changed, 2 insertions(+)\n2\t0\tp.py\nM\tp.py\n+a\n+b\n"}
        result = self.invoke(DummySession(client), ["commits", "--author", "alice"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        data = json.loads(result.stdout)
        self.assertEqual([d["message"] for d in data], ["Add parser", "Fix parser"])
        self.assertEqual(data[0]["insertions"], 2)
        self.assertEqual(data[0]["byExtension"], {"py": {"files": 1, "insertions": 2, "deletions": 0}})

    def test_show_single_commit(self) -> None:
        client = DummyGitClient()
        client.details = {"abc": "R100\told.txt\tnew.txt\n"}
        result = self.invoke(DummySession(client), ["show", "abc"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        data = json.loads(result.stdout)
        self.assertEqual(data["fileChanges"][0]["status"], "Renamed")

    def test_show_git_failure(self) -> None:
        client = DummyGitClient()
        client.details = {"abc": GitError("bad object")}
        result = self.invoke(DummySession(client), ["show", "abc"])
        self.assertEqual(result.exit_code, cli.EXIT_VCS_FAILURE)

    def test_clone_and_delete(self) -> None:
        session = DummySession()
        result = self.invoke(session, ["clone", "https://example.com/r.git"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS, result.output)
        self.assertEqual(session.cloned, ["https://example.com/r.git"])

        result = self.invoke(session, ["delete"])
        self.assertEqual(result.exit_code, cli.EXIT_SUCCESS)
        self.assertTrue(session.deleted)

        result = self.invoke(session, ["delete"])
        self.assertEqual(result.exit_code, cli.EXIT_NO_REPO)

    def test_clone_failure(self) -> None:
        session = DummySession()
        with patch.object(DummySession, "clone", side_effect=GitError("repository not found")):
            result = self.invoke(session, ["clone", "https://example.com/missing.git"])
        self.assertEqual(result.exit_code, cli.EXIT_VCS_FAILURE)

    def test_config_error(self) -> None:
        runner = CliRunner()
        with patch.object(cli, "load_config", side_effect=ConfigError("bad")):
            result = runner.invoke(cli.main, ["contributors"])
        self.assertEqual(result.exit_code, cli.EXIT_CONFIG_ERROR)


if __name__ == "__main__":
    unittest.main()
