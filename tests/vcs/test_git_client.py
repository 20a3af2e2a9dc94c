import subprocess
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock, patch

from contrib_stats.stats.models import CommitRecord
from contrib_stats.vcs.git_client import FIELD_SEP, RECORD_SEP, GitClient, GitError, GitTimeoutError


class DummyProc(SimpleNamespace):
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


class TestGitClient(unittest.TestCase):
    def test_list_history_parses_records(self) -> None:
        output = (
            f"abc123{FIELD_SEP}Alice{FIELD_SEP}2025-01-02T10:00:00+01:00{FIELD_SEP}Fix parser{RECORD_SEP}\n"
            f"def456{FIELD_SEP}Bob Smith{FIELD_SEP}2025-01-01T09:00:00+01:00{FIELD_SEP}Initial | commit{RECORD_SEP}\n"
        )

        def fake_run(self, args, check=True, timeout=None):
            if args[0] == "log":
                return DummyProc(returncode=0, stdout=output, stderr="")
            raise AssertionError(f"Unexpected git command: {args}")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            records = GitClient(Path("/repo")).list_history()

        self.assertEqual(
            records,
            [
                CommitRecord("abc123", "Alice", "Fix parser", "2025-01-02T10:00:00+01:00"),
                CommitRecord("def456", "Bob Smith", "Initial | commit", "2025-01-01T09:00:00+01:00"),
            ],
        )

    def test_list_history_skips_malformed_entries(self) -> None:
        output = f"only{FIELD_SEP}two{RECORD_SEP}\n"
        with patch.object(GitClient, "_run", return_value=DummyProc(stdout=output)):
            self.assertEqual(GitClient(Path("/repo")).list_history(), [])

    def test_show_stat_passes_timeout(self) -> None:
        calls = []

        def fake_run(self, args, check=True, timeout=None):
            calls.append((args, timeout))
            return DummyProc(stdout=" 1 file changed\n")

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            text = GitClient(Path("/repo")).show_stat("abc123", timeout=5)

        self.assertEqual(text, " 1 file changed\n")
        self.assertEqual(calls, [(["show", "abc123", "--stat", "--format="], 5)])

    def test_show_detail_concatenates_sections(self) -> None:
        outputs = iter(["1\t0\ta.py\n", "A\ta.py\n", "diff --git a/a.py b/a.py\n"])
        calls = []

        def fake_run(self, args, check=True, timeout=None):
            calls.append(args)
            return DummyProc(stdout=next(outputs))

        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            mock_run.side_effect = fake_run
            text = GitClient(Path("/repo")).show_detail("abc123", timeout=10)

        self.assertEqual(len(calls), 3)
        self.assertIn("--name-status", calls[1])
        self.assertIn("1\t0\ta.py", text.splitlines())
        self.assertIn("A\ta.py", text.splitlines())
        self.assertIn("diff --git a/a.py b/a.py", text.splitlines())


class TestGitClientRun(unittest.TestCase):
    @patch("subprocess.run")
    def test_run_uses_default_timeout(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="ok", stderr="")
        GitClient(Path("/repo"), command_timeout=42).show_diff("abc")
        _, kwargs = mock_run.call_args
        self.assertEqual(kwargs["timeout"], 42)
        self.assertEqual(kwargs["cwd"], Path("/repo"))

    @patch("subprocess.run")
    def test_run_failure_raises_git_error(self, mock_run):
        mock_run.return_value = Mock(returncode=128, stdout="", stderr="fatal: bad object abc")
        with self.assertRaises(GitError) as ctx:
            GitClient(Path("/repo")).show_stat("abc")
        self.assertIn("bad object", str(ctx.exception))

    @patch("subprocess.run")
    def test_run_timeout_raises_timeout_error(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="git show", timeout=5)
        with self.assertRaises(GitTimeoutError):
            GitClient(Path("/repo")).show_stat("abc", timeout=5)

    @patch("subprocess.run")
    def test_missing_git_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("git")
        with self.assertRaises(GitError):
            GitClient(Path("/repo")).list_history()

    @patch("subprocess.run")
    def test_clone_runs_in_parent_directory(self, mock_run):
        mock_run.return_value = Mock(returncode=0, stdout="", stderr="")
        with patch("pathlib.Path.mkdir"):
            GitClient.clone("https://example.com/r.git", Path("/work/cloned_repo"), timeout=60)
        args, kwargs = mock_run.call_args
        self.assertEqual(args[0], ["git", "clone", "https://example.com/r.git", "/work/cloned_repo"])
        self.assertEqual(kwargs["cwd"], Path("/work"))


if __name__ == "__main__":
    unittest.main()
