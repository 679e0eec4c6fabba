"""Tests for doctor, sync and migrate-from-beads commands."""

from pathlib import Path

import orjson
import pytest
from cli_test_helpers import create_issue, invoke, invoke_json, runner
from conftest import GitRepo

from seeds.cli import app
from seeds.cli._cmd_sync import sync_message
from seeds.doctor import ensure_gitattributes


class TestCLIDoctor:
    """Test doctor command."""

    def test_healthy(self, seeds_dir: Path) -> None:
        """A clean project passes every check."""
        ensure_gitattributes(seeds_dir)
        result = invoke(seeds_dir, "doctor")
        assert result.exit_code == 0, result.output
        assert "All checks passed" in result.stdout

    def test_verbose_lists_passing_checks(self, seeds_dir: Path) -> None:
        """--verbose shows passing checks too."""
        ensure_gitattributes(seeds_dir)
        result = invoke(seeds_dir, "doctor", "--verbose")
        assert "✓ Config is valid" in result.stdout

    def test_failure_exits_1(self, seeds_dir: Path) -> None:
        """A malformed line fails the run and suggests --fix."""
        create_issue(seeds_dir, "Good")
        with (seeds_dir / "issues.jsonl").open("a") as f:
            f.write("{broken\n")
        result = invoke(seeds_dir, "doctor")
        assert result.exit_code == 1
        assert "✗ 1 malformed line(s) in JSONL files" in result.stdout
        assert "sd doctor --fix" in result.stdout

    def test_fix_repairs(self, seeds_dir: Path) -> None:
        """--fix repairs and re-checks."""
        create_issue(seeds_dir, "Good")
        with (seeds_dir / "issues.jsonl").open("a") as f:
            f.write("{broken\n")
        result = invoke(seeds_dir, "doctor", "--fix", "--json")
        assert result.exit_code == 0, result.output
        payload = orjson.loads(result.stdout)
        assert "Removed 1 malformed line(s) from issues.jsonl" in payload["fixed"]
        assert all(check["status"] == "pass" for check in payload["checks"])

    def test_not_initialized(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Outside a project the config check fails."""
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["doctor", "--json"])
        assert result.exit_code == 1
        checks = orjson.loads(result.stdout)["checks"]
        assert [(c["name"], c["status"]) for c in checks] == [("config", "fail")]


class TestCLISync:
    """Test sync command."""

    def test_commits_changes(self, git_repo: GitRepo) -> None:
        """Changes under .seeds/ are committed with a dated message."""
        create_issue(git_repo.seeds_dir, "Tracked")
        payload = invoke_json(git_repo.seeds_dir, "sync")
        assert payload["committed"] is True
        assert git_repo.log_subjects()[0] == sync_message()
        assert git_repo.git("status", "--porcelain").stdout.strip() == ""

    def test_nothing_to_commit(self, git_repo: GitRepo) -> None:
        """A clean .seeds/ commits nothing."""
        result = invoke(git_repo.seeds_dir, "sync")
        assert result.exit_code == 0, result.output
        assert "No changes to commit." in result.stdout
        assert len(git_repo.log_subjects()) == 1

    def test_status_and_dry_run(self, git_repo: GitRepo) -> None:
        """--status and --dry-run report without committing."""
        create_issue(git_repo.seeds_dir, "Pending")
        status = invoke_json(git_repo.seeds_dir, "sync", "--status")
        assert status["hasChanges"] is True
        assert "issues.jsonl" in status["changes"]

        dry = invoke_json(git_repo.seeds_dir, "sync", "--dry-run")
        assert dry["wouldCommit"] is True
        assert dry["message"] == sync_message()
        assert len(git_repo.log_subjects()) == 1

    def test_only_seeds_dir_committed(self, git_repo: GitRepo) -> None:
        """Other staged files stay out of the sync commit."""
        (git_repo.path / "notes.txt").write_text("scratch\n")
        git_repo.git("add", "notes.txt")
        create_issue(git_repo.seeds_dir, "Tracked")
        invoke_json(git_repo.seeds_dir, "sync")
        files = git_repo.git("show", "--name-only", "--format=", "HEAD").stdout.split()
        assert files == [".seeds/issues.jsonl"]

    def test_skipped_in_worktree(
        self,
        git_repo: GitRepo,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Inside a secondary worktree, sync does not commit."""
        worktree = git_repo.path.parent / "wt"
        git_repo.git("worktree", "add", str(worktree), "-b", "feature")
        create_issue(git_repo.seeds_dir, "Tracked")
        monkeypatch.chdir(worktree)

        result = runner.invoke(app, ["sync", "--json"])
        assert result.exit_code == 0, result.output
        payload = orjson.loads(result.stdout)
        assert payload["worktree"] is True
        assert payload["committed"] is False
        assert len(git_repo.log_subjects()) == 1


class TestCLIMigrate:
    """Test migrate-from-beads command."""

    def test_import_default_location(self, seeds_dir: Path) -> None:
        """Beads issues are read from .beads/issues.jsonl next to .seeds."""
        beads = seeds_dir.parent / ".beads" / "issues.jsonl"
        beads.parent.mkdir()
        beads.write_text(
            orjson.dumps({"id": "bd-1", "title": "From beads", "issue_type": "bug"}).decode()
            + "\n{broken\n",
        )
        payload = invoke_json(seeds_dir, "migrate-from-beads")
        assert payload["written"] == 1
        assert payload["skipped"] == 1
        assert invoke_json(seeds_dir, "show", "bd-1")["issue"]["type"] == "bug"

    def test_missing_beads_file(self, seeds_dir: Path) -> None:
        """A missing beads file is an error."""
        result = invoke(seeds_dir, "migrate-from-beads")
        assert result.exit_code == 1
        assert "Beads issues not found" in result.output
