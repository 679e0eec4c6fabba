"""Tests for issue commands: create, show, list, update, close."""

from pathlib import Path

import orjson
from cli_test_helpers import create_issue, invoke, invoke_json, runner

from seeds.cli import app
from seeds.storage import SeedsStorage


class TestCLICreate:
    """Test create command."""

    def test_create_issue(self, seeds_dir: Path) -> None:
        """Creating prints the new ID and title."""
        result = invoke(seeds_dir, "create", "Test issue")
        assert result.exit_code == 0, result.output
        assert "✓ Created test-" in result.stdout
        assert "Test issue" in result.stdout

    def test_create_with_options(self, seeds_dir: Path) -> None:
        """All fields can be set on creation; P-style priorities are accepted."""
        payload = invoke_json(
            seeds_dir,
            "create",
            "--title",
            "Add export",
            "-t",
            "feature",
            "-p",
            "P1",
            "-a",
            "ana",
            "-d",
            "CSV first",
        )
        issue = payload["issue"]
        assert payload["command"] == "create"
        assert payload["id"] == issue["id"]
        assert issue["type"] == "feature"
        assert issue["priority"] == 1
        assert issue["assignee"] == "ana"
        assert issue["description"] == "CSV first"

    def test_create_requires_title(self, seeds_dir: Path) -> None:
        """A missing title is an error."""
        result = invoke(seeds_dir, "create")
        assert result.exit_code == 1
        assert "title is required" in result.output

    def test_create_invalid_type(self, seeds_dir: Path) -> None:
        """An unknown type is reported as a JSON error in JSON mode."""
        result = invoke(seeds_dir, "create", "x", "-t", "chore", "--json")
        assert result.exit_code == 1
        payload = orjson.loads(result.stdout)
        assert payload["success"] is False
        assert payload["command"] == "create"
        assert "type must be one of" in payload["error"]

    def test_create_invalid_priority(self, seeds_dir: Path) -> None:
        """An out-of-range priority is a usage error."""
        result = invoke(seeds_dir, "create", "x", "-p", "7")
        assert result.exit_code == 2

    def test_not_initialized(self, tmp_path: Path) -> None:
        """Commands fail cleanly outside a seeds project."""
        result = invoke(tmp_path / ".seeds", "create", "x")
        assert result.exit_code == 1
        assert "sd init" in result.output

    def test_quiet_suppresses_output(self, seeds_dir: Path) -> None:
        """The global --quiet flag hides human output."""
        result = runner.invoke(app, ["-q", "create", "x", "--seeds-dir", str(seeds_dir)])
        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert len(SeedsStorage(seeds_dir).issues.read_all()) == 1


class TestCLIShowList:
    """Test show and list commands."""

    def test_show(self, seeds_dir: Path) -> None:
        """Show prints the fields of one issue."""
        issue_id = create_issue(seeds_dir, "Visible", "-d", "Long text")
        result = invoke(seeds_dir, "show", issue_id)
        assert result.exit_code == 0, result.output
        assert f"ID: {issue_id}" in result.stdout
        assert "P2 (Medium)" in result.stdout
        assert "Long text" in result.stdout

    def test_show_missing(self, seeds_dir: Path) -> None:
        """Unknown IDs exit 1."""
        result = invoke(seeds_dir, "show", "test-ffff")
        assert result.exit_code == 1
        assert "Issue not found: test-ffff" in result.output

    def test_list_filters(self, seeds_dir: Path) -> None:
        """List filters by type and assignee."""
        create_issue(seeds_dir, "Bug one", "-t", "bug", "-a", "ana")
        create_issue(seeds_dir, "Task one")
        payload = invoke_json(seeds_dir, "list", "-t", "bug")
        assert [i["title"] for i in payload["issues"]] == ["Bug one"]
        assert payload["count"] == 1
        assert invoke_json(seeds_dir, "list", "-a", "nobody")["count"] == 0

    def test_list_limit(self, seeds_dir: Path) -> None:
        """--limit caps the number of results."""
        for n in range(3):
            create_issue(seeds_dir, f"Issue {n}")
        assert invoke_json(seeds_dir, "list", "-n", "2")["count"] == 2

    def test_list_invalid_status(self, seeds_dir: Path) -> None:
        """Unknown status filters are rejected."""
        result = invoke(seeds_dir, "list", "-s", "done")
        assert result.exit_code == 1
        assert "status must be one of" in result.output

    def test_list_empty(self, seeds_dir: Path) -> None:
        """An empty project says so."""
        result = invoke(seeds_dir, "list")
        assert result.exit_code == 0
        assert "No issues found." in result.stdout

    def test_global_json_flag(self, seeds_dir: Path) -> None:
        """--json before the command works for every command."""
        create_issue(seeds_dir, "Global")
        result = runner.invoke(app, ["--json", "list", "--seeds-dir", str(seeds_dir)])
        assert result.exit_code == 0, result.output
        assert orjson.loads(result.stdout)["count"] == 1


class TestCLIUpdateClose:
    """Test update and close commands."""

    def test_update(self, seeds_dir: Path) -> None:
        """Update changes the given fields."""
        issue_id = create_issue(seeds_dir, "Before")
        payload = invoke_json(
            seeds_dir,
            "update",
            issue_id,
            "--title",
            "After",
            "-s",
            "in_progress",
            "-p",
            "0",
        )
        assert payload["issue"]["title"] == "After"
        assert payload["issue"]["status"] == "in_progress"
        assert payload["issue"]["priority"] == 0

    def test_update_clear_assignee(self, seeds_dir: Path) -> None:
        """An empty assignee clears the field."""
        issue_id = create_issue(seeds_dir, "Owned", "-a", "ana")
        payload = invoke_json(seeds_dir, "update", issue_id, "-a", "")
        assert "assignee" not in payload["issue"]

    def test_update_missing(self, seeds_dir: Path) -> None:
        """Updating an unknown issue fails."""
        result = invoke(seeds_dir, "update", "test-ffff", "--title", "x")
        assert result.exit_code == 1

    def test_close_many(self, seeds_dir: Path) -> None:
        """Several issues close at once with a shared reason."""
        first = create_issue(seeds_dir, "One")
        second = create_issue(seeds_dir, "Two")
        result = invoke(seeds_dir, "close", first, second, "-r", "duplicate")
        assert result.exit_code == 0, result.output
        assert f"✓ Closed {first}: duplicate" in result.stdout

        issue = invoke_json(seeds_dir, "show", second)["issue"]
        assert issue["status"] == "closed"
        assert issue["closeReason"] == "duplicate"
        assert "closedAt" in issue

    def test_close_unknown_closes_nothing(self, seeds_dir: Path) -> None:
        """One unknown ID aborts the whole close."""
        issue_id = create_issue(seeds_dir, "One")
        result = invoke(seeds_dir, "close", issue_id, "test-ffff")
        assert result.exit_code == 1
        assert invoke_json(seeds_dir, "show", issue_id)["issue"]["status"] == "open"
