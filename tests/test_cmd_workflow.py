"""Tests for dependency and workflow commands: dep, ready, blocked, stats."""

from pathlib import Path

from cli_test_helpers import create_issue, invoke, invoke_json


class TestCLIDep:
    """Test dep subcommands."""

    def test_add_and_list(self, seeds_dir: Path) -> None:
        """Both directions of an edge are listed."""
        a = create_issue(seeds_dir, "A")
        b = create_issue(seeds_dir, "B")
        result = invoke(seeds_dir, "dep", "add", b, a)
        assert result.exit_code == 0, result.output
        assert f"{b} → {a}" in result.stdout

        payload = invoke_json(seeds_dir, "dep", "list", b)
        assert payload["blockedBy"] == [a]
        assert payload["blocks"] == []
        assert invoke_json(seeds_dir, "dep", "list", a)["blocks"] == [b]

    def test_add_twice_is_idempotent(self, seeds_dir: Path) -> None:
        """Repeating an edge does not duplicate it."""
        a = create_issue(seeds_dir, "A")
        b = create_issue(seeds_dir, "B")
        invoke(seeds_dir, "dep", "add", b, a)
        invoke(seeds_dir, "dep", "add", b, a)
        assert invoke_json(seeds_dir, "dep", "list", b)["blockedBy"] == [a]

    def test_cycle_warns_but_adds(self, seeds_dir: Path) -> None:
        """An edge closing a cycle is kept, with a warning."""
        a = create_issue(seeds_dir, "A")
        b = create_issue(seeds_dir, "B")
        invoke(seeds_dir, "dep", "add", b, a)
        result = invoke(seeds_dir, "dep", "add", a, b)
        assert result.exit_code == 0, result.output
        assert "circular dependency" in result.output
        assert invoke_json(seeds_dir, "dep", "list", a)["blockedBy"] == [b]

    def test_add_unknown(self, seeds_dir: Path) -> None:
        """Both issues must exist."""
        a = create_issue(seeds_dir, "A")
        result = invoke(seeds_dir, "dep", "add", a, "test-ffff")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_remove(self, seeds_dir: Path) -> None:
        """Removing an edge clears both sides."""
        a = create_issue(seeds_dir, "A")
        b = create_issue(seeds_dir, "B")
        invoke(seeds_dir, "dep", "add", b, a)
        result = invoke(seeds_dir, "dep", "remove", b, a)
        assert result.exit_code == 0, result.output
        assert invoke_json(seeds_dir, "dep", "list", a)["blocks"] == []


class TestCLIWorkflow:
    """Test ready, blocked and stats."""

    def test_ready_and_blocked(self, seeds_dir: Path) -> None:
        """A blocked issue moves to ready once its blocker closes."""
        a = create_issue(seeds_dir, "A")
        b = create_issue(seeds_dir, "B")
        invoke(seeds_dir, "dep", "add", b, a)

        ready = invoke_json(seeds_dir, "ready")
        assert [i["id"] for i in ready["issues"]] == [a]
        blocked = invoke_json(seeds_dir, "blocked")
        assert [i["id"] for i in blocked["issues"]] == [b]
        assert blocked["issues"][0]["openBlockers"] == [a]

        invoke(seeds_dir, "close", a)
        assert [i["id"] for i in invoke_json(seeds_dir, "ready")["issues"]] == [b]
        assert invoke_json(seeds_dir, "blocked")["count"] == 0

    def test_ready_sorted_by_priority(self, seeds_dir: Path) -> None:
        """Most urgent ready work comes first."""
        create_issue(seeds_dir, "Later", "-p", "3")
        urgent = create_issue(seeds_dir, "Now", "-p", "0")
        result = invoke(seeds_dir, "ready")
        assert result.exit_code == 0
        assert result.stdout.splitlines()[0].endswith("[task]")
        assert urgent in result.stdout.splitlines()[0]

    def test_blocked_text(self, seeds_dir: Path) -> None:
        """Blocked issues list what they are waiting on."""
        a = create_issue(seeds_dir, "A")
        b = create_issue(seeds_dir, "B")
        invoke(seeds_dir, "dep", "add", b, a)
        result = invoke(seeds_dir, "blocked")
        assert f"waiting on: {a}" in result.stdout

    def test_stats(self, seeds_dir: Path) -> None:
        """Stats counts by status and type."""
        a = create_issue(seeds_dir, "A", "-t", "bug")
        create_issue(seeds_dir, "B")
        invoke(seeds_dir, "close", a)
        stats = invoke_json(seeds_dir, "stats")["stats"]
        assert stats["total"] == 2
        assert stats["closed"] == 1
        assert stats["byType"] == {"bug": 1, "task": 1}

        result = invoke(seeds_dir, "stats")
        assert result.exit_code == 0, result.output
        assert "Project Statistics" in result.stdout
