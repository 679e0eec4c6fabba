"""Tests for template and convoy commands."""

from pathlib import Path

import pytest
from cli_test_helpers import invoke, invoke_json

from seeds.storage import JSONLStore


def _make_template(seeds_dir: Path) -> str:
    template_id = invoke_json(seeds_dir, "tpl", "create", "--name", "Feature")["id"]
    for title in ("Design {prefix}", "Build {prefix}", "Ship {prefix}"):
        invoke_json(seeds_dir, "tpl", "step", "add", template_id, "--title", title)
    return template_id


class TestCLITemplates:
    """Test tpl subcommands."""

    def test_create_and_show(self, seeds_dir: Path) -> None:
        """Steps are listed in order."""
        template_id = _make_template(seeds_dir)
        payload = invoke_json(seeds_dir, "tpl", "show", template_id)
        assert [s["title"] for s in payload["template"]["steps"]] == [
            "Design {prefix}",
            "Build {prefix}",
            "Ship {prefix}",
        ]

        result = invoke(seeds_dir, "tpl", "show", template_id)
        assert result.exit_code == 0, result.output
        assert "1. Design {prefix}" in result.stdout

    def test_step_add_reports_count(self, seeds_dir: Path) -> None:
        """Each added step reports the new step count."""
        template_id = invoke_json(seeds_dir, "tpl", "create", "--name", "T")["id"]
        payload = invoke_json(
            seeds_dir,
            "tpl",
            "step",
            "add",
            template_id,
            "--title",
            "Only",
            "-t",
            "bug",
            "-p",
            "1",
        )
        assert payload["stepCount"] == 1

    def test_step_add_unknown_template(self, seeds_dir: Path) -> None:
        """Steps cannot be added to a missing template."""
        result = invoke(seeds_dir, "tpl", "step", "add", "tpl-ffff", "--title", "x")
        assert result.exit_code == 1
        assert "Template not found" in result.output

    def test_list(self, seeds_dir: Path) -> None:
        """All templates are listed."""
        assert "No templates." in invoke(seeds_dir, "tpl", "list").stdout
        _make_template(seeds_dir)
        payload = invoke_json(seeds_dir, "tpl", "list")
        assert payload["count"] == 1
        assert payload["templates"][0]["name"] == "Feature"
        assert "Feature" in invoke(seeds_dir, "tpl", "list").stdout


class TestCLIPour:
    """Test pour and convoy status."""

    def test_pour_and_status(self, seeds_dir: Path) -> None:
        """Pouring creates a chain; status tracks its progress."""
        template_id = _make_template(seeds_dir)
        ids = invoke_json(seeds_dir, "tpl", "pour", template_id, "--prefix", "auth")["ids"]
        assert len(ids) == 3

        titles = [invoke_json(seeds_dir, "show", i)["issue"]["title"] for i in ids]
        assert titles == ["Design auth", "Build auth", "Ship auth"]
        assert [i["id"] for i in invoke_json(seeds_dir, "ready")["issues"]] == [ids[0]]

        status = invoke_json(seeds_dir, "tpl", "status", template_id)["status"]
        assert status["total"] == 3
        assert status["blocked"] == 2

        invoke(seeds_dir, "close", ids[0])
        status = invoke_json(seeds_dir, "tpl", "status", template_id)["status"]
        assert status["completed"] == 1
        assert status["blocked"] == 1

        result = invoke(seeds_dir, "tpl", "status", template_id)
        assert result.exit_code == 0, result.output
        assert f"Convoy: {template_id}" in result.stdout

    def test_pour_empty_template(self, seeds_dir: Path) -> None:
        """Empty templates cannot be poured."""
        template_id = invoke_json(seeds_dir, "tpl", "create", "--name", "Empty")["id"]
        result = invoke(seeds_dir, "tpl", "pour", template_id, "--prefix", "x")
        assert result.exit_code == 1
        assert "has no steps" in result.output

    def test_status_without_issues(self, seeds_dir: Path) -> None:
        """A template that was never poured has an empty convoy."""
        template_id = _make_template(seeds_dir)
        result = invoke(seeds_dir, "tpl", "status", template_id)
        assert result.exit_code == 0
        assert "No issues found for convoy" in result.stdout

    def test_status_reads_issues_once(
        self,
        seeds_dir: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Counts and the issue listing come from a single read of the log."""
        template_id = _make_template(seeds_dir)
        invoke_json(seeds_dir, "tpl", "pour", template_id, "--prefix", "auth")

        reads: list[str] = []
        original = JSONLStore.read_all

        def counting_read_all(self: JSONLStore, *args: object) -> list:
            reads.append(self.path.name)
            return original(self, *args)

        monkeypatch.setattr(JSONLStore, "read_all", counting_read_all)
        result = invoke(seeds_dir, "tpl", "status", template_id)
        assert result.exit_code == 0, result.output
        assert reads.count("issues.jsonl") == 1
