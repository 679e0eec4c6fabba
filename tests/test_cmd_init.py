"""Tests for the init command."""

from pathlib import Path

import orjson
import pytest
from cli_test_helpers import runner

from seeds.cli import app
from seeds.config import load_config


class TestCLIInit:
    """Test init command."""

    def test_creates_layout(self, tmp_path: Path) -> None:
        """Init writes config, empty logs, .gitignore and .gitattributes."""
        seeds_dir = tmp_path / ".seeds"
        result = runner.invoke(
            app,
            ["init", "--project", "demo", "--seeds-dir", str(seeds_dir)],
        )
        assert result.exit_code == 0, result.output
        assert "Initialized" in result.stdout

        assert load_config(seeds_dir) == {"project": "demo", "version": "1"}
        assert (seeds_dir / "issues.jsonl").read_text() == ""
        assert (seeds_dir / "templates.jsonl").read_text() == ""
        assert (seeds_dir / ".gitignore").read_text().splitlines() == ["*.lock", "*.tmp.*"]
        assert ".seeds/issues.jsonl merge=union" in (tmp_path / ".gitattributes").read_text()

    def test_project_defaults_to_directory_name(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Without --project the sanitized directory name is used."""
        project_dir = tmp_path / "My App"
        project_dir.mkdir()
        monkeypatch.chdir(project_dir)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0, result.output
        assert load_config(project_dir / ".seeds")["project"] == "my-app"

    def test_second_init_changes_nothing(self, tmp_path: Path) -> None:
        """Re-running init on an initialized directory succeeds without writing."""
        seeds_dir = tmp_path / ".seeds"
        runner.invoke(app, ["init", "--project", "demo", "--seeds-dir", str(seeds_dir)])
        (seeds_dir / "issues.jsonl").write_text("keep\n")

        result = runner.invoke(app, ["init", "--seeds-dir", str(seeds_dir), "--json"])
        assert result.exit_code == 0, result.output
        payload = orjson.loads(result.stdout)
        assert payload["success"] is True
        assert payload["created"] is False
        assert (seeds_dir / "issues.jsonl").read_text() == "keep\n"
