"""Shared test helpers for CLI test modules."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson
from typer.testing import CliRunner

from seeds.cli import app

if TYPE_CHECKING:
    from pathlib import Path

    from click.testing import Result

runner = CliRunner()


def invoke(seeds_dir: Path, *args: str) -> Result:
    """Run ``sd <args> --seeds-dir <seeds_dir>``."""
    return runner.invoke(app, [*args, "--seeds-dir", str(seeds_dir)])


def invoke_json(seeds_dir: Path, *args: str) -> dict[str, Any]:
    """Run a command with ``--json`` and return the parsed payload."""
    result = invoke(seeds_dir, *args, "--json")
    assert result.exit_code == 0, result.output
    return orjson.loads(result.stdout)


def create_issue(seeds_dir: Path, title: str, *extra: str) -> str:
    """Create an issue through the CLI and return its ID."""
    return invoke_json(seeds_dir, "create", title, *extra)["id"]
