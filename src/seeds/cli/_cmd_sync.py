"""Sync command: stage and commit .seeds/ with git."""

from __future__ import annotations

import subprocess
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import typer

from seeds.config import is_inside_worktree, project_root
from seeds.constants import SEEDS_DIR_NAME
from seeds.errors import SeedsError

from ._helpers import SEEDS_DIR_HELP, resolve_seeds_dir
from ._json_state import echo, echo_error, echo_json, is_json_output

if TYPE_CHECKING:
    from pathlib import Path


def _git(root: Path, *args: str) -> subprocess.CompletedProcess[str]:
    """Run a git command against ``root``."""
    return subprocess.run(
        ["git", "-C", str(root), *args],
        capture_output=True,
        text=True,
        check=False,
    )


def sync_message() -> str:
    """Commit message used by ``sd sync``."""
    return f"seeds: sync {datetime.now(timezone.utc).strftime('%Y-%m-%d')}"


def register(app: typer.Typer) -> None:
    """Register the sync command."""

    @app.command()
    def sync(
        status_only: bool = typer.Option(
            False,
            "--status",
            help="Show uncommitted .seeds/ changes without committing",
        ),
        dry_run: bool = typer.Option(
            False,
            "--dry-run",
            help="Show what would be committed without committing",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Stage and commit .seeds/ changes.

        Inside a secondary git worktree nothing is committed: the issues live
        in the main checkout and are committed from there.
        """
        is_json_output(json_output)
        try:
            root = project_root(resolve_seeds_dir(seeds_dir))
        except SeedsError as e:
            echo_error(str(e), "sync")
            raise typer.Exit(1)

        if not seeds_dir and is_inside_worktree():
            msg = "Inside a git worktree, skipping commit. Issues are stored in the main repo."
            if is_json_output(json_output):
                echo_json("sync", committed=False, worktree=True, message=msg)
            else:
                typer.echo(f"Warning: {msg}", err=True)
            return

        try:
            status = _git(root, "status", "--porcelain", f"{SEEDS_DIR_NAME}/")
        except OSError as e:
            echo_error(f"Could not run git: {e}", "sync")
            raise typer.Exit(1)
        if status.returncode != 0:
            echo_error(f"git status failed: {status.stderr.strip()}", "sync")
            raise typer.Exit(1)
        changes = status.stdout.strip()

        if status_only:
            if is_json_output(json_output):
                echo_json("sync", hasChanges=bool(changes), changes=changes)
            elif changes:
                echo(f"Uncommitted {SEEDS_DIR_NAME}/ changes:\n{changes}")
            else:
                echo(f"No uncommitted {SEEDS_DIR_NAME}/ changes.")
            return

        if not changes:
            if is_json_output(json_output):
                echo_json("sync", committed=False, message="Nothing to commit")
            else:
                echo("No changes to commit.")
            return

        message = sync_message()
        if dry_run:
            if is_json_output(json_output):
                echo_json(
                    "sync",
                    dryRun=True,
                    wouldCommit=True,
                    message=message,
                    changes=changes,
                )
            else:
                echo(f"Dry run, would commit:\n{changes}\nCommit message: {message}")
            return

        for args, label in (
            (("add", f"{SEEDS_DIR_NAME}/"), "git add"),
            (("commit", "-m", message, "--", f"{SEEDS_DIR_NAME}/"), "git commit"),
        ):
            result = _git(root, *args)
            if result.returncode != 0:
                detail = (result.stderr or result.stdout).strip()
                echo_error(f"{label} failed: {detail}", "sync")
                raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("sync", committed=True, message=message)
        else:
            echo(f"✓ Committed: {message}")
