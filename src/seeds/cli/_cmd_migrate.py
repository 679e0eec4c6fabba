"""Beads import command for seeds CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from seeds.config import project_root
from seeds.errors import SeedsError
from seeds.migrate import BEADS_ISSUES_PATH, migrate_from_beads

from ._helpers import SEEDS_DIR_HELP, get_storage
from ._json_state import echo, echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register the migrate-from-beads command."""

    @app.command("migrate-from-beads")
    def migrate_beads(
        beads_file: str | None = typer.Option(
            None,
            "--from",
            help="Path to beads issues.jsonl (default: .beads/issues.jsonl)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Import issues from a beads issues.jsonl.

        Issues whose IDs already exist are left alone, so running the import
        twice is harmless.
        """
        is_json_output(json_output)
        try:
            storage = get_storage(seeds_dir)
            path = (
                Path(beads_file)
                if beads_file
                else project_root(storage.seeds_dir) / BEADS_ISSUES_PATH
            )
            result = migrate_from_beads(storage, path)
        except (SeedsError, FileNotFoundError) as e:
            echo_error(str(e), "migrate-from-beads")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json(
                "migrate-from-beads",
                written=len(result.written),
                skipped=len(result.skipped),
            )
            return
        echo(f"✓ Migrated {len(result.written)} issues from beads.")
        if result.skipped:
            echo(f"Skipped {len(result.skipped)} malformed issues.")
