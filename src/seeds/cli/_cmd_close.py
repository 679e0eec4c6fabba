"""Close command for seeds CLI."""

from __future__ import annotations

import typer

from seeds.errors import SeedsError

from ._helpers import SEEDS_DIR_HELP, get_storage
from ._json_state import echo, echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register the close command."""

    @app.command()
    def close(
        issue_ids: list[str] = typer.Argument(..., help="Issue ID(s) to close"),
        reason: str | None = typer.Option(
            None,
            "--reason",
            "-r",
            help="Reason for closing",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Close one or more issues.

        Either every listed issue is closed or, if any ID is unknown, none is.
        """
        is_json_output(json_output)
        try:
            closed = get_storage(seeds_dir).close_issues(issue_ids, reason)
        except SeedsError as e:
            echo_error(str(e), "close")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("close", closed=[issue.id for issue in closed])
            return
        suffix = f": {reason}" if reason else ""
        for issue in closed:
            echo(f"✓ Closed {issue.id}{suffix}")
