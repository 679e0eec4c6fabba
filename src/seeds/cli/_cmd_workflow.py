"""Workflow and status commands for seeds CLI."""

from __future__ import annotations

import typer

from seeds.deps import get_blocked_issues, index_by_id
from seeds.errors import SeedsError
from seeds.models import issue_to_dict

from ._formatting import format_issue_brief, format_stats
from ._helpers import SEEDS_DIR_HELP, get_storage
from ._json_state import echo, echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register workflow/status commands."""

    @app.command()
    def ready(
        limit: int = typer.Option(None, "--limit", "-l", help="Limit results"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show open issues whose blockers are all closed, most urgent first."""
        is_json_output(json_output)
        try:
            ready_issues = get_storage(seeds_dir).ready_issues()
        except SeedsError as e:
            echo_error(str(e), "ready")
            raise typer.Exit(1)

        if limit:
            ready_issues = ready_issues[:limit]

        if is_json_output(json_output):
            echo_json(
                "ready",
                issues=[issue_to_dict(i) for i in ready_issues],
                count=len(ready_issues),
            )
        elif not ready_issues:
            echo("No ready work")
        else:
            for issue in ready_issues:
                echo(format_issue_brief(issue))

    @app.command()
    def blocked(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show all blocked issues and what blocks them."""
        is_json_output(json_output)
        try:
            storage = get_storage(seeds_dir)
            issues = storage.issues.read_all()
            by_id = index_by_id(issues)
            blocked_issues = get_blocked_issues(issues)
        except SeedsError as e:
            echo_error(str(e), "blocked")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json(
                "blocked",
                issues=[
                    {
                        **issue_to_dict(by_id[bi.issue_id]),
                        "openBlockers": bi.blocking_ids,
                    }
                    for bi in blocked_issues
                ],
                count=len(blocked_issues),
            )
            return

        if not blocked_issues:
            echo("No blocked issues")
            return
        for bi in blocked_issues:
            echo(format_issue_brief(by_id[bi.issue_id], blocked=True))
            echo(f"    waiting on: {', '.join(bi.blocking_ids)}")

    @app.command()
    def stats(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show project statistics."""
        is_json_output(json_output)
        try:
            summary = get_storage(seeds_dir).stats()
        except SeedsError as e:
            echo_error(str(e), "stats")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("stats", stats=summary)
        else:
            echo(format_stats(summary))
