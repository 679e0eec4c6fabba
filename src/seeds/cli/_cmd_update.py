"""Update command for seeds CLI."""

from __future__ import annotations

import typer

from seeds.errors import SeedsError
from seeds.models import issue_to_dict

from ._helpers import SEEDS_DIR_HELP, get_storage, parse_priority_value
from ._json_state import echo, echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register the update command."""

    @app.command()
    def update(
        issue_id: str = typer.Argument(..., help="Issue ID"),
        title: str | None = typer.Option(None, "--title", help="New title"),
        status: str | None = typer.Option(
            None,
            "--status",
            "-s",
            help="New status (open, in_progress, closed)",
        ),
        issue_type: str | None = typer.Option(
            None,
            "--type",
            "-t",
            help="New type (task, bug, feature, epic)",
        ),
        priority: int | None = typer.Option(
            None,
            "--priority",
            "-p",
            help="New priority (0-4 or P0-P4)",
            parser=parse_priority_value,
            metavar="PRIORITY",
        ),
        assignee: str | None = typer.Option(
            None,
            "--assignee",
            "-a",
            help="New assignee (empty string to clear)",
        ),
        description: str | None = typer.Option(
            None,
            "--description",
            "-d",
            help="New description (empty string to clear)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Update fields of an existing issue."""
        is_json_output(json_output)
        try:
            issue = get_storage(seeds_dir).update_issue(
                issue_id,
                title=title,
                status=status,
                issue_type=issue_type,
                priority=priority,
                assignee=assignee,
                description=description,
            )
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "update")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("update", issue=issue_to_dict(issue))
        else:
            echo(f"✓ Updated {issue.id}")
