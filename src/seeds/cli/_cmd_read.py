"""Read commands (show, list) for seeds CLI."""

from __future__ import annotations

import typer

from seeds.constants import DEFAULT_LIST_LIMIT
from seeds.deps import index_by_id, is_blocked
from seeds.errors import SeedsError
from seeds.models import issue_to_dict, parse_issue_type, parse_status

from ._formatting import format_issue_brief, format_issue_full
from ._helpers import SEEDS_DIR_HELP, get_storage
from ._json_state import echo, echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register show and list commands."""

    @app.command()
    def show(
        issue_id: str = typer.Argument(..., help="Issue ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show full details of one issue."""
        is_json_output(json_output)
        try:
            issue = get_storage(seeds_dir).get_issue(issue_id)
        except SeedsError as e:
            echo_error(str(e), "show")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("show", issue=issue_to_dict(issue))
        else:
            echo(format_issue_full(issue))

    @app.command("list")
    def list_issues(
        status: str | None = typer.Option(
            None,
            "--status",
            "-s",
            help="Filter by status (open, in_progress, closed)",
        ),
        issue_type: str | None = typer.Option(
            None,
            "--type",
            "-t",
            help="Filter by type (task, bug, feature, epic)",
        ),
        assignee: str | None = typer.Option(
            None,
            "--assignee",
            "-a",
            help="Filter by assignee",
        ),
        limit: int = typer.Option(
            DEFAULT_LIST_LIMIT,
            "--limit",
            "-n",
            help="Maximum number of issues to show (0 for all)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """List issues in log order, optionally filtered."""
        is_json_output(json_output)
        try:
            if status:
                parse_status(status)
            if issue_type:
                parse_issue_type(issue_type)
            storage = get_storage(seeds_dir)
            all_issues = storage.issues.read_all()
            issues = storage.list_issues(
                status=status,
                issue_type=issue_type,
                assignee=assignee,
                limit=limit,
            )
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "list")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json(
                "list",
                issues=[issue_to_dict(i) for i in issues],
                count=len(issues),
            )
            return

        if not issues:
            echo("No issues found.")
            return
        by_id = index_by_id(all_issues)
        for issue in issues:
            echo(format_issue_brief(issue, blocked=is_blocked(issue, by_id)))
        echo(f"\n{len(issues)} issue(s)")
