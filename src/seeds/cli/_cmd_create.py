"""Create command for seeds CLI."""

from __future__ import annotations

import typer

from seeds.constants import DEFAULT_PRIORITY, DEFAULT_TYPE
from seeds.errors import SeedsError
from seeds.models import issue_to_dict

from ._helpers import SEEDS_DIR_HELP, get_storage, parse_priority_value
from ._json_state import echo, echo_error, echo_json, is_json_output

_CREATE_DOC = """\
Create a new issue.

Examples:
    sd create "Fix login bug"                 # Priority 2, type task
    sd create --title "Fix login bug"         # Same, using --title
    sd create "Fix login bug" -p P1           # Priority 1
    sd create "Add export" -t feature -a ana  # Feature assigned to ana\
"""


def register(app: typer.Typer) -> None:
    """Register the create command."""

    @app.command(help=_CREATE_DOC)
    def create(
        title_arg: str | None = typer.Argument(None, help="Issue title"),
        title_opt: str | None = typer.Option(
            None,
            "--title",
            help="Issue title (alternative to positional argument)",
        ),
        issue_type: str = typer.Option(
            DEFAULT_TYPE,
            "--type",
            "-t",
            help="Issue type (task, bug, feature, epic)",
        ),
        priority: int = typer.Option(
            DEFAULT_PRIORITY,
            "--priority",
            "-p",
            help="Priority (0-4 or P0-P4, 0 is most urgent)",
            parser=parse_priority_value,
            metavar="PRIORITY",
        ),
        assignee: str | None = typer.Option(None, "--assignee", "-a", help="Assignee"),
        description: str | None = typer.Option(
            None,
            "--description",
            "-d",
            help="Issue description",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        is_json_output(json_output)
        title = title_opt or title_arg
        if not title or not title.strip():
            echo_error("A title is required (positional or --title)", "create")
            raise typer.Exit(1)

        try:
            storage = get_storage(seeds_dir)
            issue = storage.create_issue(
                title,
                issue_type=issue_type,
                priority=priority,
                assignee=assignee,
                description=description,
            )
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "create")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("create", id=issue.id, issue=issue_to_dict(issue))
        else:
            echo(f"✓ Created {issue.id}: {issue.title}")
