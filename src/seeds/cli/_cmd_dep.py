"""Dependency commands for seeds CLI."""

from __future__ import annotations

import typer

from seeds.deps import index_by_id
from seeds.errors import NotFoundError, SeedsError

from ._formatting import format_issue_brief
from ._helpers import SEEDS_DIR_HELP, SortedGroup, get_storage
from ._json_state import echo, echo_error, echo_json, is_json_output

dep_app = typer.Typer(
    help="Manage issue dependencies.",
    no_args_is_help=True,
    cls=SortedGroup,
)


def register(app: typer.Typer) -> None:
    """Register the dep command group."""
    app.add_typer(dep_app, name="dep")

    @dep_app.command("add")
    def dep_add(
        issue_id: str = typer.Argument(..., help="Issue that is blocked"),
        depends_on_id: str = typer.Argument(..., help="Issue it depends on"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Mark ISSUE_ID as blocked by DEPENDS_ON_ID.

        Adding an edge that already exists changes nothing.  An edge that
        closes a cycle is still added, with a warning.
        """
        is_json_output(json_output)
        try:
            closes_cycle = get_storage(seeds_dir).add_dependency(issue_id, depends_on_id)
        except SeedsError as e:
            echo_error(str(e), "dep add")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json(
                "dep add",
                issueId=issue_id,
                dependsOnId=depends_on_id,
                cycle=closes_cycle,
            )
            return
        echo(f"✓ Added dependency: {issue_id} → {depends_on_id}")
        if closes_cycle:
            typer.echo(
                f"Warning: {issue_id} → {depends_on_id} creates a circular dependency",
                err=True,
            )

    @dep_app.command("remove")
    def dep_remove(
        issue_id: str = typer.Argument(..., help="Issue that is blocked"),
        depends_on_id: str = typer.Argument(..., help="Issue it depends on"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Remove the dependency between two issues."""
        is_json_output(json_output)
        try:
            get_storage(seeds_dir).remove_dependency(issue_id, depends_on_id)
        except SeedsError as e:
            echo_error(str(e), "dep remove")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("dep remove", issueId=issue_id, dependsOnId=depends_on_id)
        else:
            echo(f"✓ Removed dependency: {issue_id} → {depends_on_id}")

    @dep_app.command("list")
    def dep_list(
        issue_id: str = typer.Argument(..., help="Issue ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show what an issue is blocked by and what it blocks."""
        is_json_output(json_output)
        try:
            storage = get_storage(seeds_dir)
            by_id = index_by_id(storage.issues.read_all())
            if issue_id not in by_id:
                raise NotFoundError("Issue", issue_id)
            issue = by_id[issue_id]
        except SeedsError as e:
            echo_error(str(e), "dep list")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json(
                "dep list",
                issueId=issue_id,
                blockedBy=issue.blocked_by,
                blocks=issue.blocks,
            )
            return

        echo(f"{issue_id} dependencies:")
        for label, refs in (("Blocked by", issue.blocked_by), ("Blocks", issue.blocks)):
            if not refs:
                continue
            echo(f"  {label}:")
            for ref in refs:
                other = by_id.get(ref)
                echo(f"    {format_issue_brief(other) if other else f'{ref} (not found)'}")
        if not issue.blocked_by and not issue.blocks:
            echo("  No dependencies.")
