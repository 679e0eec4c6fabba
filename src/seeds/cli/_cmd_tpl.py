"""Template and convoy commands for seeds CLI."""

from __future__ import annotations

import typer

from seeds.constants import DEFAULT_PRIORITY, DEFAULT_TYPE
from seeds.convoy import convoy_status
from seeds.deps import index_by_id, is_blocked
from seeds.errors import SeedsError
from seeds.models import template_to_dict

from ._formatting import (
    format_convoy_status,
    format_issue_brief,
    format_template,
    format_template_table,
)
from ._helpers import SEEDS_DIR_HELP, SortedGroup, get_storage, parse_priority_value
from ._json_state import echo, echo_error, echo_json, is_json_output

tpl_app = typer.Typer(
    help="Manage issue templates and the convoys poured from them.",
    no_args_is_help=True,
    cls=SortedGroup,
)

step_app = typer.Typer(
    help="Manage template steps.",
    no_args_is_help=True,
    cls=SortedGroup,
)


def register(app: typer.Typer) -> None:
    """Register the tpl command group."""
    app.add_typer(tpl_app, name="tpl")
    tpl_app.add_typer(step_app, name="step")

    @tpl_app.command("create")
    def tpl_create(
        name: str = typer.Option(..., "--name", help="Template name"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Create an empty template."""
        is_json_output(json_output)
        try:
            template = get_storage(seeds_dir).create_template(name)
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "tpl create")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("tpl create", id=template.id)
        else:
            echo(f"✓ Created template {template.id}: {template.name}")

    @step_app.command("add")
    def step_add(
        template_id: str = typer.Argument(..., help="Template ID"),
        title: str = typer.Option(
            ...,
            "--title",
            help="Step title; {prefix} is replaced when the template is poured",
        ),
        step_type: str = typer.Option(
            DEFAULT_TYPE,
            "--type",
            "-t",
            help="Issue type for this step",
        ),
        priority: int = typer.Option(
            DEFAULT_PRIORITY,
            "--priority",
            "-p",
            help="Priority for this step (0-4 or P0-P4)",
            parser=parse_priority_value,
            metavar="PRIORITY",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Append a step to a template."""
        is_json_output(json_output)
        try:
            template = get_storage(seeds_dir).add_template_step(
                template_id,
                title,
                step_type=step_type,
                priority=priority,
            )
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "tpl step add")
            raise typer.Exit(1)

        step_count = len(template.steps)
        if is_json_output(json_output):
            echo_json("tpl step add", id=template_id, stepCount=step_count)
        else:
            echo(f'✓ Added step {step_count} to {template_id}: "{title}"')

    @tpl_app.command("list")
    def tpl_list(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """List all templates."""
        is_json_output(json_output)
        try:
            templates = get_storage(seeds_dir).list_templates()
        except SeedsError as e:
            echo_error(str(e), "tpl list")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json(
                "tpl list",
                templates=[template_to_dict(t) for t in templates],
                count=len(templates),
            )
        elif not templates:
            echo("No templates.")
        else:
            echo(format_template_table(templates))

    @tpl_app.command("show")
    def tpl_show(
        template_id: str = typer.Argument(..., help="Template ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show a template and its steps."""
        is_json_output(json_output)
        try:
            template = get_storage(seeds_dir).get_template(template_id)
            rendered = format_template(template)
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "tpl show")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("tpl show", template=template_to_dict(template))
        else:
            echo(rendered)

    @tpl_app.command("pour")
    def tpl_pour(
        template_id: str = typer.Argument(..., help="Template ID"),
        prefix: str = typer.Option(
            ...,
            "--prefix",
            help="Text substituted for {prefix} in step titles",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Create one issue per step, each blocked by the previous one."""
        is_json_output(json_output)
        try:
            poured = get_storage(seeds_dir).pour(template_id, prefix)
        except (SeedsError, ValueError) as e:
            echo_error(str(e), "tpl pour")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("tpl pour", ids=[issue.id for issue in poured])
            return
        echo(f"✓ Poured template {template_id}: created {len(poured)} issues")
        for issue in poured:
            echo(f"  {issue.id}  {issue.title}")

    @tpl_app.command("status")
    def tpl_status(
        template_id: str = typer.Argument(..., help="Template ID"),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seeds_dir: str | None = typer.Option(None, "--seeds-dir", help=SEEDS_DIR_HELP),
    ) -> None:
        """Show progress of the convoy poured from a template."""
        is_json_output(json_output)
        try:
            storage = get_storage(seeds_dir)
            issues = storage.issues.read_all()
            status = convoy_status(issues, template_id)
        except SeedsError as e:
            echo_error(str(e), "tpl status")
            raise typer.Exit(1)

        if is_json_output(json_output):
            echo_json("tpl status", status=status.to_dict())
            return
        if not status.total:
            echo(f"No issues found for convoy {template_id}")
            return

        echo(format_convoy_status(status))
        echo("  Issues:")
        by_id = index_by_id(issues)
        for issue_id in status.issues:
            issue = by_id.get(issue_id)
            if issue is not None:
                echo(f"    {format_issue_brief(issue, blocked=is_blocked(issue, by_id))}")
