"""Display and formatting functions for seeds CLI."""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING, Any

import typer

from seeds.constants import PRIORITY_COLORS, PRIORITY_LABELS, TYPE_COLORS
from seeds.models import Status, format_timestamp

if TYPE_CHECKING:
    from seeds.convoy import ConvoyStatus
    from seeds.models import Issue, Template

_STATUS_SYMBOLS = {
    Status.OPEN: "-",
    Status.IN_PROGRESS: ">",
    Status.CLOSED: "x",
}


def format_issue_brief(issue: Issue, blocked: bool = False) -> str:
    """Format issue as one line: status symbol, id, title, priority and type.

    Args:
        issue: The issue to format
        blocked: Whether the issue has open blockers

    Returns:
        Formatted, colored line
    """
    if blocked and not issue.is_closed():
        symbol = typer.style("!", fg="yellow")
    else:
        symbol = _STATUS_SYMBOLS[issue.status]

    priority_color = PRIORITY_COLORS.get(issue.priority, "white")
    priority_str = typer.style(f"[P{issue.priority}]", fg=priority_color, bold=True)
    type_color = TYPE_COLORS.get(issue.issue_type.value, "white")
    type_str = typer.style(f"[{issue.issue_type.value}]", fg=type_color)

    assignee_str = (
        typer.style(f" @{issue.assignee}", fg="bright_black") if issue.assignee else ""
    )
    blocked_str = " " + typer.style("[blocked]", fg="yellow") if blocked else ""
    return (
        f"{symbol} {priority_str} {issue.id}: {issue.title} {type_str}"
        f"{assignee_str}{blocked_str}"
    )


def _styled_key(label: str) -> str:
    """Style a field label as bold cyan."""
    return typer.style(label, fg="cyan", bold=True)


def format_issue_full(issue: Issue) -> str:
    """Format issue for full display."""
    key = _styled_key
    priority_label = PRIORITY_LABELS.get(issue.priority, str(issue.priority))
    lines = [
        f"{key('ID:')} {issue.id}",
        f"{key('Title:')} {issue.title}",
        "",
        f"{key('Status:')} {issue.status.value}",
        f"{key('Priority:')} P{issue.priority} ({priority_label})",
        f"{key('Type:')} {issue.issue_type.value}",
    ]
    if issue.assignee:
        lines.append(f"{key('Assignee:')} {issue.assignee}")
    if issue.blocked_by:
        lines.append(f"{key('Blocked by:')} {', '.join(issue.blocked_by)}")
    if issue.blocks:
        lines.append(f"{key('Blocks:')} {', '.join(issue.blocks)}")
    if issue.convoy:
        lines.append(f"{key('Convoy:')} {issue.convoy}")

    lines.append("")
    lines.append(f"{key('Created:')} {format_timestamp(issue.created_at)}")
    lines.append(f"{key('Updated:')} {format_timestamp(issue.updated_at)}")
    if issue.closed_at:
        closed_line = f"{key('Closed:')} {format_timestamp(issue.closed_at)}"
        if issue.close_reason:
            closed_line += f" ({issue.close_reason})"
        lines.append(closed_line)

    if issue.description:
        lines.append("")
        lines.append(key("Description:"))
        lines.append(issue.description)

    return "\n".join(lines)


def _render(renderable: Any) -> str:
    """Render a Rich object to a string."""
    from rich.console import Console

    string_io = StringIO()
    console = Console(file=string_io, force_terminal=False, width=100)
    console.print(renderable)
    return string_io.getvalue().rstrip()


def format_stats(stats: dict[str, Any]) -> str:
    """Format project statistics as Rich tables."""
    from rich import box
    from rich.table import Table

    totals = Table(
        title="Project Statistics",
        show_header=False,
        box=box.SIMPLE,
        pad_edge=False,
    )
    totals.add_column("Metric", style="bold")
    totals.add_column("Count", justify="right")
    for label, field_name in (
        ("Total", "total"),
        ("Open", "open"),
        ("In progress", "inProgress"),
        ("Closed", "closed"),
        ("Blocked", "blocked"),
    ):
        totals.add_row(label, str(stats[field_name]))

    breakdown = Table(
        show_header=True,
        header_style="bold",
        box=box.ROUNDED,
        pad_edge=False,
        show_edge=False,
    )
    breakdown.add_column("Group", no_wrap=True)
    breakdown.add_column("Value", no_wrap=True)
    breakdown.add_column("Count", justify="right")
    for type_name, count in stats["byType"].items():
        breakdown.add_row("type", type_name, str(count))
    for priority, count in stats["byPriority"].items():
        label = PRIORITY_LABELS.get(int(priority), priority)
        breakdown.add_row("priority", f"P{priority} {label}", str(count))

    parts = [_render(totals)]
    if stats["total"]:
        parts.append(_render(breakdown))
    return "\n\n".join(parts)


def format_template_table(templates: list[Template]) -> str:
    """Format templates as a Rich table."""
    from rich import box
    from rich.markup import escape
    from rich.table import Table

    table = Table(
        show_header=True,
        header_style="bold",
        box=box.ROUNDED,
        pad_edge=False,
        show_edge=False,
    )
    table.add_column("ID", no_wrap=True)
    table.add_column("Name", overflow="fold")
    table.add_column("Steps", justify="right")
    for template in templates:
        table.add_row(template.id, escape(template.name), str(len(template.steps)))
    return _render(table)


def format_template(template: Template) -> str:
    """Format a template and its numbered steps."""
    lines = [
        f"{_styled_key(template.id)}  {template.name}",
        f"Steps ({len(template.steps)}):",
    ]
    for idx, step in enumerate(template.steps, start=1):
        meta = typer.style(
            f"[{step.effective_type.value} P{step.effective_priority}]",
            fg="bright_black",
        )
        lines.append(f"  {idx}. {step.title}  {meta}")
    return "\n".join(lines)


def format_convoy_status(status: ConvoyStatus) -> str:
    """Format convoy progress counts."""
    return "\n".join(
        [
            typer.style(f"Convoy: {status.template_id}", bold=True),
            f"  Total:       {status.total}",
            f"  Completed:   {status.completed}",
            f"  In progress: {status.in_progress}",
            f"  Blocked:     {status.blocked}",
        ],
    )
