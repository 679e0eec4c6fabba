"""Template instantiation ("pouring") and convoy status.

A convoy is the set of issues poured from one template.  It is never stored;
it is recovered by grouping issues on their ``convoy`` field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from seeds.constants import PREFIX_PLACEHOLDER
from seeds.deps import index_by_id, is_blocked
from seeds.idgen import generate_id
from seeds.models import Issue, Status, utc_now

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime

    from seeds.models import Template


@dataclass
class ConvoyStatus:
    """Progress summary of the issues poured from one template."""

    template_id: str
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    blocked: int = 0
    issues: list[str] = field(default_factory=list[str])

    def to_dict(self) -> dict[str, Any]:
        return {
            "templateId": self.template_id,
            "total": self.total,
            "completed": self.completed,
            "inProgress": self.in_progress,
            "blocked": self.blocked,
            "issues": self.issues,
        }


def pour_template(
    template: Template,
    title_prefix: str,
    id_prefix: str,
    existing_ids: Collection[str],
    now: datetime | None = None,
) -> list[Issue]:
    """Materialize a template's steps as a linear chain of new issues.

    Step ``i + 1`` is blocked by step ``i``; the first step has no blocker and
    is immediately ready.  The returned issues are not persisted; the caller
    writes them together with the existing issues in one rewrite.

    Args:
        template: Template to pour
        title_prefix: Replaces every ``{prefix}`` in step titles
        id_prefix: Project prefix for the new issue IDs
        existing_ids: IDs already in use, to avoid collisions
        now: Creation timestamp shared by all new issues

    Returns:
        The new issues, in step order
    """
    now = now or utc_now()
    taken = set(existing_ids)
    poured: list[Issue] = []

    for step in template.steps:
        issue_id = generate_id(id_prefix, taken)
        taken.add(issue_id)
        poured.append(
            Issue(
                id=issue_id,
                title=step.title.replace(PREFIX_PLACEHOLDER, title_prefix),
                status=Status.OPEN,
                issue_type=step.effective_type,
                priority=step.effective_priority,
                convoy=template.id,
                created_at=now,
                updated_at=now,
            ),
        )

    for prev, curr in zip(poured, poured[1:]):
        curr.blocked_by = [prev.id]
        prev.blocks = [curr.id]

    return poured


def convoy_status(issues: list[Issue], template_id: str) -> ConvoyStatus:
    """Summarize the convoy poured from ``template_id``.

    ``blocked`` uses the same rule as ``deps.is_blocked``, evaluated against
    the whole collection so blockers outside the convoy count too.
    """
    by_id = index_by_id(issues)
    members = [issue for issue in issues if issue.convoy == template_id]
    return ConvoyStatus(
        template_id=template_id,
        total=len(members),
        completed=sum(1 for i in members if i.status == Status.CLOSED),
        in_progress=sum(1 for i in members if i.status == Status.IN_PROGRESS),
        blocked=sum(1 for i in members if is_blocked(i, by_id)),
        issues=[i.id for i in members],
    )
