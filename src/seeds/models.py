"""Data models for Seeds issues and templates using dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from seeds.constants import DEFAULT_PRIORITY, DEFAULT_TYPE, PRIORITY_LABELS
from seeds.errors import MalformedRecordError


class Status(str, Enum):
    """Issue status enumeration."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class IssueType(str, Enum):
    """Issue type enumeration."""

    TASK = "task"
    BUG = "bug"
    FEATURE = "feature"
    EPIC = "epic"


VALID_STATUSES = frozenset(s.value for s in Status)
VALID_TYPES = frozenset(t.value for t in IssueType)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as UTC ISO-8601 with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``.

    Raises:
        ValueError: If the value is not a valid ISO-8601 string.
    """
    if not isinstance(value, str) or not value:
        msg = f"invalid timestamp {value!r}"
        raise ValueError(msg)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Issue:
    """A unit of work in the tracker."""

    id: str  # Full ID including project prefix (e.g., "seeds-a1b2")
    title: str
    status: Status = Status.OPEN
    issue_type: IssueType = IssueType.TASK
    priority: int = DEFAULT_PRIORITY  # 0-4 range, lower is more urgent
    assignee: str | None = None
    description: str | None = None
    close_reason: str | None = None
    blocks: list[str] = field(default_factory=list[str])
    blocked_by: list[str] = field(default_factory=list[str])
    convoy: str | None = None  # Template ID this issue was poured from
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    closed_at: datetime | None = None

    def is_closed(self) -> bool:
        """Check if the issue is closed."""
        return self.status == Status.CLOSED

    @property
    def priority_label(self) -> str:
        """Human-readable priority name (e.g., "Medium")."""
        return PRIORITY_LABELS.get(self.priority, str(self.priority))

    def touch(self, now: datetime | None = None) -> None:
        """Refresh ``updated_at``."""
        self.updated_at = now or utc_now()

    def close(self, reason: str | None = None, now: datetime | None = None) -> None:
        """Transition to closed; ``closed_at`` is only set on the first close."""
        now = now or utc_now()
        if self.closed_at is None or self.status != Status.CLOSED:
            self.closed_at = now
        self.status = Status.CLOSED
        if reason:
            self.close_reason = reason
        self.updated_at = now


@dataclass
class TemplateStep:
    """One step of a template; ``{prefix}`` in the title is substituted on pour."""

    title: str
    step_type: str | None = None
    priority: int | None = None

    @property
    def effective_type(self) -> IssueType:
        return IssueType(self.step_type or DEFAULT_TYPE)

    @property
    def effective_priority(self) -> int:
        return DEFAULT_PRIORITY if self.priority is None else self.priority


@dataclass
class Template:
    """A reusable, ordered list of steps."""

    id: str
    name: str
    steps: list[TemplateStep] = field(default_factory=list[TemplateStep])


def validate_priority(priority: Any) -> None:
    """Validate that priority is in valid range (0-4)."""
    if (
        isinstance(priority, bool)
        or not isinstance(priority, int)
        or priority < 0
        or priority > 4
    ):
        msg = "Priority must be an integer between 0 and 4"
        raise ValueError(msg)


def parse_status(value: str) -> Status:
    """Convert a string to a Status, with a readable error."""
    if value not in VALID_STATUSES:
        msg = f"status must be one of: {', '.join(s.value for s in Status)}"
        raise ValueError(msg)
    return Status(value)


def parse_issue_type(value: str) -> IssueType:
    """Convert a string to an IssueType, with a readable error."""
    if value not in VALID_TYPES:
        msg = f"type must be one of: {', '.join(t.value for t in IssueType)}"
        raise ValueError(msg)
    return IssueType(value)


def validate_issue(issue: Issue) -> None:
    """Validate that an issue has a title and valid priority."""
    if not issue.title or not issue.title.strip():
        msg = "Issue must have a non-empty title"
        raise ValueError(msg)
    validate_priority(issue.priority)


def issue_to_dict(issue: Issue) -> dict[str, Any]:
    """Convert an Issue to its on-disk dictionary.

    Unset optional fields and empty dependency lists are omitted so that
    lines stay short and diffs stay readable.
    """
    data: dict[str, Any] = {
        "id": issue.id,
        "title": issue.title,
        "status": issue.status.value,
        "type": issue.issue_type.value,
        "priority": issue.priority,
    }
    if issue.assignee:
        data["assignee"] = issue.assignee
    if issue.description:
        data["description"] = issue.description
    if issue.close_reason:
        data["closeReason"] = issue.close_reason
    if issue.blocks:
        data["blocks"] = list(issue.blocks)
    if issue.blocked_by:
        data["blockedBy"] = list(issue.blocked_by)
    if issue.convoy:
        data["convoy"] = issue.convoy
    data["createdAt"] = format_timestamp(issue.created_at)
    data["updatedAt"] = format_timestamp(issue.updated_at)
    if issue.closed_at:
        data["closedAt"] = format_timestamp(issue.closed_at)
    return data


def _str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings"
        raise MalformedRecordError(msg)
    return list(value)


def dict_to_issue(data: Any) -> Issue:
    """Convert an on-disk dictionary to an Issue.

    Raises:
        MalformedRecordError: If required fields are missing or invalid.
    """
    if not isinstance(data, dict):
        msg = f"expected JSON object, got {type(data).__name__}"
        raise MalformedRecordError(msg)

    issue_id = data.get("id")
    title = data.get("title")
    if not isinstance(issue_id, str) or not issue_id:
        msg = "missing or invalid 'id'"
        raise MalformedRecordError(msg)
    if not isinstance(title, str) or not title:
        msg = f"{issue_id}: missing or invalid 'title'"
        raise MalformedRecordError(msg)

    try:
        status = Status(data.get("status", Status.OPEN.value))
        issue_type = IssueType(data.get("type", DEFAULT_TYPE))
        priority = data.get("priority", DEFAULT_PRIORITY)
        validate_priority(priority)
        created_at = parse_timestamp(data.get("createdAt"))
        updated_at = parse_timestamp(data.get("updatedAt"))
        closed_at = (
            parse_timestamp(data["closedAt"]) if data.get("closedAt") else None
        )
    except ValueError as e:
        msg = f"{issue_id}: {e}"
        raise MalformedRecordError(msg) from e

    return Issue(
        id=issue_id,
        title=title,
        status=status,
        issue_type=issue_type,
        priority=priority,
        assignee=data.get("assignee"),
        description=data.get("description"),
        close_reason=data.get("closeReason"),
        blocks=_str_list(data, "blocks"),
        blocked_by=_str_list(data, "blockedBy"),
        convoy=data.get("convoy"),
        created_at=created_at,
        updated_at=updated_at,
        closed_at=closed_at,
    )


def template_to_dict(template: Template) -> dict[str, Any]:
    """Convert a Template to its on-disk dictionary."""
    steps: list[dict[str, Any]] = []
    for step in template.steps:
        step_data: dict[str, Any] = {"title": step.title}
        if step.step_type is not None:
            step_data["type"] = step.step_type
        if step.priority is not None:
            step_data["priority"] = step.priority
        steps.append(step_data)
    return {"id": template.id, "name": template.name, "steps": steps}


def dict_to_template(data: Any) -> Template:
    """Convert an on-disk dictionary to a Template.

    Raises:
        MalformedRecordError: If required fields are missing or invalid.
    """
    if not isinstance(data, dict):
        msg = f"expected JSON object, got {type(data).__name__}"
        raise MalformedRecordError(msg)
    template_id = data.get("id")
    if not isinstance(template_id, str) or not template_id:
        msg = "missing or invalid 'id'"
        raise MalformedRecordError(msg)
    raw_steps = data.get("steps") or []
    if not isinstance(raw_steps, list):
        msg = f"{template_id}: 'steps' must be a list"
        raise MalformedRecordError(msg)

    steps: list[TemplateStep] = []
    for raw in raw_steps:
        if not isinstance(raw, dict) or not isinstance(raw.get("title"), str):
            msg = f"{template_id}: step is missing a title"
            raise MalformedRecordError(msg)
        steps.append(
            TemplateStep(
                title=raw["title"],
                step_type=raw.get("type"),
                priority=raw.get("priority"),
            ),
        )
    return Template(id=template_id, name=str(data.get("name", "")), steps=steps)
