"""Migration tool for importing beads issues into seeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from seeds.constants import DEFAULT_PRIORITY
from seeds.models import Issue, IssueType, Status, parse_timestamp, utc_now, validate_priority
from seeds.storage import read_raw_lines

if TYPE_CHECKING:
    from datetime import datetime

    from seeds.storage import SeedsStorage

BEADS_ISSUES_PATH = Path(".beads") / "issues.jsonl"

_STATUS_MAP = {
    "in_progress": Status.IN_PROGRESS,
    "in-progress": Status.IN_PROGRESS,
    "closed": Status.CLOSED,
    "done": Status.CLOSED,
    "complete": Status.CLOSED,
}


@dataclass
class MigrationResult:
    """Outcome of a beads import."""

    written: list[str] = field(default_factory=list[str])
    skipped: list[str] = field(default_factory=list[str])


def map_status(value: Any) -> Status:
    """Map a beads status onto seeds' three states; unknown means open."""
    return _STATUS_MAP.get(value, Status.OPEN) if isinstance(value, str) else Status.OPEN


def map_type(value: Any) -> IssueType:
    """Map a beads issue type; anything unrecognized becomes a task."""
    if value in ("bug", "feature", "epic"):
        return IssueType(value)
    return IssueType.TASK


def _first(data: dict[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among ``keys`` (snake_case first)."""
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _timestamp(value: Any, fallback: datetime) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError:
        return fallback


def _str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def migrate_issue(beads_issue: Any, now: datetime | None = None) -> Issue | None:
    """Convert one beads record to an Issue.

    Beads uses snake_case keys (``issue_type``, ``blocked_by``, ...) and a
    wider status/type vocabulary; both spellings are accepted.

    Returns:
        The issue, or None if the record has no id or title.
    """
    if not isinstance(beads_issue, dict):
        return None
    issue_id = beads_issue.get("id")
    title = beads_issue.get("title")
    if not isinstance(issue_id, str) or not issue_id:
        return None
    if not isinstance(title, str) or not title:
        return None

    now = now or utc_now()
    priority = beads_issue.get("priority", DEFAULT_PRIORITY)
    try:
        validate_priority(priority)
    except ValueError:
        priority = DEFAULT_PRIORITY

    closed_at_raw = _first(beads_issue, "closed_at", "closedAt")
    return Issue(
        id=issue_id,
        title=title,
        status=map_status(beads_issue.get("status")),
        issue_type=map_type(_first(beads_issue, "issue_type", "type")),
        priority=priority,
        assignee=_first(beads_issue, "owner", "assignee"),
        description=beads_issue.get("description") or None,
        close_reason=_first(beads_issue, "close_reason", "closeReason"),
        blocks=_str_list(beads_issue.get("blocks")),
        blocked_by=_str_list(_first(beads_issue, "blocked_by", "blockedBy")),
        created_at=_timestamp(_first(beads_issue, "created_at", "createdAt"), now),
        updated_at=_timestamp(_first(beads_issue, "updated_at", "updatedAt"), now),
        closed_at=_timestamp(closed_at_raw, now) if closed_at_raw else None,
    )


def migrate_from_beads(storage: SeedsStorage, beads_path: str | Path) -> MigrationResult:
    """Import every valid beads issue whose id is not already tracked.

    Unparsable lines and records without id/title are counted as skipped.

    Raises:
        FileNotFoundError: If the beads file does not exist.
    """
    beads_path = Path(beads_path)
    if not beads_path.exists():
        msg = f"Beads issues not found at: {beads_path}"
        raise FileNotFoundError(msg)

    result = MigrationResult()
    mapped: list[Issue] = []
    now = utc_now()
    for line in read_raw_lines(beads_path):
        issue = migrate_issue(line.data, now) if line.error is None else None
        if issue is None:
            raw_id = line.data.get("id") if isinstance(line.data, dict) else None
            result.skipped.append(raw_id if isinstance(raw_id, str) else "(unknown)")
            continue
        mapped.append(issue)

    result.written = [issue.id for issue in storage.import_issues(mapped)]
    return result
