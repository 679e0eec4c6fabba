"""Dependency tracking, ready work detection and graph integrity checks.

Every function here works on an in-memory issue collection; nothing reads or
writes the log.  Readiness is evaluated conservatively: a ``blocked_by`` entry
pointing at an unknown issue counts as an open blocker.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from seeds.errors import NotFoundError
from seeds.models import Issue, Status, utc_now

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

BLOCKS = "blocks"
BLOCKED_BY = "blockedBy"


@dataclass
class BlockedIssue:
    """An issue that is blocked by dependencies."""

    issue_id: str
    blocking_ids: list[str]
    reason: str


@dataclass
class IntegrityViolation:
    """A graph defect reported by the audit pass.

    ``kind`` is one of ``dangling``, ``asymmetric`` or ``cycle``.
    """

    kind: str
    issue_id: str
    direction: str
    target_id: str
    message: str


def index_by_id(issues: Iterable[Issue]) -> dict[str, Issue]:
    """Build an id -> issue mapping."""
    return {issue.id: issue for issue in issues}


def open_blockers(issue: Issue, by_id: Mapping[str, Issue]) -> list[str]:
    """Return the ids in ``issue.blocked_by`` that are not closed.

    Dangling ids are included: an unknown blocker never counts as closed.
    """
    blockers: list[str] = []
    for blocker_id in issue.blocked_by:
        blocker = by_id.get(blocker_id)
        if blocker is None or not blocker.is_closed():
            blockers.append(blocker_id)
    return blockers


def is_ready(issue: Issue, by_id: Mapping[str, Issue]) -> bool:
    """An open issue whose blockers are all closed."""
    return issue.status == Status.OPEN and not open_blockers(issue, by_id)


def is_blocked(issue: Issue, by_id: Mapping[str, Issue]) -> bool:
    """A non-closed issue with at least one blocker that is not closed."""
    return not issue.is_closed() and bool(open_blockers(issue, by_id))


def get_ready_work(issues: list[Issue]) -> list[Issue]:
    """Get issues ready to work, sorted by priority.

    The sort is stable, so issues with equal priority keep log order.
    """
    by_id = index_by_id(issues)
    ready = [issue for issue in issues if is_ready(issue, by_id)]
    ready.sort(key=lambda i: i.priority)
    return ready


def get_blocked_issues(issues: list[Issue]) -> list[BlockedIssue]:
    """Get all blocked issues with their blockers."""
    by_id = index_by_id(issues)
    blocked_list: list[BlockedIssue] = []
    for issue in issues:
        if issue.is_closed():
            continue
        blocking_ids = open_blockers(issue, by_id)
        if blocking_ids:
            blocked_list.append(
                BlockedIssue(
                    issue_id=issue.id,
                    blocking_ids=blocking_ids,
                    reason=f"Blocked by {len(blocking_ids)} issue(s)",
                ),
            )
    return blocked_list


def _require(by_id: Mapping[str, Issue], issue_id: str) -> Issue:
    issue = by_id.get(issue_id)
    if issue is None:
        raise NotFoundError("Issue", issue_id)
    return issue


def add_dependency(
    by_id: Mapping[str, Issue],
    issue_id: str,
    depends_on_id: str,
    now: datetime | None = None,
) -> None:
    """Record that ``issue_id`` is blocked by ``depends_on_id``.

    Updates both sides of the edge in place and is idempotent: adding an
    existing edge leaves the lists unchanged.  Cycles are not rejected here;
    ``detect_cycles`` reports them.

    Raises:
        NotFoundError: If either issue does not exist.
    """
    issue = _require(by_id, issue_id)
    blocker = _require(by_id, depends_on_id)
    now = now or utc_now()

    if depends_on_id not in issue.blocked_by:
        issue.blocked_by.append(depends_on_id)
    if issue_id not in blocker.blocks:
        blocker.blocks.append(issue_id)
    issue.touch(now)
    blocker.touch(now)


def remove_dependency(
    by_id: Mapping[str, Issue],
    issue_id: str,
    depends_on_id: str,
    now: datetime | None = None,
) -> None:
    """Remove the edge added by ``add_dependency``. Missing entries are a no-op.

    Raises:
        NotFoundError: If either issue does not exist.
    """
    issue = _require(by_id, issue_id)
    blocker = _require(by_id, depends_on_id)
    now = now or utc_now()

    issue.blocked_by = [i for i in issue.blocked_by if i != depends_on_id]
    blocker.blocks = [i for i in blocker.blocks if i != issue_id]
    issue.touch(now)
    blocker.touch(now)


def would_create_cycle(
    by_id: Mapping[str, Issue],
    issue_id: str,
    depends_on_id: str,
) -> bool:
    """Check if adding ``issue_id`` -> ``depends_on_id`` would close a cycle.

    True when ``depends_on_id`` already reaches ``issue_id`` through
    ``blocked_by`` edges (or when both ids are the same).
    """
    if issue_id == depends_on_id:
        return True

    visited: set[str] = set()
    stack = [depends_on_id]
    while stack:
        current = stack.pop()
        if current == issue_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        node = by_id.get(current)
        if node is not None:
            stack.extend(node.blocked_by)
    return False


# -- Integrity checks ------------------------------------------------------


def find_dangling_references(issues: list[Issue]) -> list[IntegrityViolation]:
    """Find ``blocks``/``blocked_by`` entries that name unknown issues."""
    known = {issue.id for issue in issues}
    violations: list[IntegrityViolation] = []
    for issue in issues:
        for direction, refs in ((BLOCKED_BY, issue.blocked_by), (BLOCKS, issue.blocks)):
            violations.extend(
                IntegrityViolation(
                    kind="dangling",
                    issue_id=issue.id,
                    direction=direction,
                    target_id=ref,
                    message=f"{issue.id}.{direction} → {ref} (not found)",
                )
                for ref in refs
                if ref not in known
            )
    return violations


def strip_dangling_references(issues: list[Issue]) -> int:
    """Remove dangling references in place. Returns how many were removed."""
    known = {issue.id for issue in issues}
    removed = 0
    for issue in issues:
        kept_blocked_by = [ref for ref in issue.blocked_by if ref in known]
        kept_blocks = [ref for ref in issue.blocks if ref in known]
        removed += len(issue.blocked_by) - len(kept_blocked_by)
        removed += len(issue.blocks) - len(kept_blocks)
        issue.blocked_by = kept_blocked_by
        issue.blocks = kept_blocks
    return removed


def find_asymmetric_links(issues: list[Issue]) -> list[IntegrityViolation]:
    """Find edges recorded on one side only.

    ``A.blocked_by ∋ B`` requires ``B.blocks ∋ A`` and vice versa.  Edges to
    unknown issues are left to ``find_dangling_references``.
    """
    by_id = index_by_id(issues)
    violations: list[IntegrityViolation] = []
    for issue in issues:
        for ref in issue.blocked_by:
            target = by_id.get(ref)
            if target is not None and issue.id not in target.blocks:
                violations.append(
                    IntegrityViolation(
                        kind="asymmetric",
                        issue_id=issue.id,
                        direction=BLOCKED_BY,
                        target_id=ref,
                        message=(
                            f"{issue.id}.blockedBy has {ref}, "
                            f"but {ref}.blocks missing {issue.id}"
                        ),
                    ),
                )
        for ref in issue.blocks:
            target = by_id.get(ref)
            if target is not None and issue.id not in target.blocked_by:
                violations.append(
                    IntegrityViolation(
                        kind="asymmetric",
                        issue_id=issue.id,
                        direction=BLOCKS,
                        target_id=ref,
                        message=(
                            f"{issue.id}.blocks has {ref}, "
                            f"but {ref}.blockedBy missing {issue.id}"
                        ),
                    ),
                )
    return violations


def repair_asymmetric_links(issues: list[Issue]) -> int:
    """Add missing back-references in place. Never removes an edge.

    Returns:
        Number of back-references added.
    """
    by_id = index_by_id(issues)
    added = 0
    for issue in issues:
        for ref in list(issue.blocked_by):
            target = by_id.get(ref)
            if target is not None and issue.id not in target.blocks:
                target.blocks.append(issue.id)
                added += 1
        for ref in list(issue.blocks):
            target = by_id.get(ref)
            if target is not None and issue.id not in target.blocked_by:
                target.blocked_by.append(issue.id)
                added += 1
    return added


def detect_cycles(issues: list[Issue]) -> list[list[str]]:
    """Detect circular dependencies over ``blocked_by`` edges using DFS.

    Returns:
        List of cycles; each is the id path with the first id repeated at
        the end (e.g., ``["a", "b", "a"]``).
    """
    graph = {issue.id: issue.blocked_by for issue in issues}
    seen_cycles: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []
    visited: set[str] = set()

    for root in graph:
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(graph[root])]
        while stack:
            for neighbor in stack[-1]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    path.append(neighbor)
                    on_path.add(neighbor)
                    stack.append(iter(graph.get(neighbor, [])))
                    break
                if neighbor in on_path:
                    cycle = [*path[path.index(neighbor) :], neighbor]
                    cycle_key = tuple(cycle)
                    if cycle_key not in seen_cycles:
                        seen_cycles.add(cycle_key)
                        cycles.append(cycle)
            else:
                # Every neighbor explored; leave this node
                stack.pop()
                on_path.discard(path.pop())

    return cycles


def summarize(issues: list[Issue]) -> dict[str, Any]:
    """Compute project statistics: counts by status, type and priority."""
    by_id = index_by_id(issues)
    status_counts = Counter(issue.status for issue in issues)
    by_type = Counter(issue.issue_type.value for issue in issues)
    by_priority = Counter(issue.priority for issue in issues)
    return {
        "total": len(issues),
        "open": status_counts[Status.OPEN],
        "inProgress": status_counts[Status.IN_PROGRESS],
        "closed": status_counts[Status.CLOSED],
        "blocked": sum(1 for issue in issues if is_blocked(issue, by_id)),
        "byType": dict(sorted(by_type.items())),
        "byPriority": {str(p): n for p, n in sorted(by_priority.items())},
    }
