"""Audit and repair of a .seeds directory.

Pure diagnosis lives in the ``check_*`` functions; ``apply_fixes`` is the only
code path that rewrites the logs to repair historical defects.  Each repair
runs under the lock of the file it rewrites and goes through the atomic
rewrite, so a given defect class ends up either fully repaired or untouched.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from seeds.config import load_config, project_root
from seeds.constants import (
    GITATTRIBUTES_ENTRIES,
    ISSUES_FILE,
    LOCK_STALE_SECONDS,
    TEMPLATES_FILE,
)
from seeds.deps import (
    detect_cycles,
    find_asymmetric_links,
    find_dangling_references,
    repair_asymmetric_links,
    strip_dangling_references,
)
from seeds.lock import lock_path_for
from seeds.models import VALID_STATUSES, VALID_TYPES
from seeds.storage import SeedsStorage, atomic_write, read_raw_lines

if TYPE_CHECKING:
    from seeds.models import Issue
    from seeds.storage import JSONLStore

logger = logging.getLogger(__name__)

_LOG_FILES = (ISSUES_FILE, TEMPLATES_FILE)


class CheckStatus(str, Enum):
    """Outcome of a single doctor check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class DoctorCheck:
    """Result of one named check."""

    name: str
    status: CheckStatus
    message: str
    details: list[str] = field(default_factory=list[str])
    fixable: bool = False

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "fixable": self.fixable,
        }


def _passed(name: str, message: str) -> DoctorCheck:
    return DoctorCheck(name=name, status=CheckStatus.PASS, message=message)


# -- Checks -----------------------------------------------------------------


def check_config(seeds_dir: Path) -> DoctorCheck:
    """The data directory exists and config.yaml names a project."""
    if not seeds_dir.is_dir():
        return DoctorCheck("config", CheckStatus.FAIL, ".seeds/ directory not found")
    config = load_config(seeds_dir)
    if not config:
        return DoctorCheck(
            "config",
            CheckStatus.FAIL,
            "config.yaml is missing or unparseable",
        )
    if not config.get("project"):
        return DoctorCheck(
            "config",
            CheckStatus.FAIL,
            "config.yaml missing required 'project' field",
        )
    return _passed("config", "Config is valid")


def check_jsonl_integrity(seeds_dir: Path) -> DoctorCheck:
    """Every non-blank line of both logs parses as JSON."""
    details: list[str] = []
    for name in _LOG_FILES:
        details.extend(
            f"{name} line {line.line_number}: {line.error}"
            for line in read_raw_lines(seeds_dir / name)
            if line.error is not None
        )
    if details:
        return DoctorCheck(
            "jsonl-integrity",
            CheckStatus.FAIL,
            f"{len(details)} malformed line(s) in JSONL files",
            details,
            fixable=True,
        )
    return _passed("jsonl-integrity", "All JSONL lines parse correctly")


def _schema_problems(data: Any, line_number: int) -> list[str]:
    if not isinstance(data, dict):
        return [f"line {line_number}: expected JSON object"]
    record_id = data.get("id")
    label = record_id if isinstance(record_id, str) and record_id else f"line {line_number}"
    problems = [
        f"{label}: missing or invalid '{key}'"
        for key in ("id", "title", "createdAt", "updatedAt")
        if not isinstance(data.get(key), str) or not data.get(key)
    ]
    status = data.get("status")
    if isinstance(status, str) and status not in VALID_STATUSES:
        problems.append(f"{label}: invalid status '{status}'")
    issue_type = data.get("type")
    if isinstance(issue_type, str) and issue_type not in VALID_TYPES:
        problems.append(f"{label}: invalid type '{issue_type}'")
    priority = data.get("priority")
    if isinstance(priority, int) and not 0 <= priority <= 4:
        problems.append(f"{label}: invalid priority {priority} (must be 0-4)")
    return problems


def check_schema(seeds_dir: Path) -> DoctorCheck:
    """Issue records carry the required fields with valid values."""
    details: list[str] = []
    for line in read_raw_lines(seeds_dir / ISSUES_FILE):
        if line.error is None:
            details.extend(_schema_problems(line.data, line.line_number))
    if details:
        return DoctorCheck(
            "schema-validation",
            CheckStatus.FAIL,
            f"{len(details)} schema violation(s)",
            details,
        )
    return _passed("schema-validation", "All issues have valid schema")


def _id_counts(path: Path) -> Counter[str]:
    return Counter(
        line.data["id"]
        for line in read_raw_lines(path)
        if isinstance(line.data, dict) and isinstance(line.data.get("id"), str)
    )


def check_duplicate_ids(seeds_dir: Path) -> DoctorCheck:
    """No id appears on more than one line of the raw log."""
    details: list[str] = []
    for name in _LOG_FILES:
        details.extend(
            f"{record_id} appears {count} times in {name}"
            for record_id, count in _id_counts(seeds_dir / name).items()
            if count > 1
        )
    if details:
        return DoctorCheck(
            "duplicate-ids",
            CheckStatus.WARN,
            f"{len(details)} duplicate ID(s) found",
            details,
            fixable=True,
        )
    return _passed("duplicate-ids", "No duplicate IDs")


def check_referential_integrity(issues: list[Issue]) -> DoctorCheck:
    details = [v.message for v in find_dangling_references(issues)]
    if details:
        return DoctorCheck(
            "referential-integrity",
            CheckStatus.WARN,
            f"{len(details)} dangling dependency reference(s)",
            details,
            fixable=True,
        )
    return _passed("referential-integrity", "All dependency references are valid")


def check_bidirectional(issues: list[Issue]) -> DoctorCheck:
    details = [v.message for v in find_asymmetric_links(issues)]
    if details:
        return DoctorCheck(
            "bidirectional-consistency",
            CheckStatus.WARN,
            f"{len(details)} bidirectional mismatch(es)",
            details,
            fixable=True,
        )
    return _passed("bidirectional-consistency", "All dependency links are bidirectional")


def check_cycles(issues: list[Issue]) -> DoctorCheck:
    """Report dependency cycles. Never fixable: any edge may be intended."""
    cycles = detect_cycles(issues)
    if cycles:
        return DoctorCheck(
            "circular-dependencies",
            CheckStatus.WARN,
            f"{len(cycles)} circular dependency chain(s) found",
            [" → ".join(cycle) for cycle in cycles],
        )
    return _passed("circular-dependencies", "No circular dependencies")


def _lock_age(path: Path) -> float | None:
    try:
        return time.time() - path.stat().st_mtime
    except FileNotFoundError:
        return None


def check_stale_locks(seeds_dir: Path) -> DoctorCheck:
    """Report lock sentinels left on disk."""
    details: list[str] = []
    for name in _LOG_FILES:
        age = _lock_age(lock_path_for(seeds_dir / name))
        if age is None:
            continue
        if age > LOCK_STALE_SECONDS:
            details.append(f"{name}.lock is stale ({age:.0f}s old)")
        else:
            details.append(f"{name}.lock exists ({age:.0f}s old, may be active)")
    if details:
        return DoctorCheck(
            "stale-locks",
            CheckStatus.WARN,
            f"{len(details)} lock file(s) found",
            details,
            fixable=True,
        )
    return _passed("stale-locks", "No stale lock files")


def _gitattributes_path(seeds_dir: Path) -> Path:
    return project_root(seeds_dir) / ".gitattributes"


def _missing_gitattributes(seeds_dir: Path) -> list[str]:
    path = _gitattributes_path(seeds_dir)
    if not path.exists():
        return list(GITATTRIBUTES_ENTRIES)
    present = {line.strip() for line in path.read_text().splitlines()}
    return [entry for entry in GITATTRIBUTES_ENTRIES if entry not in present]


def check_gitattributes(seeds_dir: Path) -> DoctorCheck:
    """Both logs are marked ``merge=union`` in the project .gitattributes."""
    path = _gitattributes_path(seeds_dir)
    if not path.exists():
        details = [".gitattributes file not found"]
    else:
        details = [f"Missing: {entry}" for entry in _missing_gitattributes(seeds_dir)]
    if details:
        return DoctorCheck(
            "gitattributes",
            CheckStatus.WARN,
            "Missing merge=union gitattributes entries",
            details,
            fixable=True,
        )
    return _passed("gitattributes", "Gitattributes configured correctly")


def run_checks(seeds_dir: str | Path) -> list[DoctorCheck]:
    """Run every check in order.

    If the config check fails, the remaining checks are skipped.
    """
    seeds_dir = Path(seeds_dir)
    config_check = check_config(seeds_dir)
    if not config_check.passed:
        return [config_check]

    issues = SeedsStorage(seeds_dir).issues.read_all()
    return [
        config_check,
        check_jsonl_integrity(seeds_dir),
        check_schema(seeds_dir),
        check_duplicate_ids(seeds_dir),
        check_referential_integrity(issues),
        check_bidirectional(issues),
        check_cycles(issues),
        check_stale_locks(seeds_dir),
        check_gitattributes(seeds_dir),
    ]


# -- Fixes ------------------------------------------------------------------


def _drop_malformed_lines(store: JSONLStore[Any]) -> int:
    with store.transaction() as txn:
        valid = [line.text for line in txn.lines if line.error is None]
        removed = len(txn.lines) - len(valid)
        if removed:
            txn.replace_lines(valid)
        else:
            txn.discard()
    return removed


def _dedupe_lines(store: JSONLStore[Any]) -> bool:
    """Rewrite the log keeping only the last parsed line for each id.

    Works on raw JSON so that records the decoder would reject survive.
    """
    with store.transaction() as txn:
        latest: dict[Any, str] = {}
        for line in txn.lines:
            if line.error is not None:
                continue
            data = line.data
            if isinstance(data, dict) and isinstance(data.get("id"), str):
                latest[data["id"]] = line.text
            else:
                latest[("line", line.line_number)] = line.text
        parsed = sum(1 for line in txn.lines if line.error is None)
        if len(latest) < parsed:
            txn.replace_lines(list(latest.values()))
            return True
        txn.discard()
    return False


def _fix_dangling(storage: SeedsStorage) -> int:
    with storage.issues.transaction() as txn:
        removed = strip_dangling_references(txn.records)
        if not removed:
            txn.discard()
    return removed


def _fix_bidirectional(storage: SeedsStorage) -> int:
    with storage.issues.transaction() as txn:
        added = repair_asymmetric_links(txn.records)
        if not added:
            txn.discard()
    return added


def _remove_stale_locks(seeds_dir: Path) -> list[str]:
    removed: list[str] = []
    for name in _LOG_FILES:
        lock_path = lock_path_for(seeds_dir / name)
        age = _lock_age(lock_path)
        if age is not None and age > LOCK_STALE_SECONDS:
            lock_path.unlink(missing_ok=True)
            removed.append(name)
    return removed


def ensure_gitattributes(seeds_dir: Path) -> str | None:
    """Add any missing merge=union entries to the project .gitattributes.

    Returns:
        A description of the change, or None if nothing was missing.
    """
    path = _gitattributes_path(seeds_dir)
    missing = _missing_gitattributes(seeds_dir)
    if not missing:
        return None
    if not path.exists():
        atomic_write(path, "".join(f"{e}\n" for e in missing).encode())
        return "Created .gitattributes with merge=union entries"
    content = path.read_text()
    separator = "" if not content or content.endswith("\n") else "\n"
    suffix = "".join(f"{e}\n" for e in missing)
    atomic_write(path, f"{content}{separator}{suffix}".encode())
    return "Added missing merge=union entries to .gitattributes"


def apply_fixes(seeds_dir: str | Path, checks: list[DoctorCheck]) -> list[str]:
    """Repair every fixable, non-passing check.

    Returns:
        Human-readable descriptions of what was changed.
    """
    seeds_dir = Path(seeds_dir)
    storage = SeedsStorage(seeds_dir)
    stores = {ISSUES_FILE: storage.issues, TEMPLATES_FILE: storage.templates}
    fixed: list[str] = []

    for check in checks:
        if check.passed or not check.fixable:
            continue

        if check.name == "jsonl-integrity":
            for name, store in stores.items():
                removed = _drop_malformed_lines(store)
                if removed:
                    fixed.append(f"Removed {removed} malformed line(s) from {name}")
        elif check.name == "duplicate-ids":
            for name, store in stores.items():
                if _dedupe_lines(store):
                    fixed.append(f"Deduplicated {name}")
        elif check.name == "referential-integrity":
            if _fix_dangling(storage):
                fixed.append("Removed dangling dependency references")
        elif check.name == "bidirectional-consistency":
            if _fix_bidirectional(storage):
                fixed.append("Added missing bidirectional dependency links")
        elif check.name == "stale-locks":
            fixed.extend(f"Removed stale {name}.lock" for name in _remove_stale_locks(seeds_dir))
        elif check.name == "gitattributes":
            message = ensure_gitattributes(seeds_dir)
            if message:
                fixed.append(message)

    for message in fixed:
        logger.info("doctor: %s", message)
    return fixed
