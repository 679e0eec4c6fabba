"""JSONL-based storage for issues and templates with atomic writes.

Each entity type lives in its own newline-delimited JSON log.  Reads replay
the log in file order and keep the last record for every id, so a file
produced by a naive union merge of two branches still reads consistently.
Every mutation happens under the sentinel lock of the file it touches and
lands on disk via write-to-temp-then-rename.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Generic, Protocol, TypeVar

import orjson

from seeds.config import get_project
from seeds.constants import (
    DEFAULT_LIST_LIMIT,
    ISSUES_FILE,
    LOCK_TIMEOUT_SECONDS,
    TEMPLATE_ID_PREFIX,
    TEMPLATES_FILE,
)
from seeds.convoy import ConvoyStatus, convoy_status, pour_template
from seeds.deps import (
    BlockedIssue,
    add_dependency,
    get_blocked_issues,
    get_ready_work,
    index_by_id,
    remove_dependency,
    summarize,
    would_create_cycle,
)
from seeds.errors import (
    MalformedRecordError,
    NotFoundError,
    NotInitializedError,
    StorageError,
)
from seeds.idgen import generate_id
from seeds.lock import FileLock
from seeds.models import (
    Issue,
    IssueType,
    Status,
    Template,
    TemplateStep,
    dict_to_issue,
    dict_to_template,
    issue_to_dict,
    parse_issue_type,
    parse_status,
    template_to_dict,
    utc_now,
    validate_issue,
    validate_priority,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class Record(Protocol):
    """Anything stored in a log: it only needs an ``id``."""

    id: str


T = TypeVar("T", bound=Record)


@dataclass
class RawLine:
    """One non-blank line of a log as found on disk.

    ``data`` is the parsed JSON value, or None when ``error`` is set.
    """

    line_number: int
    text: str
    data: Any = None
    error: str | None = None


def read_raw_lines(path: Path) -> list[RawLine]:
    """Parse every non-blank line of ``path`` independently.

    A missing file yields no lines.  Unparsable lines are returned with
    ``error`` set instead of raising.
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as e:
        msg = f"Failed to read {path}: {e}"
        raise StorageError(msg) from e

    lines: list[RawLine] = []
    for idx, raw in enumerate(content.decode("utf-8", errors="replace").splitlines()):
        text = raw.strip()
        if not text:
            continue
        try:
            lines.append(RawLine(idx + 1, text, data=orjson.loads(text)))
        except orjson.JSONDecodeError as e:
            lines.append(RawLine(idx + 1, text, error=str(e)))
    return lines


def reconcile(records: Iterable[T]) -> list[T]:
    """Collapse records sharing an id, keeping the last occurrence."""
    latest: dict[str, T] = {}
    for record in records:
        latest[record.id] = record
    return list(latest.values())


def atomic_write(path: Path, content: bytes) -> None:
    """Replace ``path`` with ``content`` via a temp file in the same directory.

    The temp file is fsynced before the rename, so readers see either the old
    file or the new one.  On failure the original is left untouched.

    Raises:
        StorageError: If writing or renaming fails.
    """
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f"{path.name}.tmp.",
            delete=False,
        ) as tmp_file:
            tmp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        msg = f"Failed to write {path.name}: {e}"
        raise StorageError(msg) from e


@dataclass
class Transaction(Generic[T]):
    """Working copy of a log held under its lock.

    Mutate ``records`` in place (or call ``replace``); the log is rewritten
    when the ``transaction()`` block exits cleanly.  ``replace_lines`` writes
    raw JSON lines instead, for repairs that must not re-encode records.

    ``kept_lines`` holds lines that parse as JSON but do not decode into a
    record.  A normal rewrite writes them back verbatim ahead of the records;
    only an explicit repair drops them.
    """

    records: list[T]
    lines: list[RawLine]
    raw_lines: list[str] | None = None
    kept_lines: list[str] = field(default_factory=list)
    dirty: bool = True
    added: list[T] = field(default_factory=list)

    def add(self, record: T) -> None:
        self.records.append(record)
        self.added.append(record)

    def replace(self, records: list[T]) -> None:
        self.records = list(records)

    def replace_lines(self, lines: list[str]) -> None:
        self.raw_lines = list(lines)

    def discard(self) -> None:
        """Leave the file untouched when the block exits."""
        self.dirty = False


class JSONLStore(Generic[T]):
    """One entity log: read with reconciliation, append, atomic rewrite."""

    def __init__(
        self,
        path: str | Path,
        encode: Callable[[T], dict[str, Any]],
        decode: Callable[[Any], T],
        *,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self.path = Path(path)
        self._encode = encode
        self._decode = decode
        self.lock_timeout = lock_timeout

    def lock(self) -> FileLock:
        """Return a fresh lock on this log (not yet acquired)."""
        return FileLock(self.path, timeout=self.lock_timeout)

    def serialize(self, record: T) -> bytes:
        return orjson.dumps(self._encode(record)) + b"\n"

    def read_lines(self) -> list[RawLine]:
        return read_raw_lines(self.path)

    def _decode_line(self, line: RawLine) -> T | None:
        if line.error is not None:
            logger.debug(
                "Skipping unparsable line %d in %s: %s",
                line.line_number,
                self.path.name,
                line.error,
            )
            return None
        try:
            return self._decode(line.data)
        except MalformedRecordError as e:
            logger.debug(
                "Skipping malformed record on line %d in %s: %s",
                line.line_number,
                self.path.name,
                e,
            )
            return None

    def decode_lines(self, lines: list[RawLine]) -> list[T]:
        """Decode parsed lines into records, skipping malformed ones."""
        records: list[T] = []
        for line in lines:
            record = self._decode_line(line)
            if record is not None:
                records.append(record)
        return records

    def read_all(self) -> list[T]:
        """Read the canonical collection: valid records, one per id."""
        return reconcile(self.decode_lines(self.read_lines()))

    def _append_unlocked(self, records: list[T]) -> None:
        try:
            existing = self.path.read_bytes()
        except FileNotFoundError:
            existing = b""
        except OSError as e:
            msg = f"Failed to read {self.path}: {e}"
            raise StorageError(msg) from e
        # Don't glue the new record onto a truncated last line
        if existing and not existing.endswith(b"\n"):
            existing += b"\n"
        payload = b"".join(self.serialize(r) for r in records)
        atomic_write(self.path, existing + payload)

    def append(self, record: T) -> None:
        """Append one record under the lock."""
        with self.lock():
            self._append_unlocked([record])

    def append_new(self, build: Callable[[set[str]], T]) -> T:
        """Build a record from the ids currently in use and append it.

        ``build`` runs under the lock, so an id it picks cannot be taken by a
        concurrent writer before the append lands.
        """
        with self.lock():
            taken = {record.id for record in self.read_all()}
            record = build(taken)
            self._append_unlocked([record])
        return record

    def _rewrite_unlocked(
        self,
        records: Iterable[T],
        kept_lines: Iterable[str] = (),
    ) -> None:
        kept = b"".join(f"{text}\n".encode() for text in kept_lines)
        atomic_write(self.path, kept + b"".join(self.serialize(r) for r in records))

    def rewrite_all(self, records: Iterable[T]) -> None:
        """Replace the whole log with ``records`` under the lock."""
        with self.lock():
            self._rewrite_unlocked(records)

    @contextmanager
    def transaction(self) -> Iterator[Transaction[T]]:
        """Read-modify-write under a single lock acquisition.

        Nothing is written if the block raises.
        """
        with self.lock():
            lines = self.read_lines()
            records: list[T] = []
            kept_lines: list[str] = []
            for line in lines:
                record = self._decode_line(line)
                if record is not None:
                    records.append(record)
                elif line.error is None:
                    kept_lines.append(line.text)
            txn: Transaction[T] = Transaction(
                records=reconcile(records),
                lines=lines,
                kept_lines=kept_lines,
            )
            yield txn
            if not txn.dirty:
                return
            if txn.raw_lines is not None:
                atomic_write(
                    self.path,
                    "".join(f"{line}\n" for line in txn.raw_lines).encode(),
                )
            else:
                self._rewrite_unlocked(txn.records, txn.kept_lines)


class SeedsStorage:
    """Issue and template operations over one ``.seeds`` directory.

    Holds no state besides the directory path; every call reads the logs
    afresh, so separate processes always see each other's writes.
    """

    def __init__(
        self,
        seeds_dir: str | Path,
        *,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self.seeds_dir = Path(seeds_dir)
        if not self.seeds_dir.is_dir():
            msg = (
                f"Directory '{self.seeds_dir}' does not exist. "
                "Run 'sd init' first to initialize the repository."
            )
            raise NotInitializedError(msg)
        self.issues: JSONLStore[Issue] = JSONLStore(
            self.seeds_dir / ISSUES_FILE,
            issue_to_dict,
            dict_to_issue,
            lock_timeout=lock_timeout,
        )
        self.templates: JSONLStore[Template] = JSONLStore(
            self.seeds_dir / TEMPLATES_FILE,
            template_to_dict,
            dict_to_template,
            lock_timeout=lock_timeout,
        )

    @property
    def project(self) -> str:
        return get_project(self.seeds_dir)

    # -- Issues -------------------------------------------------------------

    def create_issue(
        self,
        title: str,
        issue_type: IssueType | str = IssueType.TASK,
        priority: int = 2,
        assignee: str | None = None,
        description: str | None = None,
    ) -> Issue:
        """Create and append a new open issue.

        Raises:
            ValueError: If the title is empty or type/priority are invalid.
        """
        if isinstance(issue_type, str) and not isinstance(issue_type, IssueType):
            issue_type = parse_issue_type(issue_type)
        draft = Issue(
            id="",
            title=title.strip(),
            issue_type=issue_type,
            priority=priority,
            assignee=assignee or None,
            description=description or None,
        )
        validate_issue(draft)
        prefix = self.project

        def build(taken: set[str]) -> Issue:
            now = utc_now()
            draft.id = generate_id(prefix, taken)
            draft.created_at = now
            draft.updated_at = now
            return draft

        issue = self.issues.append_new(build)
        logger.debug("Created issue %s", issue.id)
        return issue

    def get_issue(self, issue_id: str) -> Issue:
        """Fetch one issue.

        Raises:
            NotFoundError: If no issue has this id.
        """
        for issue in self.issues.read_all():
            if issue.id == issue_id:
                return issue
        raise NotFoundError("Issue", issue_id)

    def list_issues(
        self,
        status: Status | str | None = None,
        issue_type: IssueType | str | None = None,
        assignee: str | None = None,
        limit: int | None = DEFAULT_LIST_LIMIT,
    ) -> list[Issue]:
        """List issues in log order, filtered by exact field matches."""
        issues = self.issues.read_all()
        if status:
            issues = [i for i in issues if i.status.value == Status(status).value]
        if issue_type:
            issues = [
                i for i in issues if i.issue_type.value == IssueType(issue_type).value
            ]
        if assignee:
            issues = [i for i in issues if i.assignee == assignee]
        if limit is not None and limit > 0:
            issues = issues[:limit]
        return issues

    def update_issue(
        self,
        issue_id: str,
        *,
        title: str | None = None,
        status: Status | str | None = None,
        issue_type: IssueType | str | None = None,
        priority: int | None = None,
        assignee: str | None = None,
        description: str | None = None,
    ) -> Issue:
        """Apply field changes to one issue and rewrite the log.

        Moving into ``closed`` sets ``closed_at``; moving out of it clears it.

        Raises:
            NotFoundError: If no issue has this id.
            ValueError: If a new value is invalid.
        """
        if title is not None and not title.strip():
            msg = "Issue must have a non-empty title"
            raise ValueError(msg)
        new_status = parse_status(status) if status is not None else None
        new_type = parse_issue_type(issue_type) if issue_type is not None else None
        if priority is not None:
            validate_priority(priority)

        with self.issues.transaction() as txn:
            issue = index_by_id(txn.records).get(issue_id)
            if issue is None:
                raise NotFoundError("Issue", issue_id)
            now = utc_now()
            if title is not None:
                issue.title = title.strip()
            if new_type is not None:
                issue.issue_type = new_type
            if priority is not None:
                issue.priority = priority
            if assignee is not None:
                issue.assignee = assignee or None
            if description is not None:
                issue.description = description or None
            if new_status == Status.CLOSED:
                issue.close(now=now)
            elif new_status is not None:
                issue.status = new_status
                issue.closed_at = None
            issue.touch(now)
        return issue

    def close_issues(self, issue_ids: list[str], reason: str | None = None) -> list[Issue]:
        """Close several issues in one rewrite.

        All ids are checked before anything changes, so an unknown id leaves
        the log untouched.

        Raises:
            NotFoundError: For the first id that does not exist.
        """
        with self.issues.transaction() as txn:
            by_id = index_by_id(txn.records)
            for issue_id in issue_ids:
                if issue_id not in by_id:
                    raise NotFoundError("Issue", issue_id)
            now = utc_now()
            closed: list[Issue] = []
            for issue_id in issue_ids:
                issue = by_id[issue_id]
                issue.close(reason, now)
                closed.append(issue)
        return closed

    def add_dependency(self, issue_id: str, depends_on_id: str) -> bool:
        """Record that ``issue_id`` is blocked by ``depends_on_id``.

        The edge is written even when it closes a cycle.

        Returns:
            True if the new edge closes a dependency cycle.
        """
        with self.issues.transaction() as txn:
            by_id = index_by_id(txn.records)
            closes_cycle = would_create_cycle(by_id, issue_id, depends_on_id)
            add_dependency(by_id, issue_id, depends_on_id)
        if closes_cycle:
            logger.debug("Dependency %s -> %s closes a cycle", issue_id, depends_on_id)
        return closes_cycle

    def remove_dependency(self, issue_id: str, depends_on_id: str) -> None:
        """Remove the edge between two issues, if present."""
        with self.issues.transaction() as txn:
            remove_dependency(index_by_id(txn.records), issue_id, depends_on_id)

    def dependencies(self, issue_id: str) -> tuple[list[str], list[str]]:
        """Return ``(blocked_by, blocks)`` for one issue."""
        issue = self.get_issue(issue_id)
        return list(issue.blocked_by), list(issue.blocks)

    def ready_issues(self) -> list[Issue]:
        return get_ready_work(self.issues.read_all())

    def blocked_issues(self) -> list[BlockedIssue]:
        return get_blocked_issues(self.issues.read_all())

    def stats(self) -> dict[str, Any]:
        return summarize(self.issues.read_all())

    def import_issues(self, issues: Iterable[Issue]) -> list[Issue]:
        """Add issues whose ids are not yet present, in one rewrite.

        Returns:
            The issues that were actually added.
        """
        with self.issues.transaction() as txn:
            known = {issue.id for issue in txn.records}
            for issue in issues:
                if issue.id in known:
                    logger.debug("Skipping import of existing issue %s", issue.id)
                    continue
                known.add(issue.id)
                txn.add(issue)
            if not txn.added:
                txn.discard()
        return txn.added

    # -- Templates ----------------------------------------------------------

    def create_template(self, name: str) -> Template:
        """Create an empty template.

        Raises:
            ValueError: If the name is empty.
        """
        if not name or not name.strip():
            msg = "Template must have a non-empty name"
            raise ValueError(msg)
        template = self.templates.append_new(
            lambda taken: Template(
                id=generate_id(TEMPLATE_ID_PREFIX, taken),
                name=name.strip(),
            ),
        )
        logger.debug("Created template %s", template.id)
        return template

    def add_template_step(
        self,
        template_id: str,
        title: str,
        step_type: IssueType | str = IssueType.TASK,
        priority: int = 2,
    ) -> Template:
        """Append a step to a template.

        Raises:
            NotFoundError: If the template does not exist.
            ValueError: If the title, type or priority is invalid.
        """
        if not title or not title.strip():
            msg = "Step must have a non-empty title"
            raise ValueError(msg)
        if not isinstance(step_type, IssueType):
            step_type = parse_issue_type(step_type)
        validate_priority(priority)

        with self.templates.transaction() as txn:
            for template in txn.records:
                if template.id == template_id:
                    template.steps.append(
                        TemplateStep(
                            title=title.strip(),
                            step_type=step_type.value,
                            priority=priority,
                        ),
                    )
                    return template
            raise NotFoundError("Template", template_id)

    def list_templates(self) -> list[Template]:
        return self.templates.read_all()

    def get_template(self, template_id: str) -> Template:
        """Fetch one template.

        Raises:
            NotFoundError: If no template has this id.
        """
        for template in self.templates.read_all():
            if template.id == template_id:
                return template
        raise NotFoundError("Template", template_id)

    def pour(self, template_id: str, prefix: str) -> list[Issue]:
        """Instantiate a template as a chain of new issues.

        The template log is only read; the issue log is rewritten once with
        the existing and new issues together, so a pour is all or nothing.

        Raises:
            NotFoundError: If the template does not exist.
            ValueError: If the template has no steps.
        """
        template = self.get_template(template_id)
        if not template.steps:
            msg = f"Template {template_id} has no steps"
            raise ValueError(msg)
        id_prefix = self.project

        with self.issues.transaction() as txn:
            poured = pour_template(
                template,
                prefix,
                id_prefix,
                {issue.id for issue in txn.records},
            )
            for issue in poured:
                txn.add(issue)
        logger.debug("Poured %s into %d issues", template_id, len(poured))
        return poured

    def convoy_status(self, template_id: str) -> ConvoyStatus:
        return convoy_status(self.issues.read_all(), template_id)
