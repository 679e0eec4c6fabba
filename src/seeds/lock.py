"""Cross-process advisory locking with sentinel files.

A lock on ``issues.jsonl`` is the file ``issues.jsonl.lock``, created with
``O_CREAT | O_EXCL`` so that exactly one process can create it.  Holders that
crash leave the sentinel behind; it is reclaimed once its mtime is older than
the staleness threshold.  Sentinels are plain files, so they are trivially
gitignored and need no OS lock support.
"""

from __future__ import annotations

import logging
import os
import random
import time
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING

from seeds.constants import (
    LOCK_RETRY_SECONDS,
    LOCK_STALE_SECONDS,
    LOCK_SUFFIX,
    LOCK_TIMEOUT_SECONDS,
)
from seeds.errors import LockTimeoutError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


def lock_path_for(resource: str | Path) -> Path:
    """Return the sentinel path guarding ``resource``."""
    resource = Path(resource)
    return resource.with_name(resource.name + LOCK_SUFFIX)


class FileLock:
    """Exclusive lease on one data file, shared across processes.

    Usage:
        with FileLock(seeds_dir / "issues.jsonl"):
            # read, modify, write
            ...
    """

    def __init__(
        self,
        resource: str | Path,
        *,
        timeout: float = LOCK_TIMEOUT_SECONDS,
        stale_after: float = LOCK_STALE_SECONDS,
        retry_interval: float = LOCK_RETRY_SECONDS,
    ) -> None:
        self.resource = Path(resource)
        self.path = lock_path_for(self.resource)
        self.timeout = timeout
        self.stale_after = stale_after
        self.retry_interval = retry_interval
        self._held = False

    @property
    def held(self) -> bool:
        """Whether this instance currently owns the sentinel."""
        return self._held

    def _try_create(self) -> bool:
        """Attempt to create the sentinel. Returns False if it already exists."""
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        try:
            os.write(fd, f"{os.getpid()}\n".encode())
        finally:
            os.close(fd)
        return True

    def _reclaim_if_stale(self) -> bool:
        """Delete the sentinel if its holder looks dead.

        Returns True if the caller should retry immediately, either because
        a stale sentinel was removed or because it vanished in the meantime.
        """
        try:
            judged = self.path.stat()
        except FileNotFoundError:
            return True
        age = time.time() - judged.st_mtime
        if age <= self.stale_after:
            return False

        # Only one waiter can win the rename; losers see FileNotFoundError
        grave = self.path.with_name(
            f"{self.path.stem}.{os.getpid()}-{random.getrandbits(32):08x}.stale{LOCK_SUFFIX}",
        )
        try:
            os.rename(self.path, grave)
        except FileNotFoundError:
            return True
        try:
            moved = grave.stat()
            if (moved.st_ino, moved.st_mtime_ns) != (judged.st_ino, judged.st_mtime_ns):
                # A new holder took the lock between stat and rename; put it back
                logger.debug("Lock %s changed hands, not reclaiming", self.path)
                with suppress(FileExistsError):
                    os.link(grave, self.path)
                return True
            logger.warning(
                "Removing stale lock %s (%.0fs old)",
                self.path,
                age,
            )
        finally:
            grave.unlink(missing_ok=True)
        return True

    def acquire(self) -> None:
        """Block until the lock is held.

        Raises:
            LockTimeoutError: If the lock is still held by someone else after
                ``timeout`` seconds.
        """
        start = time.monotonic()
        while True:
            if self._try_create():
                self._held = True
                return
            if self._reclaim_if_stale():
                continue
            if time.monotonic() - start > self.timeout:
                raise LockTimeoutError(str(self.resource), self.timeout)
            # Jitter keeps waiting processes from retrying in lockstep
            delay = self.retry_interval + random.uniform(0, self.retry_interval)
            logger.debug("Lock %s busy, retrying in %.3fs", self.path, delay)
            time.sleep(delay)

    def release(self) -> None:
        """Delete the sentinel. Best-effort: a missing sentinel is not an error."""
        if not self._held:
            return
        self._held = False
        try:
            self.path.unlink()
        except OSError:
            logger.debug("Lock %s already gone on release", self.path, exc_info=True)

    def __enter__(self) -> FileLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


@contextmanager
def file_lock(resource: str | Path, **kwargs: float) -> Iterator[FileLock]:
    """Hold the lock for ``resource`` for the duration of the block.

    The lock is released on every exit path, including exceptions.
    """
    lock = FileLock(resource, **kwargs)
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()
