"""Persisted logout queue.

The queue is an insertion-ordered set of QueueEntry keyed by basename.
Writers (sync enqueueing, the logout installer dequeueing, the explicit
``queue remove`` command) serialise through an exclusive flock on a
sidecar lock file, so a sync that runs during a drain cannot corrupt it.
"""

from __future__ import annotations

import fcntl
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from kennel.core.errors import StoreError
from kennel.core.paths import get_queue_path
from kennel.core.storage import atomic_write
from kennel.models.queue import QueueEntry

logger = logging.getLogger(__name__)


class LogoutQueue:
    """Machine-local queue of reboot-requiring actions.

    Storage location: /var/lib/kennel/logout-queue.json
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else get_queue_path()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock_path(self) -> Path:
        return self._path.with_suffix(".lock")

    def entries(self) -> list[QueueEntry]:
        """Return all entries in drain (insertion) order."""
        with self._locked():
            return self._read()

    def get(self, basename: str) -> QueueEntry | None:
        """Return the entry for ``basename``, if queued."""
        for entry in self.entries():
            if entry.basename == basename:
                return entry
        return None

    def is_empty(self) -> bool:
        return not self.entries()

    def enqueue(self, entry: QueueEntry) -> None:
        """Add ``entry``, replacing any earlier entry for the same basename.

        The replacement moves to the end of the drain order.
        """
        with self.transaction() as entries:
            entries[:] = [e for e in entries if e.basename != entry.basename]
            entries.append(entry)
        logger.info("Queued %s %s for logout", entry.action.value, entry.label)

    def remove(self, basename: str) -> bool:
        """Remove the entry for ``basename``.

        Returns:
            True if an entry was removed.
        """
        with self.transaction() as entries:
            before = len(entries)
            entries[:] = [e for e in entries if e.basename != basename]
            removed = len(entries) != before
        if removed:
            logger.info("Dequeued %s", basename)
        return removed

    def discard(self, entry: QueueEntry) -> bool:
        """Remove ``entry`` only if it is still the queued request.

        A newer request for the same basename enqueued in the meantime
        is left in place.

        Returns:
            True if the entry was removed.
        """
        with self.transaction() as entries:
            before = len(entries)
            entries[:] = [e for e in entries if not e.same_request(entry)]
            return len(entries) != before

    @contextmanager
    def transaction(self) -> Iterator[list[QueueEntry]]:
        """Hold the queue lock and yield a mutable entry list.

        The list is written back when the block exits without error.
        Transactions must not be nested.

        Raises:
            StoreError: If the queue cannot be read or written.
        """
        with self._locked():
            entries = self._read()
            yield entries
            self._write(entries)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            lock_file = self.lock_path.open("a")
        except OSError as e:
            raise StoreError(f"Cannot open queue lock {self.lock_path}: {e}") from e
        with lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _read(self) -> list[QueueEntry]:
        if not self._path.exists():
            return []

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read logout queue {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Logout queue {self._path} is not a JSON object")

        entries: list[QueueEntry] = []
        seen: set[str] = set()
        for record in data.get("entries", []):
            try:
                entry = QueueEntry.from_dict(record)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt queue entry %r: %s", record, e)
                continue
            if entry.basename in seen:
                logger.warning("Dropping duplicate queue entry for %s", entry.basename)
                continue
            seen.add(entry.basename)
            entries.append(entry)
        return entries

    def _write(self, entries: list[QueueEntry]) -> None:
        document = {"entries": [entry.to_dict() for entry in entries]}
        try:
            atomic_write(self._path, json.dumps(document, indent=2).encode("utf-8"))
        except OSError as e:
            raise StoreError(f"Cannot write logout queue {self._path}: {e}") from e
