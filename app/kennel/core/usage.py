"""Foreground usage telemetry reader.

An external daemon records, per application path, when the application
was last brought to the foreground. It writes a JSON object mapping
paths to ISO 8601 timestamps (or POSIX epoch seconds). kennel only
reads it.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from kennel.core.errors import TransientResourceFailure

logger = logging.getLogger(__name__)


class UsageSource(Protocol):
    """Anything that can answer last-foreground queries."""

    def last_foreground(self, path: str) -> datetime | None:
        """Return when ``path`` was last in the foreground, if ever."""
        ...


class UsageStore:
    """Snapshot of the usage daemon's records.

    The file is read once on construction so that a whole sync run sees
    one consistent snapshot.
    """

    def __init__(self, records: dict[str, datetime]) -> None:
        self._records = dict(records)

    @classmethod
    def from_file(cls, path: Path) -> UsageStore:
        """Load a snapshot from the daemon's JSON file.

        Entries with unreadable timestamps are skipped with a warning.

        Raises:
            TransientResourceFailure: If the file is missing or unreadable.
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise TransientResourceFailure(f"Usage telemetry not found: {path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise TransientResourceFailure(f"Cannot read usage telemetry {path}: {e}") from e

        if not isinstance(data, dict):
            raise TransientResourceFailure(f"Usage telemetry {path} is not a JSON object")

        records: dict[str, datetime] = {}
        for app_path, raw in data.items():
            try:
                records[app_path] = _parse_timestamp(raw)
            except (TypeError, ValueError, OverflowError) as e:
                logger.warning("Skipping usage record for %s: %s", app_path, e)
        return cls(records)

    def last_foreground(self, path: str) -> datetime | None:
        return self._records.get(path)

    def __len__(self) -> int:
        return len(self._records)


def _parse_timestamp(raw: object) -> datetime:
    if isinstance(raw, bool):
        msg = f"not a timestamp: {raw!r}"
        raise TypeError(msg)
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw, tz=UTC)
    if isinstance(raw, str):
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        # Naive daemon timestamps are UTC
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    msg = f"not a timestamp: {raw!r}"
    raise TypeError(msg)
