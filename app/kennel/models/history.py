"""History entry model for the receipt audit log.

This module defines data structures for recording every committed
receipt change (installs, removals, promotions, clean-ups) in a JSON
Lines history file.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HistoryActionType(str, Enum):
    """Type of change recorded in history.

    Attributes:
        INSTALL: Edition installed or updated.
        UNINSTALL: Edition removed on request.
        EXPIRE: Edition removed after a period of disuse.
        PROMOTE: Pilot receipt upgraded to live without reinstalling.
        FORGET: Receipt dropped because the catalog no longer knows it.
    """

    INSTALL = "install"
    UNINSTALL = "uninstall"
    EXPIRE = "expire"
    PROMOTE = "promote"
    FORGET = "forget"


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Single package affected by a change.

    Attributes:
        basename: Package family name.
        edition: Edition string, e.g. ``"2.1"``.
    """

    basename: str
    edition: str | None = None

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.basename:
            msg = "Package basename cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {"basename": self.basename}
        if self.edition is not None:
            result["edition"] = self.edition
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryItem:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(basename=data["basename"], edition=data.get("edition"))


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single committed change.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the change happened (ISO 8601 with timezone).
        action_type: Type of change.
        items: Packages affected by this change.
        metadata: Additional context (command, computer, user).
    """

    id: str
    timestamp: str
    action_type: HistoryActionType
    items: tuple[HistoryItem, ...]
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)
        if not self.items:
            msg = "History entry must have at least one item"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action_type": self.action_type.value,
            "items": [item.to_dict() for item in self.items],
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If action_type or item data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action_type=HistoryActionType(data["action_type"]),
            items=tuple(HistoryItem.from_dict(item) for item in data["items"]),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> HistoryEntry:
        """Deserialize from a JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls.from_dict(json.loads(line.strip()))


def create_history_entry(
    action_type: HistoryActionType,
    items: list[HistoryItem],
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Create a new HistoryEntry with a fresh ID and the current time.

    Raises:
        ValueError: If items list is empty.
    """
    if not items:
        msg = "Cannot create history entry with no items"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        action_type=action_type,
        items=tuple(items),
        metadata=metadata or {},
    )
