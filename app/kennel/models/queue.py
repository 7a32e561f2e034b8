"""Logout queue entry model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from kennel.models.action import ActionType
from kennel.models.package import Edition


@dataclass(frozen=True, slots=True)
class QueueEntry:
    """A reboot-requiring action deferred to logout time.

    Attributes:
        basename: Package family name (the queue key).
        edition: Edition to install or remove.
        action: Install or uninstall.
        enqueued_at: When the entry was (last) enqueued.
    """

    basename: str
    edition: Edition
    action: ActionType
    enqueued_at: datetime

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.basename:
            msg = "Queue entry basename cannot be empty"
            raise ValueError(msg)

    @property
    def label(self) -> str:
        """Return ``basename@edition``."""
        return f"{self.basename}@{self.edition}"

    def same_request(self, other: QueueEntry) -> bool:
        """Check if two entries ask for the same thing, ignoring timestamps."""
        return (self.basename, self.edition, self.action) == (
            other.basename,
            other.edition,
            other.action,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "basename": self.basename,
            "edition": str(self.edition),
            "action": self.action.value,
            "enqueued_at": self.enqueued_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueueEntry:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If a field holds an invalid value.
        """
        return cls(
            basename=data["basename"],
            edition=Edition.parse(data["edition"]),
            action=ActionType(data["action"]),
            enqueued_at=datetime.fromisoformat(data["enqueued_at"]),
        )
