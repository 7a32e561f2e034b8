"""Receipt model for locally installed packages.

A receipt records which edition of a basename is installed on this
machine and whether it came in as a pilot or a live install.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from kennel.models.package import Edition


class InstallType(str, Enum):
    """How an edition arrived on the machine.

    Attributes:
        PILOT: Installed for testing; frozen against auto-update and expiry.
        LIVE: Installed (or promoted) as the fleet edition.
    """

    PILOT = "pilot"
    LIVE = "live"


@dataclass(frozen=True, slots=True)
class Receipt:
    """Record of one installed basename.

    Attributes:
        basename: Package family name.
        edition: Installed edition.
        install_type: Pilot or live.
        installed_at: When the install was committed (timezone aware).
    """

    basename: str
    edition: Edition
    install_type: InstallType
    installed_at: datetime

    def __post_init__(self) -> None:
        """Validate receipt data after initialization."""
        if not self.basename:
            msg = "Receipt basename cannot be empty"
            raise ValueError(msg)

    @property
    def is_pilot(self) -> bool:
        """Check if this is a pilot receipt."""
        return self.install_type == InstallType.PILOT

    @property
    def is_live(self) -> bool:
        """Check if this is a live receipt."""
        return self.install_type == InstallType.LIVE

    @property
    def label(self) -> str:
        """Return ``basename@edition``."""
        return f"{self.basename}@{self.edition}"

    def promoted(self) -> Receipt:
        """Return a copy of this receipt marked live."""
        return replace(self, install_type=InstallType.LIVE)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "basename": self.basename,
            "edition": str(self.edition),
            "install_type": self.install_type.value,
            "installed_at": self.installed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Receipt:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If a field holds an invalid value.
        """
        return cls(
            basename=data["basename"],
            edition=Edition.parse(data["edition"]),
            install_type=InstallType(data["install_type"]),
            installed_at=datetime.fromisoformat(data["installed_at"]),
        )
