"""Catalog package models.

This module defines the data structures describing packages as the
management server publishes them: a basename, a numbered edition, a
lifecycle status, scope groups and an optional expiration policy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


@dataclass(frozen=True, slots=True, order=True)
class Edition:
    """A ``(version, revision)`` build of a package.

    Editions compare on version first, then revision, so
    ``Edition(1, 9) < Edition(2, 0) < Edition(2, 1)``.

    Attributes:
        version: Major build number.
        revision: Rebuild counter within the version.
    """

    version: int
    revision: int

    def __post_init__(self) -> None:
        """Validate edition numbers after initialization."""
        if self.version < 0 or self.revision < 0:
            msg = f"Edition numbers cannot be negative: {self.version}.{self.revision}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"{self.version}.{self.revision}"

    @classmethod
    def parse(cls, value: Any) -> Edition:
        """Build an edition from its common wire forms.

        Accepts an existing Edition, a ``"2.1"`` string, a two-item
        list/tuple, or a mapping with ``version`` and ``revision`` keys.

        Raises:
            ValueError: If the value cannot be interpreted as an edition.
        """
        if isinstance(value, Edition):
            return value
        if isinstance(value, str):
            parts = value.strip().split(".")
            if len(parts) != 2:
                msg = f"Edition must look like 'VERSION.REVISION', got {value!r}"
                raise ValueError(msg)
            return cls(int(parts[0]), int(parts[1]))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(int(value[0]), int(value[1]))
        if isinstance(value, dict) and "version" in value and "revision" in value:
            return cls(int(value["version"]), int(value["revision"]))
        msg = f"Cannot interpret {value!r} as an edition"
        raise ValueError(msg)


class PackageStatus(str, Enum):
    """Server-side lifecycle status of an edition.

    Attributes:
        PILOT: Available to pilot machines for testing.
        LIVE: The edition deployed to the fleet (at most one per basename).
        DEPRECATED: Superseded; kept so existing receipts stay valid.
    """

    PILOT = "pilot"
    LIVE = "live"
    DEPRECATED = "deprecated"


class CatalogPackage(BaseModel):
    """One edition of a package as published in the server catalog.

    Attributes:
        basename: Product family shared by all editions.
        edition: The build this record describes.
        status: Lifecycle status of this edition.
        filename: Payload file name on the distribution point.
        needs_reboot: Install must be deferred to the logout queue.
        uninstallable: The payload can be removed again.
        auto_install_groups: Groups whose members get the live edition.
        excluded_groups: Groups never auto-installed, even if also included.
        expiration_days: Days of disuse after which the package is removed.
        expiration_path: Application path whose foreground usage is tracked.
        preinstall: Script run before install; non-zero exit vetoes it.
        postinstall: Script run after a successful install.
        preuninstall: Script run before uninstall; non-zero exit vetoes it.
        postuninstall: Script run after a successful uninstall.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    basename: Annotated[str, Field(min_length=1, description="Package family name")]
    edition: Annotated[Edition, Field(description="Version and revision")]
    status: Annotated[PackageStatus, Field(description="Lifecycle status")] = PackageStatus.PILOT
    filename: Annotated[str | None, Field(description="Payload file name")] = None
    needs_reboot: bool = False
    uninstallable: bool = False
    auto_install_groups: frozenset[str] = frozenset()
    excluded_groups: frozenset[str] = frozenset()
    expiration_days: Annotated[int | None, Field(ge=1)] = None
    expiration_path: str | None = None
    preinstall: str | None = None
    postinstall: str | None = None
    preuninstall: str | None = None
    postuninstall: str | None = None

    @field_validator("edition", mode="before")
    @classmethod
    def coerce_edition(cls, v: object) -> Edition:
        """Accept the string, pair and mapping forms of an edition."""
        return Edition.parse(v)

    @model_validator(mode="after")
    def validate_expiration(self) -> CatalogPackage:
        """An expiration period is meaningless without a tracked path."""
        if self.expiration_days is not None and not self.expiration_path:
            msg = f"{self.basename}: expiration_days requires expiration_path"
            raise ValueError(msg)
        return self

    @property
    def label(self) -> str:
        """Return ``basename@edition`` for logs and tables."""
        return f"{self.basename}@{self.edition}"

    @property
    def is_live(self) -> bool:
        """Check if this edition is the live one."""
        return self.status == PackageStatus.LIVE
