"""Indexed view of the server package catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from kennel.core.errors import CatalogInconsistency
from kennel.models.package import CatalogPackage, Edition

logger = logging.getLogger(__name__)


class Catalog:
    """All catalog editions grouped by basename.

    Lookups never raise for unknown basenames or editions; they return
    None so callers can treat "not in the catalog" as data.
    """

    def __init__(self, packages: Iterable[CatalogPackage]) -> None:
        self._editions: dict[str, dict[Edition, CatalogPackage]] = {}
        for package in packages:
            editions = self._editions.setdefault(package.basename, {})
            if package.edition in editions:
                logger.warning("Catalog lists %s twice; keeping the last record", package.label)
            editions[package.edition] = package

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> Catalog:
        """Build a catalog from raw API records, dropping malformed ones.

        A record that fails validation is logged and skipped so that one
        bad entry cannot hide the rest of the catalog.
        """
        packages: list[CatalogPackage] = []
        for index, record in enumerate(records):
            try:
                packages.append(CatalogPackage.model_validate(record))
            except ValidationError as e:
                name = record.get("basename", f"#{index}") if isinstance(record, Mapping) else index
                logger.warning("Skipping malformed catalog record %s: %s", name, e)
        return cls(packages)

    def __len__(self) -> int:
        return sum(len(editions) for editions in self._editions.values())

    def __contains__(self, basename: object) -> bool:
        return basename in self._editions

    def basenames(self) -> set[str]:
        return set(self._editions)

    def editions(self, basename: str) -> dict[Edition, CatalogPackage]:
        """Return every known edition of ``basename``."""
        return dict(self._editions.get(basename, {}))

    def find(self, basename: str, edition: Edition) -> CatalogPackage | None:
        """Return the record for one edition, if the catalog has it."""
        return self._editions.get(basename, {}).get(edition)

    def live(self, basename: str) -> CatalogPackage | None:
        """Return the live edition of ``basename``, if there is one.

        Raises:
            CatalogInconsistency: If more than one edition is live.
        """
        live = [p for p in self._editions.get(basename, {}).values() if p.is_live]
        if len(live) > 1:
            labels = ", ".join(sorted(str(p.edition) for p in live))
            raise CatalogInconsistency(f"{basename} has several live editions: {labels}")
        return live[0] if live else None
