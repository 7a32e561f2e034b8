"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from kennel.core.catalog import Catalog
from kennel.models.package import CatalogPackage, Edition, PackageStatus
from kennel.models.receipt import InstallType, Receipt

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config and state directories at a temporary location."""
    monkeypatch.setenv("KENNEL_CONFIG_DIR", str(tmp_path / "etc"))
    monkeypatch.setenv("KENNEL_STATE_DIR", str(tmp_path / "state"))
    return tmp_path


@pytest.fixture(autouse=True)
def reset_kennel_logger() -> Iterator[None]:
    """Undo logging configuration done by CLI entry points."""
    logger = logging.getLogger("kennel")
    level = logger.level
    handlers = list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.handlers[:] = handlers


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation time."""
    return NOW


@pytest.fixture
def make_package() -> Callable[..., CatalogPackage]:
    """Factory for catalog editions with sensible defaults."""

    def _make(
        basename: str = "app",
        edition: str = "1.0",
        status: PackageStatus = PackageStatus.LIVE,
        **kwargs: Any,
    ) -> CatalogPackage:
        kwargs.setdefault("filename", f"{basename}-{edition}.pkg")
        return CatalogPackage(basename=basename, edition=edition, status=status, **kwargs)

    return _make


@pytest.fixture
def make_receipt() -> Callable[..., Receipt]:
    """Factory for receipts."""

    def _make(
        basename: str = "app",
        edition: str = "1.0",
        install_type: InstallType = InstallType.LIVE,
        installed_at: datetime = NOW,
    ) -> Receipt:
        return Receipt(
            basename=basename,
            edition=Edition.parse(edition),
            install_type=install_type,
            installed_at=installed_at,
        )

    return _make


@pytest.fixture
def catalog_of() -> Callable[..., Catalog]:
    """Build a Catalog from packages."""

    def _make(*packages: CatalogPackage) -> Catalog:
        return Catalog(packages)

    return _make
