"""Unit tests for the Catalog index."""

import logging

import pytest
from kennel.core.catalog import Catalog
from kennel.core.errors import CatalogInconsistency
from kennel.models.package import CatalogPackage, Edition


class TestCatalogLookup:
    """Tests for Catalog lookups."""

    def test_find_known_and_unknown(self) -> None:
        """find returns the record or None."""
        catalog = Catalog([CatalogPackage(basename="app", edition="1.0")])
        assert catalog.find("app", Edition(1, 0)) is not None
        assert catalog.find("app", Edition(9, 9)) is None
        assert catalog.find("other", Edition(1, 0)) is None

    def test_len_counts_editions(self) -> None:
        """len counts editions across basenames."""
        catalog = Catalog(
            [
                CatalogPackage(basename="app", edition="1.0"),
                CatalogPackage(basename="app", edition="2.0"),
                CatalogPackage(basename="tool", edition="1.0"),
            ]
        )
        assert len(catalog) == 3
        assert catalog.basenames() == {"app", "tool"}
        assert "app" in catalog
        assert "missing" not in catalog
        assert set(catalog.editions("app")) == {Edition(1, 0), Edition(2, 0)}

    def test_duplicate_edition_keeps_last(self, caplog: pytest.LogCaptureFixture) -> None:
        """A repeated edition logs a warning and the last record wins."""
        with caplog.at_level(logging.WARNING):
            catalog = Catalog(
                [
                    CatalogPackage(basename="app", edition="1.0", filename="old.pkg"),
                    CatalogPackage(basename="app", edition="1.0", filename="new.pkg"),
                ]
            )
        found = catalog.find("app", Edition(1, 0))
        assert found is not None
        assert found.filename == "new.pkg"
        assert "twice" in caplog.text


class TestCatalogLive:
    """Tests for Catalog.live."""

    def test_single_live_edition(self) -> None:
        """The live edition is returned."""
        catalog = Catalog(
            [
                CatalogPackage(basename="app", edition="1.0", status="deprecated"),
                CatalogPackage(basename="app", edition="2.0", status="live"),
                CatalogPackage(basename="app", edition="3.0", status="pilot"),
            ]
        )
        live = catalog.live("app")
        assert live is not None
        assert live.edition == Edition(2, 0)

    def test_no_live_edition(self) -> None:
        """None when nothing is live."""
        catalog = Catalog([CatalogPackage(basename="app", edition="1.0")])
        assert catalog.live("app") is None
        assert catalog.live("missing") is None

    def test_several_live_editions_raise(self) -> None:
        """More than one live edition is inconsistent."""
        catalog = Catalog(
            [
                CatalogPackage(basename="app", edition="1.0", status="live"),
                CatalogPackage(basename="app", edition="2.0", status="live"),
            ]
        )
        with pytest.raises(CatalogInconsistency, match="several live editions"):
            catalog.live("app")


class TestFromRecords:
    """Tests for Catalog.from_records."""

    def test_malformed_records_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Invalid records are dropped; valid ones kept."""
        with caplog.at_level(logging.WARNING):
            catalog = Catalog.from_records(
                [
                    {"basename": "app", "edition": "1.0", "status": "live"},
                    {"basename": "broken", "edition": "not-an-edition"},
                    {"edition": "1.0"},
                ]
            )
        assert catalog.basenames() == {"app"}
        assert "broken" in caplog.text
