"""Unit tests for the host info store."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from kennel.core.errors import LookupNotFound, StoreError
from kennel.core.hostinfo import (
    LAST_SYNC_KEY,
    HostInfoKeyError,
    HostInfoStore,
    ValueType,
    coerce_value,
    value_type_of,
)


@pytest.fixture
def store(tmp_path: Path) -> HostInfoStore:
    """Host info store in a temporary directory."""
    return HostInfoStore(tmp_path / "hostinfo.toml")


class TestCoerceValue:
    """Tests for coerce_value and value_type_of."""

    @pytest.mark.parametrize(
        ("text", "value_type", "expected"),
        [
            ("hello", ValueType.STRING, "hello"),
            ("", ValueType.STRING, ""),
            ("42", ValueType.INTEGER, 42),
            ("2.5", ValueType.REAL, 2.5),
            ("yes", ValueType.BOOL, True),
            ("False", ValueType.BOOL, False),
            ("2026-03-01T12:00:00+00:00", ValueType.DATE, datetime(2026, 3, 1, 12, tzinfo=UTC)),
            ("2026-03-01", ValueType.DATE, datetime(2026, 3, 1, tzinfo=UTC)),
        ],
    )
    def test_valid_values(self, text: str, value_type: ValueType, expected: object) -> None:
        """Text converts to the requested type."""
        value = coerce_value(text, value_type)
        assert value == expected
        assert value_type_of(value) == value_type

    @pytest.mark.parametrize(
        ("text", "value_type"),
        [("forty", ValueType.INTEGER), ("x", ValueType.REAL), ("maybe", ValueType.BOOL)],
    )
    def test_invalid_values(self, text: str, value_type: ValueType) -> None:
        """Text that does not fit the type raises ValueError."""
        with pytest.raises(ValueError):
            coerce_value(text, value_type)

    def test_bool_is_not_integer(self) -> None:
        """Booleans keep their own tag."""
        assert value_type_of(True) == ValueType.BOOL


class TestHostInfoStore:
    """Tests for HostInfoStore get/set/delete."""

    def test_typed_values_roundtrip(self, store: HostInfoStore) -> None:
        """Every supported type survives a write and read."""
        when = datetime(2026, 3, 1, 12, tzinfo=UTC)
        store.set("asset", "A1234")
        store.set("seats", 3)
        store.set("ratio", 0.75)
        store.set("loaner", False)
        store.set("enrolled", when)
        assert store.get("asset") == "A1234"
        assert store.get("seats") == 3
        assert store.get("ratio") == 0.75
        assert store.get("loaner") is False
        assert store.get("enrolled") == when

    def test_missing_key_raises(self, store: HostInfoStore) -> None:
        """A missing key raises HostInfoKeyError, a LookupNotFound."""
        with pytest.raises(HostInfoKeyError) as exc_info:
            store.get("absent")
        assert isinstance(exc_info.value, LookupNotFound)
        assert exc_info.value.exit_code == 2

    def test_empty_value_is_not_missing(self, store: HostInfoStore) -> None:
        """An empty string is a present value."""
        store.set("note", "")
        assert store.get("note") == ""

    def test_delete(self, store: HostInfoStore) -> None:
        """delete removes the key; deleting again raises."""
        store.set("asset", "A1234")
        store.delete("asset")
        with pytest.raises(HostInfoKeyError):
            store.get("asset")
        with pytest.raises(HostInfoKeyError):
            store.delete("asset")

    def test_empty_key_rejected(self, store: HostInfoStore) -> None:
        """Keys cannot be empty."""
        with pytest.raises(ValueError):
            store.set("", "x")

    def test_stamp_last_sync(self, store: HostInfoStore) -> None:
        """stamp_last_sync stores a date under last_sync."""
        when = datetime(2026, 3, 1, 12, tzinfo=UTC)
        store.stamp_last_sync(when)
        assert store.get(LAST_SYNC_KEY) == when
        assert store.items() == {LAST_SYNC_KEY: when}

    def test_invalid_toml_raises(self, store: HostInfoStore) -> None:
        """A damaged record is a store error."""
        store.path.write_text("values = [")
        with pytest.raises(StoreError):
            store.get("anything")
