"""Host info key/value record.

A small persisted record of typed facts about this machine, such as
when the last sync ran. Values are stored in TOML, which natively
round-trips every supported type.
"""

from __future__ import annotations

import logging
import tomllib
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

import tomli_w

from kennel.core.errors import LookupNotFound, StoreError
from kennel.core.paths import get_hostinfo_path
from kennel.core.storage import atomic_write

logger = logging.getLogger(__name__)

HostValue = str | int | float | datetime | bool

LAST_SYNC_KEY = "last_sync"


class ValueType(str, Enum):
    """Supported host info value types."""

    STRING = "string"
    INTEGER = "integer"
    REAL = "real"
    DATE = "date"
    BOOL = "bool"


class HostInfoKeyError(LookupNotFound):
    """Raised when reading a key that is not present.

    An empty string value is a present key and does not raise.
    """


_TRUE_WORDS = frozenset({"true", "yes", "1", "on"})
_FALSE_WORDS = frozenset({"false", "no", "0", "off"})


def coerce_value(text: str, value_type: ValueType) -> HostValue:
    """Convert command line text into a typed host info value.

    Raises:
        ValueError: If ``text`` is not valid for ``value_type``.
    """
    if value_type == ValueType.STRING:
        return text
    if value_type == ValueType.INTEGER:
        return int(text)
    if value_type == ValueType.REAL:
        return float(text)
    if value_type == ValueType.BOOL:
        lowered = text.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        msg = f"Not a boolean: {text!r}"
        raise ValueError(msg)
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def value_type_of(value: HostValue) -> ValueType:
    """Return the ValueType tag of a stored value."""
    # bool is a subclass of int, so it must be checked first
    if isinstance(value, bool):
        return ValueType.BOOL
    if isinstance(value, int):
        return ValueType.INTEGER
    if isinstance(value, float):
        return ValueType.REAL
    if isinstance(value, datetime):
        return ValueType.DATE
    return ValueType.STRING


class HostInfoStore:
    """Typed get/set/delete over the host info record.

    Storage location: /var/lib/kennel/hostinfo.toml
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else get_hostinfo_path()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> HostValue:
        """Read ``key``.

        Raises:
            HostInfoKeyError: If ``key`` is not present.
            StoreError: If the record is unreadable.
        """
        values = self._load()
        if key not in values:
            raise HostInfoKeyError(f"Host info key not found: {key}")
        return values[key]

    def set(self, key: str, value: HostValue) -> None:
        """Write ``key``, replacing any previous value."""
        if not key:
            msg = "Host info key cannot be empty"
            raise ValueError(msg)
        values = self._load()
        values[key] = value
        self._save(values)
        logger.debug("Set host info %s=%r", key, value)

    def delete(self, key: str) -> None:
        """Delete ``key``.

        Raises:
            HostInfoKeyError: If ``key`` is not present.
        """
        values = self._load()
        if key not in values:
            raise HostInfoKeyError(f"Host info key not found: {key}")
        del values[key]
        self._save(values)

    def items(self) -> dict[str, HostValue]:
        """Return a copy of every stored key and value."""
        return self._load()

    def stamp_last_sync(self, when: datetime | None = None) -> None:
        """Record the time of the last completed sync."""
        self.set(LAST_SYNC_KEY, when or datetime.now(UTC))

    def _load(self) -> dict[str, HostValue]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise StoreError(f"Invalid host info record {self._path}: {e}") from e
        except OSError as e:
            raise StoreError(f"Cannot read host info {self._path}: {e}") from e
        values = data.get("values", {})
        return dict(values) if isinstance(values, dict) else {}

    def _save(self, values: dict[str, HostValue]) -> None:
        try:
            atomic_write(self._path, tomli_w.dumps({"values": values}).encode("utf-8"))
        except OSError as e:
            raise StoreError(f"Cannot write host info {self._path}: {e}") from e
