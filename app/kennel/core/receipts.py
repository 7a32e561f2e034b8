"""Local receipt store.

Receipts live in a single JSON document keyed by basename, so the
one-receipt-per-basename rule holds by construction.
"""

import json
import logging
from pathlib import Path

from kennel.core.errors import StoreError
from kennel.core.paths import get_receipts_path
from kennel.core.storage import atomic_write
from kennel.models.receipt import Receipt

logger = logging.getLogger(__name__)


class ReceiptStore:
    """Reads and writes installed-package receipts.

    Storage location: /var/lib/kennel/receipts.json

    Attributes:
        path: Location of the receipts document.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else get_receipts_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Receipt]:
        """Load all receipts keyed by basename.

        Records that fail to parse are skipped with a warning.

        Returns:
            Mapping of basename to Receipt. Empty if no store exists yet.

        Raises:
            StoreError: If the document itself is unreadable.
        """
        if not self._path.exists():
            return {}

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read receipts from {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Receipts document {self._path} is not a JSON object")

        receipts: dict[str, Receipt] = {}
        for basename, record in data.get("receipts", {}).items():
            try:
                receipts[basename] = Receipt.from_dict(record)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt receipt for %s: %s", basename, e)
        return receipts

    def get(self, basename: str) -> Receipt | None:
        """Return the receipt for ``basename``, if any."""
        return self.load().get(basename)

    def put(self, receipt: Receipt) -> None:
        """Create or replace the receipt for ``receipt.basename``."""
        receipts = self.load()
        receipts[receipt.basename] = receipt
        self._save(receipts)

    def delete(self, basename: str) -> bool:
        """Delete the receipt for ``basename``.

        Returns:
            True if a receipt was removed, False if none existed.
        """
        receipts = self.load()
        if receipts.pop(basename, None) is None:
            return False
        self._save(receipts)
        return True

    def _save(self, receipts: dict[str, Receipt]) -> None:
        document = {
            "receipts": {name: receipts[name].to_dict() for name in sorted(receipts)},
        }
        try:
            atomic_write(self._path, json.dumps(document, indent=2).encode("utf-8"))
        except OSError as e:
            raise StoreError(f"Cannot write receipts to {self._path}: {e}") from e
