"""Install/uninstall execution and receipt commits.

The Executor applies one action at a time: pre-flight script, payload,
post-flight script, receipt. It is the only code that writes receipts,
including the metadata-only promotions and clean-ups a sync plans.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from kennel.core.errors import PayloadFailure, PreflightRejected
from kennel.core.receipts import ReceiptStore
from kennel.core.state import StateManager
from kennel.models.action import Action, ActionResult, FailureReason
from kennel.models.history import HistoryActionType, HistoryItem, create_history_entry
from kennel.models.package import CatalogPackage
from kennel.models.receipt import InstallType, Receipt
from kennel.operators.base import Installer
from kennel.operators.scripts import ScriptRunner

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Executor:
    """Applies actions and keeps receipts in step with them.

    Args:
        installer: Payload installer.
        receipts: Receipt store to commit to.
        scripts: Runner for pre/post scripts.
        history: History log. If None, nothing is recorded.
        metadata: Context stored with every history entry.
        clock: Source of receipt timestamps.
    """

    def __init__(
        self,
        installer: Installer,
        receipts: ReceiptStore,
        scripts: ScriptRunner,
        history: StateManager | None = None,
        metadata: dict[str, Any] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._installer = installer
        self._receipts = receipts
        self._scripts = scripts
        self._history = history
        self._metadata = metadata or {}
        self._clock = clock

    @property
    def dry_run(self) -> bool:
        return self._installer.dry_run

    def apply(self, action: Action) -> ActionResult:
        """Execute ``action``.

        Pre-flight vetoes and payload failures are returned as failed
        results; the receipt is left as it was.

        Raises:
            StoreError: If the receipt cannot be written after a
                successful payload operation.
        """
        logger.info("Starting %s", action.label)
        try:
            if action.is_install:
                output = self._install(action)
            else:
                output = self._uninstall(action)
        except PreflightRejected as e:
            logger.info("%s skipped: %s", action.label, e)
            return ActionResult(
                action=action,
                success=False,
                reason=FailureReason.PREFLIGHT_REJECTED,
                error=str(e),
            )
        except PayloadFailure as e:
            logger.error("%s failed: %s", action.label, e)
            return ActionResult(
                action=action,
                success=False,
                reason=FailureReason.PAYLOAD_FAILURE,
                error=str(e),
            )

        logger.info("Finished %s", action.label)
        return ActionResult(action=action, success=True, message=output.strip() or None)

    def promote(self, receipt: Receipt) -> None:
        """Mark a pilot receipt live without reinstalling."""
        if self.dry_run:
            return
        self._receipts.put(receipt.promoted())
        self._record(HistoryActionType.PROMOTE, receipt.basename, str(receipt.edition))

    def forget(self, receipt: Receipt) -> None:
        """Drop a receipt the catalog no longer describes."""
        if self.dry_run:
            return
        if self._receipts.delete(receipt.basename):
            self._record(HistoryActionType.FORGET, receipt.basename, str(receipt.edition))

    def _install(self, action: Action) -> str:
        package = action.package
        self._preflight(package.preinstall, package, "preinstall")
        output = self._installer.install(package)
        self._postflight(package.postinstall, package, "postinstall")

        if not self.dry_run:
            install_type = InstallType.LIVE if action.live else InstallType.PILOT
            self._receipts.put(
                Receipt(
                    basename=package.basename,
                    edition=package.edition,
                    install_type=install_type,
                    installed_at=self._clock(),
                )
            )
            self._record(HistoryActionType.INSTALL, package.basename, str(package.edition))
        return output

    def _uninstall(self, action: Action) -> str:
        package = action.package
        self._preflight(package.preuninstall, package, "preuninstall")
        output = self._installer.uninstall(package)
        self._postflight(package.postuninstall, package, "postuninstall")

        if not self.dry_run:
            self._receipts.delete(package.basename)
            kind = HistoryActionType.EXPIRE if action.expired else HistoryActionType.UNINSTALL
            self._record(kind, package.basename, str(package.edition))
        return output

    def _preflight(self, script: str | None, package: CatalogPackage, phase: str) -> None:
        if not script:
            return
        result = self._scripts.run(script, package, phase)
        if not result.success:
            detail = result.stderr.strip()
            msg = f"{phase} script exited with code {result.returncode}"
            raise PreflightRejected(f"{msg}: {detail}" if detail else msg)

    def _postflight(self, script: str | None, package: CatalogPackage, phase: str) -> None:
        if not script:
            return
        result = self._scripts.run(script, package, phase)
        if not result.success:
            logger.warning(
                "%s script for %s exited with code %d: %s",
                phase,
                package.label,
                result.returncode,
                result.stderr.strip(),
            )

    def _record(self, action_type: HistoryActionType, basename: str, edition: str) -> None:
        """Append to history. Failures are logged and never interrupt the run."""
        if self._history is None:
            return
        try:
            entry = create_history_entry(
                action_type=action_type,
                items=[HistoryItem(basename=basename, edition=edition)],
                metadata=dict(self._metadata),
            )
            self._history.record_action(entry)
        except (OSError, ValueError) as e:
            logger.warning(
                "Failed to record %s of %s to history: %s", action_type.value, basename, e
            )
