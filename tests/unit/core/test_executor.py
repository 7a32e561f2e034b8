"""Unit tests for core/executor.py.

Tests action execution, script vetoes, receipt commits and history
recording.
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from kennel.core.errors import PayloadFailure, StoreError
from kennel.core.executor import Executor
from kennel.core.receipts import ReceiptStore
from kennel.core.state import StateManager
from kennel.models.action import FailureReason, create_install_action, create_uninstall_action
from kennel.models.history import HistoryActionType
from kennel.models.package import CatalogPackage, Edition
from kennel.models.receipt import InstallType, Receipt
from kennel.operators.base import Installer
from kennel.utils.shell import CommandResult

OK = CommandResult(stdout="", stderr="", returncode=0)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeInstaller(Installer):
    """Installer that records calls and can be told to fail."""

    def __init__(self, fail: bool = False, dry_run: bool = False) -> None:
        super().__init__(dry_run=dry_run)
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    def is_available(self) -> bool:
        return True

    def install(self, package: CatalogPackage) -> str:
        self.calls.append(("install", package.label))
        if self.fail:
            raise PayloadFailure("installer exited with code 1")
        return "installed\n"

    def uninstall(self, package: CatalogPackage) -> str:
        self.calls.append(("uninstall", package.label))
        if self.fail:
            raise PayloadFailure("uninstaller exited with code 1")
        return ""


@pytest.fixture
def receipts(tmp_path: Path) -> ReceiptStore:
    """Receipt store in a temporary directory."""
    return ReceiptStore(tmp_path / "receipts.json")


@pytest.fixture
def history(tmp_path: Path) -> StateManager:
    """History log in a temporary directory."""
    return StateManager(state_dir=tmp_path)


@pytest.fixture
def scripts() -> MagicMock:
    """Script runner where every script succeeds."""
    runner = MagicMock()
    runner.run.return_value = OK
    return runner


def _executor(
    installer: Installer,
    receipts: ReceiptStore,
    scripts: MagicMock,
    history: StateManager | None,
    now: datetime,
) -> Executor:
    return Executor(
        installer,
        receipts,
        scripts,
        history=history,
        metadata={"command": "sync"},
        clock=lambda: now,
    )


# ---------------------------------------------------------------------------
# Installs
# ---------------------------------------------------------------------------


class TestInstall:
    """Tests for install actions."""

    def test_success_writes_live_receipt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        history: StateManager,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A successful install records a live receipt and history."""
        installer = FakeInstaller()
        executor = _executor(installer, receipts, scripts, history, now)

        result = executor.apply(create_install_action(make_package("app", "2.1")))

        assert result.success
        assert result.message == "installed"
        receipt = receipts.get("app")
        assert receipt == Receipt("app", Edition(2, 1), InstallType.LIVE, now)
        entries = history.get_history()
        assert [e.action_type for e in entries] == [HistoryActionType.INSTALL]
        assert entries[0].metadata == {"command": "sync"}

    def test_pilot_install_writes_pilot_receipt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """live=False receipts the install as pilot."""
        executor = _executor(FakeInstaller(), receipts, scripts, None, now)
        executor.apply(create_install_action(make_package("app", "3.0"), live=False))
        assert receipts.get("app").install_type == InstallType.PILOT  # type: ignore[union-attr]

    def test_update_replaces_receipt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """Installing a newer edition overwrites the old receipt."""
        receipts.put(make_receipt("app", "1.5"))
        executor = _executor(FakeInstaller(), receipts, scripts, None, now)

        executor.apply(create_install_action(make_package("app", "2.1")))

        assert receipts.get("app").edition == Edition(2, 1)  # type: ignore[union-attr]

    def test_preflight_veto(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """A failing preinstall script skips the install and keeps the receipt."""
        receipts.put(make_receipt("app", "1.5"))
        scripts.run.return_value = CommandResult(stdout="", stderr="disk full", returncode=1)
        installer = FakeInstaller()
        executor = _executor(installer, receipts, scripts, None, now)

        result = executor.apply(
            create_install_action(make_package("app", "2.1", preinstall="check.sh"))
        )

        assert result.failed
        assert result.reason == FailureReason.PREFLIGHT_REJECTED
        assert "disk full" in (result.error or "")
        assert installer.calls == []
        assert receipts.get("app").edition == Edition(1, 5)  # type: ignore[union-attr]

    def test_payload_failure_leaves_receipt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """A failed payload is reported and the receipt is unchanged."""
        receipts.put(make_receipt("app", "1.5"))
        executor = _executor(FakeInstaller(fail=True), receipts, scripts, None, now)

        result = executor.apply(create_install_action(make_package("app", "2.1")))

        assert result.failed
        assert result.reason == FailureReason.PAYLOAD_FAILURE
        assert receipts.get("app").edition == Edition(1, 5)  # type: ignore[union-attr]

    def test_postinstall_failure_is_best_effort(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A failing postinstall script does not undo the install."""
        scripts.run.return_value = CommandResult(stdout="", stderr="meh", returncode=3)
        executor = _executor(FakeInstaller(), receipts, scripts, None, now)

        result = executor.apply(
            create_install_action(make_package("app", "2.1", postinstall="after.sh"))
        )

        assert result.success
        assert receipts.get("app") is not None
        scripts.run.assert_called_once()
        assert scripts.run.call_args.args[2] == "postinstall"

    def test_dry_run_writes_nothing(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        history: StateManager,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """Dry runs leave receipts and history alone."""
        executor = _executor(FakeInstaller(dry_run=True), receipts, scripts, history, now)

        result = executor.apply(create_install_action(make_package("app", "2.1")))

        assert result.success
        assert executor.dry_run
        assert receipts.load() == {}
        assert history.get_history() == []

    def test_receipt_write_failure_raises(
        self,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A receipt that cannot be written is a run-level error."""
        broken = MagicMock(spec=ReceiptStore)
        broken.put.side_effect = StoreError("read-only filesystem")
        executor = Executor(FakeInstaller(), broken, scripts, clock=lambda: now)

        with pytest.raises(StoreError):
            executor.apply(create_install_action(make_package("app", "2.1")))


# ---------------------------------------------------------------------------
# Uninstalls, promotions and clean-ups
# ---------------------------------------------------------------------------


class TestUninstall:
    """Tests for uninstall actions."""

    def test_expiration_deletes_receipt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        history: StateManager,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """An expiration removes the receipt and is logged as expire."""
        receipts.put(make_receipt("app", "1.0"))
        executor = _executor(FakeInstaller(), receipts, scripts, history, now)

        result = executor.apply(create_uninstall_action(make_package("app", "1.0"), expired=True))

        assert result.success
        assert receipts.get("app") is None
        assert history.get_history()[0].action_type == HistoryActionType.EXPIRE

    def test_preuninstall_veto_keeps_receipt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """A vetoed uninstall leaves the package installed."""
        receipts.put(make_receipt("app", "1.0"))
        scripts.run.return_value = CommandResult(stdout="", stderr="", returncode=1)
        executor = _executor(FakeInstaller(), receipts, scripts, None, now)

        result = executor.apply(
            create_uninstall_action(make_package("app", "1.0", preuninstall="in-use.sh"))
        )

        assert result.reason == FailureReason.PREFLIGHT_REJECTED
        assert receipts.get("app") is not None


class TestReceiptMaintenance:
    """Tests for promote and forget."""

    def test_promote(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        history: StateManager,
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """promote marks the receipt live without installing."""
        installer = FakeInstaller()
        pilot = make_receipt("app", "2.0", InstallType.PILOT)
        receipts.put(pilot)

        _executor(installer, receipts, scripts, history, now).promote(pilot)

        assert receipts.get("app").install_type == InstallType.LIVE  # type: ignore[union-attr]
        assert installer.calls == []
        assert history.get_history()[0].action_type == HistoryActionType.PROMOTE

    def test_forget(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        history: StateManager,
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """forget drops the receipt and logs it once."""
        stale = make_receipt("app", "1.7")
        receipts.put(stale)
        executor = _executor(FakeInstaller(), receipts, scripts, history, now)

        executor.forget(stale)
        executor.forget(stale)

        assert receipts.get("app") is None
        assert [e.action_type for e in history.get_history()] == [HistoryActionType.FORGET]

    def test_history_failure_does_not_interrupt(
        self,
        receipts: ReceiptStore,
        scripts: MagicMock,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A history write error is logged and the action still succeeds."""
        history = MagicMock(spec=StateManager)
        history.record_action.side_effect = OSError("disk full")
        executor = Executor(FakeInstaller(), receipts, scripts, history=history, clock=lambda: now)

        result = executor.apply(create_install_action(make_package("app", "2.1")))

        assert result.success
        assert receipts.get("app") is not None
