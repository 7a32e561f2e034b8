"""Tests for sync orchestration, end to end over real local stores."""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from kennel.core.catalog import Catalog
from kennel.core.config import KennelConfig
from kennel.core.errors import PayloadFailure
from kennel.core.executor import Executor
from kennel.core.hostinfo import LAST_SYNC_KEY, HostInfoStore
from kennel.core.logout_queue import LogoutQueue
from kennel.core.receipts import ReceiptStore
from kennel.core.sync import SyncReport, load_usage, run_sync
from kennel.models.action import ActionType
from kennel.models.package import CatalogPackage, Edition, PackageStatus
from kennel.models.queue import QueueEntry
from kennel.models.receipt import InstallType, Receipt
from kennel.operators.base import Installer
from kennel.utils.shell import CommandResult


class FakeClient:
    """Management client serving a fixed catalog."""

    def __init__(self, packages: list[CatalogPackage], groups: list[str] | None = None) -> None:
        self.catalog = Catalog(packages)
        self.groups = groups or []

    def fetch_catalog(self) -> Catalog:
        return self.catalog

    def fetch_group_membership(self, machine: str) -> list[str]:
        return self.groups

    def run_policy(self, ref: str) -> bool:
        return False

    def close(self) -> None:
        pass


class SyncHarness:
    """Real stores in a temporary directory plus a mocked installer."""

    def __init__(self, root: Path, dry_run: bool = False) -> None:
        self.config = KennelConfig(machine_name="lab-01")
        self.receipts = ReceiptStore(root / "receipts.json")
        self.queue = LogoutQueue(root / "logout-queue.json")
        self.hostinfo = HostInfoStore(root / "hostinfo.toml")
        self.installer = MagicMock(spec=Installer)
        self.installer.dry_run = dry_run
        self.installer.install.return_value = ""
        self.installer.uninstall.return_value = ""
        scripts = MagicMock()
        scripts.run.return_value = CommandResult(stdout="", stderr="", returncode=0)
        self.executor = Executor(self.installer, self.receipts, scripts)

    def sync(self, client: FakeClient, now: datetime, dry_run: bool = False) -> SyncReport:
        return run_sync(
            self.config,
            client,
            self.executor,
            self.receipts,
            self.queue,
            hostinfo=self.hostinfo,
            usage=None,
            dry_run=dry_run,
            now=now,
        )


class TestRunSync:
    """End-to-end sync scenarios."""

    def test_update_replaces_live_receipt(
        self,
        tmp_path: Path,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """Receipt app@1.5 and live app@2.1 ends with receipt app@2.1 live."""
        harness = SyncHarness(tmp_path)
        harness.receipts.put(make_receipt("app", "1.5"))
        client = FakeClient(
            [
                make_package("app", "1.5", PackageStatus.DEPRECATED),
                make_package("app", "2.1", PackageStatus.LIVE),
            ]
        )

        report = harness.sync(client, now)

        assert report.committed
        assert [r.action.action_type for r in report.results] == [ActionType.INSTALL]
        assert report.failed == []
        receipt = harness.receipts.get("app")
        assert receipt is not None
        assert receipt.edition == Edition(2, 1)
        assert receipt.install_type == InstallType.LIVE
        assert harness.hostinfo.get(LAST_SYNC_KEY) == now

    def test_reboot_install_only_enqueued(
        self,
        tmp_path: Path,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A scoped reboot-requiring package is queued and nothing is installed."""
        harness = SyncHarness(tmp_path)
        client = FakeClient(
            [make_package("driver", "3.0", needs_reboot=True, auto_install_groups={"lab"})],
            groups=["lab"],
        )

        report = harness.sync(client, now)

        assert report.results == []
        harness.installer.install.assert_not_called()
        assert [e.label for e in harness.queue.entries()] == ["driver@3.0"]

    def test_second_sync_is_a_no_op(
        self,
        tmp_path: Path,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """Committing a plan leaves nothing for the next sync."""
        harness = SyncHarness(tmp_path)
        client = FakeClient(
            [
                make_package("app", "1.0", auto_install_groups={"lab"}),
                make_package("driver", "3.0", needs_reboot=True, auto_install_groups={"lab"}),
            ],
            groups=["lab"],
        )

        harness.sync(client, now)
        second = harness.sync(client, now)

        assert second.plan.is_empty
        assert harness.installer.install.call_count == 1

    def test_stale_receipts_and_queue_cleaned(
        self,
        tmp_path: Path,
        make_package: Callable[..., CatalogPackage],
        make_receipt: Callable[..., Receipt],
        now: datetime,
    ) -> None:
        """Receipts and queue entries for vanished editions are removed."""
        harness = SyncHarness(tmp_path)
        harness.receipts.put(make_receipt("gone", "1.0"))
        harness.queue.enqueue(QueueEntry("old", Edition(1, 0), ActionType.INSTALL, now))
        client = FakeClient([make_package("other", "1.0")])

        harness.sync(client, now)

        assert harness.receipts.load() == {}
        assert harness.queue.is_empty()

    def test_dry_run_changes_nothing(
        self,
        tmp_path: Path,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A dry run plans but leaves every store untouched."""
        harness = SyncHarness(tmp_path, dry_run=True)
        client = FakeClient(
            [
                make_package("app", "1.0", auto_install_groups={"lab"}),
                make_package("driver", "3.0", needs_reboot=True, auto_install_groups={"lab"}),
            ],
            groups=["lab"],
        )

        report = harness.sync(client, now, dry_run=True)

        assert not report.committed
        assert len(report.plan.actions) == 1
        assert len(report.plan.enqueue) == 1
        harness.installer.install.assert_not_called()
        assert harness.receipts.load() == {}
        assert harness.queue.is_empty()
        assert harness.hostinfo.items() == {}

    def test_failed_action_reported(
        self,
        tmp_path: Path,
        make_package: Callable[..., CatalogPackage],
        now: datetime,
    ) -> None:
        """A payload failure shows up in report.failed and other work continues."""
        harness = SyncHarness(tmp_path)

        def install(package: CatalogPackage) -> str:
            if package.basename == "bad":
                raise PayloadFailure("installer exited with code 1")
            return ""

        harness.installer.install.side_effect = install
        client = FakeClient(
            [
                make_package("bad", "1.0", auto_install_groups={"lab"}),
                make_package("good", "1.0", auto_install_groups={"lab"}),
            ],
            groups=["lab"],
        )

        report = harness.sync(client, now)

        assert [r.action.basename for r in report.failed] == ["bad"]
        assert harness.receipts.get("good") is not None
        assert harness.receipts.get("bad") is None


class TestLoadUsage:
    """Tests for load_usage."""

    def test_missing_telemetry_returns_none(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Unavailable telemetry disables expiration with a warning."""
        config = KennelConfig(machine_name="lab-01", usage_file=tmp_path / "absent.json")
        assert load_usage(config) is None
        assert "expiration is skipped" in caplog.text

    def test_present_telemetry_loaded(self, tmp_path: Path) -> None:
        """A readable file gives a usage source."""
        path = tmp_path / "usage.json"
        path.write_text('{"/Applications/App.app": "2026-02-01T00:00:00Z"}')
        usage = load_usage(KennelConfig(machine_name="lab-01", usage_file=path))
        assert usage is not None
        assert usage.last_foreground("/Applications/App.app") is not None
