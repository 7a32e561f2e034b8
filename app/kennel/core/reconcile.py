"""Reconciliation engine.

Decides, for every basename known to the catalog, the receipt store or
the logout queue, what should happen on this machine. The engine only
plans; committing the plan is the caller's job (see ``kennel.core.sync``).

Per basename the rules apply in this order:

1. A receipt for an edition the catalog no longer lists is forgotten
   (metadata only, nothing is uninstalled).
2. A pilot receipt is frozen. It changes only when its edition becomes
   the live one, and then it is promoted in place.
3. A live receipt older than the live edition is updated.
4. A basename without a receipt is installed when the machine is in scope.
5. A live receipt for an uninstallable package with an expiration policy
   is removed once its tracked application has gone unused for longer
   than the policy allows (measured to the second, not in whole days).
   A path without any usage record counts as never used.

Rules 3 to 5 are exclusive and update wins. Reboot-requiring work is
routed to the logout queue instead of being executed right away.
A queued entry is kept only while these rules still ask for exactly
that entry; otherwise it is dropped from the queue.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from kennel.core.catalog import Catalog
from kennel.core.config import KennelConfig
from kennel.core.errors import KennelError
from kennel.core.scope import in_scope
from kennel.core.usage import UsageSource
from kennel.models.action import (
    Action,
    ActionType,
    create_install_action,
    create_uninstall_action,
)
from kennel.models.package import CatalogPackage
from kennel.models.queue import QueueEntry
from kennel.models.receipt import Receipt

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncPlan:
    """Everything one sync intends to change.

    Attributes:
        actions: Installs and uninstalls to execute now, in order.
        enqueue: Reboot-requiring work for the logout queue.
        promotions: Pilot receipts whose edition went live.
        stale_receipts: Receipts the catalog no longer describes.
        stale_queue: Queue entries that are invalid or superseded.
        skipped: Basenames that could not be evaluated, with the reason.
    """

    actions: tuple[Action, ...] = ()
    enqueue: tuple[QueueEntry, ...] = ()
    promotions: tuple[Receipt, ...] = ()
    stale_receipts: tuple[Receipt, ...] = ()
    stale_queue: tuple[QueueEntry, ...] = ()
    skipped: dict[str, str] = field(default_factory=lambda: {})

    @property
    def is_empty(self) -> bool:
        """Check if the plan changes nothing."""
        return not (
            self.actions
            or self.enqueue
            or self.promotions
            or self.stale_receipts
            or self.stale_queue
        )


@dataclass(slots=True)
class _Outcome:
    action: Action | None = None
    enqueue: QueueEntry | None = None
    promotion: Receipt | None = None
    stale_receipt: Receipt | None = None
    stale_queue: QueueEntry | None = None
    queue_confirmed: bool = False


class ReconciliationEngine:
    """Plans package work for one machine.

    The engine is deterministic: basenames are visited in sorted order
    and the clock is an explicit argument.
    """

    def __init__(self, config: KennelConfig | None = None) -> None:
        self._config = config or KennelConfig()

    def plan(
        self,
        catalog: Catalog,
        receipts: Mapping[str, Receipt],
        membership: Iterable[str],
        usage: UsageSource | None,
        queue: Sequence[QueueEntry] = (),
        now: datetime | None = None,
    ) -> SyncPlan:
        """Compute the plan for the given snapshot.

        Args:
            catalog: Server catalog.
            receipts: Local receipts keyed by basename.
            membership: Groups the machine belongs to.
            usage: Foreground usage snapshot, or None when telemetry is
                unavailable (expiration is then not evaluated).
            queue: Current logout queue contents.
            now: Evaluation time. Defaults to the current time.

        Returns:
            The plan. Nothing is mutated.
        """
        now = now or datetime.now(UTC)
        groups = frozenset(membership)
        queued = {entry.basename: entry for entry in queue}

        actions: list[Action] = []
        enqueue: list[QueueEntry] = []
        promotions: list[Receipt] = []
        stale_receipts: list[Receipt] = []
        stale_queue: list[QueueEntry] = []
        skipped: dict[str, str] = {}

        for basename in sorted(catalog.basenames() | set(receipts) | set(queued)):
            try:
                outcome = self._evaluate(
                    basename,
                    catalog,
                    receipts.get(basename),
                    groups,
                    usage,
                    queued.get(basename),
                    now,
                )
            except (KennelError, ValueError, TypeError) as e:
                logger.error("Skipping %s: %s", basename, e)
                skipped[basename] = str(e)
                continue

            if outcome.stale_receipt is not None:
                stale_receipts.append(outcome.stale_receipt)
            if outcome.promotion is not None:
                promotions.append(outcome.promotion)
            if outcome.stale_queue is not None:
                stale_queue.append(outcome.stale_queue)
            if outcome.enqueue is not None:
                enqueue.append(outcome.enqueue)
            if outcome.action is not None:
                actions.append(outcome.action)

        return SyncPlan(
            actions=tuple(actions),
            enqueue=tuple(enqueue),
            promotions=tuple(promotions),
            stale_receipts=tuple(stale_receipts),
            stale_queue=tuple(stale_queue),
            skipped=skipped,
        )

    def _evaluate(
        self,
        basename: str,
        catalog: Catalog,
        receipt: Receipt | None,
        groups: frozenset[str],
        usage: UsageSource | None,
        queued: QueueEntry | None,
        now: datetime,
    ) -> _Outcome:
        if queued is not None and catalog.find(basename, queued.edition) is None:
            logger.info("Queued %s is no longer in the catalog", queued.label)
            outcome = self._decide(basename, catalog, receipt, groups, usage, None, now)
            outcome.stale_queue = queued
            return outcome

        outcome = self._decide(basename, catalog, receipt, groups, usage, queued, now)
        if (
            queued is not None
            and outcome.stale_queue is None
            and outcome.enqueue is None
            and not outcome.queue_confirmed
        ):
            logger.info(
                "Dropping queued %s %s: no longer needed", queued.action.value, queued.label
            )
            outcome.stale_queue = queued
        return outcome

    def _decide(
        self,
        basename: str,
        catalog: Catalog,
        receipt: Receipt | None,
        groups: frozenset[str],
        usage: UsageSource | None,
        queued: QueueEntry | None,
        now: datetime,
    ) -> _Outcome:
        outcome = _Outcome()
        live = catalog.live(basename)

        if receipt is not None and catalog.find(basename, receipt.edition) is None:
            logger.warning("Forgetting receipt %s: edition not in catalog", receipt.label)
            outcome.stale_receipt = receipt
            receipt = None

        if receipt is not None and receipt.is_pilot:
            if live is not None and live.edition == receipt.edition:
                logger.info("Promoting pilot %s to live", receipt.label)
                outcome.promotion = receipt
            return outcome

        if receipt is not None:
            if live is not None and live.edition > receipt.edition:
                reason = f"update {receipt.edition} -> {live.edition}"
                self._route(outcome, live, ActionType.INSTALL, reason, queued, now)
                return outcome

            installed = catalog.find(basename, receipt.edition)
            if installed is not None and self._is_expired(installed, receipt, usage, now):
                reason = f"unused for more than {installed.expiration_days} days"
                self._route(outcome, installed, ActionType.UNINSTALL, reason, queued, now)
            return outcome

        if live is not None and in_scope(live, groups):
            self._route(outcome, live, ActionType.INSTALL, "in auto-install scope", queued, now)
        return outcome

    def _route(
        self,
        outcome: _Outcome,
        package: CatalogPackage,
        action_type: ActionType,
        reason: str,
        queued: QueueEntry | None,
        now: datetime,
    ) -> None:
        if package.needs_reboot:
            entry = QueueEntry(
                basename=package.basename,
                edition=package.edition,
                action=action_type,
                enqueued_at=now,
            )
            if queued is not None and queued.same_request(entry):
                logger.debug("%s already queued", package.label)
                outcome.queue_confirmed = True
                return
            outcome.enqueue = entry
            return

        if queued is not None:
            # An immediate action supersedes whatever was waiting for logout
            outcome.stale_queue = queued

        if action_type == ActionType.INSTALL:
            outcome.action = create_install_action(package, reason=reason)
        else:
            outcome.action = create_uninstall_action(package, reason=reason, expired=True)

    def _is_expired(
        self,
        package: CatalogPackage,
        receipt: Receipt,
        usage: UsageSource | None,
        now: datetime,
    ) -> bool:
        if not package.uninstallable or package.expiration_days is None:
            return False
        if usage is None or not package.expiration_path:
            return False

        last_used = usage.last_foreground(package.expiration_path)
        if last_used is None:
            grace = self._config.expiration_grace_days
            if grace and now - receipt.installed_at < timedelta(days=grace):
                return False
            logger.info("%s has no usage record; treating as unused", package.expiration_path)
            return True

        return now - last_used > timedelta(days=package.expiration_days)
