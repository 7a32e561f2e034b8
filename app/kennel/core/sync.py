"""Sync orchestration.

Gathers a snapshot (catalog, membership, receipts, queue, usage), asks
the reconciliation engine for a plan and commits it: receipt clean-ups
and promotions first, then queue maintenance, then immediate actions
one at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from kennel.core.config import KennelConfig
from kennel.core.errors import TransientResourceFailure
from kennel.core.executor import Executor
from kennel.core.hostinfo import HostInfoStore
from kennel.core.logout_queue import LogoutQueue
from kennel.core.receipts import ReceiptStore
from kennel.core.reconcile import ReconciliationEngine, SyncPlan
from kennel.core.usage import UsageSource, UsageStore
from kennel.models.action import ActionResult
from kennel.remote.client import ManagementClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncReport:
    """What a sync planned and what happened.

    Attributes:
        plan: The reconciliation plan.
        results: Results of immediate actions, in execution order.
        committed: False for dry runs.
    """

    plan: SyncPlan
    results: list[ActionResult] = field(default_factory=list)
    committed: bool = False

    @property
    def failed(self) -> list[ActionResult]:
        return [r for r in self.results if r.failed]


def load_usage(config: KennelConfig) -> UsageSource | None:
    """Load usage telemetry, or None if it is unavailable."""
    try:
        return UsageStore.from_file(config.usage_file)
    except TransientResourceFailure as e:
        logger.warning("%s; expiration is skipped this run", e)
        return None


def plan_sync(
    config: KennelConfig,
    client: ManagementClient,
    receipts: ReceiptStore,
    queue: LogoutQueue,
    usage: UsageSource | None,
    now: datetime | None = None,
) -> SyncPlan:
    """Fetch server state and compute the plan without changing anything."""
    catalog = client.fetch_catalog()
    membership = client.fetch_group_membership(config.machine_name)
    logger.info(
        "Reconciling against %d catalog editions, member of %d group(s)",
        len(catalog),
        len(membership),
    )
    engine = ReconciliationEngine(config)
    return engine.plan(
        catalog,
        receipts.load(),
        membership,
        usage,
        queue=queue.entries(),
        now=now,
    )


def commit_plan(
    plan: SyncPlan,
    executor: Executor,
    queue: LogoutQueue,
) -> list[ActionResult]:
    """Apply a plan. Actions run sequentially in plan order."""
    for receipt in plan.stale_receipts:
        executor.forget(receipt)
    for receipt in plan.promotions:
        executor.promote(receipt)
    for entry in plan.stale_queue:
        queue.discard(entry)
    for entry in plan.enqueue:
        queue.enqueue(entry)

    results: list[ActionResult] = []
    for action in plan.actions:
        results.append(executor.apply(action))
    return results


def run_sync(
    config: KennelConfig,
    client: ManagementClient,
    executor: Executor,
    receipts: ReceiptStore,
    queue: LogoutQueue,
    hostinfo: HostInfoStore | None = None,
    usage: UsageSource | None = None,
    dry_run: bool = False,
    now: datetime | None = None,
) -> SyncReport:
    """Plan and, unless ``dry_run``, commit one sync.

    Raises:
        TransientResourceFailure: If the server cannot be reached.
        LookupNotFound: If the server does not know this machine.
        StoreError: If local state cannot be read or written.
    """
    now = now or datetime.now(UTC)
    plan = plan_sync(config, client, receipts, queue, usage, now=now)
    report = SyncReport(plan=plan)

    if dry_run:
        return report

    report.results = commit_plan(plan, executor, queue)
    report.committed = True

    if hostinfo is not None:
        hostinfo.stamp_last_sync(now)
    return report
