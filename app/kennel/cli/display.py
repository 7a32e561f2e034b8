"""Shared Rich display functions for plans, results and local state."""

from rich.table import Table

from kennel.core.reconcile import SyncPlan
from kennel.models.action import Action, ActionResult
from kennel.models.queue import QueueEntry
from kennel.models.receipt import Receipt
from kennel.utils.formatting import console, print_success


def _action_cell(action: Action) -> str:
    if action.is_install:
        return "[added]+install[/added]"
    if action.expired:
        return "[removed]-expire[/removed]"
    return "[warning]-uninstall[/warning]"


def create_plan_table(plan: SyncPlan, dry_run: bool = False) -> Table:
    """Create a table of everything a plan would change.

    Args:
        plan: Plan to display.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table with one row per planned change.
    """
    title = "Planned Changes (Dry Run)" if dry_run else "Planned Changes"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Change", width=12, justify="center")
    table.add_column("Package", no_wrap=True)
    table.add_column("Edition", style="muted")
    table.add_column("Reason")

    for action in plan.actions:
        table.add_row(
            _action_cell(action),
            action.basename,
            str(action.package.edition),
            f"[muted]{action.reason or ''}[/muted]",
        )
    for entry in plan.enqueue:
        table.add_row(
            "[changed]queue[/changed]",
            entry.basename,
            str(entry.edition),
            f"[muted]{entry.action.value} at logout (needs reboot)[/muted]",
        )
    for receipt in plan.promotions:
        table.add_row(
            "[live]promote[/live]",
            receipt.basename,
            str(receipt.edition),
            "[muted]pilot edition went live[/muted]",
        )
    for receipt in plan.stale_receipts:
        table.add_row(
            "[warning]forget[/warning]",
            receipt.basename,
            str(receipt.edition),
            "[muted]edition no longer in catalog[/muted]",
        )
    for entry in plan.stale_queue:
        table.add_row(
            "[warning]dequeue[/warning]",
            entry.basename,
            str(entry.edition),
            "[muted]queued edition invalid or superseded[/muted]",
        )

    return table


def create_results_table(results: list[ActionResult]) -> Table:
    """Create a table of action results."""
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Action", width=10)
    table.add_column("Package", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
            message = result.message or ""
        elif result.reason is not None and result.reason.value == "preflight_rejected":
            status = "[warning]SKIP[/warning]"
            message = result.error or "Rejected by pre-flight script"
        else:
            status = "[error]FAIL[/error]"
            message = result.error or "Unknown error"

        table.add_row(
            status,
            result.action.action_type.value,
            result.action.package.label,
            f"[muted]{message}[/muted]",
        )

    return table


def create_receipts_table(receipts: list[Receipt]) -> Table:
    """Create a table of installed receipts."""
    table = Table(
        title="Installed Packages",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Package", no_wrap=True)
    table.add_column("Edition", style="muted")
    table.add_column("Type", width=6)
    table.add_column("Installed", style="muted")

    for receipt in receipts:
        kind = receipt.install_type.value
        table.add_row(
            receipt.basename,
            str(receipt.edition),
            f"[{kind}]{kind}[/{kind}]",
            receipt.installed_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def create_queue_table(entries: list[QueueEntry]) -> Table:
    """Create a table of logout queue entries in drain order."""
    table = Table(
        title="Logout Queue",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("#", justify="right", style="muted")
    table.add_column("Package", no_wrap=True)
    table.add_column("Edition", style="muted")
    table.add_column("Action", width=10)
    table.add_column("Queued", style="muted")

    for position, entry in enumerate(entries, start=1):
        table.add_row(
            str(position),
            entry.basename,
            str(entry.edition),
            entry.action.value,
            entry.enqueued_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def print_plan_summary(plan: SyncPlan) -> None:
    """Print one line counting the kinds of planned changes."""
    installs = sum(1 for a in plan.actions if a.is_install)
    removals = len(plan.actions) - installs

    parts: list[str] = []
    if installs:
        parts.append(f"[added]{installs} to install[/added]")
    if removals:
        parts.append(f"[removed]{removals} to remove[/removed]")
    if plan.enqueue:
        parts.append(f"[changed]{len(plan.enqueue)} queued for logout[/changed]")
    if plan.promotions:
        parts.append(f"[live]{len(plan.promotions)} promoted[/live]")
    if plan.stale_receipts or plan.stale_queue:
        cleaned = len(plan.stale_receipts) + len(plan.stale_queue)
        parts.append(f"[warning]{cleaned} cleaned up[/warning]")

    if parts:
        console.print(f"\nSummary: {', '.join(parts)}")


def print_results_summary(results: list[ActionResult]) -> None:
    """Print a summary of action results."""
    success_count = sum(1 for r in results if r.success)
    fail_count = sum(1 for r in results if r.failed)

    if fail_count == 0:
        print_success(f"All {success_count} action(s) completed successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )
