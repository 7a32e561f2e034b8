"""Sync command implementation.

Runs one reconciliation pass: fetch the catalog and group membership,
plan against local receipts and the logout queue, then commit the plan.
"""

import logging
from typing import Annotated

import typer

from kennel.cli.display import (
    create_plan_table,
    create_results_table,
    print_plan_summary,
    print_results_summary,
)
from kennel.cli.runtime import build_executor, get_config
from kennel.core.errors import KennelError
from kennel.core.hostinfo import HostInfoStore
from kennel.core.logout_queue import LogoutQueue
from kennel.core.receipts import ReceiptStore
from kennel.core.session import open_session
from kennel.core.sync import SyncReport, load_usage, run_sync
from kennel.utils.formatting import console, print_error, print_info
from kennel.utils.log import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Reconcile installed packages with the catalog.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def sync(
    ctx: typer.Context,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only report errors.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug logging.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would change without changing anything.",
        ),
    ] = False,
) -> None:
    """Install, update, queue and expire packages for this machine.

    Reboot-requiring work is added to the logout queue instead of being
    installed straight away.

    Examples:
        kennel sync              # Reconcile and apply
        kennel sync --dry-run    # Show the plan only
        kennel sync -q           # Silent unless something fails
    """
    if ctx.invoked_subcommand is not None:
        return

    configure_logging(debug=debug, quiet=quiet)
    report = execute_sync(ctx, dry_run=dry_run, command="sync")

    if not quiet:
        _print_report(report, dry_run)

    if report.failed:
        raise typer.Exit(code=1)


def execute_sync(ctx: typer.Context, dry_run: bool, command: str) -> SyncReport:
    """Open a session and run one sync, mapping failures to exit codes.

    Raises:
        typer.Exit: With the failure's exit code on a run-level error.
    """
    config = get_config(ctx)
    receipts = ReceiptStore()
    queue = LogoutQueue()

    try:
        with open_session(config) as session:
            executor = build_executor(
                config,
                session,
                receipts,
                dry_run=dry_run,
                metadata={"command": command, "computer": config.machine_name},
            )
            return run_sync(
                config,
                session.client,
                executor,
                receipts,
                queue,
                hostinfo=HostInfoStore(),
                usage=load_usage(config),
                dry_run=dry_run,
            )
    except KennelError as e:
        logger.debug("Sync aborted", exc_info=True)
        print_error(f"Sync failed: {e}")
        raise typer.Exit(code=e.exit_code) from e


def _print_report(report: SyncReport, dry_run: bool) -> None:
    plan = report.plan

    for basename, error in sorted(plan.skipped.items()):
        print_info(f"Skipped {basename}: {error}")

    if plan.is_empty:
        print_info("Everything is up to date.")
        return

    console.print(create_plan_table(plan, dry_run=dry_run))
    print_plan_summary(plan)

    if dry_run:
        print_info("Dry run: nothing was changed.")
        return

    if report.results:
        console.print()
        console.print(create_results_table(report.results))
        print_results_summary(report.results)
