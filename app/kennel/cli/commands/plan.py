"""Plan command: show what a sync would do."""

from typing import Annotated

import typer

from kennel.cli.commands.sync import execute_sync
from kennel.cli.display import create_plan_table, print_plan_summary
from kennel.utils.formatting import console, print_info, print_warning
from kennel.utils.log import configure_logging

app = typer.Typer(
    help="Show the reconciliation plan without applying it.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def plan(
    ctx: typer.Context,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug logging.",
        ),
    ] = False,
) -> None:
    """Compute the reconciliation plan and print it.

    Nothing is installed, removed or queued. Same as ``kennel sync --dry-run``.
    """
    if ctx.invoked_subcommand is not None:
        return

    configure_logging(debug=debug)
    report = execute_sync(ctx, dry_run=True, command="plan")
    result = report.plan

    for basename, error in sorted(result.skipped.items()):
        print_warning(f"Cannot evaluate {basename}: {error}")

    if result.is_empty:
        print_info("Everything is up to date.")
        return

    console.print(create_plan_table(result, dry_run=True))
    print_plan_summary(result)
