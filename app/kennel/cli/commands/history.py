"""History command for viewing committed receipt changes.

This module provides the `kennel history` command for viewing every
install, removal, expiration, promotion and clean-up this machine has
recorded.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from kennel.core.state import StateManager
from kennel.models.history import HistoryEntry
from kennel.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of package changes.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of package changes, newest first.

    Examples:
        kennel history              # Show last 20 entries
        kennel history -n 50        # Show last 50 entries
        kennel history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    entries = StateManager().get_history(limit=limit)

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    table = Table(
        title="Package History",
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="muted")
    table.add_column("Timestamp", style="info")
    table.add_column("Action")
    table.add_column("Packages")
    table.add_column("By", style="muted")

    for entry in entries:
        packages = ", ".join(f"{item.basename} {item.edition}" for item in entry.items)
        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.action_type.value,
            packages,
            str(entry.metadata.get("command", "")),
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO 8601 timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
