"""Receipts command: list locally installed packages."""

import json
from typing import Annotated

import typer

from kennel.cli.display import create_receipts_table
from kennel.core.errors import StoreError
from kennel.core.receipts import ReceiptStore
from kennel.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="List installed package receipts.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def receipts(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show every installed package with its edition and install type."""
    if ctx.invoked_subcommand is not None:
        return

    try:
        records = ReceiptStore().load()
    except StoreError as e:
        print_error(str(e))
        raise typer.Exit(code=e.exit_code) from e

    ordered = [records[name] for name in sorted(records)]

    if json_output:
        typer.echo(json.dumps([r.to_dict() for r in ordered], indent=2))
        return

    if not ordered:
        print_info("No packages installed.")
        return

    console.print(create_receipts_table(ordered))
