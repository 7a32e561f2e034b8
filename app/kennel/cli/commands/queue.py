"""Queue commands: inspect and edit the logout queue."""

import json
from typing import Annotated

import typer

from kennel.cli.display import create_queue_table
from kennel.core.errors import KennelError
from kennel.core.logout_queue import LogoutQueue
from kennel.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Inspect and edit the logout queue.",
    no_args_is_help=True,
)


@app.command("list")
def list_queue(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show queued work in the order it will run at logout."""
    try:
        entries = LogoutQueue().entries()
    except KennelError as e:
        print_error(str(e))
        raise typer.Exit(code=e.exit_code) from e

    if json_output:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        print_info("The logout queue is empty.")
        return

    console.print(create_queue_table(entries))


@app.command("remove")
def remove(
    basename: Annotated[
        str,
        typer.Argument(help="Package basename to dequeue."),
    ],
) -> None:
    """Remove a package from the logout queue."""
    try:
        removed = LogoutQueue().remove(basename)
    except KennelError as e:
        print_error(str(e))
        raise typer.Exit(code=e.exit_code) from e

    if not removed:
        print_error(f"{basename} is not in the logout queue.")
        raise typer.Exit(code=2)

    print_success(f"Removed {basename} from the logout queue.")
