"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from kennel import __version__
from kennel.cli.commands import history, hostinfo, init, plan, queue, receipts, sync

app = typer.Typer(
    name="kennel",
    help="Package lifecycle agent for managed machines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"kennel version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to kennel.toml (defaults to $KENNEL_CONFIG_DIR/kennel.toml).",
        ),
    ] = None,
) -> None:
    """kennel - keep this machine's packages in step with the catalog.

    Installs and updates in-scope packages, queues reboot-requiring work
    for logout and expires software nobody uses.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


# Register commands
app.add_typer(init.app, name="init")
app.add_typer(sync.app, name="sync")
app.add_typer(plan.app, name="plan")
app.add_typer(receipts.app, name="receipts")
app.add_typer(queue.app, name="queue")
app.add_typer(history.app, name="history")
app.command("hostinfo")(hostinfo.hostinfo)


if __name__ == "__main__":
    app()
