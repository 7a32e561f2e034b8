"""Logout installer entry point (``kennel-puppy``).

Invoked by the login window's logout hook with the target drive, the
computer name and the user logging out. Exits 0 when there is nothing
to do, the user cancels, or the queue was drained and a reboot issued.
"""

import logging
from functools import partial
from typing import Annotated

import typer

from kennel import __version__
from kennel.cli.runtime import build_executor, get_config
from kennel.core.config import KennelConfig
from kennel.core.errors import KennelError
from kennel.core.logout_queue import LogoutQueue
from kennel.core.puppy import ConsolePrompt, PuppyInstaller, PuppyOutcome, Rebooter
from kennel.core.receipts import ReceiptStore
from kennel.core.session import open_session
from kennel.core.slideshow import CaptionChannel, ConsoleRenderer, Slideshow, find_images
from kennel.utils.formatting import print_error, print_info
from kennel.utils.log import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="kennel-puppy",
    help="Install queued reboot-requiring packages at logout.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"kennel-puppy version {__version__}")
        raise typer.Exit()


def make_slideshow(config: KennelConfig, channel: CaptionChannel) -> Slideshow:
    """Build the logout slideshow from the configured image directory."""
    return Slideshow(
        find_images(config.slideshow_dir),
        ConsoleRenderer(),
        channel,
        interval=config.slide_interval_seconds,
        default_caption=config.default_caption,
    )


@app.command()
def main(
    target_drive: Annotated[
        str,
        typer.Argument(help="Volume to install onto."),
    ],
    computer_name: Annotated[
        str,
        typer.Argument(help="Name of this computer."),
    ],
    user: Annotated[
        str,
        typer.Argument(help="User who is logging out."),
    ],
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug logging.",
        ),
    ] = False,
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
) -> None:
    """Drain the logout queue behind a slideshow, then reboot."""
    configure_logging(debug=debug)
    config = get_config()
    queue = LogoutQueue()

    try:
        if queue.is_empty():
            print_info("Nothing queued for logout.")
            return

        logger.info("Logout install for %s on %s (%s)", user, computer_name, target_drive)
        with open_session(config) as session:
            catalog = session.client.fetch_catalog()
            receipts = ReceiptStore()
            executor = build_executor(
                config,
                session,
                receipts,
                target=target_drive,
                metadata={"command": "puppy", "computer": computer_name, "user": user},
            )
            installer = PuppyInstaller(
                config,
                queue,
                executor,
                catalog,
                prompt=ConsolePrompt(),
                rebooter=Rebooter(config, session.client),
                slideshow_factory=partial(make_slideshow, config),
            )
            outcome = installer.run()
    except KennelError as e:
        logger.debug("Logout install aborted", exc_info=True)
        print_error(f"Logout install failed: {e}")
        raise typer.Exit(code=e.exit_code) from e

    if outcome == PuppyOutcome.CANCELLED:
        print_info("Logout install cancelled; queued packages will be offered again.")
    elif outcome == PuppyOutcome.REBOOTED:
        failed = [r for r in installer.report.results if r.failed]
        if failed:
            logger.warning("%d queued action(s) failed", len(failed))


if __name__ == "__main__":
    app()
