"""Logout queue installer ("Puppy").

Runs at logout when reboot-requiring work is waiting. The run moves
through these states::

    IDLE -> OPTOUT_PROMPT -> SLIDESHOW_RUNNING -> DRAINING -> FINISHING -> REBOOTING

An empty queue ends the run in IDLE and a cancel at the prompt ends it in
CANCELLED; neither reboots. Once the slideshow has been started the
machine is rebooted no matter what happens while draining.
"""

from __future__ import annotations

import logging
import select
import subprocess
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from kennel.core.catalog import Catalog
from kennel.core.config import KennelConfig
from kennel.core.errors import KennelError
from kennel.core.executor import Executor
from kennel.core.logout_queue import LogoutQueue
from kennel.core.slideshow import CaptionChannel, Slideshow
from kennel.models.action import (
    ActionResult,
    ActionType,
    create_install_action,
    create_uninstall_action,
)
from kennel.models.queue import QueueEntry
from kennel.remote.client import ManagementClient
from kennel.utils.formatting import console
from kennel.utils.shell import run_command

logger = logging.getLogger(__name__)


class PuppyState(str, Enum):
    """States of a logout run."""

    IDLE = "idle"
    OPTOUT_PROMPT = "optout_prompt"
    CANCELLED = "cancelled"
    SLIDESHOW_RUNNING = "slideshow_running"
    DRAINING = "draining"
    FINISHING = "finishing"
    REBOOTING = "rebooting"


class PuppyOutcome(str, Enum):
    """How a logout run ended."""

    NOTHING_TO_DO = "nothing_to_do"
    CANCELLED = "cancelled"
    REBOOTED = "rebooted"


class OptOutPrompt(Protocol):
    """Asks the user whether the logout install may go ahead."""

    def proceed(self, timeout: float) -> bool:
        """Return False only if the user cancelled within ``timeout`` seconds."""
        ...


class ConsolePrompt:
    """Timed opt-out prompt on the controlling terminal.

    Typing ``c`` (or ``cancel``) and Enter cancels; Enter alone proceeds
    straight away; silence proceeds when the timeout expires. Without a
    terminal nobody can answer, so the run proceeds immediately.
    """

    CANCEL_WORDS = frozenset({"c", "cancel", "n", "no"})

    def __init__(self, message: str = "Software updates will be installed now.") -> None:
        self._message = message

    def proceed(self, timeout: float) -> bool:
        if not sys.stdin.isatty():
            logger.info("No terminal for the opt-out prompt; proceeding")
            return True

        console.print(f"[info]{self._message}[/]")
        console.print(
            f"Press Enter to start now or type 'c' + Enter to cancel "
            f"(continuing automatically in {timeout:.0f}s)."
        )
        readable, _, _ = select.select([sys.stdin], [], [], timeout)
        if not readable:
            return True
        answer = sys.stdin.readline().strip().lower()
        return answer not in self.CANCEL_WORDS


class Rebooter:
    """Restarts the machine, preferring the configured reboot policy."""

    def __init__(self, config: KennelConfig, client: ManagementClient | None = None) -> None:
        self._config = config
        self._client = client

    def reboot(self) -> None:
        """Reboot via policy, falling back to the immediate reboot command."""
        policy = self._config.reboot_policy
        if policy and self._client is not None:
            try:
                if self._client.run_policy(policy):
                    logger.info("Reboot policy %s ran; it will restart the machine", policy)
                    return
                logger.warning("Reboot policy %s did not run", policy)
            except KennelError as e:
                logger.warning("Reboot policy %s failed: %s", policy, e)

        command = self._config.reboot_command
        logger.warning("Rebooting now: %s", " ".join(command))
        try:
            result = run_command(command, timeout=60.0)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.critical("Reboot command failed: %s", e)
            return
        if not result.success:
            logger.critical(
                "Reboot command exited with code %d: %s",
                result.returncode,
                result.stderr.strip(),
            )


@dataclass(slots=True)
class DrainReport:
    """What happened while draining.

    Attributes:
        results: Executor results in queue order.
        dropped: Entries whose edition vanished from the catalog.
    """

    results: list[ActionResult] = field(default_factory=list)
    dropped: list[QueueEntry] = field(default_factory=list)


SlideshowFactory = Callable[[CaptionChannel], Slideshow]


class PuppyInstaller:
    """Drains the logout queue behind a slideshow, then reboots.

    Args:
        config: Captions and timings.
        queue: The logout queue.
        executor: Applies each entry.
        catalog: Catalog snapshot used to resolve and validate entries.
        prompt: Opt-out prompt.
        rebooter: Performs the final reboot.
        slideshow_factory: Builds the slideshow around a caption channel.
        sleep: Used for the final caption hold.
    """

    def __init__(
        self,
        config: KennelConfig,
        queue: LogoutQueue,
        executor: Executor,
        catalog: Catalog,
        prompt: OptOutPrompt,
        rebooter: Rebooter,
        slideshow_factory: SlideshowFactory,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._queue = queue
        self._executor = executor
        self._catalog = catalog
        self._prompt = prompt
        self._rebooter = rebooter
        self._slideshow_factory = slideshow_factory
        self._sleep = sleep
        self.state = PuppyState.IDLE
        self.report = DrainReport()

    def run(self) -> PuppyOutcome:
        """Run the logout install.

        Raises:
            Exception: Anything raised while draining propagates, but only
                after the slideshow has been stopped and the reboot issued.
        """
        self.state = PuppyState.IDLE
        if self._queue.is_empty():
            logger.info("Logout queue is empty; nothing to do")
            return PuppyOutcome.NOTHING_TO_DO

        self.state = PuppyState.OPTOUT_PROMPT
        if not self._prompt.proceed(self._config.optout_timeout_seconds):
            logger.info("User cancelled the logout install")
            self.state = PuppyState.CANCELLED
            return PuppyOutcome.CANCELLED

        channel = CaptionChannel()
        slideshow: Slideshow | None = None
        self.state = PuppyState.SLIDESHOW_RUNNING
        try:
            slideshow = self._slideshow_factory(channel)
            slideshow.start()

            self.state = PuppyState.DRAINING
            self._drain(channel)

            self.state = PuppyState.FINISHING
            channel.push(self._config.done_caption)
            self._sleep(self._config.finish_display_seconds)
        finally:
            if slideshow is not None:
                slideshow.stop()
            self.state = PuppyState.REBOOTING
            self._rebooter.reboot()

        return PuppyOutcome.REBOOTED

    def _drain(self, channel: CaptionChannel) -> None:
        for snapshot in self._queue.entries():
            entry = self._queue.get(snapshot.basename)
            if entry is None:
                logger.info("%s was dequeued during logout", snapshot.label)
                continue
            if not entry.same_request(snapshot):
                logger.info("Queue now asks for %s instead of %s", entry.label, snapshot.label)

            package = self._catalog.find(entry.basename, entry.edition)
            if package is None:
                logger.info("Dropping %s from the queue: not in the catalog", entry.label)
                self._queue.discard(entry)
                self.report.dropped.append(entry)
                continue

            channel.push(
                self._config.installing_caption.format(
                    basename=entry.basename,
                    edition=entry.edition,
                )
            )
            if entry.action == ActionType.INSTALL:
                action = create_install_action(package, reason="logout queue", live=package.is_live)
            else:
                action = create_uninstall_action(package, reason="logout queue")

            result = self._executor.apply(action)
            if result.failed:
                logger.error("%s failed during logout: %s", entry.label, result.error)
            self.report.results.append(result)
            self._queue.discard(entry)
