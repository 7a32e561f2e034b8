"""Logout slideshow worker.

The slideshow runs on its own thread beside the install loop. The only
link between the two is a CaptionChannel: the installer pushes short
status texts, the slideshow picks up the newest one whenever it is
about to show the next image. Pushing never blocks and an unread caption
is simply overwritten by the next one.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.panel import Panel

from kennel.utils.formatting import err_console

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".tif", ".tiff", ".heic"})


class CaptionChannel:
    """Single-slot mailbox with overwrite-on-full semantics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: str | None = None

    def push(self, text: str) -> None:
        """Offer a caption, replacing any caption not yet picked up."""
        with self._lock:
            self._pending = text

    def poll(self) -> str | None:
        """Take the pending caption, or None if nothing new arrived."""
        with self._lock:
            text, self._pending = self._pending, None
            return text


class SlideRenderer(Protocol):
    """Displays one slide."""

    def show(self, image: Path | None, caption: str) -> None: ...


class ConsoleRenderer:
    """Renders slides as Rich panels."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or err_console

    def show(self, image: Path | None, caption: str) -> None:
        subtitle = image.name if image is not None else None
        self._console.print(Panel(caption, subtitle=subtitle, border_style="border"))


def find_images(directory: Path | None) -> list[Path]:
    """Return the slideshow images in ``directory`` (sorted, may be empty)."""
    if directory is None or not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)


class Slideshow:
    """Loops over a shuffled image set until stopped.

    Args:
        images: Images to cycle through. With none, captions are shown alone.
        renderer: Slide output.
        channel: Caption mailbox fed by the installer.
        interval: Seconds each slide stays up.
        default_caption: Caption used until the first status arrives.
        rng: Random source for shuffling.
    """

    def __init__(
        self,
        images: Sequence[Path],
        renderer: SlideRenderer,
        channel: CaptionChannel,
        interval: float,
        default_caption: str,
        rng: random.Random | None = None,
    ) -> None:
        self._images = list(images)
        self._renderer = renderer
        self._channel = channel
        self._interval = interval
        self._caption = default_caption
        self._rng = rng or random.Random()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def caption(self) -> str:
        """Caption currently on screen."""
        return self._caption

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None:
            msg = "Slideshow already started"
            raise RuntimeError(msg)
        self._thread = threading.Thread(target=self._run, name="kennel-slideshow", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> bool:
        """Ask the worker to stop and wait for it.

        A worker that does not finish within ``timeout`` is abandoned;
        being a daemon thread it cannot keep the process alive.

        Returns:
            True if the worker has exited.
        """
        self._stop.set()
        if self._thread is None:
            return True
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Slideshow did not stop within %.1fs; abandoning it", timeout)
            return False
        return True

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                order: list[Path | None] = list(self._images)
                self._rng.shuffle(order)
                for image in order or [None]:
                    if self._stop.is_set():
                        return
                    self._show(image)
                    if self._stop.wait(self._interval):
                        return
        except Exception:
            logger.exception("Slideshow worker crashed")

    def _show(self, image: Path | None) -> None:
        caption = self._channel.poll()
        if caption is not None:
            self._caption = caption
        self._renderer.show(image, self._caption)
