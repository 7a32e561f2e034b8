"""Distribution point access.

The distribution point is the share package payloads and scripts are
served from. When mount and unmount commands are configured, the share
is mounted for the duration of a run; otherwise the configured path is
assumed to be locally available already.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from kennel.core.errors import TransientResourceFailure
from kennel.utils.shell import run_command

logger = logging.getLogger(__name__)


class DistributionPoint:
    """Context manager that mounts and unmounts the distribution point."""

    def __init__(
        self,
        path: Path,
        mount_command: list[str] | None = None,
        unmount_command: list[str] | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._path = path
        self._mount_command = mount_command
        self._unmount_command = unmount_command
        self._timeout = timeout
        self._mounted = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def mounted(self) -> bool:
        return self._mounted

    def __enter__(self) -> DistributionPoint:
        self.mount()
        return self

    def __exit__(self, *args: object) -> None:
        self.unmount()

    def mount(self) -> None:
        """Mount the share if a mount command is configured.

        Raises:
            TransientResourceFailure: If mounting fails or the path is missing.
        """
        if self._mount_command:
            args = [part.format(path=str(self._path)) for part in self._mount_command]
            self._run(args, "mount")
            self._mounted = True
            logger.info("Mounted distribution point at %s", self._path)

        if not self._path.is_dir():
            self.unmount()
            raise TransientResourceFailure(f"Distribution point not available: {self._path}")

    def unmount(self) -> None:
        """Unmount the share if this object mounted it. Never raises."""
        if not self._mounted or not self._unmount_command:
            self._mounted = False
            return
        args = [part.format(path=str(self._path)) for part in self._unmount_command]
        try:
            self._run(args, "unmount")
            logger.info("Unmounted distribution point %s", self._path)
        except TransientResourceFailure as e:
            logger.warning("%s", e)
        finally:
            self._mounted = False

    def _run(self, args: list[str], verb: str) -> None:
        try:
            result = run_command(args, timeout=self._timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise TransientResourceFailure(f"Cannot {verb} distribution point: {e}") from e
        if not result.success:
            raise TransientResourceFailure(
                f"Cannot {verb} distribution point: {result.stderr.strip() or result.returncode}"
            )
