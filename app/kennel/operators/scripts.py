"""Pre- and post-flight script execution.

Scripts are referenced from catalog records by name. Relative names
resolve under ``scripts/`` on the distribution point. Each script is
called as ``SCRIPT TARGET BASENAME EDITION``.
"""

import logging
import subprocess
from pathlib import Path

from kennel.models.package import CatalogPackage
from kennel.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)

# Return code used when a script could not be started at all
SCRIPT_NOT_RUN = 127


class ScriptRunner:
    """Runs package scripts with a timeout.

    A script that cannot be found or started, or that times out, is
    reported as a non-zero result rather than raised.
    """

    def __init__(
        self,
        distribution_point: Path,
        target: str = "/",
        timeout: float = 300.0,
        dry_run: bool = False,
    ) -> None:
        self._scripts_dir = distribution_point / "scripts"
        self._target = target
        self._timeout = timeout
        self._dry_run = dry_run

    def resolve(self, script: str) -> Path:
        """Return the filesystem path for a script reference."""
        path = Path(script)
        return path if path.is_absolute() else self._scripts_dir / path

    def run(self, script: str, package: CatalogPackage, phase: str) -> CommandResult:
        """Run ``script`` for ``package``.

        Args:
            script: Script reference from the catalog.
            package: Edition being installed or removed.
            phase: Label for logs, e.g. ``"preinstall"``.

        Returns:
            CommandResult of the script.
        """
        path = self.resolve(script)
        args = [str(path), self._target, package.basename, str(package.edition)]

        if self._dry_run:
            logger.info("[dry-run] would run %s script %s", phase, path)
            return CommandResult(stdout="", stderr="", returncode=0)

        logger.debug("Running %s script for %s: %s", phase, package.label, path)
        try:
            return run_command(args, timeout=self._timeout)
        except subprocess.TimeoutExpired:
            msg = f"{phase} script timed out after {self._timeout:.0f}s"
        except (FileNotFoundError, PermissionError) as e:
            msg = f"{phase} script cannot be run: {e}"
        except OSError as e:
            msg = f"{phase} script failed to start: {e}"
        return CommandResult(stdout="", stderr=msg, returncode=SCRIPT_NOT_RUN)
