"""Command-template payload installer.

Runs the configured install and uninstall command lines. Templates may
use ``{payload}``, ``{target}``, ``{basename}`` and ``{edition}``.
"""

import logging
import os
import subprocess
from pathlib import Path

from kennel.core.config import KennelConfig
from kennel.core.errors import PayloadFailure
from kennel.models.package import CatalogPackage
from kennel.operators.base import Installer
from kennel.utils.shell import run_command

logger = logging.getLogger(__name__)


class CommandInstaller(Installer):
    """Installer that shells out to configured command lines.

    Attributes:
        target: Volume or root the payload is installed onto.
    """

    def __init__(
        self,
        config: KennelConfig,
        target: str = "/",
        distribution_point: Path | None = None,
        dry_run: bool = False,
    ) -> None:
        super().__init__(dry_run=dry_run)
        self._config = config
        self._target = target
        self._distribution_point = distribution_point or config.distribution_point

    @property
    def target(self) -> str:
        return self._target

    def is_available(self) -> bool:
        return os.access(self._config.install_command[0], os.X_OK)

    def install(self, package: CatalogPackage) -> str:
        if not package.filename:
            raise PayloadFailure(f"{package.label} has no payload file")
        payload = self._distribution_point / package.filename
        if not self.dry_run and not payload.exists():
            raise PayloadFailure(f"Payload not found on distribution point: {payload}")
        return self._run(self._config.install_command, package, payload)

    def uninstall(self, package: CatalogPackage) -> str:
        payload = self._distribution_point / (package.filename or package.basename)
        return self._run(self._config.uninstall_command, package, payload)

    def _run(self, template: list[str], package: CatalogPackage, payload: Path) -> str:
        args = [
            part.format(
                payload=str(payload),
                target=self._target,
                basename=package.basename,
                edition=str(package.edition),
            )
            for part in template
        ]

        if self.dry_run:
            logger.info("[dry-run] would run: %s", " ".join(args))
            return ""

        logger.debug("Running: %s", " ".join(args))
        try:
            result = run_command(args, timeout=self._config.install_timeout_seconds)
        except subprocess.TimeoutExpired as e:
            msg = f"{args[0]} timed out after {self._config.install_timeout_seconds:.0f}s"
            raise PayloadFailure(msg) from e
        except (FileNotFoundError, PermissionError) as e:
            raise PayloadFailure(f"Cannot run {args[0]}: {e}") from e
        except OSError as e:
            raise PayloadFailure(f"Failed to execute {args[0]}: {e}") from e

        if not result.success:
            detail = result.stderr.strip() or result.stdout.strip()
            msg = f"{args[0]} exited with code {result.returncode}"
            raise PayloadFailure(f"{msg}: {detail}" if detail else msg)

        return result.stdout
