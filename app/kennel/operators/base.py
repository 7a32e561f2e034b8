"""Abstract base class for payload installers.

The installer is the seam to the operating system's own package
installer. It knows how to lay a payload down and take it away again,
and nothing about receipts, scripts or scope.
"""

from abc import ABC, abstractmethod

from kennel.models.package import CatalogPackage


class Installer(ABC):
    """Abstract base class for payload installers.

    Attributes:
        dry_run: If True, only log what would be done.

    Example:
        >>> installer = CommandInstaller(config, target="/", dry_run=True)
        >>> if installer.is_available():
        ...     installer.install(package)
    """

    def __init__(self, dry_run: bool = False) -> None:
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if installer is in dry-run mode."""
        return self._dry_run

    @abstractmethod
    def install(self, package: CatalogPackage) -> str:
        """Install the payload of ``package``.

        Returns:
            Installer output worth keeping in logs.

        Raises:
            PayloadFailure: If the installation failed.
        """

    @abstractmethod
    def uninstall(self, package: CatalogPackage) -> str:
        """Remove ``package`` from the machine.

        Returns:
            Uninstaller output worth keeping in logs.

        Raises:
            PayloadFailure: If the removal failed.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying installer can be used on this machine."""
