"""Action models for package operations.

This module defines data structures for representing install and
uninstall actions and the outcome of executing them.
"""

from dataclasses import dataclass
from enum import Enum

from kennel.models.package import CatalogPackage


class ActionType(str, Enum):
    """Type of package action.

    Attributes:
        INSTALL: Install (or update to) an edition.
        UNINSTALL: Remove the installed edition.
    """

    INSTALL = "install"
    UNINSTALL = "uninstall"


class FailureReason(str, Enum):
    """Why an action did not complete.

    Attributes:
        PREFLIGHT_REJECTED: The pre-install/pre-uninstall script vetoed it.
        PAYLOAD_FAILURE: The installer or uninstaller itself failed.
    """

    PREFLIGHT_REJECTED = "preflight_rejected"
    PAYLOAD_FAILURE = "payload_failure"


@dataclass(frozen=True, slots=True)
class Action:
    """A single package action to be executed.

    Attributes:
        action_type: Install or uninstall.
        package: Catalog edition the action targets.
        reason: Why reconciliation chose this action.
        live: Whether an install should be receipted as live.
        expired: Whether an uninstall is an expiration.
    """

    action_type: ActionType
    package: CatalogPackage
    reason: str | None = None
    live: bool = True
    expired: bool = False

    @property
    def basename(self) -> str:
        """Basename of the targeted package."""
        return self.package.basename

    @property
    def is_install(self) -> bool:
        """Check if this is an install action."""
        return self.action_type == ActionType.INSTALL

    @property
    def is_uninstall(self) -> bool:
        """Check if this is an uninstall action."""
        return self.action_type == ActionType.UNINSTALL

    @property
    def label(self) -> str:
        """Return ``install app@2.1`` style text."""
        return f"{self.action_type.value} {self.package.label}"


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Result of executing an action.

    Attributes:
        action: The action that was executed.
        success: Whether the action completed.
        message: Optional additional information.
        reason: Failure classification when the action failed.
        error: Error detail when the action failed.
    """

    action: Action
    success: bool
    message: str | None = None
    reason: FailureReason | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return not self.success


def create_install_action(
    package: CatalogPackage,
    reason: str | None = None,
    live: bool = True,
) -> Action:
    """Create an install action for a catalog edition."""
    return Action(action_type=ActionType.INSTALL, package=package, reason=reason, live=live)


def create_uninstall_action(
    package: CatalogPackage,
    reason: str | None = None,
    expired: bool = False,
) -> Action:
    """Create an uninstall action for a catalog edition."""
    return Action(
        action_type=ActionType.UNINSTALL,
        package=package,
        reason=reason,
        expired=expired,
    )
