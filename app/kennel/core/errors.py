"""Exception hierarchy for kennel.

Exit codes used by the command line front ends are attached to the
run-level errors so a single top-level handler can map them.
"""


class KennelError(Exception):
    """Base exception for kennel errors."""

    exit_code = 12


class PreflightRejected(KennelError):
    """Raised when a pre-install or pre-uninstall script vetoes an action."""


class PayloadFailure(KennelError):
    """Raised when the package installer or uninstaller itself fails."""


class CatalogInconsistency(KennelError):
    """Raised when local state references an edition the catalog lacks.

    Also raised for catalogs that publish more than one live edition of
    the same basename.
    """


class TransientResourceFailure(KennelError):
    """Raised when the management API or distribution point is unavailable."""


class StoreError(KennelError):
    """Raised when a local state file cannot be read or written."""


class LookupNotFound(KennelError):
    """Raised when a requested record does not exist."""

    exit_code = 2
