"""Group scope resolution."""

from collections.abc import Iterable

from kennel.models.package import CatalogPackage


def in_scope(package: CatalogPackage, membership: Iterable[str]) -> bool:
    """Check whether a machine with ``membership`` should auto-install ``package``.

    The machine must belong to at least one auto-install group and to
    none of the excluded groups. Exclusion always wins.

    Args:
        package: Catalog edition carrying the scope groups.
        membership: Group identifiers the machine belongs to.

    Returns:
        True if the package is in scope for the machine.
    """
    groups = frozenset(membership)
    if groups & package.excluded_groups:
        return False
    return bool(groups & package.auto_install_groups)
