"""Adapters for the management server and the distribution point."""

from kennel.remote.client import (
    FileManagementClient,
    HttpManagementClient,
    ManagementClient,
    create_client,
)
from kennel.remote.distribution import DistributionPoint

__all__ = [
    "DistributionPoint",
    "FileManagementClient",
    "HttpManagementClient",
    "ManagementClient",
    "create_client",
]
