"""Data models for kennel.

This module exports the core data structures used throughout the application.
"""

from kennel.models.action import (
    Action,
    ActionResult,
    ActionType,
    FailureReason,
    create_install_action,
    create_uninstall_action,
)
from kennel.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)
from kennel.models.package import CatalogPackage, Edition, PackageStatus
from kennel.models.queue import QueueEntry
from kennel.models.receipt import InstallType, Receipt

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "CatalogPackage",
    "Edition",
    "FailureReason",
    "HistoryActionType",
    "HistoryEntry",
    "HistoryItem",
    "InstallType",
    "PackageStatus",
    "QueueEntry",
    "Receipt",
    "create_history_entry",
    "create_install_action",
    "create_uninstall_action",
]
