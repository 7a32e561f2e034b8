"""CLI commands for kennel.

This package contains all subcommand implementations.
"""

from kennel.cli.commands import history, hostinfo, init, plan, queue, receipts, sync

__all__ = ["history", "hostinfo", "init", "plan", "queue", "receipts", "sync"]
