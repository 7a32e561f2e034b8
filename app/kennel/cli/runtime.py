"""Helpers shared by the command implementations."""

import logging
from pathlib import Path
from typing import Any

import typer

from kennel.core.config import ConfigError, KennelConfig, load_config
from kennel.core.executor import Executor
from kennel.core.receipts import ReceiptStore
from kennel.core.session import Session
from kennel.core.state import StateManager
from kennel.operators.command import CommandInstaller
from kennel.operators.scripts import ScriptRunner
from kennel.utils.formatting import print_error

logger = logging.getLogger(__name__)


def get_config(ctx: typer.Context | None = None) -> KennelConfig:
    """Load the configuration, honoring a ``--config`` given to the main app.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    path: Path | None = None
    if ctx is not None and isinstance(ctx.obj, dict):
        path = ctx.obj.get("config_path")

    try:
        return load_config(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=e.exit_code) from e


def build_executor(
    config: KennelConfig,
    session: Session,
    receipts: ReceiptStore,
    target: str = "/",
    dry_run: bool = False,
    metadata: dict[str, Any] | None = None,
) -> Executor:
    """Wire an Executor to the mounted distribution point of ``session``."""
    dp_path = session.distribution_point.path
    installer = CommandInstaller(
        config,
        target=target,
        distribution_point=dp_path,
        dry_run=dry_run,
    )
    if not dry_run and not installer.is_available():
        logger.warning("Installer %s is not executable", config.install_command[0])
    scripts = ScriptRunner(
        dp_path,
        target=target,
        timeout=config.script_timeout_seconds,
        dry_run=dry_run,
    )
    return Executor(
        installer,
        receipts,
        scripts,
        history=StateManager(),
        metadata=metadata,
    )
