"""Agent configuration and settings.

This module provides the configuration model and I/O functions for
kennel. Every tunable the reconciliation engine and the logout installer
need is carried on one ``KennelConfig`` instance that callers pass into
constructors.

Configuration is stored in /etc/kennel/kennel.toml
"""

import logging
import socket
import tomllib
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kennel.core.errors import KennelError
from kennel.core.paths import get_config_path

logger = logging.getLogger(__name__)


def _default_machine_name() -> str:
    return socket.gethostname().split(".")[0]


class KennelConfig(BaseModel):
    """Configuration for the kennel agent.

    Attributes:
        server_url: Base URL of the management API. If unset, the catalog
            snapshot file on the distribution point is used instead.
        api_token: Bearer token for the management API.
        api_timeout_seconds: Timeout for each API request.
        catalog_file: Catalog snapshot path, relative to the distribution point.
        machine_name: Name this machine is known by on the server.
        distribution_point: Local path where package payloads are found.
        mount_command: Optional argv that mounts the distribution point.
        unmount_command: Optional argv that unmounts it again.
        install_command: Argv template for installing a payload.
        uninstall_command: Argv template for removing a package.
        install_timeout_seconds: Timeout for one payload install or removal.
        script_timeout_seconds: Timeout for one pre/post script.
        usage_file: JSON file written by the foreground usage daemon.
        expiration_grace_days: Days after install during which a package
            without any usage record is not expired. 0 disables the grace.
        reboot_policy: Management policy that performs the reboot.
        reboot_command: Argv for the immediate fallback reboot.
        optout_timeout_seconds: How long the user may cancel a logout install.
        finish_display_seconds: How long the final caption stays up.
        slide_interval_seconds: Time each slideshow image is shown.
        slideshow_dir: Directory of images for the slideshow.
        default_caption: Caption shown before any status arrives.
        installing_caption: Caption template while an entry installs.
        done_caption: Caption shown after the queue is drained.
    """

    model_config = ConfigDict(extra="forbid")

    server_url: Annotated[str | None, Field(description="Management API base URL")] = None
    api_token: Annotated[str | None, Field(description="Management API token")] = None
    api_timeout_seconds: Annotated[float, Field(gt=0, le=600)] = 30.0
    catalog_file: str = "catalog.toml"
    machine_name: Annotated[str, Field(default_factory=_default_machine_name)]

    distribution_point: Path = Path("/Volumes/kennel")
    mount_command: list[str] | None = None
    unmount_command: list[str] | None = None

    install_command: list[str] = [
        "/usr/sbin/installer",
        "-pkg",
        "{payload}",
        "-target",
        "{target}",
    ]
    uninstall_command: list[str] = [
        "/usr/local/bin/kennel-uninstall",
        "{basename}",
        "{target}",
    ]
    install_timeout_seconds: Annotated[float, Field(gt=0)] = 1800.0
    script_timeout_seconds: Annotated[float, Field(gt=0)] = 300.0

    usage_file: Path = Path("/var/lib/kennel/usage.json")
    expiration_grace_days: Annotated[int, Field(ge=0)] = 0

    reboot_policy: str | None = None
    reboot_command: list[str] = ["/sbin/shutdown", "-r", "now"]

    optout_timeout_seconds: Annotated[int, Field(ge=0, le=3600)] = 60
    finish_display_seconds: Annotated[float, Field(ge=0)] = 10.0
    slide_interval_seconds: Annotated[float, Field(gt=0)] = 8.0
    slideshow_dir: Path | None = None
    default_caption: str = "Installing software. Please do not turn off your computer."
    installing_caption: str = "Now installing {basename} {edition}..."
    done_caption: str = "All done! Your computer will restart shortly."


class ConfigError(KennelError):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""


def load_config(path: Path | None = None) -> KennelConfig:
    """Load the agent configuration from a TOML file.

    A missing file is not an error: the defaults are returned so a
    freshly enrolled machine can still run.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated KennelConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or fails validation.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return KennelConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return KennelConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: KennelConfig, path: Path | None = None) -> Path:
    """Save the agent configuration to a TOML file.

    Args:
        config: Configuration to write.
        path: Destination path. If None, uses the default path.

    Returns:
        Path where the configuration was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    data = config.model_dump(mode="json", exclude_none=True)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "wb") as f:
            tomli_w.dump(data, f)
    except OSError as e:
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
