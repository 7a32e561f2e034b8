"""Machine-scoped path management for kennel.

kennel runs as root on managed clients, so configuration and state live
in system locations rather than in a user's home directory:

- Config: /etc/kennel/
- State: /var/lib/kennel/

Both can be redirected with the ``KENNEL_CONFIG_DIR`` and
``KENNEL_STATE_DIR`` environment variables.
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "kennel"

DEFAULT_CONFIG_DIR = Path("/etc") / APP_NAME
DEFAULT_STATE_DIR = Path("/var/lib") / APP_NAME


def _get_dir(env_var: str, default: Path) -> Path:
    """Get a directory respecting an environment variable override.

    Args:
        env_var: Environment variable name (e.g., "KENNEL_STATE_DIR").
        default: Path used when the variable is unset or empty.

    Returns:
        Path to the application directory.
    """
    override = os.environ.get(env_var)
    if override:
        return Path(override)
    return default


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to /etc/kennel/ (or $KENNEL_CONFIG_DIR).
    """
    return _get_dir("KENNEL_CONFIG_DIR", DEFAULT_CONFIG_DIR)


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes receipts, the logout queue, history and host
    info, all of which must survive reboots.

    Returns:
        Path to /var/lib/kennel/ (or $KENNEL_STATE_DIR).
    """
    return _get_dir("KENNEL_STATE_DIR", DEFAULT_STATE_DIR)


def get_config_path() -> Path:
    """Get the main configuration file path."""
    return get_config_dir() / "kennel.toml"


def get_theme_path() -> Path:
    """Get the optional user theme override path."""
    return get_config_dir() / "theme.toml"


def get_receipts_path() -> Path:
    """Get the receipt store path."""
    return get_state_dir() / "receipts.json"


def get_queue_path() -> Path:
    """Get the logout queue path."""
    return get_state_dir() / "logout-queue.json"


def get_hostinfo_path() -> Path:
    """Get the host info record path."""
    return get_state_dir() / "hostinfo.toml"
