"""CLI package for kennel.

This package contains the Typer applications and all subcommands.
"""

from kennel.cli.main import app

__all__ = ["app"]
