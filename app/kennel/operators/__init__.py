"""Package operators for kennel."""

from kennel.operators.base import Installer
from kennel.operators.command import CommandInstaller
from kennel.operators.scripts import ScriptRunner

__all__ = ["CommandInstaller", "Installer", "ScriptRunner"]
