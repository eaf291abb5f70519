"""
Upgrade engine: scripts, script providers and the upgrader.
"""
from .scripts import FileSystemScriptProvider, SqlScript
from .upgrader import Upgrader, UpgradeResult

__all__ = ["SqlScript", "FileSystemScriptProvider", "Upgrader", "UpgradeResult"]
