"""Core utilities for administering local Linux accounts."""

from __future__ import annotations

from .config import Settings, load_configuration, resolve_config_path
from .directory import AccountDirectory, AccountDirectoryError, SystemAccountDirectory
from .operations import AccountManager

__all__ = [
    "AccountDirectory",
    "AccountDirectoryError",
    "AccountManager",
    "Settings",
    "SystemAccountDirectory",
    "load_configuration",
    "resolve_config_path",
]
