"""
Command-line interface modules for export, import and reset operations.

This package provides user-friendly CLI interfaces with progress tracking
and error reporting.
"""

from .backup_cli import backup_app
from .restore_cli import restore_app
from .reset_cli import reset_app

__all__ = [
    "backup_app",
    "restore_app",
    "reset_app",
]
