"""
Backup modules for POS store export.

This package handles snapshot generation and writing snapshot files.
"""

from .exporter import Exporter
from .manager import BackupManager

__all__ = [
    "Exporter",
    "BackupManager",
]
