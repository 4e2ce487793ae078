"""
Restore modules for POS store import.

This package validates snapshot files and writes them back to the store in
bounded atomic batches.
"""

from .importer import Importer, ImportResult
from .manager import RestoreManager

__all__ = [
    "Importer",
    "ImportResult",
    "RestoreManager",
]
