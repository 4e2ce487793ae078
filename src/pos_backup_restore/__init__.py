"""
POS Backup & Restore

Export, import and factory reset for the point-of-sale Firestore store, with
timestamp preservation, child collection support and a mandatory backup
before any destructive operation.
"""

__version__ = "1.0.0"
__author__ = "POS Backup Restore"

from .backup.exporter import Exporter
from .backup.manager import BackupManager
from .restore.importer import Importer, ImportResult
from .restore.manager import RestoreManager
from .reset.orchestrator import ResetOrchestrator, ResetResult
from .reset.manager import ResetManager
from .envelope import Envelope
from .errors import LifecycleError, FormatError, FetchError, WriteError, SkippedRecord
from .config import BackupConfig, RestoreConfig, ResetConfig

__all__ = [
    "Exporter",
    "BackupManager",
    "Importer",
    "ImportResult",
    "RestoreManager",
    "ResetOrchestrator",
    "ResetResult",
    "ResetManager",
    "Envelope",
    "LifecycleError",
    "FormatError",
    "FetchError",
    "WriteError",
    "SkippedRecord",
    "BackupConfig",
    "RestoreConfig",
    "ResetConfig",
    "__version__",
]
