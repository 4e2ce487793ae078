"""
Main restoration orchestration manager.

This module loads snapshot files and hands them to the importer with logging
and progress reporting configured.
"""

from pathlib import Path
from typing import Optional

from .importer import Importer, ImportResult
from ..config import RestoreConfig
from ..envelope import Envelope
from ..utils.logger import setup_logger
from ..utils.progress import ProgressCallback
from ..utils.store import StoreAdapter, create_firestore_store
from ..validation.integrity_checker import IntegrityChecker, ValidationResult


class RestoreManager:
    """
    Main restoration orchestration class.

    Reads snapshot files, validates them and imports them into the store.
    """

    def __init__(self, config: RestoreConfig, store: Optional[StoreAdapter] = None):
        """
        Initialize restore manager.

        Args:
            config: Restore configuration
            store: Document store (a Firestore store is created from config when omitted)
        """
        self.config = config
        self.logger = setup_logger(
            name="restore_manager",
            log_level=config.log_level,
            log_file=config.log_file,
            log_max_size=config.log_max_size,
            log_backup_count=config.log_backup_count,
            verbose=config.verbose,
            debug=config.debug
        )

        self.store = store or create_firestore_store(
            project_id=config.project_id,
            credentials_file=config.credentials_file,
            requests_per_second=config.requests_per_second,
            burst_size=config.burst_size,
            window_size=config.window_size,
            logger=self.logger
        )
        self.importer = Importer(
            self.store,
            batch_limit=config.batch_limit,
            max_batch_writes=config.max_batch_writes,
            logger=self.logger
        )
        self.integrity_checker = IntegrityChecker(logger=self.logger)

    @staticmethod
    def read_snapshot(path: Path) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def load_envelope(self, path: Path) -> Envelope:
        """Parse a snapshot file. Raises FormatError for invalid files."""
        return Envelope.parse(self.read_snapshot(path))

    def validate_file(self, path: Path) -> ValidationResult:
        """Run the integrity checks on a snapshot file."""
        return self.integrity_checker.validate_envelope(self.load_envelope(path))

    def restore_from_file(
        self,
        path: Path,
        on_progress: Optional[ProgressCallback] = None
    ) -> ImportResult:
        """
        Import a snapshot file into the store.

        Args:
            path: Snapshot file
            on_progress: Optional callback receiving status strings

        Returns:
            ImportResult
        """
        self.logger.info(f"Restoring snapshot: {path}")
        try:
            result = self.importer.apply(self.read_snapshot(path), on_progress)
        except Exception as e:
            self.logger.error(f"Restore failed: {e}")
            raise

        self.logger.info(
            f"Restored {result.total_records} records and {result.child_records} child records "
            f"in {result.commits} commits"
        )
        return result
