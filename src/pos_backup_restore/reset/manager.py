"""
Factory reset wiring.

Builds a ResetOrchestrator whose mandatory backup is written by the
BackupManager into the configured backup directory.
"""

from typing import Callable, Optional

from .orchestrator import ResetOrchestrator, ResetResult
from ..backup.manager import BackupManager
from ..config import BackupConfig, ResetConfig
from ..utils.logger import setup_logger
from ..utils.progress import ProgressCallback
from ..utils.store import StoreAdapter, create_firestore_store
from ..validation.integrity_checker import IntegrityChecker


class ResetManager:
    """Runs a factory reset from a ResetConfig."""

    def __init__(self, config: ResetConfig, store: Optional[StoreAdapter] = None):
        self.config = config
        self.logger = setup_logger(
            name="reset_manager",
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

        backup_config = BackupConfig(
            project_id=config.project_id,
            credentials_file=config.credentials_file,
            output_dir=config.output_dir,
            app_prefix=config.app_prefix,
            log_level=config.log_level,
            log_file=config.log_file,
            verbose=config.verbose,
            debug=config.debug
        )
        self.backup_manager = BackupManager(backup_config, store=self.store)

        self.orchestrator = ResetOrchestrator(
            store=self.store,
            exporter=self.backup_manager.exporter,
            backup_writer=self.backup_manager.write_emergency_backup,
            integrity_checker=IntegrityChecker(logger=self.logger) if config.verify_backup else None,
            logger=self.logger
        )

    def run(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None
    ) -> ResetResult:
        """Run the reset. See ResetOrchestrator.run."""
        return self.orchestrator.run(on_progress, on_complete, on_error)
