"""
Main backup orchestration manager.

This module wires the Firestore store, the exporter and logging together and
writes snapshot envelopes to timestamped JSON files.
"""

from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime

from .exporter import Exporter
from ..config import BackupConfig, EXPORT_COLLECTIONS, CHILD_COLLECTIONS
from ..envelope import Envelope, export_filename, emergency_backup_filename
from ..utils.logger import setup_logger
from ..utils.progress import ProgressCallback
from ..utils.store import StoreAdapter, create_firestore_store


class BackupManager:
    """
    Main backup orchestration class.

    Generates envelopes through the Exporter and saves them as routine
    exports or emergency backups without ever overwriting an earlier file.
    """

    def __init__(self, config: BackupConfig, store: Optional[StoreAdapter] = None):
        """
        Initialize backup manager.

        Args:
            config: Backup configuration
            store: Document store (a Firestore store is created from config when omitted)
        """
        self.config = config
        self.logger = setup_logger(
            name="backup_manager",
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
        self.exporter = Exporter(self.store, logger=self.logger)

        # State of the last export
        self.last_envelope: Optional[Envelope] = None
        self.last_path: Optional[Path] = None

    def generate(self, on_progress: Optional[ProgressCallback] = None) -> Envelope:
        """Export the store into a new envelope."""
        envelope = self.exporter.generate(on_progress)
        self.last_envelope = envelope
        return envelope

    def export_to_file(
        self,
        output_dir: Optional[Path] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> Path:
        """
        Export the store and save it as ``<prefix>_export_<date>.json``.

        Args:
            output_dir: Target directory (defaults to config.output_dir)
            on_progress: Optional callback receiving status strings

        Returns:
            Path of the written file
        """
        envelope = self.generate(on_progress)
        return self.write_envelope(envelope, export_filename(self.config.app_prefix), output_dir)

    def write_emergency_backup(self, envelope: Envelope) -> Path:
        """Save an envelope as ``<prefix>_emergency_backup_<date>.json``."""
        return self.write_envelope(envelope, emergency_backup_filename(self.config.app_prefix))

    def write_envelope(self, envelope: Envelope, filename: str, output_dir: Optional[Path] = None) -> Path:
        """
        Write an envelope as indented UTF-8 JSON.

        An existing file with the same name gets a time suffix instead of
        being replaced.
        """
        target_dir = Path(output_dir) if output_dir else self.config.output_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        path = target_dir / filename
        if path.exists():
            stem = f"{path.stem}_{datetime.now().strftime('%H%M%S')}"
            path = target_dir / f"{stem}{path.suffix}"
            counter = 1
            while path.exists():
                path = target_dir / f"{stem}_{counter}{path.suffix}"
                counter += 1

        with open(path, 'w', encoding='utf-8') as f:
            f.write(envelope.to_json())

        self.last_path = path
        self.logger.info(f"Saved snapshot ({envelope.total_records} records): {path}")
        return path

    def get_backup_stats(self) -> Dict[str, Any]:
        """
        Get backup statistics.

        Returns:
            Dictionary with backup statistics
        """
        stats: Dict[str, Any] = {
            "backup_file": str(self.last_path) if self.last_path else None,
            "collections_configured": len(EXPORT_COLLECTIONS),
            "collections_with_children": sorted(CHILD_COLLECTIONS),
        }

        if self.last_envelope:
            stats.update({
                "export_date": self.last_envelope.export_date,
                "record_counts": self.last_envelope.record_counts(),
                "total_records": self.last_envelope.total_records,
            })

        if hasattr(self.store, "get_stats"):
            stats["store_stats"] = self.store.get_stats()

        return stats
