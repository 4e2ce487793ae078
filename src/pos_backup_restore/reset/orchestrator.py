"""
Factory reset.

This module wipes the destructible collections of the store, but only after
a complete backup of the store has been written and checked. The caller is
responsible for getting the exact confirmation phrase from the operator
before starting a run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional
import logging

from ..backup.exporter import Exporter
from ..config import CHILD_COLLECTIONS, DESTRUCTIBLE_COLLECTIONS, ChildCollection
from ..envelope import Envelope
from ..errors import FetchError, LifecycleError, WriteError
from ..utils.progress import ProgressCallback, ProgressSink
from ..utils.store import StoreAdapter, child_collection_path
from ..validation.integrity_checker import IntegrityChecker

BackupWriter = Callable[[Envelope], Path]


@dataclass
class ResetResult:
    """Outcome of a completed reset."""
    backup_path: Optional[Path] = None
    deleted: Dict[str, int] = field(default_factory=dict)  # collection -> documents deleted
    deleted_children: int = 0

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())


class ResetOrchestrator:
    """
    Backup-then-destroy sequence.

    1. Export the store. A failed export stops the run before any delete.
    2. Hand the envelope to the backup writer and verify the written file.
    3. Delete the destructible collections one document at a time.

    Deletions that already happened are never undone when a later one fails.
    """

    def __init__(
        self,
        store: StoreAdapter,
        exporter: Exporter,
        backup_writer: BackupWriter,
        integrity_checker: Optional[IntegrityChecker] = None,
        collections: Optional[List[str]] = None,
        child_collections: Optional[Dict[str, ChildCollection]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reset orchestrator.

        Args:
            store: Document store
            exporter: Exporter producing the mandatory backup
            backup_writer: Persists the backup envelope and returns its path
            integrity_checker: Verifies the written backup (skipped when None)
            collections: Collections to wipe (defaults to DESTRUCTIBLE_COLLECTIONS)
            child_collections: Parent collection -> child collection table
            logger: Logger instance
        """
        self.store = store
        self.exporter = exporter
        self.backup_writer = backup_writer
        self.integrity_checker = integrity_checker
        self.collections = list(collections if collections is not None else DESTRUCTIBLE_COLLECTIONS)
        self.child_collections = child_collections if child_collections is not None else CHILD_COLLECTIONS
        self.logger = logger or logging.getLogger(__name__)

    def run(
        self,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None
    ) -> ResetResult:
        """
        Run the reset.

        Args:
            on_progress: Receives status strings
            on_complete: Called once after every collection has been wiped
            on_error: Called with the error before it is raised

        Returns:
            ResetResult with the backup path and deletion counts

        Raises:
            FetchError: If the backup export or a collection read fails
            WriteError: If the backup cannot be written or verified, or a delete fails
        """
        sink = ProgressSink("factory reset", on_progress, self.logger)
        sink.start("Initializing Factory Reset...")
        result = ResetResult()

        try:
            result.backup_path = self._backup(sink)
            self._wipe(sink, result)
        except Exception as e:
            error = e if isinstance(e, LifecycleError) else WriteError(f"Factory reset failed: {e}")
            sink.fail(error)
            if on_error:
                on_error(error)
            if error is e:
                raise
            raise error from e

        sink.finish("Factory reset completed successfully.")
        if on_complete:
            on_complete()
        return result

    def _backup(self, sink: ProgressSink) -> Path:
        sink.report("Forcing mandatory data backup before deletion...")

        try:
            envelope = self.exporter.generate()
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(f"Backup export failed, nothing was deleted: {e}") from e

        missing = [name for name in self.collections if name not in envelope.data]
        if missing:
            raise FetchError(
                f"Backup does not cover {', '.join(missing)}, nothing was deleted"
            )

        try:
            backup_path = self.backup_writer(envelope)
        except Exception as e:
            raise WriteError(f"Emergency backup could not be written, nothing was deleted: {e}") from e

        if self.integrity_checker:
            verification = self.integrity_checker.verify_backup_file(
                backup_path, envelope, required_collections=self.collections
            )
            if not verification.passed:
                raise WriteError(
                    "Emergency backup failed verification, nothing was deleted: "
                    + "; ".join(verification.errors)
                )

        sink.report(f"Emergency backup saved to {backup_path}")
        return backup_path

    def _wipe(self, sink: ProgressSink, result: ResetResult) -> None:
        for collection in self.collections:
            sink.report(f"Wiping collection: {collection}...")

            try:
                documents = self.store.read_all(collection)
            except Exception as e:
                raise FetchError(f"Failed to read '{collection}' for deletion: {e}", collection=collection) from e

            child = self.child_collections.get(collection)
            deleted = 0
            for document in documents:
                if child:
                    result.deleted_children += self._wipe_children(collection, document.id, child)
                self._delete(collection, document.id)
                deleted += 1
                result.deleted[collection] = deleted

            result.deleted[collection] = deleted
            sink.increment("deleted", deleted)
            sink.report(f"Wiped {deleted} documents from {collection}")

    def _wipe_children(self, collection: str, parent_id: str, child: ChildCollection) -> int:
        path = child_collection_path(collection, parent_id, child.name)
        try:
            children = self.store.read_children(collection, parent_id, child.name)
        except Exception as e:
            raise FetchError(f"Failed to read '{path}' for deletion: {e}", collection=path) from e

        for document in children:
            self._delete(path, document.id)
        return len(children)

    def _delete(self, collection: str, document_id: str) -> None:
        try:
            self.store.delete_document(collection, document_id)
        except Exception as e:
            raise WriteError(
                f"Failed to delete '{collection}/{document_id}': {e}", collection=collection
            ) from e
