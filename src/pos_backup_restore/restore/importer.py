"""
Snapshot import.

This module validates a snapshot envelope and writes its records back to the
store in bounded atomic batches, rebuilding child collections and turning
canonical timestamp strings back into store timestamps.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from ..config import BATCH_LIMIT, MAX_BATCH_WRITES, CHILD_COLLECTIONS, ChildCollection
from ..envelope import Envelope
from ..errors import SkippedRecord, WriteError
from ..utils.progress import ProgressCallback, ProgressSink
from ..utils.store import StoreAdapter, WriteOp
from ..utils.temporal import decode_fields


@dataclass
class ImportResult:
    """Outcome of a completed import."""
    collections: Dict[str, int] = field(default_factory=dict)  # collection -> records written
    child_records: int = 0
    commits: int = 0
    skipped: List[SkippedRecord] = field(default_factory=list)
    success: bool = False

    @property
    def total_records(self) -> int:
        return sum(self.collections.values())


class Importer:
    """
    Applies a snapshot to the store.

    Every precondition is checked before the first write. Once writing has
    started, a failed commit stops the import and leaves earlier batches in
    place: the store may be partially imported, and the error is raised.
    """

    def __init__(
        self,
        store: StoreAdapter,
        batch_limit: int = BATCH_LIMIT,
        max_batch_writes: int = MAX_BATCH_WRITES,
        child_collections: Optional[Dict[str, ChildCollection]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize importer.

        Args:
            store: Document store
            batch_limit: Maximum records per batch
            max_batch_writes: Maximum writes (records plus children) per commit
            child_collections: Parent collection -> child collection table
            logger: Logger instance
        """
        if batch_limit <= 0 or batch_limit > max_batch_writes:
            raise ValueError(f"batch_limit must be between 1 and {max_batch_writes}")

        self.store = store
        self.batch_limit = batch_limit
        self.max_batch_writes = max_batch_writes
        self.child_collections = child_collections if child_collections is not None else CHILD_COLLECTIONS
        self.logger = logger or logging.getLogger(__name__)

    def apply(self, raw_text: str, on_progress: Optional[ProgressCallback] = None) -> ImportResult:
        """
        Import snapshot text.

        Args:
            raw_text: Snapshot JSON text
            on_progress: Optional callback receiving status strings

        Returns:
            ImportResult with per-collection counts and skipped records

        Raises:
            FormatError: If the text is not a supported snapshot (nothing written)
            WriteError: If a batch commit fails (earlier batches stay committed)
        """
        envelope = Envelope.parse(raw_text)
        return self.apply_envelope(envelope, on_progress)

    def apply_envelope(self, envelope: Envelope, on_progress: Optional[ProgressCallback] = None) -> ImportResult:
        """Import an already parsed envelope."""
        sink = ProgressSink("import", on_progress, self.logger)
        sink.start("File parsed successfully. Preparing to write data...")

        result = ImportResult()
        try:
            for collection, records in envelope.data.items():
                if not isinstance(records, list):
                    self.logger.warning(f"Skipping invalid collection data for: {collection}")
                    continue

                if not records:
                    sink.report(f"Skipping empty collection: {collection}")
                    continue

                sink.report(f"Importing {len(records)} items to {collection}...")
                result.collections[collection] = self._import_collection(
                    collection, records, result, sink
                )
        except Exception as e:
            sink.fail(e)
            raise

        if result.skipped:
            self.logger.warning(
                f"Skipped {len(result.skipped)} records: "
                + ", ".join(f"{s.collection}[{s.index}] ({s.reason})" for s in result.skipped[:10])
                + (" ..." if len(result.skipped) > 10 else "")
            )

        result.success = True
        sink.finish("Import completed successfully!")
        return result

    def _import_collection(
        self,
        collection: str,
        records: List[Any],
        result: ImportResult,
        sink: ProgressSink
    ) -> int:
        written = 0
        child = self.child_collections.get(collection)

        for start in range(0, len(records), self.batch_limit):
            chunk = records[start:start + self.batch_limit]

            ops: List[WriteOp] = []
            chunk_records = 0
            chunk_children = 0
            for offset, raw_record in enumerate(chunk):
                record_ops, children = self._record_ops(
                    collection, start + offset, raw_record, child, result
                )
                if not record_ops:
                    continue

                if len(record_ops) > self.max_batch_writes:
                    raise WriteError(
                        f"Record '{record_ops[0].document_id}' in '{collection}' needs "
                        f"{len(record_ops)} writes, more than one batch allows",
                        collection=collection,
                        committed=written
                    )

                # Keep a parent and its children in the same commit
                if len(ops) + len(record_ops) > self.max_batch_writes:
                    self._commit(collection, ops, written, result)
                    written += chunk_records
                    result.child_records += chunk_children
                    ops, chunk_records, chunk_children = [], 0, 0

                ops.extend(record_ops)
                chunk_records += 1
                chunk_children += children

            if ops:
                self._commit(collection, ops, written, result)
            written += chunk_records
            result.child_records += chunk_children
            sink.increment("records", chunk_records)
            sink.increment("child_records", chunk_children)

            if len(records) > self.batch_limit:
                sink.report(
                    f"Imported {min(start + self.batch_limit, len(records))} / {len(records)} "
                    f"items to {collection}..."
                )

        return written

    def _record_ops(
        self,
        collection: str,
        index: int,
        raw_record: Any,
        child: Optional[ChildCollection],
        result: ImportResult
    ) -> Tuple[List[WriteOp], int]:
        """Writes for one record: the parent first, then its children."""
        document_id, fields, reason = self._split_id(raw_record)
        if document_id is None:
            result.skipped.append(SkippedRecord(collection, index, reason))
            return [], 0

        child_ops: List[WriteOp] = []
        if child and child.reserved_key in fields:
            # The reserved key is never written as a field
            child_records = fields.pop(child.reserved_key)
            if not isinstance(child_records, list):
                child_records = []

            for child_index, raw_child in enumerate(child_records):
                child_id, child_fields, reason = self._split_id(raw_child)
                if child_id is None:
                    result.skipped.append(SkippedRecord(
                        f"{collection}/{child.name}", child_index, reason,
                        parent_id=document_id
                    ))
                    continue
                child_ops.append(WriteOp(
                    path=(collection, document_id, child.name, child_id),
                    data=decode_fields(child_fields)
                ))

        parent_op = WriteOp(path=(collection, document_id), data=decode_fields(fields))
        return [parent_op] + child_ops, len(child_ops)

    @staticmethod
    def _split_id(raw_record: Any) -> Tuple[Optional[str], Dict[str, Any], Optional[str]]:
        """Document id, remaining fields and, for unusable records, the skip reason."""
        if not isinstance(raw_record, dict):
            return None, {}, "not an object"

        fields = dict(raw_record)
        document_id = fields.pop("id", None)
        if document_id is None or document_id == "":
            return None, fields, "missing id"
        return str(document_id), fields, None

    def _commit(self, collection: str, ops: List[WriteOp], written: int, result: ImportResult) -> None:
        try:
            self.store.write_batch(ops)
        except Exception as e:
            raise WriteError(
                f"Failed to commit batch of {len(ops)} writes to '{collection}' "
                f"after {written} records: {e}",
                collection=collection,
                committed=written
            ) from e
        result.commits += 1
