"""
Snapshot generation.

This module reads every configured collection from the store, converts
timestamps to canonical strings and folds child collections into their
parent records under a reserved key.
"""

from typing import Any, Dict, List, Optional
import logging

from ..config import EXPORT_COLLECTIONS, CHILD_COLLECTIONS, ChildCollection
from ..envelope import Envelope
from ..errors import FetchError, FormatError
from ..utils.progress import ProgressCallback, ProgressSink
from ..utils.store import StoreAdapter, StoredDocument, child_collection_path
from ..utils.temporal import encode_fields


class Exporter:
    """
    Builds a Snapshot Envelope from the store.

    Generation is read-only. A failed read aborts the whole export; a partial
    envelope is never returned.
    """

    def __init__(
        self,
        store: StoreAdapter,
        collections: Optional[List[str]] = None,
        child_collections: Optional[Dict[str, ChildCollection]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize exporter.

        Args:
            store: Document store
            collections: Ordered collections to export (defaults to EXPORT_COLLECTIONS)
            child_collections: Parent collection -> child collection table
            logger: Logger instance
        """
        self.store = store
        self.collections = list(collections if collections is not None else EXPORT_COLLECTIONS)
        self.child_collections = child_collections if child_collections is not None else CHILD_COLLECTIONS
        self.logger = logger or logging.getLogger(__name__)

    def generate(self, on_progress: Optional[ProgressCallback] = None) -> Envelope:
        """
        Export every configured collection.

        Args:
            on_progress: Optional callback receiving status strings

        Returns:
            Envelope with a fresh export date and the supported version

        Raises:
            FetchError: If any read fails
            FormatError: If a parent document already holds its reserved key
        """
        sink = ProgressSink("export", on_progress, self.logger)
        sink.start()

        data: Dict[str, List[Dict[str, Any]]] = {}
        try:
            for collection in self.collections:
                sink.report(f"Exporting collection: {collection}...")
                data[collection] = self._export_collection(collection, sink)
        except Exception as e:
            sink.fail(e)
            raise

        envelope = Envelope.create(data)
        sink.finish(f"Export complete: {envelope.total_records} records from {len(data)} collections")
        return envelope

    def _export_collection(self, collection: str, sink: ProgressSink) -> List[Dict[str, Any]]:
        documents = self._read(collection, lambda: self.store.read_all(collection))
        child = self.child_collections.get(collection)

        records = []
        for document in documents:
            record = self._to_record(document)

            if child:
                if child.reserved_key in document.data:
                    raise FormatError(
                        f"Document '{document.id}' in '{collection}' has a field named "
                        f"'{child.reserved_key}', which is reserved for its {child.name}"
                    )

                children = self._export_children(collection, document.id, child)
                if children:
                    record[child.reserved_key] = children
                    sink.increment("child_records", len(children))

            records.append(record)

        sink.increment("records", len(records))
        return records

    def _export_children(self, collection: str, parent_id: str, child: ChildCollection) -> List[Dict[str, Any]]:
        path = child_collection_path(collection, parent_id, child.name)
        documents = self._read(
            path, lambda: self.store.read_children(collection, parent_id, child.name)
        )
        return [self._to_record(document) for document in documents]

    def _read(self, path: str, reader) -> List[StoredDocument]:
        try:
            return reader()
        except Exception as e:
            raise FetchError(f"Failed to read '{path}': {e}", collection=path) from e

    @staticmethod
    def _to_record(document: StoredDocument) -> Dict[str, Any]:
        encoded = encode_fields(document.data)
        # The document id wins over a stored field that happens to be called "id"
        record = {"id": document.id}
        record.update((key, value) for key, value in encoded.items() if key != "id")
        return record
