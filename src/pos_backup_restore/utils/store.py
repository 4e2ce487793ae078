"""
Document store access for export, import and reset.

StoreAdapter is the narrow interface the lifecycle components depend on:
read a collection, read one document's child collection, commit a bounded
atomic batch of full-replace writes, and delete a document. FirestoreStore
implements it on top of google-cloud-firestore with request pacing and call
logging. Calls are never retried here; failures propagate to the caller.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import logging

from google.cloud import firestore
from google.oauth2 import service_account

from .logger import StoreCallLogger
from .rate_limiter import RateLimiter, RateLimitConfig
from ..config import MAX_BATCH_WRITES


@dataclass
class StoredDocument:
    """A document as read from the store."""
    id: str
    data: Dict[str, Any]


@dataclass
class WriteOp:
    """
    Full replace of one document inside a batch.

    ``path`` alternates collection and document ids, e.g.
    ``("shifts", "shift_1", "payouts", "p1")``.
    """
    path: Tuple[str, ...]
    data: Dict[str, Any]

    @property
    def collection(self) -> str:
        return "/".join(self.path[:-1])

    @property
    def document_id(self) -> str:
        return self.path[-1]


def child_collection_path(parent_collection: str, parent_id: str, child_collection: str) -> str:
    """Slash path of a child collection, e.g. ``shifts/shift_1/payouts``."""
    return f"{parent_collection}/{parent_id}/{child_collection}"


class StoreAdapter(ABC):
    """Primitives the export, import and reset operations need from a store."""

    @abstractmethod
    def read_all(self, collection: str) -> List[StoredDocument]:
        """Read every document of a top-level collection."""

    @abstractmethod
    def read_children(
        self, parent_collection: str, parent_id: str, child_collection: str
    ) -> List[StoredDocument]:
        """Read every document of a child collection under one parent."""

    @abstractmethod
    def write_batch(self, ops: Sequence[WriteOp]) -> None:
        """Commit the writes atomically. Raises on failure."""

    @abstractmethod
    def delete_document(self, collection: str, document_id: str) -> None:
        """Delete one document. ``collection`` may be a child collection path."""


class FirestoreStore(StoreAdapter):
    """
    Cloud Firestore implementation of StoreAdapter.

    Collections are streamed page by page in document-name order so large
    collections are never held in a single query response.
    """

    def __init__(
        self,
        client: firestore.Client,
        rate_limit_config: Optional[RateLimitConfig] = None,
        page_size: int = 500,
        max_batch_writes: int = MAX_BATCH_WRITES,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the store.

        Args:
            client: Firestore client
            rate_limit_config: Rate limiting configuration
            page_size: Documents fetched per read request
            max_batch_writes: Upper bound of writes per batch commit
            logger: Logger instance
        """
        self.client = client
        self.rate_limiter = RateLimiter(rate_limit_config)
        self.page_size = page_size
        self.max_batch_writes = max_batch_writes
        self.call_logger = StoreCallLogger(logger)
        self._request_count = 0
        self._error_count = 0

    def _pace(self) -> None:
        wait_time = self.rate_limiter.wait_if_needed()
        if wait_time > 0:
            self.call_logger.log_rate_limit(
                wait_time=wait_time,
                current_rate=self.rate_limiter.get_current_rate(),
                limit=self.rate_limiter.config.requests_per_second
            )

    def _stream(self, collection_ref) -> Iterator[Any]:
        last = None
        while True:
            query = collection_ref.order_by("__name__").limit(self.page_size)
            if last is not None:
                query = query.start_after(last)

            self._pace()
            page = list(query.stream())
            self._request_count += 1
            if not page:
                return
            yield from page
            if len(page) < self.page_size:
                return
            last = page[-1]

    def _read(self, collection_ref, path: str) -> List[StoredDocument]:
        self.call_logger.log_request("read", path)
        start_time = time.time()
        try:
            documents = [
                StoredDocument(id=snapshot.id, data=snapshot.to_dict() or {})
                for snapshot in self._stream(collection_ref)
            ]
        except Exception as e:
            self._error_count += 1
            self.call_logger.log_error(e, f"reading {path}")
            raise

        self.call_logger.log_response("read", path, time.time() - start_time, len(documents))
        return documents

    def read_all(self, collection: str) -> List[StoredDocument]:
        return self._read(self.client.collection(collection), collection)

    def read_children(
        self, parent_collection: str, parent_id: str, child_collection: str
    ) -> List[StoredDocument]:
        collection_ref = (
            self.client.collection(parent_collection)
            .document(parent_id)
            .collection(child_collection)
        )
        path = child_collection_path(parent_collection, parent_id, child_collection)
        return self._read(collection_ref, path)

    def write_batch(self, ops: Sequence[WriteOp]) -> None:
        if len(ops) > self.max_batch_writes:
            raise ValueError(
                f"Batch of {len(ops)} writes exceeds the limit of {self.max_batch_writes}"
            )

        path = ops[0].collection if ops else ""
        self.call_logger.log_request("commit", path, writes=len(ops))
        start_time = time.time()

        batch = self.client.batch()
        for op in ops:
            # set() without merge replaces the whole document
            batch.set(self.client.document(*op.path), op.data)

        self._pace()
        try:
            batch.commit()
        except Exception as e:
            self._error_count += 1
            self.call_logger.log_error(e, f"committing {len(ops)} writes to {path}")
            raise
        self._request_count += 1

        self.call_logger.log_response("commit", path, time.time() - start_time, len(ops))

    def delete_document(self, collection: str, document_id: str) -> None:
        path = f"{collection}/{document_id}"
        self.call_logger.log_request("delete", path)
        start_time = time.time()

        self._pace()
        try:
            self.client.collection(collection).document(document_id).delete()
        except Exception as e:
            self._error_count += 1
            self.call_logger.log_error(e, f"deleting {path}")
            raise
        self._request_count += 1

        self.call_logger.log_response("delete", path, time.time() - start_time)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get store call statistics.

        Returns:
            Dictionary with store statistics
        """
        return {
            "total_requests": self._request_count,
            "total_errors": self._error_count,
            "error_rate": self._error_count / max(1, self._request_count),
            "rate_limiter": self.rate_limiter.get_stats(),
        }


def create_firestore_store(
    project_id: Optional[str] = None,
    credentials_file: Optional[str] = None,
    requests_per_second: float = 10.0,
    burst_size: int = 20,
    window_size: int = 10,
    logger: Optional[logging.Logger] = None
) -> FirestoreStore:
    """
    Create a configured Firestore store.

    Args:
        project_id: Google Cloud project (defaults to the credentials' project)
        credentials_file: Service account JSON file; application default
            credentials are used when omitted
        requests_per_second: Rate limit (requests per second)
        burst_size: Calls allowed before spacing applies
        window_size: Sliding window in seconds
        logger: Logger instance

    Returns:
        Configured FirestoreStore instance
    """
    credentials = None
    if credentials_file:
        credentials = service_account.Credentials.from_service_account_file(credentials_file)
        project_id = project_id or credentials.project_id

    client = firestore.Client(project=project_id, credentials=credentials)
    rate_config = RateLimitConfig(
        requests_per_second=requests_per_second,
        burst_size=burst_size,
        window_size=window_size
    )

    return FirestoreStore(client, rate_limit_config=rate_config, logger=logger)
