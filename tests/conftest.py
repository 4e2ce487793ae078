"""
Shared fixtures: an in-memory document store that records every call.
"""

import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest

# Add src to path for imports
import sys
from pathlib import Path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from pos_backup_restore.utils.store import StoreAdapter, StoredDocument, WriteOp


class InMemoryStore(StoreAdapter):
    """
    Dict-backed store.

    Collections are keyed by their slash path (``shifts/shift_1/payouts``).
    ``events`` records reads, commits and deletes in call order.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self.events: List[tuple] = []
        self.commits: List[int] = []
        self.fail_reads: set = set()
        self.fail_on_commit: Optional[int] = None  # zero-based commit index
        self.fail_on_delete: Optional[int] = None  # zero-based delete index
        self.delete_count = 0

    def seed(self, collection: str, document_id: str, data: dict) -> None:
        self.collections.setdefault(collection, {})[document_id] = copy.deepcopy(data)

    def get(self, collection: str, document_id: str) -> Optional[dict]:
        return self.collections.get(collection, {}).get(document_id)

    def _read(self, path: str) -> List[StoredDocument]:
        self.events.append(("read", path))
        if path in self.fail_reads:
            raise RuntimeError(f"read of {path} refused")
        return [
            StoredDocument(id=document_id, data=copy.deepcopy(data))
            for document_id, data in self.collections.get(path, {}).items()
        ]

    def read_all(self, collection: str) -> List[StoredDocument]:
        return self._read(collection)

    def read_children(self, parent_collection: str, parent_id: str, child_collection: str) -> List[StoredDocument]:
        return self._read(f"{parent_collection}/{parent_id}/{child_collection}")

    def write_batch(self, ops: Sequence[WriteOp]) -> None:
        if self.fail_on_commit is not None and len(self.commits) == self.fail_on_commit:
            self.events.append(("commit_failed", len(ops)))
            raise RuntimeError("commit rejected")

        self.events.append(("commit", len(ops)))
        self.commits.append(len(ops))
        for op in ops:
            self.collections.setdefault(op.collection, {})[op.document_id] = copy.deepcopy(op.data)

    def delete_document(self, collection: str, document_id: str) -> None:
        if self.fail_on_delete is not None and self.delete_count == self.fail_on_delete:
            raise RuntimeError("delete rejected")

        self.delete_count += 1
        self.events.append(("delete", collection, document_id))
        self.collections.get(collection, {}).pop(document_id, None)

    def document_count(self, collection: str) -> int:
        return len(self.collections.get(collection, {}))


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep developer .env settings out of the tests."""
    for name in (
        "GOOGLE_APPLICATION_CREDENTIALS",
        "FIRESTORE_PROJECT_ID",
        "BACKUP_OUTPUT_DIR",
        "POS_APP_PREFIX",
        "IMPORT_BATCH_LIMIT",
        "RESET_VERIFY_BACKUP",
        "LOG_FILE",
        "LOG_LEVEL",
        "DEBUG",
        "VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def populated_store(store):
    """A small POS store: a closed shift with two payouts, sales and settings."""
    opened = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    closed = datetime(2024, 3, 1, 22, 15, 30, 250000, tzinfo=timezone.utc)

    store.seed("tables", "table_1", {"status": "occupied", "orders": [{"item": "nihari", "qty": 2}]})
    store.seed("menuItems", "m1", {"name": "Nihari", "price": 250, "available": True})
    store.seed("history", "h1", {
        "total": 500,
        "closedAt": closed,
        "payment": {"method": "Cash", "paidAt": closed},
    })
    store.seed("shifts", "shift_1", {
        "status": "closed",
        "openingTime": opened,
        "closingTime": closed,
        "openingCash": 1000,
        "calculatedTotals": {"expectedCash": 1300, "cashSales": 500},
    })
    store.seed("shifts/shift_1/payouts", "p1", {
        "amount": 100, "reason": "milk", "type": "supplies", "timestamp": opened,
    })
    store.seed("shifts/shift_1/payouts", "p2", {
        "amount": 100, "reason": "gas", "type": "other", "timestamp": closed,
    })
    store.seed("settings", "posConfig", {"paymentMethods": ["Cash", "UPI"]})
    return store
