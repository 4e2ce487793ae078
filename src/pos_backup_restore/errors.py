"""
Exception types for export, import and reset operations.

Hard errors abort the enclosing operation and propagate to the caller.
Records skipped during import are soft and never raised; they are collected
as SkippedRecord entries on the import result.
"""

from dataclasses import dataclass
from typing import Optional


class LifecycleError(Exception):
    """Base class for data lifecycle failures."""
    pass


class FormatError(LifecycleError):
    """Snapshot text is malformed, has an unsupported version or bad data."""
    pass


class FetchError(LifecycleError):
    """A read from the store failed."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection


class WriteError(LifecycleError):
    """A batch commit, delete or backup write failed."""

    def __init__(self, message: str, collection: Optional[str] = None, committed: int = 0):
        super().__init__(message)
        self.collection = collection
        # Documents already persisted before the failure; they are not rolled back
        self.committed = committed


@dataclass
class SkippedRecord:
    """A record dropped during import."""
    collection: str
    index: int
    reason: str
    parent_id: Optional[str] = None
