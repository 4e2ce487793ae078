"""
Utility modules for POS export, import and reset operations.

This package contains shared utilities including the document store adapter,
rate limiting, logging, progress reporting and timestamp conversion.
"""

from .rate_limiter import RateLimiter, RateLimitConfig
from .store import StoreAdapter, FirestoreStore, StoredDocument, WriteOp, create_firestore_store
from .logger import setup_logger, get_logger
from .progress import ProgressSink

__all__ = [
    "RateLimiter",
    "RateLimitConfig",
    "StoreAdapter",
    "FirestoreStore",
    "StoredDocument",
    "WriteOp",
    "create_firestore_store",
    "setup_logger",
    "get_logger",
    "ProgressSink",
]
