"""
Validation modules for snapshot integrity checking.

This package checks snapshot envelopes and verifies written backup files
before they are trusted by a reset.
"""

from .integrity_checker import IntegrityChecker, ValidationResult

__all__ = [
    "IntegrityChecker",
    "ValidationResult",
]
