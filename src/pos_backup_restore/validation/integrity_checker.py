"""
Integrity checks for snapshot envelopes and written backup files.

A reset only proceeds once the emergency backup on disk has been read back
and matches the envelope that was generated, collection by collection.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set
import logging

from ..config import CHILD_COLLECTIONS, EXPORT_COLLECTIONS, SUPPORTED_VERSION, ChildCollection
from ..envelope import Envelope
from ..errors import FormatError


@dataclass
class ValidationResult:
    """Result of a validation check."""
    check_name: str
    passed: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.passed = False


class IntegrityChecker:
    """
    Validates envelopes and backup files.

    Checks cover the format version, record shape, id uniqueness per
    collection, correct use of reserved child keys and, for backup files,
    that what was written equals what was generated.
    """

    def __init__(
        self,
        child_collections: Optional[Dict[str, ChildCollection]] = None,
        known_collections: Optional[List[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.child_collections = child_collections if child_collections is not None else CHILD_COLLECTIONS
        self.known_collections = known_collections if known_collections is not None else EXPORT_COLLECTIONS
        self.logger = logger or logging.getLogger(__name__)

    def validate_envelope(self, envelope: Envelope) -> ValidationResult:
        """
        Validate the structure of an envelope.

        Args:
            envelope: Parsed envelope

        Returns:
            ValidationResult; warnings never fail the check
        """
        result = ValidationResult(check_name="envelope")

        if envelope.version != SUPPORTED_VERSION:
            result.add_error(f"Unsupported version '{envelope.version}'")

        reserved_keys = {child.reserved_key: parent for parent, child in self.child_collections.items()}

        for collection, records in envelope.data.items():
            if collection not in self.known_collections:
                result.warnings.append(f"Collection '{collection}' is not part of the export schema")

            if not isinstance(records, list):
                result.add_error(f"Collection '{collection}' is not a list of records")
                continue

            result.details[collection] = len(records)
            self._check_records(collection, records, result)

            child = self.child_collections.get(collection)
            for index, record in enumerate(records):
                if not isinstance(record, dict):
                    continue

                for key, owner in reserved_keys.items():
                    if key in record and owner != collection:
                        result.add_error(
                            f"{collection}[{index}] carries '{key}', reserved for '{owner}'"
                        )

                if child and child.reserved_key in record:
                    children = record[child.reserved_key]
                    label = f"{collection}/{record.get('id')}/{child.name}"
                    if not isinstance(children, list):
                        result.add_error(f"'{child.reserved_key}' of {collection}[{index}] is not a list")
                    else:
                        self._check_records(label, children, result)

        self._log_result(result)
        return result

    def _check_records(self, label: str, records: List[Any], result: ValidationResult) -> None:
        seen: Set[str] = set()
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                result.add_error(f"{label}[{index}] is not an object")
                continue

            record_id = record.get("id")
            if record_id is None or record_id == "":
                result.warnings.append(f"{label}[{index}] has no id and will be skipped on import")
                continue

            record_id = str(record_id)
            if record_id in seen:
                result.add_error(f"Duplicate id '{record_id}' in {label}")
            seen.add(record_id)

    def verify_backup_file(
        self,
        path: Path,
        expected: Envelope,
        required_collections: Optional[List[str]] = None
    ) -> ValidationResult:
        """
        Read a written backup back and compare it with the generated envelope.

        Args:
            path: Backup file
            expected: Envelope the file was written from
            required_collections: Collections that must be present with
                matching record counts (defaults to all of ``expected``)

        Returns:
            ValidationResult
        """
        result = ValidationResult(check_name="backup_file", details={"path": str(path)})

        try:
            written = Envelope.parse(Path(path).read_text(encoding="utf-8"))
        except (OSError, FormatError) as e:
            result.add_error(f"Backup file could not be read back: {e}")
            self._log_result(result)
            return result

        required = required_collections if required_collections is not None else list(expected.data)
        expected_counts = expected.record_counts()
        written_counts = written.record_counts()

        for collection in required:
            if collection not in expected.data:
                result.add_error(f"Collection '{collection}' was not exported")
                continue

            if collection not in written.data:
                result.add_error(f"Collection '{collection}' is missing from the backup file")
                continue

            if written_counts[collection] != expected_counts[collection]:
                result.add_error(
                    f"Collection '{collection}' has {written_counts[collection]} records in the "
                    f"backup file, expected {expected_counts[collection]}"
                )
                continue

            child = self.child_collections.get(collection)
            if child:
                expected_children = self._count_children(expected.data[collection], child)
                written_children = self._count_children(written.data[collection], child)
                if expected_children != written_children:
                    result.add_error(
                        f"Collection '{collection}' has {written_children} {child.name} in the "
                        f"backup file, expected {expected_children}"
                    )

        result.details["record_counts"] = written_counts
        self._log_result(result)
        return result

    @staticmethod
    def _count_children(records: List[Any], child: ChildCollection) -> int:
        return sum(
            len(record.get(child.reserved_key) or [])
            for record in records
            if isinstance(record, dict)
        )

    def _log_result(self, result: ValidationResult) -> None:
        if result.passed:
            self.logger.info(
                f"Validation '{result.check_name}' passed"
                + (f" with {len(result.warnings)} warnings" if result.warnings else "")
            )
        else:
            self.logger.error(
                f"Validation '{result.check_name}' failed: {len(result.errors)} errors"
            )
            for error in result.errors:
                self.logger.error(f"  - {error}")

        for warning in result.warnings:
            self.logger.warning(f"  - {warning}")
