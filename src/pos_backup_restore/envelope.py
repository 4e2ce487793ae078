"""
Snapshot envelope: the single file format produced by export and consumed by
import.

    {"exportDate": "...", "version": "1.0",
     "data": {"<collection>": [{"id": "...", ...}, ...], ...}}
"""

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .config import SUPPORTED_VERSION
from .errors import FormatError
from .utils.temporal import to_iso


@dataclass
class Envelope:
    """A complete snapshot of the configured collections."""
    export_date: str
    version: str = SUPPORTED_VERSION
    data: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def create(cls, data: Optional[Dict[str, List[Dict[str, Any]]]] = None) -> "Envelope":
        """New envelope stamped with the current time and supported version."""
        return cls(
            export_date=to_iso(datetime.now(timezone.utc)),
            version=SUPPORTED_VERSION,
            data=data if data is not None else {}
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exportDate": self.export_date,
            "version": self.version,
            "data": self.data,
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        # default=str keeps values nested too deep for the codec serializable
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def record_counts(self) -> Dict[str, int]:
        """Number of top-level records per collection."""
        return {
            name: len(records) if isinstance(records, list) else 0
            for name, records in self.data.items()
        }

    @property
    def total_records(self) -> int:
        return sum(self.record_counts().values())

    @classmethod
    def parse(cls, raw_text: str) -> "Envelope":
        """
        Parse and validate snapshot text.

        Args:
            raw_text: UTF-8 JSON text of a snapshot

        Returns:
            Envelope instance

        Raises:
            FormatError: If the text is not a supported snapshot
        """
        try:
            payload = json.loads(raw_text)
        except (TypeError, ValueError) as e:
            raise FormatError(f"Invalid or corrupted backup file format: {e}") from e

        return cls.from_dict(payload)

    @classmethod
    def from_dict(cls, payload: Any) -> "Envelope":
        if not isinstance(payload, dict):
            raise FormatError("Invalid or corrupted backup file format: top level is not an object")

        version = payload.get("version")
        if not version:
            raise FormatError("Invalid or corrupted backup file format: missing version")

        if version != SUPPORTED_VERSION:
            raise FormatError(
                f"Unsupported backup version '{version}' (supported: {SUPPORTED_VERSION})"
            )

        data = payload.get("data")
        if data is None:
            raise FormatError("Invalid or corrupted backup file format: missing data")

        if not isinstance(data, dict):
            raise FormatError("Invalid or corrupted backup file format: data is not an object")

        return cls(
            export_date=str(payload.get("exportDate", "")),
            version=version,
            data=data
        )


def export_filename(app_prefix: str, day: Optional[date] = None) -> str:
    """File name of a routine export, e.g. ``pos_export_2024-03-01.json``."""
    day = day or datetime.now(timezone.utc).date()
    return f"{app_prefix}_export_{day.isoformat()}.json"


def emergency_backup_filename(app_prefix: str, day: Optional[date] = None) -> str:
    """File name of the backup written before a reset."""
    day = day or datetime.now(timezone.utc).date()
    return f"{app_prefix}_emergency_backup_{day.isoformat()}.json"
