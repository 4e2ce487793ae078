"""
Conversion between Firestore timestamps and canonical ISO-8601 strings.

Firestore hands timestamps to Python as ``datetime`` objects (usually the
``DatetimeWithNanoseconds`` subclass) and accepts ``datetime`` on write. In a
snapshot they are carried as UTC strings such as ``2024-03-01T18:30:00.000Z``.

Conversion only touches a document's top-level fields and the values of
mappings nested one level below them. Anything deeper is left alone.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict

# YYYY-MM-DDTHH:MM:SS with optional millis/micros and a Z or +HH:MM offset
ISO_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3}|\.\d{6})?(Z|[+-]\d{2}:\d{2})$"
)


def is_timestamp(value: Any) -> bool:
    """True for a store-native timestamp."""
    return isinstance(value, datetime)


def is_iso_timestamp(value: Any) -> bool:
    """True for a string in canonical timestamp form."""
    return isinstance(value, str) and bool(ISO_TIMESTAMP_RE.match(value))


def to_iso(value: datetime) -> str:
    """
    Format a timestamp as a canonical UTC string.

    Millisecond precision is used unless the value carries sub-millisecond
    detail, in which case all six microsecond digits are kept.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)

    base = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond % 1000:
        return f"{base}.{value.microsecond:06d}Z"
    return f"{base}.{value.microsecond // 1000:03d}Z"


def from_iso(value: str) -> datetime:
    """Parse a canonical timestamp string into an aware UTC datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).astimezone(timezone.utc)


def encode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace timestamps with canonical strings.

    Args:
        fields: Document fields as read from the store

    Returns:
        New mapping; the input is not modified
    """
    encoded = {}
    for key, value in fields.items():
        if is_timestamp(value):
            encoded[key] = to_iso(value)
        elif isinstance(value, dict):
            encoded[key] = {
                nested_key: to_iso(nested) if is_timestamp(nested) else nested
                for nested_key, nested in value.items()
            }
        else:
            encoded[key] = value
    return encoded


def decode_value(value: Any) -> Any:
    """
    Turn a canonical timestamp string back into a datetime.

    Strings that only look like timestamps (``2024-02-30T10:00:00Z``) are
    ordinary text and come back unchanged, as does every other value.
    """
    if not is_iso_timestamp(value):
        return value
    try:
        return from_iso(value)
    except ValueError:
        return value


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace canonical timestamp strings with datetimes.

    Args:
        fields: Record fields as parsed from a snapshot

    Returns:
        New mapping; the input is not modified
    """
    decoded = {}
    for key, value in fields.items():
        if isinstance(value, dict):
            decoded[key] = {
                nested_key: decode_value(nested)
                for nested_key, nested in value.items()
            }
        else:
            decoded[key] = decode_value(value)
    return decoded
