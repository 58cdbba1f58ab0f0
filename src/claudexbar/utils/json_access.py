"""Narrow accessors for untrusted JSON documents."""

import math

from datetime import datetime, timezone
from typing import Any, Optional


def as_record(value: Any) -> Optional[dict[str, Any]]:
    """Return ``value`` if it is a JSON object, else None."""
    return value if isinstance(value, dict) else None


def get_record(root: Any, *path: str) -> Optional[dict[str, Any]]:
    """Walk nested objects by key, returning None if any step is missing.

    Args:
        root: Parsed JSON value
        *path: Keys to follow

    Returns:
        The object at the end of the path, or None
    """
    current = root
    for key in path:
        record = as_record(current)
        if record is None or key not in record:
            return None
        current = record[key]
    return as_record(current)


def to_number(value: Any) -> Optional[float]:
    """Coerce a JSON number or numeric string to float.

    Booleans, NaN and infinities are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def to_str(value: Any) -> Optional[str]:
    """Return non-blank strings, else None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime (UTC if naive)."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def from_epoch_seconds(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(round(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def from_epoch_millis(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
