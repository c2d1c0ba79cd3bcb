"""
Defensive normalization for loosely-typed record fields.

The record store is inconsistent about how JSON columns arrive: depending on
the write path a value may be a decoded dict/list, a JSON-encoded string
(sometimes encoded twice), or null. Every semi-structured field goes through
normalize_json_field before anything else reads it.

None of the helpers here raise on bad input. A value that cannot be read is
treated as absent and a warning is logged.
"""

import json
import logging
import math
from datetime import date, datetime
from typing import Any, List, Optional, Tuple, Type, Union

logger = logging.getLogger(__name__)

# Longest raw value echoed into a warning
_SAMPLE_LENGTH = 80

ExpectedType = Union[Type, Tuple[Type, ...]]


def _sample(value: Any) -> str:
    text = repr(value)
    if len(text) > _SAMPLE_LENGTH:
        return text[:_SAMPLE_LENGTH] + "..."
    return text


def normalize_json_field(
    value: Any,
    expected: Optional[ExpectedType] = None,
    field_name: str = "field",
) -> Any:
    """
    Coerce a JSON-ish value into its in-memory shape, or None.

    Args:
        value: Raw value as delivered by the store.
        expected: Optional type (or tuple of types) the parsed value must be,
            e.g. ``dict`` or ``list``. A value of any other shape is dropped.
        field_name: Name used in warning messages.

    Returns:
        The structured value, or None if the input was null, blank,
        unparseable, or of the wrong shape.

    Example:
        >>> normalize_json_field('{"a": 1}', expected=dict)
        {'a': 1}
        >>> normalize_json_field('{not json', expected=dict) is None
        True
    """
    if value is None:
        return None

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")

    parsed = value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = json.loads(text)
            # Double-encoded columns decode to a string holding JSON
            if isinstance(parsed, str) and parsed.strip()[:1] in ("{", "["):
                parsed = json.loads(parsed)
        except (ValueError, TypeError, RecursionError):
            logger.warning(f"Malformed JSON in {field_name}, treating as absent: {_sample(value)}")
            return None

    if parsed is None:
        return None

    if expected is not None and not isinstance(parsed, expected):
        logger.warning(
            f"Unexpected shape for {field_name} (got {type(parsed).__name__}), treating as absent"
        )
        return None

    return parsed


def normalize_string_list(value: Any, field_name: str = "field") -> List[str]:
    """
    Normalize an array-of-strings field.

    Non-string items and blank strings are skipped. Anything that is not
    an array contributes nothing.

    Returns:
        List of stripped strings, possibly empty.
    """
    parsed = normalize_json_field(value, expected=list, field_name=field_name)
    if not parsed:
        return []
    return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]


def safe_float(value: Any) -> Optional[float]:
    """
    Safely convert a value to float, returning None for invalid values.

    Handles null values, NaN/inf and type conversion errors.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def safe_int(value: Any) -> Optional[int]:
    """Safely convert a value to int, returning None for invalid values."""
    number = safe_float(value)
    if number is None:
        return None
    return int(number)


def coerce_date(value: Any, field_name: str = "date") -> Optional[date]:
    """
    Derive a calendar date from a date, datetime or ISO-8601 string.

    The date is read from the value as written: no timezone conversion is
    applied, so "2025-03-01T23:30:00-05:00" is 2025-03-01.

    Returns:
        The calendar date, or None if the value is absent or unreadable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            logger.warning(f"Unreadable {field_name} value: {_sample(value)}")
            return None
    logger.warning(f"Unreadable {field_name} value: {_sample(value)}")
    return None


def coerce_datetime(value: Any, field_name: str = "timestamp") -> Optional[datetime]:
    """
    Parse a timestamp, keeping whatever offset it was written with.

    Returns:
        A datetime, or None if the value is absent or unreadable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unreadable {field_name} value: {_sample(value)}")
            return None
    logger.warning(f"Unreadable {field_name} value: {_sample(value)}")
    return None
