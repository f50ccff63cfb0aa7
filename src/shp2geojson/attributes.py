"""Normalize typed .dbf cells into plain JSON scalars."""

from __future__ import annotations

import logging
import math

from .errors import AttributeDecodeWarning
from .models import AttributeRecord, CharacterValue, NumericValue, Scalar, TypedValue

logger = logging.getLogger(__name__)


def decode_attribute(
    field: str,
    value: TypedValue,
    issues: list[AttributeDecodeWarning] | None = None,
) -> Scalar:
    """Decode one cell.

    Rules, first match wins:

    - empty numeric -> ``""`` (kept for compatibility with earlier output)
    - empty character -> ``None``
    - numeric -> float
    - character -> its text
    - anything else (dates, logicals, memos) -> its display string

    A numeric cell that JSON cannot represent (NaN, infinity) is kept as its
    display string; the anomaly is logged and appended to ``issues``.
    """
    if isinstance(value, NumericValue):
        if value.value is None:
            return ""
        if not math.isfinite(value.value):
            issue = AttributeDecodeWarning(f"Failed to parse numeric value for field {field!r}: {value}")
            logger.warning("%s", issue)
            if issues is not None:
                issues.append(issue)
            return str(value)
        return value.value
    if isinstance(value, CharacterValue):
        return value.value
    return str(value)


def decode_record(
    record: AttributeRecord,
    issues: list[AttributeDecodeWarning] | None = None,
) -> dict[str, Scalar]:
    """Decode every field of ``record`` independently."""
    return {field: decode_attribute(field, value, issues) for field, value in record.values.items()}
