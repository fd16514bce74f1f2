"""Value conversion between abstract field values and what the service stores."""

from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from cloudsift.models.fields import FieldMappingRecord, SemanticType, StorageType

_NUMERIC_STORAGE = frozenset({StorageType.INT, StorageType.UINT, StorageType.INT_ARRAY})
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def epoch_seconds(value: date) -> int:
    """Seconds since the epoch; naive datetimes and plain dates are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return int(value.timestamp())
        return calendar.timegm(value.timetuple())
    return calendar.timegm(value.timetuple())


def is_numeric_storage(record: FieldMappingRecord | None) -> bool:
    return record is not None and record.storage_type in _NUMERIC_STORAGE


def parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {text!r}")


def parse_date(text: str) -> int:
    """Epoch seconds of an ISO 8601 date or datetime string."""
    try:
        return epoch_seconds(datetime.fromisoformat(text.strip()))
    except ValueError as e:
        raise ValueError(f"Not an ISO date: {text!r}") from e


def to_number(value: Any, semantic_type: str | None = None) -> int:
    """Convert one value to the integer numeric storage expects.

    Strings are read according to the field's semantic type: booleans
    accept ``true``/``false``/``1``/``0``, dates accept epoch seconds or
    ISO 8601.  Decimals lose their fraction.

    Raises:
        ValueError: The value has no integer form.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, date):
        return epoch_seconds(value)
    if isinstance(value, int | float | Decimal):
        return int(value)
    text = str(value).strip()
    if semantic_type == SemanticType.BOOLEAN.value:
        return int(parse_bool(text))
    try:
        return int(Decimal(text))
    except (InvalidOperation, ValueError, OverflowError):
        if semantic_type == SemanticType.DATE.value:
            return parse_date(text)
        raise ValueError(f"Not a number: {text!r}") from None


def to_index_value(value: Any, record: FieldMappingRecord | None) -> Any:
    """Convert one abstract value (or list of values) for the field's storage type.

    Numeric storage receives integers; every other storage receives strings.
    Boolean and date strings are normalized to the same form native values
    take, so ``"true"`` and ``True`` index identically.

    Raises:
        ValueError: A value cannot be converted for its field.
    """
    if isinstance(value, list | tuple):
        return [to_index_value(item, record) for item in value]

    semantic = record.semantic_type if record is not None else None
    if is_numeric_storage(record):
        return to_number(value, semantic)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return str(epoch_seconds(value))
    if isinstance(value, int | float | Decimal):
        return str(value)
    text = str(value)
    if semantic == SemanticType.BOOLEAN.value:
        return "true" if parse_bool(text) else "false"
    if semantic in (SemanticType.DATE.value, SemanticType.INTEGER.value):
        return str(to_number(text, semantic))
    return text
