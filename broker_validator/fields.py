"""
Field presence checks and record-access helpers shared by every validator.

The presence rules are asymmetric: ``0`` and ``False`` are
real answers (a broker with a zero rating has a rating), while an empty
string, an empty list or an empty mapping carries no information.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence, Set
from decimal import Decimal
from numbers import Number
from typing import Any

from .exceptions import BatchInputError, RecordShapeError
from .models import Record

UNKNOWN_ID = "unknown"


def is_field_filled(value: Any) -> bool:
    """Return True if ``value`` carries information.

    - None → False
    - str → False iff blank after stripping
    - list/tuple/set → False iff empty or every element is None/blank str
    - mapping → False iff it has no keys
    - bool → always True (False is a meaningful answer)
    - number → True unless NaN (0 counts as filled)
    - anything else → True
    """
    if value is None:
        return False

    if isinstance(value, str):
        return len(value.strip()) > 0

    if isinstance(value, (list, tuple, Set)):
        return any(
            item is not None and (not isinstance(item, str) or item.strip())
            for item in value
        )

    if isinstance(value, Mapping):
        return len(value) > 0

    if isinstance(value, bool):
        return True

    if isinstance(value, Decimal):
        return not value.is_nan()  # comparing a signalling NaN raises

    if isinstance(value, Number):
        return value == value  # NaN is the only value not equal to itself

    return True


def record_id_of(record: Record, default: str = UNKNOWN_ID) -> str:
    """Opaque identifier of a record as a string, or ``default`` if absent."""
    value = record.get("id")
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return str(value)


def text_value(record: Record, field: str) -> str:
    """The field if it is a string, otherwise an empty string."""
    value = record.get(field)
    return value if isinstance(value, str) else ""


def ensure_batch(records: Any) -> list[Record]:
    """Check that ``records`` is a sequence of mappings and return it as a list.

    Raises:
        BatchInputError: ``records`` is not a list/tuple (strings and
            mappings are rejected explicitly).
        RecordShapeError: an element of the batch is not a mapping.
    """
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
        raise BatchInputError(
            f"Expected a list of records, got {type(records).__name__}",
            details={"type": type(records).__name__},
        )

    batch = list(records)
    for index, record in enumerate(batch):
        if not isinstance(record, Mapping):
            raise RecordShapeError(
                f"Record at index {index} is a {type(record).__name__}, not a mapping",
                details={"index": index, "type": type(record).__name__},
            )
    return batch


def percent(part: int, whole: int) -> float:
    """``part / whole`` as a percentage rounded half-up to one decimal (0 if empty)."""
    if whole <= 0:
        return 0.0
    return math.floor(part / whole * 1000 + 0.5) / 10


def whole_percent(part: int, whole: int) -> int:
    """``part / whole`` as a whole percentage rounded half-up (0 if empty)."""
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def round_half_up(value: float) -> float:
    """Round a non-negative value half-up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10
