"""Closed set of value categories understood by formatters and setters.

Every runtime value is mapped to exactly one :class:`ValueKind` by
:func:`classify`.  Formatter predicates and native parameter binding match on
the kind instead of inspecting arbitrary types.
"""
from __future__ import annotations

import datetime
import time
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any


class ValueKind(str, Enum):
    """Category of a variable's value."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    CALENDAR = "calendar"
    BINARY = "binary"
    STREAM = "stream"
    OTHER = "other"


#: Kinds that carry a calendar date.
TEMPORAL_KINDS: frozenset[ValueKind] = frozenset(
    {ValueKind.DATE, ValueKind.DATETIME, ValueKind.CALENDAR}
)

_NUMBER_TYPES = (int, float, Decimal, Fraction)
_BINARY_TYPES = (bytes, bytearray, memoryview)


def classify(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` of ``value``.

    ``bool`` is checked before numbers and ``datetime`` before ``date``
    because each is a subclass of the other.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, _NUMBER_TYPES):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, datetime.datetime):
        return ValueKind.DATETIME
    if isinstance(value, datetime.date):
        return ValueKind.DATE
    if isinstance(value, datetime.time):
        return ValueKind.TIME
    if isinstance(value, time.struct_time):
        return ValueKind.CALENDAR
    if isinstance(value, _BINARY_TYPES):
        return ValueKind.BINARY
    if callable(getattr(value, "read", None)):
        return ValueKind.STREAM
    return ValueKind.OTHER


def type_name(value: Any) -> str:
    """Return the qualified class name of ``value`` for error messages."""
    cls = type(value)
    module = cls.__module__
    return cls.__qualname__ if module == "builtins" else f"{module}.{cls.__qualname__}"
