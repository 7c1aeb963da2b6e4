"""Typed parameter setters.

A :class:`ParameterSetter` remembers how a variable was bound (its
:class:`SqlType`) and with what value, so the binding can be replayed on
whichever native statement the current signature selects.  A variable that
was never bound (or was cleared) holds :data:`VACUOUS`.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SqlType(str, Enum):
    """How a value is handed to the driver."""

    VACUOUS = "vacuous"
    NULL = "null"
    BOOLEAN = "boolean"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    STRING = "string"
    BYTES = "bytes"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BINARY_STREAM = "binary_stream"
    CHARACTER_STREAM = "character_stream"
    OBJECT = "object"


_STREAM_TYPES = frozenset({SqlType.BINARY_STREAM, SqlType.CHARACTER_STREAM})


@dataclass(frozen=True)
class ParameterSetter:
    """One recorded binding.

    Attributes:
        sql_type: How the value is bound.
        value: The bound value (``None`` for NULL and vacuous setters).  A
            stream is read when the setter is created and its contents
            are kept here.
        length: For streams, the number of bytes/characters to read, or
            ``None`` to read to the end.
    """

    sql_type: SqlType
    value: Any = None
    length: int | None = None

    def __post_init__(self) -> None:
        # Streams are drained once so the setter can be replayed on any rebind.
        if self.sql_type in _STREAM_TYPES and hasattr(self.value, "read"):
            contents = self.value.read() if self.length is None else self.value.read(self.length)
            object.__setattr__(self, "value", contents)

    @property
    def is_vacuous(self) -> bool:
        """True if this setter stands for "no value"; its region is dropped."""
        return self.sql_type is SqlType.VACUOUS

    def native_value(self) -> Any:
        """Return the value to pass to the driver."""
        return self.value


VACUOUS = ParameterSetter(SqlType.VACUOUS)
NULL = ParameterSetter(SqlType.NULL)
