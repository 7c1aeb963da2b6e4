"""Value formatters: turning variable values into SQL literals.

A :class:`FormatterRegistry` is an ordered, immutable collection of named
:class:`ValueFormatter` objects.  Two lookups are supported:

Default dispatch
    ``:x`` — the first formatter (in registration order) whose
    ``is_default_for`` predicate accepts the value is used.
Explicit dispatch
    ``:x:date`` — the formatter registered as ``date`` is used, provided its
    ``is_applicable`` predicate accepts the value.

``None`` is never formatted: both lookups return ``None`` so the caller can
treat the variable as having no value.

The built-in formatters, in order, are ``number``, ``timestamp``, ``string``
and ``date``.  :func:`build_postgresql_registry` adds ``boolean``.
"""
from __future__ import annotations

import datetime
import logging
import math
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from types import MappingProxyType
from typing import Any

from smileyql.errors import (
    FormatterNotApplicableError,
    FormatterNotFoundError,
    NoApplicableFormatterError,
)
from smileyql.schema.values import TEMPORAL_KINDS, ValueKind, classify, type_name

logger = logging.getLogger(__name__)

#: ``value -> bool``
ValuePredicate = Callable[[Any], bool]

#: ``value -> SQL literal``
FormattingFunction = Callable[[Any], str]


@dataclass(frozen=True)
class ValueFormatter:
    """Formats values of some kind as SQL literals.

    Attributes:
        name: Name used after a variable to request this formatter explicitly.
        is_default_for: True if this formatter should be chosen for the value
            when no formatter is named.
        applies_to: True if this formatter can format the value when named
            explicitly, in addition to the values it is the default for.
        format_value: Returns the SQL literal for an applicable value.
    """

    name: str
    is_default_for: ValuePredicate
    applies_to: ValuePredicate
    format_value: FormattingFunction

    def is_applicable(self, value: Any) -> bool:
        return self.is_default_for(value) or self.applies_to(value)

    def __repr__(self) -> str:
        return f"ValueFormatter(name={self.name!r})"


class FormatterRegistry:
    """Ordered, read-only mapping of formatter names to formatters.

    Registries never change after construction; :meth:`with_formatter`
    returns a new registry.  That makes one registry safe to share between
    every template of a dialect and across threads.

    Args:
        name: Registry name, used in logs and ``repr``.
        formatters: Formatters in dispatch order.
    """

    def __init__(self, name: str, formatters: Mapping[str, ValueFormatter] | None = None) -> None:
        self._name = name
        self._formatters: Mapping[str, ValueFormatter] = MappingProxyType(dict(formatters or {}))

    @property
    def name(self) -> str:
        return self._name

    def names(self) -> list[str]:
        """Return formatter names in dispatch order."""
        return list(self._formatters)

    def get(self, name: str) -> ValueFormatter | None:
        return self._formatters.get(name)

    def __iter__(self) -> Iterator[ValueFormatter]:
        return iter(self._formatters.values())

    def __len__(self) -> int:
        return len(self._formatters)

    def with_formatter(
        self,
        name: str,
        is_default_for: ValuePredicate,
        applies_to: ValuePredicate,
        format_value: FormattingFunction,
        *,
        registry_name: str | None = None,
    ) -> "FormatterRegistry":
        """Return a copy of this registry with one more formatter appended.

        Registering an existing name replaces that formatter in place, keeping
        its position in the dispatch order.
        """
        formatters = dict(self._formatters)
        formatters[name] = ValueFormatter(name, is_default_for, applies_to, format_value)
        return FormatterRegistry(registry_name or self._name, formatters)

    def with_kind_formatter(
        self,
        name: str,
        kind: ValueKind,
        format_value: FormattingFunction,
        *,
        registry_name: str | None = None,
    ) -> "FormatterRegistry":
        """Shorthand for a formatter that is default for exactly one value kind."""
        def predicate(value: Any) -> bool:
            return classify(value) is kind

        return self.with_formatter(
            name, predicate, predicate, format_value, registry_name=registry_name
        )

    def format(self, value: Any) -> str | None:
        """Format ``value`` with the first formatter that is its default.

        Returns:
            The SQL literal, or ``None`` if ``value`` is ``None``.

        Raises:
            NoApplicableFormatterError: If no formatter is the default for
                the value.
        """
        if value is None:
            return None
        for formatter in self._formatters.values():
            if formatter.is_default_for(value):
                formatted = formatter.format_value(value)
                logger.debug("Formatted %r with %s formatter to %s", value, formatter.name, formatted)
                return formatted
        raise NoApplicableFormatterError(type_name(value))

    def format_named(self, value: Any, formatter_name: str) -> str | None:
        """Format ``value`` with the formatter registered as ``formatter_name``.

        Returns:
            The SQL literal, or ``None`` if ``value`` is ``None``.

        Raises:
            FormatterNotFoundError: If no formatter has that name.
            FormatterNotApplicableError: If the formatter cannot format
                the value.
        """
        if value is None:
            return None
        formatter = self._formatters.get(formatter_name)
        if formatter is None:
            raise FormatterNotFoundError(formatter_name, self.names())
        if not formatter.is_applicable(value):
            raise FormatterNotApplicableError(formatter_name, type_name(value))
        return formatter.format_value(value)

    def __repr__(self) -> str:
        return f"FormatterRegistry(name={self._name!r}, formatters={self.names()!r})"


class PlaceholderRegistry(FormatterRegistry):
    """Registry that renders every value as a driver parameter placeholder.

    Used when expanding a template for a prepared statement: the values are
    bound separately, so only their positions matter.  Formatter names in the
    template are accepted and ignored.

    Args:
        placeholder: The driver's positional placeholder (``?`` or ``%s``).
    """

    def __init__(self, placeholder: str = "?") -> None:
        def always(value: Any) -> bool:
            return True

        super().__init__(
            "PreparedStatement",
            {"parameter": ValueFormatter("parameter", always, always, lambda value: placeholder)},
        )
        self._placeholder = placeholder

    @property
    def placeholder(self) -> str:
        return self._placeholder

    def format_named(self, value: Any, formatter_name: str) -> str | None:
        return self.format(value)


# ---------------------------------------------------------------------------
# Built-in formatting functions
# ---------------------------------------------------------------------------


def format_number(value: Any) -> str:
    """Render a finite number as a plain numeral; fractions become decimals."""
    if isinstance(value, Fraction):
        value = Decimal(value.numerator) / Decimal(value.denominator)
    return str(value)


def format_string(value: str) -> str:
    """Quote ``value`` as an SQL string literal, doubling embedded quotes."""
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def format_boolean(value: bool) -> str:
    return "true" if value else "false"


def _format_offset(offset_seconds: int) -> str:
    sign = "+" if offset_seconds >= 0 else "-"
    minutes = abs(offset_seconds) // 60
    return f"{sign}{minutes // 60}:{minutes % 60}"


def _zone_offset(value: Any) -> int | None:
    """Return the UTC offset in seconds for zoned values, else ``None``."""
    if isinstance(value, datetime.datetime):
        offset = value.utcoffset()
        return None if offset is None else int(offset.total_seconds())
    if isinstance(value, time.struct_time):
        return value.tm_gmtoff
    return None


def _fields(value: Any) -> tuple[int, int, int, int, int, int]:
    if isinstance(value, time.struct_time):
        return (value.tm_year, value.tm_mon, value.tm_mday,
                value.tm_hour, value.tm_min, value.tm_sec)
    if isinstance(value, datetime.datetime):
        return (value.year, value.month, value.day,
                value.hour, value.minute, value.second)
    return (value.year, value.month, value.day, 0, 0, 0)


def format_timestamp(value: Any) -> str:
    """Render a date-like value as ``TIMESTAMP '...'``.

    Naive values use zero-padded ``YYYY-MM-DD HH:MM:SS``.  Zoned values use
    unpadded fields followed by the zone offset, e.g.
    ``TIMESTAMP '2020-2-18 13:43:56-5:0'``.
    """
    year, month, day, hour, minute, second = _fields(value)
    offset = _zone_offset(value)
    if offset is None:
        body = f"{year:04d}-{month:02d}-{day:02d} {hour:02d}:{minute:02d}:{second:02d}"
    else:
        body = f"{year}-{month}-{day} {hour}:{minute}:{second}{_format_offset(offset)}"
    return f"TIMESTAMP '{body}'"


def format_date(value: Any) -> str:
    """Render a date-like value as ``DATE '...'``, dropping any time of day."""
    year, month, day, *_ = _fields(value)
    if _zone_offset(value) is None:
        body = f"{year:04d}-{month:02d}-{day:02d}"
    else:
        body = f"{year}-{month}-{day}"
    return f"DATE '{body}'"


def _is_finite_number(value: Any) -> bool:
    if classify(value) is not ValueKind.NUMBER:
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return True


def _is_naive_datetime(value: Any) -> bool:
    return classify(value) is ValueKind.DATETIME and value.utcoffset() is None


def _is_date_default(value: Any) -> bool:
    # Zoned datetimes default to a date, as calendars do.
    kind = classify(value)
    if kind is ValueKind.DATETIME:
        return value.utcoffset() is not None
    return kind in (ValueKind.DATE, ValueKind.CALENDAR)


def _is_temporal(value: Any) -> bool:
    return classify(value) in TEMPORAL_KINDS


def build_ansi_registry() -> FormatterRegistry:
    """Build the registry shared by the ANSI, Oracle and SQL Server dialects."""
    logger.debug("Registering common formatters.")
    registry = (
        FormatterRegistry("ANSI")
        .with_formatter("number", _is_finite_number, _is_finite_number, format_number)
        .with_formatter("timestamp", _is_naive_datetime, _is_temporal, format_timestamp)
        .with_kind_formatter("string", ValueKind.STRING, format_string)
        .with_formatter("date", _is_date_default, _is_temporal, format_date)
    )
    logger.debug("Registered common formatters: %s", registry.names())
    return registry


def build_postgresql_registry(base: FormatterRegistry | None = None) -> FormatterRegistry:
    """Build the PostgreSQL registry: the common formatters plus ``boolean``."""
    base = base if base is not None else build_ansi_registry()
    return base.with_kind_formatter(
        "boolean", ValueKind.BOOLEAN, format_boolean, registry_name="PostgreSQL"
    )
