"""Unit tests for value classification and the formatter registries."""

from __future__ import annotations

import datetime
import io
import time
from decimal import Decimal
from fractions import Fraction

import pytest

from smileyql.compile.formatters import (
    FormatterRegistry,
    PlaceholderRegistry,
    build_ansi_registry,
    build_postgresql_registry,
    format_string,
)
from smileyql.errors import (
    FormatterNotApplicableError,
    FormatterNotFoundError,
    NoApplicableFormatterError,
    NoFormatterError,
)
from smileyql.schema.values import ValueKind, classify

ANSI = build_ansi_registry()
PG = build_postgresql_registry(ANSI)

EST = datetime.timezone(datetime.timedelta(hours=-5))
NAIVE = datetime.datetime(2020, 2, 18, 13, 43, 56)
ZONED = datetime.datetime(2020, 2, 18, 13, 43, 56, tzinfo=EST)
CALENDAR = time.struct_time((2020, 2, 3, 4, 5, 6, 0, 34, 0))


# ---------------------------------------------------------------------------
# Value kinds
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, kind",
    [
        (None, ValueKind.NULL),
        (True, ValueKind.BOOLEAN),
        (7, ValueKind.NUMBER),
        (1.5, ValueKind.NUMBER),
        (Decimal("2.50"), ValueKind.NUMBER),
        (Fraction(1, 3), ValueKind.NUMBER),
        ("x", ValueKind.STRING),
        (NAIVE, ValueKind.DATETIME),
        (datetime.date(2020, 2, 3), ValueKind.DATE),
        (datetime.time(4, 5), ValueKind.TIME),
        (CALENDAR, ValueKind.CALENDAR),
        (b"\x00", ValueKind.BINARY),
        (io.BytesIO(b"abc"), ValueKind.STREAM),
        (object(), ValueKind.OTHER),
    ],
)
def test_classify(value, kind):
    assert classify(value) is kind


# ---------------------------------------------------------------------------
# Default dispatch
# ---------------------------------------------------------------------------


def test_registry_order():
    assert ANSI.names() == ["number", "timestamp", "string", "date"]
    assert PG.names() == ["number", "timestamp", "string", "date", "boolean"]
    assert PG.name == "PostgreSQL"


def test_numbers_render_with_str():
    assert ANSI.format(42) == "42"
    assert ANSI.format(1.5) == "1.5"
    assert ANSI.format(Decimal("1.50")) == "1.50"


def test_fractions_render_as_decimal_numerals():
    assert ANSI.format(Fraction(1, 2)) == "0.5"
    assert ANSI.format(Fraction(-3, 4)) == "-0.75"
    assert ANSI.format(Fraction(6, 3)) == "2"


@pytest.mark.parametrize(
    "value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN"), Decimal("Infinity")]
)
def test_non_finite_numbers_are_not_formatted(value):
    with pytest.raises(NoApplicableFormatterError):
        ANSI.format(value)
    with pytest.raises(FormatterNotApplicableError) as exc_info:
        ANSI.format_named(value, "number")
    assert exc_info.value.formatter_name == "number"


def test_strings_double_embedded_quotes():
    assert ANSI.format("O'Brien") == "'O''Brien'"
    assert format_string("''") == "''''''"


def test_naive_datetime_is_a_padded_timestamp():
    assert ANSI.format(datetime.datetime(2020, 2, 3, 4, 5, 6)) == "TIMESTAMP '2020-02-03 04:05:06'"


def test_zoned_datetime_defaults_to_date():
    assert ANSI.format(ZONED) == "DATE '2020-2-18'"


def test_zoned_timestamp_includes_offset():
    assert ANSI.format_named(ZONED, "timestamp") == "TIMESTAMP '2020-2-18 13:43:56-5:0'"


def test_positive_offset_with_minutes():
    ist = datetime.timezone(datetime.timedelta(hours=5, minutes=30))
    value = datetime.datetime(2021, 11, 5, 9, 0, 0, tzinfo=ist)
    assert ANSI.format_named(value, "timestamp") == "TIMESTAMP '2021-11-5 9:0:0+5:30'"


def test_date_renders_as_date_literal():
    assert ANSI.format(datetime.date(2020, 2, 3)) == "DATE '2020-02-03'"


def test_struct_time_defaults_to_date():
    assert ANSI.format(CALENDAR) == "DATE '2020-02-03'"


def test_boolean_only_formats_for_postgresql():
    assert PG.format(True) == "true"
    assert PG.format(False) == "false"
    with pytest.raises(NoApplicableFormatterError) as exc_info:
        ANSI.format(True)
    assert exc_info.value.value_type == "bool"
    assert exc_info.value.code == "NO_FORMATTER"


def test_unformattable_value_raises():
    with pytest.raises(NoFormatterError):
        ANSI.format(datetime.time(4, 5))


def test_none_is_never_formatted():
    assert ANSI.format(None) is None
    assert ANSI.format_named(None, "no_such_formatter") is None


# ---------------------------------------------------------------------------
# Explicit dispatch
# ---------------------------------------------------------------------------


def test_named_date_drops_time_of_day():
    assert ANSI.format_named(NAIVE, "date") == "DATE '2020-02-18'"


def test_named_timestamp_on_a_date():
    assert ANSI.format_named(datetime.date(2020, 2, 3), "timestamp") == "TIMESTAMP '2020-02-03 00:00:00'"


def test_named_timestamp_on_struct_time():
    assert ANSI.format_named(CALENDAR, "timestamp") == "TIMESTAMP '2020-02-03 04:05:06'"


def test_named_formatter_must_exist():
    with pytest.raises(FormatterNotFoundError) as exc_info:
        ANSI.format_named(1, "money")
    assert exc_info.value.formatter_name == "money"
    assert exc_info.value.details["registered"] == ANSI.names()


def test_named_formatter_must_apply():
    with pytest.raises(FormatterNotApplicableError) as exc_info:
        ANSI.format_named("soon", "date")
    assert exc_info.value.to_error_response()["error"] == "FORMATTER_NOT_APPLICABLE"


# ---------------------------------------------------------------------------
# Derived registries
# ---------------------------------------------------------------------------


def test_with_formatter_returns_new_registry():
    upper = ANSI.with_formatter(
        "upper",
        is_default_for=lambda value: False,
        applies_to=lambda value: isinstance(value, str),
        format_value=lambda value: f"UPPER('{value}')",
    )
    assert "upper" not in ANSI.names()
    assert upper.names()[-1] == "upper"
    assert upper.format_named("abc", "upper") == "UPPER('abc')"
    assert upper.format("abc") == "'abc'"


def test_replacing_a_formatter_keeps_its_position():
    registry = ANSI.with_kind_formatter("number", ValueKind.NUMBER, lambda value: f"CAST({value} AS INT)")
    assert registry.names() == ANSI.names()
    assert registry.format(3) == "CAST(3 AS INT)"


def test_empty_registry_formats_nothing():
    with pytest.raises(NoApplicableFormatterError):
        FormatterRegistry("empty").format(1)


def test_placeholder_registry():
    registry = PlaceholderRegistry("%s")
    assert registry.format(b"bytes") == "%s"
    assert registry.format_named(NAIVE, "date") == "%s"
    assert registry.format(None) is None
    assert registry.placeholder == "%s"
