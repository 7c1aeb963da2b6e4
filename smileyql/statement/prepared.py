"""Prepared statements over smileyQL templates.

A template such as::

    SELECT * FROM bin_tbl WHERE 1=1 (: AND aisle = :aisle :) (: AND bin = :bin :)

expands to a different SQL text for every combination of bound and unbound
variables.  :class:`SmileyPreparedStatement` keys each expansion by its
*signature*, a tuple of booleans over the sorted variable names that says
which are bound, and keeps one native statement per signature.  Executing
again with the same combination reuses the native statement; only the values
are re-bound, and only if something changed since the last bind.

Usage::

    with SmileyPreparedStatement(connection, sql) as statement:
        statement.set_string("aisle", "A7")
        rows = statement.execute_query()
        statement.clear_parameters()
        statement.set_int("bin", 12)
        rows = statement.execute_query()
"""
from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import IO, Any, TypeVar

from smileyql.compile.formatters import PlaceholderRegistry
from smileyql.compile.registry import DatabaseType, select_profile
from smileyql.compile.template import SmileyTemplate
from smileyql.errors import NativeStatementError, StatementClosedError, UnknownVariableError
from smileyql.statement.native import (
    DBAPIConnectionAdapter,
    NativeConnection,
    NativeStatement,
    adapt_connection,
)
from smileyql.statement.settings import FetchDirection, StatementSettings
from smileyql.statement.setters import NULL, VACUOUS, ParameterSetter, SqlType

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Which variables are bound, in sorted-name order.
Signature = tuple[bool, ...]


@dataclass(frozen=True)
class BoundStatement:
    """SQL text plus positional parameters for the current bindings.

    Attributes:
        sql: The expanded SQL with driver placeholders.
        parameters: ``(position, value)`` pairs, positions starting at 1.
    """

    sql: str
    parameters: tuple[tuple[int, Any], ...] = ()

    @property
    def params(self) -> tuple[Any, ...]:
        """Values in position order, ready for ``cursor.execute(sql, params)``."""
        return tuple(value for _, value in self.parameters)


@dataclass
class _CachedStatement:
    native: NativeStatement
    placeholders: tuple[str, ...]
    change_count: int = -1
    pending_batch: bool = False


class SmileyPreparedStatement:
    """A prepared statement whose SQL depends on which variables are bound.

    Args:
        connection: A :class:`~smileyql.statement.native.NativeConnection`,
            a SQLAlchemy ``Connection`` or a DB-API 2.0 connection.
        sql: The template body.
        database_type: Dialect for scanning the template.  Inferred from
            ``connection`` when omitted.
        paramstyle: Overrides the DB-API paramstyle detected for the driver.

    Every variable starts unbound.  A variable bound with :meth:`set_null`
    (or any setter with a ``None`` value) counts as bound and includes its
    region; use :meth:`clear_parameter` to drop it again.
    """

    def __init__(
        self,
        connection: Any,
        sql: str,
        *,
        database_type: DatabaseType | None = None,
        paramstyle: str | None = None,
    ) -> None:
        self._native_connection: NativeConnection = adapt_connection(connection, paramstyle)
        if database_type is not None:
            profile = database_type.profile
        else:
            source = connection.connection if isinstance(connection, DBAPIConnectionAdapter) else connection
            profile, _ = select_profile(source)
        self._template = SmileyTemplate(
            sql,
            profile=profile,
            registry=PlaceholderRegistry(self._native_connection.placeholder),
        )
        self._setters: dict[str, ParameterSetter] = dict.fromkeys(self._template.var_names, VACUOUS)
        self._settings = StatementSettings()
        self._statements: dict[Signature, _CachedStatement] = {}
        self._change_count = 0
        self._last_executed: NativeStatement | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def template(self) -> SmileyTemplate:
        return self._template

    @property
    def var_names(self) -> tuple[str, ...]:
        """Sorted names of every variable in the template."""
        return self._template.var_names

    @property
    def bound_var_names(self) -> tuple[str, ...]:
        """Sorted names of the variables that currently have a value."""
        return tuple(name for name, setter in self._setters.items() if not setter.is_vacuous)

    def is_parameter_set(self, name: str) -> bool:
        return not self._setter(name).is_vacuous

    @property
    def settings(self) -> StatementSettings:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Typed setters
    # ------------------------------------------------------------------

    def set_null(self, name: str) -> None:
        """Bind SQL NULL to ``name``; its region is included."""
        self._bind(name, NULL)

    def set_boolean(self, name: str, value: bool | None) -> None:
        self._bind(name, ParameterSetter(SqlType.BOOLEAN, value))

    def set_int(self, name: str, value: int | None) -> None:
        self._bind(name, ParameterSetter(SqlType.INT, value))

    def set_float(self, name: str, value: float | None) -> None:
        self._bind(name, ParameterSetter(SqlType.FLOAT, value))

    def set_decimal(self, name: str, value: Decimal | None) -> None:
        self._bind(name, ParameterSetter(SqlType.DECIMAL, value))

    def set_string(self, name: str, value: str | None) -> None:
        self._bind(name, ParameterSetter(SqlType.STRING, value))

    def set_bytes(self, name: str, value: bytes | None) -> None:
        self._bind(name, ParameterSetter(SqlType.BYTES, value))

    def set_date(self, name: str, value: datetime.date | None) -> None:
        self._bind(name, ParameterSetter(SqlType.DATE, value))

    def set_time(self, name: str, value: datetime.time | None) -> None:
        self._bind(name, ParameterSetter(SqlType.TIME, value))

    def set_timestamp(self, name: str, value: datetime.datetime | None) -> None:
        self._bind(name, ParameterSetter(SqlType.TIMESTAMP, value))

    def set_binary_stream(self, name: str, stream: IO[bytes], length: int | None = None) -> None:
        """Bind the contents of a binary stream.  The stream is read here, once."""
        self._bind(name, ParameterSetter(SqlType.BINARY_STREAM, stream, length))

    def set_character_stream(self, name: str, stream: IO[str], length: int | None = None) -> None:
        """Bind the contents of a text stream.  The stream is read here, once."""
        self._bind(name, ParameterSetter(SqlType.CHARACTER_STREAM, stream, length))

    def set_object(self, name: str, value: Any) -> None:
        """Bind ``value`` as-is and let the driver adapt it."""
        self._bind(name, ParameterSetter(SqlType.OBJECT, value))

    def set_parameter(self, name: str, setter: ParameterSetter) -> None:
        """Bind a prepared :class:`ParameterSetter` to ``name``."""
        self._bind(name, setter)

    def clear_parameter(self, name: str) -> None:
        """Unbind ``name``, dropping its region."""
        self._bind(name, VACUOUS)

    def clear_parameters(self) -> None:
        """Unbind every variable."""
        self._check_open()
        self._setters = dict.fromkeys(self._setters, VACUOUS)
        self._change_count += 1

    def deep_clear_parameters(self) -> None:
        """Unbind every variable and close every cached native statement."""
        self.clear_parameters()
        self._close_statements()

    def _setter(self, name: str) -> ParameterSetter:
        try:
            return self._setters[name]
        except KeyError:
            raise UnknownVariableError(name, list(self._setters), self._template.sql) from None

    def _bind(self, name: str, setter: ParameterSetter) -> None:
        self._check_open()
        self._setter(name)
        self._setters[name] = setter
        self._change_count += 1

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def _set(self, setting: str, value: Any) -> None:
        self._check_open()
        self._settings = self._settings.with_setting(setting, value)
        self._change_count += 1

    def set_max_field_size(self, value: int) -> None:
        self._set("max_field_size", value)

    def set_max_rows(self, value: int) -> None:
        self._set("max_rows", value)

    def set_query_timeout(self, seconds: float) -> None:
        self._set("query_timeout", seconds)

    def set_cursor_name(self, name: str) -> None:
        self._set("cursor_name", name)

    def set_fetch_direction(self, direction: FetchDirection) -> None:
        self._set("fetch_direction", direction)

    def set_fetch_size(self, rows: int) -> None:
        """Set the rows fetched per round trip.

        Raises:
            ValueError: If ``rows`` is negative.
        """
        if rows < 0:
            raise ValueError(f"Fetch size must not be negative, got {rows}")
        self._set("fetch_size", rows)

    def set_poolable(self, poolable: bool) -> None:
        self._set("poolable", poolable)

    def get_max_field_size(self) -> int:
        return self._native_call("read max field size", lambda native: native.get_max_field_size())

    def get_max_rows(self) -> int:
        return self._native_call("read max rows", lambda native: native.get_max_rows())

    def get_query_timeout(self) -> float:
        return self._native_call("read query timeout", lambda native: native.get_query_timeout())

    def get_fetch_direction(self) -> FetchDirection:
        return self._native_call("read fetch direction", lambda native: native.get_fetch_direction())

    def get_fetch_size(self) -> int:
        return self._native_call("read fetch size", lambda native: native.get_fetch_size())

    def is_poolable(self) -> bool:
        return self._native_call("read poolable", lambda native: native.is_poolable())

    # ------------------------------------------------------------------
    # Native statement selection
    # ------------------------------------------------------------------

    def _signature(self) -> Signature:
        return tuple(not self._setters[name].is_vacuous for name in self._template.var_names)

    def _bound_values(self) -> dict[str, ParameterSetter]:
        return {name: setter for name, setter in self._setters.items() if not setter.is_vacuous}

    def get_native_statement(self) -> NativeStatement:
        """Return the native statement for the current bindings, fully bound.

        Raises:
            UnboundVariableError: If a variable outside any region is unbound.
            NativeStatementError: If the driver fails to prepare or bind.
            StatementClosedError: If the statement is closed.
        """
        return self._current_entry().native

    def _current_entry(self) -> _CachedStatement:
        self._check_open()
        signature = self._signature()
        entry = self._statements.get(signature)
        if entry is None:
            expansion = self._template.expand(self._bound_values())
            logger.debug("Preparing statement for signature %s: %s", signature, expansion.sql)
            try:
                native = self._native_connection.prepare(expansion.sql)
            except Exception as exc:
                raise NativeStatementError(f"Unable to prepare statement: {exc}") from exc
            entry = _CachedStatement(native, expansion.placeholders)
            self._statements[signature] = entry
        if entry.change_count != self._change_count:
            self._bind_entry(entry)
            entry.change_count = self._change_count
        return entry

    def _bind_entry(self, entry: _CachedStatement) -> None:
        try:
            self._settings.apply_to(entry.native)
        except Exception as exc:
            raise NativeStatementError(f"Unable to apply statement settings: {exc}") from exc
        for position, name in enumerate(entry.placeholders, start=1):
            try:
                entry.native.bind(position, self._setters[name])
            except Exception as exc:
                raise NativeStatementError(
                    f"Unable to bind :{name} at position {position}: {exc}", name
                ) from exc

    def _native_call(self, action: str, call: Callable[[NativeStatement], T]) -> T:
        native = self.get_native_statement()
        try:
            return call(native)
        except Exception as exc:
            raise NativeStatementError(f"Unable to {action}: {exc}") from exc

    def bound_statement(self) -> BoundStatement:
        """Return the SQL and ordered parameters for the current bindings.

        Does not touch the native layer.
        """
        self._check_open()
        expansion = self._template.expand(self._bound_values())
        parameters = tuple(
            (position, self._setters[name].native_value())
            for position, name in enumerate(expansion.placeholders, start=1)
        )
        return BoundStatement(expansion.sql, parameters)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, action: str, call: Callable[[NativeStatement], T]) -> T:
        native = self.get_native_statement()
        self._last_executed = native
        try:
            return call(native)
        except Exception as exc:
            raise NativeStatementError(f"Unable to {action}: {exc}") from exc

    def execute(self) -> bool:
        """Execute the statement; return True if it produced a result set.

        The outcome is read with :meth:`get_result_set` or
        :meth:`get_update_count`.
        """
        return self._execute("execute statement", lambda native: native.execute())

    def execute_query(self) -> list[Any]:
        """Execute the statement and return its rows."""
        return self._execute("execute query", lambda native: native.execute_query())

    def execute_update(self) -> int:
        """Execute the statement and return the update count."""
        return self._execute("execute update", lambda native: native.execute_update())

    def get_result_set(self) -> Any:
        """Return the result set of the last execution, or ``None``.

        Reads from the native statement that last executed, even if the
        bindings have changed since.
        """
        self._check_open()
        if self._last_executed is None:
            return None
        try:
            return self._last_executed.get_result_set()
        except Exception as exc:
            raise NativeStatementError(f"Unable to get result set: {exc}") from exc

    def get_update_count(self) -> int:
        """Return the update count of the last execution, or -1."""
        self._check_open()
        if self._last_executed is None:
            return -1
        try:
            return self._last_executed.get_update_count()
        except Exception as exc:
            raise NativeStatementError(f"Unable to get update count: {exc}") from exc

    def add_batch(self) -> None:
        """Queue the current bindings on the matching native statement."""
        entry = self._current_entry()
        try:
            entry.native.add_batch()
        except Exception as exc:
            raise NativeStatementError(f"Unable to add batch: {exc}") from exc
        entry.pending_batch = True

    def execute_batch(self) -> list[int]:
        """Run every queued batch and return the update counts.

        Batches queued under different signatures run statement by statement
        in the order the statements were first prepared.
        """
        self._check_open()
        counts: list[int] = []
        for entry in self._statements.values():
            if not entry.pending_batch:
                continue
            entry.pending_batch = False
            try:
                counts.extend(entry.native.execute_batch())
            except Exception as exc:
                raise NativeStatementError(f"Unable to execute batch: {exc}") from exc
        return counts

    def clear_batch(self) -> None:
        self._check_open()
        for entry in self._statements.values():
            if entry.pending_batch:
                entry.pending_batch = False
                try:
                    entry.native.clear_batch()
                except Exception as exc:
                    raise NativeStatementError(f"Unable to clear batch: {exc}") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise StatementClosedError(type(self).__name__)

    def _close_statements(self) -> None:
        statements = list(self._statements.values())
        self._statements.clear()
        self._last_executed = None
        failure: Exception | None = None
        for entry in statements:
            try:
                entry.native.close()
            except Exception as exc:
                logger.warning("Failed to close native statement", exc_info=True)
                failure = failure or exc
        if failure is not None:
            raise NativeStatementError(f"Unable to close statement: {failure}") from failure

    def close(self) -> None:
        """Close every cached native statement.  Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._close_statements()

    def __enter__(self) -> "SmileyPreparedStatement":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SmileyPreparedStatement(sql={self._template.sql!r}, bound={self.bound_var_names!r})"
