"""The boundary between prepared statements and a database driver.

:class:`SmileyPreparedStatement` talks to the driver only through the two
protocols defined here.  :class:`DBAPIConnectionAdapter` implements them over
any DB-API 2.0 connection whose paramstyle is positional (``qmark``,
``format`` or ``pyformat`` used with ``%s``)::

    import sqlite3

    native = DBAPIConnectionAdapter(sqlite3.connect(":memory:"))
    statement = native.prepare("SELECT * FROM t WHERE a = ?")
    statement.bind(1, ParameterSetter(SqlType.INT, 7))
    rows = statement.execute_query()

:func:`adapt_connection` also accepts a SQLAlchemy ``Connection``, in which
case the pooled DB-API connection underneath it is used.
"""
from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from smileyql.statement.settings import FetchDirection
from smileyql.statement.setters import ParameterSetter

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)

#: Placeholder emitted for each supported DB-API paramstyle.
PLACEHOLDERS: dict[str, str] = {
    "qmark": "?",
    "format": "%s",
    "pyformat": "%s",
}


@runtime_checkable
class NativeStatement(Protocol):
    """A driver statement prepared from one SQL text."""

    def bind(self, position: int, setter: ParameterSetter) -> None:
        """Bind ``setter``'s value at 1-based ``position``."""
        ...

    def clear_parameters(self) -> None: ...

    def set_max_field_size(self, value: int) -> None: ...

    def get_max_field_size(self) -> int: ...

    def set_max_rows(self, value: int) -> None: ...

    def get_max_rows(self) -> int: ...

    def set_query_timeout(self, value: float) -> None: ...

    def get_query_timeout(self) -> float: ...

    def set_cursor_name(self, value: str) -> None: ...

    def set_fetch_direction(self, value: FetchDirection) -> None: ...

    def get_fetch_direction(self) -> FetchDirection: ...

    def set_fetch_size(self, value: int) -> None: ...

    def get_fetch_size(self) -> int: ...

    def set_poolable(self, value: bool) -> None: ...

    def is_poolable(self) -> bool: ...

    def execute(self) -> bool:
        """Execute; return True if the statement produced a result set."""
        ...

    def execute_query(self) -> list[Any]: ...

    def execute_update(self) -> int: ...

    def get_result_set(self) -> Any:
        """The rows of the last :meth:`execute`, or ``None`` if it produced none."""
        ...

    def get_update_count(self) -> int:
        """The update count of the last execution, or -1 if it produced a result set."""
        ...

    def add_batch(self) -> None: ...

    def execute_batch(self) -> list[int]: ...

    def clear_batch(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class NativeConnection(Protocol):
    """Prepares native statements."""

    @property
    def placeholder(self) -> str:
        """The positional placeholder the driver expects."""
        ...

    def prepare(self, sql: str) -> NativeStatement: ...


# ---------------------------------------------------------------------------
# DB-API 2.0 implementation
# ---------------------------------------------------------------------------


def _rowcount(cursor: Any) -> int:
    return getattr(cursor, "rowcount", -1)


class DBAPIStatement:
    """:class:`NativeStatement` over a DB-API 2.0 connection.

    Each execution opens its own cursor and closes it afterwards, except
    :meth:`execute`, which keeps the cursor of a result set open as
    :attr:`result_cursor` until the next execution or :meth:`close`.

    DB-API has no portable way to express most statement settings, so they
    are applied where possible: ``fetch_size`` becomes ``cursor.arraysize``,
    ``max_rows`` limits :meth:`execute_query` and ``max_field_size`` truncates
    string and bytes columns it returns.  The others are recorded only.
    """

    def __init__(self, connection: Any, sql: str) -> None:
        self._connection = connection
        self.sql = sql
        self._parameters: dict[int, Any] = {}
        self._batch: list[tuple[Any, ...]] = []
        self.result_cursor: Any = None
        self._update_count = -1
        self._max_field_size = 0
        self._max_rows = 0
        self._query_timeout: float = 0
        self._cursor_name: str | None = None
        self._fetch_direction = FetchDirection.FORWARD
        self._fetch_size = 0
        self._poolable = False

    # -- parameters -----------------------------------------------------

    def bind(self, position: int, setter: ParameterSetter) -> None:
        if position < 1:
            raise IndexError(f"Parameter positions start at 1, got {position}")
        self._parameters[position] = setter.native_value()

    def clear_parameters(self) -> None:
        self._parameters.clear()

    @property
    def parameters(self) -> tuple[Any, ...]:
        """Bound values in position order."""
        return tuple(self._parameters[position] for position in sorted(self._parameters))

    # -- settings -------------------------------------------------------

    def set_max_field_size(self, value: int) -> None:
        self._max_field_size = value

    def get_max_field_size(self) -> int:
        return self._max_field_size

    def set_max_rows(self, value: int) -> None:
        self._max_rows = value

    def get_max_rows(self) -> int:
        return self._max_rows

    def set_query_timeout(self, value: float) -> None:
        self._query_timeout = value

    def get_query_timeout(self) -> float:
        return self._query_timeout

    def set_cursor_name(self, value: str) -> None:
        self._cursor_name = value

    def set_fetch_direction(self, value: FetchDirection) -> None:
        self._fetch_direction = FetchDirection(value)

    def get_fetch_direction(self) -> FetchDirection:
        return self._fetch_direction

    def set_fetch_size(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"Fetch size must not be negative, got {value}")
        self._fetch_size = value

    def get_fetch_size(self) -> int:
        return self._fetch_size

    def set_poolable(self, value: bool) -> None:
        self._poolable = value

    def is_poolable(self) -> bool:
        return self._poolable

    # -- execution ------------------------------------------------------

    def _cursor(self) -> Any:
        cursor = self._connection.cursor()
        if self._fetch_size:
            cursor.arraysize = self._fetch_size
        return cursor

    def _release_result(self) -> None:
        self._update_count = -1
        if self.result_cursor is not None:
            self.result_cursor.close()
            self.result_cursor = None

    def execute(self) -> bool:
        self._release_result()
        cursor = self._cursor()
        cursor.execute(self.sql, self.parameters)
        if cursor.description is None:
            self._update_count = _rowcount(cursor)
            cursor.close()
            return False
        self.result_cursor = cursor
        return True

    def execute_query(self) -> list[Any]:
        self._release_result()
        cursor = self._cursor()
        try:
            cursor.execute(self.sql, self.parameters)
            rows = cursor.fetchmany(self._max_rows) if self._max_rows else cursor.fetchall()
        finally:
            cursor.close()
        if self._max_field_size:
            rows = [self._truncate(row) for row in rows]
        return rows

    def _truncate(self, row: Any) -> tuple[Any, ...]:
        limit = self._max_field_size
        return tuple(
            value[:limit] if isinstance(value, (str, bytes, bytearray)) else value
            for value in row
        )

    def execute_update(self) -> int:
        self._release_result()
        cursor = self._cursor()
        try:
            cursor.execute(self.sql, self.parameters)
            self._update_count = _rowcount(cursor)
            return self._update_count
        finally:
            cursor.close()

    def add_batch(self) -> None:
        self._batch.append(self.parameters)

    def execute_batch(self) -> list[int]:
        """Execute every batched parameter set; return one update count each."""
        self._release_result()
        batch, self._batch = self._batch, []
        if not batch:
            return []
        counts: list[int] = []
        cursor = self._cursor()
        try:
            for parameters in batch:
                cursor.execute(self.sql, parameters)
                counts.append(_rowcount(cursor))
        finally:
            cursor.close()
        return counts

    def get_result_set(self) -> Any:
        """The open cursor left by :meth:`execute`, ready to fetch from."""
        return self.result_cursor

    def get_update_count(self) -> int:
        return self._update_count

    def clear_batch(self) -> None:
        self._batch.clear()

    def close(self) -> None:
        self._release_result()
        self._parameters.clear()
        self._batch.clear()

    def __repr__(self) -> str:
        return f"DBAPIStatement(sql={self.sql!r})"


class DBAPIConnectionAdapter:
    """:class:`NativeConnection` over a DB-API 2.0 connection.

    Args:
        connection: The DB-API connection.  It is borrowed, never closed.
        paramstyle: The driver's paramstyle.  Read from the driver module's
            ``paramstyle`` attribute when omitted.

    Raises:
        ValueError: If the paramstyle is not positional.
    """

    def __init__(self, connection: Any, paramstyle: str | None = None) -> None:
        style = paramstyle or driver_paramstyle(connection)
        if style not in PLACEHOLDERS:
            raise ValueError(
                f"Unsupported DB-API paramstyle {style!r}; expected one of {sorted(PLACEHOLDERS)}"
            )
        self._connection = connection
        self._paramstyle = style
        self._placeholder = PLACEHOLDERS[style]

    @property
    def connection(self) -> Any:
        return self._connection

    @property
    def paramstyle(self) -> str:
        return self._paramstyle

    @property
    def placeholder(self) -> str:
        return self._placeholder

    def prepare(self, sql: str) -> DBAPIStatement:
        logger.debug("Preparing %s", sql)
        return DBAPIStatement(self._connection, sql)

    def __repr__(self) -> str:
        return f"DBAPIConnectionAdapter(connection={self._connection!r}, paramstyle={self._paramstyle!r})"


def driver_paramstyle(connection: Any) -> str:
    """Return the paramstyle of the driver module that defines ``connection``.

    Falls back to ``qmark`` when the driver does not declare one.
    """
    module_name = type(connection).__module__.split(".")[0]
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        logger.debug("Could not import driver module %s", module_name)
        return "qmark"
    return getattr(module, "paramstyle", "qmark")


def _is_sqlalchemy_connection(obj: Any) -> bool:
    pooled = getattr(obj, "connection", None)
    return hasattr(obj, "dialect") and hasattr(pooled, "dbapi_connection")


def adapt_connection(connection: Any, paramstyle: str | None = None) -> NativeConnection:
    """Return a :class:`NativeConnection` for ``connection``.

    Args:
        connection: A :class:`NativeConnection` (returned unchanged), a
            SQLAlchemy ``Connection`` or a DB-API 2.0 connection.
        paramstyle: Overrides the detected paramstyle.

    Raises:
        TypeError: For a SQLAlchemy ``Engine``; connect first.
        ValueError: If the paramstyle is not positional.
    """
    if isinstance(connection, NativeConnection):
        return connection
    if _is_sqlalchemy_connection(connection):
        sa_connection: Connection = connection
        return DBAPIConnectionAdapter(
            sa_connection.connection.dbapi_connection,
            paramstyle or sa_connection.dialect.paramstyle,
        )
    if hasattr(connection, "dialect") and hasattr(connection, "raw_connection"):
        raise TypeError("Pass a SQLAlchemy Connection (engine.connect()), not an Engine")
    return DBAPIConnectionAdapter(connection, paramstyle)
