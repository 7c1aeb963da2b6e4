"""smileyQL – optional SQL clauses without string concatenation.

Write the optional parts of a query once, inside ``(: ... :)``, and let the
values you supply decide which parts survive::

    SELECT * FROM bin_tbl
    WHERE 1=1 (: AND aisle = :aisle :) (: AND bin_number = :bin :)

A region is kept only when every variable inside it has a value.  Variables
outside any region are mandatory.

Public API
----------
``render``
    Expand a template to literal SQL for a dialect.

``prepare``
    Create a :class:`SmileyPreparedStatement` that binds values as driver
    parameters and reuses one native statement per combination of bound
    variables.

Re-exported types
-----------------
``SmileyTemplate``, ``SmileyPreparedStatement``, ``MapSetter``,
``DatabaseType``, ``DialectProfile``, ``FormatterRegistry``, and all error
classes.

Extensibility
-------------
Database products are mapped to dialects through a registry::

    from smileyql.compile.registry import DatabaseType, DatabaseTypeRegistry

    DatabaseTypeRegistry.register("CockroachDB", DatabaseType.POSTGRESQL)

Formatters are added by deriving a registry::

    registry = DatabaseType.ANSI.registry.with_formatter(
        "upper", is_default_for=lambda v: False,
        applies_to=lambda v: isinstance(v, str),
        format_value=lambda v: f"UPPER('{v}')",
    )
    SmileyTemplate("SELECT :name:upper", registry=registry)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from smileyql.compile.expander import Expansion
from smileyql.compile.formatters import FormatterRegistry, PlaceholderRegistry, ValueFormatter
from smileyql.compile.registry import (
    DatabaseType,
    DatabaseTypeRegistry,
    infer_database_type,
    select_profile,
)
from smileyql.compile.template import SmileyTemplate
from smileyql.errors import (
    FormatterNotApplicableError,
    FormatterNotFoundError,
    NativeStatementError,
    NoApplicableFormatterError,
    NoFormatterError,
    ProfileConfigError,
    SmileyQLError,
    StatementClosedError,
    UnboundVariableError,
    UnknownVariableError,
    UnsupportedFeatureError,
    UnsupportedNestingError,
)
from smileyql.schema.dialect import (
    ANSI,
    ORACLE,
    POSTGRESQL,
    SQL_SERVER,
    DialectProfile,
    DialectProfileBuilder,
)
from smileyql.schema.values import ValueKind, classify
from smileyql.statement.map_setter import MapSetter, MapSetterBuilder
from smileyql.statement.native import DBAPIConnectionAdapter, adapt_connection
from smileyql.statement.prepared import BoundStatement, SmileyPreparedStatement
from smileyql.statement.settings import FetchDirection, StatementSettings

__all__ = [
    # Core pipeline
    "render",
    "prepare",
    # Templates
    "SmileyTemplate",
    "Expansion",
    # Dialects
    "DatabaseType",
    "DatabaseTypeRegistry",
    "infer_database_type",
    "select_profile",
    "DialectProfile",
    "DialectProfileBuilder",
    "ANSI",
    "POSTGRESQL",
    "ORACLE",
    "SQL_SERVER",
    # Formatting
    "FormatterRegistry",
    "PlaceholderRegistry",
    "ValueFormatter",
    "ValueKind",
    "classify",
    # Statements
    "SmileyPreparedStatement",
    "BoundStatement",
    "StatementSettings",
    "FetchDirection",
    "MapSetter",
    "MapSetterBuilder",
    "DBAPIConnectionAdapter",
    "adapt_connection",
    # Errors
    "SmileyQLError",
    "UnboundVariableError",
    "NoFormatterError",
    "NoApplicableFormatterError",
    "FormatterNotFoundError",
    "FormatterNotApplicableError",
    "UnsupportedFeatureError",
    "UnsupportedNestingError",
    "UnknownVariableError",
    "StatementClosedError",
    "NativeStatementError",
    "ProfileConfigError",
]


def render(
    sql: str,
    values: Mapping[str, Any] | None = None,
    database_type: DatabaseType = DatabaseType.ANSI,
) -> str:
    """Expand ``sql`` with ``values`` into literal SQL.

    Example::

        smileyql.render(
            "SELECT * FROM t WHERE 1=1 (: AND a = :a :)",
            {"a": "x"},
            DatabaseType.POSTGRESQL,
        )
        # "SELECT * FROM t WHERE 1=1  AND a = 'x' "

    Args:
        sql: The template body.
        values: Variable values by name.  Missing or ``None`` means no value.
        database_type: Dialect whose lexical rules and formatters apply.

    Returns:
        The expanded SQL.

    Raises:
        UnboundVariableError: If a variable outside any region has no value.
        NoFormatterError: (or subclass) if a value cannot be formatted.
        UnsupportedNestingError: If regions are nested.
    """
    return SmileyTemplate(sql, database_type).apply(values)


def prepare(
    connection: Any,
    sql: str,
    database_type: DatabaseType | None = None,
) -> SmileyPreparedStatement:
    """Create a prepared statement for ``sql`` on ``connection``.

    Args:
        connection: A DB-API 2.0 connection, a SQLAlchemy ``Connection`` or a
            :class:`~smileyql.statement.native.NativeConnection`.
        sql: The template body.
        database_type: Dialect for scanning; inferred from the connection
            when omitted.
    """
    return SmileyPreparedStatement(connection, sql, database_type=database_type)
