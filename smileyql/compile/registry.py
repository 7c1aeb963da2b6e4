"""Dialect registries (Open/Closed Principle).

``DatabaseType``
    The four supported dialects, each pairing a lexical
    :class:`~smileyql.schema.dialect.DialectProfile` with the
    :class:`~smileyql.compile.formatters.FormatterRegistry` used to render
    values for it.

``DatabaseTypeRegistry``
    Maps database product names (as reported by a driver or SQLAlchemy) to a
    ``DatabaseType``.  Register a product once; :func:`select_profile` picks it
    up automatically.

The formatter registries are built lazily, once per process, behind a lock
so concurrent first use neither builds them twice nor sees a half-built one.

Usage::

    from smileyql.compile.registry import DatabaseType, DatabaseTypeRegistry

    DatabaseTypeRegistry.register("CockroachDB", DatabaseType.POSTGRESQL)
    profile, formatters = select_profile(engine)
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, ClassVar

from smileyql.compile.formatters import (
    FormatterRegistry,
    build_ansi_registry,
    build_postgresql_registry,
)
from smileyql.schema import dialect as profiles
from smileyql.schema.dialect import DialectProfile

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Canonical formatter registries
# ---------------------------------------------------------------------------

_registry_lock = threading.Lock()
#: ``(ansi, postgresql)``, published together once built.
_registries: tuple[FormatterRegistry, FormatterRegistry] | None = None


def _ensure_registries() -> tuple[FormatterRegistry, FormatterRegistry]:
    global _registries
    registries = _registries
    if registries is not None:
        return registries
    with _registry_lock:
        registries = _registries
        if registries is None:
            ansi = build_ansi_registry()
            registries = (ansi, build_postgresql_registry(ansi))
            _registries = registries
        return registries


def ansi_registry() -> FormatterRegistry:
    """Return the shared registry for ANSI, Oracle and SQL Server."""
    return _ensure_registries()[0]


def postgresql_registry() -> FormatterRegistry:
    """Return the shared PostgreSQL registry (adds ``boolean``)."""
    return _ensure_registries()[1]


# ---------------------------------------------------------------------------
# Database types
# ---------------------------------------------------------------------------


class DatabaseType(Enum):
    """Dialects a template can be specialised for."""

    ANSI = "ansi"
    POSTGRESQL = "postgresql"
    ORACLE = "oracle"
    SQL_SERVER = "sql_server"

    @property
    def profile(self) -> DialectProfile:
        """The lexical profile for this dialect."""
        return _PROFILES[self]

    @property
    def registry(self) -> FormatterRegistry:
        """The formatter registry for this dialect."""
        if self is DatabaseType.POSTGRESQL:
            return postgresql_registry()
        return ansi_registry()


_PROFILES: dict[DatabaseType, DialectProfile] = {
    DatabaseType.ANSI: profiles.ANSI,
    DatabaseType.POSTGRESQL: profiles.POSTGRESQL,
    DatabaseType.ORACLE: profiles.ORACLE,
    DatabaseType.SQL_SERVER: profiles.SQL_SERVER,
}


class DatabaseTypeRegistry:
    """Registry mapping database product names to :class:`DatabaseType`.

    Names are matched case-insensitively.  Product names reported by JDBC-style
    metadata (``"PostgreSQL"``, ``"Oracle"``), SQLAlchemy dialect names
    (``"postgresql"``, ``"mssql"``) and DB-API driver modules (``"psycopg2"``,
    ``"oracledb"``) are registered out of the box.

    Example::

        DatabaseTypeRegistry.register("YugabyteDB", DatabaseType.POSTGRESQL)
        DatabaseTypeRegistry.infer("yugabytedb")  # DatabaseType.POSTGRESQL
    """

    _products: ClassVar[dict[str, DatabaseType]] = {}
    _prefixes: ClassVar[dict[str, DatabaseType]] = {}

    @classmethod
    def register(cls, product_name: str, database_type: DatabaseType) -> None:
        """Register ``product_name`` (exact, case-insensitive match)."""
        cls._products[product_name.upper()] = database_type

    @classmethod
    def register_prefix(cls, prefix: str, database_type: DatabaseType) -> None:
        """Register every product name that starts with ``prefix``."""
        cls._prefixes[prefix.upper()] = database_type

    @classmethod
    def lookup(cls, product_name: str) -> DatabaseType | None:
        """Return the registered type for ``product_name`` or ``None``."""
        key = product_name.strip().upper()
        found = cls._products.get(key)
        if found is not None:
            return found
        for prefix, database_type in cls._prefixes.items():
            if key.startswith(prefix):
                return database_type
        return None

    @classmethod
    def infer(cls, product_name: str) -> DatabaseType:
        """Return the type for ``product_name``, defaulting to ANSI.

        An unknown product is logged and mapped to :attr:`DatabaseType.ANSI`.
        """
        found = cls.lookup(product_name)
        if found is not None:
            return found
        logger.warning(
            "Defaulting unknown database product %s to use ANSI templates.", product_name
        )
        return DatabaseType.ANSI

    @classmethod
    def registered_products(cls) -> list[str]:
        """Return the sorted list of registered product names."""
        return sorted(cls._products)


for _name in (
    "CUBRID", "DB2", "APACHE DERBY", "FIREBIRD", "H2", "HDB",
    "HSQL DATABASE ENGINE", "INFORMIX DYNAMIC SERVER", "INGRES", "MYSQL",
    "SYBASE SQL SERVER", "ADAPTIVE SERVER ENTERPRISE",
    "ADAPTIVE SERVER ANYWHERE", "SQL ANYWHERE",
    "SQLITE", "SQLITE3", "MARIADB", "PYMYSQL", "MYSQLDB", "DUCKDB",
):
    DatabaseTypeRegistry.register(_name, DatabaseType.ANSI)
for _name in ("POSTGRESQL", "POSTGRES", "ENTERPRISEDB", "PSYCOPG", "PSYCOPG2", "PG8000", "ASYNCPG"):
    DatabaseTypeRegistry.register(_name, DatabaseType.POSTGRESQL)
for _name in ("ORACLE", "ORACLEDB", "CX_ORACLE"):
    DatabaseTypeRegistry.register(_name, DatabaseType.ORACLE)
for _name in ("MSSQL", "PYODBC", "PYMSSQL"):
    DatabaseTypeRegistry.register(_name, DatabaseType.SQL_SERVER)
DatabaseTypeRegistry.register_prefix("MICROSOFT SQL SERVER", DatabaseType.SQL_SERVER)


# ---------------------------------------------------------------------------
# Profile selection
# ---------------------------------------------------------------------------


def _product_name(source: Any) -> str:
    """Work out a product name from a string, SQLAlchemy object or DB-API connection."""
    if isinstance(source, str):
        return source
    sa_dialect = getattr(source, "dialect", None)
    if sa_dialect is not None and isinstance(getattr(sa_dialect, "name", None), str):
        return sa_dialect.name
    return type(source).__module__.split(".")[0]


def infer_database_type(source: Any) -> DatabaseType:
    """Infer the :class:`DatabaseType` for ``source``.

    Args:
        source: A product name, a SQLAlchemy ``Engine``/``Connection``, or a
            DB-API 2.0 connection.

    Returns:
        The inferred type.  Any failure is logged and ANSI is returned.
    """
    try:
        return DatabaseTypeRegistry.infer(_product_name(source))
    except Exception:
        logger.warning("Attempt to get type of database failed", exc_info=True)
        return DatabaseType.ANSI


def select_profile(source: Any) -> tuple[DialectProfile, FormatterRegistry]:
    """Return the ``(profile, formatter registry)`` pair for ``source``.

    Never raises: unknown products fall back to the ANSI pair.
    """
    database_type = infer_database_type(source)
    return database_type.profile, database_type.registry
