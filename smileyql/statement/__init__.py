"""smileyQL statement layer: prepared statements keyed by binding signature."""
from smileyql.statement.map_setter import MapSetter, MapSetterBuilder
from smileyql.statement.native import (
    DBAPIConnectionAdapter,
    DBAPIStatement,
    NativeConnection,
    NativeStatement,
    adapt_connection,
)
from smileyql.statement.prepared import BoundStatement, SmileyPreparedStatement
from smileyql.statement.settings import FetchDirection, StatementSettings
from smileyql.statement.setters import VACUOUS, ParameterSetter, SqlType

__all__ = [
    "VACUOUS",
    "BoundStatement",
    "DBAPIConnectionAdapter",
    "DBAPIStatement",
    "FetchDirection",
    "MapSetter",
    "MapSetterBuilder",
    "NativeConnection",
    "NativeStatement",
    "ParameterSetter",
    "SmileyPreparedStatement",
    "SqlType",
    "StatementSettings",
    "adapt_connection",
]
