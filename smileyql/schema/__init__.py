"""smileyQL schema layer: tokens, value kinds and dialect profiles."""
from smileyql.schema.dialect import (
    ANSI,
    ORACLE,
    POSTGRESQL,
    SQL_SERVER,
    DialectProfile,
    DialectProfileBuilder,
)
from smileyql.schema.tokens import Token, TokenType
from smileyql.schema.values import ValueKind, classify

__all__ = [
    "ANSI",
    "ORACLE",
    "POSTGRESQL",
    "SQL_SERVER",
    "DialectProfile",
    "DialectProfileBuilder",
    "Token",
    "TokenType",
    "ValueKind",
    "classify",
]
