"""Pydantic models for the lexical DialectProfile used by the tokenizer.

A DialectProfile says which comment and quoting conventions the tokenizer
must honour when it looks for variables, so that ``:name`` inside a string
literal, a quoted identifier or a comment is left alone.

Four canonical profiles are provided (:data:`ANSI`, :data:`POSTGRESQL`,
:data:`ORACLE` and :data:`SQL_SERVER`).  Custom profiles are composed through
the builder::

    from smileyql.schema.dialect import DialectProfile

    # ANSI rules plus SQL Server style [bracketed identifiers]
    profile = (
        DialectProfile.builder("sybase")
        .nested_block_comments()
        .bracket_identifiers()
        .build()
    )
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from smileyql.errors import ProfileConfigError


class DialectProfile(BaseModel):
    """Immutable set of lexical switches for one SQL dialect.

    Attributes:
        name: Human-readable profile name.
        nested_block_comments: ``/* /* */ */`` counts as one comment.
        dollar_quoted_strings: Recognise ``$tag$ ... $tag$`` string literals.
        escape_strings: Recognise ``E'...'`` literals with backslash escapes.
        delimited_strings: Recognise ``q'X ... X'`` literals.
        bracket_identifiers: Recognise ``[quoted identifiers]``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = "ANSI"
    nested_block_comments: bool = True
    dollar_quoted_strings: bool = False
    escape_strings: bool = False
    delimited_strings: bool = False
    bracket_identifiers: bool = False

    @classmethod
    def builder(cls, name: str) -> "DialectProfileBuilder":
        """Return a :class:`DialectProfileBuilder` starting with every switch off.

        Args:
            name: Name for the profile being built.

        Returns:
            A fresh :class:`DialectProfileBuilder`.
        """
        return DialectProfileBuilder(name=name)


class DialectProfileBuilder:
    """Fluent builder for :class:`DialectProfile`.

    Always obtained via :meth:`DialectProfile.builder`.  Each method turns on
    one lexical rule; they can be called in any order.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._nested_block_comments: bool = False
        self._dollar_quoted_strings: bool = False
        self._escape_strings: bool = False
        self._delimited_strings: bool = False
        self._bracket_identifiers: bool = False

    def nested_block_comments(self, enabled: bool = True) -> "DialectProfileBuilder":
        """Count nested ``/* */`` pairs when skipping block comments."""
        self._nested_block_comments = enabled
        return self

    def dollar_quoted_strings(self, enabled: bool = True) -> "DialectProfileBuilder":
        """Skip PostgreSQL ``$tag$ ... $tag$`` string literals."""
        self._dollar_quoted_strings = enabled
        return self

    def escape_strings(self, enabled: bool = True) -> "DialectProfileBuilder":
        """Skip PostgreSQL ``E'...'`` literals that use backslash escapes."""
        self._escape_strings = enabled
        return self

    def delimited_strings(self, enabled: bool = True) -> "DialectProfileBuilder":
        """Skip Oracle ``q'[...]'`` alternative-quoting literals."""
        self._delimited_strings = enabled
        return self

    def bracket_identifiers(self, enabled: bool = True) -> "DialectProfileBuilder":
        """Skip SQL Server ``[...]`` quoted identifiers."""
        self._bracket_identifiers = enabled
        return self

    def build(self) -> DialectProfile:
        """Validate the configuration and return the :class:`DialectProfile`.

        Raises:
            ProfileConfigError: If the profile has no name.
        """
        if not self._name or not self._name.strip():
            raise ProfileConfigError(
                "A dialect profile needs a name. Pass one to DialectProfile.builder(name).",
                missing=["name"],
            )
        return DialectProfile(
            name=self._name,
            nested_block_comments=self._nested_block_comments,
            dollar_quoted_strings=self._dollar_quoted_strings,
            escape_strings=self._escape_strings,
            delimited_strings=self._delimited_strings,
            bracket_identifiers=self._bracket_identifiers,
        )


#: Generic profile for portable SQL.
ANSI: DialectProfile = DialectProfile.builder("ANSI").nested_block_comments().build()

#: PostgreSQL: nested comments, dollar-quoted and escape strings.
POSTGRESQL: DialectProfile = (
    DialectProfile.builder("PostgreSQL")
    .nested_block_comments()
    .dollar_quoted_strings()
    .escape_strings()
    .build()
)

#: Oracle: delimited strings; block comments do not nest.
ORACLE: DialectProfile = DialectProfile.builder("Oracle").delimited_strings().build()

#: SQL Server: nested comments and bracket-quoted identifiers.
SQL_SERVER: DialectProfile = (
    DialectProfile.builder("SQL Server")
    .nested_block_comments()
    .bracket_identifiers()
    .build()
)
