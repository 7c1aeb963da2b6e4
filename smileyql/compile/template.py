"""SmileyTemplate: the public face of template expansion.

A template pairs a body such as::

    SELECT item_number, quantity FROM bin_tbl
    WHERE 1=1 (: AND aisle = :aisle :) (: AND bin_number = :bin :)

with a dialect.  :meth:`SmileyTemplate.apply` renders it to literal SQL::

    template = SmileyTemplate(sql, DatabaseType.POSTGRESQL)
    template.apply({"aisle": "A7"})
    # "... WHERE 1=1  AND aisle = 'A7' "

Templates are immutable and every call scans the body afresh, so one
template can be shared between threads.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from functools import cached_property
from typing import Any

from smileyql.compile.context import ExpansionContext
from smileyql.compile.expander import Expansion, TemplateExpander
from smileyql.compile.formatters import FormatterRegistry
from smileyql.compile.registry import DatabaseType, select_profile
from smileyql.schema.dialect import DialectProfile
from smileyql.schema.tokens import TokenType

logger = logging.getLogger(__name__)


class SmileyTemplate:
    """An SQL template with ``:variables`` and ``(: :)`` conditional regions.

    Args:
        sql: The template body.
        database_type: Dialect whose profile and formatters are used.
        profile: Overrides the dialect's lexical profile.
        registry: Overrides the dialect's formatter registry.
    """

    def __init__(
        self,
        sql: str,
        database_type: DatabaseType = DatabaseType.ANSI,
        *,
        profile: DialectProfile | None = None,
        registry: FormatterRegistry | None = None,
    ) -> None:
        self._sql = sql
        self._context = ExpansionContext(
            profile=profile if profile is not None else database_type.profile,
            registry=registry if registry is not None else database_type.registry,
        )

    @classmethod
    def for_connection(
        cls,
        source: Any,
        sql: str,
        registry: FormatterRegistry | None = None,
    ) -> "SmileyTemplate":
        """Create a template for the database behind ``source``.

        Args:
            source: A product name, SQLAlchemy ``Engine``/``Connection`` or
                DB-API connection.  Unknown databases get ANSI rules.
            sql: The template body.
            registry: Optional formatter registry overriding the dialect's.
        """
        profile, dialect_registry = select_profile(source)
        if registry is None:
            registry = dialect_registry
        return cls(sql, profile=profile, registry=registry)

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    def apply(self, values: Mapping[str, Any] | None = None) -> str:
        """Expand the template with ``values`` and return the SQL.

        Raises:
            UnboundVariableError: If a variable outside any region has no value.
            NoFormatterError: (or subclass) if a value cannot be formatted.
            UnsupportedNestingError: If the template nests regions.
        """
        return self.expand(values).sql

    def expand(self, values: Mapping[str, Any] | None = None) -> Expansion:
        """Expand the template, also reporting which variables were emitted."""
        values = values if values is not None else {}
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('Expanding "%s" with mappings: %s', self._sql, values)
        return TemplateExpander(self._context, self._sql, values).expand()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def iter_variable_instances(self) -> Iterator[str]:
        """Yield each variable occurrence in source order.

        Formatter names (the ``date`` in ``:x:date``) are not variables and
        are skipped.
        """
        suffix_allowed = False
        for token in self._context.tokenizer(self._sql):
            if token.type is TokenType.VAR:
                if suffix_allowed:
                    suffix_allowed = False
                    continue
                suffix_allowed = True
                yield token.text
            else:
                suffix_allowed = False

    @cached_property
    def var_names(self) -> tuple[str, ...]:
        """Sorted names of the variables in this template."""
        return tuple(sorted(set(self.iter_variable_instances())))

    @property
    def sql(self) -> str:
        """The template body."""
        return self._sql

    @property
    def profile(self) -> DialectProfile:
        return self._context.profile

    @property
    def registry(self) -> FormatterRegistry:
        return self._context.registry

    def with_registry(self, registry: FormatterRegistry) -> "SmileyTemplate":
        """Return a template with the same body and profile but other formatters."""
        return SmileyTemplate(self._sql, profile=self.profile, registry=registry)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SmileyTemplate):
            return NotImplemented
        return self._sql == other._sql and self._context == other._context

    def __hash__(self) -> int:
        return hash((self._sql, self._context.profile, id(self._context.registry)))

    def __repr__(self) -> str:
        return f"SmileyTemplate(sql={self._sql!r}, profile={self.profile.name!r}, registry={self.registry.name!r})"
