"""Expansion context value object.

Packages the ``(profile, registry)`` pair that every expansion of a template
needs into a single immutable object.
"""
from __future__ import annotations

from dataclasses import dataclass

from smileyql.compile.formatters import FormatterRegistry
from smileyql.scan.tokenizer import Tokenizer
from smileyql.schema.dialect import DialectProfile


@dataclass(frozen=True)
class ExpansionContext:
    """Immutable context shared by all expansions of one template.

    Attributes:
        profile: Lexical rules for the tokenizer.
        registry: Formatters used to render variable values.
    """

    profile: DialectProfile
    registry: FormatterRegistry

    def tokenizer(self, sql: str) -> Tokenizer:
        """Return a fresh tokenizer over ``sql``."""
        return Tokenizer(sql, self.profile)
