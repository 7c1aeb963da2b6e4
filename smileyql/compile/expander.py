"""Core template expansion algorithm.

``TemplateExpander`` walks the tokens of a template and builds the output
with a stack of segments, one per open ``(: :)`` region.  A slot on the stack
is either an active :class:`_Segment` or ``None``, meaning the region has
been *suppressed* because one of its variables has no value.

* TEXT is appended to the current segment unless it is suppressed.
* OPEN pushes the current slot and starts a new segment.
* CLOSE pops the enclosing slot and appends the closing segment to it, or
  drops the closing segment if it was suppressed.
* VAR appends the formatted value.  A variable without a value suppresses
  its region and skips the rest of it; outside any region it is an error.
* At EOF any regions left open are folded outward the same way as CLOSE.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from smileyql.compile.context import ExpansionContext
from smileyql.errors import UnboundVariableError
from smileyql.scan.tokenizer import Tokenizer
from smileyql.schema.tokens import Token, TokenType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Expansion:
    """The result of expanding a template.

    Attributes:
        sql: The expanded SQL text.
        placeholders: Names of the variables whose values appear in ``sql``,
            in output order.  A name appears once per occurrence.
    """

    sql: str
    placeholders: tuple[str, ...] = ()


@dataclass
class _Segment:
    """Output accumulated for one nesting level."""

    parts: list[str] = field(default_factory=list)
    placeholders: list[str] = field(default_factory=list)

    def absorb(self, child: "_Segment") -> None:
        self.parts.extend(child.parts)
        self.placeholders.extend(child.placeholders)


def _merge(enclosing: _Segment | None, child: _Segment | None) -> _Segment | None:
    if enclosing is not None and child is not None:
        enclosing.absorb(child)
    return enclosing


class TemplateExpander:
    """Expands one template body against one set of values.

    Args:
        context: Profile and formatter registry to use.
        sql: The template body.
        values: Variable values keyed by name.  A missing key or a ``None``
            value both mean "no value".
    """

    def __init__(self, context: ExpansionContext, sql: str, values: Mapping[str, Any]) -> None:
        self._context = context
        self._sql = sql
        self._values = values

    def expand(self) -> Expansion:
        """Run the expansion.

        Raises:
            UnboundVariableError: If a variable outside any region has no value.
            NoFormatterError: (or subclass) if a value cannot be formatted.
            UnsupportedNestingError: If the template nests regions.
        """
        tokenizer = self._context.tokenizer(self._sql)
        segment: _Segment | None = _Segment()
        stack: list[_Segment | None] = []
        for token in tokenizer:
            if token.type is TokenType.TEXT:
                if segment is not None:
                    segment.parts.append(token.text)
            elif token.type is TokenType.VAR:
                if segment is not None:
                    segment = self._expand_variable(tokenizer, segment, token, depth=len(stack))
            elif token.type is TokenType.OPEN:
                stack.append(segment)
                segment = _Segment()
            elif token.type is TokenType.CLOSE:
                # CLOSE is only produced inside a region, so the stack is never empty.
                segment = _merge(stack.pop(), segment)
        while stack:
            segment = _merge(stack.pop(), segment)
        if segment is None:
            return Expansion("")
        return Expansion("".join(segment.parts), tuple(segment.placeholders))

    def _expand_variable(
        self,
        tokenizer: Tokenizer,
        segment: _Segment,
        token: Token,
        depth: int,
    ) -> _Segment | None:
        name = token.text
        formatted = self._formatted_value(tokenizer, name)
        if formatted is None:
            if depth == 0:
                raise UnboundVariableError(name)
            self._skip_to_region_close(tokenizer)
            return None
        segment.parts.append(formatted)
        segment.placeholders.append(name)
        return segment

    def _formatted_value(self, tokenizer: Tokenizer, name: str) -> str | None:
        logger.debug("Formatting variable %s", name)
        registry = self._context.registry
        if tokenizer.peek() is TokenType.VAR:
            formatter_name = next(tokenizer).text
            logger.debug("Found type %s", formatter_name)
            return registry.format_named(self._values.get(name), formatter_name)
        if name in self._values:
            return registry.format(self._values[name])
        logger.debug("No value provided for %s", name)
        return None

    @staticmethod
    def _skip_to_region_close(tokenizer: Tokenizer) -> None:
        while tokenizer.peek() not in (TokenType.CLOSE, TokenType.EOF):
            next(tokenizer)
