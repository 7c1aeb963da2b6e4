"""Token types produced by the smileyQL tokenizer."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property


class TokenType(str, Enum):
    """Kinds of tokens found in a template body."""

    TEXT = "TEXT"
    """SQL text that is copied during expansion."""
    VAR = "VAR"
    """A ``:name`` variable (or the formatter name following one)."""
    OPEN = "OPEN"
    """The ``(:`` that opens a conditional region."""
    CLOSE = "CLOSE"
    """The ``:)`` that closes a conditional region."""
    EOF = "EOF"
    """End of the template body."""


@dataclass(frozen=True)
class Token:
    """A span of a template body.

    The token keeps a reference to the whole source and its offsets;
    :attr:`text` is only sliced out when first asked for.

    Attributes:
        type: The kind of token.
        source: The complete template body.
        start: Offset of the first character (inclusive).
        end: Offset after the last character (exclusive).
    """

    type: TokenType
    source: str
    start: int
    end: int

    @cached_property
    def text(self) -> str:
        """The token's characters; a VAR token's text omits the leading colon."""
        start = self.start + 1 if self.type is TokenType.VAR else self.start
        end = min(self.end, len(self.source))
        return self.source[start:end] if start < end else ""

    def __repr__(self) -> str:
        return f"Token[{self.type.value}, {self.text!r}]"
