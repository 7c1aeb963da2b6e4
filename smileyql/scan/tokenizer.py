"""Dialect-aware tokenizer for smileyQL templates.

The tokenizer splits a template body into TEXT, VAR, OPEN (``(:``) and CLOSE
(``:)``) tokens.  It runs in one of two modes:

Unbracketed
    The initial mode.  ``(:`` opens a region and switches to Bracketed mode;
    ``:)`` is ordinary text.
Bracketed
    Inside a region.  ``:)`` closes it and switches back; another ``(:`` is
    rejected with :class:`~smileyql.errors.UnsupportedNestingError`.

While scanning TEXT, comments, string literals and quoted identifiers are
skipped as opaque spans, so a colon inside ``'a:b'`` or ``-- :x`` never
starts a variable.  Which spans exist is decided by the
:class:`~smileyql.schema.dialect.DialectProfile`.  A span that is never
closed simply runs to the end of the input.

The tokenizer always holds one token of lookahead: :meth:`Tokenizer.peek`
reports its type and ``next(tokenizer)`` returns it.
"""
from __future__ import annotations

import re
import string

from smileyql.errors import UnsupportedNestingError
from smileyql.schema.dialect import ANSI, DialectProfile
from smileyql.schema.tokens import Token, TokenType

_IDENTIFIER_START = frozenset(string.ascii_letters + "_")
_IDENTIFIER_PART = frozenset(string.ascii_letters + string.digits + "_")

# Body of a PostgreSQL dollar-quote tag, including its closing "$".
_DOLLAR_TAG = re.compile(r"(?:[A-Za-z_][A-Za-z0-9_]*)?\$")

# Closing delimiters for Oracle q'X...X' literals; others close themselves.
_DELIMITER_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}


class Tokenizer:
    """Iterate over the tokens of a template body.

    Args:
        chars: The template body.
        profile: Lexical rules to apply (defaults to :data:`ANSI`).

    Raises:
        UnsupportedNestingError: When the lookahead reaches a ``(:`` inside a
            region.  Because scanning is one token ahead this can happen in
            the constructor, :meth:`__next__` or never, but always at the same
            point for the same input.
    """

    def __init__(self, chars: str, profile: DialectProfile = ANSI) -> None:
        self._chars = chars
        self._length = len(chars)
        self._profile = profile
        self._position = 0
        self._bracketed = False
        self._next_token = self._scan_next_token()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def __iter__(self) -> "Tokenizer":
        return self

    def __next__(self) -> Token:
        token = self._next_token
        if token.type is TokenType.EOF:
            raise StopIteration
        self._next_token = self._scan_next_token()
        return token

    def has_next(self) -> bool:
        """Return ``True`` while a token other than EOF remains."""
        return self._next_token.type is not TokenType.EOF

    def peek(self) -> TokenType:
        """Return the type of the token the next ``next()`` call will return."""
        return self._next_token.type

    @property
    def profile(self) -> DialectProfile:
        return self._profile

    # ------------------------------------------------------------------
    # Token scanners
    # ------------------------------------------------------------------

    def _scan_next_token(self) -> Token:
        start = self._position
        if self._at_eof():
            return Token(TokenType.EOF, self._chars, start, self._length)
        if self._bracketed:
            token_type = self._scan_bracketed()
        else:
            token_type = self._scan_unbracketed()
        return Token(token_type, self._chars, start, self._position)

    def _scan_unbracketed(self) -> TokenType:
        c = self._next_char()
        if c == "(" and self._is_next_char(":"):
            self._bracketed = True
            return TokenType.OPEN
        if c == ":" and self._is_next_char_identifier_start():
            self._scan_to_end_of_identifier()
            return TokenType.VAR
        return self._scan_text(c)

    def _scan_bracketed(self) -> TokenType:
        c = self._next_char()
        if c == ":":
            if self._is_next_char(")"):
                self._bracketed = False
                return TokenType.CLOSE
            if self._is_next_char_identifier_start():
                self._scan_to_end_of_identifier()
                return TokenType.VAR
        elif c == "(" and self._peek_char() == ":":
            raise UnsupportedNestingError(self._position - 1)
        return self._scan_text(c)

    def _scan_text(self, c: str) -> TokenType:
        """Consume TEXT whose first character ``c`` has already been read."""
        while True:
            self._skip_opaque_span(c)
            if self._at_eof():
                return TokenType.TEXT
            mark = self._position
            c = self._next_char()
            if self._starts_token(c):
                self._position = mark
                return TokenType.TEXT

    def _starts_token(self, c: str) -> bool:
        """Return ``True`` if ``c`` (just read) begins a non-TEXT token."""
        following = self._peek_char()
        if c == "(":
            return following == ":"
        if c == ":":
            if following in _IDENTIFIER_START:
                return True
            return self._bracketed and following == ")"
        return False

    # ------------------------------------------------------------------
    # Opaque spans
    # ------------------------------------------------------------------

    def _skip_opaque_span(self, c: str) -> None:
        profile = self._profile
        if c == "-" and self._is_next_char("-"):
            self._scan_to_end_of_line()
        elif c == "/" and self._is_next_char("*"):
            if profile.nested_block_comments:
                self._scan_to_end_of_nested_block_comment()
            else:
                self._scan_past("*/")
        elif c == '"':
            self._scan_doubled_quote('"')
        elif c == "'":
            self._scan_doubled_quote("'")
        elif profile.escape_strings and c in "eE" and self._is_next_char("'"):
            self._scan_escape_string()
        elif profile.dollar_quoted_strings and c == "$":
            self._scan_dollar_string()
        elif profile.delimited_strings and c in "qQ" and self._is_next_char("'"):
            self._scan_delimited_string()
        elif profile.bracket_identifiers and c == "[":
            self._scan_past("]")

    def _scan_to_end_of_line(self) -> None:
        self._scan_past("\n")

    def _scan_past(self, terminator: str) -> None:
        found = self._chars.find(terminator, self._position)
        self._position = self._length if found < 0 else found + len(terminator)

    def _scan_to_end_of_nested_block_comment(self) -> None:
        depth = 1
        while not self._at_eof():
            c = self._next_char()
            if c == "/" and self._is_next_char("*"):
                depth += 1
            elif c == "*" and self._is_next_char("/"):
                depth -= 1
                if depth == 0:
                    return

    def _scan_doubled_quote(self, quote: str) -> None:
        while not self._at_eof():
            if self._next_char() == quote and not self._is_next_char(quote):
                return

    def _scan_escape_string(self) -> None:
        while not self._at_eof():
            c = self._next_char()
            if c == "\\":
                self._position += 1
            elif c == "'":
                return

    def _scan_dollar_string(self) -> None:
        match = _DOLLAR_TAG.match(self._chars, self._position)
        if match is None:
            return  # a lone "$", e.g. a $1 parameter
        tag = "$" + match.group()
        self._position = match.end()
        self._scan_past(tag)

    def _scan_delimited_string(self) -> None:
        if self._at_eof():
            return
        opener = self._next_char()
        closer = _DELIMITER_PAIRS.get(opener, opener)
        while not self._at_eof():
            if self._next_char() == closer and self._is_next_char("'"):
                return

    def _scan_to_end_of_identifier(self) -> None:
        while not self._at_eof() and self._chars[self._position] in _IDENTIFIER_PART:
            self._position += 1

    # ------------------------------------------------------------------
    # Character primitives
    # ------------------------------------------------------------------

    def _next_char(self) -> str:
        c = self._chars[self._position]
        self._position += 1
        return c

    def _peek_char(self) -> str:
        return "" if self._at_eof() else self._chars[self._position]

    def _is_next_char(self, c: str) -> bool:
        if not self._at_eof() and self._chars[self._position] == c:
            self._position += 1
            return True
        return False

    def _is_next_char_identifier_start(self) -> bool:
        if not self._at_eof() and self._chars[self._position] in _IDENTIFIER_START:
            self._position += 1
            return True
        return False

    def _at_eof(self) -> bool:
        return self._position >= self._length
