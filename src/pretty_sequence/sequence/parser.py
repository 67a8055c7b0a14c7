from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .ast import (
    Activation,
    AstError,
    CloseFragment,
    DeclareParticipant,
    EnsureParticipant,
    NextOperand,
    OpenFragment,
    SetTitle,
    Signal,
    Statement,
)
from .lexer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

# ============================================================================
# Sequence notation parser
#
# Turns the token list into one statement per line.
#
# Supported syntax:
#   title Text
#   participant A
#   participant A as Alice
#   A                           (ensure A exists)
#   A -> B: Solid arrow
#   A --> B: Dashed arrow
#   A - B: Solid line, no arrow head
#   A -- B: Dashed line, no arrow head
#   activate A / deactivate A
#   loop|alt|opt|par|critical|break Label ... else|and Label ... end
#
# Participant names are NOT resolved here; the model builder does that, so
# forward references work. On the first problem in a line one AstError is
# recorded and parsing resumes at the next NEWLINE.
# ============================================================================

_FRAGMENT_KEYWORDS = frozenset({
    TokenKind.LOOP,
    TokenKind.ALT,
    TokenKind.OPT,
    TokenKind.PAR,
    TokenKind.CRITICAL,
    TokenKind.BREAK,
})

_LINE_END = (TokenKind.NEWLINE, TokenKind.EOF)


@dataclass(slots=True)
class ParseResult:
    statements: list[Statement] = field(default_factory=list)
    errors: list[AstError] = field(default_factory=list)


class _LineError(Exception):
    """Aborts the current line; converted to an AstError by the line loop."""

    def __init__(self, token: Token, message: str) -> None:
        super().__init__(message)
        self.token = token
        self.message = message


def parse(tokens: list[Token]) -> ParseResult:
    """Parse a token list (as produced by tokenize) into statements and errors."""
    if tokens is None:
        raise TypeError("tokens must be a list, not None")
    return _Parser(tokens).parse()


def parse_text(text: str) -> ParseResult:
    """Tokenize and parse notation text."""
    return parse(tokenize(text))


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            raise ValueError("token list must end with an EOF token")
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> ParseResult:
        result = ParseResult()
        while self._current().kind is not TokenKind.EOF:
            if self._current().kind is TokenKind.NEWLINE:
                self._advance()
                continue
            try:
                result.statements.append(self._parse_line())
            except _LineError as e:
                error = AstError(e.token, e.message)
                logger.debug("Skipping malformed line: %s", error)
                result.errors.append(error)
                self._skip_to_line_end()
        return result

    # ------------------------------------------------------------------
    # Token access
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind is not TokenKind.EOF:
            self._pos += 1
        return token

    def _accept(self, kind: TokenKind) -> Token | None:
        if self._current().kind is kind:
            return self._advance()
        return None

    def _skip_to_line_end(self) -> None:
        while self._current().kind not in _LINE_END:
            self._advance()

    # ------------------------------------------------------------------
    # Statement rules
    # ------------------------------------------------------------------

    def _parse_line(self) -> Statement:
        token = self._current()
        kind = token.kind

        if kind is TokenKind.TITLE:
            return self._parse_title()
        if kind is TokenKind.PARTICIPANT:
            return self._parse_participant()
        if kind is TokenKind.IDENTIFIER:
            return self._parse_name_line()
        if kind in (TokenKind.ACTIVATE, TokenKind.DEACTIVATE):
            keyword = self._advance()
            name = self._expect_name()
            self._expect_line_end()
            return Activation(keyword=keyword, name=name)
        if kind in _FRAGMENT_KEYWORDS:
            keyword = self._advance()
            label = self._accept(TokenKind.TEXT)
            self._expect_line_end()
            return OpenFragment(keyword=keyword, label=label)
        if kind in (TokenKind.ELSE, TokenKind.AND):
            keyword = self._advance()
            label = self._accept(TokenKind.TEXT)
            self._expect_line_end()
            return NextOperand(keyword=keyword, label=label)
        if kind is TokenKind.END:
            keyword = self._advance()
            self._expect_line_end()
            return CloseFragment(keyword=keyword)

        raise self._unexpected(token)

    def _parse_title(self) -> SetTitle:
        keyword = self._advance()
        text = self._accept(TokenKind.TEXT)
        if text is None:
            raise _LineError(keyword, "title requires text")
        self._expect_line_end()
        return SetTitle(keyword=keyword, title=text.value)

    def _parse_participant(self) -> DeclareParticipant:
        self._advance()
        name = self._expect_name()
        label = None
        as_keyword = self._accept(TokenKind.AS)
        if as_keyword is not None:
            label = self._accept(TokenKind.TEXT)
            if label is None:
                raise _LineError(as_keyword, "expected label after 'as'")
        self._expect_line_end()
        return DeclareParticipant(name=name, label=label)

    def _parse_name_line(self) -> EnsureParticipant | Signal:
        source = self._expect_name()
        if self._current().kind in _LINE_END:
            return EnsureParticipant(name=source)

        arrow = self._accept(TokenKind.ARROW)
        if arrow is None:
            raise _LineError(
                self._current(),
                f"expected arrow or end of line, found {self._current().describe()}",
            )
        target = self._expect_name()
        label = None
        if self._accept(TokenKind.COLON) is not None:
            label = self._accept(TokenKind.TEXT)
        elif self._current().kind not in _LINE_END:
            raise _LineError(
                self._current(),
                f"expected ':' or end of line, found {self._current().describe()}",
            )
        self._expect_line_end()
        return Signal(source=source, arrow=arrow, target=target, label=label)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _expect_name(self) -> Token:
        token = self._current()
        if token.kind is TokenKind.IDENTIFIER and token.value:
            return self._advance()
        if token.kind is TokenKind.INVALID:
            raise self._unexpected(token)
        raise _LineError(token, f"expected participant name, found {token.describe()}")

    def _expect_line_end(self) -> None:
        token = self._current()
        if token.kind not in _LINE_END:
            raise _LineError(token, f"unexpected {token.describe()}, expected end of line")

    def _unexpected(self, token: Token) -> _LineError:
        if token.kind is TokenKind.INVALID:
            if token.value.startswith('"'):
                return _LineError(token, "unterminated quoted name")
            return _LineError(token, f"unexpected character {token.value[0]!r}")
        return _LineError(token, f"unexpected {token.describe()}")
