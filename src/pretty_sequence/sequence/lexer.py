from __future__ import annotations

import enum
import unicodedata
from dataclasses import dataclass

# ============================================================================
# Sequence notation lexer
#
# Converts raw notation text into a flat token list for the parser.
# The notation is line oriented, so NEWLINE is a real token: it is the
# statement boundary the parser recovers at.
#
#   title Login flow
#   participant A as Alice      # comments run to end of line
#   A -> B: Request
#   B --> A: Response
#
# Free text (after ":" and after rest-of-line keywords such as "title")
# is returned as a single TEXT token. Characters that cannot start any
# token become INVALID tokens instead of aborting the scan.
# ============================================================================


class TokenKind(enum.Enum):
    # Keywords (only recognised as the first word of a line)
    TITLE = "title"
    PARTICIPANT = "participant"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    LOOP = "loop"
    ALT = "alt"
    OPT = "opt"
    PAR = "par"
    CRITICAL = "critical"
    BREAK = "break"
    ELSE = "else"
    AND = "and"
    END = "end"
    # Only recognised directly after "participant <name>"
    AS = "as"

    IDENTIFIER = "IDENTIFIER"
    ARROW = "ARROW"
    COLON = ":"
    TEXT = "TEXT"
    NEWLINE = "NEWLINE"
    INVALID = "INVALID"
    EOF = "EOF"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token with its source location.

    ``line`` and ``column`` are 1-based, ``offset`` is the 0-based index
    into the source text. ``length`` is the number of source characters
    the token covers (quotes included), used for error underlines.
    """

    kind: TokenKind
    value: str
    line: int
    column: int
    offset: int = 0
    length: int = 0

    @property
    def end_column(self) -> int:
        return self.column + max(self.length, 1)

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.NEWLINE:
            return "end of line"
        return repr(self.value)


KEYWORDS: dict[str, TokenKind] = {
    "title": TokenKind.TITLE,
    "participant": TokenKind.PARTICIPANT,
    "activate": TokenKind.ACTIVATE,
    "deactivate": TokenKind.DEACTIVATE,
    "loop": TokenKind.LOOP,
    "alt": TokenKind.ALT,
    "opt": TokenKind.OPT,
    "par": TokenKind.PAR,
    "critical": TokenKind.CRITICAL,
    "break": TokenKind.BREAK,
    "else": TokenKind.ELSE,
    "and": TokenKind.AND,
    "end": TokenKind.END,
}

# Keywords whose remainder of line is free text
REST_OF_LINE_KEYWORDS = frozenset({
    TokenKind.TITLE,
    TokenKind.AS,
    TokenKind.LOOP,
    TokenKind.ALT,
    TokenKind.OPT,
    TokenKind.PAR,
    TokenKind.CRITICAL,
    TokenKind.BREAK,
    TokenKind.ELSE,
    TokenKind.AND,
})

# Longest first so "-->" wins over "--" and "->"
ARROWS = ("-->", "->", "--", "-")

_NAME_PUNCTUATION = "_."


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch in _NAME_PUNCTUATION


def _is_name_continue(ch: str) -> bool:
    # Combining marks (decomposed accents) may follow a name character
    return _is_name_char(ch) or unicodedata.category(ch).startswith("M")


def tokenize(source: str) -> list[Token]:
    """Tokenize notation text.

    Returns a list of tokens whose final element is always a single EOF
    token. Never raises for malformed text: unknown characters and
    unterminated quoted names come back as INVALID tokens.
    """
    if source is None:
        raise TypeError("source must be a string, not None")
    return _Lexer(source).tokenize()


class _Lexer:
    """Internal scanner state machine. One instance per tokenize() call."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1
        self._column = 1
        self._tokens: list[Token] = []
        # Tokens emitted on the current line, for keyword recognition
        self._line_tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        while self._pos < len(self._source):
            ch = self._current()
            if self._at_line_break():
                self._emit(TokenKind.NEWLINE, "\n", self._line, self._column, self._pos, 1)
                self._advance()
            elif ch.isspace() or ch == "\ufeff":
                self._advance()
            elif ch == "#" or (ch == "/" and self._peek() == "/"):
                self._skip_comment()
            else:
                self._scan_token()
        self._tokens.append(
            Token(TokenKind.EOF, "", self._line, self._column, self._pos, 0)
        )
        return self._tokens

    # ------------------------------------------------------------------
    # Character access
    # ------------------------------------------------------------------

    def _current(self) -> str:
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _at_line_break(self) -> bool:
        # "\n", or a lone "\r" (classic Mac line endings); "\r\n" breaks at its "\n"
        ch = self._current()
        return ch == "\n" or (ch == "\r" and self._peek() != "\n")

    def _advance(self) -> str:
        at_break = self._at_line_break()
        ch = self._source[self._pos]
        self._pos += 1
        if at_break:
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _emit(
        self, kind: TokenKind, value: str, line: int, column: int, offset: int, length: int
    ) -> Token:
        token = Token(kind, value, line, column, offset, length)
        self._tokens.append(token)
        if kind is TokenKind.NEWLINE:
            self._line_tokens = []
        else:
            self._line_tokens.append(token)
        return token

    def _skip_comment(self) -> None:
        while self._pos < len(self._source) and not self._at_line_break():
            self._advance()

    # ------------------------------------------------------------------
    # Token scanners
    # ------------------------------------------------------------------

    def _scan_token(self) -> None:
        ch = self._current()
        line, col, start = self._line, self._column, self._pos

        if ch == ":":
            self._advance()
            self._emit(TokenKind.COLON, ":", line, col, start, 1)
            self._scan_rest_of_line()
        elif ch == "-":
            for arrow in ARROWS:
                if self._source.startswith(arrow, self._pos):
                    for _ in arrow:
                        self._advance()
                    self._emit(TokenKind.ARROW, arrow, line, col, start, len(arrow))
                    return
        elif ch == '"':
            self._scan_quoted_name(line, col, start)
        elif _is_name_char(ch):
            self._scan_word(line, col, start)
        else:
            self._scan_invalid(line, col, start)

    def _scan_word(self, line: int, col: int, start: int) -> None:
        while self._pos < len(self._source) and _is_name_continue(self._current()):
            self._advance()
        value = self._source[start:self._pos]
        kind = self._classify_word(value)
        self._emit(kind, value, line, col, start, self._pos - start)
        if kind in REST_OF_LINE_KEYWORDS:
            self._scan_rest_of_line()

    def _classify_word(self, value: str) -> TokenKind:
        if not self._line_tokens:
            return KEYWORDS.get(value, TokenKind.IDENTIFIER)
        # "participant <name> as <label>"
        if (
            value == "as"
            and len(self._line_tokens) == 2
            and self._line_tokens[0].kind is TokenKind.PARTICIPANT
            and self._line_tokens[1].kind is TokenKind.IDENTIFIER
        ):
            return TokenKind.AS
        return TokenKind.IDENTIFIER

    def _scan_quoted_name(self, line: int, col: int, start: int) -> None:
        self._advance()  # opening quote
        chars: list[str] = []
        while self._pos < len(self._source) and not self._at_line_break():
            ch = self._advance()
            if ch == '"':
                self._emit(
                    TokenKind.IDENTIFIER, "".join(chars), line, col, start, self._pos - start
                )
                return
            chars.append(ch)
        # Unterminated: the rest of the line becomes one INVALID token
        self._emit(
            TokenKind.INVALID, self._source[start:self._pos], line, col, start, self._pos - start
        )

    def _scan_rest_of_line(self) -> None:
        while self._current() in (" ", "\t"):
            self._advance()
        line, col, start = self._line, self._column, self._pos
        while self._pos < len(self._source) and not self._at_line_break():
            self._advance()
        raw = self._source[start:self._pos]
        text = raw.rstrip()
        if text:
            self._emit(TokenKind.TEXT, text, line, col, start, len(text))

    def _scan_invalid(self, line: int, col: int, start: int) -> None:
        while self._pos < len(self._source):
            ch = self._current()
            if ch.isspace() or _is_name_char(ch) or ch in ':-"#':
                break
            if ch == "/" and self._peek() == "/" and self._pos > start:
                break
            self._advance()
        value = self._source[start:self._pos]
        self._emit(TokenKind.INVALID, value, line, col, start, len(value))
