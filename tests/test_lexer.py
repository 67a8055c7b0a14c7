"""Tests for the sequence notation lexer.

Covers: token kinds and positions, arrows, keywords at line start only,
free text after ':' and rest-of-line keywords, comments, quoted names,
invalid characters.
"""
from __future__ import annotations

import pytest

from pretty_sequence.sequence.lexer import TokenKind, tokenize


def kinds(text: str) -> list[TokenKind]:
    return [t.kind for t in tokenize(text)]


def values(text: str) -> list[str]:
    return [t.value for t in tokenize(text) if t.kind is not TokenKind.EOF]


# ============================================================================
# Basics
# ============================================================================


class TestBasics:
    def test_empty_input_is_just_eof(self):
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].kind is TokenKind.EOF

    def test_always_ends_with_a_single_eof(self):
        tokens = tokenize("A -> B: Hi\n??\n")
        assert tokens[-1].kind is TokenKind.EOF
        assert sum(1 for t in tokens if t.kind is TokenKind.EOF) == 1

    def test_signal_line(self):
        assert kinds("Alice -> Bob: Hi") == [
            TokenKind.IDENTIFIER,
            TokenKind.ARROW,
            TokenKind.IDENTIFIER,
            TokenKind.COLON,
            TokenKind.TEXT,
            TokenKind.EOF,
        ]
        assert values("Alice -> Bob: Hi") == ["Alice", "->", "Bob", ":", "Hi"]

    def test_tracks_columns(self):
        tokens = tokenize("Alice -> Bob: Hi")
        assert [t.column for t in tokens[:5]] == [1, 7, 10, 13, 15]

    def test_tracks_lines_and_offsets(self):
        tokens = tokenize("A\nB")
        b = tokens[2]
        assert b.value == "B"
        assert b.line == 2
        assert b.column == 1
        assert b.offset == 2

    def test_newlines_are_tokens(self):
        assert kinds("A\nB") == [
            TokenKind.IDENTIFIER,
            TokenKind.NEWLINE,
            TokenKind.IDENTIFIER,
            TokenKind.EOF,
        ]

    def test_none_is_a_contract_violation(self):
        with pytest.raises(TypeError):
            tokenize(None)  # type: ignore[arg-type]

    def test_restartable_from_source(self):
        assert tokenize("A -> B: x") == tokenize("A -> B: x")


# ============================================================================
# Arrows
# ============================================================================


class TestArrows:
    @pytest.mark.parametrize("arrow", ["->", "-->", "-", "--"])
    def test_arrow_variants(self, arrow):
        tokens = tokenize(f"A {arrow} B")
        assert tokens[1].kind is TokenKind.ARROW
        assert tokens[1].value == arrow

    def test_arrow_without_spaces(self):
        assert values("A->B") == ["A", "->", "B"]
        assert values("A-->B") == ["A", "-->", "B"]


# ============================================================================
# Keywords and free text
# ============================================================================


class TestKeywords:
    def test_title_takes_rest_of_line(self):
        tokens = tokenize("title Login flow")
        assert tokens[0].kind is TokenKind.TITLE
        assert tokens[1].kind is TokenKind.TEXT
        assert tokens[1].value == "Login flow"

    def test_keywords_only_at_line_start(self):
        tokens = tokenize("A -> title: x")
        assert tokens[2].kind is TokenKind.IDENTIFIER
        assert tokens[2].value == "title"

    def test_participant_alias(self):
        assert kinds("participant A as Alice Smith") == [
            TokenKind.PARTICIPANT,
            TokenKind.IDENTIFIER,
            TokenKind.AS,
            TokenKind.TEXT,
            TokenKind.EOF,
        ]
        assert tokenize("participant A as Alice Smith")[3].value == "Alice Smith"

    def test_as_is_a_name_elsewhere(self):
        tokens = tokenize("participant as")
        assert tokens[1].kind is TokenKind.IDENTIFIER
        assert tokens[1].value == "as"

    def test_fragment_keywords_take_label(self):
        tokens = tokenize("loop Every 5s\nelse other\nend")
        assert tokens[0].kind is TokenKind.LOOP
        assert tokens[1].value == "Every 5s"
        assert tokens[3].kind is TokenKind.ELSE
        assert tokens[4].value == "other"
        assert tokens[6].kind is TokenKind.END

    def test_fragment_keyword_without_label(self):
        assert kinds("opt") == [TokenKind.OPT, TokenKind.EOF]

    def test_text_after_colon_is_stripped(self):
        tokens = tokenize("A -> B:   spaced out   ")
        assert tokens[4].value == "spaced out"

    def test_empty_text_after_colon_is_omitted(self):
        assert kinds("A -> B:") == [
            TokenKind.IDENTIFIER,
            TokenKind.ARROW,
            TokenKind.IDENTIFIER,
            TokenKind.COLON,
            TokenKind.EOF,
        ]

    def test_hash_inside_free_text_is_literal(self):
        tokens = tokenize("A -> B: see #12")
        assert tokens[4].value == "see #12"


# ============================================================================
# Comments, names, invalid input
# ============================================================================


class TestCommentsAndNames:
    def test_comments_are_skipped(self):
        assert kinds("A # note\n// whole line\nB") == [
            TokenKind.IDENTIFIER,
            TokenKind.NEWLINE,
            TokenKind.NEWLINE,
            TokenKind.IDENTIFIER,
            TokenKind.EOF,
        ]

    def test_quoted_names(self):
        tokens = tokenize('"Web Server" -> DB')
        assert tokens[0].kind is TokenKind.IDENTIFIER
        assert tokens[0].value == "Web Server"
        assert tokens[0].length == 12

    def test_unicode_names(self):
        assert values("Zoë -> Ærø") == ["Zoë", "->", "Ærø"]

    def test_names_may_contain_dots_and_underscores(self):
        assert values("api.v2 -> user_db") == ["api.v2", "->", "user_db"]


class TestInvalid:
    def test_unknown_characters_become_one_invalid_token(self):
        tokens = tokenize("??? broken line")
        assert tokens[0].kind is TokenKind.INVALID
        assert tokens[0].value == "???"
        assert tokens[1].kind is TokenKind.IDENTIFIER

    def test_lexing_continues_after_invalid(self):
        tokens = tokenize("A @ B\nC")
        assert [t.kind for t in tokens] == [
            TokenKind.IDENTIFIER,
            TokenKind.INVALID,
            TokenKind.IDENTIFIER,
            TokenKind.NEWLINE,
            TokenKind.IDENTIFIER,
            TokenKind.EOF,
        ]

    def test_unterminated_quote_is_invalid_to_end_of_line(self):
        tokens = tokenize('"Web Server -> DB\nA')
        assert tokens[0].kind is TokenKind.INVALID
        assert tokens[0].value == '"Web Server -> DB'
        assert tokens[1].kind is TokenKind.NEWLINE
        assert tokens[2].value == "A"

    def test_odd_whitespace_does_not_stall(self):
        tokens = tokenize("A\u00a0->\u000bB")
        assert values("A\u00a0->\u000bB") == ["A", "->", "B"]
        assert tokens[-1].kind is TokenKind.EOF


# ============================================================================
# Line endings, decomposed names, token spans
# ============================================================================


class TestLineEndings:
    def test_crlf_breaks_lines(self):
        assert values("A -> B: one\r\nB -> A: two") == [
            "A", "->", "B", ":", "one", "\n", "B", "->", "A", ":", "two",
        ]

    def test_lone_carriage_return_breaks_lines(self):
        tokens = tokenize("A -> B: one\rB -> A: two")
        assert [t.kind for t in tokens].count(TokenKind.NEWLINE) == 1
        assert tokens[4].value == "one"
        second = tokens[6]
        assert second.value == "B"
        assert second.line == 2
        assert second.column == 1

    def test_lone_carriage_return_ends_a_comment(self):
        assert values("# note\rA") == ["\n", "A"]


class TestDecomposedNames:
    def test_combining_mark_continues_a_name(self):
        tokens = tokenize("Jose\u0301 -> B: hi")
        assert tokens[0].kind is TokenKind.IDENTIFIER
        assert tokens[0].value == "Jose\u0301"
        assert tokens[1].kind is TokenKind.ARROW

    def test_combining_mark_cannot_start_a_name(self):
        tokens = tokenize("\u0301A")
        assert tokens[0].kind is TokenKind.INVALID


class TestTokenSpans:
    def test_end_column_covers_the_token(self):
        tokens = tokenize("Alice -> Bob")
        assert tokens[0].end_column == 6
        assert tokens[1].end_column == 9

    def test_end_column_includes_quotes(self):
        token = tokenize('"Web Server"')[0]
        assert token.column == 1
        assert token.end_column == 13

    def test_end_column_of_eof_spans_one_character(self):
        eof = tokenize("A")[-1]
        assert eof.end_column == eof.column + 1
