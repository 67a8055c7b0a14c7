"""Tests for the model builder and statement application.

Covers: participant lookup (case-sensitive), idempotent ensure-participant,
re-declaration policy, title overwrite, fragment operand stack, activation
bookkeeping, contract violations and builder lifecycle.
"""
from __future__ import annotations

import pytest

from pretty_sequence.sequence.ast import (
    Activation,
    CloseFragment,
    DeclareParticipant,
    EnsureParticipant,
    NextOperand,
    OpenFragment,
    SetTitle,
    Signal,
)
from pretty_sequence.sequence.builder import ModelBuilder, apply_statement, build
from pretty_sequence.sequence.lexer import Token, TokenKind
from pretty_sequence.sequence.types import (
    ActivationElement,
    CombinedFragment,
    SequenceDiagram,
    SignalElement,
)


def tok(value: str, kind: TokenKind = TokenKind.IDENTIFIER, line: int = 1) -> Token:
    return Token(kind, value, line, 1, 0, len(value))


def signal(source: str, target: str, label: str = "", arrow: str = "->") -> Signal:
    return Signal(
        source=tok(source),
        arrow=tok(arrow, TokenKind.ARROW),
        target=tok(target),
        label=tok(label, TokenKind.TEXT) if label else None,
    )


def make_signal(label: str = "x") -> SignalElement:
    return SignalElement(
        source="A", target="B", label=label, line_style="solid", has_arrow_head=True
    )


# ============================================================================
# Participants
# ============================================================================


class TestParticipants:
    def test_find_and_has(self):
        builder = ModelBuilder()
        assert builder.find_participant("Alice") is None
        assert not builder.has_participant("Alice")
        created = builder.create_participant("Alice")
        assert builder.find_participant("Alice") is created
        assert builder.has_participant("Alice")

    def test_lookup_is_case_sensitive(self):
        builder = ModelBuilder()
        builder.create_participant("Alice")
        assert not builder.has_participant("alice")
        assert builder.find_participant("ALICE") is None

    def test_label_defaults_to_name(self):
        participant = ModelBuilder().create_participant("Alice")
        assert participant.label == "Alice"

    def test_create_does_not_check_for_duplicates(self):
        builder = ModelBuilder()
        builder.create_participant("A")
        builder.create_participant("A")
        assert len(builder.diagram.participants) == 2

    def test_empty_name_is_rejected(self):
        with pytest.raises(ValueError):
            ModelBuilder().create_participant("")

    def test_ensure_participant_is_idempotent(self):
        builder = ModelBuilder()
        apply_statement(EnsureParticipant(name=tok("A")), builder)
        apply_statement(EnsureParticipant(name=tok("A")), builder)
        assert builder.diagram.participant_names == ["A"]

    def test_signal_creates_both_participants_once(self):
        diagram, errors = build([signal("A", "B"), signal("B", "A"), signal("A", "A")])
        assert diagram.participant_names == ["A", "B"]
        assert errors == []

    def test_declaration_after_reference_keeps_slot_and_sets_label(self):
        diagram, _ = build([
            signal("B", "A"),
            DeclareParticipant(name=tok("A"), label=tok("Alice", TokenKind.TEXT)),
        ])
        assert diagram.participant_names == ["B", "A"]
        assert diagram.find_participant("A").label == "Alice"

    def test_relabel_participant(self):
        builder = ModelBuilder()
        builder.create_participant("A")
        builder.create_participant("B")
        relabelled = builder.relabel_participant("A", "Alice")
        assert relabelled.label == "Alice"
        assert builder.diagram.participant_names == ["A", "B"]

    def test_relabel_unknown_participant(self):
        with pytest.raises(KeyError):
            ModelBuilder().relabel_participant("ghost", "Ghost")

    def test_duplicate_declaration_is_silently_ignored(self):
        diagram, errors = build([
            DeclareParticipant(name=tok("A"), label=tok("Alice", TokenKind.TEXT)),
            DeclareParticipant(name=tok("A")),
        ])
        assert len(diagram.participants) == 1
        assert diagram.participants[0].label == "Alice"
        assert errors == []

    def test_reference_after_declaration_does_not_duplicate(self):
        diagram, _ = build([DeclareParticipant(name=tok("A")), signal("A", "B")])
        assert diagram.participant_names == ["A", "B"]


# ============================================================================
# Content
# ============================================================================


class TestContent:
    def test_signal_fields(self):
        diagram, _ = build([signal("A", "B", "Hello", "-->")])
        s = diagram.signals()[0]
        assert s.source == "A"
        assert s.target == "B"
        assert s.label == "Hello"
        assert s.line_style == "dashed"
        assert s.has_arrow_head

    @pytest.mark.parametrize(
        "arrow,style,head",
        [("->", "solid", True), ("-->", "dashed", True), ("-", "solid", False), ("--", "dashed", False)],
    )
    def test_arrow_variants(self, arrow, style, head):
        diagram, _ = build([signal("A", "B", arrow=arrow)])
        s = diagram.signals()[0]
        assert s.line_style == style
        assert s.has_arrow_head is head

    def test_add_signal_appends_in_order(self):
        builder = ModelBuilder()
        builder.add_signal(make_signal("1"))
        builder.add_signal(make_signal("2"))
        assert [s.label for s in builder.diagram.signals()] == ["1", "2"]

    def test_add_signal_rejects_none(self):
        with pytest.raises(TypeError):
            ModelBuilder().add_signal(None)  # type: ignore[arg-type]

    def test_title_last_write_wins(self):
        builder = ModelBuilder()
        builder.set_title("First")
        builder.set_title("Second")
        assert builder.diagram.title == "Second"

    def test_set_title_statement(self):
        diagram, _ = build([SetTitle(keyword=tok("title", TokenKind.TITLE), title="Login")])
        assert diagram.title == "Login"

    def test_none_title_is_a_contract_violation(self):
        with pytest.raises(TypeError):
            ModelBuilder().set_title(None)  # type: ignore[arg-type]


# ============================================================================
# Fragments
# ============================================================================


class TestFragments:
    def test_signals_inside_fragment_go_to_its_operand(self):
        diagram, errors = build([
            signal("A", "B", "before"),
            OpenFragment(keyword=tok("loop", TokenKind.LOOP), label=tok("Every 5s", TokenKind.TEXT)),
            signal("A", "B", "inside"),
            CloseFragment(keyword=tok("end", TokenKind.END)),
            signal("A", "B", "after"),
        ])
        assert errors == []
        root = diagram.content.elements
        assert len(root) == 3
        fragment = root[1]
        assert isinstance(fragment, CombinedFragment)
        assert fragment.kind == "loop"
        assert fragment.label == "Every 5s"
        assert [e.label for e in fragment.operands[0].elements] == ["inside"]
        assert [s.label for s in diagram.signals()] == ["before", "inside", "after"]

    def test_else_starts_a_new_operand(self):
        diagram, _ = build([
            OpenFragment(keyword=tok("alt", TokenKind.ALT), label=tok("ok", TokenKind.TEXT)),
            signal("A", "B", "1"),
            NextOperand(keyword=tok("else", TokenKind.ELSE), label=tok("fail", TokenKind.TEXT)),
            signal("A", "B", "2"),
            CloseFragment(keyword=tok("end", TokenKind.END)),
        ])
        fragment = diagram.content.elements[0]
        assert [o.guard for o in fragment.operands] == ["ok", "fail"]
        assert [len(o.elements) for o in fragment.operands] == [1, 1]

    def test_nested_fragments(self):
        diagram, errors = build([
            OpenFragment(keyword=tok("loop", TokenKind.LOOP)),
            OpenFragment(keyword=tok("opt", TokenKind.OPT)),
            signal("A", "B", "deep"),
            CloseFragment(keyword=tok("end", TokenKind.END)),
            CloseFragment(keyword=tok("end", TokenKind.END)),
        ])
        assert errors == []
        outer = diagram.content.elements[0]
        inner = outer.operands[0].elements[0]
        assert inner.kind == "opt"
        assert inner.operands[0].elements[0].label == "deep"

    def test_else_outside_fragment_is_an_error(self):
        diagram, errors = build([NextOperand(keyword=tok("else", TokenKind.ELSE, line=3))])
        assert len(errors) == 1
        assert errors[0].message == "'else' outside of a fragment"
        assert errors[0].line == 3

    def test_end_without_fragment_is_an_error(self):
        _, errors = build([CloseFragment(keyword=tok("end", TokenKind.END))])
        assert errors[0].message == "'end' without matching fragment"

    def test_unclosed_fragment_is_reported_and_kept(self):
        diagram, errors = build([
            OpenFragment(keyword=tok("loop", TokenKind.LOOP, line=2)),
            signal("A", "B", "inside"),
        ])
        assert len(errors) == 1
        assert errors[0].message == "unclosed 'loop' fragment"
        assert errors[0].line == 2
        assert [s.label for s in diagram.signals()] == ["inside"]


# ============================================================================
# Activations
# ============================================================================


class TestActivations:
    def test_activate_then_deactivate(self):
        diagram, errors = build([
            Activation(keyword=tok("activate", TokenKind.ACTIVATE), name=tok("A")),
            Activation(keyword=tok("deactivate", TokenKind.DEACTIVATE), name=tok("A")),
        ])
        assert errors == []
        assert diagram.participant_names == ["A"]
        assert diagram.content.elements == [
            ActivationElement(participant="A", activate=True),
            ActivationElement(participant="A", activate=False),
        ]

    def test_deactivate_without_activation_is_an_error(self):
        diagram, errors = build([
            Activation(keyword=tok("deactivate", TokenKind.DEACTIVATE), name=tok("A")),
        ])
        assert errors[0].message == "'A' is not active"
        assert diagram.content.elements == []


# ============================================================================
# Contract and lifecycle
# ============================================================================


class TestContract:
    def test_add_error_requires_token(self):
        with pytest.raises(TypeError):
            ModelBuilder().add_error(None, "boom")  # type: ignore[arg-type]

    def test_add_error_accumulates(self):
        builder = ModelBuilder()
        builder.add_error(tok("x"), "first")
        builder.add_error(tok("y"), "second")
        assert [e.message for e in builder.errors] == ["first", "second"]

    def test_unknown_statement_type(self):
        with pytest.raises(TypeError):
            apply_statement(object(), ModelBuilder())  # type: ignore[arg-type]

    def test_builder_is_detached_after_finish(self):
        builder = ModelBuilder()
        diagram, _ = builder.finish()
        with pytest.raises(RuntimeError):
            builder.create_participant("A")
        with pytest.raises(RuntimeError):
            builder.set_title("late")
        assert diagram.participants == []

    def test_relabel_after_finish_is_rejected(self):
        builder = ModelBuilder()
        builder.create_participant("A")
        builder.finish()
        with pytest.raises(RuntimeError):
            builder.relabel_participant("A", "Alice")
        assert builder.diagram.participants[0].label == "A"

    def test_redeclaration_after_finish_is_rejected(self):
        builder = ModelBuilder()
        apply_statement(DeclareParticipant(name=tok("A")), builder)
        builder.finish()
        with pytest.raises(RuntimeError):
            apply_statement(
                DeclareParticipant(name=tok("A"), label=tok("Alice", TokenKind.TEXT)), builder
            )

    def test_builds_into_supplied_diagram(self):
        target = SequenceDiagram()
        diagram, _ = build([signal("A", "B")], target)
        assert diagram is target
