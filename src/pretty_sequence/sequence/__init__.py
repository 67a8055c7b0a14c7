from __future__ import annotations

from .types import (
    SequenceDiagram,
    Participant,
    SignalElement,
    ActivationElement,
    CombinedFragment,
    InteractionOperand,
    PositionedSequenceDiagram,
    PositionedTitle,
    PositionedParticipant,
    Lifeline,
    PositionedSignal,
    Activation,
    PositionedFragment,
    PositionedDivider,
)
from .lexer import Token, TokenKind, tokenize
from .ast import AstError, Statement
from .parser import ParseResult, parse, parse_text
from .builder import ModelBuilder, apply_statement, build
from .compiler import compile_diagram
from .layout import layout_sequence_diagram
from .renderer import render, render_positioned

__all__ = [
    "SequenceDiagram",
    "Participant",
    "SignalElement",
    "ActivationElement",
    "CombinedFragment",
    "InteractionOperand",
    "PositionedSequenceDiagram",
    "PositionedTitle",
    "PositionedParticipant",
    "Lifeline",
    "PositionedSignal",
    "Activation",
    "PositionedFragment",
    "PositionedDivider",
    "Token",
    "TokenKind",
    "tokenize",
    "AstError",
    "Statement",
    "ParseResult",
    "parse",
    "parse_text",
    "ModelBuilder",
    "apply_statement",
    "build",
    "compile_diagram",
    "layout_sequence_diagram",
    "render",
    "render_positioned",
]
