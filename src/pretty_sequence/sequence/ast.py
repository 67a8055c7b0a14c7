from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .lexer import Token

# ============================================================================
# Statement AST
#
# One statement per notation line. Statements are immutable and carry the
# tokens they were parsed from, so anything that goes wrong while applying
# them can be reported at a source location. Applying a statement to the
# model is done by builder.apply_statement, which matches on these types.
# ============================================================================


@dataclass(frozen=True, slots=True)
class AstError:
    """A recoverable problem found while parsing or building, tied to a token."""

    token: Token
    message: str

    @property
    def line(self) -> int:
        return self.token.line

    @property
    def column(self) -> int:
        return self.token.column

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}: {self.message}"


@dataclass(frozen=True, slots=True)
class SetTitle:
    keyword: Token
    title: str

    @property
    def token(self) -> Token:
        return self.keyword


@dataclass(frozen=True, slots=True)
class DeclareParticipant:
    """``participant <name> [as <label>]``"""
    name: Token
    label: Token | None = None

    @property
    def token(self) -> Token:
        return self.name


@dataclass(frozen=True, slots=True)
class EnsureParticipant:
    """A bare ``<name>`` line: create the participant unless it already exists."""
    name: Token

    @property
    def token(self) -> Token:
        return self.name


@dataclass(frozen=True, slots=True)
class Signal:
    source: Token
    arrow: Token
    target: Token
    label: Token | None = None

    @property
    def token(self) -> Token:
        return self.source


@dataclass(frozen=True, slots=True)
class Activation:
    """``activate <name>`` / ``deactivate <name>``"""
    keyword: Token
    name: Token

    @property
    def token(self) -> Token:
        return self.keyword


@dataclass(frozen=True, slots=True)
class OpenFragment:
    """``loop|alt|opt|par|critical|break [label]``"""
    keyword: Token
    label: Token | None = None

    @property
    def token(self) -> Token:
        return self.keyword


@dataclass(frozen=True, slots=True)
class NextOperand:
    """``else [label]`` / ``and [label]``"""
    keyword: Token
    label: Token | None = None

    @property
    def token(self) -> Token:
        return self.keyword


@dataclass(frozen=True, slots=True)
class CloseFragment:
    keyword: Token

    @property
    def token(self) -> Token:
        return self.keyword


Statement = Union[
    SetTitle,
    DeclareParticipant,
    EnsureParticipant,
    Signal,
    Activation,
    OpenFragment,
    NextOperand,
    CloseFragment,
]


def text_of(token: Token | None) -> str:
    """Value of an optional free-text token ('' when absent)."""
    return token.value if token is not None else ""
