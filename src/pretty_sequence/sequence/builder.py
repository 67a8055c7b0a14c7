from __future__ import annotations

import logging
from dataclasses import dataclass

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
    text_of,
)
from .lexer import Token
from .types import (
    ActivationElement,
    CombinedFragment,
    Element,
    FragmentKind,
    InteractionOperand,
    Participant,
    SequenceDiagram,
    SignalElement,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Model builder
#
# Holds the in-progress diagram while statements are applied to it. A
# builder is owned by exactly one build pass: after finish() it is
# detached and refuses further mutation.
#
# Semantic problems (unknown participants, duplicates) are resolved by
# policy or recorded as AstErrors. Only contract violations raise.
# ============================================================================


@dataclass(slots=True)
class _OpenFragment:
    fragment: CombinedFragment
    # Operand that was current when the fragment was opened
    parent: InteractionOperand
    token: Token


class ModelBuilder:
    def __init__(self, diagram: SequenceDiagram | None = None) -> None:
        self._diagram = diagram if diagram is not None else SequenceDiagram()
        self._errors: list[AstError] = []
        self._operand = self._diagram.content
        self._fragments: list[_OpenFragment] = []
        # Open activation tokens per participant, innermost last
        self._activations: dict[str, list[Token]] = {}
        self._finished = False

    @property
    def diagram(self) -> SequenceDiagram:
        return self._diagram

    @property
    def errors(self) -> list[AstError]:
        return list(self._errors)

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def find_participant(self, name: str) -> Participant | None:
        # Exact, case-sensitive match
        return self._diagram.find_participant(name)

    def has_participant(self, name: str) -> bool:
        return self.find_participant(name) is not None

    def create_participant(self, name: str, label: str | None = None) -> Participant:
        """Append a participant. Callers check for an existing one first."""
        self._check_open()
        if not name:
            raise ValueError("participant name must be a non-empty string")
        participant = Participant(name=name, label=label or name)
        self._diagram.participants.append(participant)
        return participant

    def ensure_participant(self, name: str) -> Participant:
        participant = self.find_participant(name)
        if participant is None:
            participant = self.create_participant(name)
        return participant

    def relabel_participant(self, name: str, label: str) -> Participant:
        """Change the display label of an existing participant in place."""
        self._check_open()
        participant = self.find_participant(name)
        if participant is None:
            raise KeyError(name)
        participant.label = label
        return participant

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def add_signal(self, signal: SignalElement) -> None:
        if signal is None:
            raise TypeError("signal must not be None")
        self.add_element(signal)

    def add_element(self, element: Element) -> None:
        self._check_open()
        self._operand.add_element(element)

    def activate(self, name: str, token: Token) -> None:
        self.ensure_participant(name)
        self._activations.setdefault(name, []).append(token)
        self.add_element(ActivationElement(participant=name, activate=True))

    def deactivate(self, name: str, token: Token) -> None:
        stack = self._activations.get(name)
        if not stack:
            self.add_error(token, f"{name!r} is not active")
            return
        stack.pop()
        self.add_element(ActivationElement(participant=name, activate=False))

    def open_fragment(self, kind: FragmentKind, label: str, token: Token) -> None:
        self._check_open()
        first = InteractionOperand(guard=label)
        fragment = CombinedFragment(kind=kind, operands=[first])
        self._operand.add_element(fragment)
        self._fragments.append(_OpenFragment(fragment=fragment, parent=self._operand, token=token))
        self._operand = first

    def next_operand(self, label: str, token: Token) -> None:
        self._check_open()
        if not self._fragments:
            self.add_error(token, f"'{token.value}' outside of a fragment")
            return
        operand = InteractionOperand(guard=label)
        self._fragments[-1].fragment.operands.append(operand)
        self._operand = operand

    def close_fragment(self, token: Token) -> None:
        self._check_open()
        if not self._fragments:
            self.add_error(token, "'end' without matching fragment")
            return
        self._operand = self._fragments.pop().parent

    # ------------------------------------------------------------------
    # Title and errors
    # ------------------------------------------------------------------

    def set_title(self, title: str) -> None:
        """Overwrite the diagram title; the last call wins."""
        if title is None:
            raise TypeError("title must not be None")
        self._check_open()
        self._diagram.title = title

    def add_error(self, token: Token, message: str) -> None:
        if token is None:
            raise TypeError("errors must be attributed to a token")
        self._errors.append(AstError(token, message))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def finish(self) -> tuple[SequenceDiagram, list[AstError]]:
        """Close dangling fragments and hand the diagram over.

        The builder cannot be used afterwards.
        """
        self._check_open()
        while self._fragments:
            dangling = self._fragments.pop()
            self.add_error(dangling.token, f"unclosed '{dangling.fragment.kind}' fragment")
            self._operand = dangling.parent
        self._finished = True
        return self._diagram, list(self._errors)

    def _check_open(self) -> None:
        if self._finished:
            raise RuntimeError("ModelBuilder has already been finished")


# ============================================================================
# Statement application
# ============================================================================


def _line_style(arrow: str) -> str:
    return "dashed" if arrow.startswith("--") else "solid"


def apply_statement(statement: Statement, builder: ModelBuilder) -> None:
    """Apply one statement to the builder.

    This is the only place statement semantics live; every Statement
    variant has exactly one case.
    """
    match statement:
        case SetTitle(title=title):
            builder.set_title(title)

        case DeclareParticipant(name=name, label=label):
            existing = builder.find_participant(name.value)
            if existing is None:
                builder.create_participant(name.value, text_of(label) or None)
            elif label is not None:
                # Re-declaration keeps the first-appearance slot
                builder.relabel_participant(name.value, label.value)

        case EnsureParticipant(name=name):
            if not builder.has_participant(name.value):
                builder.create_participant(name.value)

        case Signal(source=source, arrow=arrow, target=target, label=label):
            builder.ensure_participant(source.value)
            builder.ensure_participant(target.value)
            builder.add_signal(
                SignalElement(
                    source=source.value,
                    target=target.value,
                    label=text_of(label),
                    line_style=_line_style(arrow.value),  # type: ignore[arg-type]
                    has_arrow_head=arrow.value.endswith(">"),
                )
            )

        case Activation(keyword=keyword, name=name):
            if keyword.value == "activate":
                builder.activate(name.value, keyword)
            else:
                builder.deactivate(name.value, keyword)

        case OpenFragment(keyword=keyword, label=label):
            builder.open_fragment(keyword.value, text_of(label), keyword)  # type: ignore[arg-type]

        case NextOperand(keyword=keyword, label=label):
            builder.next_operand(text_of(label), keyword)

        case CloseFragment(keyword=keyword):
            builder.close_fragment(keyword)

        case _:
            raise TypeError(f"Unknown statement type: {type(statement).__name__}")


def build(
    statements: list[Statement],
    diagram: SequenceDiagram | None = None,
) -> tuple[SequenceDiagram, list[AstError]]:
    """Apply statements in order to a fresh builder and finish it."""
    builder = ModelBuilder(diagram)
    for statement in statements:
        apply_statement(statement, builder)
    result = builder.finish()
    logger.debug(
        "Built diagram with %d participants, %d signals",
        len(result[0].participants),
        len(result[0].signals()),
    )
    return result
