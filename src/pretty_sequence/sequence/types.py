from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal, Union

# ============================================================================
# Sequence diagram types
#
# The built model (what the notation means) and the positioned model
# (where everything goes). Signals refer to participants by name only,
# since a participant may be declared after it is first referenced.
# ============================================================================

# ============================================================================
# Built model
# ============================================================================

LineStyle = Literal["solid", "dashed"]
FragmentKind = Literal["loop", "alt", "opt", "par", "critical", "break"]


@dataclass(slots=True)
class Participant:
    # Unique, case-sensitive identity used by signals
    name: str
    # Display text; defaults to the name
    label: str


@dataclass(frozen=True, slots=True)
class SignalElement:
    source: str
    target: str
    label: str
    line_style: LineStyle
    # False for the plain "-" / "--" line variants
    has_arrow_head: bool

    @property
    def is_self(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True, slots=True)
class ActivationElement:
    participant: str
    # True opens an activation bar, False closes the most recent one
    activate: bool


@dataclass(slots=True)
class InteractionOperand:
    """Ordered, append-only body of the diagram or of one fragment operand."""
    # Guard/label shown at the operand's divider ("else [guard]")
    guard: str = ""
    elements: list[Element] = field(default_factory=list)

    def add_element(self, element: Element) -> None:
        self.elements.append(element)

    def iter_signals(self) -> Iterator[SignalElement]:
        """Yield every signal depth-first, in source order."""
        for element in self.elements:
            if isinstance(element, SignalElement):
                yield element
            elif isinstance(element, CombinedFragment):
                for operand in element.operands:
                    yield from operand.iter_signals()


@dataclass(slots=True)
class CombinedFragment:
    kind: FragmentKind
    # One operand per "else"/"and" section; the first carries the header label
    operands: list[InteractionOperand] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.operands[0].guard if self.operands else ""


Element = Union[SignalElement, ActivationElement, CombinedFragment]


@dataclass(slots=True)
class SequenceDiagram:
    """Root aggregate produced by the model builder."""
    title: str | None = None
    # Insertion order = declaration / first-reference order
    participants: list[Participant] = field(default_factory=list)
    content: InteractionOperand = field(default_factory=InteractionOperand)

    def find_participant(self, name: str) -> Participant | None:
        for participant in self.participants:
            if participant.name == name:
                return participant
        return None

    @property
    def participant_names(self) -> list[str]:
        return [p.name for p in self.participants]

    def signals(self) -> list[SignalElement]:
        return list(self.content.iter_signals())


# ============================================================================
# Positioned sequence diagram -- ready for drawing
# ============================================================================


@dataclass(slots=True)
class PositionedTitle:
    text: str
    x: float
    y: float
    width: float
    height: float


@dataclass(slots=True)
class PositionedParticipant:
    name: str
    label: str
    # Center x of the participant box
    x: float
    # Top y of the participant box
    y: float
    width: float
    height: float


@dataclass(slots=True)
class Lifeline:
    """Vertical dashed line from the participant box to the bottom of the diagram."""
    participant: str
    x: float
    top_y: float
    bottom_y: float


@dataclass(slots=True)
class PositionedSignal:
    # Position of the signal in source order (0-based)
    index: int
    source: str
    target: str
    label: str
    line_style: LineStyle
    has_arrow_head: bool
    x1: float
    x2: float
    y: float
    is_self: bool
    label_width: float
    label_height: float


@dataclass(slots=True)
class Activation:
    """Narrow rectangle on a lifeline showing active processing."""
    participant: str
    x: float
    top_y: float
    bottom_y: float
    width: float


@dataclass(slots=True)
class PositionedDivider:
    y: float
    label: str


@dataclass(slots=True)
class PositionedFragment:
    kind: FragmentKind
    label: str
    x: float
    y: float
    width: float
    height: float
    # Nesting depth, 0 for top-level fragments
    depth: int = 0
    dividers: list[PositionedDivider] = field(default_factory=list)


@dataclass(slots=True)
class PositionedSequenceDiagram:
    width: float
    height: float
    title: PositionedTitle | None = None
    participants: list[PositionedParticipant] = field(default_factory=list)
    lifelines: list[Lifeline] = field(default_factory=list)
    signals: list[PositionedSignal] = field(default_factory=list)
    activations: list[Activation] = field(default_factory=list)
    fragments: list[PositionedFragment] = field(default_factory=list)
