from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .types import (
    ActivationElement,
    CombinedFragment,
    InteractionOperand,
    SequenceDiagram,
    SignalElement,
    PositionedSequenceDiagram,
    PositionedTitle,
    PositionedParticipant,
    Lifeline,
    PositionedSignal,
    Activation,
    PositionedFragment,
    PositionedDivider,
)
from ..types import RenderOptions, Size
from ..styles import estimate_text_size

logger = logging.getLogger(__name__)

# ============================================================================
# Sequence diagram layout engine
#
# Two passes, so that text measured by the target graphic context decides
# the geometry before any coordinate is fixed:
#   1. Measure every participant label, signal label, fragment header and
#      the title.
#   2. Assign coordinates:
#      - participants left to right in list order, gaps widened until the
#        labels of the signals spanning them fit
#      - signals top to bottom in source order (y strictly increases with
#        the signal index)
#      - fragments as boxes around their rows, activations via a stack
#      - lifelines from the participant box to below the last row
#
# The layout is deterministic: no randomness, no dict-order dependence.
# ============================================================================

Measure = Callable[[str], Size]

# Layout constants specific to sequence diagrams
SEQ = {
    # Padding around the entire diagram
    "padding": 30,
    # Minimum gap between participant centers
    "participant_gap": 140,
    # Participant box sizing
    "participant_height": 40,
    "participant_min_width": 80,
    "participant_pad_x": 16,
    "participant_pad_y": 10,
    # Minimum clearance between neighbouring participant boxes
    "participant_margin": 40,
    # Vertical space between the title and the participant boxes
    "title_gap": 16,
    # Vertical space between participant boxes and the first row
    "header_gap": 10,
    # Minimum vertical space per signal row
    "row_height": 40,
    # Space between a signal label and its arrow
    "label_gap": 6,
    # Horizontal clearance either side of a signal label
    "label_pad": 12,
    # Self-signal loop geometry
    "self_loop_width": 30,
    "self_loop_height": 20,
    "self_signal_height": 30,
    # Activation box width (narrow rectangle on lifeline)
    "activation_width": 10,
    # Fragment geometry
    "fragment_pad_x": 10,
    "fragment_header_height": 28,
    "fragment_tab_pad": 16,
    "divider_height": 24,
    "fragment_pad_bottom": 10,
    # Space left below the last row before the lifelines end
    "footer_gap": 10,
}


def default_measure(text: str) -> Size:
    return estimate_text_size(text)


def fragment_header_text(kind: str, label: str) -> str:
    return f"{kind} [{label}]" if label else kind


def divider_text(label: str) -> str:
    return f"[{label}]" if label else ""


@dataclass(slots=True)
class _Measurements:
    title: Size | None
    participants: list[Size]
    # Signal label sizes in source order
    signals: list[Size]
    # Header sizes keyed by fragment identity
    fragment_headers: dict[int, Size]


@dataclass(slots=True)
class _Cursor:
    """Mutable state of the vertical placement walk."""
    y: float
    signal_index: int = 0
    last_signal_y: float | None = None
    signals: list[PositionedSignal] = field(default_factory=list)
    activations: list[Activation] = field(default_factory=list)
    fragments: list[PositionedFragment] = field(default_factory=list)
    # Open activation start-Y per participant, innermost last
    open_activations: dict[str, list[float]] = field(default_factory=dict)


def layout_sequence_diagram(
    diagram: SequenceDiagram,
    measure: Measure | None = None,
    options: RenderOptions | None = None,
) -> PositionedSequenceDiagram:
    """Lay out a built sequence diagram.

    ``measure`` sizes label text; pass the target graphic context's
    measure_text so geometry matches what will be drawn. Defaults to the
    font-metric estimate.
    """
    if diagram is None:
        raise TypeError("diagram must not be None")
    measure = measure or default_measure
    seq = _resolve_constants(options)

    measurements = _measure(diagram, measure)
    # Without participants only fragments can be present (signals and
    # activations always create theirs), and those still get boxes
    if not diagram.participants and not diagram.content.elements:
        return _layout_empty(diagram, measurements, seq)

    return _Placement(diagram, measurements, seq).run()


def _resolve_constants(options: RenderOptions | None) -> dict[str, float]:
    seq: dict[str, float] = dict(SEQ)
    if options is not None:
        if options.padding is not None:
            seq["padding"] = options.padding
        if options.participant_gap is not None:
            seq["participant_gap"] = options.participant_gap
        if options.row_height is not None:
            seq["row_height"] = options.row_height
    return seq


# ============================================================================
# Pass 1: measurement
# ============================================================================


def _measure(diagram: SequenceDiagram, measure: Measure) -> _Measurements:
    headers: dict[int, Size] = {}

    def visit(operand: InteractionOperand) -> None:
        for element in operand.elements:
            if isinstance(element, CombinedFragment):
                headers[id(element)] = measure(
                    fragment_header_text(element.kind, element.label)
                )
                for child in element.operands:
                    visit(child)

    visit(diagram.content)
    return _Measurements(
        title=measure(diagram.title) if diagram.title else None,
        participants=[measure(p.label) for p in diagram.participants],
        signals=[
            measure(s.label) if s.label else Size(0, 0)
            for s in diagram.content.iter_signals()
        ],
        fragment_headers=headers,
    )


def _layout_empty(
    diagram: SequenceDiagram, measurements: _Measurements, seq: dict[str, float]
) -> PositionedSequenceDiagram:
    if measurements.title is None:
        return PositionedSequenceDiagram(width=0, height=0)
    title = PositionedTitle(
        text=diagram.title or "",
        x=seq["padding"],
        y=seq["padding"],
        width=measurements.title.width,
        height=measurements.title.height,
    )
    return PositionedSequenceDiagram(
        width=title.width + seq["padding"] * 2,
        height=title.height + seq["padding"] * 2,
        title=title,
    )


# ============================================================================
# Pass 2: placement
# ============================================================================


def _nesting_depth(operand: InteractionOperand) -> int:
    """Deepest fragment nesting below an operand (0 if it has no fragments)."""
    depth = 0
    for element in operand.elements:
        if isinstance(element, CombinedFragment):
            inner = max((_nesting_depth(o) for o in element.operands), default=0)
            depth = max(depth, inner + 1)
    return depth


def _involved(fragment: CombinedFragment, index: dict[str, int]) -> set[int]:
    involved: set[int] = set()
    for operand in fragment.operands:
        for element in operand.elements:
            if isinstance(element, SignalElement):
                involved.add(index[element.source])
                involved.add(index[element.target])
            elif isinstance(element, ActivationElement):
                involved.add(index[element.participant])
            elif isinstance(element, CombinedFragment):
                involved |= _involved(element, index)
    return involved


class _Placement:
    def __init__(
        self,
        diagram: SequenceDiagram,
        measurements: _Measurements,
        seq: dict[str, float],
    ) -> None:
        self._diagram = diagram
        self._m = measurements
        self._seq = seq
        self._index = {p.name: i for i, p in enumerate(diagram.participants)}
        self._widths: list[float] = []
        self._centers: list[float] = []
        self._right_extent = 0.0

    def run(self) -> PositionedSequenceDiagram:
        seq = self._seq
        self._place_columns()

        # Title band
        y = seq["padding"]
        title_size = self._m.title
        if title_size is not None:
            y += title_size.height + seq["title_gap"]

        # Participant boxes: one shared height so lifelines start level
        box_height = 0.0
        if self._m.participants:
            box_height = max(
                [seq["participant_height"]]
                + [s.height + seq["participant_pad_y"] * 2 for s in self._m.participants]
            )
        participants = [
            PositionedParticipant(
                name=p.name,
                label=p.label,
                x=self._centers[i],
                y=y,
                width=self._widths[i],
                height=box_height,
            )
            for i, p in enumerate(self._diagram.participants)
        ]

        cursor = _Cursor(y=y + box_height + seq["header_gap"])
        self._place_operand(self._diagram.content, cursor, depth=0)

        # Close any unclosed activations at the last row
        for name, stack in cursor.open_activations.items():
            for level, start_y in enumerate(stack):
                cursor.activations.append(
                    self._activation(name, start_y, max(cursor.y - seq["row_height"] / 2, start_y), level)
                )

        lifeline_bottom = cursor.y + seq["footer_gap"]
        lifelines = [
            Lifeline(
                participant=p.name,
                x=self._centers[i],
                top_y=y + box_height,
                bottom_y=lifeline_bottom,
            )
            for i, p in enumerate(self._diagram.participants)
        ]

        right = self._right_extent
        for f in cursor.fragments:
            right = max(right, f.x + f.width)
        if title_size is not None:
            right = max(right, seq["padding"] + title_size.width)
        width = right + seq["padding"]

        title = None
        if title_size is not None:
            title = PositionedTitle(
                text=self._diagram.title or "",
                x=(width - title_size.width) / 2,
                y=seq["padding"],
                width=title_size.width,
                height=title_size.height,
            )

        height = lifeline_bottom + seq["padding"]
        logger.debug("Laid out sequence diagram: %.0fx%.0f", width, height)
        return PositionedSequenceDiagram(
            width=width,
            height=height,
            title=title,
            participants=participants,
            lifelines=lifelines,
            signals=cursor.signals,
            activations=cursor.activations,
            fragments=cursor.fragments,
        )

    # ------------------------------------------------------------------
    # Horizontal
    # ------------------------------------------------------------------

    def _place_columns(self) -> None:
        seq = self._seq
        count = len(self._diagram.participants)
        self._widths = [
            max(s.width + seq["participant_pad_x"] * 2, seq["participant_min_width"])
            for s in self._m.participants
        ]

        gaps = [
            max(
                seq["participant_gap"],
                (self._widths[i] + self._widths[i + 1]) / 2 + seq["participant_margin"],
            )
            for i in range(count - 1)
        ]

        # Signal labels that must fit between (or right of) lifelines.
        # Narrow spans first so wide spans only add what is still missing.
        spans: list[tuple[int, int, float]] = []
        self_extents: list[tuple[int, float]] = []
        for signal, size in zip(self._diagram.content.iter_signals(), self._m.signals):
            a = self._index[signal.source]
            b = self._index[signal.target]
            if a == b:
                self_extents.append(
                    (a, seq["self_loop_width"] + seq["label_gap"] + size.width + seq["label_pad"])
                )
            else:
                lo, hi = min(a, b), max(a, b)
                spans.append((lo, hi, size.width + seq["label_pad"] * 2))

        for lo, hi, need in sorted(spans, key=lambda s: s[1] - s[0]):
            have = sum(gaps[lo:hi])
            if have < need:
                gaps[hi - 1] += need - have

        for i, need in self_extents:
            if i < count - 1 and gaps[i] < need:
                gaps[i] = need

        margin = seq["padding"] + seq["fragment_pad_x"] * _nesting_depth(self._diagram.content)
        if count == 0:
            self._centers = []
            self._right_extent = seq["padding"]
            return
        x = margin + self._widths[0] / 2
        self._centers = [x]
        for gap in gaps:
            x += gap
            self._centers.append(x)

        right = self._centers[-1] + self._widths[-1] / 2
        for i, need in self_extents:
            right = max(right, self._centers[i] + need)
        # Room for the outermost fragment border on the right
        self._right_extent = right + seq["fragment_pad_x"] * _nesting_depth(self._diagram.content)

    # ------------------------------------------------------------------
    # Vertical
    # ------------------------------------------------------------------

    def _place_operand(self, operand: InteractionOperand, cursor: _Cursor, depth: int) -> None:
        for element in operand.elements:
            if isinstance(element, SignalElement):
                self._place_signal(element, cursor)
            elif isinstance(element, ActivationElement):
                self._place_activation(element, cursor)
            elif isinstance(element, CombinedFragment):
                self._place_fragment(element, cursor, depth)

    def _place_signal(self, signal: SignalElement, cursor: _Cursor) -> None:
        seq = self._seq
        size = self._m.signals[cursor.signal_index]
        label_band = size.height + seq["label_gap"] if signal.label else seq["label_gap"]
        y = cursor.y + label_band
        row = max(seq["row_height"], label_band + seq["label_gap"] * 2)

        cursor.signals.append(
            PositionedSignal(
                index=cursor.signal_index,
                source=signal.source,
                target=signal.target,
                label=signal.label,
                line_style=signal.line_style,
                has_arrow_head=signal.has_arrow_head,
                x1=self._centers[self._index[signal.source]],
                x2=self._centers[self._index[signal.target]],
                y=y,
                is_self=signal.is_self,
                label_width=size.width,
                label_height=size.height,
            )
        )
        cursor.signal_index += 1
        cursor.last_signal_y = y
        # Self-signals loop back below their own row
        cursor.y = y + (row - label_band)
        if signal.is_self:
            cursor.y += seq["self_signal_height"]

    def _place_activation(self, element: ActivationElement, cursor: _Cursor) -> None:
        seq = self._seq
        stack = cursor.open_activations.setdefault(element.participant, [])
        if element.activate:
            start = cursor.last_signal_y if cursor.last_signal_y is not None else cursor.y
            stack.append(start)
            return
        if not stack:
            return
        start = stack.pop()
        end = cursor.last_signal_y
        if end is None or end <= start:
            end = start + seq["row_height"] / 2
        cursor.activations.append(self._activation(element.participant, start, end, len(stack)))

    def _activation(self, name: str, top: float, bottom: float, level: int) -> Activation:
        w = self._seq["activation_width"]
        return Activation(
            participant=name,
            # Nested activations step right by half a bar
            x=self._centers[self._index[name]] - w / 2 + level * w / 2,
            top_y=top,
            bottom_y=bottom,
            width=w,
        )

    def _place_fragment(self, fragment: CombinedFragment, cursor: _Cursor, depth: int) -> None:
        seq = self._seq
        top = cursor.y
        cursor.y += seq["fragment_header_height"]
        positioned = PositionedFragment(
            kind=fragment.kind, label=fragment.label, x=0, y=top, width=0, height=0, depth=depth
        )
        # Parents are appended before children so they draw underneath
        cursor.fragments.append(positioned)
        first_child = len(cursor.fragments)

        for k, operand in enumerate(fragment.operands):
            if k > 0:
                positioned.dividers.append(PositionedDivider(y=cursor.y, label=operand.guard))
                cursor.y += seq["divider_height"]
            self._place_operand(operand, cursor, depth + 1)

        cursor.y += seq["fragment_pad_bottom"]

        involved = _involved(fragment, self._index) or set(range(len(self._centers)))
        if involved:
            lo, hi = min(involved), max(involved)
            inset = seq["fragment_pad_x"] * (max((_nesting_depth(o) for o in fragment.operands), default=0) + 1)
            left = self._centers[lo] - self._widths[lo] / 2 - inset
            right = self._centers[hi] + self._widths[hi] / 2 + inset
        else:
            # No participants at all: stack from the padding origin around children
            left = seq["padding"] + seq["fragment_pad_x"] * depth
            right = left
            for child in cursor.fragments[first_child:]:
                if child.depth == depth + 1:
                    right = max(right, child.x + child.width + seq["fragment_pad_x"])
        header = self._m.fragment_headers[id(fragment)]
        right = max(right, left + header.width + seq["fragment_tab_pad"] * 2)

        positioned.x = left
        positioned.width = right - left
        positioned.height = cursor.y - top
