from __future__ import annotations

from .types import (
    SequenceDiagram,
    PositionedSequenceDiagram,
    PositionedTitle,
    PositionedParticipant,
    Lifeline,
    PositionedSignal,
    Activation,
    PositionedFragment,
)
from .layout import SEQ, layout_sequence_diagram, fragment_header_text, divider_text
from ..graphics import GraphicContext, offset
from ..theme import Palette, colors_from_options, resolve_palette
from ..types import Point, RenderOptions, Size
from ..styles import STROKE_WIDTHS, ARROW_HEAD

# ============================================================================
# Sequence diagram renderer
#
# Walks a positioned sequence diagram and issues draw calls on a graphic
# context. Knows nothing about the output format; only endpoints, boxes
# and alignment are passed down.
#
# Render order (back to front):
#   1. Title
#   2. Fragment boxes (loop/alt/opt...)
#   3. Lifelines
#   4. Activation boxes
#   5. Signals (arrows with labels)
#   6. Participant boxes
# ============================================================================


def render(
    diagram: SequenceDiagram,
    ctx: GraphicContext,
    options: RenderOptions | None = None,
) -> PositionedSequenceDiagram:
    """Lay out ``diagram`` using ``ctx`` for text measurement, then draw it.

    Returns the geometry that was drawn.
    """
    if options is None:
        options = RenderOptions()
    positioned = layout_sequence_diagram(diagram, ctx.measure_text, options)
    render_positioned(positioned, ctx, resolve_palette(colors_from_options(options)))
    return positioned


def render_positioned(
    diagram: PositionedSequenceDiagram,
    ctx: GraphicContext,
    palette: Palette,
) -> None:
    if diagram.title is not None:
        _render_title(ctx, diagram.title, palette)

    for fragment in diagram.fragments:
        _render_fragment(ctx, fragment, palette)

    for lifeline in diagram.lifelines:
        _render_lifeline(ctx, lifeline, palette)

    for activation in diagram.activations:
        _render_activation(ctx, activation, palette)

    for signal in diagram.signals:
        _render_signal(ctx, signal, palette)

    # Rendered last so they sit on top of lifelines and fragment borders
    for participant in diagram.participants:
        _render_participant(ctx, participant, palette)


# ============================================================================
# Component renderers
# ============================================================================


def _render_title(ctx: GraphicContext, title: PositionedTitle, palette: Palette) -> None:
    ctx.draw_text(
        title.text,
        "center",
        "center",
        Point(title.x, title.y),
        Size(title.width, title.height),
        palette.text,
    )


def _render_participant(
    ctx: GraphicContext, participant: PositionedParticipant, palette: Palette
) -> None:
    size = Size(participant.width, participant.height)
    with offset(ctx, participant.x - participant.width / 2, participant.y):
        ctx.fill_rectangle(Point(0, 0), size, palette.node_fill)
        ctx.draw_rectangle(Point(0, 0), size, palette.node_stroke)
        ctx.draw_text(participant.label, "center", "center", Point(0, 0), size, palette.text)


def _render_lifeline(ctx: GraphicContext, lifeline: Lifeline, palette: Palette) -> None:
    ctx.draw_dashed_line(
        Point(lifeline.x, lifeline.top_y),
        Point(lifeline.x, lifeline.bottom_y),
        STROKE_WIDTHS["lifeline"],
        palette.line,
    )


def _render_activation(ctx: GraphicContext, activation: Activation, palette: Palette) -> None:
    location = Point(activation.x, activation.top_y)
    size = Size(activation.width, activation.bottom_y - activation.top_y)
    ctx.fill_rectangle(location, size, palette.activation_fill)
    ctx.draw_rectangle(location, size, palette.node_stroke)


def _render_signal(ctx: GraphicContext, signal: PositionedSignal, palette: Palette) -> None:
    width = STROKE_WIDTHS["connector"]
    dashed = signal.line_style == "dashed"

    if signal.is_self:
        # Self-signal: loop out to the right and back onto the same lifeline
        loop_w = SEQ["self_loop_width"]
        loop_h = SEQ["self_loop_height"]
        x, y = signal.x1, signal.y
        corner_top = Point(x + loop_w, y)
        corner_bottom = Point(x + loop_w, y + loop_h)
        _draw_segment(ctx, Point(x, y), corner_top, width, palette, dashed, head=False)
        _draw_segment(ctx, corner_top, corner_bottom, width, palette, dashed, head=False)
        _draw_segment(
            ctx, corner_bottom, Point(x, y + loop_h), width, palette, dashed,
            head=signal.has_arrow_head,
        )
        if signal.label:
            ctx.draw_text(
                signal.label,
                "start",
                "center",
                Point(x + loop_w + SEQ["label_gap"], y + loop_h / 2 - signal.label_height / 2),
                Size(signal.label_width, signal.label_height),
                palette.text_muted,
            )
        return

    _draw_segment(
        ctx, Point(signal.x1, signal.y), Point(signal.x2, signal.y), width, palette, dashed,
        head=signal.has_arrow_head,
    )
    if signal.label:
        # Label above the arrow, centered between the lifelines
        left = min(signal.x1, signal.x2)
        ctx.draw_text(
            signal.label,
            "center",
            "end",
            Point(left, signal.y - SEQ["label_gap"] - signal.label_height),
            Size(abs(signal.x2 - signal.x1), signal.label_height),
            palette.text_muted,
        )


def _draw_segment(
    ctx: GraphicContext,
    start: Point,
    end: Point,
    width: float,
    palette: Palette,
    dashed: bool,
    head: bool,
) -> None:
    if head:
        draw = ctx.draw_dashed_arrow if dashed else ctx.draw_arrow
        draw(start, end, width, palette.arrow, ARROW_HEAD["width"], ARROW_HEAD["height"])
    elif dashed:
        ctx.draw_dashed_line(start, end, width, palette.line)
    else:
        ctx.draw_line(start, end, width, palette.line)


def _render_fragment(ctx: GraphicContext, fragment: PositionedFragment, palette: Palette) -> None:
    """Fragment box with its kind tab (top-left) and operand dividers."""
    header = fragment_header_text(fragment.kind, fragment.label)
    header_size = ctx.measure_text(header)
    tab = Size(
        min(header_size.width + SEQ["fragment_tab_pad"], fragment.width),
        min(max(header_size.height, 18), SEQ["fragment_header_height"]),
    )

    with offset(ctx, fragment.x, fragment.y):
        ctx.draw_rectangle(Point(0, 0), Size(fragment.width, fragment.height), palette.node_stroke)
        ctx.fill_rectangle(Point(0, 0), tab, palette.fragment_header)
        ctx.draw_rectangle(Point(0, 0), tab, palette.node_stroke)
        ctx.draw_text(header, "center", "center", Point(0, 0), tab, palette.text_muted)

        for divider in fragment.dividers:
            y = divider.y - fragment.y
            ctx.draw_dashed_line(
                Point(0, y), Point(fragment.width, y), STROKE_WIDTHS["inner_box"], palette.line
            )
            label = divider_text(divider.label)
            if label:
                ctx.draw_text(
                    label,
                    "start",
                    "center",
                    Point(8, y),
                    Size(fragment.width - 16, SEQ["divider_height"]),
                    palette.text_muted,
                )
