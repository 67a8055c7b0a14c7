from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol, runtime_checkable

from .types import Color, HorizontalAlignment, Point, Size, VerticalAlignment

# ============================================================================
# Graphic context capability
#
# Everything the renderer needs from a drawing backend. Backends own stroke
# shape (straight, dashed, hand-drawn wobble); callers only pass endpoints.
# Coordinates are relative to the current offset, which backends keep as
# a stack of translations.
# ============================================================================


@runtime_checkable
class GraphicContext(Protocol):
    def draw_rectangle(self, location: Point, size: Size, color: Color) -> None: ...

    def fill_rectangle(self, location: Point, size: Size, color: Color) -> None: ...

    def draw_line(self, start: Point, end: Point, width: float, color: Color) -> None: ...

    def draw_dashed_line(self, start: Point, end: Point, width: float, color: Color) -> None: ...

    def draw_arrow(
        self,
        start: Point,
        end: Point,
        width: float,
        color: Color,
        cap_width: float,
        cap_height: float,
    ) -> None: ...

    def draw_dashed_arrow(
        self,
        start: Point,
        end: Point,
        width: float,
        color: Color,
        cap_width: float,
        cap_height: float,
    ) -> None: ...

    def draw_text(
        self,
        text: str,
        h_align: HorizontalAlignment,
        v_align: VerticalAlignment,
        location: Point,
        size: Size,
        color: Color,
    ) -> None:
        """Draw ``text`` aligned inside the box at ``location`` of ``size``."""
        ...

    def measure_text(self, text: str) -> Size:
        """Size ``text`` would occupy, without drawing it."""
        ...

    def push_offset(self, dx: float, dy: float) -> None: ...

    def pop_offset(self) -> None: ...


@contextmanager
def offset(ctx: GraphicContext, dx: float, dy: float) -> Iterator[GraphicContext]:
    """Translate all drawing by (dx, dy) for the duration of the block.

    The translation is popped on every exit path, including exceptions
    raised by drawing calls inside the block.
    """
    ctx.push_offset(dx, dy)
    try:
        yield ctx
    finally:
        ctx.pop_offset()


def check_stroke_width(width: float) -> float:
    if width <= 0:
        raise ValueError(f"stroke width must be positive, got {width}")
    return width
