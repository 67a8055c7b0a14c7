from __future__ import annotations

import math
import random

from .graphics import check_stroke_width
from .sequence.renderer import render
from .sequence.types import SequenceDiagram
from .styles import (
    FONT_SIZE,
    FONT_WEIGHT,
    LINE_HEIGHT,
    TEXT_BASELINE_SHIFT,
    estimate_text_size,
    split_lines,
)
from .theme import build_style_block, colors_from_options, resolve_palette, svg_open_tag
from .types import Color, HorizontalAlignment, Point, RenderOptions, Size, VerticalAlignment

# ============================================================================
# SVG graphic context
#
# A GraphicContext that accumulates SVG elements. Offsets become nested
# <g transform="translate(...)"> groups. With jitter > 0 every stroke is
# drawn as a cubic Bezier whose control points wobble around the straight
# segment, giving a hand-drawn look; the wobble comes from an
# instance-local RNG so a fixed seed reproduces the same drawing.
# ============================================================================

DASH_ARRAY = "6 4"

_TEXT_ANCHORS = {"start": "start", "center": "middle", "end": "end"}


class SvgGraphicContext:
    def __init__(
        self,
        font: str = "Inter",
        font_size: float = FONT_SIZE,
        font_weight: int = FONT_WEIGHT,
        jitter: float = 0.0,
        seed: int | None = None,
    ) -> None:
        self.font = font
        self.font_size = font_size
        self.font_weight = font_weight
        self.jitter = jitter
        self._rng = random.Random(seed)
        self._parts: list[str] = []
        self._depth = 0

    @property
    def offset_depth(self) -> int:
        return self._depth

    # ------------------------------------------------------------------
    # Rectangles
    # ------------------------------------------------------------------

    def draw_rectangle(self, location: Point, size: Size, color: Color) -> None:
        if self.jitter > 0:
            tl = location
            tr = location.offset(size.width, 0)
            br = location.offset(size.width, size.height)
            bl = location.offset(0, size.height)
            for start, end in ((tl, tr), (tr, br), (br, bl), (bl, tl)):
                self._stroke(start, end, 1.0, color, dashed=False)
            return
        self._parts.append(
            f'<rect x="{_num(location.x)}" y="{_num(location.y)}" '
            f'width="{_num(size.width)}" height="{_num(size.height)}" '
            f'fill="none"{_stroke_attrs(color, 1.0)} />'
        )

    def fill_rectangle(self, location: Point, size: Size, color: Color) -> None:
        self._parts.append(
            f'<rect x="{_num(location.x)}" y="{_num(location.y)}" '
            f'width="{_num(size.width)}" height="{_num(size.height)}"'
            f'{_fill_attrs(color)} />'
        )

    # ------------------------------------------------------------------
    # Lines and arrows
    # ------------------------------------------------------------------

    def draw_line(self, start: Point, end: Point, width: float, color: Color) -> None:
        self._stroke(start, end, check_stroke_width(width), color, dashed=False)

    def draw_dashed_line(self, start: Point, end: Point, width: float, color: Color) -> None:
        self._stroke(start, end, check_stroke_width(width), color, dashed=True)

    def draw_arrow(
        self,
        start: Point,
        end: Point,
        width: float,
        color: Color,
        cap_width: float,
        cap_height: float,
    ) -> None:
        self._arrow(start, end, check_stroke_width(width), color, cap_width, cap_height, dashed=False)

    def draw_dashed_arrow(
        self,
        start: Point,
        end: Point,
        width: float,
        color: Color,
        cap_width: float,
        cap_height: float,
    ) -> None:
        self._arrow(start, end, check_stroke_width(width), color, cap_width, cap_height, dashed=True)

    def _arrow(
        self,
        start: Point,
        end: Point,
        width: float,
        color: Color,
        cap_width: float,
        cap_height: float,
        dashed: bool,
    ) -> None:
        dx = end.x - start.x
        dy = end.y - start.y
        length = math.hypot(dx, dy)
        if length == 0:
            return
        ux, uy = dx / length, dy / length
        # The shaft stops at the base of the head so dashes don't poke through
        base = Point(end.x - ux * cap_width, end.y - uy * cap_width)
        self._stroke(start, base, width, color, dashed)
        nx, ny = -uy * cap_height / 2, ux * cap_height / 2
        points = " ".join(
            f"{_num(p.x)},{_num(p.y)}"
            for p in (end, Point(base.x + nx, base.y + ny), Point(base.x - nx, base.y - ny))
        )
        self._parts.append(f'<polygon points="{points}"{_fill_attrs(color)} />')

    def _stroke(self, start: Point, end: Point, width: float, color: Color, dashed: bool) -> None:
        dash = f' stroke-dasharray="{DASH_ARRAY}"' if dashed else ""
        if self.jitter > 0:
            c1 = self._control_point(start, end)
            c2 = self._control_point(start, end)
            self._parts.append(
                f'<path d="M{_num(start.x)},{_num(start.y)} '
                f'C{_num(c1.x)},{_num(c1.y)} {_num(c2.x)},{_num(c2.y)} '
                f'{_num(end.x)},{_num(end.y)}" fill="none"'
                f'{_stroke_attrs(color, width)}{dash} />'
            )
            return
        self._parts.append(
            f'<line x1="{_num(start.x)}" y1="{_num(start.y)}" '
            f'x2="{_num(end.x)}" y2="{_num(end.y)}"{_stroke_attrs(color, width)}{dash} />'
        )

    def _control_point(self, start: Point, end: Point) -> Point:
        t = self._rng.uniform(0.2, 0.8)
        return Point(
            start.x + (end.x - start.x) * t + self._rng.uniform(-self.jitter, self.jitter),
            start.y + (end.y - start.y) * t + self._rng.uniform(-self.jitter, self.jitter),
        )

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def draw_text(
        self,
        text: str,
        h_align: HorizontalAlignment,
        v_align: VerticalAlignment,
        location: Point,
        size: Size,
        color: Color,
    ) -> None:
        lines = split_lines(text)
        line_h = self.font_size * LINE_HEIGHT
        total_h = len(lines) * line_h

        if h_align == "start":
            x = location.x
        elif h_align == "center":
            x = location.x + size.width / 2
        else:
            x = location.x + size.width

        if v_align == "start":
            top = location.y
        elif v_align == "center":
            top = location.y + (size.height - total_h) / 2
        else:
            top = location.y + size.height - total_h

        for i, line in enumerate(lines):
            y = top + line_h * (i + 0.5)
            self._parts.append(
                f'<text x="{_num(x)}" y="{_num(y)}" text-anchor="{_TEXT_ANCHORS[h_align]}" '
                f'dy="{TEXT_BASELINE_SHIFT}" font-size="{_num(self.font_size)}" '
                f'font-weight="{self.font_weight}"{_fill_attrs(color)}>{_escape_xml(line)}</text>'
            )

    def measure_text(self, text: str) -> Size:
        return estimate_text_size(text, self.font_size, self.font_weight)

    # ------------------------------------------------------------------
    # Offsets
    # ------------------------------------------------------------------

    def push_offset(self, dx: float, dy: float) -> None:
        self._parts.append(f'<g transform="translate({_num(dx)},{_num(dy)})">')
        self._depth += 1

    def pop_offset(self) -> None:
        if self._depth == 0:
            raise RuntimeError("pop_offset() without matching push_offset()")
        self._parts.append("</g>")
        self._depth -= 1

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_svg(
        self,
        width: float,
        height: float,
        background: Color,
        transparent: bool = False,
    ) -> str:
        if self._depth != 0:
            raise RuntimeError(f"{self._depth} offset(s) still pushed")
        return "\n".join([
            svg_open_tag(_num(width), _num(height), background, transparent),
            build_style_block(self.font),
            *self._parts,
            "</svg>",
        ])


def render_svg(diagram: SequenceDiagram, options: RenderOptions | None = None) -> str:
    """Render a built diagram to an SVG string."""
    if options is None:
        options = RenderOptions()
    ctx = SvgGraphicContext(
        font=options.font or "Inter",
        jitter=options.jitter or 0.0,
        seed=options.seed,
    )
    positioned = render(diagram, ctx, options)
    palette = resolve_palette(colors_from_options(options))
    return ctx.to_svg(
        max(positioned.width, 1),
        max(positioned.height, 1),
        palette.background,
        options.transparent or False,
    )


# ============================================================================
# Utilities
# ============================================================================


def _num(value: float) -> str:
    """Format a coordinate with at most two decimals and no trailing zeros."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _fill_attrs(color: Color) -> str:
    attrs = f' fill="{color.to_hex()}"'
    if color.a < 1:
        attrs += f' fill-opacity="{_num(color.a)}"'
    return attrs


def _stroke_attrs(color: Color, width: float) -> str:
    attrs = f' stroke="{color.to_hex()}" stroke-width="{_num(width)}"'
    if color.a < 1:
        attrs += f' stroke-opacity="{_num(color.a)}"'
    return attrs


def _escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
