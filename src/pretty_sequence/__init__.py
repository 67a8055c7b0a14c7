"""pretty-sequence — Compile sequence-diagram notation and render it to SVG."""

from __future__ import annotations

from .types import RenderOptions, Point, Size, Color
from .theme import DiagramColors, THEMES, DEFAULTS
from .graphics import GraphicContext, offset
from .sequence import (
    AstError,
    SequenceDiagram,
    compile_diagram,
    layout_sequence_diagram,
    render,
)
from .svg import SvgGraphicContext, render_svg

__all__ = [
    "compile_diagram",
    "render",
    "render_sequence_svg",
    "layout_sequence_diagram",
    "render_svg",
    "SvgGraphicContext",
    "GraphicContext",
    "offset",
    "AstError",
    "SequenceDiagram",
    "THEMES",
    "DEFAULTS",
    "RenderOptions",
    "DiagramColors",
    "Point",
    "Size",
    "Color",
]


def render_sequence_svg(
    text: str,
    options: RenderOptions | None = None,
) -> str:
    """Compile notation text and render it to an SVG string.

    Malformed lines are skipped; whatever compiled is still rendered.
    Use compile_diagram() directly to inspect the errors.
    """
    diagram, _errors = compile_diagram(text)
    return render_svg(diagram, options)
