from __future__ import annotations

from .types import Size

# ============================================================================
# Font metrics: character width estimates for Inter.
#
# Graphic contexts draw every label in one font; these estimates back the
# default measurer and the SVG backend's measure_text.
# ============================================================================

# Literal "\n" in labels requests a line break
LINE_BREAK = "\\n"

FONT_SIZE = 13
FONT_WEIGHT = 500
LINE_HEIGHT = 1.25


def estimate_text_width(text: str, font_size: float, font_weight: int) -> float:
    """Average character width in px at the given font size and weight (proportional font)."""
    if font_weight >= 600:
        width_ratio = 0.58
    elif font_weight >= 500:
        width_ratio = 0.55
    else:
        width_ratio = 0.52
    return len(text) * font_size * width_ratio


def split_lines(text: str) -> list[str]:
    return text.split(LINE_BREAK)


def estimate_text_size(
    text: str, font_size: float = FONT_SIZE, font_weight: int = FONT_WEIGHT
) -> Size:
    """Bounding box of a (possibly multi-line) label."""
    lines = split_lines(text)
    width = max(estimate_text_width(line, font_size, font_weight) for line in lines)
    return Size(width=width, height=len(lines) * font_size * LINE_HEIGHT)


# ============================================================================
# Stroke sizing constants
# ============================================================================

STROKE_WIDTHS = {
    "inner_box": 0.75,
    "connector": 0.75,
    "lifeline": 0.75,
}

TEXT_BASELINE_SHIFT = "0.35em"

ARROW_HEAD = {
    "width": 8.0,
    "height": 4.8,
}
