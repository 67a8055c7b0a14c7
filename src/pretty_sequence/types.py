from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# ============================================================================
# Geometry: pure value types shared by the layout engine and renderers
# ============================================================================

HorizontalAlignment = Literal["start", "center", "end"]
VerticalAlignment = Literal["start", "center", "end"]


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float

    def offset(self, dx: float, dy: float) -> Point:
        return Point(x=self.x + dx, y=self.y + dy)


@dataclass(frozen=True, slots=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Color:
    """Opaque RGB(+alpha) colour. Channels are 0-255, alpha is 0.0-1.0."""

    r: int
    g: int
    b: int
    a: float = 1.0

    @classmethod
    def from_hex(cls, value: str) -> Color:
        """Parse ``#rgb``, ``#rrggbb`` or ``#rrggbbaa``."""
        h = value.strip().lstrip("#")
        if len(h) == 3:
            h = "".join(c * 2 for c in h)
        if len(h) not in (6, 8):
            raise ValueError(f"Invalid hex colour: {value!r}")
        r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
        a = int(h[6:8], 16) / 255 if len(h) == 8 else 1.0
        return cls(r=r, g=g, b=b, a=a)

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def mix(self, other: Color, percent: float) -> Color:
        """Blend ``percent`` of this colour into ``other`` (like CSS color-mix)."""
        t = percent / 100
        return Color(
            r=round(self.r * t + other.r * (1 - t)),
            g=round(self.g * t + other.g * (1 - t)),
            b=round(self.b * t + other.b * (1 - t)),
            a=self.a * t + other.a * (1 - t),
        )


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)


# ============================================================================
# Render options (user-facing configuration)
# ============================================================================

@dataclass(slots=True)
class RenderOptions:
    bg: str | None = None
    fg: str | None = None
    line: str | None = None
    accent: str | None = None
    muted: str | None = None
    surface: str | None = None
    border: str | None = None
    font: str | None = None
    padding: int | None = None
    # Minimum distance between neighbouring participant centres
    participant_gap: int | None = None
    # Minimum vertical distance between two signals
    row_height: int | None = None
    transparent: bool | None = None
    # Name of a THEMES palette; explicit colours above override it
    theme: str | None = None
    # Hand-drawn stroke wobble in px (0 = straight lines); SVG backend only
    jitter: float | None = None
    seed: int | None = None
