from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from .types import Color, RenderOptions

# ============================================================================
# Types
# ============================================================================


@dataclass(slots=True)
class DiagramColors:
    """Diagram color configuration.

    Required: bg + fg give you a clean mono diagram.
    Optional: line, accent, muted, surface, border bring in richer color.
    """

    bg: str
    fg: str
    line: str | None = None
    accent: str | None = None
    muted: str | None = None
    surface: str | None = None
    border: str | None = None


@dataclass(frozen=True, slots=True)
class Palette:
    """Concrete colours handed to a graphic context, one per diagram role."""

    background: Color
    text: Color
    text_muted: Color
    line: Color
    arrow: Color
    node_fill: Color
    node_stroke: Color
    fragment_header: Color
    activation_fill: Color


# ============================================================================
# Defaults
# ============================================================================

DEFAULTS = {"bg": "#FFFFFF", "fg": "#27272A"}

# ============================================================================
# Mix weights (percent of fg blended into bg) for derived colours
# ============================================================================

MIX = {
    "text_muted": 60,
    "line": 30,
    "arrow": 60,
    "node_fill": 3,
    "node_stroke": 20,
    "fragment_header": 5,
    "activation_fill": 8,
}

# ============================================================================
# Well-known theme palettes
# ============================================================================

THEMES: dict[str, DiagramColors] = {
    "zinc-dark": DiagramColors(bg="#18181B", fg="#FAFAFA"),
    "tokyo-night": DiagramColors(
        bg="#1a1b26", fg="#a9b1d6",
        line="#3d59a1", accent="#7aa2f7", muted="#565f89",
    ),
    "catppuccin-latte": DiagramColors(
        bg="#eff1f5", fg="#4c4f69",
        line="#9ca0b0", accent="#8839ef", muted="#9ca0b0",
    ),
    "nord": DiagramColors(
        bg="#2e3440", fg="#d8dee9",
        line="#4c566a", accent="#88c0d0", muted="#616e88",
    ),
    "github-light": DiagramColors(
        bg="#ffffff", fg="#1f2328",
        line="#d1d9e0", accent="#0969da", muted="#59636e",
    ),
    "github-dark": DiagramColors(
        bg="#0d1117", fg="#e6edf3",
        line="#3d444d", accent="#4493f8", muted="#9198a1",
    ),
    "solarized-light": DiagramColors(
        bg="#fdf6e3", fg="#657b83",
        line="#93a1a1", accent="#268bd2", muted="#93a1a1",
    ),
}


def colors_from_options(options: RenderOptions) -> DiagramColors:
    """Build DiagramColors from render options, layered over the named theme."""
    if options.theme is not None:
        if options.theme not in THEMES:
            raise ValueError(f"Unknown theme: {options.theme!r}")
        base = THEMES[options.theme]
    else:
        base = DiagramColors(bg=DEFAULTS["bg"], fg=DEFAULTS["fg"])
    return DiagramColors(
        bg=options.bg or base.bg,
        fg=options.fg or base.fg,
        line=options.line or base.line,
        accent=options.accent or base.accent,
        muted=options.muted or base.muted,
        surface=options.surface or base.surface,
        border=options.border or base.border,
    )


def resolve_palette(colors: DiagramColors) -> Palette:
    """Derive every role colour from bg/fg, preferring explicit enrichment colours."""
    bg = Color.from_hex(colors.bg)
    fg = Color.from_hex(colors.fg)

    def pick(explicit: str | None, weight_key: str) -> Color:
        if explicit:
            return Color.from_hex(explicit)
        return fg.mix(bg, MIX[weight_key])

    return Palette(
        background=bg,
        text=fg,
        text_muted=pick(colors.muted, "text_muted"),
        line=pick(colors.line, "line"),
        arrow=pick(colors.accent, "arrow"),
        node_fill=pick(colors.surface, "node_fill"),
        node_stroke=pick(colors.border, "node_stroke"),
        fragment_header=fg.mix(bg, MIX["fragment_header"]),
        activation_fill=fg.mix(bg, MIX["activation_fill"]),
    )


# ============================================================================
# SVG style block
# ============================================================================


def build_style_block(font: str) -> str:
    """Build the <style> block that loads and applies the label font."""
    font_import = (
        f"@import url('https://fonts.googleapis.com/css2?family={quote(font)}"
        ":wght@400;500;600;700&amp;display=swap');"
    )
    return "\n".join([
        "<style>",
        f"  {font_import}",
        f"  text {{ font-family: '{font}', system-ui, sans-serif; }}",
        "</style>",
    ])


def svg_open_tag(
    width: float | str,
    height: float | str,
    background: Color,
    transparent: bool = False,
) -> str:
    """Build the SVG opening tag."""
    bg_style = "" if transparent else f' style="background:{background.to_hex()}"'
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}" '
        f'width="{width}" height="{height}"{bg_style}>'
    )
