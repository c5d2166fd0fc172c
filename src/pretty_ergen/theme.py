from __future__ import annotations

from dataclasses import dataclass

from .styles import TYPE_ACCENT
from .types import RenderOptions

# ============================================================================
# Types
# ============================================================================


@dataclass(slots=True)
class DiagramColors:
    """Diagram color configuration.

    Required: bg + fg give you a plain black-on-white diagram.
    Optional: line colours frames and connectors, accent colours data types.
    """

    bg: str
    fg: str
    line: str | None = None
    accent: str | None = None

    @property
    def stroke(self) -> str:
        return self.line or self.fg

    @property
    def type_fill(self) -> str:
        return self.accent or TYPE_ACCENT


# ============================================================================
# Defaults
# ============================================================================

DEFAULTS = {"bg": "white", "fg": "black"}

# ============================================================================
# Well-known theme palettes
# ============================================================================

THEMES: dict[str, DiagramColors] = {
    "classic": DiagramColors(bg="white", fg="black"),
    "zinc-dark": DiagramColors(bg="#18181B", fg="#FAFAFA", accent="#D4A373"),
    "tokyo-night": DiagramColors(
        bg="#1a1b26", fg="#a9b1d6", line="#3d59a1", accent="#7aa2f7",
    ),
    "nord": DiagramColors(
        bg="#2e3440", fg="#d8dee9", line="#4c566a", accent="#88c0d0",
    ),
    "github-light": DiagramColors(
        bg="#ffffff", fg="#1f2328", line="#59636e", accent="#0969da",
    ),
    "github-dark": DiagramColors(
        bg="#0d1117", fg="#e6edf3", line="#9198a1", accent="#4493f8",
    ),
    "solarized-light": DiagramColors(
        bg="#fdf6e3", fg="#657b83", line="#93a1a1", accent="#268bd2",
    ),
}


def resolve_colors(options: RenderOptions | None) -> DiagramColors:
    """Build DiagramColors from a named theme plus explicit overrides."""
    if options is None:
        return DiagramColors(bg=DEFAULTS["bg"], fg=DEFAULTS["fg"])

    base = DiagramColors(bg=DEFAULTS["bg"], fg=DEFAULTS["fg"])
    if options.theme is not None:
        if options.theme not in THEMES:
            known = ", ".join(sorted(THEMES))
            raise ValueError(f"Unknown theme {options.theme!r} (known: {known})")
        base = THEMES[options.theme]

    return DiagramColors(
        bg=options.bg or base.bg,
        fg=options.fg or base.fg,
        line=options.line or base.line,
        accent=options.accent or base.accent,
    )
