from __future__ import annotations

from dataclasses import dataclass

from .types import RenderOptions

# ============================================================================
# Text metrics -- monospace cells, wide glyphs take two cells
# ============================================================================


def text_width(text: str) -> int:
    """Width of ``text`` in monospace cells.

    Code points below 256 occupy one cell, everything else (CJK, symbols,
    emoji) occupies two. Layout reproducibility depends on this exact rule.
    """
    width = 0
    for ch in text:
        width += 1 if ord(ch) < 256 else 2
    return width


# Monospace font family used for every label in the diagram
MONO_FONT = "monospace"

# Font colour of data-type labels when no accent is configured
TYPE_ACCENT = "#6b3400"

# ============================================================================
# Spacing & sizing constants
# ============================================================================

# Gap between tables, levels and regions
LAYOUT_SPACING = 48

DEFAULT_FONT_SIZE = 16
DEFAULT_CHAR_WIDTH = 8
BOX_MARGIN = 2
CELL_PADDING = 2

# Inset of the not-null marker inside its row
NOT_NULL_INSET = 4

FK_MARKER = "(FK)"


@dataclass(slots=True, frozen=True)
class EntityMetrics:
    """Pixel metrics driving entity box geometry."""

    font_size: int = DEFAULT_FONT_SIZE
    char_width: int = DEFAULT_CHAR_WIDTH
    margin: int = BOX_MARGIN
    padding: int = CELL_PADDING

    @property
    def row_height(self) -> int:
        return self.font_size + self.padding * 2

    @property
    def baseline(self) -> int:
        # Distance from the bottom of a row to the text baseline
        return 2 + self.padding

    @property
    def radius(self) -> int:
        return self.font_size >> 2

    @classmethod
    def from_options(cls, options: RenderOptions | None) -> EntityMetrics:
        if options is None:
            return cls()
        return cls(
            font_size=DEFAULT_FONT_SIZE if options.font_size is None else options.font_size,
            char_width=DEFAULT_CHAR_WIDTH if options.char_width is None else options.char_width,
        )
