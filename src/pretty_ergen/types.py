from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entity import Entity

# ============================================================================
# Geometry primitives -- integer pixels, relative to whatever origin owns them
# ============================================================================


@dataclass(slots=True, frozen=True)
class Point:
    x: int
    y: int


@dataclass(slots=True, frozen=True)
class Rectangle:
    x: int
    y: int
    w: int
    h: int


@dataclass(slots=True, frozen=True)
class Segment:
    x1: int
    y1: int
    x2: int
    y2: int


@dataclass(slots=True, frozen=True)
class Curve:
    """Cubic bezier: start, two control points, end."""

    start: Point
    control1: Point
    control2: Point
    end: Point


# ============================================================================
# Positioned diagram -- after layout, ready for rendering
# ============================================================================


@dataclass(slots=True)
class PlacedEntity:
    """An entity box translated to absolute image coordinates."""

    entity: Entity
    x: int
    y: int


@dataclass(slots=True)
class Level:
    """Tables sharing one offset inside a region."""

    offset: int
    width: int
    height: int
    members: list[Entity] = field(default_factory=list)
    # Left edge of the level slot, filled in during placement
    x: int = 0


@dataclass(slots=True)
class Region:
    """One connected component of the foreign-key graph."""

    width: int
    height: int
    levels: list[Level] = field(default_factory=list)
    # Top edge in image coordinates, filled in during placement
    y: int = 0


@dataclass(slots=True)
class IsolatedStrip:
    """Tables without foreign keys in either direction, laid out in one row."""

    width: int
    height: int
    members: list[Entity] = field(default_factory=list)


@dataclass(slots=True)
class Connector:
    """A routed link from a foreign-key row to the row it references."""

    # Fully qualified source and target column names
    source: str
    target: str
    curves: list[Curve] = field(default_factory=list)
    lines: list[Segment] = field(default_factory=list)


@dataclass(slots=True)
class PositionedDiagram:
    """Fully positioned diagram ready for rendering."""

    width: int
    height: int
    isolated: IsolatedStrip | None = None
    regions: list[Region] = field(default_factory=list)
    entities: list[PlacedEntity] = field(default_factory=list)
    connectors: list[Connector] = field(default_factory=list)


# ============================================================================
# Render options -- user-facing configuration
# ============================================================================


@dataclass(slots=True)
class RenderOptions:
    theme: str | None = None
    bg: str | None = None
    fg: str | None = None
    line: str | None = None
    accent: str | None = None
    font: str | None = None
    font_size: int | None = None
    char_width: int | None = None
    spacing: int | None = None
    transparent: bool | None = None
