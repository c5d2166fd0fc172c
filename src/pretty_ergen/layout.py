from __future__ import annotations

import logging
from dataclasses import dataclass

from .entity import Entity
from .graph import SchemaGraph
from .renderer import render_diagram
from .sink import DrawingSink, SvgSink
from .snapshot import TableInfo
from .styles import EntityMetrics, LAYOUT_SPACING, MONO_FONT
from .theme import resolve_colors
from .types import (
    Connector,
    Curve,
    IsolatedStrip,
    Level,
    PlacedEntity,
    Point,
    PositionedDiagram,
    Rectangle,
    Region,
    RenderOptions,
    Segment,
)

# ============================================================================
# Schema layout engine
#
# 1. Link entities into a graph through their foreign keys
# 2. Pull out tables with no links at all into the isolated strip
# 3. Split the rest into connected regions, each a row of levels
# 4. Stack the isolated strip and the regions top to bottom
# 5. Route connectors between levels of the same region
#
#   +--------------------------------------------------+
#   | [iso] [iso] [iso]                                |   isolated strip
#   |                                                  |
#   | [lv -1]  [lv 0]  [lv 1]                          |   region 0
#   | [lv -1]  [lv 0]                                  |
#   |                                                  |
#   | [lv 0]   [lv 1]                                  |   region 1
#   +--------------------------------------------------+
#
# All coordinates are integer pixels.
# ============================================================================

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Slot:
    """Where a placed entity sits inside its region."""

    region: int
    level: int
    placed: PlacedEntity


class Canvas:
    """Collects entities and lays them out as one diagram.

    The graph is rebuilt from the registered entities on every call to
    :meth:`layout`, so a canvas can be laid out and rendered repeatedly.
    """

    def __init__(self, options: RenderOptions | None = None) -> None:
        self.options = options or RenderOptions()
        self.spacing = LAYOUT_SPACING if self.options.spacing is None else self.options.spacing
        self.metrics = EntityMetrics.from_options(options)
        self.entities: list[Entity] = []

    def register(self, entity: Entity) -> None:
        self.entities.append(entity)

    def register_table(self, info: TableInfo) -> Entity:
        """Build an entity from a snapshot record with the canvas metrics."""
        entity = Entity.from_table_info(info, self.metrics)
        self.register(entity)
        return entity

    def layout(self) -> PositionedDiagram:
        if len(self.entities) == 0:
            return PositionedDiagram(width=0, height=0)

        space = self.spacing
        graph = SchemaGraph(self.entities)
        partition = graph.partition()

        isolated = build_isolated_strip(
            [graph.nodes[i].entity for i in partition.isolated], space
        )
        regions = [
            build_region(
                [(graph.nodes[i].entity, offset) for i, offset in offsets.items()],
                space,
            )
            for offsets in partition.regions
        ]

        width = isolated.width
        height = isolated.height
        for region in regions:
            width = max(width, region.width)
            height += space + region.height

        diagram = PositionedDiagram(
            width=width, height=height, isolated=isolated, regions=regions
        )

        x = 0
        for entity in isolated.members:
            diagram.entities.append(PlacedEntity(entity, x, 0))
            x += entity.view.w + space

        slots: list[_Slot] = []
        region_y = isolated.height + space
        for ri, region in enumerate(regions):
            region.y = region_y
            for li, placed in place_region(region, space):
                diagram.entities.append(placed)
                slots.append(_Slot(ri, li, placed))
            region_y += region.height + space

        diagram.connectors = route_connectors(regions, slots, space)
        logger.debug(
            "Laid out %d tables: %d isolated, %d regions, %d connectors",
            len(self.entities),
            len(isolated.members),
            len(regions),
            len(diagram.connectors),
        )
        return diagram

    def render(self, sink: DrawingSink) -> None:
        """Lay out the registered entities and draw them into ``sink``."""
        render_diagram(
            self.layout(),
            sink,
            resolve_colors(self.options),
            font=self.options.font or MONO_FONT,
            font_size=self.metrics.font_size,
            transparent=self.options.transparent or False,
        )

    def to_svg(self) -> str:
        sink = SvgSink()
        self.render(sink)
        return sink.getvalue()


# ============================================================================
# Strip & region assembly
# ============================================================================


def build_isolated_strip(entities: list[Entity], space: int) -> IsolatedStrip:
    width = 0
    height = 0
    for e in entities:
        width += e.view.w + space
        height = max(height, e.view.h)
    return IsolatedStrip(width=width, height=height, members=list(entities))


def build_region(offsets: list[tuple[Entity, int]], space: int) -> Region:
    """Group a region's entities by offset into levels, left to right."""
    by_offset: dict[int, list[Entity]] = {}
    for entity, offset in offsets:
        by_offset.setdefault(offset, []).append(entity)

    levels: list[Level] = []
    width = 0
    height = 0
    for offset in sorted(by_offset):
        members = by_offset[offset]
        lw = max(e.view.w for e in members)
        lh = sum(e.view.h for e in members) + (len(members) - 1) * space
        levels.append(Level(offset=offset, width=lw, height=lh, members=members))
        width += lw + space
        height = max(height, lh)

    return Region(width=width + space, height=height + space, levels=levels)


def place_region(region: Region, space: int) -> list[tuple[int, PlacedEntity]]:
    """Center each entity in its level slot; returns (level index, placement)."""
    half = space >> 1
    placements: list[tuple[int, PlacedEntity]] = []
    x = 0
    for li, level in enumerate(region.levels):
        level.x = x
        y = 0
        for entity in level.members:
            inset = (level.width + space - entity.view.w) // 2
            placements.append((li, PlacedEntity(entity, x + inset, region.y + y + half)))
            y += entity.view.h + space
        x += level.width + space
    return placements


# ============================================================================
# Connector routing
# ============================================================================


def route_connectors(
    regions: list[Region],
    slots: list[_Slot],
    space: int,
) -> list[Connector]:
    """Link every foreign-key row to the row it references.

    The target is looked up by fully qualified column name among the levels
    to the right of the source, inside the same region, nearest level first.
    References pointing left, into the same level, into another region or
    at an isolated table are not routed.
    """
    # Fully qualified column name -> every slot whose entity owns that row
    index: dict[str, list[tuple[_Slot, Rectangle]]] = {}
    for slot in slots:
        for name, rect in slot.placed.entity.collision.items():
            index.setdefault(name, []).append((slot, rect))

    connectors: list[Connector] = []
    for slot in slots:
        entity = slot.placed.entity
        for column in entity.rows:
            ref = column.reference
            if not ref.valid:
                continue
            target = _find_target(index.get(ref.fullname, []), slot)
            if target is None:
                logger.debug(
                    "No connector for %s -> %s", entity.qualified_name(column), ref.fullname
                )
                continue
            connector = Connector(source=entity.qualified_name(column), target=ref.fullname)
            _route(connector, regions[slot.region], slot, column.frame, target, space)
            connectors.append(connector)
    return connectors


def _find_target(
    candidates: list[tuple[_Slot, Rectangle]],
    source: _Slot,
) -> tuple[_Slot, Rectangle] | None:
    best: tuple[_Slot, Rectangle] | None = None
    for slot, rect in candidates:
        if slot.region != source.region or slot.level <= source.level:
            continue
        # Candidates are in placement order, so the first hit per level wins
        if best is None or slot.level < best[0].level:
            best = (slot, rect)
    return best


def _route(
    connector: Connector,
    region: Region,
    source: _Slot,
    source_row: Rectangle,
    target_hit: tuple[_Slot, Rectangle],
    space: int,
) -> None:
    target, target_row = target_hit
    half = space >> 1
    levels = region.levels
    src_level = levels[source.level]
    dst_level = levels[target.level]

    # Right edge of the source slot and left edge of the target slot
    cpx = src_level.x + src_level.width + space
    nx = dst_level.x

    x1 = source.placed.x + source_row.x + source_row.w
    y1 = source.placed.y + source_row.y + source_row.h // 2
    x2 = target.placed.x + target_row.x
    y2 = target.placed.y + target_row.y + target_row.h // 2

    if cpx == nx:
        connector.curves.append(
            Curve(Point(x1, y1), Point(cpx, y1), Point(nx, y2), Point(x2, y2))
        )
        return

    # Route around the levels in between along the region's top or bottom
    hh = max(lvl.height + half for lvl in levels[source.level + 1 : target.level + 1])
    local_y1 = y1 - region.y
    local_y2 = y2 - region.y
    mid = (max(local_y1, local_y2) - min(local_y1, local_y2)) // 2 + min(local_y1, local_y2)
    channel = region.y + (hh if mid > hh // 2 else 0)

    connector.curves.append(
        Curve(Point(x1, y1), Point(cpx, y1), Point(cpx, channel), Point(cpx + half, channel))
    )
    connector.curves.append(
        Curve(Point(x2, y2), Point(nx, y2), Point(nx, channel), Point(nx - half, channel))
    )
    connector.lines.append(Segment(cpx + half, channel, nx - half, channel))
