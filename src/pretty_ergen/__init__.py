"""pretty-ergen: render entity-relationship diagrams of relational schemas to SVG."""

from __future__ import annotations

from collections.abc import Iterable

from .types import RenderOptions, PositionedDiagram
from .theme import DiagramColors, THEMES, DEFAULTS
from .snapshot import TableInfo, ColumnInfo, ForeignKey, load_snapshot, load_snapshot_json
from .entity import Entity, Column, Reference
from .graph import SchemaGraph
from .layout import Canvas
from .renderer import render_diagram, render_svg
from .sink import DrawingSink, SvgSink

__all__ = [
    "render_schema",
    "load_snapshot",
    "load_snapshot_json",
    "Canvas",
    "Entity",
    "Column",
    "Reference",
    "SchemaGraph",
    "TableInfo",
    "ColumnInfo",
    "ForeignKey",
    "RenderOptions",
    "PositionedDiagram",
    "DiagramColors",
    "DrawingSink",
    "SvgSink",
    "THEMES",
    "DEFAULTS",
    "render_diagram",
    "render_svg",
]


def render_schema(
    tables: Iterable[TableInfo],
    options: RenderOptions | None = None,
) -> str:
    """Render a schema snapshot to an SVG string.

    Each table becomes one box; foreign keys become connectors between rows.
    """
    canvas = Canvas(options)
    for info in tables:
        canvas.register_table(info)
    return canvas.to_svg()
