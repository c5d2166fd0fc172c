from __future__ import annotations

from .sink import DrawingSink, Style, SvgSink
from .styles import DEFAULT_FONT_SIZE, MONO_FONT
from .theme import DiagramColors
from .types import Connector, PlacedEntity, PositionedDiagram

# ============================================================================
# Diagram renderer
#
# Walks a positioned diagram and emits drawing primitives in absolute image
# coordinates. Holds no state between calls.
#
# Render order:
#   1. Background
#   2. Entity boxes (isolated strip, then regions, levels, members)
#   3. Connectors
# ============================================================================


def render_diagram(
    diagram: PositionedDiagram,
    sink: DrawingSink,
    colors: DiagramColors,
    font: str = MONO_FONT,
    font_size: int = DEFAULT_FONT_SIZE,
    transparent: bool = False,
) -> None:
    """Draw ``diagram`` into ``sink``.

    Args:
        diagram: The positioned diagram to draw.
        sink: Backend receiving the primitives.
        colors: DiagramColors with bg/fg and optional line/accent colours.
        font: Font family for all labels.
        font_size: Font size in px, matching the entity metrics.
        transparent: If True, no background rectangle is drawn.
    """
    line_style: Style = {"fill": "none", "stroke": colors.stroke}
    font_style: Style = {
        "fill": colors.fg,
        "stroke": "none",
        "font-family": font,
        "font-size": f"{font_size}px",
    }
    type_style: Style = {"fill": colors.type_fill}

    sink.start(diagram.width, diagram.height)
    if not transparent:
        sink.rect(0, 0, diagram.width, diagram.height, {"fill": colors.bg, "stroke": "none"})

    for placed in diagram.entities:
        _render_entity(sink, placed, line_style, font_style, type_style)

    for connector in diagram.connectors:
        _render_connector(sink, connector, line_style)

    sink.end()


def render_svg(
    diagram: PositionedDiagram,
    colors: DiagramColors,
    font: str = MONO_FONT,
    font_size: int = DEFAULT_FONT_SIZE,
    transparent: bool = False,
) -> str:
    """Render a positioned diagram as an SVG string."""
    sink = SvgSink()
    render_diagram(diagram, sink, colors, font, font_size, transparent)
    return sink.getvalue()


# ============================================================================
# Entity box rendering
# ============================================================================


def _render_entity(
    sink: DrawingSink,
    placed: PlacedEntity,
    line_style: Style,
    font_style: Style,
    type_style: Style,
) -> None:
    e = placed.entity
    dx = placed.x
    dy = placed.y

    sink.group(e.fullname, font_style)
    sink.text(dx + e.title_pos.x, dy + e.title_pos.y, e.title)

    frame = e.frame
    if e.has_cascade_child:
        radius = e.metrics.radius
        sink.roundrect(dx + frame.x, dy + frame.y, frame.w, frame.h, radius, radius, line_style)
    else:
        sink.rect(dx + frame.x, dy + frame.y, frame.w, frame.h, line_style)

    sep = e.separator
    sink.line(dx + sep.x1, dy + sep.y1, dx + sep.x2, dy + sep.y2, line_style)

    for c in e.rows:
        if c.not_null_mark is not None:
            r = c.not_null_mark
            sink.rect(dx + r.x, dy + r.y, r.w, r.h, line_style)
        sink.text(dx + c.logical_pos.x, dy + c.logical_pos.y, c.logical_name)
        sink.text(dx + c.physical_pos.x, dy + c.physical_pos.y, c.physical_name)
        sink.text(dx + c.data_type_pos.x, dy + c.data_type_pos.y, c.data_type, type_style)

    sink.group_end()


def _render_connector(sink: DrawingSink, connector: Connector, line_style: Style) -> None:
    for curve in connector.curves:
        sink.bezier(
            curve.start.x, curve.start.y,
            curve.control1.x, curve.control1.y,
            curve.control2.x, curve.control2.y,
            curve.end.x, curve.end.y,
            line_style,
        )
    for seg in connector.lines:
        sink.line(seg.x1, seg.y1, seg.x2, seg.y2, line_style)
