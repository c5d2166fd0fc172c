from __future__ import annotations

from typing import Protocol

# ============================================================================
# Drawing sinks
#
# The renderer only talks to this primitive set. Any backend that can draw
# rectangles, lines, cubic curves and text (SVG, canvas, PDF) can implement
# it. Styles are small key/value maps: fill, stroke, font-family, font-size.
# ============================================================================

Style = dict[str, str]


class DrawingSink(Protocol):
    def start(self, width: int, height: int) -> None: ...

    def end(self) -> None: ...

    def group(self, id: str, style: Style) -> None: ...

    def group_end(self) -> None: ...

    def rect(self, x: int, y: int, w: int, h: int, style: Style) -> None: ...

    def roundrect(
        self, x: int, y: int, w: int, h: int, rx: int, ry: int, style: Style
    ) -> None: ...

    def line(self, x1: int, y1: int, x2: int, y2: int, style: Style) -> None: ...

    def bezier(
        self,
        sx: int, sy: int,
        cx: int, cy: int,
        px: int, py: int,
        ex: int, ey: int,
        style: Style,
    ) -> None: ...

    def text(self, x: int, y: int, text: str, style: Style | None = None) -> None: ...


def style_string(style: Style) -> str:
    """Serialize a style map as ``key:value;key:value``."""
    return ";".join(f"{key}:{value}" for key, value in style.items())


# ============================================================================
# SVG backend
# ============================================================================


class SvgSink:
    """Accumulates SVG markup; :meth:`getvalue` returns the document."""

    def __init__(self) -> None:
        self.parts: list[str] = []

    def getvalue(self) -> str:
        return "\n".join(self.parts)

    def start(self, width: int, height: int) -> None:
        self.parts.append(
            f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}" '
            f'width="{width}" height="{height}">'
        )

    def end(self) -> None:
        self.parts.append("</svg>")

    def group(self, id: str, style: Style) -> None:
        self.parts.append(f'<g id="{_escape_xml(id)}"{_style_attr(style)}>')

    def group_end(self) -> None:
        self.parts.append("</g>")

    def rect(self, x: int, y: int, w: int, h: int, style: Style) -> None:
        self.parts.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="{h}"{_style_attr(style)} />'
        )

    def roundrect(
        self, x: int, y: int, w: int, h: int, rx: int, ry: int, style: Style
    ) -> None:
        self.parts.append(
            f'<rect x="{x}" y="{y}" width="{w}" height="{h}" '
            f'rx="{rx}" ry="{ry}"{_style_attr(style)} />'
        )

    def line(self, x1: int, y1: int, x2: int, y2: int, style: Style) -> None:
        self.parts.append(
            f'<line x1="{x1}" y1="{y1}" x2="{x2}" y2="{y2}"{_style_attr(style)} />'
        )

    def bezier(
        self,
        sx: int, sy: int,
        cx: int, cy: int,
        px: int, py: int,
        ex: int, ey: int,
        style: Style,
    ) -> None:
        self.parts.append(
            f'<path d="M{sx},{sy} C{cx},{cy} {px},{py} {ex},{ey}"{_style_attr(style)} />'
        )

    def text(self, x: int, y: int, text: str, style: Style | None = None) -> None:
        self.parts.append(
            f'<text x="{x}" y="{y}"{_style_attr(style)}>{_escape_xml(text)}</text>'
        )


def _style_attr(style: Style | None) -> str:
    if not style:
        return ""
    return f' style="{_escape_xml(style_string(style))}"'


def _escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )
