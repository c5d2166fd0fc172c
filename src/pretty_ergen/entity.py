from __future__ import annotations

from dataclasses import dataclass, field

from .snapshot import ColumnInfo, TableInfo
from .styles import EntityMetrics, FK_MARKER, NOT_NULL_INSET, text_width
from .types import Point, Rectangle, Segment

# ============================================================================
# Entity geometry
#
# Turns a table's column list into pixel geometry relative to the box's own
# origin. Placement in the final image happens later, in the layout engine.
#
#   +--------------------------------------------+
#   | title                                      |   <- title band
#   +--------------------------------------------+
#   | # | logical | physical   | data type       |   <- primary-key rows
#   +--------------------------------------------+   <- separator
#   | # | logical | physical   | data type (FK)  |   <- remaining rows
#   +--------------------------------------------+
# ============================================================================


@dataclass(slots=True)
class Reference:
    """Target of a many-to-one link from a column."""

    schema: str = ""
    table: str = ""
    column: str = ""

    @property
    def valid(self) -> bool:
        return bool(self.schema or self.table or self.column)

    @property
    def fullname(self) -> str:
        return f"{self.schema}.{self.table}.{self.column}"


@dataclass(slots=True)
class Column:
    """One attribute of a table, drawn as one row of its box."""

    order: int
    physical_name: str
    logical_name: str = ""
    # Data type label, "(FK)" already appended for foreign keys
    data_type: str = ""
    is_primary_key: bool = False
    is_not_null: bool = False
    reference: Reference = field(default_factory=Reference)

    # Geometry filled in by Entity.build(), relative to the box origin
    frame: Rectangle | None = None
    not_null_mark: Rectangle | None = None
    logical_pos: Point | None = None
    physical_pos: Point | None = None
    data_type_pos: Point | None = None

    @classmethod
    def from_info(cls, info: ColumnInfo) -> Column:
        data_type = info.data_type
        reference = Reference()
        fk = info.foreign_key
        if fk is not None:
            reference = Reference(fk.table_schema, fk.table_name, fk.column_name)
            if reference.valid:
                data_type += FK_MARKER

        return cls(
            order=info.ordinal_position,
            physical_name=info.column_name,
            logical_name=info.comment,
            data_type=data_type,
            is_primary_key=info.is_primary_key,
            is_not_null=info.is_primary_key or not info.is_nullable,
            reference=reference,
        )


@dataclass(slots=True)
class ColumnWidths:
    """Widest label per cell, in monospace cells."""

    not_null: int = 1
    logical_name: int = 0
    physical_name: int = 0
    data_type: int = 0

    def pixels(self, unit: int) -> tuple[int, int, int, int]:
        """Cell widths in pixels; the logical cell collapses when unused."""
        return (
            (self.not_null + 1) * unit,
            (self.logical_name + 2) * unit if self.logical_name else 0,
            (self.physical_name + 2) * unit,
            (self.data_type + 2) * unit,
        )


class Entity:
    """A table rendered as one box.

    Geometry is computed once by :meth:`build` and never depends on where
    the box ends up, so collision rectangles are stable across layouts.
    """

    def __init__(
        self,
        schema: str,
        name: str,
        comment: str = "",
        columns: list[Column] | None = None,
        has_cascade_child: bool = False,
        metrics: EntityMetrics | None = None,
    ) -> None:
        self.schema = schema
        self.name = name
        self.comment = comment
        self.title = f"{comment} ({name})" if comment else name
        self.columns: list[Column] = list(columns or [])
        self.has_cascade_child = has_cascade_child
        self.metrics = metrics or EntityMetrics()

        self.primary_keys: list[Column] = []
        self.fields: list[Column] = []
        self.view = Rectangle(0, 0, 0, 0)
        self.title_pos = Point(0, 0)
        self.frame = Rectangle(0, 0, 0, 0)
        self.separator = Segment(0, 0, 0, 0)
        # Row rectangle per fully qualified column name
        self.collision: dict[str, Rectangle] = {}

        self.build()

    def __repr__(self) -> str:
        return f"Entity({self.fullname!r})"

    @classmethod
    def from_table_info(
        cls,
        info: TableInfo,
        metrics: EntityMetrics | None = None,
    ) -> Entity:
        cascade = any(
            c.foreign_key is not None and c.foreign_key.is_cascade
            for c in info.columns
        )
        return cls(
            schema=info.schema,
            name=info.name,
            comment=info.comment,
            columns=[Column.from_info(c) for c in info.columns],
            has_cascade_child=cascade,
            metrics=metrics,
        )

    @property
    def fullname(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def rows(self) -> list[Column]:
        """Columns in drawing order: primary keys first, then the rest."""
        return self.primary_keys + self.fields

    @property
    def has_foreign_key(self) -> bool:
        return any(c.reference.valid for c in self.columns)

    def qualified_name(self, column: Column) -> str:
        return f"{self.schema}.{self.name}.{column.physical_name}"

    # ------------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------------

    def column_widths(self) -> ColumnWidths:
        cw = ColumnWidths()
        for c in self.columns:
            cw.logical_name = max(cw.logical_name, text_width(c.logical_name))
            cw.physical_name = max(cw.physical_name, text_width(c.physical_name))
            cw.data_type = max(cw.data_type, text_width(c.data_type))
        return cw

    def column_total_width(self) -> int:
        """Pixel width of the four cells side by side."""
        return sum(self.column_widths().pixels(self.metrics.char_width))

    def title_width(self) -> int:
        return (text_width(self.title) + 2) * self.metrics.char_width

    def build(self) -> None:
        """Compute box size, row rectangles and text anchors."""
        m = self.metrics
        margin = m.margin
        unit = m.char_width
        row_h = m.row_height
        baseline = m.baseline

        ordered = sorted(self.columns, key=lambda c: c.order)
        self.primary_keys = [c for c in ordered if c.is_primary_key]
        self.fields = [c for c in ordered if not c.is_primary_key]

        cells = self.column_widths().pixels(unit)
        not_null_w, logical_w, physical_w, _ = cells

        column_w = sum(cells)
        inner_w = column_w + margin * 2
        title_w = self.title_width()
        if title_w > column_w:
            inner_w = title_w + margin * 2
        rows_h = len(ordered) * row_h

        # Left edges of the not-null / logical / physical / data-type cells
        cell_left = (
            margin + unit // 2,
            margin + not_null_w,
            margin + not_null_w + logical_w,
            margin + not_null_w + logical_w + physical_w,
        )

        top = row_h + margin // 2
        separator_y = top + len(self.primary_keys) * row_h

        self.view = Rectangle(0, 0, inner_w + margin * 2, rows_h + margin * 2 + row_h)
        self.title_pos = Point(margin, row_h + margin - baseline)
        self.frame = Rectangle(margin, top, inner_w, rows_h)
        self.separator = Segment(margin, separator_y, margin + inner_w, separator_y)
        self.collision = {}

        y = top
        for column in self.rows:
            frame = Rectangle(margin, y, inner_w, row_h)
            self.collision[self.qualified_name(column)] = frame
            column.frame = frame
            column.not_null_mark = None
            if column.is_not_null:
                column.not_null_mark = Rectangle(
                    cell_left[0],
                    y + NOT_NULL_INSET,
                    unit // 2,
                    row_h - NOT_NULL_INSET * 2,
                )
            text_y = y + row_h - baseline
            column.logical_pos = Point(cell_left[1], text_y)
            column.physical_pos = Point(cell_left[2], text_y)
            column.data_type_pos = Point(cell_left[3], text_y)
            y += row_h
