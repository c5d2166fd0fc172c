"""Tests for entity geometry.

Covers: column ordering, cell widths, box sizing (column- vs title-driven),
row rectangles and text anchors, foreign-key / not-null / cascade flags.
"""
from __future__ import annotations

import pytest

from pretty_ergen.entity import Column, Entity, Reference
from pretty_ergen.snapshot import ColumnInfo, ForeignKey, TableInfo
from pretty_ergen.styles import EntityMetrics, text_width
from pretty_ergen.types import Point, Rectangle, RenderOptions, Segment


def customers() -> TableInfo:
    return TableInfo(
        schema="public",
        name="customers",
        columns=[
            ColumnInfo("id", 1, "integer", is_nullable=False, is_primary_key=True),
        ],
    )


def orders(delete_rule: str = "") -> TableInfo:
    return TableInfo(
        schema="public",
        name="orders",
        columns=[
            ColumnInfo(
                "customer_id", 2, "integer",
                foreign_key=ForeignKey(
                    constraint_name="orders_customer_id_fkey",
                    table_schema="public",
                    table_name="customers",
                    column_name="id",
                    delete_rule=delete_rule,
                ),
            ),
            ColumnInfo("id", 1, "integer", is_nullable=False, is_primary_key=True),
        ],
    )


# ============================================================================
# Text metrics
# ============================================================================


class TestTextWidth:
    def test_counts_latin_characters_as_one_cell(self):
        assert text_width("orders") == 6

    def test_counts_latin1_accents_as_one_cell(self):
        assert text_width("café") == 4

    def test_counts_wide_characters_as_two_cells(self):
        assert text_width("顧客") == 4
        assert text_width("id 番号") == 7

    def test_empty_string_is_zero(self):
        assert text_width("") == 0


# ============================================================================
# Column construction
# ============================================================================


class TestColumnFromInfo:
    def test_appends_fk_marker_to_data_type(self):
        c = Column.from_info(orders().columns[0])
        assert c.data_type == "integer(FK)"
        assert c.reference == Reference("public", "customers", "id")
        assert c.reference.valid
        assert c.reference.fullname == "public.customers.id"

    def test_plain_column_has_invalid_reference(self):
        c = Column.from_info(ColumnInfo("name", 2, "text"))
        assert c.data_type == "text"
        assert not c.reference.valid

    def test_primary_key_is_required(self):
        c = Column.from_info(ColumnInfo("id", 1, "integer", is_primary_key=True))
        assert c.is_not_null

    def test_not_nullable_column_is_required(self):
        c = Column.from_info(ColumnInfo("email", 2, "text", is_nullable=False))
        assert c.is_not_null

    def test_nullable_column_is_optional(self):
        c = Column.from_info(ColumnInfo("nickname", 2, "text"))
        assert not c.is_not_null

    def test_comment_becomes_logical_name(self):
        c = Column.from_info(ColumnInfo("email", 2, "text", comment="E-mail"))
        assert c.logical_name == "E-mail"

    def test_reference_with_only_a_column_is_valid(self):
        assert Reference(column="id").valid
        assert not Reference().valid


# ============================================================================
# Entity construction
# ============================================================================


class TestEntityFromTableInfo:
    def test_title_is_table_name_without_comment(self):
        e = Entity.from_table_info(customers())
        assert e.title == "customers"

    def test_title_includes_comment(self):
        info = customers()
        info.comment = "Customer master"
        e = Entity.from_table_info(info)
        assert e.title == "Customer master (customers)"

    def test_primary_keys_come_first(self):
        e = Entity.from_table_info(orders())
        assert [c.physical_name for c in e.rows] == ["id", "customer_id"]

    def test_groups_are_ordered_by_ordinal_position(self):
        info = TableInfo(
            schema="public",
            name="t",
            columns=[
                ColumnInfo("c", 5, "text"),
                ColumnInfo("k2", 4, "int", is_primary_key=True),
                ColumnInfo("a", 2, "text"),
                ColumnInfo("k1", 3, "int", is_primary_key=True),
            ],
        )
        e = Entity.from_table_info(info)
        assert [c.physical_name for c in e.primary_keys] == ["k1", "k2"]
        assert [c.physical_name for c in e.fields] == ["a", "c"]

    def test_cascade_delete_marks_cascade_child(self):
        assert Entity.from_table_info(orders(delete_rule="CASCADE")).has_cascade_child

    def test_cascade_rule_is_case_insensitive(self):
        assert Entity.from_table_info(orders(delete_rule="cascade")).has_cascade_child

    def test_restrict_is_not_cascade(self):
        assert not Entity.from_table_info(orders(delete_rule="RESTRICT")).has_cascade_child

    def test_has_foreign_key(self):
        assert Entity.from_table_info(orders()).has_foreign_key
        assert not Entity.from_table_info(customers()).has_foreign_key


# ============================================================================
# Geometry
# ============================================================================


class TestEntityGeometry:
    def test_single_column_box(self):
        e = Entity.from_table_info(customers())
        # not-null 16 + physical (2+2)*8 + type (7+2)*8 = 120, plus margins
        assert e.column_total_width() == 120
        assert e.view == Rectangle(0, 0, 128, 44)
        assert e.title_pos == Point(2, 18)
        assert e.frame == Rectangle(2, 21, 124, 20)
        assert e.separator == Segment(2, 41, 126, 41)

    def test_row_anchors(self):
        e = Entity.from_table_info(customers())
        row = e.rows[0]
        assert row.frame == Rectangle(2, 21, 124, 20)
        assert row.not_null_mark == Rectangle(6, 25, 4, 12)
        assert row.logical_pos == Point(18, 37)
        assert row.physical_pos == Point(18, 37)
        assert row.data_type_pos == Point(50, 37)

    def test_rows_stack_downwards(self):
        e = Entity.from_table_info(orders())
        assert e.view == Rectangle(0, 0, 232, 64)
        assert [c.frame.y for c in e.rows] == [21, 41]
        # separator sits under the single primary key row
        assert e.separator.y1 == 41

    def test_optional_column_has_no_not_null_mark(self):
        e = Entity.from_table_info(orders())
        assert e.rows[1].not_null_mark is None

    def test_logical_name_cell_appears_only_when_used(self):
        info = customers()
        info.columns.append(ColumnInfo("name", 2, "text", comment="Name"))
        e = Entity.from_table_info(info)
        # logical cell is (4 + 2) * 8 = 48 wide, shifting physical names right
        assert e.rows[0].logical_pos.x == 18
        assert e.rows[0].physical_pos.x == 66

    def test_collision_map_keyed_by_qualified_name(self):
        e = Entity.from_table_info(orders())
        assert set(e.collision) == {"public.orders.id", "public.orders.customer_id"}
        assert e.collision["public.orders.customer_id"] == Rectangle(2, 41, 228, 20)

    def test_long_title_drives_width(self):
        info = customers()
        info.comment = "A customer of the shop, including wholesale partners"
        e = Entity.from_table_info(info)
        assert e.title_width() > e.column_total_width()
        assert e.view.w == e.title_width() + 8
        assert e.frame.w == e.title_width() + 4

    def test_column_total_drives_width_when_wider(self):
        e = Entity.from_table_info(orders())
        assert e.column_total_width() > e.title_width()
        assert e.view.w == e.column_total_width() + 8

    def test_zero_column_table_is_sized_to_title(self):
        e = Entity("public", "audit_log")
        assert e.rows == []
        assert e.view.h == 24
        assert e.view.w == e.title_width() + 8
        assert e.collision == {}

    def test_wide_characters_widen_cells(self):
        narrow = Entity("s", "t", columns=[Column(1, "ab", data_type="int")])
        wide = Entity("s", "t", columns=[Column(1, "顧客", data_type="int")])
        assert wide.view.w - narrow.view.w == 2 * 8

    @pytest.mark.parametrize("font_size,char_width", [(12, 7), (16, 8), (20, 10)])
    def test_box_covers_title_and_columns_for_any_metrics(self, font_size, char_width):
        metrics = EntityMetrics(font_size=font_size, char_width=char_width)
        for info in (customers(), orders()):
            e = Entity.from_table_info(info, metrics)
            inner = e.frame.w - 2 * metrics.margin
            assert inner >= e.title_width()
            assert inner >= e.column_total_width()
            assert inner == max(e.title_width(), e.column_total_width())
            assert e.view.h == (len(e.rows) + 1) * metrics.row_height + 2 * metrics.margin

    def test_rebuild_is_idempotent(self):
        e = Entity.from_table_info(orders())
        before = dict(e.collision)
        e.build()
        assert e.collision == before

    def test_cell_widths_sum_to_column_total(self):
        e = Entity.from_table_info(orders())
        assert sum(e.column_widths().pixels(8)) == e.column_total_width()


class TestEntityMetrics:
    def test_defaults_without_options(self):
        assert EntityMetrics.from_options(None) == EntityMetrics(font_size=16, char_width=8)

    def test_unset_options_fall_back_to_defaults(self):
        metrics = EntityMetrics.from_options(RenderOptions(font_size=12))
        assert (metrics.font_size, metrics.char_width) == (12, 8)

    def test_explicit_zero_is_kept(self):
        metrics = EntityMetrics.from_options(RenderOptions(char_width=0))
        assert (metrics.font_size, metrics.char_width) == (16, 0)
