from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

# ============================================================================
# Schema snapshot
#
# Read-only description of a database schema, shaped after the
# information_schema views a PostgreSQL introspection step would query:
#
#   tables:  table_schema, table_name, comment
#   columns: column_name, ordinal_position, data_type, is_nullable,
#            is_primary_key, is_unique, comment
#   foreign keys: constraint_name, target table_schema / table_name /
#            column_name, match_option, update_rule, delete_rule
#
# The layout engine never queries a database; it only consumes these records.
# ============================================================================

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ForeignKey:
    """The referential constraint attached to a column."""

    constraint_name: str = ""
    # Referenced column
    table_schema: str = ""
    table_name: str = ""
    column_name: str = ""
    match_option: str = ""
    update_rule: str = ""
    delete_rule: str = ""

    @property
    def is_cascade(self) -> bool:
        return (
            self.update_rule.upper() == "CASCADE"
            or self.delete_rule.upper() == "CASCADE"
        )


@dataclass(slots=True)
class ColumnInfo:
    column_name: str
    ordinal_position: int
    data_type: str = ""
    is_nullable: bool = True
    is_primary_key: bool = False
    is_unique: bool = False
    # Column comment, rendered as the logical name
    comment: str = ""
    foreign_key: ForeignKey | None = None


@dataclass(slots=True)
class TableInfo:
    schema: str
    name: str
    comment: str = ""
    columns: list[ColumnInfo] = field(default_factory=list)


# ============================================================================
# Loading from plain data (JSON)
# ============================================================================


def load_snapshot_json(text: str) -> list[TableInfo]:
    """Parse a JSON schema snapshot. See :func:`load_snapshot`."""
    return load_snapshot(json.loads(text))


def load_snapshot(data: Any) -> list[TableInfo]:
    """Build TableInfo records from decoded JSON.

    Accepts either a list of table mappings or ``{"tables": [...]}``. Each
    table mapping uses information_schema key names::

        {
          "table_schema": "public",
          "table_name": "orders",
          "comment": "Orders",
          "columns": [
            {"column_name": "id", "ordinal_position": 1,
             "data_type": "integer", "is_nullable": "NO",
             "is_primary_key": true},
            {"column_name": "customer_id", "ordinal_position": 2,
             "data_type": "integer",
             "foreign_key": {"constraint_name": "orders_customer_fk",
                             "table_schema": "public",
                             "table_name": "customers",
                             "column_name": "id",
                             "delete_rule": "CASCADE"}}
          ]
        }

    Raises ValueError when a required key is missing or has the wrong type.
    """
    if isinstance(data, dict):
        if "tables" not in data:
            raise ValueError("Schema snapshot object must contain a 'tables' list")
        data = data["tables"]
    if not isinstance(data, list):
        raise ValueError(
            f"Schema snapshot must be a list of tables, got {type(data).__name__}"
        )

    tables: list[TableInfo] = []
    seen: set[tuple[str, str]] = set()
    for i, raw in enumerate(data):
        table = _parse_table(raw, i)
        key = (table.schema, table.name)
        if key in seen:
            logger.warning("Duplicate table %s.%s in snapshot", table.schema, table.name)
        seen.add(key)
        tables.append(table)
    return tables


def _parse_table(raw: Any, index: int) -> TableInfo:
    if not isinstance(raw, dict):
        raise ValueError(f"Table #{index} must be an object")

    name = _require_str(raw, "table_name", f"table #{index}")
    where = f"table {name!r}"
    schema = _optional_str(raw, "table_schema", where, default="public")
    comment = _optional_str(raw, "comment", where)

    raw_columns = raw.get("columns", [])
    if not isinstance(raw_columns, list):
        raise ValueError(f"'columns' of {where} must be a list")

    columns = [_parse_column(c, where, i) for i, c in enumerate(raw_columns)]
    return TableInfo(schema=schema, name=name, comment=comment, columns=columns)


def _parse_column(raw: Any, table: str, index: int) -> ColumnInfo:
    if not isinstance(raw, dict):
        raise ValueError(f"Column #{index} of {table} must be an object")

    name = _require_str(raw, "column_name", f"column #{index} of {table}")
    where = f"column {name!r} of {table}"

    position = raw.get("ordinal_position", index + 1)
    if isinstance(position, bool) or not isinstance(position, int):
        raise ValueError(f"'ordinal_position' of {where} must be an integer")

    fk = None
    raw_fk = raw.get("foreign_key")
    if raw_fk is not None:
        fk = _parse_foreign_key(raw_fk, where)

    return ColumnInfo(
        column_name=name,
        ordinal_position=position,
        data_type=_optional_str(raw, "data_type", where),
        is_nullable=_parse_flag(raw, "is_nullable", where, default=True),
        is_primary_key=_parse_flag(raw, "is_primary_key", where),
        is_unique=_parse_flag(raw, "is_unique", where),
        comment=_optional_str(raw, "comment", where),
        foreign_key=fk,
    )


def _parse_foreign_key(raw: Any, where: str) -> ForeignKey:
    if not isinstance(raw, dict):
        raise ValueError(f"'foreign_key' of {where} must be an object")
    where = f"foreign key of {where}"
    return ForeignKey(
        constraint_name=_optional_str(raw, "constraint_name", where),
        table_schema=_optional_str(raw, "table_schema", where),
        table_name=_optional_str(raw, "table_name", where),
        column_name=_optional_str(raw, "column_name", where),
        match_option=_optional_str(raw, "match_option", where),
        update_rule=_optional_str(raw, "update_rule", where),
        delete_rule=_optional_str(raw, "delete_rule", where),
    )


def _parse_flag(raw: dict[str, Any], key: str, where: str, default: bool = False) -> bool:
    """information_schema spells booleans as 'YES' / 'NO'."""
    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.upper() in ("YES", "NO"):
        return value.upper() == "YES"
    raise ValueError(f"'{key}' of {where} must be a boolean or 'YES'/'NO'")


def _require_str(raw: dict[str, Any], key: str, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Missing or empty '{key}' in {where}")
    return value


def _optional_str(raw: dict[str, Any], key: str, where: str, default: str = "") -> str:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"'{key}' of {where} must be a string")
    return value
