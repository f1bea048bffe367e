"""Generate per-table data-shape descriptors as Python source."""

import logging
import re

from seedplan.models import ColumnInfo, Schema, TableInfo

logger = logging.getLogger(__name__)

PYTHON_TYPES = {
    "uuid": "str",
    "text": "str",
    "varchar": "str",
    "character varying": "str",
    "char": "str",
    "citext": "str",
    "integer": "int",
    "int": "int",
    "int2": "int",
    "int4": "int",
    "int8": "int",
    "smallint": "int",
    "bigint": "int",
    "serial": "int",
    "smallserial": "int",
    "bigserial": "int",
    "numeric": "Decimal",
    "decimal": "Decimal",
    "real": "float",
    "double precision": "float",
    "float4": "float",
    "float8": "float",
    "boolean": "bool",
    "bool": "bool",
    "date": "date",
    "timestamp": "datetime",
    "timestamptz": "datetime",
    "timestamp with time zone": "datetime",
    "timestamp without time zone": "datetime",
    "json": "Any",
    "jsonb": "Any",
}

HEADER = '''"""Generated by seedplan. Do not edit."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, TypedDict
'''


def class_name(table: str) -> str:
    """users_profile -> UsersProfile"""
    return "".join(part.capitalize() for part in re.split(r"[^0-9a-zA-Z]+", table) if part)


def python_type(column: ColumnInfo) -> str:
    annotation = PYTHON_TYPES.get(column.data_type, "Any")
    if column.is_nullable and annotation != "Any":
        annotation = f"{annotation} | None"
    return annotation


def render_table(table: TableInfo) -> str:
    """TypedDict source for the scalar columns of one table."""
    name = f"{class_name(table.name)}Scalars"
    fk_columns = table.fk_columns
    required = []
    optional = []
    for column in table.columns:
        if column.name in fk_columns:
            continue
        line = f"    {column.name}: {python_type(column)}"
        if column.has_default or column.is_sequence:
            optional.append(line)
        else:
            required.append(line)

    blocks = []
    base = "TypedDict"
    if optional:
        base = f"_{name}Defaults"
        blocks.append(f"class {base}(TypedDict, total=False):\n" + "\n".join(optional))
    blocks.append(f"class {name}({base}):\n" + ("\n".join(required) or "    pass"))
    return "\n\n\n".join(blocks)


def render_relationships(schema: Schema) -> str:
    """`TABLES` mapping of relationship names per table."""
    lines = ["TABLES = {"]
    for table in schema:
        lines.append(f"    {table.name!r}: {{")
        parents = {rel.name: rel.target for rel in table.parents}
        children = {rel.name: rel.target for rel in table.children}
        lines.append(f"        'parents': {parents!r},")
        lines.append(f"        'children': {children!r},")
        lines.append("    },")
    lines.append("}")
    return "\n".join(lines)


def render_descriptors(schema: Schema) -> str:
    """
    Render Python source describing every table's input shape.

    One `<Table>Scalars` TypedDict per table (foreign key columns left
    out, defaulted columns optional) plus a `TABLES` mapping naming the
    parent and child relationships of each table.
    """
    parts = [HEADER]
    parts.extend(render_table(table) for table in schema)
    parts.append(render_relationships(schema))
    logger.debug(f"Rendered descriptors for {len(schema.table_names)} tables")
    return "\n\n\n".join(part.strip("\n") for part in parts) + "\n"
