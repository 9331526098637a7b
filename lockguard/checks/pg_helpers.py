"""Navigation helpers over pglast statement trees.

The extraction helpers return ``None`` (or an empty sequence) when a node does
not have the requested shape, so checks can discard unrelated statements in a
single line instead of nesting ``isinstance`` tests.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pglast import ast
from pglast.enums import ConstrType, ObjectType

__all__ = [
    "MAX_INDEX_COLUMNS",
    "alter_table_cmds",
    "cmd_def_as_column_def",
    "cmd_def_as_constraint",
    "for_each_column_def",
    "table_constraints",
    "drop_object_names",
    "range_var_name",
    "type_name_str",
    "column_type_name",
    "char_length",
    "constraint_columns",
    "constraint_columns_str",
    "index_columns",
    "column_constraint",
    "column_has_constraint",
    "column_default_expr",
    "is_constant_expr",
    "is_char_type",
    "is_timestamp_without_tz",
    "is_short_integer",
    "is_json_type",
    "is_serial_type",
    "if_exists_clause",
]

MAX_INDEX_COLUMNS = 3

_SHORT_INTEGER_TYPES = frozenset({"int2", "int4", "smallint", "integer", "int", "serial", "serial2", "serial4", "smallserial"})
_SERIAL_TYPES = frozenset({"serial", "serial2", "serial4", "serial8", "smallserial", "bigserial"})

# Internal catalog names as a user would write them.
_DISPLAY_NAMES = {
    "bool": "boolean",
    "bpchar": "char",
    "int2": "smallint",
    "int4": "integer",
    "int8": "bigint",
    "float4": "real",
    "float8": "double precision",
    "timestamptz": "timestamp with time zone",
    "timetz": "time with time zone",
}


def alter_table_cmds(node: Any) -> tuple[str, list[ast.AlterTableCmd]] | None:
    """Return ``(table_name, commands)`` for an ``ALTER TABLE`` statement."""
    if not isinstance(node, ast.AlterTableStmt):
        return None
    objtype = getattr(node, "objtype", None)
    if objtype is not None and objtype != ObjectType.OBJECT_TABLE:
        return None
    cmds = [cmd for cmd in (node.cmds or ()) if isinstance(cmd, ast.AlterTableCmd)]
    return range_var_name(node.relation), cmds


def cmd_def_as_column_def(cmd: ast.AlterTableCmd) -> ast.ColumnDef | None:
    definition = getattr(cmd, "def_", None)
    return definition if isinstance(definition, ast.ColumnDef) else None


def cmd_def_as_constraint(cmd: ast.AlterTableCmd) -> ast.Constraint | None:
    definition = getattr(cmd, "def_", None)
    return definition if isinstance(definition, ast.Constraint) else None


def for_each_column_def(node: ast.CreateStmt) -> Iterator[ast.ColumnDef]:
    for element in node.tableElts or ():
        if isinstance(element, ast.ColumnDef):
            yield element


def table_constraints(node: ast.CreateStmt) -> Iterator[ast.Constraint]:
    for element in node.tableElts or ():
        if isinstance(element, ast.Constraint):
            yield element


def _qualified_name(parts: Any) -> str:
    if isinstance(parts, ast.String):
        return parts.sval
    if isinstance(parts, (tuple, list)):
        return ".".join(part.sval for part in parts if isinstance(part, ast.String))
    return ""


def drop_object_names(node: ast.DropStmt) -> list[str]:
    """One name per target of a ``DROP`` statement, schema-qualified when written so."""
    names = []
    for target in node.objects or ():
        names.append(_qualified_name(target) or "<unknown>")
    return names


def range_var_name(relation: ast.RangeVar | None) -> str:
    if relation is None:
        return "<unknown>"
    if relation.schemaname:
        return f"{relation.schemaname}.{relation.relname}"
    return relation.relname or "<unknown>"


def _base_type_name(type_name: ast.TypeName | None) -> str:
    if type_name is None:
        return ""
    names = [part.sval for part in (type_name.names or ()) if isinstance(part, ast.String)]
    return names[-1].lower() if names else ""


def _typmod_values(type_name: ast.TypeName) -> list[str]:
    values = []
    for typmod in type_name.typmods or ():
        if isinstance(typmod, ast.A_Const) and isinstance(typmod.val, ast.Integer):
            values.append(str(typmod.val.ival))
    return values


def type_name_str(type_name: ast.TypeName | None) -> str:
    """Render a type the way it would be written in DDL, e.g. ``varchar(255)``."""
    base = _base_type_name(type_name)
    if not base:
        return "<unknown>"
    rendered = _DISPLAY_NAMES.get(base, base)
    typmods = _typmod_values(type_name)
    if typmods:
        rendered += f"({', '.join(typmods)})"
    if type_name.arrayBounds:
        rendered += "[]"
    return rendered


def column_type_name(column: ast.ColumnDef) -> str:
    return type_name_str(column.typeName)


def char_length(type_name: ast.TypeName | None) -> str:
    if type_name is None:
        return "1"
    typmods = _typmod_values(type_name)
    return typmods[0] if typmods else "1"


def constraint_columns(constraint: ast.Constraint) -> list[str]:
    """Key columns of a constraint; the referencing columns for a foreign key."""
    keys = constraint.keys or getattr(constraint, "fk_attrs", None) or ()
    return [key.sval for key in keys if isinstance(key, ast.String)]


def constraint_columns_str(constraint: ast.Constraint) -> str:
    return ", ".join(constraint_columns(constraint))


def index_columns(node: ast.IndexStmt) -> list[str]:
    columns = []
    for param in node.indexParams or ():
        if isinstance(param, ast.IndexElem) and param.name:
            columns.append(param.name)
        else:
            columns.append("<expr>")
    return columns


def column_constraint(column: ast.ColumnDef, contype: ConstrType) -> ast.Constraint | None:
    for constraint in column.constraints or ():
        if isinstance(constraint, ast.Constraint) and constraint.contype == contype:
            return constraint
    return None


def column_has_constraint(column: ast.ColumnDef, contype: ConstrType) -> bool:
    return column_constraint(column, contype) is not None


def column_default_expr(column: ast.ColumnDef) -> Any | None:
    constraint = column_constraint(column, ConstrType.CONSTR_DEFAULT)
    return constraint.raw_expr if constraint is not None else None


def is_constant_expr(expr: Any) -> bool:
    """True for literal values only; calls, operators and casts are not constant.

    ``-1`` counts as a literal because the grammar folds the sign into the
    constant.
    """
    return isinstance(expr, ast.A_Const)


def is_char_type(type_name: ast.TypeName | None) -> bool:
    return _base_type_name(type_name) == "bpchar"


def is_timestamp_without_tz(type_name: ast.TypeName | None) -> bool:
    return _base_type_name(type_name) == "timestamp"


def is_short_integer(type_name: ast.TypeName | None) -> bool:
    return _base_type_name(type_name) in _SHORT_INTEGER_TYPES


def is_json_type(type_name: ast.TypeName | None) -> bool:
    return _base_type_name(type_name) == "json"


def is_serial_type(type_name: ast.TypeName | None) -> bool:
    return _base_type_name(type_name) in _SERIAL_TYPES


def if_exists_clause(missing_ok: bool | None) -> str:
    return " IF EXISTS" if missing_ok else ""
