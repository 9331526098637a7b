"""Check: primary keys declared as SMALLINT / INTEGER (or their SERIAL forms)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import AlterTableType, ConstrType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import (
    alter_table_cmds, cmd_def_as_column_def, cmd_def_as_constraint, column_has_constraint, constraint_columns,
    for_each_column_def, is_short_integer, range_var_name, table_constraints, type_name_str,
)

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["ShortIntegerPrimaryKeyCheck"]


class ShortIntegerPrimaryKeyCheck(BaseCheck):
    name = "ShortIntegerPrimaryKeyCheck"
    description = "Flags primary keys that can run out of values."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if isinstance(node, ast.CreateStmt):
            table = range_var_name(node.relation)
            return self._check(table, list(for_each_column_def(node)), table_constraints(node))
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        columns: list[ast.ColumnDef] = []
        constraints: list[ast.Constraint] = []
        for cmd in cmds:
            column = cmd_def_as_column_def(cmd)
            constraint = cmd_def_as_constraint(cmd)
            if cmd.subtype == AlterTableType.AT_AddColumn and column is not None:
                columns.append(column)
            elif cmd.subtype == AlterTableType.AT_AddConstraint and constraint is not None:
                constraints.append(constraint)
        return self._check(table, columns, constraints)

    def _check(self, table: str, columns: list[ast.ColumnDef], constraints: Iterable[ast.Constraint]) -> list[Violation]:
        by_name = {column.colname: column for column in columns}
        key_columns = [column for column in columns if column_has_constraint(column, ConstrType.CONSTR_PRIMARY)]
        for constraint in constraints:
            if constraint.contype != ConstrType.CONSTR_PRIMARY:
                continue
            # only columns defined in this statement have a known type
            key_columns.extend(by_name[key] for key in constraint_columns(constraint) if key in by_name)
        return [self._violation(table, column) for column in key_columns if is_short_integer(column.typeName)]

    @staticmethod
    def _violation(table: str, column: ast.ColumnDef) -> Violation:
        type_name = type_name_str(column.typeName)
        return Violation(
            operation="Short integer primary key",
            problem=(
                f"Primary key column '{column.colname}' on table '{table}' uses {type_name}, which tops out at about "
                "2.1 billion values (32 thousand for smallint). Widening it later means a full rewrite under an "
                "ACCESS EXCLUSIVE lock."
            ),
            safe_alternative=(
                f"Use BIGINT (or BIGSERIAL / GENERATED ... AS IDENTITY on a BIGINT) from the start:\n"
                f"   {column.colname} BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY\n\n"
                "If the table is guaranteed to stay small, wrap the statement in a safety-assured block."
            ),
        )
