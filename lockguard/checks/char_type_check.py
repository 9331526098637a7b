"""Check: fixed-width CHAR columns."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import (
    alter_table_cmds, char_length, cmd_def_as_column_def, for_each_column_def, is_char_type, range_var_name,
)

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["CharTypeCheck"]

_PROBLEM = (
    "Column '{column}' on table '{table}' is declared CHAR({length}), which pads values with spaces to a fixed width. "
    "It wastes storage and makes comparisons behave unexpectedly. This is a maintainability warning with no locking impact."
)


class CharTypeCheck(BaseCheck):
    name = "CharTypeCheck"
    description = "Flags CHAR(n) columns in ALTER TABLE and CREATE TABLE."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if isinstance(node, ast.CreateStmt):
            return self._check_create(node)
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_AddColumn:
                continue
            column = cmd_def_as_column_def(cmd)
            if column is None or not is_char_type(column.typeName):
                continue
            length = char_length(column.typeName)
            violations.append(Violation(
                operation="ADD COLUMN with CHAR type",
                problem=_PROBLEM.format(column=column.colname, table=table, length=length),
                safe_alternative=(
                    f"Use TEXT, or VARCHAR when a length limit matters:\n"
                    f"   ALTER TABLE {table} ADD COLUMN {column.colname} TEXT;\n"
                    f"   ALTER TABLE {table} ADD COLUMN {column.colname} VARCHAR({length});"
                ),
            ))
        return violations

    def _check_create(self, node: ast.CreateStmt) -> list[Violation]:
        table = range_var_name(node.relation)
        violations: list[Violation] = []
        for column in for_each_column_def(node):
            if not is_char_type(column.typeName):
                continue
            length = char_length(column.typeName)
            violations.append(Violation(
                operation="CREATE TABLE with CHAR column",
                problem=_PROBLEM.format(column=column.colname, table=table, length=length),
                safe_alternative=(
                    f"Declare the column as TEXT, or VARCHAR({length}) when a length limit matters:\n"
                    f"   CREATE TABLE {table} (\n       {column.colname} TEXT\n   );"
                ),
            ))
        return violations
