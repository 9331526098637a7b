"""Check: TIMESTAMP columns without a time zone."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import (
    alter_table_cmds, cmd_def_as_column_def, for_each_column_def, is_timestamp_without_tz, range_var_name,
)

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["TimestampTypeCheck"]


def _problem(column: str, table: str) -> str:
    return (
        f"Column '{column}' on table '{table}' uses TIMESTAMP WITHOUT TIME ZONE, which stores wall-clock values with "
        "no zone. Values silently shift when servers or clients change time zone or across DST. This is a "
        "maintainability warning with no locking impact."
    )


class TimestampTypeCheck(BaseCheck):
    name = "TimestampTypeCheck"
    description = "Flags TIMESTAMP columns that should be TIMESTAMPTZ."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if isinstance(node, ast.CreateStmt):
            table = range_var_name(node.relation)
            return [
                Violation(
                    operation="CREATE TABLE with TIMESTAMP",
                    problem=_problem(column.colname, table),
                    safe_alternative=f"Declare the column as TIMESTAMPTZ:\n   {column.colname} TIMESTAMPTZ",
                )
                for column in for_each_column_def(node)
                if is_timestamp_without_tz(column.typeName)
            ]
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            column = cmd_def_as_column_def(cmd)
            if cmd.subtype != AlterTableType.AT_AddColumn or column is None or not is_timestamp_without_tz(column.typeName):
                continue
            violations.append(Violation(
                operation="ADD COLUMN with TIMESTAMP",
                problem=_problem(column.colname, table),
                safe_alternative=f"Use TIMESTAMPTZ instead:\n   ALTER TABLE {table} ADD COLUMN {column.colname} TIMESTAMPTZ;",
            ))
        return violations
