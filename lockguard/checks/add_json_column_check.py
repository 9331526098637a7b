"""Check: ADD COLUMN of type JSON instead of JSONB."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_column_def, is_json_type

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddJsonColumnCheck"]


class AddJsonColumnCheck(BaseCheck):
    name = "AddJsonColumnCheck"
    description = "Detects new JSON columns, which have no equality operator."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_AddColumn:
                continue
            column = cmd_def_as_column_def(cmd)
            if column is None or not is_json_type(column.typeName):
                continue
            violations.append(Violation(
                operation="ADD COLUMN with JSON type",
                problem=(
                    f"Column '{column.colname}' on table '{table}' uses the JSON type, which has no equality operator. "
                    "Existing queries that use SELECT DISTINCT, UNION or GROUP BY over the table start failing."
                ),
                safe_alternative=(
                    f"Use JSONB instead:\n   ALTER TABLE {table} ADD COLUMN {column.colname} JSONB;\n\n"
                    "JSONB supports equality, indexing and is faster to query."
                ),
            ))
        return violations
