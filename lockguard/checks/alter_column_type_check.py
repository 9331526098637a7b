"""Check: ALTER COLUMN ... TYPE."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_column_def, type_name_str

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AlterColumnTypeCheck"]


class AlterColumnTypeCheck(BaseCheck):
    name = "AlterColumnTypeCheck"
    description = "Detects column type changes that may rewrite the table."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_AlterColumnType:
                continue
            column = cmd_def_as_column_def(cmd)
            new_type = type_name_str(column.typeName) if column is not None else "<unknown>"
            col = cmd.name or "<unknown>"
            violations.append(Violation(
                operation="ALTER COLUMN TYPE",
                problem=(
                    f"Changing the type of column '{col}' on table '{table}' to {new_type} takes an ACCESS EXCLUSIVE lock "
                    "and usually rewrites the table and its indexes, blocking all reads and writes meanwhile."
                ),
                safe_alternative=(
                    f"1. Add a new column:\n   ALTER TABLE {table} ADD COLUMN {col}_new {new_type};\n\n"
                    "2. Write to both columns from the application.\n\n"
                    f"3. Backfill in batches, outside the migration:\n   UPDATE {table} SET {col}_new = {col}::{new_type} WHERE {col}_new IS NULL;\n\n"
                    "4. Switch reads to the new column and deploy.\n\n"
                    f"5. Drop the old column and rename the new one in a later migration:\n"
                    f"   ALTER TABLE {table} DROP COLUMN {col};\n"
                    f"   ALTER TABLE {table} RENAME COLUMN {col}_new TO {col};\n\n"
                    "Some changes are metadata-only, such as widening VARCHAR(n) or VARCHAR to TEXT. Wrap those in a "
                    "safety-assured block."
                ),
            ))
        return violations
