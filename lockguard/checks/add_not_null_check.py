"""Check: ALTER COLUMN ... SET NOT NULL on an existing column."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddNotNullCheck"]


class AddNotNullCheck(BaseCheck):
    name = "AddNotNullCheck"
    description = "Detects SET NOT NULL, which scans the table under an exclusive lock."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_SetNotNull:
                continue
            col = cmd.name or "<unknown>"
            violations.append(Violation(
                operation="ADD NOT NULL constraint",
                problem=(
                    f"Setting column '{col}' on table '{table}' to NOT NULL scans the whole table to verify existing rows "
                    "while holding an ACCESS EXCLUSIVE lock, blocking all reads and writes."
                ),
                safe_alternative=(
                    "1. Add a CHECK constraint without validating existing rows:\n"
                    f"   ALTER TABLE {table} ADD CONSTRAINT {col}_not_null CHECK ({col} IS NOT NULL) NOT VALID;\n\n"
                    "2. Validate it in a separate migration (takes only a SHARE UPDATE EXCLUSIVE lock):\n"
                    f"   ALTER TABLE {table} VALIDATE CONSTRAINT {col}_not_null;\n\n"
                    "3. On PostgreSQL 12+ SET NOT NULL now uses the validated constraint and skips the scan:\n"
                    f"   ALTER TABLE {table} ALTER COLUMN {col} SET NOT NULL;\n"
                    f"   ALTER TABLE {table} DROP CONSTRAINT {col}_not_null;"
                ),
            ))
        return violations
