"""Check: ALTER TABLE ... DROP COLUMN."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, if_exists_clause

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["DropColumnCheck"]


class DropColumnCheck(BaseCheck):
    name = "DropColumnCheck"
    description = "Detects dropped columns, one violation per column."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_DropColumn:
                continue
            col = cmd.name or "<unknown>"
            violations.append(Violation(
                operation="DROP COLUMN",
                problem=(
                    f"Dropping column '{col}' from table '{table}' takes an ACCESS EXCLUSIVE lock and breaks any "
                    "running application code that still reads or writes the column. The data is lost for good."
                ),
                safe_alternative=(
                    "1. Stop using the column in application code and deploy that change first.\n\n"
                    "2. If the column is NOT NULL, relax it so old code paths cannot fail:\n"
                    f"   ALTER TABLE {table} ALTER COLUMN {col} DROP NOT NULL;\n\n"
                    "3. Drop the column in a later migration once nothing references it:\n"
                    f"   ALTER TABLE {table} DROP COLUMN{if_exists_clause(cmd.missing_ok)} {col};\n\n"
                    "PostgreSQL has no DROP COLUMN CONCURRENTLY; staging the removal is what reduces the risk."
                ),
            ))
        return violations
