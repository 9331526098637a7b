"""Check: ADD PRIMARY KEY that builds its index under an exclusive lock."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType, ConstrType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_constraint, constraint_columns_str

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddPrimaryKeyCheck"]


class AddPrimaryKeyCheck(BaseCheck):
    name = "AddPrimaryKeyCheck"
    description = "Detects ADD PRIMARY KEY without USING INDEX."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_AddConstraint:
                continue
            constraint = cmd_def_as_constraint(cmd)
            if constraint is None or constraint.contype != ConstrType.CONSTR_PRIMARY:
                continue
            # USING INDEX reuses an index that was built concurrently beforehand
            if constraint.indexname:
                continue
            columns = constraint_columns_str(constraint)
            index = f"{table.replace('.', '_')}_pkey"
            violations.append(Violation(
                operation="ADD PRIMARY KEY",
                problem=(
                    f"Adding a primary key on table '{table}' ({columns}) builds a unique index while holding an "
                    "ACCESS EXCLUSIVE lock, blocking all reads and writes for the duration of the build."
                ),
                safe_alternative=(
                    "1. Build the unique index concurrently (outside a transaction):\n"
                    f"   CREATE UNIQUE INDEX CONCURRENTLY {index} ON {table} ({columns});\n\n"
                    "2. Attach it as the primary key, which only takes a brief lock:\n"
                    f"   ALTER TABLE {table} ADD CONSTRAINT {index} PRIMARY KEY USING INDEX {index};\n\n"
                    "The key columns must already be NOT NULL, otherwise step 2 scans the table."
                ),
            ))
        return violations
