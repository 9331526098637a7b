"""Check: ADD UNIQUE constraint that builds its index under an exclusive lock."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType, ConstrType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_constraint, constraint_columns, constraint_columns_str

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddUniqueConstraintCheck"]


class AddUniqueConstraintCheck(BaseCheck):
    name = "AddUniqueConstraintCheck"
    description = "Detects ADD UNIQUE constraints without USING INDEX."

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
            if constraint is None or constraint.contype != ConstrType.CONSTR_UNIQUE or constraint.indexname:
                continue
            columns = constraint_columns_str(constraint)
            name = constraint.conname or "<unnamed>"
            index = constraint.conname or "_".join([table.replace(".", "_"), *constraint_columns(constraint), "key"])
            violations.append(Violation(
                operation="ADD UNIQUE constraint",
                problem=(
                    f"Adding UNIQUE constraint '{name}' on table '{table}' ({columns}) builds its index under an "
                    "ACCESS EXCLUSIVE lock, blocking all reads and writes until the build finishes."
                ),
                safe_alternative=(
                    "1. Build the unique index concurrently (outside a transaction):\n"
                    f"   CREATE UNIQUE INDEX CONCURRENTLY {index} ON {table} ({columns});\n\n"
                    "2. Attach it as a constraint, which only takes a brief lock:\n"
                    f"   ALTER TABLE {table} ADD CONSTRAINT {index} UNIQUE USING INDEX {index};"
                ),
            ))
        return violations
