"""Check: constraints added without an explicit name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType, ConstrType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_constraint, constraint_columns

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["UnnamedConstraintCheck"]

_KINDS = {
    ConstrType.CONSTR_UNIQUE: ("UNIQUE", "key"),
    ConstrType.CONSTR_FOREIGN: ("FOREIGN KEY", "fkey"),
    ConstrType.CONSTR_CHECK: ("CHECK", "check"),
}


class UnnamedConstraintCheck(BaseCheck):
    name = "UnnamedConstraintCheck"
    description = "Flags UNIQUE, FOREIGN KEY and CHECK constraints without a name."

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
            if constraint is None or constraint.conname or constraint.contype not in _KINDS:
                continue
            kind, suffix = _KINDS[constraint.contype]
            columns = constraint_columns(constraint)
            suggested = "_".join([table.split(".")[-1], *columns, suffix])
            violations.append(Violation(
                operation="Unnamed constraint",
                problem=(
                    f"A {kind} constraint on table '{table}' has no name, so PostgreSQL generates one. Generated names "
                    "differ between environments, which makes later migrations that drop or alter the constraint fragile. "
                    "This is a maintainability warning with no locking impact."
                ),
                safe_alternative=(
                    f"Name the constraint explicitly:\n   ALTER TABLE {table} ADD CONSTRAINT {suggested} {kind} ...;"
                ),
            ))
        return violations
