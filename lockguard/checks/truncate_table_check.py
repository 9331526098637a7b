"""Check: TRUNCATE, one violation per table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import range_var_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["TruncateTableCheck"]


class TruncateTableCheck(BaseCheck):
    name = "TruncateTableCheck"
    description = "Detects TRUNCATE TABLE."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.TruncateStmt):
            return []
        violations: list[Violation] = []
        for relation in node.relations or ():
            table = range_var_name(relation)
            violations.append(Violation(
                operation="TRUNCATE TABLE",
                problem=(
                    f"Truncating table '{table}' deletes every row irreversibly and takes an ACCESS EXCLUSIVE lock "
                    "that blocks all reads and writes, including on replicas replaying the change."
                ),
                safe_alternative=(
                    f"Delete rows in small batches outside the migration instead:\n"
                    f"   DELETE FROM {table} WHERE ctid IN (SELECT ctid FROM {table} LIMIT 1000);\n\n"
                    "Repeat until no rows remain. If the table is known to be unused, wrap the statement in a "
                    "safety-assured block."
                ),
            ))
        return violations
