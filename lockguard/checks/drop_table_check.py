"""Check: DROP TABLE, one violation per dropped table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import DropBehavior, ObjectType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import drop_object_names, if_exists_clause

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["DropTableCheck"]


class DropTableCheck(BaseCheck):
    name = "DropTableCheck"
    description = "Detects DROP TABLE operations that cause irreversible data loss."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.DropStmt) or node.removeType != ObjectType.OBJECT_TABLE:
            return []
        cascade = " Because of CASCADE, dependent views and foreign keys are dropped too." if node.behavior == DropBehavior.DROP_CASCADE else ""
        violations: list[Violation] = []
        for table in drop_object_names(node):
            violations.append(Violation(
                operation="DROP TABLE",
                problem=(
                    f"Dropping table '{table}' permanently deletes all of its data and takes an ACCESS EXCLUSIVE lock. "
                    f"Code that still queries the table starts failing immediately.{cascade}"
                ),
                safe_alternative=(
                    "1. Remove every reference to the table from application code and deploy.\n\n"
                    f"2. Rename it first so stray usage fails loudly but the data survives:\n   ALTER TABLE {table} RENAME TO {table.split('.')[-1]}_deprecated;\n\n"
                    f"3. Back up and drop it in a later migration:\n   DROP TABLE{if_exists_clause(node.missing_ok)} {table}_deprecated;"
                ),
            ))
        return violations
