"""Check: DROP DATABASE."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast

from lockguard.checks.base_check import BaseCheck, Violation

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["DropDatabaseCheck"]


class DropDatabaseCheck(BaseCheck):
    name = "DropDatabaseCheck"
    description = "Detects DROP DATABASE, which is never safe in a migration."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.DropdbStmt):
            return []
        return [Violation(
            operation="DROP DATABASE",
            problem=(
                f"Dropping database '{node.dbname}' permanently deletes every table and row in it and cannot be undone. "
                "It also fails or terminates sessions while clients are connected."
            ),
            safe_alternative=(
                "Do not drop databases from application migrations. Take a backup and remove the database through "
                "a reviewed operational procedure instead. Wrap the statement in a safety-assured block only for "
                "intentional development or test tear-down."
            ),
        )]
