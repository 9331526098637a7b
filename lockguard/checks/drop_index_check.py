"""Check: DROP INDEX without CONCURRENTLY."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import ObjectType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import drop_object_names, if_exists_clause

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["DropIndexCheck"]


class DropIndexCheck(BaseCheck):
    name = "DropIndexCheck"
    description = "Detects DROP INDEX without CONCURRENTLY, one violation per index."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.DropStmt) or node.removeType != ObjectType.OBJECT_INDEX or node.concurrent:
            return []
        if_exists = if_exists_clause(node.missing_ok)
        return [
            Violation(
                operation="DROP INDEX without CONCURRENTLY",
                problem=(
                    f"Dropping index '{index}' without CONCURRENTLY takes an ACCESS EXCLUSIVE lock on its table, "
                    "blocking all reads and writes until the drop completes."
                ),
                safe_alternative=(
                    f"Drop the index concurrently (outside a transaction):\n   DROP INDEX CONCURRENTLY{if_exists} {index};\n\n"
                    "For Diesel add `run_in_transaction = false` to metadata.toml; for SQLx start the file with "
                    "`-- no-transaction`."
                ),
            )
            for index in drop_object_names(node)
        ]
