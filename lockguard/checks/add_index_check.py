"""Check: CREATE INDEX without CONCURRENTLY."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import index_columns, range_var_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddIndexCheck"]


class AddIndexCheck(BaseCheck):
    name = "AddIndexCheck"
    description = "Detects index creation that blocks writes for the whole build."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.IndexStmt) or node.concurrent:
            return []
        table = range_var_name(node.relation)
        index = node.idxname or "<unnamed>"
        unique = "UNIQUE " if node.unique else ""
        columns = ", ".join(index_columns(node))
        return [Violation(
            operation="ADD INDEX without CONCURRENTLY",
            problem=(
                f"Creating {unique.lower()}index '{index}' on table '{table}' without CONCURRENTLY takes a SHARE lock, "
                "blocking INSERT, UPDATE and DELETE until the index is built. Duration grows with table size."
            ),
            safe_alternative=(
                f"Build the index concurrently:\n   CREATE {unique}INDEX CONCURRENTLY {node.idxname or '<name>'} ON {table} ({columns});\n\n"
                "CONCURRENTLY cannot run inside a transaction block. For Diesel add `run_in_transaction = false` "
                "to the migration's metadata.toml; for SQLx start the file with `-- no-transaction`."
            ),
        )]
