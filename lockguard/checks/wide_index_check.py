"""Check: composite indexes with too many columns."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import MAX_INDEX_COLUMNS, index_columns, range_var_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["WideIndexCheck"]


class WideIndexCheck(BaseCheck):
    name = "WideIndexCheck"
    description = f"Flags indexes on more than {MAX_INDEX_COLUMNS} columns."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.IndexStmt):
            return []
        columns = index_columns(node)
        if len(columns) <= MAX_INDEX_COLUMNS:
            return []
        table = range_var_name(node.relation)
        return [Violation(
            operation="Wide index",
            problem=(
                f"Index '{node.idxname or '<unnamed>'}' on table '{table}' covers {len(columns)} columns "
                f"({', '.join(columns)}). Wide indexes are large, slow down every write and are rarely used "
                "beyond their leading columns. This is a maintainability warning with no locking impact."
            ),
            safe_alternative=(
                f"Index only the leading, most selective columns (at most {MAX_INDEX_COLUMNS}) and check the query "
                "plans that need it. Consider a partial index or INCLUDE columns for covering reads:\n"
                f"   CREATE INDEX CONCURRENTLY <name> ON {table} ({', '.join(columns[:2])}) INCLUDE ({', '.join(columns[2:])});"
            ),
        )]
