"""Check: REINDEX without CONCURRENTLY."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import ReindexObjectType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import range_var_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["ReindexCheck"]

# REINDEX SYSTEM has no concurrent form.
_KIND_LABELS = {
    ReindexObjectType.REINDEX_OBJECT_INDEX: "INDEX",
    ReindexObjectType.REINDEX_OBJECT_TABLE: "TABLE",
    ReindexObjectType.REINDEX_OBJECT_SCHEMA: "SCHEMA",
    ReindexObjectType.REINDEX_OBJECT_DATABASE: "DATABASE",
}


def _is_concurrent(node: ast.ReindexStmt) -> bool:
    for param in node.params or ():
        if not isinstance(param, ast.DefElem) or (param.defname or "").lower() != "concurrently":
            continue
        value = param.arg
        if value is None:
            return True
        if isinstance(value, ast.String):
            return value.sval.lower() not in ("false", "off", "0")
        if isinstance(value, ast.Boolean):
            return bool(value.boolval)
        if isinstance(value, ast.Integer):
            return value.ival != 0
        return True
    return False


class ReindexCheck(BaseCheck):
    name = "ReindexCheck"
    description = "Detects REINDEX without CONCURRENTLY."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.ReindexStmt):
            return []
        kind = _KIND_LABELS.get(node.kind)
        if kind is None or _is_concurrent(node):
            return []
        target = range_var_name(node.relation) if node.relation is not None else (node.name or "<current>")
        return [Violation(
            operation="REINDEX without CONCURRENTLY",
            problem=(
                f"REINDEX {kind} '{target}' without CONCURRENTLY takes an ACCESS EXCLUSIVE lock on each index "
                "(and a SHARE lock on its table), blocking writes and any query that uses the index."
            ),
            safe_alternative=(
                f"Rebuild concurrently (PostgreSQL 12+, outside a transaction):\n   REINDEX {kind} CONCURRENTLY {target};"
            ),
        )]
