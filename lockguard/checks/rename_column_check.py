"""Check: ALTER TABLE ... RENAME COLUMN."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import ObjectType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import range_var_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["RenameColumnCheck"]


class RenameColumnCheck(BaseCheck):
    name = "RenameColumnCheck"
    description = "Detects column renames that break running application code."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.RenameStmt) or node.renameType != ObjectType.OBJECT_COLUMN:
            return []
        if node.relationType not in (None, ObjectType.OBJECT_TABLE):
            return []
        table = range_var_name(node.relation)
        old, new = node.subname, node.newname
        return [Violation(
            operation="RENAME COLUMN",
            problem=(
                f"Renaming column '{old}' to '{new}' on table '{table}' breaks every running application instance "
                "that still uses the old name, from the moment the migration commits until new code is deployed."
            ),
            safe_alternative=(
                f"1. Add the new column:\n   ALTER TABLE {table} ADD COLUMN {new} <type>;\n\n"
                "2. Write to both columns from the application and deploy.\n\n"
                f"3. Backfill in batches, outside the migration:\n   UPDATE {table} SET {new} = {old} WHERE {new} IS NULL;\n\n"
                "4. Switch reads to the new column and deploy.\n\n"
                f"5. Drop the old column in a later migration:\n   ALTER TABLE {table} DROP COLUMN {old};"
            ),
        )]
