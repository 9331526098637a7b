"""Check: ALTER TABLE ... RENAME TO."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast
from pglast.enums import ObjectType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import range_var_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["RenameTableCheck"]


class RenameTableCheck(BaseCheck):
    name = "RenameTableCheck"
    description = "Detects table renames that break running application code."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.RenameStmt) or node.renameType != ObjectType.OBJECT_TABLE:
            return []
        table, new = range_var_name(node.relation), node.newname
        return [Violation(
            operation="RENAME TABLE",
            problem=(
                f"Renaming table '{table}' to '{new}' takes an ACCESS EXCLUSIVE lock and breaks every running "
                "application instance that still queries the old name."
            ),
            safe_alternative=(
                f"1. Rename the table and keep the old name working through a view in the same migration:\n"
                f"   ALTER TABLE {table} RENAME TO {new};\n"
                f"   CREATE VIEW {table} AS SELECT * FROM {new};\n\n"
                "2. Deploy code that uses the new name.\n\n"
                f"3. Drop the compatibility view in a later migration:\n   DROP VIEW {table};"
            ),
        )]
