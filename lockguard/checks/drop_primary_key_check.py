"""Check: dropping a table's primary key constraint."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["DropPrimaryKeyCheck"]

# PostgreSQL names primary keys "<table>_pkey" unless told otherwise.
_PKEY_SUFFIX = "_pkey"


class DropPrimaryKeyCheck(BaseCheck):
    name = "DropPrimaryKeyCheck"
    description = "Detects DROP CONSTRAINT on a primary key."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_DropConstraint or not (cmd.name or "").endswith(_PKEY_SUFFIX):
                continue
            violations.append(Violation(
                operation="DROP PRIMARY KEY",
                problem=(
                    f"Dropping primary key '{cmd.name}' from table '{table}' takes an ACCESS EXCLUSIVE lock and removes "
                    "the row identity that foreign keys, replication and ORMs rely on."
                ),
                safe_alternative=(
                    "1. Build the replacement unique index first:\n"
                    f"   CREATE UNIQUE INDEX CONCURRENTLY {cmd.name}_new ON {table} (<columns>);\n\n"
                    "2. Swap the keys in one short transaction:\n"
                    f"   ALTER TABLE {table} DROP CONSTRAINT {cmd.name},\n"
                    f"       ADD CONSTRAINT {cmd.name} PRIMARY KEY USING INDEX {cmd.name}_new;\n\n"
                    "Check foreign keys that reference the table before dropping its key."
                ),
            ))
        return violations
