"""Check: ADD COLUMN with a DEFAULT that forces a table rewrite."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import (
    alter_table_cmds, cmd_def_as_column_def, column_default_expr, column_type_name, is_constant_expr,
)

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddColumnCheck"]

# First release where a constant default is stored in the catalog instead of
# being written into every existing row.
_METADATA_ONLY_DEFAULT_VERSION = 11


class AddColumnCheck(BaseCheck):
    name = "AddColumnCheck"
    description = "Detects ADD COLUMN with a DEFAULT that rewrites the table."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        found = alter_table_cmds(node)
        if found is None:
            return []
        table, cmds = found
        violations: list[Violation] = []
        for cmd in cmds:
            if cmd.subtype != AlterTableType.AT_AddColumn:
                continue
            column = cmd_def_as_column_def(cmd)
            if column is None:
                continue
            default = column_default_expr(column)
            if default is None:
                continue
            if self._default_is_metadata_only(default, config):
                continue
            col, data_type = column.colname, column_type_name(column)
            violations.append(Violation(
                operation="ADD COLUMN with DEFAULT",
                problem=(
                    f"Adding column '{col}' with a DEFAULT to table '{table}' rewrites every row "
                    f"(always for non-constant defaults, and for any default before PostgreSQL {_METADATA_ONLY_DEFAULT_VERSION}). "
                    "The rewrite holds an ACCESS EXCLUSIVE lock that blocks all reads and writes for as long as it runs."
                ),
                safe_alternative=(
                    f"1. Add the column without a default:\n   ALTER TABLE {table} ADD COLUMN {col} {data_type};\n\n"
                    f"2. Set the default for new rows only:\n   ALTER TABLE {table} ALTER COLUMN {col} SET DEFAULT <value>;\n\n"
                    f"3. Backfill existing rows in batches, outside the migration:\n   UPDATE {table} SET {col} = <value> WHERE {col} IS NULL;\n\n"
                    f"On PostgreSQL {_METADATA_ONLY_DEFAULT_VERSION}+ a constant default is safe; set postgres_version "
                    "in lockguard.yaml to let lockguard take that into account."
                ),
            ))
        return violations

    @staticmethod
    def _default_is_metadata_only(default: Any, config: LockguardSettings) -> bool:
        version = config.postgres_version
        return version is not None and version >= _METADATA_ONLY_DEFAULT_VERSION and is_constant_expr(default)
