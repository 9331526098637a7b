"""Check: ADD COLUMN ... GENERATED ALWAYS AS (...) STORED."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType, ConstrType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_column_def, column_constraint, column_type_name

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["GeneratedColumnCheck"]


class GeneratedColumnCheck(BaseCheck):
    name = "GeneratedColumnCheck"
    description = "Detects stored generated columns added to existing tables."

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
            generated = column_constraint(column, ConstrType.CONSTR_GENERATED)
            # virtual generated columns are computed on read and never rewrite
            if generated is None or getattr(generated, "generated_kind", None) == "v":
                continue
            col = column.colname
            violations.append(Violation(
                operation="ADD COLUMN with GENERATED STORED",
                problem=(
                    f"Adding stored generated column '{col}' to table '{table}' computes and writes the value for every "
                    "existing row. The table is rewritten under an ACCESS EXCLUSIVE lock that blocks all reads and writes."
                ),
                safe_alternative=(
                    f"1. Add a regular nullable column:\n   ALTER TABLE {table} ADD COLUMN {col} {column_type_name(column)};\n\n"
                    "2. Populate it for new rows with a trigger or from application code.\n\n"
                    f"3. Backfill existing rows in batches, outside the migration:\n   UPDATE {table} SET {col} = <expression> WHERE {col} IS NULL;"
                ),
            ))
        return violations
