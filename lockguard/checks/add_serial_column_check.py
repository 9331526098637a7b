"""Check: ADD COLUMN with a SERIAL type on an existing table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast.enums import AlterTableType

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.pg_helpers import alter_table_cmds, cmd_def_as_column_def, is_serial_type, type_name_str

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["AddSerialColumnCheck"]

_PLAIN_INTEGER = {"smallserial": "smallint", "serial2": "smallint", "bigserial": "bigint", "serial8": "bigint"}


class AddSerialColumnCheck(BaseCheck):
    name = "AddSerialColumnCheck"
    description = "Detects SERIAL columns added to existing tables."

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
            if column is None or not is_serial_type(column.typeName):
                continue
            col = column.colname
            serial = type_name_str(column.typeName)
            plain = _PLAIN_INTEGER.get(serial, "integer")
            sequence = f"{table.replace('.', '_')}_{col}_seq"
            violations.append(Violation(
                operation="ADD COLUMN with SERIAL",
                problem=(
                    f"Adding column '{col}' of type {serial.upper()} to table '{table}' fills a sequence value into every "
                    "existing row. The table is rewritten under an ACCESS EXCLUSIVE lock that blocks all reads and writes."
                ),
                safe_alternative=(
                    f"1. Create the sequence:\n   CREATE SEQUENCE {sequence};\n\n"
                    f"2. Add the column without a default:\n   ALTER TABLE {table} ADD COLUMN {col} {plain};\n\n"
                    f"3. Use the sequence for new rows:\n   ALTER TABLE {table} ALTER COLUMN {col} SET DEFAULT nextval('{sequence}');\n\n"
                    "4. Backfill existing rows in batches, outside the migration:\n"
                    f"   UPDATE {table} SET {col} = nextval('{sequence}') WHERE {col} IS NULL;\n\n"
                    f"5. Tie the sequence to the column:\n   ALTER SEQUENCE {sequence} OWNED BY {table}.{col};"
                ),
            ))
        return violations
