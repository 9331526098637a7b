"""Ordered registry of active checks and the entry point for running them."""

from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from lockguard.checks.add_column_check import AddColumnCheck
from lockguard.checks.add_index_check import AddIndexCheck
from lockguard.checks.add_json_column_check import AddJsonColumnCheck
from lockguard.checks.add_not_null_check import AddNotNullCheck
from lockguard.checks.add_primary_key_check import AddPrimaryKeyCheck
from lockguard.checks.add_serial_column_check import AddSerialColumnCheck
from lockguard.checks.add_unique_constraint_check import AddUniqueConstraintCheck
from lockguard.checks.alter_column_type_check import AlterColumnTypeCheck
from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.char_type_check import CharTypeCheck
from lockguard.checks.create_extension_check import CreateExtensionCheck
from lockguard.checks.drop_column_check import DropColumnCheck
from lockguard.checks.drop_database_check import DropDatabaseCheck
from lockguard.checks.drop_index_check import DropIndexCheck
from lockguard.checks.drop_primary_key_check import DropPrimaryKeyCheck
from lockguard.checks.drop_table_check import DropTableCheck
from lockguard.checks.generated_column_check import GeneratedColumnCheck
from lockguard.checks.reindex_check import ReindexCheck
from lockguard.checks.rename_column_check import RenameColumnCheck
from lockguard.checks.rename_table_check import RenameTableCheck
from lockguard.checks.short_integer_primary_key_check import ShortIntegerPrimaryKeyCheck
from lockguard.checks.timestamp_type_check import TimestampTypeCheck
from lockguard.checks.truncate_table_check import TruncateTableCheck
from lockguard.checks.unnamed_constraint_check import UnnamedConstraintCheck
from lockguard.checks.wide_index_check import WideIndexCheck
from lockguard.core.safety_assured import IgnoreRange, exempt_lines, non_comment_token_starts, statement_line

if TYPE_CHECKING:
    from pglast.ast import RawStmt

    from lockguard.config.settings import LockguardSettings

__all__ = ["BUILTIN_CHECKS", "CheckRegistry", "builtin_check_names"]

# Canonical order; violations within a statement are reported in this order.
BUILTIN_CHECKS: tuple[type[BaseCheck], ...] = (
    AddColumnCheck,
    AddIndexCheck,
    AddJsonColumnCheck,
    AddNotNullCheck,
    AddPrimaryKeyCheck,
    AddSerialColumnCheck,
    AddUniqueConstraintCheck,
    AlterColumnTypeCheck,
    CharTypeCheck,
    CreateExtensionCheck,
    DropColumnCheck,
    DropDatabaseCheck,
    DropIndexCheck,
    DropPrimaryKeyCheck,
    DropTableCheck,
    GeneratedColumnCheck,
    ReindexCheck,
    RenameColumnCheck,
    RenameTableCheck,
    ShortIntegerPrimaryKeyCheck,
    TimestampTypeCheck,
    TruncateTableCheck,
    UnnamedConstraintCheck,
    WideIndexCheck,
)


class CheckRegistry:
    """Active checks in evaluation order: built-ins first, then custom scripts."""

    def __init__(self, checks: Iterable[BaseCheck] = ()) -> None:
        self._checks: list[BaseCheck] = list(checks)

    @classmethod
    def from_config(cls, config: LockguardSettings) -> CheckRegistry:
        return cls(check_cls() for check_cls in BUILTIN_CHECKS if config.is_check_enabled(check_cls.name))

    @classmethod
    def unfiltered(cls) -> CheckRegistry:
        return cls(check_cls() for check_cls in BUILTIN_CHECKS)

    @property
    def checks(self) -> tuple[BaseCheck, ...]:
        return tuple(self._checks)

    def add_check(self, check: BaseCheck) -> None:
        self._checks.append(check)

    def active_check_names(self) -> list[str]:
        return [check.name for check in self._checks]

    def check_node(self, node: Any, config: LockguardSettings) -> list[Violation]:
        violations: list[Violation] = []
        for check in self._checks:
            violations.extend(check.evaluate(node, config))
        return violations

    def check_statements(
        self,
        statements: Sequence[RawStmt],
        source_text: str,
        ignore_ranges: Iterable[IgnoreRange],
        config: LockguardSettings,
    ) -> list[Violation]:
        """Run every active check over *statements*, skipping safety-assured ones."""
        exempt = exempt_lines(ignore_ranges)
        token_starts = non_comment_token_starts(source_text) if exempt else []
        violations: list[Violation] = []
        for raw in statements:
            if exempt and statement_line(source_text, token_starts, raw.stmt_location or 0) in exempt:
                continue
            violations.extend(self.check_node(raw.stmt, config))
        return violations


@functools.cache
def builtin_check_names() -> tuple[str, ...]:
    """Names of every built-in check, whatever the configuration disables."""
    return tuple(CheckRegistry.unfiltered().active_check_names())
