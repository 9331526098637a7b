"""Tests for the check registry and statement-level evaluation."""
from __future__ import annotations
from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.checks.registry import BUILTIN_CHECKS, CheckRegistry, builtin_check_names
from lockguard.config.settings import LockguardSettings
from lockguard.core.parser import parse_sql_with_ignore_ranges


def _check(registry: CheckRegistry, sql: str, settings: LockguardSettings) -> list[Violation]:
    parsed = parse_sql_with_ignore_ranges(sql)
    return registry.check_statements(parsed.statements, parsed.source_text, parsed.ignore_ranges, settings)


class _TableNameCheck(BaseCheck):
    name = "TableNameCheck"
    description = "test check"

    def evaluate(self, node, config) -> list[Violation]:
        return [Violation("CUSTOM", type(node).__name__, "none")]


class TestRegistryConstruction:
    def test_builtin_names_in_canonical_order(self) -> None:
        assert builtin_check_names() == tuple(c.name for c in BUILTIN_CHECKS)
        assert builtin_check_names()[0] == "AddColumnCheck" and builtin_check_names()[-1] == "WideIndexCheck"

    def test_from_config_skips_disabled(self) -> None:
        settings = LockguardSettings(disable_checks=["AddColumnCheck", "DropTableCheck"])
        names = CheckRegistry.from_config(settings).active_check_names()
        assert "AddColumnCheck" not in names and "DropTableCheck" not in names and len(names) == 22

    def test_builtin_names_ignore_config(self) -> None:
        CheckRegistry.from_config(LockguardSettings(disable_checks=["AddColumnCheck"]))
        assert "AddColumnCheck" in builtin_check_names()

    def test_added_checks_run_after_builtins(self, default_settings) -> None:
        registry = CheckRegistry.from_config(default_settings)
        registry.add_check(_TableNameCheck())
        assert registry.active_check_names()[-1] == "TableNameCheck"
        ops = [v.operation for v in _check(registry, "DROP TABLE users;", default_settings)]
        assert ops == ["DROP TABLE", "CUSTOM"]


class TestCheckStatements:
    def test_add_column_default_without_version(self, default_settings) -> None:
        sql = "ALTER TABLE users ADD COLUMN admin BOOLEAN DEFAULT FALSE;"
        assert len(_check(CheckRegistry.from_config(default_settings), sql, default_settings)) == 1

    def test_add_column_default_pg11(self, pg11_settings) -> None:
        sql = "ALTER TABLE users ADD COLUMN admin BOOLEAN DEFAULT FALSE;"
        assert _check(CheckRegistry.from_config(pg11_settings), sql, pg11_settings) == []

    def test_volatile_default_pg11(self, pg11_settings) -> None:
        sql = "ALTER TABLE users ADD COLUMN created_at TIMESTAMPTZ DEFAULT now();"
        violations = _check(CheckRegistry.from_config(pg11_settings), sql, pg11_settings)
        assert [v.operation for v in violations] == ["ADD COLUMN with DEFAULT"]

    def test_create_index(self, default_settings) -> None:
        registry = CheckRegistry.from_config(default_settings)
        assert len(_check(registry, "CREATE INDEX idx_users_email ON users(email);", default_settings)) == 1
        assert _check(registry, "CREATE INDEX CONCURRENTLY idx_users_email ON users(email);", default_settings) == []

    def test_drop_multiple_tables(self, default_settings) -> None:
        violations = _check(CheckRegistry.from_config(default_settings), "DROP TABLE a, b, c;", default_settings)
        assert len(violations) == 3

    def test_violations_follow_canonical_order(self, default_settings) -> None:
        sql = "ALTER TABLE users ADD COLUMN created_at TIMESTAMP DEFAULT now();"
        violations = _check(CheckRegistry.from_config(default_settings), sql, default_settings)
        assert [v.operation for v in violations] == ["ADD COLUMN with DEFAULT", "ADD COLUMN with TIMESTAMP"]

    def test_statements_in_source_order(self, default_settings) -> None:
        sql = "DROP TABLE b;\nTRUNCATE a;\nDROP DATABASE c;"
        violations = _check(CheckRegistry.from_config(default_settings), sql, default_settings)
        assert [v.operation for v in violations] == ["DROP TABLE", "TRUNCATE TABLE", "DROP DATABASE"]

    def test_safety_assured_block_skips_only_wrapped_statement(self, default_settings) -> None:
        sql = (
            "-- safety-assured:start\n"
            "ALTER TABLE t DROP COLUMN c;\n"
            "-- safety-assured:end\n"
            "ALTER TABLE t DROP COLUMN d;\n"
        )
        [violation] = _check(CheckRegistry.from_config(default_settings), sql, default_settings)
        assert violation.operation == "DROP COLUMN" and "'d'" in violation.problem

    def test_disabled_check(self) -> None:
        settings = LockguardSettings(disable_checks=["AddColumnCheck"])
        sql = "ALTER TABLE users ADD COLUMN admin BOOLEAN DEFAULT FALSE;"
        assert _check(CheckRegistry.from_config(settings), sql, settings) == []

    def test_deterministic(self, default_settings) -> None:
        registry = CheckRegistry.from_config(default_settings)
        sql = "DROP TABLE a, b;\nCREATE INDEX idx ON t (a, b, c, d);"
        assert _check(registry, sql, default_settings) == _check(registry, sql, default_settings)


