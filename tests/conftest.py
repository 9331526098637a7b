"""Shared pytest fixtures for the lockguard test suite."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.config.settings import LockguardSettings
from lockguard.core.engine import SafetyChecker
from lockguard.core.parser import parse_sql

ADD_COLUMN_WITH_DEFAULT = "ALTER TABLE users ADD COLUMN admin BOOLEAN DEFAULT FALSE;\n"

SAFE_ADD_COLUMN = "ALTER TABLE users ADD COLUMN email TEXT;\n"

DROP_TABLE_UP = "DROP TABLE legacy_users;\n"

SAFETY_ASSURED_BLOCK = textwrap.dedent("""\
    ALTER TABLE users ADD COLUMN a BOOLEAN DEFAULT FALSE;
    -- safety-assured:start
    ALTER TABLE users ADD COLUMN b BOOLEAN DEFAULT FALSE;
    ALTER TABLE users ADD COLUMN c BOOLEAN DEFAULT FALSE;
    -- safety-assured:end
    ALTER TABLE users ADD COLUMN d BOOLEAN DEFAULT FALSE;
""")

SQLX_WITH_SECTIONS = textwrap.dedent("""\
    -- migrate:up
    ALTER TABLE users ADD COLUMN email TEXT;

    -- migrate:down
    DROP TABLE users;
""")

CONCURRENT_INDEX_SCRIPT = textwrap.dedent("""\
    stmt = node.IndexStmt
    if stmt is None or stmt.concurrent:
        return
    {
        "operation": "CREATE INDEX without CONCURRENTLY",
        "problem": f"index {stmt.idxname} blocks writes",
        "safe_alternative": "use CONCURRENTLY",
    }
""")

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def default_settings() -> LockguardSettings:
    return LockguardSettings()


@pytest.fixture
def pg11_settings() -> LockguardSettings:
    return LockguardSettings(postgres_version=11)


@pytest.fixture
def checker() -> SafetyChecker:
    return SafetyChecker()


@pytest.fixture
def run_check(default_settings: LockguardSettings) -> Callable[..., list[Violation]]:
    """Run a single check over every statement of a SQL string."""

    def _run(check: BaseCheck, sql: str, settings: LockguardSettings | None = None) -> list[Violation]:
        violations: list[Violation] = []
        for raw in parse_sql(sql):
            violations.extend(check.evaluate(raw.stmt, settings or default_settings))
        return violations

    return _run


@pytest.fixture
def first_stmt() -> Callable[[str], Any]:
    return lambda sql: parse_sql(sql)[0].stmt


@pytest.fixture
def examples_dir() -> Path:
    return EXAMPLES_DIR


@pytest.fixture
def diesel_project(tmp_path: Path) -> Path:
    migrations = tmp_path / "migrations"
    first = migrations / "2024_01_01_000000_create_users"
    second = migrations / "2024_02_01_000000_add_email"
    third = migrations / "2024_03_01_000000_drop_legacy"
    for directory in (first, second, third):
        directory.mkdir(parents=True)
    (first / "up.sql").write_text("CREATE TABLE users (id BIGINT PRIMARY KEY, name TEXT);\n")
    (first / "down.sql").write_text("DROP TABLE users;\n")
    (second / "up.sql").write_text(SAFE_ADD_COLUMN)
    (second / "down.sql").write_text("ALTER TABLE users DROP COLUMN email;\n")
    (third / "up.sql").write_text(DROP_TABLE_UP)
    return migrations


@pytest.fixture
def sqlx_project(tmp_path: Path) -> Path:
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "1_create_users.sql").write_text("CREATE TABLE users (id BIGINT PRIMARY KEY);\n")
    (migrations / "2_add_email.up.sql").write_text(SAFE_ADD_COLUMN)
    (migrations / "2_add_email.down.sql").write_text("ALTER TABLE users DROP COLUMN email;\n")
    (migrations / "10_sections.sql").write_text(SQLX_WITH_SECTIONS)
    (migrations / "README.sql").write_text(DROP_TABLE_UP)
    (migrations / "notes.txt").write_text("not a migration")
    return migrations


@pytest.fixture
def custom_checks_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "checks"
    directory.mkdir()
    (directory / "require_concurrent_index.rule").write_text(CONCURRENT_INDEX_SCRIPT)
    return directory
