"""Tests for the Diesel and SQLx migration layouts."""
from __future__ import annotations
from pathlib import Path
import pytest
from lockguard.adapters.base import MigrationDirection, MigrationFile, normalize_version, should_check_migration
from lockguard.adapters.diesel_adapter import DieselAdapter
from lockguard.adapters.registry import adapter_for
from lockguard.adapters.sqlx_adapter import SqlxAdapter
from lockguard.core.errors import ConfigError, MigrationDiscoveryError


def _names(files: list[MigrationFile], root: Path) -> list[str]:
    return [f.path.relative_to(root).as_posix() for f in files]


class TestVersionOrdering:
    def test_normalize_version(self) -> None:
        assert normalize_version("2024_01_01_000000") == normalize_version("2024-01-01-000000") == "20240101000000"

    @pytest.mark.parametrize(
        ("start_after", "version", "expected"),
        [
            (None, "1", True),
            ("20240101000000", "2024_01_01_000000", False),
            ("2024_01_01_000000", "20240201000000", True),
            ("2024_02_01_000000", "20240101000000", False),
            ("2", "10", True),
            ("10", "2", False),
        ],
    )
    def test_should_check_migration(self, start_after, version, expected) -> None:
        assert should_check_migration(start_after, version) is expected


class TestAdapterRegistry:
    def test_known_frameworks(self) -> None:
        assert isinstance(adapter_for("diesel"), DieselAdapter) and isinstance(adapter_for("SQLX"), SqlxAdapter)

    def test_unknown_framework(self) -> None:
        with pytest.raises(ConfigError, match="unsupported framework"):
            adapter_for("flyway")


class TestDieselAdapter:
    def test_collects_up_files_in_order(self, diesel_project: Path) -> None:
        files = DieselAdapter().collect_migration_files(diesel_project)
        assert _names(files, diesel_project) == [
            "2024_01_01_000000_create_users/up.sql",
            "2024_02_01_000000_add_email/up.sql",
            "2024_03_01_000000_drop_legacy/up.sql",
        ]
        assert all(f.direction is MigrationDirection.UP for f in files)

    def test_check_down_includes_down_files(self, diesel_project: Path) -> None:
        files = DieselAdapter().collect_migration_files(diesel_project, check_down=True)
        assert _names(files, diesel_project)[:2] == [
            "2024_01_01_000000_create_users/up.sql",
            "2024_01_01_000000_create_users/down.sql",
        ]
        assert len(files) == 5 and files[1].direction is MigrationDirection.DOWN

    @pytest.mark.parametrize("start_after", ["2024_01_01_000000", "20240101000000", "2024-01-01-000000"])
    def test_start_after_formats(self, diesel_project: Path, start_after: str) -> None:
        files = DieselAdapter().collect_migration_files(diesel_project, start_after=start_after)
        assert [f.version for f in files] == ["20240201000000", "20240301000000"]

    def test_invalid_start_after(self, diesel_project: Path) -> None:
        with pytest.raises(ConfigError, match="invalid start_after"):
            DieselAdapter().collect_migration_files(diesel_project, start_after="2024")

    def test_single_migration_directory_ignores_start_after(self, diesel_project: Path) -> None:
        target = diesel_project / "2024_01_01_000000_create_users"
        files = DieselAdapter().collect_migration_files(target, start_after="20250101000000", check_down=True)
        assert [f.path.name for f in files] == ["up.sql", "down.sql"]

    def test_loose_sql_files(self, tmp_path: Path) -> None:
        (tmp_path / "20240101000000_old.sql").write_text("SELECT 1;")
        (tmp_path / "20240301000000_new.sql").write_text("SELECT 1;")
        (tmp_path / "schema.sql").write_text("SELECT 1;")
        files = DieselAdapter().collect_migration_files(tmp_path, start_after="20240201000000")
        assert _names(files, tmp_path) == ["20240301000000_new.sql", "schema.sql"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(MigrationDiscoveryError):
            DieselAdapter().collect_migration_files(tmp_path / "missing")

    def test_extract_version(self) -> None:
        adapter = DieselAdapter()
        assert adapter.extract_version("2024_01_01_000000_create_users") == "20240101000000"
        assert adapter.extract_version("create_users") is None


class TestSqlxAdapter:
    def test_collects_versioned_up_files(self, sqlx_project: Path) -> None:
        files = SqlxAdapter().collect_migration_files(sqlx_project)
        assert _names(files, sqlx_project) == ["10_sections.sql", "1_create_users.sql", "2_add_email.up.sql"]

    def test_check_down(self, sqlx_project: Path) -> None:
        files = SqlxAdapter().collect_migration_files(sqlx_project, check_down=True)
        down = [f for f in files if f.direction is MigrationDirection.DOWN]
        assert [f.path.name for f in down] == ["2_add_email.down.sql"] and len(files) == 4

    def test_start_after_is_numeric(self, sqlx_project: Path) -> None:
        files = SqlxAdapter().collect_migration_files(sqlx_project, start_after="2")
        assert [f.version for f in files] == ["10"]

    def test_invalid_start_after(self, sqlx_project: Path) -> None:
        with pytest.raises(ConfigError, match="one or more digits"):
            SqlxAdapter().collect_migration_files(sqlx_project, start_after="2024_01_01")

    def test_single_file(self, sqlx_project: Path) -> None:
        files = SqlxAdapter().collect_migration_files(sqlx_project / "1_create_users.sql")
        assert [f.version for f in files] == ["1"]

    def test_extract_up_section(self, sqlx_project: Path) -> None:
        adapter = SqlxAdapter()
        sql = adapter.read_sql(MigrationFile(sqlx_project / "10_sections.sql", "10"))
        lines = sql.splitlines()
        assert lines[1] == "ALTER TABLE users ADD COLUMN email TEXT;"
        assert "DROP TABLE" not in sql and len(lines) == 5

    def test_extract_down_section(self) -> None:
        sql = "-- migrate:up\nCREATE TABLE a (id INT);\n-- migrate:down\nDROP TABLE a;\n"
        assert SqlxAdapter().extract_sql(sql, MigrationDirection.DOWN) == "\n\n\nDROP TABLE a;\n"

    def test_no_markers_unchanged(self) -> None:
        sql = "DROP TABLE a;\n"
        assert SqlxAdapter().extract_sql(sql, MigrationDirection.UP) == sql
