"""Orchestration engine: ties settings, adapters, parsing and checks together."""

from __future__ import annotations

import logging
from pathlib import Path

from lockguard.adapters.base import BaseMigrationAdapter, MigrationDirection, MigrationFile
from lockguard.adapters.registry import adapter_for
from lockguard.checks.base_check import Violation
from lockguard.checks.registry import CheckRegistry, builtin_check_names
from lockguard.config.settings import LockguardSettings
from lockguard.core.errors import MigrationDiscoveryError, SqlParseError
from lockguard.core.parser import parse_sql_with_ignore_ranges
from lockguard.scripting.custom_check import CustomCheck, ScriptLoadError, discover_script_names, load_custom_checks

__all__ = ["SafetyChecker", "FileViolations"]

logger = logging.getLogger(__name__)

FileViolations = tuple[str, list[Violation]]


class SafetyChecker:
    """Central entry point for checking SQL text, files and migration directories."""

    def __init__(self, settings: LockguardSettings | None = None) -> None:
        self.settings = settings or LockguardSettings()
        self.adapter: BaseMigrationAdapter = adapter_for(self.settings.framework)
        self.registry = CheckRegistry.from_config(self.settings)
        self.custom_checks: list[CustomCheck] = []
        self.load_errors: list[ScriptLoadError] = []
        self._load_custom_checks()
        self._warn_unknown_disabled()

    @property
    def custom_checks_dir(self) -> Path | None:
        if self.settings.custom_checks_dir is None:
            return None
        return Path(self.settings.custom_checks_dir)

    @property
    def builtin_names(self) -> tuple[str, ...]:
        return builtin_check_names()

    def active_check_names(self) -> list[str]:
        return self.registry.active_check_names()

    def _load_custom_checks(self) -> None:
        directory = self.custom_checks_dir
        if directory is None:
            return
        if not directory.is_dir():
            logger.warning("Custom checks directory %s does not exist; no custom checks loaded", directory)
            return
        checks, errors = load_custom_checks(directory, self.settings)
        for error in errors:
            logger.warning("Failed to load custom check %s", error)
        for check in checks:
            self.registry.add_check(check)
        self.custom_checks = checks
        self.load_errors = errors
        logger.debug("Loaded %d custom check(s) from %s", len(checks), directory)

    def _warn_unknown_disabled(self) -> None:
        if not self.settings.disable_checks:
            return
        known = set(self.builtin_names)
        directory = self.custom_checks_dir
        if directory is not None and directory.is_dir():
            known.update(discover_script_names(directory))
        for name in self.settings.disable_checks:
            if name not in known:
                logger.warning(
                    "Unknown check name '%s' in disable_checks; run 'lockguard list-checks' to see available checks",
                    name,
                )

    def check_sql(self, sql: str) -> list[Violation]:
        """Check raw SQL text; raises :class:`SqlParseError` if it does not parse."""
        parsed = parse_sql_with_ignore_ranges(sql)
        return self.registry.check_statements(
            parsed.statements, parsed.source_text, parsed.ignore_ranges, self.settings
        )

    def _check_migration(self, migration: MigrationFile) -> list[Violation]:
        sql = self.adapter.read_sql(migration)
        try:
            return self.check_sql(sql)
        except SqlParseError as exc:
            raise exc.with_file(migration.display_path) from exc

    def check_file(self, path: Path, direction: MigrationDirection = MigrationDirection.UP) -> list[Violation]:
        path = Path(path)
        version = self.adapter.extract_version(path.name) or path.name
        return self._check_migration(MigrationFile(path, version, direction))

    def check_directory(self, path: Path) -> list[FileViolations]:
        """Check every migration under *path*; files without violations are omitted."""
        migrations = self.adapter.collect_migration_files(
            Path(path), self.settings.start_after, self.settings.check_down
        )
        results: list[FileViolations] = []
        for migration in migrations:
            violations = self._check_migration(migration)
            if violations:
                results.append((migration.display_path, violations))
        return results

    def check_path(self, path: Path) -> list[FileViolations]:
        path = Path(path)
        if not path.exists():
            raise MigrationDiscoveryError(f"path not found: {path}")
        if path.is_dir():
            return self.check_directory(path)
        violations = self.check_file(path)
        if not violations:
            return []
        return [(str(path), violations)]
