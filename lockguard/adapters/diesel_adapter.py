"""Diesel layout: one directory per migration holding ``up.sql`` and ``down.sql``.

::

    migrations/
    └── 2024_01_01_000000_create_users/
        ├── up.sql
        └── down.sql
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from lockguard.adapters.base import BaseMigrationAdapter, MigrationDirection, MigrationFile, should_check_migration

__all__ = ["DieselAdapter"]

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(\d{4}_\d{2}_\d{2}_\d{6}|\d{4}-\d{2}-\d{2}-\d{6}|\d{14})")


class DieselAdapter(BaseMigrationAdapter):
    name = "diesel"
    version_pattern = _VERSION_RE
    version_format = "YYYYMMDDHHMMSS, YYYY_MM_DD_HHMMSS or YYYY-MM-DD-HHMMSS"

    def collect_migration_files(
        self,
        root: Path,
        start_after: str | None = None,
        check_down: bool = False,
    ) -> list[MigrationFile]:
        self.validate_start_after(start_after)
        if self._is_migration_dir(root):
            # an explicitly targeted migration is always checked
            return self._directory_files(root, None, check_down)

        files: list[MigrationFile] = []
        for entry in self._sorted_entries(root):
            if entry.is_dir():
                files.extend(self._directory_files(entry, start_after, check_down))
            elif entry.is_file() and entry.suffix == ".sql":
                version = self.extract_version(entry.name)
                if version is not None and not should_check_migration(start_after, version):
                    continue
                files.append(MigrationFile(entry, version or entry.name))
        logger.debug("Collected %d diesel migration file(s) under %s", len(files), root)
        return files

    @staticmethod
    def _is_migration_dir(path: Path) -> bool:
        return (path / "up.sql").is_file() or (path / "down.sql").is_file()

    def _directory_files(self, directory: Path, start_after: str | None, check_down: bool) -> list[MigrationFile]:
        version = self.extract_version(directory.name) or directory.name
        if not should_check_migration(start_after, version):
            return []
        files: list[MigrationFile] = []
        up_sql = directory / "up.sql"
        if up_sql.is_file():
            files.append(MigrationFile(up_sql, version))
        down_sql = directory / "down.sql"
        if check_down and down_sql.is_file():
            files.append(MigrationFile(down_sql, version, MigrationDirection.DOWN))
        return files
