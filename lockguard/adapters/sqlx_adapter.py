"""SQLx layout: flat ``.sql`` files named after a numeric version.

Supported forms:

* ``<version>_<description>.sql`` (up only)
* ``<version>_<description>.up.sql`` / ``<version>_<description>.down.sql``
* a single file split by ``-- migrate:up`` / ``-- migrate:down`` markers
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from lockguard.adapters.base import BaseMigrationAdapter, MigrationDirection, MigrationFile, should_check_migration
from lockguard.core.errors import ConfigError

__all__ = ["SqlxAdapter"]

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^(\d+)(?:_|\.)?")
_SECTION_MARKER_RE = re.compile(r"^\s*--\s*migrate:(up|down)\b", re.IGNORECASE)


class SqlxAdapter(BaseMigrationAdapter):
    name = "sqlx"
    version_pattern = _VERSION_RE
    version_format = "one or more digits"

    def validate_start_after(self, start_after: str | None) -> None:
        if start_after is not None and not (start_after.isascii() and start_after.isdigit()):
            raise ConfigError(f"invalid start_after {start_after!r} for {self.name}; expected {self.version_format}")

    def collect_migration_files(
        self,
        root: Path,
        start_after: str | None = None,
        check_down: bool = False,
    ) -> list[MigrationFile]:
        self.validate_start_after(start_after)
        if root.is_file():
            entries = [root]
        else:
            entries = self._sorted_entries(root)

        files: list[MigrationFile] = []
        for entry in entries:
            if not entry.is_file() or entry.suffix != ".sql":
                continue
            stem = entry.name[: -len(".sql")]
            direction = MigrationDirection.UP
            if stem.endswith(".down"):
                if not check_down:
                    continue
                direction = MigrationDirection.DOWN
            version = self.extract_version(entry.name)
            if version is None:
                logger.debug("Skipping %s: no leading version number", entry)
                continue
            if not should_check_migration(start_after, version):
                continue
            files.append(MigrationFile(entry, version, direction))
        logger.debug("Collected %d sqlx migration file(s) under %s", len(files), root)
        return files

    def extract_sql(self, sql: str, direction: MigrationDirection) -> str:
        """Keep only the lines of the *direction* section.

        Files without markers are returned unchanged. Lines outside the
        selected section are blanked rather than removed so line numbers in
        errors still match the file.
        """
        lines = sql.splitlines(keepends=True)
        if not any(_SECTION_MARKER_RE.match(line) for line in lines):
            return sql
        kept: list[str] = []
        current: str | None = None
        for line in lines:
            match = _SECTION_MARKER_RE.match(line)
            if match is not None:
                current = match.group(1).lower()
                kept.append(_blank(line))
            elif current == direction.value:
                kept.append(line)
            else:
                kept.append(_blank(line))
        return "".join(kept)


def _blank(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith("\n"):
        return "\n"
    return ""
