"""Abstract base adapter for migration framework layouts."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from lockguard.core.errors import ConfigError, MigrationDiscoveryError

__all__ = [
    "MigrationDirection",
    "MigrationFile",
    "BaseMigrationAdapter",
    "normalize_version",
    "should_check_migration",
]


class MigrationDirection(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class MigrationFile:
    """A single SQL file selected for checking."""

    path: Path
    version: str
    direction: MigrationDirection = MigrationDirection.UP

    @property
    def display_path(self) -> str:
        return str(self.path)


def normalize_version(version: str) -> str:
    return version.replace("_", "").replace("-", "")


def should_check_migration(start_after: str | None, version: str) -> bool:
    """Return ``True`` if *version* sorts strictly after *start_after*.

    Separators are ignored, so ``2024_01_01_000000`` equals ``20240101000000``.
    Purely numeric versions compare as numbers, which keeps SQLx-style short
    versions (``2`` vs ``10``) in order.
    """
    if start_after is None:
        return True
    threshold = normalize_version(start_after)
    candidate = normalize_version(version)
    if threshold.isdigit() and candidate.isdigit():
        return int(candidate) > int(threshold)
    return candidate > threshold


class BaseMigrationAdapter(ABC):
    """Interface that each migration framework layout must implement."""

    name: str = "base"
    version_pattern: re.Pattern[str]
    version_format: str = ""

    def extract_version(self, name: str) -> str | None:
        """Return the normalized version at the start of *name*, if any."""
        match = self.version_pattern.match(name)
        if match is None:
            return None
        return normalize_version(match.group(1))

    def validate_start_after(self, start_after: str | None) -> None:
        if start_after is None:
            return
        match = self.version_pattern.match(start_after)
        if match is None or match.group(0) != start_after:
            raise ConfigError(
                f"invalid start_after {start_after!r} for {self.name}; expected {self.version_format}"
            )

    @abstractmethod
    def collect_migration_files(
        self,
        root: Path,
        start_after: str | None = None,
        check_down: bool = False,
    ) -> list[MigrationFile]:
        """Return the files under *root* to check, sorted by path."""

    def extract_sql(self, sql: str, direction: MigrationDirection) -> str:
        """Return the part of a migration file that runs in *direction*."""
        return sql

    def read_sql(self, migration: MigrationFile) -> str:
        try:
            sql = migration.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MigrationDiscoveryError(f"cannot read migration {migration.path}: {exc}") from exc
        return self.extract_sql(sql, migration.direction)

    def _sorted_entries(self, directory: Path) -> list[Path]:
        try:
            return sorted(directory.iterdir())
        except OSError as exc:
            raise MigrationDiscoveryError(f"cannot list migrations in {directory}: {exc}") from exc
