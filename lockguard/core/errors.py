"""Exception hierarchy shared by the lockguard library and CLI."""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "LockguardError",
    "ConfigError",
    "SqlParseError",
    "SafetyAssuredError",
    "MigrationDiscoveryError",
]


class LockguardError(Exception):
    """Base class for every error lockguard raises on purpose."""


class ConfigError(LockguardError):
    """The configuration file or one of its values is invalid."""


class SqlParseError(LockguardError):
    """A migration could not be parsed as PostgreSQL."""

    def __init__(self, message: str, line: int | None = None, file_path: Path | str | None = None) -> None:
        self.message = message
        self.line = line
        self.file_path = str(file_path) if file_path is not None else None
        super().__init__(self._render())

    def _render(self) -> str:
        where = ""
        if self.file_path:
            where = self.file_path
            if self.line is not None:
                where += f":{self.line}"
            where += ": "
        elif self.line is not None:
            where = f"line {self.line}: "
        return f"{where}SQL parse error: {self.message}"

    def with_file(self, file_path: Path | str) -> SqlParseError:
        """Return a copy of this error that names the file it came from."""
        return type(self)(self.message, line=self.line, file_path=file_path)


class SafetyAssuredError(SqlParseError):
    """Unbalanced or nested ``safety-assured`` markers."""


class MigrationDiscoveryError(LockguardError):
    """A migration path does not exist or could not be read."""
