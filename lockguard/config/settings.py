"""Pydantic-based configuration model and YAML loader for lockguard."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from lockguard.core.errors import ConfigError

__all__ = ["SUPPORTED_FRAMEWORKS", "LockguardSettings", "load_settings", "find_config_file"]

SUPPORTED_FRAMEWORKS: tuple[str, ...] = ("diesel", "sqlx")

_CONFIG_FILE_NAMES: list[str] = [
    "lockguard.yaml",
    "lockguard.yml",
    ".lockguard.yaml",
    ".lockguard.yml",
]


class LockguardSettings(BaseModel):
    """Top-level lockguard configuration."""

    framework: str = Field(
        default="diesel",
        description="Migration framework layout: 'diesel' or 'sqlx'.",
    )
    start_after: str | None = Field(
        default=None,
        description="Only check migrations whose version sorts after this one.",
    )
    check_down: bool = Field(
        default=False,
        description="Also check down migrations.",
    )
    disable_checks: list[str] = Field(
        default_factory=list,
        description="Names of built-in or custom checks to skip.",
    )
    custom_checks_dir: str | None = Field(
        default=None,
        description="Directory containing custom check scripts (*.rule).",
    )
    postgres_version: int | None = Field(
        default=None,
        ge=1,
        description="Major version of the target PostgreSQL server, enables version-aware checks.",
    )

    @field_validator("framework")
    @classmethod
    def _check_framework(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in SUPPORTED_FRAMEWORKS:
            raise ValueError(
                f"unsupported framework {value!r}; expected one of: {', '.join(SUPPORTED_FRAMEWORKS)}"
            )
        return normalized

    def is_check_enabled(self, name: str) -> bool:
        return name not in self.disable_checks


def find_config_file(search_dir: Path) -> Path | None:
    """Walk up from *search_dir* looking for a config file."""
    current = search_dir.resolve()
    while True:
        for name in _CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"{path}: cannot read config file: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level, got {type(raw).__name__}")
    return raw


def load_settings(
    config_path: Path | None = None,
    search_dir: Path | None = None,
) -> LockguardSettings:
    """Load settings from a YAML file, falling back to defaults.

    An explicit *config_path* must exist. Without one, the nearest config file
    above *search_dir* (or the working directory) is used if there is one.
    """
    raw: dict[str, Any] = {}
    source: Path | None = None

    if config_path is not None:
        resolved = Path(config_path).resolve()
        if not resolved.is_file():
            raise ConfigError(f"config file not found: {resolved}")
        source = resolved
    else:
        source = find_config_file(search_dir or Path.cwd())

    if source is not None:
        raw = _read_yaml(source)

    try:
        return LockguardSettings.model_validate(raw)
    except ValidationError as exc:
        where = f"{source}: " if source is not None else ""
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"{where}invalid configuration: {problems}") from exc
