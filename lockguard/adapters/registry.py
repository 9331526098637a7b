"""Lookup of migration adapters by framework name."""

from __future__ import annotations

from lockguard.adapters.base import BaseMigrationAdapter
from lockguard.adapters.diesel_adapter import DieselAdapter
from lockguard.adapters.sqlx_adapter import SqlxAdapter
from lockguard.core.errors import ConfigError

__all__ = ["adapter_for"]

_ADAPTERS: dict[str, type[BaseMigrationAdapter]] = {
    "diesel": DieselAdapter,
    "sqlx": SqlxAdapter,
}


def adapter_for(framework: str) -> BaseMigrationAdapter:
    try:
        return _ADAPTERS[framework.lower()]()
    except KeyError:
        raise ConfigError(
            f"unsupported framework {framework!r}; expected one of: {', '.join(_ADAPTERS)}"
        ) from None
