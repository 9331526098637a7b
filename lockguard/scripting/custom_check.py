"""Custom checks backed by user scripts (``*.rule`` files).

Each script in the custom checks directory becomes one check named after the
file stem. For every statement the script sees three read-only variables:

``node``
    The statement as ``{"<NodeType>": {...}}``, e.g. ``node.IndexStmt``.
``config``
    The run configuration (``postgres_version``, ``framework``, ...).
``pg``
    Named parse-tree constants, see :mod:`lockguard.scripting.pg_constants`.

The script returns nothing, one ``{"operation", "problem",
"safe_alternative"}`` map, or an array of such maps.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from lockguard.checks.base_check import BaseCheck, Violation
from lockguard.scripting.pg_constants import PG_CONSTANTS
from lockguard.scripting.sandbox import (
    CompiledScript, OperationBudgetExceeded, ScriptCompileError, ScriptRuntimeError, compile_script, type_label,
)
from lockguard.scripting.serialize import statement_to_value

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = [
    "SCRIPT_SUFFIX",
    "ScriptLoadError",
    "CustomCheck",
    "config_view",
    "decode_script_result",
    "discover_script_names",
    "load_custom_checks",
]

logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".rule"
_RECORD_FIELDS = ("operation", "problem", "safe_alternative")


@dataclass(frozen=True)
class ScriptLoadError:
    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def config_view(config: LockguardSettings) -> Mapping[str, Any]:
    return MappingProxyType({
        "postgres_version": config.postgres_version,
        "framework": config.framework,
        "check_down": config.check_down,
        "start_after": config.start_after,
        "disable_checks": tuple(config.disable_checks),
    })


def _record_problem(record: Any) -> str | None:
    """Describe what is wrong with a returned record, or ``None`` if it is valid."""
    if not isinstance(record, Mapping):
        return f"{type_label(record)} instead of a map"
    missing = [name for name in _RECORD_FIELDS if name not in record]
    if missing:
        return f"a map missing {', '.join(missing)}"
    extra = sorted(str(key) for key in record if key not in _RECORD_FIELDS)
    if extra:
        return f"a map with unexpected field(s) {', '.join(extra)}"
    invalid = [name for name in _RECORD_FIELDS if not isinstance(record[name], str) or not record[name]]
    if invalid:
        return f"a map whose {', '.join(invalid)} must be non-empty string(s)"
    return None


def _contract_error(check_name: str, shape: str) -> Violation:
    return Violation(
        operation=f"SCRIPT ERROR: {check_name}",
        problem=f"Custom check '{check_name}' returned {shape}.",
        safe_alternative=(
            "Return nothing, a map with exactly the fields operation, problem and safe_alternative "
            "(all non-empty strings), or an array of such maps."
        ),
    )


def decode_script_result(check_name: str, result: Any) -> list[Violation]:
    """Turn a script's return value into violations."""
    if result is None:
        return []
    if isinstance(result, Mapping):
        problem = _record_problem(result)
        if problem is not None:
            return [_contract_error(check_name, problem)]
        return [Violation(**{name: result[name] for name in _RECORD_FIELDS})]
    if isinstance(result, (list, tuple)):
        violations: list[Violation] = []
        for index, record in enumerate(result):
            problem = _record_problem(record)
            if problem is not None:
                return [_contract_error(check_name, f"an array whose element {index} is {problem}")]
            violations.append(Violation(**{name: record[name] for name in _RECORD_FIELDS}))
        return violations
    return [_contract_error(check_name, f"a {type_label(result)} (expected nothing, a map or an array of maps)")]


class CustomCheck(BaseCheck):
    description = "Custom check script."

    def __init__(self, name: str, script: CompiledScript, path: Path | None = None) -> None:
        self.name = name
        self.script = script
        self.path = path

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        variables = {"node": statement_to_value(node), "config": config_view(config), "pg": PG_CONSTANTS}
        try:
            result = self.script.evaluate(variables)
        except OperationBudgetExceeded:
            # running out of budget is how scripts bail out early
            return []
        except ScriptRuntimeError as exc:
            logger.warning("Custom check '%s' failed: %s", self.name, exc)
            return []
        return decode_script_result(self.name, result)


def discover_script_names(directory: Path) -> list[str]:
    """Stems of every script in *directory*, sorted; empty if it cannot be read."""
    try:
        return sorted(path.stem for path in directory.iterdir() if path.suffix == SCRIPT_SUFFIX and path.is_file())
    except OSError:
        return []


def load_custom_checks(directory: Path, config: LockguardSettings) -> tuple[list[CustomCheck], list[ScriptLoadError]]:
    """Compile every enabled script in *directory*, in file name order.

    Failures are collected rather than raised so one broken script never
    prevents the others from loading.
    """
    checks: list[CustomCheck] = []
    errors: list[ScriptLoadError] = []
    try:
        paths = sorted(path for path in directory.iterdir() if path.suffix == SCRIPT_SUFFIX and path.is_file())
    except OSError as exc:
        return checks, [ScriptLoadError(directory, f"cannot read custom checks directory: {exc}")]

    for path in paths:
        name = path.stem
        if not config.is_check_enabled(name):
            logger.debug("Skipping disabled custom check '%s'", name)
            continue
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            errors.append(ScriptLoadError(path, f"cannot read script: {exc}"))
            continue
        try:
            script = compile_script(source, name=str(path))
        except ScriptCompileError as exc:
            errors.append(ScriptLoadError(path, f"compile error: {exc}"))
            continue
        checks.append(CustomCheck(name, script, path))
    return checks, errors
