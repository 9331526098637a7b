"""Base check interface and violation model for the lockguard rule engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["Violation", "BaseCheck"]


@dataclass(frozen=True)
class Violation:
    """One finding: what was done, why it is risky, and what to do instead."""

    operation: str
    problem: str
    safe_alternative: str

    def __post_init__(self) -> None:
        for field_name in ("operation", "problem", "safe_alternative"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"Violation.{field_name} must be a non-empty string")

    def __str__(self) -> str:
        return f"{self.operation}: {self.problem}"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class BaseCheck(ABC):
    # Names are user-facing configuration (disable_checks) and must stay stable.
    name: str = "base"
    description: str = ""

    @abstractmethod
    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        """Inspect one parsed statement and return any violations found.

        Statements the check does not target yield an empty list. Checks must
        not raise for a well-formed tree and must not keep state between calls.
        """
