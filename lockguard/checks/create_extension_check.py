"""Check: CREATE EXTENSION inside an application migration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pglast import ast

from lockguard.checks.base_check import BaseCheck, Violation

if TYPE_CHECKING:
    from lockguard.config.settings import LockguardSettings

__all__ = ["CreateExtensionCheck"]


class CreateExtensionCheck(BaseCheck):
    name = "CreateExtensionCheck"
    description = "Detects CREATE EXTENSION in migrations."

    def evaluate(self, node: Any, config: LockguardSettings) -> list[Violation]:
        if not isinstance(node, ast.CreateExtensionStmt):
            return []
        extension = node.extname
        return [Violation(
            operation="CREATE EXTENSION",
            problem=(
                f"Creating extension '{extension}' usually needs superuser rights, which the migration role often lacks "
                "in production. Some extensions also take locks or run lengthy setup when installed."
            ),
            safe_alternative=(
                "Install extensions out of band (provisioning scripts or a DBA change) before deploying, and keep "
                f"the migration idempotent:\n   CREATE EXTENSION IF NOT EXISTS {extension};\n\n"
                "If the extension is known to be installed already, wrap the statement in a safety-assured block."
            ),
        )]
