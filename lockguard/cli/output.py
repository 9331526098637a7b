"""Text and JSON rendering of check results."""

from __future__ import annotations

import json
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from lockguard.checks.base_check import Violation
from lockguard.utils.logger import console as default_console

__all__ = ["count_violations", "format_json", "print_file_report", "print_text_report"]


def count_violations(results: Sequence[tuple[str, Sequence[Violation]]]) -> int:
    return sum(len(violations) for _, violations in results)


def format_json(results: Sequence[tuple[str, Sequence[Violation]]]) -> str:
    """``[[path, [violation, ...]], ...]`` with each violation as a plain object."""
    payload = [[path, [violation.to_dict() for violation in violations]] for path, violations in results]
    return json.dumps(payload, indent=2)


def print_file_report(path: str, violations: Sequence[Violation], console: Console | None = None) -> None:
    out = console or default_console
    out.print(f"[bold]❌ Unsafe migration detected in[/bold] [accent]{escape(path)}[/accent]")
    out.print()
    for violation in violations:
        out.print(f"  [error]●[/error] [bold]{escape(violation.operation)}[/bold]")
        out.print("    [muted]Problem:[/muted]")
        for line in violation.problem.splitlines():
            out.print(f"      {escape(line)}", highlight=False)
        out.print("    [muted]Safe alternative:[/muted]")
        for line in violation.safe_alternative.splitlines():
            out.print(f"      {escape(line)}", highlight=False)
        out.print()


def print_text_report(results: Sequence[tuple[str, Sequence[Violation]]], console: Console | None = None) -> None:
    out = console or default_console
    if not results:
        out.print("[success]✔[/success] No unsafe migrations detected!")
        return
    for path, violations in results:
        print_file_report(path, violations, out)
    total = count_violations(results)
    out.rule(style="dim")
    out.print(
        f"[error]✖[/error] Found {total} unsafe operation(s) in {len(results)} file(s)",
        highlight=False,
    )
