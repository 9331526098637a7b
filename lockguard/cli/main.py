"""lockguard CLI – Typer multi-command application."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.text import Text

from lockguard.checks.registry import BUILTIN_CHECKS
from lockguard.config.settings import LockguardSettings, load_settings
from lockguard.core.ast_dump import dump_ast as render_ast
from lockguard.core.engine import SafetyChecker
from lockguard.core.errors import LockguardError
from lockguard.cli.output import format_json, print_text_report
from lockguard.utils.logger import (
    configure_logging, console, create_table, print_error, print_info, print_success, print_warning,
)

__all__ = ["app", "CONFIG_TEMPLATE"]

app = typer.Typer(
    name="lockguard",
    help="Catch PostgreSQL migration operations that take dangerous locks before they reach production.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

CONFIG_TEMPLATE = """\
# lockguard configuration

# Migration layout: "diesel" (directories with up.sql/down.sql) or "sqlx".
framework: diesel

# Only check migrations whose version sorts after this one.
# start_after: "2024_01_01_000000"

# Also check down migrations.
check_down: false

# Checks to skip, by name (see `lockguard list-checks`).
disable_checks: []

# Directory of custom check scripts (*.rule).
# custom_checks_dir: lockguard_checks

# Major version of the target PostgreSQL server. Some checks relax on newer
# versions, e.g. constant defaults on ADD COLUMN are safe from 11 onwards.
# postgres_version: 16
"""


class OutputFormat(str, Enum):
    text = "text"
    json = "json"


def _banner() -> None:
    console.print(Panel(
        Text("lockguard", style="bold magenta", justify="center"),
        subtitle="PostgreSQL migration safety",
        border_style="magenta", expand=False, padding=(0, 4),
    ))
    console.print()


def _load(config: Path | None) -> SafetyChecker:
    settings = load_settings(config_path=config)
    return SafetyChecker(settings)


@app.command()
def check(
    path: Path = typer.Argument(..., help="Migration file or directory to check"),
    output_format: OutputFormat = typer.Option(OutputFormat.text, "--format", "-f", help="Report format"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to lockguard.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Check migrations for operations that lock tables or break running code."""
    configure_logging(verbose)
    try:
        checker = _load(config)
        results = checker.check_path(path)
    except LockguardError as exc:
        print_error(str(exc))
        raise typer.Exit(code=2)

    if output_format is OutputFormat.json:
        typer.echo(format_json(results))
    else:
        _banner()
        print_text_report(results)
    raise typer.Exit(code=1 if results else 0)


@app.command("list-checks")
def list_checks(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to lockguard.yaml"),
) -> None:
    """List built-in and custom checks and whether they are enabled."""
    configure_logging()
    try:
        checker = _load(config)
    except LockguardError as exc:
        print_error(str(exc))
        raise typer.Exit(code=2)

    settings = checker.settings
    rows = [
        [check_cls.name, _status(settings, check_cls.name), check_cls.description]
        for check_cls in BUILTIN_CHECKS
    ]
    for custom in checker.custom_checks:
        rows.append([custom.name, "enabled", f"Custom check ({custom.path})"])
    console.print(create_table(
        "Checks",
        [("Check", "bold"), ("Status", ""), ("Description", "")],
        rows,
    ))
    enabled = len(checker.active_check_names())
    print_info(f"{enabled} check(s) enabled, {len(rows) - enabled} disabled")


def _status(settings: LockguardSettings, name: str) -> str:
    return "enabled" if settings.is_check_enabled(name) else "[muted]disabled[/muted]"


@app.command("dump-ast")
def dump_ast(
    sql: Optional[str] = typer.Option(None, "--sql", help="SQL text to parse"),
    file: Optional[Path] = typer.Option(None, "--file", help="SQL file to parse"),
) -> None:
    """Print the parse tree custom check scripts receive as ``node``."""
    if (sql is None) == (file is None):
        print_error("Pass exactly one of --sql or --file.")
        raise typer.Exit(code=2)
    try:
        if file is not None:
            sql = file.read_text(encoding="utf-8")
        typer.echo(render_ast(sql))
    except OSError as exc:
        print_error(f"cannot read {file}: {exc}")
        raise typer.Exit(code=2)
    except LockguardError as exc:
        print_error(str(exc))
        raise typer.Exit(code=2)


@app.command()
def init(
    directory: Path = typer.Option(Path("."), "--dir", "-d", help="Where to write lockguard.yaml"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing lockguard.yaml"),
) -> None:
    """Write a commented default ``lockguard.yaml``."""
    target = directory / "lockguard.yaml"
    if target.exists():
        if not force:
            print_error(f"{target} already exists; use --force to overwrite it.")
            raise typer.Exit(code=2)
        print_warning(f"Overwriting {target}")
    target.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    print_success(f"Wrote {target}")


if __name__ == "__main__":
    app()
