"""PostgreSQL front-end built on pglast (libpg_query)."""

from __future__ import annotations

from dataclasses import dataclass

import pglast
from pglast.ast import RawStmt
from pglast.parser import ParseError

from lockguard.core.errors import SqlParseError
from lockguard.core.safety_assured import IgnoreRange, offset_to_line, scan_ignore_ranges

__all__ = ["ParsedSql", "parse_sql", "parse_sql_with_ignore_ranges"]


@dataclass(frozen=True)
class ParsedSql:
    source_text: str
    statements: tuple[RawStmt, ...]
    ignore_ranges: tuple[IgnoreRange, ...]


def parse_sql(sql: str) -> tuple[RawStmt, ...]:
    """Parse *sql* into raw statements, raising :class:`SqlParseError` on failure."""
    try:
        return tuple(pglast.parse_sql(sql))
    except ParseError as exc:
        message = str(exc.args[0]) if exc.args else str(exc)
        location = exc.args[1] if len(exc.args) > 1 else None
        line = None
        if isinstance(location, int) and location > 0:
            # libpg_query reports a 1-based cursor position
            line = offset_to_line(sql, location - 1)
        raise SqlParseError(message, line=line) from exc


def parse_sql_with_ignore_ranges(sql: str) -> ParsedSql:
    statements = parse_sql(sql)
    return ParsedSql(source_text=sql, statements=statements, ignore_ranges=tuple(scan_ignore_ranges(sql)))
