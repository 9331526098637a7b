"""Render parsed SQL as the JSON structure custom check scripts receive."""

from __future__ import annotations

import json

from lockguard.core.parser import parse_sql
from lockguard.scripting.serialize import statement_to_value

__all__ = ["dump_ast"]


def dump_ast(sql: str) -> str:
    """Parse *sql* and return one ``{"<NodeType>": {...}}`` element per statement.

    The output is what ``node`` holds inside a script, so it is the quickest
    way to find the field names a custom check needs.
    """
    statements = parse_sql(sql)
    return json.dumps([statement_to_value(raw.stmt) for raw in statements], indent=2)
