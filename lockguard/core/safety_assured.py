"""Safety-assured blocks: scanning the markers and mapping statements to lines.

A block is opened by a whole-line comment containing ``safety-assured:start``
and closed by the next one containing ``safety-assured:end``::

    -- safety-assured:start
    ALTER TABLE users DROP COLUMN legacy;
    -- safety-assured:end

Statements that begin strictly between the two marker lines are exempt from
every check.
"""

from __future__ import annotations

import re
from bisect import bisect_left
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pglast.parser import ParseError, scan

from lockguard.core.errors import SafetyAssuredError

__all__ = [
    "IgnoreRange",
    "scan_ignore_ranges",
    "exempt_lines",
    "non_comment_token_starts",
    "first_token_at_or_after",
    "offset_to_line",
    "statement_line",
]

_START_RE = re.compile(r"^\s*--.*\bsafety-assured\s*:\s*start\b", re.IGNORECASE)
_END_RE = re.compile(r"^\s*--.*\bsafety-assured\s*:\s*end\b", re.IGNORECASE)
_COMMENT_TOKENS = frozenset({"SQL_COMMENT", "C_COMMENT"})


@dataclass(frozen=True)
class IgnoreRange:
    """Marker lines of one safety-assured block (1-indexed, inclusive)."""

    start_line: int
    end_line: int

    def __post_init__(self) -> None:
        if self.end_line <= self.start_line:
            raise ValueError("IgnoreRange.end_line must be greater than start_line")

    def contains(self, line: int) -> bool:
        return self.start_line < line < self.end_line


def scan_ignore_ranges(sql: str) -> list[IgnoreRange]:
    """Find every safety-assured block in *sql*.

    Raises :class:`SafetyAssuredError` for a start inside an open block, an
    end without a start, or a block that is never closed.
    """
    ranges: list[IgnoreRange] = []
    open_line: int | None = None
    for line_no, line in enumerate(sql.splitlines(), start=1):
        if _START_RE.match(line):
            if open_line is not None:
                raise SafetyAssuredError(
                    f"nested 'safety-assured:start' (block opened on line {open_line} is still open)",
                    line=line_no,
                )
            open_line = line_no
        elif _END_RE.match(line):
            if open_line is None:
                raise SafetyAssuredError("'safety-assured:end' without a matching start", line=line_no)
            ranges.append(IgnoreRange(open_line, line_no))
            open_line = None
    if open_line is not None:
        raise SafetyAssuredError("unclosed 'safety-assured:start' block", line=open_line)
    return ranges


def exempt_lines(ranges: Iterable[IgnoreRange]) -> frozenset[int]:
    lines: set[int] = set()
    for block in ranges:
        lines.update(range(block.start_line + 1, block.end_line))
    return frozenset(lines)


def non_comment_token_starts(sql: str) -> list[int]:
    """Sorted start offsets of every token that is not a comment.

    Returns an empty list when the text cannot be tokenized, in which case
    callers fall back to the raw statement offsets.
    """
    try:
        tokens = scan(sql)
    except ParseError:
        return []
    return sorted(token.start for token in tokens if token.name not in _COMMENT_TOKENS)


def first_token_at_or_after(token_starts: Sequence[int], offset: int) -> int:
    index = bisect_left(token_starts, offset)
    if index < len(token_starts):
        return token_starts[index]
    return offset


def offset_to_line(sql: str, offset: int) -> int:
    return sql.count("\n", 0, max(0, min(offset, len(sql)))) + 1


def statement_line(sql: str, token_starts: Sequence[int], offset: int) -> int:
    """Line of the first real token of a statement recorded at *offset*."""
    return offset_to_line(sql, first_token_at_or_after(token_starts, offset))
