"""Tests for safety-assured blocks and statement line resolution."""
from __future__ import annotations
import textwrap
import pytest
from lockguard.checks.registry import CheckRegistry
from lockguard.core.errors import SafetyAssuredError, SqlParseError
from lockguard.core.parser import parse_sql, parse_sql_with_ignore_ranges
from lockguard.core.safety_assured import (
    IgnoreRange, exempt_lines, first_token_at_or_after, non_comment_token_starts, offset_to_line,
    scan_ignore_ranges, statement_line,
)


def _operations(sql: str, settings) -> list[str]:
    parsed = parse_sql_with_ignore_ranges(sql)
    registry = CheckRegistry.from_config(settings)
    violations = registry.check_statements(parsed.statements, parsed.source_text, parsed.ignore_ranges, settings)
    return [v.problem.split("'")[1] for v in violations]


class TestIgnoreRange:
    def test_contains_is_strict(self) -> None:
        block = IgnoreRange(2, 5)
        assert not block.contains(2) and block.contains(3) and block.contains(4) and not block.contains(5)

    def test_end_must_follow_start(self) -> None:
        with pytest.raises(ValueError):
            IgnoreRange(3, 3)

    def test_exempt_lines(self) -> None:
        assert exempt_lines([IgnoreRange(1, 4), IgnoreRange(6, 8)]) == frozenset({2, 3, 7})


class TestScanIgnoreRanges:
    def test_single_block(self) -> None:
        sql = "SELECT 1;\n-- safety-assured:start\nDROP TABLE a;\n-- safety-assured:end\n"
        assert scan_ignore_ranges(sql) == [IgnoreRange(2, 4)]

    def test_case_and_spacing(self) -> None:
        sql = "--  SAFETY-ASSURED : START\nDROP TABLE a;\n   -- Safety-Assured:End\n"
        assert scan_ignore_ranges(sql) == [IgnoreRange(1, 3)]

    def test_marker_after_other_text_in_comment(self) -> None:
        sql = "-- reviewed by ops, safety-assured:start\nDROP TABLE a;\n-- safety-assured:end\n"
        assert scan_ignore_ranges(sql) == [IgnoreRange(1, 3)]

    def test_block_comment_is_not_a_marker(self) -> None:
        assert scan_ignore_ranges("/* safety-assured:start */\nDROP TABLE a;\n") == []

    def test_multiple_blocks(self) -> None:
        sql = "-- safety-assured:start\n-- safety-assured:end\n-- safety-assured:start\nx\n-- safety-assured:end\n"
        assert scan_ignore_ranges(sql) == [IgnoreRange(1, 2), IgnoreRange(3, 5)]

    def test_nested_start(self) -> None:
        sql = "-- safety-assured:start\n-- safety-assured:start\n-- safety-assured:end\n"
        with pytest.raises(SafetyAssuredError) as exc_info:
            scan_ignore_ranges(sql)
        assert exc_info.value.line == 2

    def test_end_without_start(self) -> None:
        with pytest.raises(SafetyAssuredError) as exc_info:
            scan_ignore_ranges("DROP TABLE a;\n-- safety-assured:end\n")
        assert exc_info.value.line == 2

    def test_unclosed_block(self) -> None:
        with pytest.raises(SafetyAssuredError) as exc_info:
            scan_ignore_ranges("SELECT 1;\n-- safety-assured:start\nDROP TABLE a;\n")
        assert exc_info.value.line == 2 and isinstance(exc_info.value, SqlParseError)


class TestOffsets:
    def test_offset_to_line(self) -> None:
        sql = "a\nbb\nccc"
        assert [offset_to_line(sql, o) for o in (0, 1, 2, 5, 100)] == [1, 1, 2, 3, 3]

    def test_first_token_at_or_after(self) -> None:
        assert first_token_at_or_after([0, 7, 16], 8) == 16
        assert first_token_at_or_after([0, 7, 16], 7) == 7
        assert first_token_at_or_after([0, 7, 16], 20) == 20

    def test_comments_are_not_tokens(self) -> None:
        starts = non_comment_token_starts("SELECT 1; -- note\nSELECT 2;")
        assert 10 not in starts and 0 in starts and 18 in starts

    def test_statement_line_skips_leading_comment(self) -> None:
        sql = "-- leading comment\n/* block\n   comment */\nDROP TABLE a;"
        starts = non_comment_token_starts(sql)
        assert statement_line(sql, starts, 0) == 4
        nested = "/* outer /* inner */ still comment\n\n*/ DROP TABLE a;"
        assert statement_line(nested, non_comment_token_starts(nested), 0) == 3


class TestSkipping:
    def test_enclosed_statements_skipped(self, default_settings) -> None:
        sql = textwrap.dedent("""\
            ALTER TABLE users ADD COLUMN a BOOLEAN DEFAULT FALSE;
            -- safety-assured:start
            ALTER TABLE users ADD COLUMN b BOOLEAN DEFAULT FALSE;
            ALTER TABLE users ADD COLUMN c BOOLEAN DEFAULT FALSE;
            -- safety-assured:end
            ALTER TABLE users ADD COLUMN d BOOLEAN DEFAULT FALSE;
        """)
        assert _operations(sql, default_settings) == ["a", "d"]

    def test_only_trailing_statement_flagged(self, default_settings) -> None:
        sql = textwrap.dedent("""\
            -- safety-assured:start
            ALTER TABLE users ADD COLUMN a BOOLEAN DEFAULT FALSE;
            ALTER TABLE users ADD COLUMN b BOOLEAN DEFAULT FALSE;
            ALTER TABLE users ADD COLUMN c BOOLEAN DEFAULT FALSE;
            -- safety-assured:end
            ALTER TABLE users ADD COLUMN d BOOLEAN DEFAULT FALSE;
        """)
        assert _operations(sql, default_settings) == ["d"]

    def test_comments_before_statement_inside_block(self, default_settings) -> None:
        sql = textwrap.dedent("""\
            DROP TABLE kept;
            -- safety-assured:start
            /* legacy table, confirmed unused
               by the data team */
            -- one more note
            DROP TABLE legacy;
            -- safety-assured:end
        """)
        assert _operations(sql, default_settings) == ["kept"]

    def test_nested_block_comment_after_block(self, default_settings) -> None:
        sql = textwrap.dedent("""\
            -- safety-assured:start
            ALTER TABLE t DROP COLUMN c;
            -- safety-assured:end
            /* outer /* inner */ still comment

            */ ALTER TABLE t DROP COLUMN d;
        """)
        assert _operations(sql, default_settings) == ["d"]

    def test_nested_block_comment_inside_block(self, default_settings) -> None:
        sql = textwrap.dedent("""\
            DROP TABLE kept;
            -- safety-assured:start
            /* outer /* inner */ still comment
            */ DROP TABLE legacy;
            -- safety-assured:end
        """)
        assert _operations(sql, default_settings) == ["kept"]

    def test_same_line_as_marker_not_skipped(self, default_settings) -> None:
        sql = "-- safety-assured:start\n-- safety-assured:end\nDROP TABLE a;\n"
        assert _operations(sql, default_settings) == ["a"]


class TestParser:
    def test_empty_and_comment_only(self) -> None:
        assert parse_sql("") == () and parse_sql("-- nothing here\n/* or here */\n") == ()

    def test_statements_and_offsets(self) -> None:
        statements = parse_sql("SELECT 1;\nDROP TABLE a;")
        assert len(statements) == 2 and type(statements[1].stmt).__name__ == "DropStmt"

    def test_parse_error_reports_line(self) -> None:
        with pytest.raises(SqlParseError) as exc_info:
            parse_sql("SELECT 1;\nSELEC 2;")
        assert exc_info.value.line == 2 and "SQL parse error" in str(exc_info.value)

    def test_markers_validated_with_parse(self) -> None:
        with pytest.raises(SafetyAssuredError):
            parse_sql_with_ignore_ranges("-- safety-assured:start\nDROP TABLE a;\n")
