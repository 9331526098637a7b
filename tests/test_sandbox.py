"""Tests for the restricted script interpreter."""
from __future__ import annotations
import textwrap
from types import MappingProxyType
import pytest
from lockguard.scripting import sandbox
from lockguard.scripting.sandbox import (
    OperationBudgetExceeded,
    ScriptCompileError,
    ScriptLimits,
    ScriptQuotaExceeded,
    ScriptRuntimeError,
    compile_script,
    type_label,
)


# one thousand references to one thousand references to the same list
NESTED = "a = [1] * 1000\nb = [a] * 1000\nc = [b] * 1000\n"


def _run(source: str, **variables):
    return compile_script(textwrap.dedent(source)).evaluate(variables)


class TestCompile:
    @pytest.mark.parametrize(
        "source",
        [
            "import os",
            "from os import path",
            "def f():\n    return 1",
            "f = lambda: 1",
            "class A:\n    pass",
            "_hidden = 1",
            "x = node.__class__",
            "node = 1",
            "config, y = 1, 2",
            "x = {**config}",
            "with open('x') as f:\n    pass",
            "x = f'{1:>4}'",
            "x = {i for i in range(3)}",
            "x = (i for i in range(3))",
            "x = b'bytes'",
            "x = 2 ** 8",
        ],
    )
    def test_rejected_constructs(self, source: str) -> None:
        with pytest.raises(ScriptCompileError):
            compile_script(source)

    def test_syntax_error_has_line(self) -> None:
        with pytest.raises(ScriptCompileError) as exc_info:
            compile_script("x = 1\ny = (\n")
        assert exc_info.value.line is not None and "syntax error" in str(exc_info.value)

    def test_reserved_name_message(self) -> None:
        with pytest.raises(ScriptCompileError, match="cannot assign to 'pg'"):
            compile_script("x = 1\npg = 2")

    def test_valid_script_compiles(self) -> None:
        script = compile_script("x = [1, 2]\nx[0] = 3\nx", name="ok.rule")
        assert script.name == "ok.rule"


class TestEvaluate:
    def test_last_expression_is_result(self) -> None:
        assert _run("x = 2\nx * 3 + 1") == 7

    def test_assignment_result_is_none(self) -> None:
        assert _run("x = 2") is None

    def test_explicit_return(self) -> None:
        assert _run("""\
            for i in range(10):
                if i == 4:
                    return i * 10
            -1
        """) == 40

    def test_bare_return(self) -> None:
        assert _run("return\n1") is None

    def test_if_yields_branch_value(self) -> None:
        assert _run("if flag:\n    'yes'\nelse:\n    'no'", flag=False) == "no"

    def test_fstring_and_string_methods(self) -> None:
        assert _run("name = 'Users'\nf\"{name.lower()}_{len(name)}!r={name!r}\"") == "users_5!r='Users'"

    def test_list_comprehension(self) -> None:
        assert _run("[x * 2 for x in [1, 2, 3] if x > 1]") == [4, 6]

    def test_comprehension_does_not_leak(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="not defined"):
            _run("y = [x for x in [1]]\nx")

    def test_mapping_attribute_access(self) -> None:
        value = {"IndexStmt": {"idxname": "idx_a", "concurrent": False}}
        assert _run("node.IndexStmt.idxname", node=value) == "idx_a"
        assert _run("node.DropStmt", node=value) is None

    def test_mapping_subscript_missing_key(self) -> None:
        assert _run("config['nope']", config=MappingProxyType({"a": 1})) is None

    def test_mapping_methods_return_lists(self) -> None:
        assert _run("m = {'b': 1, 'a': 2}\nsorted(m.keys())") == ["a", "b"]
        assert _run("{'a': 1}.items()") == [("a", 1)]

    def test_loops_with_break_and_continue(self) -> None:
        assert _run("""\
            total = 0
            i = 0
            while True:
                i += 1
                if i % 2 == 0:
                    continue
                if i > 7:
                    break
                total += i
            total
        """) == 16

    def test_for_unpacking_and_builtins(self) -> None:
        assert _run("""\
            out = []
            for i, name in enumerate(['a', 'b']):
                out.append(f"{i}{name}")
            '-'.join(out)
        """) == "0a-1b"

    def test_item_assignment(self) -> None:
        assert _run("d = {}\nd['k'] = [1]\nd['k'][0] += 4\nd") == {"k": [5]}

    def test_builtin_keywords(self) -> None:
        assert _run("sorted([3, 1, 2], reverse=True)") == [3, 2, 1]
        assert _run("max([], default=0)") == 0

    def test_variables_are_seeded(self) -> None:
        assert _run("pg.OBJECT_TABLE == node", pg={"OBJECT_TABLE": 42}, node=42) is True


class TestRuntimeErrors:
    def test_division_by_zero_reports_line(self) -> None:
        with pytest.raises(ScriptRuntimeError) as exc_info:
            _run("x = 1\ny = x / 0")
        assert exc_info.value.line == 2 and "ZeroDivisionError" in str(exc_info.value)

    def test_undefined_name(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="name 'missing' is not defined"):
            _run("missing + 1")

    def test_break_outside_loop(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="outside a loop"):
            _run("break")

    def test_percent_formatting_rejected(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="f-string"):
            _run("'%s' % 1")

    def test_read_only_config(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="does not support item assignment"):
            _run("config['framework'] = 'sqlx'", config=MappingProxyType({"framework": "diesel"}))

    def test_attribute_of_non_mapping(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="cannot read attribute"):
            _run("'abc'.length")

    def test_unknown_method(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="has no method 'format'"):
            _run("'{}'.format(1)")

    def test_unexpected_keyword(self) -> None:
        with pytest.raises(ScriptRuntimeError, match="unexpected keyword"):
            _run("len([1], key=1)")


class TestLimits:
    def test_infinite_loop_exhausts_budget(self) -> None:
        with pytest.raises(OperationBudgetExceeded):
            _run("while True:\n    pass")

    def test_custom_budget(self) -> None:
        script = compile_script("for i in range(100):\n    x = i", limits=ScriptLimits(max_operations=50))
        with pytest.raises(OperationBudgetExceeded):
            script.evaluate({})

    def test_budget_is_per_evaluation(self) -> None:
        script = compile_script("for i in range(10):\n    x = i", limits=ScriptLimits(max_operations=60))
        assert script.evaluate({}) is None and script.evaluate({}) is None

    def test_string_repetition_quota(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run("'x' * 20000")

    def test_string_concatenation_quota(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run("s = 'x' * 6000\ns + s")

    def test_large_range_materialization(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run("list(range(5000))")

    def test_array_growth_quota(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run("out = []\nfor i in range(2000):\n    out.append(i)")

    def test_map_growth_quota(self) -> None:
        limits = ScriptLimits(max_map_size=3)
        script = compile_script("d = {}\nfor i in range(5):\n    d[i] = i", limits=limits)
        with pytest.raises(ScriptQuotaExceeded):
            script.evaluate({})

    def test_integer_growth_quota(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run("x = 2\nfor i in range(20):\n    x = x * x")

    def test_rendering_shared_nested_lists_hits_quota(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run(NESTED + "str(c)")

    @pytest.mark.parametrize("expression", ["f\"{c}\"", "f\"{c!r}\"", "f\"{'x' * 9000}{a}\""])
    def test_fstring_rendering_hits_quota(self, expression: str) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run(NESTED + expression)

    def test_sum_of_arrays_hits_quota(self) -> None:
        with pytest.raises(ScriptQuotaExceeded):
            _run(NESTED + "sum(c, [])")

    @pytest.mark.parametrize("expression", ["sorted([c, c])", "c == d", "c in [d]", "{t: 1}"])
    def test_deep_comparison_and_hashing_spend_budget(self, expression: str) -> None:
        source = NESTED + "x = [1] * 1000\ny = [x] * 1000\nd = [y] * 1000\nt = ((((1,) * 1000,) * 1000),) * 1000\n"
        with pytest.raises(OperationBudgetExceeded):
            _run(source + expression)

    def test_small_values_still_render(self) -> None:
        assert _run("str([1, [2, 'a']])") == "[1, [2, 'a']]"
        assert _run("f\"{ {'k': (1, 2)}!r}\"") == "{'k': (1, 2)}"
        assert _run("sum([[1], [2, 3]], [])") == [1, 2, 3]

    def test_bound_values_are_not_size_checked(self) -> None:
        long_text = "x" * 20000
        assert _run("len(xs[0])", xs=[long_text]) == 20000
        assert _run("max(xs)", xs=[long_text]) == long_text
        with pytest.raises(ScriptQuotaExceeded):
            _run("xs[0] + 'y'", xs=[long_text])

    def test_memory_error_becomes_runtime_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def exhausted(*args):
            raise MemoryError

        monkeypatch.setitem(sandbox._BUILTIN_FUNCTIONS, "len", exhausted)
        with pytest.raises(ScriptRuntimeError, match="out of memory"):
            _run("len([1])")

    def test_quota_errors_are_runtime_errors(self) -> None:
        assert issubclass(ScriptQuotaExceeded, ScriptRuntimeError)
        assert issubclass(OperationBudgetExceeded, ScriptRuntimeError)


class TestTypeLabel:
    def test_labels(self) -> None:
        labels = [type_label(v) for v in (None, True, 1, 1.5, "s", [1], (1,), {"a": 1})]
        assert labels == ["None", "bool", "int", "float", "string", "array", "array", "map"]
