"""Restricted interpreter for custom check scripts.

Scripts are written in a small subset of Python. They are parsed with the
standard :mod:`ast` module and run by walking the tree; nothing is ever handed
to ``eval`` or ``exec``. Every statement and expression evaluated costs one
operation, and every string, list, mapping or integer a script builds is
size-checked, so a script can neither loop forever nor exhaust memory.

A script's result is the value of an explicit top-level ``return``, or else
the value of its last statement when that is an expression (an ``if``
statement yields the value of the branch it ran)::

    stmt = node.IndexStmt
    if stmt is None:
        return
    if not stmt.concurrent:
        {"operation": "...", "problem": "...", "safe_alternative": "..."}

Attribute access on a mapping reads the key and gives ``None`` when it is
absent, which keeps pattern matching over statement trees short.
"""

from __future__ import annotations

import ast
import operator
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "RESERVED_NAMES",
    "ScriptLimits",
    "ScriptError",
    "ScriptCompileError",
    "ScriptRuntimeError",
    "OperationBudgetExceeded",
    "ScriptQuotaExceeded",
    "CompiledScript",
    "compile_script",
    "type_label",
]

RESERVED_NAMES = frozenset({"node", "config", "pg"})


@dataclass(frozen=True)
class ScriptLimits:
    max_operations: int = 100_000
    max_string_size: int = 10_000
    max_array_size: int = 1_000
    max_map_size: int = 1_000
    max_int_bits: int = 4_096


class ScriptError(Exception):
    def __init__(self, message: str, line: int | None = None) -> None:
        self.message = message
        self.line = line
        super().__init__(self._render())

    def _render(self) -> str:
        return f"line {self.line}: {self.message}" if self.line is not None else self.message

    def locate(self, line: int | None) -> None:
        """Attach the script line the error happened on, if not known yet."""
        if self.line is None and line is not None:
            self.line = line
            self.args = (self._render(),)


class ScriptCompileError(ScriptError):
    pass


class ScriptRuntimeError(ScriptError):
    pass


class OperationBudgetExceeded(ScriptRuntimeError):
    """The script used up its operation budget."""


class ScriptQuotaExceeded(ScriptRuntimeError):
    """The script built a value larger than the configured limits allow."""


_ALLOWED_NODES: frozenset[type[ast.AST]] = frozenset({
    ast.Module, ast.Expr, ast.Assign, ast.AugAssign, ast.If, ast.For, ast.While,
    ast.Break, ast.Continue, ast.Pass, ast.Return,
    ast.Constant, ast.Name, ast.Load, ast.Store, ast.Attribute, ast.Subscript, ast.Slice,
    ast.Call, ast.keyword, ast.IfExp, ast.List, ast.Tuple, ast.Dict,
    ast.JoinedStr, ast.FormattedValue, ast.ListComp, ast.comprehension,
    ast.BoolOp, ast.And, ast.Or,
    ast.BinOp, ast.Add, ast.Sub, ast.Mult, ast.Div, ast.FloorDiv, ast.Mod,
    ast.UnaryOp, ast.Not, ast.USub, ast.UAdd,
    ast.Compare, ast.Eq, ast.NotEq, ast.Lt, ast.LtE, ast.Gt, ast.GtE, ast.In, ast.NotIn, ast.Is, ast.IsNot,
})

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_UNARY_OPS = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_COMPARE_OPS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

_BUILTIN_FUNCTIONS = {
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "range": range,
    "min": min,
    "max": max,
    "sum": sum,
    "any": any,
    "all": all,
    "sorted": sorted,
    "reversed": reversed,
    "abs": abs,
    "enumerate": enumerate,
    "zip": zip,
}
# Builtins returning iterators are materialized into lists for scripts.
_MATERIALIZED = frozenset({"reversed", "enumerate", "zip"})
_BUILTIN_KEYWORDS = {"sorted": frozenset({"reverse"}), "min": frozenset({"default"}), "max": frozenset({"default"})}
# Builtins that compare arguments element by element.
_ORDERING = frozenset({"sorted", "min", "max"})

_CONTAINERS = (list, tuple, Mapping)

_STR_METHODS = frozenset({
    "lower", "upper", "strip", "lstrip", "rstrip", "startswith", "endswith", "split", "rsplit",
    "splitlines", "join", "find", "rfind", "count", "isdigit", "isalpha", "isalnum", "isspace",
    "islower", "isupper", "removeprefix", "removesuffix",
})
_LIST_METHODS = frozenset({"append", "extend", "insert", "pop", "index", "count"})
_MAP_METHODS = frozenset({"get", "keys", "values", "items"})

# ast.FormattedValue.conversion codes
_CONVERSIONS = {-1: str, ord("s"): str, ord("r"): repr, ord("a"): ascii}

_WRAPPED_ERRORS = (
    TypeError, ValueError, KeyError, IndexError, ZeroDivisionError, AttributeError, OverflowError,
)


def type_label(value: Any) -> str:
    """Script-facing name of a value's type."""
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "map"
    if isinstance(value, _Builtin):
        return "function"
    return type(value).__name__


def _children(container: Any) -> list[Any]:
    if isinstance(container, Mapping):
        return [*container.keys(), *container.values()]
    return list(container)


@dataclass(frozen=True)
class _Builtin:
    name: str


class _Return(Exception):
    def __init__(self, value: Any) -> None:
        super().__init__()
        self.value = value


class _Break(Exception):
    pass


class _Continue(Exception):
    pass


def _check_target(target: ast.expr, line: int | None) -> None:
    if isinstance(target, ast.Name):
        if target.id in RESERVED_NAMES:
            raise ScriptCompileError(f"cannot assign to '{target.id}'", line)
    elif isinstance(target, (ast.Tuple, ast.List)):
        for element in target.elts:
            _check_target(element, line)
    elif not isinstance(target, ast.Subscript):
        raise ScriptCompileError(f"cannot assign to {type(target).__name__.lower()}", line)


def _validate(tree: ast.Module) -> None:
    line: int | None = None
    for node in ast.walk(tree):
        line = getattr(node, "lineno", line)
        if type(node) not in _ALLOWED_NODES:
            raise ScriptCompileError(f"{type(node).__name__} is not allowed in check scripts", line)
        if isinstance(node, ast.Name) and node.id.startswith("_"):
            raise ScriptCompileError(f"names starting with '_' are not allowed: {node.id}", line)
        if isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            raise ScriptCompileError(f"attributes starting with '_' are not allowed: {node.attr}", line)
        if isinstance(node, ast.Constant) and not isinstance(node.value, (str, int, float, type(None))):
            raise ScriptCompileError(f"unsupported literal {node.value!r}", line)
        if isinstance(node, ast.Dict) and any(key is None for key in node.keys):
            raise ScriptCompileError("'**' unpacking is not allowed", line)
        if isinstance(node, ast.Call) and any(keyword.arg is None for keyword in node.keywords):
            raise ScriptCompileError("'**' unpacking is not allowed", line)
        if isinstance(node, ast.FormattedValue) and node.format_spec is not None:
            raise ScriptCompileError("format specifications are not supported in f-strings", line)
        if isinstance(node, ast.comprehension) and node.is_async:
            raise ScriptCompileError("async comprehensions are not allowed", line)
        if isinstance(node, ast.Assign):
            for target in node.targets:
                _check_target(target, line)
        elif isinstance(node, (ast.AugAssign, ast.For, ast.comprehension)):
            _check_target(node.target, line)


def compile_script(source: str, name: str = "<script>", limits: ScriptLimits | None = None) -> CompiledScript:
    """Parse and validate *source*, raising :class:`ScriptCompileError` on failure."""
    try:
        tree = ast.parse(source, filename=name, mode="exec")
    except SyntaxError as exc:
        raise ScriptCompileError(f"syntax error: {exc.msg}", exc.lineno) from exc
    except (ValueError, RecursionError, MemoryError) as exc:
        raise ScriptCompileError(f"cannot parse script: {exc}") from exc
    _validate(tree)
    return CompiledScript(name=name, tree=tree, limits=limits or ScriptLimits())


@dataclass(frozen=True)
class CompiledScript:
    name: str
    tree: ast.Module = field(repr=False)
    limits: ScriptLimits = field(default_factory=ScriptLimits)

    def evaluate(self, variables: Mapping[str, Any]) -> Any:
        """Run the script in a fresh scope seeded with *variables*."""
        return _Interpreter(self.limits, variables).run(self.tree)


class _Interpreter:
    def __init__(self, limits: ScriptLimits, variables: Mapping[str, Any]) -> None:
        self.limits = limits
        self.scope: dict[str, Any] = dict(variables)
        self.operations = 0

    def run(self, tree: ast.Module) -> Any:
        try:
            return self._exec_block(tree.body)
        except _Return as signal:
            return signal.value
        except (_Break, _Continue) as exc:
            raise ScriptRuntimeError("'break' or 'continue' outside a loop") from exc
        except RecursionError as exc:
            raise ScriptRuntimeError("expression nested too deeply") from exc
        except MemoryError as exc:
            raise ScriptRuntimeError("script ran out of memory") from exc

    # -- bookkeeping ---------------------------------------------------------

    def _tick(self) -> None:
        self.operations += 1
        if self.operations > self.limits.max_operations:
            raise OperationBudgetExceeded(f"operation budget of {self.limits.max_operations} exhausted")

    def _limit_for(self, value: Any) -> tuple[int, str] | None:
        if isinstance(value, str):
            return self.limits.max_string_size, "string"
        if isinstance(value, (list, tuple)):
            return self.limits.max_array_size, "array"
        if isinstance(value, Mapping):
            return self.limits.max_map_size, "map"
        return None

    def _ensure_size(self, sample: Any, size: int) -> None:
        limit = self._limit_for(sample)
        if limit is not None and size > limit[0]:
            raise ScriptQuotaExceeded(f"{limit[1]} of size {size} exceeds the limit of {limit[0]}")

    def _checked(self, value: Any) -> Any:
        if isinstance(value, bool) or value is None:
            return value
        if isinstance(value, int):
            if value.bit_length() > self.limits.max_int_bits:
                raise ScriptQuotaExceeded(f"integer exceeds {self.limits.max_int_bits} bits")
            return value
        if isinstance(value, (str, list, tuple, Mapping)):
            self._ensure_size(value, len(value))
        return value

    def _charge(self, *values: Any) -> None:
        """Spend one operation per element nested in *values*.

        A container shared several times is walked every time it appears,
        the same way a native comparison, hash or sort visits it.
        """
        stack = [value for value in values if isinstance(value, _CONTAINERS)]
        while stack:
            for item in _children(stack.pop()):
                self._tick()
                if isinstance(item, _CONTAINERS):
                    stack.append(item)

    def _charge_key(self, key: Any) -> None:
        if isinstance(key, tuple):
            self._charge(key)

    def _charge_comparison(self, op: ast.cmpop, left: Any, right: Any) -> None:
        if isinstance(op, (ast.Is, ast.IsNot)):
            return
        if isinstance(op, (ast.In, ast.NotIn)):
            if isinstance(right, Mapping):
                self._charge_key(left)
            elif isinstance(left, _CONTAINERS):
                self._charge(left, right)
        elif isinstance(left, _CONTAINERS) and isinstance(right, _CONTAINERS):
            self._charge(left, right)

    def _ensure_renderable(self, value: Any, used: int = 0) -> None:
        """Raise before *value* is turned into text longer than the string limit."""
        limit = self.limits.max_string_size
        size = used
        stack = [value]
        while stack:
            item = stack.pop()
            self._tick()
            if isinstance(item, str):
                size += len(item)
            elif isinstance(item, _CONTAINERS):
                # brackets plus one separator between items
                size += 2 + 2 * max(len(item) - 1, 0)
                stack.extend(_children(item))
            else:
                size += 1
            if size > limit:
                raise ScriptQuotaExceeded(f"rendered string of at least {size} characters exceeds the limit of {limit}")

    def _to_text(self, convert: Any, value: Any, used: int = 0) -> str:
        self._ensure_renderable(value, used)
        return convert(value)

    def _check_sum(self, args: list[Any]) -> None:
        if len(args) < 2 or not isinstance(args[1], (list, tuple)):
            return
        size = len(args[1])
        for item in self._iterate(args[0]):
            if isinstance(item, (list, tuple)):
                size += len(item)
                self._ensure_size(args[1], size)

    def _check_iterable_argument(self, value: Any) -> None:
        if isinstance(value, range):
            try:
                size = len(value)
            except OverflowError:
                size = self.limits.max_array_size + 1
            if size > self.limits.max_array_size:
                raise ScriptQuotaExceeded(f"range of {size} items exceeds the array limit of {self.limits.max_array_size}")

    def _iterate(self, value: Any) -> Any:
        if isinstance(value, range):
            return value
        if isinstance(value, Mapping):
            return list(value.keys())
        if isinstance(value, (list, tuple, str)):
            return list(value)
        raise ScriptRuntimeError(f"'{type_label(value)}' is not iterable")

    # -- statements ----------------------------------------------------------

    def _exec_block(self, body: list[ast.stmt]) -> Any:
        result = None
        for statement in body:
            result = self._exec(statement)
        return result

    def _exec(self, statement: ast.stmt) -> Any:
        self._tick()
        line = getattr(statement, "lineno", None)
        try:
            return self._STATEMENTS[type(statement)](self, statement)
        except ScriptRuntimeError as exc:
            exc.locate(line)
            raise
        except _WRAPPED_ERRORS as exc:
            raise ScriptRuntimeError(f"{type(exc).__name__}: {exc}", line) from exc

    def _exec_expr(self, statement: ast.Expr) -> Any:
        return self._eval(statement.value)

    def _exec_assign(self, statement: ast.Assign) -> None:
        value = self._eval(statement.value)
        for target in statement.targets:
            self._assign(target, value)

    def _exec_aug_assign(self, statement: ast.AugAssign) -> None:
        target = statement.target
        if isinstance(target, ast.Name):
            current = self._load_name(target.id)
            self.scope[target.id] = self._binop(statement.op, current, self._eval(statement.value))
            return
        if isinstance(target, ast.Subscript):
            container = self._eval(target.value)
            key = self._eval(target.slice)
            self._charge_key(key)
            updated = self._binop(statement.op, container[key], self._eval(statement.value))
            self._store_item(container, key, updated)
            return
        raise ScriptRuntimeError(f"cannot assign to {type(target).__name__.lower()}")

    def _exec_if(self, statement: ast.If) -> Any:
        if self._eval(statement.test):
            return self._exec_block(statement.body)
        return self._exec_block(statement.orelse)

    def _exec_for(self, statement: ast.For) -> None:
        for item in self._iterate(self._eval(statement.iter)):
            self._tick()
            self._assign(statement.target, item)
            try:
                self._exec_block(statement.body)
            except _Break:
                return None
            except _Continue:
                continue
        self._exec_block(statement.orelse)
        return None

    def _exec_while(self, statement: ast.While) -> None:
        while self._eval(statement.test):
            try:
                self._exec_block(statement.body)
            except _Break:
                return None
            except _Continue:
                continue
        self._exec_block(statement.orelse)
        return None

    def _exec_return(self, statement: ast.Return) -> None:
        raise _Return(self._eval(statement.value) if statement.value is not None else None)

    def _exec_break(self, statement: ast.Break) -> None:
        raise _Break()

    def _exec_continue(self, statement: ast.Continue) -> None:
        raise _Continue()

    def _exec_pass(self, statement: ast.Pass) -> None:
        return None

    _STATEMENTS = {
        ast.Expr: _exec_expr,
        ast.Assign: _exec_assign,
        ast.AugAssign: _exec_aug_assign,
        ast.If: _exec_if,
        ast.For: _exec_for,
        ast.While: _exec_while,
        ast.Return: _exec_return,
        ast.Break: _exec_break,
        ast.Continue: _exec_continue,
        ast.Pass: _exec_pass,
    }

    # -- assignment ----------------------------------------------------------

    def _assign(self, target: ast.expr, value: Any) -> None:
        if isinstance(target, ast.Name):
            self.scope[target.id] = value
        elif isinstance(target, (ast.Tuple, ast.List)):
            if not isinstance(value, (list, tuple, str)):
                raise ScriptRuntimeError(f"cannot unpack '{type_label(value)}'")
            if len(value) != len(target.elts):
                raise ScriptRuntimeError(f"expected {len(target.elts)} values to unpack, got {len(value)}")
            for element, item in zip(target.elts, value):
                self._assign(element, item)
        elif isinstance(target, ast.Subscript):
            self._store_item(self._eval(target.value), self._eval(target.slice), value)
        else:
            raise ScriptRuntimeError(f"cannot assign to {type(target).__name__.lower()}")

    def _store_item(self, container: Any, key: Any, value: Any) -> None:
        if isinstance(container, dict):
            self._charge_key(key)
            if key not in container:
                self._ensure_size(container, len(container) + 1)
            container[key] = value
        elif isinstance(container, list):
            container[key] = value
            self._checked(container)
        else:
            raise ScriptRuntimeError(f"'{type_label(container)}' does not support item assignment")

    # -- expressions ---------------------------------------------------------

    def _eval(self, node: ast.expr) -> Any:
        self._tick()
        handler = self._EXPRESSIONS.get(type(node))
        if handler is None:
            raise ScriptRuntimeError(f"unsupported expression {type(node).__name__}")
        return handler(self, node)

    def _load_name(self, name: str) -> Any:
        if name in self.scope:
            return self.scope[name]
        if name in _BUILTIN_FUNCTIONS:
            return _Builtin(name)
        raise ScriptRuntimeError(f"name '{name}' is not defined")

    def _eval_constant(self, node: ast.Constant) -> Any:
        return node.value

    def _eval_name(self, node: ast.Name) -> Any:
        return self._load_name(node.id)

    def _eval_attribute(self, node: ast.Attribute) -> Any:
        value = self._eval(node.value)
        if isinstance(value, Mapping):
            return value.get(node.attr)
        raise ScriptRuntimeError(f"cannot read attribute '{node.attr}' of {type_label(value)}")

    def _eval_subscript(self, node: ast.Subscript) -> Any:
        value = self._eval(node.value)
        key = self._eval(node.slice)
        if isinstance(value, Mapping):
            self._charge_key(key)
            return value.get(key)
        if isinstance(value, (list, tuple, str, range)):
            return value[key]
        raise ScriptRuntimeError(f"'{type_label(value)}' is not subscriptable")

    def _eval_slice(self, node: ast.Slice) -> slice:
        lower = self._eval(node.lower) if node.lower is not None else None
        upper = self._eval(node.upper) if node.upper is not None else None
        step = self._eval(node.step) if node.step is not None else None
        return slice(lower, upper, step)

    def _eval_bool_op(self, node: ast.BoolOp) -> Any:
        result = None
        for operand in node.values:
            result = self._eval(operand)
            if isinstance(node.op, ast.And) and not result:
                return result
            if isinstance(node.op, ast.Or) and result:
                return result
        return result

    def _binop(self, op: ast.operator, left: Any, right: Any) -> Any:
        sequences = (str, list, tuple)
        if isinstance(op, ast.Mult):
            if isinstance(left, sequences) and isinstance(right, int):
                self._ensure_size(left, len(left) * max(right, 0))
            elif isinstance(right, sequences) and isinstance(left, int):
                self._ensure_size(right, len(right) * max(left, 0))
            elif isinstance(left, int) and isinstance(right, int):
                if left.bit_length() + right.bit_length() > self.limits.max_int_bits + 1:
                    raise ScriptQuotaExceeded(f"integer exceeds {self.limits.max_int_bits} bits")
        elif isinstance(op, ast.Add) and isinstance(left, sequences) and isinstance(right, sequences):
            self._ensure_size(left, len(left) + len(right))
        elif isinstance(op, ast.Mod) and isinstance(left, str):
            raise ScriptRuntimeError("'%' string formatting is not supported, use an f-string")
        return self._checked(_BIN_OPS[type(op)](left, right))

    def _eval_bin_op(self, node: ast.BinOp) -> Any:
        return self._binop(node.op, self._eval(node.left), self._eval(node.right))

    def _eval_unary_op(self, node: ast.UnaryOp) -> Any:
        return _UNARY_OPS[type(node.op)](self._eval(node.operand))

    def _eval_compare(self, node: ast.Compare) -> bool:
        left = self._eval(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self._eval(comparator)
            self._charge_comparison(op, left, right)
            if not _COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def _eval_if_exp(self, node: ast.IfExp) -> Any:
        return self._eval(node.body) if self._eval(node.test) else self._eval(node.orelse)

    def _eval_list(self, node: ast.List) -> list[Any]:
        return self._checked([self._eval(element) for element in node.elts])

    def _eval_tuple(self, node: ast.Tuple) -> tuple[Any, ...]:
        return self._checked(tuple(self._eval(element) for element in node.elts))

    def _eval_dict(self, node: ast.Dict) -> dict[Any, Any]:
        result = {}
        for key_node, value_node in zip(node.keys, node.values):
            key = self._eval(key_node)
            self._charge_key(key)
            result[key] = self._eval(value_node)
        return self._checked(result)

    def _eval_joined_str(self, node: ast.JoinedStr) -> str:
        parts: list[str] = []
        size = 0
        for value in node.values:
            if isinstance(value, ast.FormattedValue):
                convert = _CONVERSIONS.get(value.conversion, str)
                text = self._to_text(convert, self._eval(value.value), size)
            else:
                text = str(self._eval(value))
            size += len(text)
            self._ensure_size(text, size)
            parts.append(text)
        return "".join(parts)

    def _eval_list_comp(self, node: ast.ListComp) -> list[Any]:
        result: list[Any] = []
        saved = self.scope
        self.scope = dict(saved)
        try:
            self._run_generators(node, 0, result)
        finally:
            self.scope = saved
        return result

    def _run_generators(self, node: ast.ListComp, index: int, result: list[Any]) -> None:
        if index == len(node.generators):
            self._ensure_size(result, len(result) + 1)
            result.append(self._eval(node.elt))
            return
        generator = node.generators[index]
        for item in self._iterate(self._eval(generator.iter)):
            self._tick()
            self._assign(generator.target, item)
            if all(self._eval(condition) for condition in generator.ifs):
                self._run_generators(node, index + 1, result)

    def _eval_call(self, node: ast.Call) -> Any:
        if isinstance(node.func, ast.Attribute):
            receiver = self._eval(node.func.value)
            args = [self._eval(arg) for arg in node.args]
            kwargs = {keyword.arg: self._eval(keyword.value) for keyword in node.keywords}
            return self._call_method(receiver, node.func.attr, args, kwargs)
        function = self._eval(node.func)
        args = [self._eval(arg) for arg in node.args]
        kwargs = {keyword.arg: self._eval(keyword.value) for keyword in node.keywords}
        if isinstance(function, _Builtin):
            return self._call_builtin(function.name, args, kwargs)
        raise ScriptRuntimeError(f"'{type_label(function)}' is not callable")

    def _call_builtin(self, name: str, args: list[Any], kwargs: dict[str, Any]) -> Any:
        unexpected = set(kwargs) - _BUILTIN_KEYWORDS.get(name, frozenset())
        if unexpected:
            raise ScriptRuntimeError(f"{name}() got unexpected keyword argument(s): {', '.join(sorted(unexpected))}")
        if name != "range":
            for arg in args:
                self._check_iterable_argument(arg)
        if name == "str" and args:
            self._ensure_renderable(args[0])
        elif name == "sum":
            self._check_sum(args)
        elif name in _ORDERING:
            self._charge(*args)
        result = _BUILTIN_FUNCTIONS[name](*args, **kwargs)
        if name in _MATERIALIZED:
            result = list(result)
        elif name in ("min", "max"):
            # an existing element, not a new value
            return result
        return self._checked(result)

    def _call_method(self, receiver: Any, name: str, args: list[Any], kwargs: dict[str, Any]) -> Any:
        if isinstance(receiver, str) and name in _STR_METHODS:
            if name == "join":
                self._check_join(receiver, args)
            return self._checked(getattr(receiver, name)(*args, **kwargs))
        if isinstance(receiver, list) and name in _LIST_METHODS:
            if name in ("append", "insert"):
                self._ensure_size(receiver, len(receiver) + 1)
            elif name == "extend" and args and isinstance(args[0], (list, tuple, str)):
                self._ensure_size(receiver, len(receiver) + len(args[0]))
            elif name == "extend":
                raise ScriptRuntimeError("extend() expects an array")
            elif name in ("index", "count") and any(isinstance(arg, _CONTAINERS) for arg in args):
                self._charge(receiver, *args)
            return getattr(receiver, name)(*args, **kwargs)
        if isinstance(receiver, Mapping) and name in _MAP_METHODS:
            if name == "get" and args:
                self._charge_key(args[0])
            result = getattr(receiver, name)(*args, **kwargs)
            if name in ("keys", "values", "items"):
                return list(result)
            return result
        raise ScriptRuntimeError(f"'{type_label(receiver)}' has no method '{name}'")

    def _check_join(self, separator: str, args: list[Any]) -> None:
        if len(args) != 1 or not isinstance(args[0], (list, tuple)):
            raise ScriptRuntimeError("join() expects an array of strings")
        items = args[0]
        if not all(isinstance(item, str) for item in items):
            raise ScriptRuntimeError("join() expects an array of strings")
        total = sum(len(item) for item in items) + len(separator) * max(len(items) - 1, 0)
        self._ensure_size(separator, total)

    _EXPRESSIONS = {
        ast.Constant: _eval_constant,
        ast.Name: _eval_name,
        ast.Attribute: _eval_attribute,
        ast.Subscript: _eval_subscript,
        ast.Slice: _eval_slice,
        ast.BoolOp: _eval_bool_op,
        ast.BinOp: _eval_bin_op,
        ast.UnaryOp: _eval_unary_op,
        ast.Compare: _eval_compare,
        ast.IfExp: _eval_if_exp,
        ast.List: _eval_list,
        ast.Tuple: _eval_tuple,
        ast.Dict: _eval_dict,
        ast.JoinedStr: _eval_joined_str,
        ast.ListComp: _eval_list_comp,
        ast.Call: _eval_call,
    }
