"""Convert pglast nodes into the plain values scripts and ``dump-ast`` see."""

from __future__ import annotations

import enum
import functools
from typing import Any

from pglast import ast

__all__ = ["node_to_value", "statement_to_value"]


@functools.lru_cache(maxsize=None)
def _node_fields(node_cls: type) -> tuple[str, ...]:
    fields: list[str] = []
    for klass in reversed(node_cls.__mro__):
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if not name.startswith("_") and name not in fields:
                fields.append(name)
    return tuple(fields)


def node_to_value(value: Any) -> Any:
    """Nodes become dicts tagged with ``node_type``, enums become ints and
    sequences become lists. A trailing underscore (``def_``) is dropped from
    field names."""
    if isinstance(value, ast.Node):
        data: dict[str, Any] = {"node_type": type(value).__name__}
        for name in _node_fields(type(value)):
            data[name.rstrip("_")] = node_to_value(getattr(value, name, None))
        return data
    if isinstance(value, (tuple, list)):
        return [node_to_value(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def statement_to_value(node: Any) -> dict[str, Any]:
    """Wrap a statement as ``{"<NodeType>": {...}}``; accepts a ``RawStmt`` too."""
    if isinstance(node, ast.RawStmt):
        node = node.stmt
    return {type(node).__name__: node_to_value(node)}
