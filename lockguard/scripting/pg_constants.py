"""Named PostgreSQL parse-tree constants exposed to scripts as ``pg``.

Scripts compare enum-valued fields against these names instead of raw
numbers, e.g. ``cmd.subtype == pg.AT_ADD_COLUMN`` or
``stmt.removeType == pg.OBJECT_INDEX``.
"""

from __future__ import annotations

import re
from types import MappingProxyType

from pglast.enums import AlterTableType, ConstrType, DropBehavior, ObjectType, ReindexObjectType

__all__ = ["PG_CONSTANTS", "alter_table_constant_name"]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def alter_table_constant_name(member_name: str) -> str:
    """``AT_AddColumn`` -> ``AT_ADD_COLUMN``."""
    prefix, _, rest = member_name.partition("_")
    return f"{prefix}_{_CAMEL_BOUNDARY.sub('_', rest).upper()}"


def _build() -> MappingProxyType:
    constants: dict[str, int] = {}
    for enum_cls in (ObjectType, ConstrType, DropBehavior, ReindexObjectType):
        for member in enum_cls:
            constants[member.name] = int(member)
    for member in AlterTableType:
        constants[alter_table_constant_name(member.name)] = int(member)
    return MappingProxyType(constants)


PG_CONSTANTS = _build()
