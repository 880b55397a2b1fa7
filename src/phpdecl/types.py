"""Resolved type lattice for declared entities.

The lattice is closed: every declared function, field, argument and
constant carries exactly one of the variants below. Array and Object are
the only recursive shapes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ── Resolved types ──────────────────────────────────────────────


@dataclass(frozen=True)
class IntType:
    pass


@dataclass(frozen=True)
class FloatType:
    pass


@dataclass(frozen=True)
class StringType:
    pass


@dataclass(frozen=True)
class BoolType:
    pass


@dataclass(frozen=True)
class ArrayType:
    item: Type


@dataclass(frozen=True)
class ObjectType:
    key: Type
    value: Type


@dataclass(frozen=True)
class ClassType:
    name: str


@dataclass(frozen=True)
class CallableType:
    pass


@dataclass(frozen=True)
class UnknownType:
    pass


@dataclass(frozen=True)
class ResourceType:
    pass


@dataclass(frozen=True)
class VoidType:
    pass


Type = (
    IntType | FloatType | StringType | BoolType | ArrayType | ObjectType
    | ClassType | CallableType | UnknownType | ResourceType | VoidType
)


# ── Built-in type constants ─────────────────────────────────────

INT = IntType()
FLOAT = FloatType()
STRING = StringType()
BOOL = BoolType()
CALLABLE = CallableType()
UNKNOWN = UnknownType()
RESOURCE = ResourceType()
VOID = VoidType()

_SCALARS: dict[str, Type] = {
    "int": INT,
    "integer": INT,
    "float": FLOAT,
    "string": STRING,
    "bool": BOOL,
    "boolean": BOOL,
    "array": ArrayType(UNKNOWN),
    "object": ObjectType(STRING, UNKNOWN),
    "callable": CALLABLE,
    "mixed": UNKNOWN,
    "resource": RESOURCE,
    "void": VOID,
}

_OBJECT_GENERIC = re.compile(r"^object\s*<\s*([^,]+?)\s*,\s*(.+?)\s*>$", re.IGNORECASE)
_ARRAY_GENERIC = re.compile(r"^array\s*<\s*(.+?)\s*>$", re.IGNORECASE)


def map_type(text: str) -> Type:
    """Map a type string (inline hint or doc annotation) onto the lattice.

    ``T[]`` and ``array<T>`` become Array(T), ``object<K,V>`` becomes
    Object(K, V), scalar keywords match case-insensitively and any other
    name is a class reference.
    """
    text = text.strip()
    if not text:
        return UNKNOWN
    if text.endswith("[]"):
        return ArrayType(map_type(text[:-2]))
    m = _OBJECT_GENERIC.match(text)
    if m:
        return ObjectType(map_type(m.group(1)), map_type(m.group(2)))
    m = _ARRAY_GENERIC.match(text)
    if m:
        key, value = _split_index(m.group(1))
        if key is None or key.lower() == "int":
            return ArrayType(map_type(value))
        return ObjectType(map_type(key), map_type(value))
    scalar = _SCALARS.get(text.lower())
    if scalar is not None:
        return scalar
    return ClassType(text)


def _split_index(args: str) -> tuple[str | None, str]:
    """Split ``K,V`` at its first top-level comma; ``(None, args)`` if none."""
    depth = 0
    for i, ch in enumerate(args):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == "," and depth == 0:
            return args[:i].strip(), args[i + 1:].strip()
    return None, args


def is_unknown(t: Type) -> bool:
    return isinstance(t, UnknownType)


def format_type(t: Type) -> str:
    """Render a type in annotation syntax, e.g. ``array<Foo>``."""
    match t:
        case ArrayType(item):
            return f"array<{format_type(item)}>"
        case ObjectType(key, value):
            return f"object<{format_type(key)},{format_type(value)}>"
        case ClassType(name):
            return name
        case IntType():
            return "int"
        case FloatType():
            return "float"
        case StringType():
            return "string"
        case BoolType():
            return "bool"
        case CallableType():
            return "callable"
        case ResourceType():
            return "resource"
        case VoidType():
            return "void"
        case _:
            return "mixed"
