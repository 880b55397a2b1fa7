"""Declaration tree produced by the parser.

Nodes are filled in while their declaration is being parsed and are
handed to the caller as the finished tree. No node is shared between two
containers and nothing points back at its owner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from phpdecl.source import Span
from phpdecl.types import UNKNOWN, Type


class Visibility(Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


# ── Imports and trait composition ────────────────────────────────


@dataclass
class ClassImport:
    path: str
    alias: str | None = None


@dataclass
class FunctionImport:
    path: str
    alias: str | None = None


@dataclass
class ConstantImport:
    path: str
    alias: str | None = None


@dataclass
class TraitAlias:
    """``Trait::method as visibility name``; trait is None for bare methods."""

    trait: str | None
    method: str
    visibility: Visibility = Visibility.PUBLIC
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.method


@dataclass
class TraitPrecedence:
    """``Trait::method insteadof Other, ...``"""

    trait: str
    method: str
    instead_of: list[str] = field(default_factory=list)


@dataclass
class TraitUse:
    traits: list[str]
    aliases: list[TraitAlias] = field(default_factory=list)
    precedences: list[TraitPrecedence] = field(default_factory=list)


Use = Union[ClassImport, FunctionImport, ConstantImport, TraitUse]


# ── Members ──────────────────────────────────────────────────────


@dataclass
class Variable:
    """A property or a function argument."""

    name: str
    type: Type = UNKNOWN
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_optional: bool = False
    is_rest: bool = False
    is_reference: bool = False
    is_readonly: bool = False
    doc: str | None = None
    span: Span | None = None


@dataclass
class Constant:
    name: str
    type: Type = UNKNOWN
    visibility: Visibility = Visibility.PUBLIC
    doc: str | None = None
    span: Span | None = None


@dataclass
class Function:
    name: str
    arguments: list[Variable] = field(default_factory=list)
    return_type: Type = UNKNOWN
    visibility: Visibility = Visibility.PUBLIC
    is_static: bool = False
    is_abstract: bool = False
    is_final: bool = False
    returns_reference: bool = False
    doc: str | None = None
    span: Span | None = None


# ── Containers ───────────────────────────────────────────────────


@dataclass
class Class:
    """A class, interface or trait."""

    name: str
    parent: str | None = None
    interfaces: list[str] = field(default_factory=list)
    is_interface: bool = False
    is_trait: bool = False
    is_abstract: bool = False
    is_final: bool = False
    is_readonly: bool = False
    functions: list[Function] = field(default_factory=list)
    variables: list[Variable] = field(default_factory=list)
    constants: list[Constant] = field(default_factory=list)
    uses: list[TraitUse] = field(default_factory=list)
    doc: str | None = None
    span: Span | None = None


@dataclass
class Namespace:
    """A namespace scope; the empty name is the global namespace."""

    name: str = ""
    uses: list[Use] = field(default_factory=list)
    classes: list[Class] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    constants: list[Constant] = field(default_factory=list)
    span: Span | None = None

    def find_class(self, name: str) -> Class | None:
        for cls in self.classes:
            if cls.name.lower() == name.lower():
                return cls
        return None
