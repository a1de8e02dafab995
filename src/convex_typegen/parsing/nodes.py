"""Syntax tree nodes for the TypeScript subset read from Convex documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Node:
    """Base class for all syntax tree nodes.

    ``origin`` is set by binding resolution on an expression that replaced an
    identifier and holds that identifier's name. Neither ``line`` nor
    ``origin`` takes part in equality.
    """

    line: int = field(default=0, compare=False, kw_only=True)
    origin: str | None = field(default=None, compare=False, kw_only=True)


# --- Expressions ---


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class StringLiteral(Node):
    value: str


@dataclass(frozen=True)
class TemplateLiteral(Node):
    """A backtick string. ``value`` is the raw text between the backticks."""

    value: str

    @property
    def is_static(self) -> bool:
        return "${" not in self.value


@dataclass(frozen=True)
class NumericLiteral(Node):
    value: int | float


@dataclass(frozen=True)
class BooleanLiteral(Node):
    value: bool


@dataclass(frozen=True)
class NullLiteral(Node):
    pass


@dataclass(frozen=True)
class MemberExpression(Node):
    """``object.property``."""

    object: Expression
    property: str


@dataclass(frozen=True)
class CallExpression(Node):
    callee: Expression
    arguments: tuple[Expression | SpreadElement, ...] = ()


@dataclass(frozen=True)
class SpreadElement(Node):
    argument: Expression


@dataclass(frozen=True)
class ObjectProperty(Node):
    """A ``key: value`` property. Shorthand ``{ key }`` has ``value=Identifier(key)``."""

    key: str
    value: Expression
    shorthand: bool = False


@dataclass(frozen=True)
class MethodProperty(Node):
    """A method shorthand ``key(...) { ... }``; the body is never interpreted."""

    key: str


@dataclass(frozen=True)
class ObjectExpression(Node):
    properties: tuple[ObjectProperty | MethodProperty | SpreadElement, ...] = ()

    def get(self, key: str) -> Expression | None:
        """Return the value of the last plain property named ``key``."""
        found = None
        for prop in self.properties:
            if isinstance(prop, ObjectProperty) and prop.key == key:
                found = prop.value
        return found


@dataclass(frozen=True)
class ArrayExpression(Node):
    elements: tuple[Expression | SpreadElement, ...] = ()


@dataclass(frozen=True)
class ArrowFunction(Node):
    """An arrow function. Parameters and body are opaque."""

    is_async: bool = False


Expression = Union[
    Identifier,
    StringLiteral,
    TemplateLiteral,
    NumericLiteral,
    BooleanLiteral,
    NullLiteral,
    MemberExpression,
    CallExpression,
    ObjectExpression,
    ArrayExpression,
    ArrowFunction,
]


# --- Statements ---


@dataclass(frozen=True)
class ImportSpecifier(Node):
    imported: str
    local: str


@dataclass(frozen=True)
class ImportDeclaration(Node):
    source: str
    specifiers: tuple[ImportSpecifier, ...] = ()


@dataclass(frozen=True)
class VariableDeclarator(Node):
    name: str
    init: Expression | None = None


@dataclass(frozen=True)
class VariableDeclaration(Node):
    kind: str
    declarations: tuple[VariableDeclarator, ...] = ()


@dataclass(frozen=True)
class FunctionDeclaration(Node):
    name: str | None
    is_async: bool = False


@dataclass(frozen=True)
class TypeDeclaration(Node):
    """A ``type`` alias or ``interface``; only the name is kept."""

    name: str


@dataclass(frozen=True)
class ExportNamedDeclaration(Node):
    declaration: VariableDeclaration | FunctionDeclaration | TypeDeclaration


@dataclass(frozen=True)
class ExportDefaultDeclaration(Node):
    declaration: Expression | FunctionDeclaration


@dataclass(frozen=True)
class ExportSpecifiers(Node):
    """``export { a, b as c }`` or a re-export ``export ... from "source"``."""

    specifiers: tuple[ImportSpecifier, ...] = ()
    source: str | None = None


Statement = Union[
    ImportDeclaration,
    VariableDeclaration,
    FunctionDeclaration,
    TypeDeclaration,
    ExportNamedDeclaration,
    ExportDefaultDeclaration,
    ExportSpecifiers,
]


@dataclass(frozen=True)
class Program(Node):
    body: tuple[Statement, ...] = ()

    def import_sources(self) -> list[str]:
        """Return the module specifiers this program imports or re-exports from."""
        sources = []
        for stmt in self.body:
            if isinstance(stmt, ImportDeclaration):
                sources.append(stmt.source)
            elif isinstance(stmt, ExportSpecifiers) and stmt.source is not None:
                sources.append(stmt.source)
        return sources
