"""Interpretation of validator call chains into type descriptors."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from convex_typegen.errors import (
    CircularReferenceError,
    InvalidSchemaStructureError,
    InvalidTypeError,
)
from convex_typegen.parsing.nodes import (
    ArrayExpression,
    BooleanLiteral,
    CallExpression,
    Identifier,
    MemberExpression,
    MethodProperty,
    Node,
    NumericLiteral,
    ObjectExpression,
    ObjectProperty,
    SpreadElement,
    StringLiteral,
    TemplateLiteral,
)
from convex_typegen.types import (
    VALIDATOR_NAMES,
    AnyType,
    ArrayType,
    BooleanType,
    BytesType,
    Float64Type,
    IdType,
    Int64Type,
    LiteralType,
    NullType,
    ObjectType,
    OptionalType,
    RecordType,
    StringType,
    TypeDescriptor,
    UnionType,
    ValidatorKind,
)

logger = logging.getLogger(__name__)

# Marks the element position of an array on the object stack
ARRAY_BOUNDARY = ("array", "elements")

_LEAVES: dict[ValidatorKind, TypeDescriptor] = {
    ValidatorKind.NULL: NullType(),
    ValidatorKind.INT64: Int64Type(),
    ValidatorKind.NUMBER: Float64Type(),
    ValidatorKind.FLOAT64: Float64Type(),
    ValidatorKind.BOOLEAN: BooleanType(),
    ValidatorKind.STRING: StringType(),
    ValidatorKind.BYTES: BytesType(),
    ValidatorKind.ANY: AnyType(),
}


class TypeContext:
    """Where in a document a validator is being built.

    ``path`` is the structural position (``users.profile.address``) used in
    error messages. ``type_stack`` holds the objects currently being built,
    keyed by binding name when the object came from a binding and by
    structural path otherwise. Array element positions push
    ``ARRAY_BOUNDARY``: an object may reappear beyond one, but not within
    the same scope.
    """

    def __init__(self, file: str | Path | None, root: str) -> None:
        self.file = file
        self.path: list[str] = [root]
        self.type_stack: list[tuple[str, str]] = []

    @property
    def location(self) -> str:
        return ".".join(self.path)

    @contextmanager
    def child(self, segment: str) -> Iterator[None]:
        self.path.append(segment)
        try:
            yield
        finally:
            self.path.pop()

    def _scope(self) -> list[tuple[str, str]]:
        """Entries pushed since the innermost array boundary."""
        for i in range(len(self.type_stack) - 1, -1, -1):
            if self.type_stack[i] == ARRAY_BOUNDARY:
                return self.type_stack[i + 1 :]
        return self.type_stack

    @contextmanager
    def array_elements(self) -> Iterator[None]:
        self.type_stack.append(ARRAY_BOUNDARY)
        try:
            yield
        finally:
            self.type_stack.pop()

    def recurses_through_array(self, kind: str, key: str) -> bool:
        """Whether ``key`` is being built outside the innermost array only."""
        entry = (kind, key)
        return entry in self.type_stack and entry not in self._scope()

    @contextmanager
    def entering(self, kind: str, key: str) -> Iterator[None]:
        entry = (kind, key)
        if entry in self._scope():
            chain = [k for _, k in self._scope()] + [key]
            raise CircularReferenceError(chain, file=self.file, context=self.location)
        self.type_stack.append(entry)
        try:
            yield
        finally:
            self.type_stack.pop()

    def error(self, message: str) -> InvalidSchemaStructureError:
        return InvalidSchemaStructureError(message, file=self.file, context=self.location)


def object_entries(
    obj: Node, context: TypeContext, *, allow_spread: bool = True
) -> list[tuple[str, Node]]:
    """Return the ``(key, value)`` pairs of a resolved object literal.

    Spreads of object literals are inlined. A repeated key keeps its first
    position and takes its last value.
    """
    if not isinstance(obj, ObjectExpression):
        raise context.error(f"expected an object literal, found {_kind(obj)}")
    entries: dict[str, Node] = {}
    for prop in obj.properties:
        if isinstance(prop, ObjectProperty):
            entries[prop.key] = prop.value
        elif isinstance(prop, SpreadElement):
            if not allow_spread:
                raise context.error("spread properties are not allowed here")
            for key, value in object_entries(prop.argument, context):
                entries[key] = value
        elif isinstance(prop, MethodProperty):
            raise context.error(f"method '{prop.key}' is not a validator")
    return list(entries.items())


class DescriptorBuilder:
    """Builds TypeDescriptors from resolved validator expressions."""

    def build(self, node: Node, context: TypeContext) -> TypeDescriptor:
        """Interpret one validator call, e.g. ``v.array(v.string())``."""
        if isinstance(node, Identifier):
            raise context.error(f"unresolved reference '{node.name}'")
        if not isinstance(node, CallExpression) or not isinstance(
            node.callee, MemberExpression
        ):
            raise context.error(f"expected a validator call, found {_kind(node)}")

        name = node.callee.property
        kind = VALIDATOR_NAMES.get(name)
        if kind is None:
            raise InvalidTypeError(
                name, VALIDATOR_NAMES, file=context.file, context=context.location
            )

        if kind in _LEAVES:
            return _LEAVES[kind]
        if kind is ValidatorKind.ID:
            return IdType(self._text_argument(node, context, "id"))
        if kind is ValidatorKind.LITERAL:
            return LiteralType(self._literal_value(node, context))
        if kind is ValidatorKind.OPTIONAL:
            with context.child("inner"):
                return OptionalType(self.build(self._argument(node, 0, context), context))
        if kind is ValidatorKind.ARRAY:
            with context.child("elements"), context.array_elements():
                return ArrayType(self.build(self._argument(node, 0, context), context))
        if kind is ValidatorKind.OBJECT:
            return self._build_object(node, context)
        if kind is ValidatorKind.RECORD:
            with context.child("keyType"):
                key = self.build(self._argument(node, 0, context), context)
            with context.child("valueType"):
                value = self.build(self._argument(node, 1, context), context)
            return RecordType(key, value)
        return self._build_union(node, context)

    def _build_object(
        self, node: CallExpression, context: TypeContext
    ) -> ObjectType | AnyType:
        fields_node = self._argument(node, 0, context)
        origin = node.origin or fields_node.origin
        key = f"binding:{origin}" if origin else context.location
        if context.recurses_through_array("object", key):
            # Recursive element types are left untyped
            logger.debug(
                "%s: %s: recursive %s, using any", context.file, context.location, key
            )
            return AnyType()
        with context.entering("object", key):
            properties = []
            for name, value in object_entries(fields_node, context):
                with context.child(name):
                    properties.append((name, self.build(value, context)))
        return ObjectType(tuple(properties))

    def _build_union(self, node: CallExpression, context: TypeContext) -> UnionType:
        members: list[Node] = []
        for arg in node.arguments:
            if isinstance(arg, SpreadElement):
                if not isinstance(arg.argument, ArrayExpression):
                    raise context.error("union spread must be an array literal")
                members.extend(arg.argument.elements)
            else:
                members.append(arg)
        if not members:
            raise context.error("union() requires at least one variant")
        variants = []
        for i, member in enumerate(members):
            with context.child(f"variant_{i}"):
                variants.append(self.build(member, context))
        return UnionType(tuple(variants))

    def _argument(self, node: CallExpression, index: int, context: TypeContext) -> Node:
        name = node.callee.property  # type: ignore[union-attr]
        if len(node.arguments) <= index:
            raise context.error(f"{name}() is missing argument {index + 1}")
        arg = node.arguments[index]
        if isinstance(arg, SpreadElement):
            raise context.error(f"{name}() does not accept spread arguments")
        return arg

    def _text_argument(self, node: CallExpression, context: TypeContext, name: str) -> str:
        arg = self._argument(node, 0, context)
        if isinstance(arg, StringLiteral):
            return arg.value
        if isinstance(arg, TemplateLiteral) and arg.is_static:
            return arg.value
        raise context.error(f"{name}() requires a string literal")

    def _literal_value(
        self, node: CallExpression, context: TypeContext
    ) -> str | int | float | bool:
        arg = self._argument(node, 0, context)
        if isinstance(arg, (StringLiteral, NumericLiteral, BooleanLiteral)):
            return arg.value
        if isinstance(arg, TemplateLiteral) and arg.is_static:
            return arg.value
        raise context.error("literal() requires a string, number or boolean literal")


def _kind(node: Node) -> str:
    if isinstance(node, Identifier):
        return f"identifier '{node.name}'"
    if isinstance(node, CallExpression) and isinstance(node.callee, Identifier):
        return f"call to '{node.callee.name}'"
    return type(node).__name__
