"""Extraction of tables from a ``defineSchema`` document."""

from __future__ import annotations

import logging

from convex_typegen.bindings import Bindings, collect_bindings, resolve
from convex_typegen.descriptors import DescriptorBuilder, TypeContext, object_entries
from convex_typegen.errors import InvalidSchemaStructureError
from convex_typegen.parsing.loader import Document
from convex_typegen.parsing.nodes import (
    ArrayExpression,
    CallExpression,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    Identifier,
    MemberExpression,
    Node,
    ObjectExpression,
    ObjectProperty,
    StringLiteral,
    VariableDeclaration,
)
from convex_typegen.types import Column, Index, ObjectType, Schema, Table, describe

logger = logging.getLogger(__name__)

INDEX_METHODS = ("index", "searchIndex", "vectorIndex")

# System fields added to every document
SYSTEM_FIELDS = ("_id", "_creationTime")


def _is_call_to(node: Node | None, name: str) -> bool:
    return (
        isinstance(node, CallExpression)
        and isinstance(node.callee, Identifier)
        and node.callee.name == name
    )


def find_schema_calls(document: Document, bindings: Bindings) -> list[CallExpression]:
    """Return every ``defineSchema(...)`` call at the top level of a document."""
    calls: list[CallExpression] = []
    for stmt in document.program.body:
        if isinstance(stmt, ExportDefaultDeclaration):
            decl = stmt.declaration
            if isinstance(decl, Identifier):
                bound = bindings.get(decl.name)
                # Counted below through its declaration
                if _is_call_to(bound, "defineSchema"):
                    continue
            if _is_call_to(decl, "defineSchema"):
                calls.append(decl)  # type: ignore[arg-type]
            continue
        if isinstance(stmt, ExportNamedDeclaration):
            stmt = stmt.declaration
        if isinstance(stmt, VariableDeclaration):
            for declarator in stmt.declarations:
                if _is_call_to(declarator.init, "defineSchema"):
                    calls.append(declarator.init)  # type: ignore[arg-type]
    return calls


def find_define_table(node: Node) -> tuple[CallExpression | None, list[CallExpression]]:
    """Follow a call chain's callee spine down to ``defineTable(...)``.

    Returns the ``defineTable`` call (or None) and the modifier calls met on
    the way, outermost first.
    """
    modifiers: list[CallExpression] = []
    current = node
    while isinstance(current, CallExpression):
        if _is_call_to(current, "defineTable"):
            return current, modifiers
        if not isinstance(current.callee, MemberExpression):
            break
        modifiers.append(current)
        current = current.callee.object
    return None, modifiers


def _string_values(node: Node) -> list[str]:
    if isinstance(node, StringLiteral):
        return [node.value]
    values: list[str] = []
    if isinstance(node, ArrayExpression):
        for element in node.elements:
            values.extend(_string_values(element))
    elif isinstance(node, ObjectExpression):
        for prop in node.properties:
            if isinstance(prop, ObjectProperty):
                values.extend(_string_values(prop.value))
    return values


def _indexes(modifiers: list[CallExpression]) -> tuple[Index, ...]:
    indexes = []
    # Innermost modifier was applied first
    for call in reversed(modifiers):
        method = call.callee.property  # type: ignore[union-attr]
        if method not in INDEX_METHODS or not call.arguments:
            continue
        name = call.arguments[0]
        if not isinstance(name, StringLiteral):
            continue
        fields: list[str] = []
        for arg in call.arguments[1:]:
            fields.extend(_string_values(arg))
        indexes.append(Index(name=name.value, kind=method, fields=tuple(fields)))
    return tuple(indexes)


class SchemaExtractor:
    """Extracts Table descriptors from a schema document."""

    def __init__(self, builder: DescriptorBuilder | None = None) -> None:
        self.builder = builder or DescriptorBuilder()

    def extract(self, document: Document, bindings: Bindings | None = None) -> Schema:
        if bindings is None:
            bindings = collect_bindings(document.program)

        calls = find_schema_calls(document, bindings)
        if not calls:
            raise InvalidSchemaStructureError(
                "could not find a defineSchema call", file=document.path
            )
        if len(calls) > 1:
            raise InvalidSchemaStructureError(
                f"found {len(calls)} defineSchema calls, expected one",
                file=document.path,
            )

        schema_call = calls[0]
        context = TypeContext(document.path, "defineSchema")
        if not schema_call.arguments:
            raise context.error("defineSchema() is missing its table definitions")
        # Resolves every table and column expression beneath it
        tables_node = resolve(schema_call.arguments[0], bindings)

        tables: list[Table] = []
        for name, value in object_entries(tables_node, context):
            tables.append(self._extract_table(document, name, value))

        logger.debug("Extracted %d tables from %s", len(tables), document.path)
        return Schema(tables=tuple(tables))

    def _extract_table(self, document: Document, name: str, value: Node) -> Table:
        context = TypeContext(document.path, name)
        define_table, modifiers = find_define_table(value)
        if define_table is None:
            raise context.error("expected a defineTable call")
        if not define_table.arguments:
            raise context.error("defineTable() is missing its column definitions")

        columns_node = define_table.arguments[0]
        columns: list[Column] = []
        if isinstance(columns_node, ObjectExpression):
            for column_name, column_value in object_entries(columns_node, context):
                if column_name in SYSTEM_FIELDS:
                    raise context.error(f"'{column_name}' is a system field")
                with context.child(column_name):
                    columns.append(
                        Column(column_name, self.builder.build(column_value, context))
                    )
        else:
            descriptor = self.builder.build(columns_node, context)
            if not isinstance(descriptor, ObjectType):
                raise context.error(
                    f"defineTable() requires an object validator, found {describe(descriptor)}"
                )
            columns = [Column(k, v) for k, v in descriptor.properties]

        return Table(name=name, columns=tuple(columns), indexes=_indexes(modifiers))


def extract_schema(document: Document, bindings: Bindings | None = None) -> Schema:
    """Extract the tables of a schema document."""
    return SchemaExtractor().extract(document, bindings)
