"""Extraction of exported query, mutation and action declarations."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from convex_typegen.bindings import Bindings, resolve
from convex_typegen.descriptors import DescriptorBuilder, TypeContext, object_entries
from convex_typegen.parsing.loader import Document
from convex_typegen.parsing.nodes import (
    CallExpression,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    Identifier,
    Node,
    ObjectExpression,
    VariableDeclaration,
)
from convex_typegen.types import (
    FUNCTION_KIND_NAMES,
    AnyType,
    Function,
    FunctionKind,
    Param,
    TypeDescriptor,
    describe,
)

logger = logging.getLogger(__name__)

# Bound aliases followed when recognizing a constructor
MAX_ALIAS_DEPTH = 10


def function_kind(callee: Node, bindings: Bindings) -> FunctionKind | None:
    """Return the kind of function a constructor callee builds, if any.

    Besides the constructors themselves, a binding that aliases one
    (``const authedQuery = query``) or wraps one as its first argument
    (``customQuery(query, ...)``) is recognized.
    """
    current: Node | None = callee
    for _ in range(MAX_ALIAS_DEPTH):
        if isinstance(current, CallExpression) and current.arguments:
            current = current.arguments[0]
            continue
        if not isinstance(current, Identifier):
            return None
        kind = FUNCTION_KIND_NAMES.get(current.name)
        if kind is not None:
            return kind
        current = bindings.get(current.name)
    return None


def _exported_calls(document: Document) -> Iterator[tuple[str, CallExpression]]:
    for stmt in document.program.body:
        if isinstance(stmt, ExportDefaultDeclaration):
            if isinstance(stmt.declaration, CallExpression):
                yield "default", stmt.declaration
        elif isinstance(stmt, ExportNamedDeclaration) and isinstance(
            stmt.declaration, VariableDeclaration
        ):
            for declarator in stmt.declaration.declarations:
                if isinstance(declarator.init, CallExpression):
                    yield declarator.name, declarator.init


class FunctionExtractor:
    """Extracts Function descriptors from one function document."""

    def __init__(self, builder: DescriptorBuilder | None = None) -> None:
        self.builder = builder or DescriptorBuilder()

    def extract(self, document: Document, bindings: Bindings) -> list[Function]:
        functions = []
        for name, call in _exported_calls(document):
            kind = function_kind(call.callee, bindings)
            if kind is None:
                logger.debug("Skipping export '%s' in %s", name, document.path)
                continue
            functions.append(self._extract_function(document, name, kind, call, bindings))
        logger.debug("Extracted %d functions from %s", len(functions), document.path)
        return functions

    def _extract_function(
        self,
        document: Document,
        name: str,
        kind: FunctionKind,
        call: CallExpression,
        bindings: Bindings,
    ) -> Function:
        file_name = document.stem
        context = TypeContext(document.path, f"{file_name}.{name}")

        config = resolve(call.arguments[0], bindings) if call.arguments else None
        if not isinstance(config, ObjectExpression):
            # e.g. httpAction(handler) or query(async (ctx) => ...)
            return Function(name=name, kind=kind, file_name=file_name, line=call.line)

        params: list[Param] = []
        args_node = config.get("args")
        if args_node is not None:
            args_node = resolve(args_node, bindings)
            if not isinstance(args_node, ObjectExpression):
                raise context.error("function args must be an object literal")
            with context.child("args"):
                for arg_name, value in object_entries(args_node, context, allow_spread=False):
                    with context.child(arg_name):
                        params.append(Param(arg_name, self._build(value, context)))

        returns = None
        returns_node = config.get("returns")
        if returns_node is not None:
            with context.child("returns"):
                returns = self._build(resolve(returns_node, bindings), context)

        logger.debug(
            "%s: %s(%s) -> %s",
            context.location,
            kind.value,
            ", ".join(f"{p.name}: {describe(p.type)}" for p in params),
            describe(returns) if returns is not None else "unknown",
        )

        return Function(
            name=name,
            kind=kind,
            file_name=file_name,
            params=tuple(params),
            returns=returns,
            line=call.line,
        )

    def _build(self, node: Node, context: TypeContext) -> TypeDescriptor:
        if isinstance(node, Identifier):
            logger.warning(
                "%s: %s: unresolved reference '%s', using any",
                context.file,
                context.location,
                node.name,
            )
            return AnyType()
        return self.builder.build(node, context)


def extract_functions(document: Document, bindings: Bindings) -> list[Function]:
    """Extract the exported functions of a function document."""
    return FunctionExtractor().extract(document, bindings)


def discover_function_paths(
    directory: str | Path, schema_path: str | Path | None = None
) -> list[Path]:
    """List the function documents directly inside a Convex directory, sorted.

    Skips the schema document, ``_``-prefixed files and declaration files.
    Subdirectories are not scanned.
    """
    directory = Path(directory)
    schema = Path(schema_path).resolve() if schema_path is not None else None
    paths = []
    for path in sorted(directory.glob("*.ts")):
        if path.name.startswith("_"):
            continue
        if path.name.endswith(".d.ts") or path.name == "schema.ts":
            continue
        if schema is not None and path.resolve() == schema:
            continue
        paths.append(path)
    return paths
