"""Top-level binding collection and identifier resolution."""

from __future__ import annotations

import logging
from dataclasses import fields, is_dataclass, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from convex_typegen.parsing.nodes import (
    ExportNamedDeclaration,
    Identifier,
    Node,
    Program,
    VariableDeclaration,
)

logger = logging.getLogger(__name__)

# Substitutions deeper than this are left unresolved
MAX_RESOLVE_DEPTH = 20

# How many times one binding may be expanded along a single substitution chain
MAX_EXPANSIONS_PER_BINDING = 2

Bindings = Mapping[str, Node]


def _declarations(program: Program) -> Iterable[VariableDeclaration]:
    for stmt in program.body:
        if isinstance(stmt, ExportNamedDeclaration):
            stmt = stmt.declaration
        if isinstance(stmt, VariableDeclaration):
            yield stmt


def collect_bindings(program: Program) -> dict[str, Node]:
    """Map every top-level ``const``/``let``/``var`` name to its initializer.

    Exported and non-exported declarations are both collected; a later
    declaration of the same name replaces an earlier one.
    """
    bindings: dict[str, Node] = {}
    for decl in _declarations(program):
        for declarator in decl.declarations:
            if declarator.init is not None:
                bindings[declarator.name] = declarator.init
    return bindings


def merge_bindings(*layers: Mapping[str, Node]) -> Bindings:
    """Combine binding tables; later layers shadow earlier ones.

    The result is read-only.
    """
    merged: dict[str, Node] = {}
    for layer in layers:
        merged.update(layer)
    return MappingProxyType(merged)


def resolve(
    node: Any,
    bindings: Bindings,
    depth: int = 0,
    _active: tuple[str, ...] = (),
) -> Any:
    """Substitute identifiers in ``node`` with their bound expressions.

    Substitution is transitive: a bound expression is itself resolved, one
    level deeper. Property keys and member names are plain strings on the
    nodes and are never substituted. Past ``MAX_RESOLVE_DEPTH`` the node is
    returned as is.

    A substituted expression records the identifier it replaced in
    ``origin`` (the innermost binding name wins for alias chains).
    """
    if depth > MAX_RESOLVE_DEPTH:
        logger.warning(
            "Binding resolution stopped at depth %d; leaving %s unresolved",
            MAX_RESOLVE_DEPTH,
            _label(node),
        )
        return node

    if isinstance(node, Identifier):
        bound = bindings.get(node.name)
        if bound is None:
            return node
        if _active.count(node.name) >= MAX_EXPANSIONS_PER_BINDING:
            logger.debug("Not expanding '%s' again in %s", node.name, " -> ".join(_active))
            return node
        resolved = resolve(bound, bindings, depth + 1, _active + (node.name,))
        if isinstance(resolved, Node) and resolved.origin is None:
            resolved = replace(resolved, origin=node.name)
        return resolved

    if isinstance(node, tuple):
        return tuple(resolve(item, bindings, depth, _active) for item in node)

    if isinstance(node, Node) and is_dataclass(node):
        changes = {}
        for f in fields(node):
            if not f.compare:
                continue
            value = getattr(node, f.name)
            if isinstance(value, (Node, tuple)):
                new_value = resolve(value, bindings, depth, _active)
                if new_value is not value:
                    changes[f.name] = new_value
        return replace(node, **changes) if changes else node

    return node


def _label(node: Any) -> str:
    if isinstance(node, Identifier):
        return f"'{node.name}'"
    return type(node).__name__
