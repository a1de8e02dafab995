"""Parsing of TypeScript schema and function documents."""

from convex_typegen.parsing.loader import (
    Document,
    StubResolver,
    load_document,
    load_documents,
    parse_source,
)
from convex_typegen.parsing.parser import TsParser

__all__ = [
    "Document",
    "StubResolver",
    "TsParser",
    "load_document",
    "load_documents",
    "parse_source",
]
