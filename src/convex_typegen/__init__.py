"""Convex Typegen - typed Rust bindings for a Convex schema and its functions."""

from convex_typegen.codegen import render_module
from convex_typegen.config import Configuration, load_configuration
from convex_typegen.errors import (
    CircularReferenceError,
    EmptyInputError,
    ExtractionFailedError,
    InvalidSchemaStructureError,
    InvalidTypeError,
    MissingInputError,
    OutputWriteError,
    ParseFailedError,
    SerializationFailedError,
    TypegenError,
)
from convex_typegen.interchange import dump_extraction, load_extraction
from convex_typegen.pipeline import extract, generate, generate_from_extraction
from convex_typegen.types import (
    Column,
    Function,
    FunctionKind,
    Index,
    Param,
    Schema,
    Table,
    TypeDescriptor,
)

__all__ = [
    # Main API
    "generate",
    "generate_from_extraction",
    "extract",
    "render_module",
    "Configuration",
    "load_configuration",
    "dump_extraction",
    "load_extraction",
    # Extracted model
    "Schema",
    "Table",
    "Column",
    "Index",
    "Function",
    "FunctionKind",
    "Param",
    "TypeDescriptor",
    # Errors
    "TypegenError",
    "MissingInputError",
    "EmptyInputError",
    "ParseFailedError",
    "InvalidSchemaStructureError",
    "InvalidTypeError",
    "CircularReferenceError",
    "SerializationFailedError",
    "ExtractionFailedError",
    "OutputWriteError",
]

__version__ = "0.1.0"
