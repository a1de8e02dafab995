"""End-to-end generation: documents in, one Rust module out."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from convex_typegen.bindings import collect_bindings, merge_bindings
from convex_typegen.codegen import render_module
from convex_typegen.config import Configuration
from convex_typegen.errors import (
    ExtractionFailedError,
    MissingInputError,
    OutputWriteError,
    ParseFailedError,
)
from convex_typegen.functions import FunctionExtractor, discover_function_paths
from convex_typegen.interchange import dump_extraction, load_extraction
from convex_typegen.parsing import StubResolver, load_document, load_documents
from convex_typegen.schema import SchemaExtractor
from convex_typegen.types import Function, Schema

logger = logging.getLogger(__name__)


def function_paths(config: Configuration) -> list[Path]:
    """The function documents of a run: configured paths, else discovered ones."""
    if config.function_paths:
        return list(config.function_paths)
    directory = config.functions_dir or config.schema_path.parent
    if not directory.is_dir():
        return []
    return discover_function_paths(directory, config.schema_path)


def extract(config: Configuration) -> tuple[Schema, list[Function]]:
    """Parse and extract the schema and every function of a run.

    Bindings visible to a function document are, from lowest to highest
    precedence, those of the schema document, of its matching helper stubs,
    and of the document itself.
    """
    schema_document = load_document(config.schema_path)
    schema_bindings = collect_bindings(schema_document.program)
    schema = SchemaExtractor().extract(schema_document, schema_bindings)

    documents = load_documents(function_paths(config), jobs=config.jobs)
    stubs = StubResolver(config.helper_stubs)
    extractor = FunctionExtractor()
    functions: list[Function] = []
    for document in documents:
        document = stubs.attach(document)
        bindings = merge_bindings(
            schema_bindings,
            *(collect_bindings(stub.program) for stub in document.stubs),
            collect_bindings(document.program),
        )
        functions.extend(extractor.extract(document, bindings))

    logger.info(
        "Extracted %d tables and %d functions from %d documents",
        len(schema.tables),
        len(functions),
        len(documents) + 1,
    )
    return schema, functions


def write_output(path: str | Path, text: str) -> None:
    """Atomically replace ``path`` with ``text``.

    The text goes to a temporary file in the target directory first, so a
    failed write never leaves a partial module behind.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            os.unlink(tmp_name)
            raise
    except OSError as e:
        raise OutputWriteError(f"cannot write output: {e}", file=path) from e


def generate(config: Configuration) -> Path:
    """Generate the Rust module for ``config`` and return the written path."""
    schema, functions = extract(config)
    write_output(config.out_file, render_module(schema, functions))
    logger.info("Wrote %s", config.out_file)
    return config.out_file


def dump(config: Configuration) -> Path:
    """Write the extraction of ``config`` as JSON to its output file."""
    schema, functions = extract(config)
    write_output(config.out_file, dump_extraction(schema, functions) + "\n")
    logger.info("Wrote extraction to %s", config.out_file)
    return config.out_file


def read_extraction(path: str | Path) -> str:
    """Read the text of an extraction dump."""
    path = Path(path)
    if not path.is_file():
        raise MissingInputError(path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseFailedError(path, f"not valid UTF-8: {e}") from e
    except OSError as e:
        raise ExtractionFailedError(f"cannot read extraction: {e}", file=path) from e


def generate_from_extraction(text: str, out_file: str | Path) -> Path:
    """Generate the Rust module from a JSON extraction dump."""
    schema, functions = load_extraction(text)
    write_output(out_file, render_module(schema, functions))
    logger.info("Wrote %s", out_file)
    return Path(out_file)
