"""Reading, parsing and helper-stub attachment for source documents."""

from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from convex_typegen.errors import (
    EmptyInputError,
    ExtractionFailedError,
    MissingInputError,
    ParseFailedError,
    TypegenError,
)
from convex_typegen.parsing.nodes import Program
from convex_typegen.parsing.parser import TsParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """A parsed source file.

    ``stubs`` holds the helper-stub documents whose import pattern matched
    one of this document's import sources.
    """

    path: Path
    program: Program
    stubs: tuple[Document, ...] = field(default=())

    @property
    def stem(self) -> str:
        """File name without directory or ``.ts``-style extension."""
        name = self.path.name
        for suffix in (".d.ts", ".tsx", ".ts", ".mts", ".cts", ".js", ".mjs"):
            if name.endswith(suffix):
                return name[: -len(suffix)]
        return self.path.stem


_local = threading.local()


def _thread_parser() -> TsParser:
    # ply parsers keep per-parse state on the instance
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = TsParser()
        _local.parser = parser
    return parser


def parse_source(source: str, path: str | Path = "<string>") -> Program:
    """Parse source text, mapping failures onto the error taxonomy."""
    if not source.strip():
        raise EmptyInputError(path)
    try:
        program = _thread_parser().parse(source)
    except SyntaxError as e:
        raise ParseFailedError(path, str(e)) from e
    if not program.body:
        raise EmptyInputError(path)
    return program


def load_document(path: str | Path) -> Document:
    """Read and parse one document."""
    path = Path(path)
    if not path.is_file():
        raise MissingInputError(path)
    try:
        source = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseFailedError(path, f"not valid UTF-8: {e}") from e
    logger.debug("Parsing %s", path)
    return Document(path=path, program=parse_source(source, path))


def load_documents(paths: Iterable[str | Path], jobs: int = 1) -> list[Document]:
    """Parse documents, in parallel when ``jobs`` > 1, preserving input order."""
    paths = [Path(p) for p in paths]
    if jobs <= 1 or len(paths) <= 1:
        return [load_document(p) for p in paths]

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        futures = [pool.submit(load_document, p) for p in paths]
        documents = []
        for path, future in zip(paths, futures):
            try:
                documents.append(future.result())
            except TypegenError:
                raise
            except Exception as e:
                raise ExtractionFailedError(
                    f"parser worker failed: {e}", file=path
                ) from e
    return documents


class StubResolver:
    """Attaches helper-stub documents to the documents that import them.

    Patterns are regular expressions searched in each import source of a
    document. Stubs are parsed once, on first match.
    """

    def __init__(self, helper_stubs: Mapping[str, str | Path]) -> None:
        self._patterns = [
            (re.compile(pattern), Path(stub)) for pattern, stub in helper_stubs.items()
        ]
        self._loaded: dict[Path, Document] = {}

    def _stub(self, path: Path) -> Document:
        if path not in self._loaded:
            self._loaded[path] = load_document(path)
        return self._loaded[path]

    def attach(self, document: Document) -> Document:
        sources = document.program.import_sources()
        stubs: list[Document] = []
        for pattern, stub_path in self._patterns:
            if any(pattern.search(source) for source in sources):
                stub = self._stub(stub_path)
                if all(s.path != stub.path for s in stubs):
                    logger.debug("Using stub %s for %s", stub_path, document.path)
                    stubs.append(stub)
        if not stubs:
            return document
        return Document(path=document.path, program=document.program, stubs=tuple(stubs))
