"""Error taxonomy for schema and function extraction, type building and emission."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class TypegenError(Exception):
    """Base class for every error raised by the generator.

    ``file`` names the document being processed and ``context`` the structural
    position inside it (``games.getByStatus.status``, ``users.profile``).
    """

    def __init__(
        self,
        message: str,
        *,
        file: str | Path | None = None,
        context: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file = str(file) if file is not None else None
        self.context = context

    def format(self) -> str:
        parts = []
        if self.file:
            parts.append(self.file)
        if self.context:
            parts.append(self.context)
        parts.append(self.message)
        return ": ".join(parts)

    def __str__(self) -> str:
        return self.format()


class MissingInputError(TypegenError):
    """A schema, function or stub document does not exist."""

    def __init__(self, path: str | Path) -> None:
        super().__init__("input file not found", file=path)


class EmptyInputError(TypegenError):
    """A document contains no statements."""

    def __init__(self, path: str | Path) -> None:
        super().__init__("input file is empty", file=path)


class ParseFailedError(TypegenError):
    """The source parser rejected a document."""

    def __init__(self, path: str | Path, diagnostic: str) -> None:
        super().__init__(f"parse failed: {diagnostic}", file=path)
        self.diagnostic = diagnostic


class InvalidSchemaStructureError(TypegenError):
    """An expected call, argument or shape is absent."""


class InvalidTypeError(TypegenError):
    """A validator constructor is not part of the recognized set."""

    def __init__(
        self,
        found: str,
        valid: Iterable[str],
        *,
        file: str | Path | None = None,
        context: str | None = None,
    ) -> None:
        self.found = found
        self.valid = tuple(valid)
        super().__init__(
            f"invalid type '{found}', expected one of: {', '.join(self.valid)}",
            file=file,
            context=context,
        )


class CircularReferenceError(TypegenError):
    """An object validator re-enters a path that is already being built."""

    def __init__(
        self,
        chain: Iterable[str],
        *,
        file: str | Path | None = None,
        context: str | None = None,
    ) -> None:
        self.chain = tuple(chain)
        super().__init__(
            f"circular reference: {' -> '.join(self.chain)}",
            file=file,
            context=context,
        )


class SerializationFailedError(TypegenError):
    """The extracted model could not be encoded."""


class ExtractionFailedError(TypegenError):
    """Extraction failed outside the type model (worker crash, bad interchange data)."""


class OutputWriteError(TypegenError):
    """The generated module could not be written."""


__all__ = [
    "CircularReferenceError",
    "EmptyInputError",
    "ExtractionFailedError",
    "InvalidSchemaStructureError",
    "InvalidTypeError",
    "MissingInputError",
    "OutputWriteError",
    "ParseFailedError",
    "SerializationFailedError",
    "TypegenError",
]
