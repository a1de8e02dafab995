"""Identifier conversion and collision-free naming for generated Rust items."""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")

RUST_KEYWORDS = frozenset(
    {
        "as", "async", "await", "break", "const", "continue", "crate", "dyn",
        "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in",
        "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return",
        "self", "Self", "static", "struct", "super", "trait", "true", "type",
        "unsafe", "use", "where", "while", "abstract", "become", "box", "do",
        "final", "macro", "override", "priv", "try", "typeof", "unsized",
        "virtual", "yield", "gen",
    }
)

# Keywords that cannot be written as raw identifiers
_NON_RAW = frozenset({"crate", "self", "Self", "super", "_"})


def split_words(name: str) -> list[str]:
    """Split camelCase, PascalCase, snake_case and kebab-case into words."""
    return _WORD_RE.findall(name)


def pascal_case(name: str) -> str:
    """``my_item`` -> ``MyItem``, ``yourItem`` -> ``YourItem``.

    Only the first letter of each word changes case, so ``HTTPServer``
    stays ``HTTPServer``. A result starting with a digit gets a leading
    underscore.
    """
    words = split_words(name)
    result = "".join(w[0].upper() + w[1:] for w in words)
    if not result:
        return "Empty"
    if result[0].isdigit():
        result = "_" + result
    return result


def snake_case(name: str) -> str:
    """``isActive`` -> ``is_active``, ``_creationTime`` -> ``creation_time``."""
    result = "_".join(w.lower() for w in split_words(name))
    if not result:
        return "field"
    if result[0].isdigit():
        result = "_" + result
    return result


def is_rust_identifier(name: str) -> bool:
    return re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", name) is not None and name != "_"


def rust_identifier(name: str) -> str:
    """Make ``name`` usable as a Rust identifier, escaping keywords."""
    if name in _NON_RAW:
        return name.strip("_") + "_" if name != "_" else "_field"
    if name in RUST_KEYWORDS:
        return f"r#{name}"
    return name


def rust_field_name(name: str) -> str:
    """Field name for a serialized key, in snake_case."""
    return rust_identifier(snake_case(name))


def raw_field_name(name: str) -> str:
    """Field name that keeps the key's spelling where Rust allows it."""
    if is_rust_identifier(name):
        return rust_identifier(name)
    return rust_field_name(name)


def rust_string(value: str) -> str:
    """Render ``value`` as a Rust string literal."""
    out = ['"']
    for ch in value:
        if ch == "\\":
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\0":
            out.append("\\0")
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


class NameRegistry:
    """Hands out unique names, suffixing a counter on collision.

    The first claim of ``Foo`` gets ``Foo``, later claims get ``Foo2``,
    ``Foo3`` and so on.
    """

    def __init__(self) -> None:
        self._taken: set[str] = set()

    def claim(self, name: str) -> str:
        if name not in self._taken:
            self._taken.add(name)
            return name
        counter = 2
        while f"{name}{counter}" in self._taken:
            counter += 1
        unique = f"{name}{counter}"
        self._taken.add(unique)
        return unique

    def __contains__(self, name: str) -> bool:
        return name in self._taken
