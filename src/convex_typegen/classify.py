"""Classification of union descriptors into target representations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from convex_typegen.types import (
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
)

# Property distinguishing tagged-union variants
DISCRIMINANT = "type"


@dataclass(frozen=True)
class Nullable:
    """``X | null``, represented as an optional ``X``."""

    inner: TypeDescriptor


@dataclass(frozen=True)
class LiteralEnum:
    """A union of string literals; values are distinct and in declaration order."""

    values: tuple[str, ...]


@dataclass(frozen=True)
class ResultPattern:
    """``{Ok: T} | {Err: E}``. A ``NullType`` ok means a unit success."""

    ok: TypeDescriptor
    err: TypeDescriptor


@dataclass(frozen=True)
class TaggedVariant:
    tag: str
    fields: tuple[tuple[str, TypeDescriptor], ...] = ()


@dataclass(frozen=True)
class TaggedEnum:
    """Objects discriminated by a string literal ``type`` property."""

    variants: tuple[TaggedVariant, ...]


@dataclass(frozen=True)
class UntaggedVariant:
    name: str
    type: TypeDescriptor


@dataclass(frozen=True)
class UntaggedEnum:
    """Any other union; deserialization tries the variants in order."""

    variants: tuple[UntaggedVariant, ...]


UnionShape = Union[Nullable, LiteralEnum, ResultPattern, TaggedEnum, UntaggedEnum]


_KIND_NAMES: list[tuple[type, str]] = [
    (NullType, "Null"),
    (BooleanType, "Boolean"),
    (Int64Type, "Int64"),
    (Float64Type, "Number"),
    (StringType, "String"),
    (BytesType, "Bytes"),
    (IdType, "Id"),
    (LiteralType, "Literal"),
    (OptionalType, "Optional"),
    (ArrayType, "Array"),
    (ObjectType, "Object"),
    (RecordType, "Record"),
    (UnionType, "Union"),
    (AnyType, "Any"),
]


def kind_name(descriptor: TypeDescriptor) -> str:
    """Return the variant base name used for a descriptor in an untagged enum."""
    for cls, name in _KIND_NAMES:
        if isinstance(descriptor, cls):
            return name
    raise TypeError(f"Not a type descriptor: {descriptor!r}")


def _nullable(variants: tuple[TypeDescriptor, ...]) -> Nullable | None:
    if len(variants) != 2:
        return None
    first, second = variants
    if isinstance(first, NullType):
        return Nullable(second)
    if isinstance(second, NullType):
        return Nullable(first)
    return None


def _literal_enum(variants: tuple[TypeDescriptor, ...]) -> LiteralEnum | None:
    if not all(isinstance(v, LiteralType) and v.is_string for v in variants):
        return None
    values: list[str] = []
    for v in variants:
        if v.value not in values:  # type: ignore[union-attr]
            values.append(v.value)  # type: ignore[union-attr]
    return LiteralEnum(tuple(values))


def _result_pattern(variants: tuple[TypeDescriptor, ...]) -> ResultPattern | None:
    if len(variants) != 2:
        return None
    single: dict[str, TypeDescriptor] = {}
    for v in variants:
        if not isinstance(v, ObjectType) or len(v.properties) != 1:
            return None
        name, value = v.properties[0]
        single[name] = value
    if set(single) != {"Ok", "Err"}:
        return None
    return ResultPattern(ok=single["Ok"], err=single["Err"])


def _tagged_enum(variants: tuple[TypeDescriptor, ...]) -> TaggedEnum | None:
    tagged = []
    for v in variants:
        if not isinstance(v, ObjectType):
            return None
        tag = v.get(DISCRIMINANT)
        if not isinstance(tag, LiteralType) or not tag.is_string:
            return None
        # A repeated tag could never be told apart when decoding
        if any(t.tag == tag.value for t in tagged):
            return None
        fields = tuple((k, t) for k, t in v.properties if k != DISCRIMINANT)
        tagged.append(TaggedVariant(tag=tag.value, fields=fields))  # type: ignore[arg-type]
    return TaggedEnum(tuple(tagged))


def _untagged_enum(variants: tuple[TypeDescriptor, ...]) -> UntaggedEnum:
    counts: dict[str, int] = {}
    members = []
    for v in variants:
        base = kind_name(v)
        counts[base] = counts.get(base, 0) + 1
        name = base if counts[base] == 1 else f"{base}{counts[base]}"
        members.append(UntaggedVariant(name=name, type=v))
    return UntaggedEnum(tuple(members))


def classify_union(union: UnionType) -> UnionShape:
    """Pick the representation of a union.

    Rules are tried in a fixed order and the first match wins: nullable,
    literal enum, result pattern, tagged enum, untagged enum.
    """
    variants = union.variants
    return (
        _nullable(variants)
        or _literal_enum(variants)
        or _result_pattern(variants)
        or _tagged_enum(variants)
        or _untagged_enum(variants)
    )
