"""Type descriptors and the extracted schema and function model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ValidatorKind(Enum):
    """Validator constructors recognized in the ``v.*`` DSL."""

    ID = "id"
    NULL = "null"
    INT64 = "int64"
    NUMBER = "number"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    STRING = "string"
    BYTES = "bytes"
    ARRAY = "array"
    OBJECT = "object"
    RECORD = "record"
    UNION = "union"
    LITERAL = "literal"
    OPTIONAL = "optional"
    ANY = "any"


# Mapping from constructor names to ValidatorKind values
VALIDATOR_NAMES: dict[str, ValidatorKind] = {vk.value: vk for vk in ValidatorKind}


# --- Type descriptors ---


@dataclass(frozen=True)
class NullType:
    pass


@dataclass(frozen=True)
class BooleanType:
    pass


@dataclass(frozen=True)
class Int64Type:
    pass


@dataclass(frozen=True)
class Float64Type:
    pass


@dataclass(frozen=True)
class StringType:
    pass


@dataclass(frozen=True)
class BytesType:
    pass


@dataclass(frozen=True)
class AnyType:
    pass


@dataclass(frozen=True)
class IdType:
    """A document id referencing ``table``."""

    table: str


@dataclass(frozen=True)
class LiteralType:
    """A single literal value: string, number or boolean."""

    value: str | int | float | bool

    @property
    def is_string(self) -> bool:
        return isinstance(self.value, str)


@dataclass(frozen=True)
class OptionalType:
    inner: TypeDescriptor


@dataclass(frozen=True)
class ArrayType:
    element: TypeDescriptor


@dataclass(frozen=True)
class ObjectType:
    """An object with properties in declaration order."""

    properties: tuple[tuple[str, TypeDescriptor], ...] = ()

    def get(self, name: str) -> TypeDescriptor | None:
        for key, value in self.properties:
            if key == name:
                return value
        return None

    @property
    def names(self) -> list[str]:
        return [key for key, _ in self.properties]


@dataclass(frozen=True)
class RecordType:
    key: TypeDescriptor
    value: TypeDescriptor


@dataclass(frozen=True)
class UnionType:
    """A union of one or more variants in declaration order."""

    variants: tuple[TypeDescriptor, ...]

    def __post_init__(self) -> None:
        if not self.variants:
            raise ValueError("UnionType requires at least one variant")


TypeDescriptor = Union[
    NullType,
    BooleanType,
    Int64Type,
    Float64Type,
    StringType,
    BytesType,
    IdType,
    LiteralType,
    OptionalType,
    ArrayType,
    ObjectType,
    RecordType,
    UnionType,
    AnyType,
]


def describe(descriptor: TypeDescriptor) -> str:
    """Return a short TypeScript-like rendering of a descriptor, for messages."""
    if isinstance(descriptor, NullType):
        return "null"
    if isinstance(descriptor, BooleanType):
        return "boolean"
    if isinstance(descriptor, Int64Type):
        return "int64"
    if isinstance(descriptor, Float64Type):
        return "number"
    if isinstance(descriptor, StringType):
        return "string"
    if isinstance(descriptor, BytesType):
        return "bytes"
    if isinstance(descriptor, AnyType):
        return "any"
    if isinstance(descriptor, IdType):
        return f'Id<"{descriptor.table}">'
    if isinstance(descriptor, LiteralType):
        return repr(descriptor.value)
    if isinstance(descriptor, OptionalType):
        return f"{describe(descriptor.inner)}?"
    if isinstance(descriptor, ArrayType):
        return f"{describe(descriptor.element)}[]"
    if isinstance(descriptor, ObjectType):
        fields = ", ".join(f"{k}: {describe(v)}" for k, v in descriptor.properties)
        return "{" + fields + "}"
    if isinstance(descriptor, RecordType):
        return f"Record<{describe(descriptor.key)}, {describe(descriptor.value)}>"
    if isinstance(descriptor, UnionType):
        return " | ".join(describe(v) for v in descriptor.variants)
    raise TypeError(f"Not a type descriptor: {descriptor!r}")


# --- Extracted model ---


@dataclass(frozen=True)
class Column:
    name: str
    type: TypeDescriptor


@dataclass(frozen=True)
class Index:
    """An index declared on a table (``index``, ``searchIndex`` or ``vectorIndex``)."""

    name: str
    kind: str
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class Table:
    name: str
    columns: tuple[Column, ...] = ()
    indexes: tuple[Index, ...] = ()

    def get_column(self, name: str) -> Column | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass(frozen=True)
class Schema:
    """All tables of one schema document, in declaration order."""

    tables: tuple[Table, ...] = ()

    def get(self, name: str) -> Table | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    @property
    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]


class FunctionKind(Enum):
    """Function constructors exported from Convex function files."""

    QUERY = "query"
    MUTATION = "mutation"
    ACTION = "action"
    INTERNAL_QUERY = "internalQuery"
    INTERNAL_MUTATION = "internalMutation"
    INTERNAL_ACTION = "internalAction"
    HTTP_ACTION = "httpAction"

    @property
    def base(self) -> FunctionKind:
        """The public kind whose client call this kind uses."""
        return {
            FunctionKind.INTERNAL_QUERY: FunctionKind.QUERY,
            FunctionKind.INTERNAL_MUTATION: FunctionKind.MUTATION,
            FunctionKind.INTERNAL_ACTION: FunctionKind.ACTION,
        }.get(self, self)

    @property
    def is_query(self) -> bool:
        return self.base is FunctionKind.QUERY

    @property
    def has_client_method(self) -> bool:
        return self is not FunctionKind.HTTP_ACTION


# Mapping from constructor names to FunctionKind values
FUNCTION_KIND_NAMES: dict[str, FunctionKind] = {fk.value: fk for fk in FunctionKind}


@dataclass(frozen=True)
class Param:
    name: str
    type: TypeDescriptor


@dataclass(frozen=True)
class Function:
    """An exported Convex function.

    ``file_name`` is the document stem; together with ``name`` it forms the
    function path ``"{file_name}:{name}"``.
    """

    name: str
    kind: FunctionKind
    file_name: str
    params: tuple[Param, ...] = ()
    returns: TypeDescriptor | None = None
    line: int = field(default=0, compare=False)

    @property
    def path(self) -> str:
        return f"{self.file_name}:{self.name}"
