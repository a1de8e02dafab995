"""JSON interchange format for the extracted schema and functions.

The format matches what an out-of-process extractor emits::

    {"schema": {"tables": [{"name": ..., "columns": [{"name": ..., "data_type": ...}]}]},
     "functions": [{"name": ..., "type": "query", "params": [...],
                    "return_type": ... | null, "file_name": ...}]}

Descriptors are objects tagged by ``"type"``.
"""

from __future__ import annotations

import json
from typing import Any

from convex_typegen.errors import (
    ExtractionFailedError,
    InvalidTypeError,
    SerializationFailedError,
)
from convex_typegen.types import (
    FUNCTION_KIND_NAMES,
    AnyType,
    ArrayType,
    BooleanType,
    BytesType,
    Column,
    Float64Type,
    Function,
    IdType,
    Index,
    Int64Type,
    LiteralType,
    NullType,
    ObjectType,
    OptionalType,
    Param,
    RecordType,
    Schema,
    StringType,
    Table,
    TypeDescriptor,
    UnionType,
)

_LEAF_TAGS: dict[str, TypeDescriptor] = {
    "null": NullType(),
    "boolean": BooleanType(),
    "int64": Int64Type(),
    "number": Float64Type(),
    "float64": Float64Type(),
    "string": StringType(),
    "bytes": BytesType(),
    "any": AnyType(),
}

DESCRIPTOR_TAGS = tuple(_LEAF_TAGS) + (
    "id",
    "literal",
    "optional",
    "array",
    "object",
    "record",
    "union",
)


def descriptor_to_json(descriptor: TypeDescriptor) -> dict[str, Any]:
    """Convert a descriptor to its JSON-compatible form."""
    if isinstance(descriptor, NullType):
        return {"type": "null"}
    if isinstance(descriptor, BooleanType):
        return {"type": "boolean"}
    if isinstance(descriptor, Int64Type):
        return {"type": "int64"}
    if isinstance(descriptor, Float64Type):
        return {"type": "number"}
    if isinstance(descriptor, StringType):
        return {"type": "string"}
    if isinstance(descriptor, BytesType):
        return {"type": "bytes"}
    if isinstance(descriptor, AnyType):
        return {"type": "any"}
    if isinstance(descriptor, IdType):
        return {"type": "id", "tableName": descriptor.table}
    if isinstance(descriptor, LiteralType):
        return {"type": "literal", "value": descriptor.value}
    if isinstance(descriptor, OptionalType):
        return {"type": "optional", "inner": descriptor_to_json(descriptor.inner)}
    if isinstance(descriptor, ArrayType):
        return {"type": "array", "elements": descriptor_to_json(descriptor.element)}
    if isinstance(descriptor, ObjectType):
        return {
            "type": "object",
            "properties": {k: descriptor_to_json(v) for k, v in descriptor.properties},
        }
    if isinstance(descriptor, RecordType):
        return {
            "type": "record",
            "keyType": descriptor_to_json(descriptor.key),
            "valueType": descriptor_to_json(descriptor.value),
        }
    if isinstance(descriptor, UnionType):
        return {
            "type": "union",
            "variants": [descriptor_to_json(v) for v in descriptor.variants],
        }
    raise SerializationFailedError(f"not a type descriptor: {descriptor!r}")


def _require(data: Any, key: str, kind: type, where: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise ExtractionFailedError(f"missing '{key}'", context=where)
    value = data[key]
    if not isinstance(value, kind):
        raise ExtractionFailedError(
            f"'{key}' must be {kind.__name__}, got {type(value).__name__}", context=where
        )
    return value


def descriptor_from_json(data: Any, where: str = "$") -> TypeDescriptor:
    """Convert the JSON form of a descriptor back into a descriptor."""
    tag = _require(data, "type", str, where)
    if tag in _LEAF_TAGS:
        return _LEAF_TAGS[tag]
    if tag == "id":
        return IdType(_require(data, "tableName", str, where))
    if tag == "literal":
        if not isinstance(data.get("value"), (str, int, float)):
            raise ExtractionFailedError(
                "literal requires a string, number or boolean value", context=where
            )
        return LiteralType(data["value"])
    if tag == "optional":
        return OptionalType(descriptor_from_json(data.get("inner"), f"{where}.inner"))
    if tag == "array":
        return ArrayType(descriptor_from_json(data.get("elements"), f"{where}.elements"))
    if tag == "object":
        props = _require(data, "properties", dict, where)
        return ObjectType(
            tuple(
                (name, descriptor_from_json(value, f"{where}.{name}"))
                for name, value in props.items()
            )
        )
    if tag == "record":
        return RecordType(
            descriptor_from_json(data.get("keyType"), f"{where}.keyType"),
            descriptor_from_json(data.get("valueType"), f"{where}.valueType"),
        )
    if tag == "union":
        variants = _require(data, "variants", list, where)
        if not variants:
            raise ExtractionFailedError("union has no variants", context=where)
        return UnionType(
            tuple(
                descriptor_from_json(v, f"{where}.variant_{i}")
                for i, v in enumerate(variants)
            )
        )
    raise InvalidTypeError(tag, DESCRIPTOR_TAGS, context=where)


def extraction_to_json(schema: Schema, functions: list[Function]) -> dict[str, Any]:
    return {
        "schema": {
            "tables": [
                {
                    "name": table.name,
                    "columns": [
                        {"name": c.name, "data_type": descriptor_to_json(c.type)}
                        for c in table.columns
                    ],
                    "indexes": [
                        {"name": i.name, "kind": i.kind, "fields": list(i.fields)}
                        for i in table.indexes
                    ],
                }
                for table in schema.tables
            ]
        },
        "functions": [
            {
                "name": f.name,
                "type": f.kind.value,
                "params": [
                    {"name": p.name, "data_type": descriptor_to_json(p.type)}
                    for p in f.params
                ],
                "return_type": (
                    descriptor_to_json(f.returns) if f.returns is not None else None
                ),
                "file_name": f.file_name,
            }
            for f in functions
        ],
    }


def dump_extraction(schema: Schema, functions: list[Function]) -> str:
    """Serialize an extraction result as indented JSON."""
    try:
        return json.dumps(extraction_to_json(schema, functions), indent=2, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationFailedError(f"cannot encode extraction: {e}") from e


def _optional(data: dict[str, Any], key: str, kind: type, default: Any, where: str) -> Any:
    if data.get(key) is None:
        return default
    return _require(data, key, kind, where)


def _strings(values: list[Any], key: str, where: str) -> tuple[str, ...]:
    for value in values:
        if not isinstance(value, str):
            raise ExtractionFailedError(
                f"'{key}' entries must be str, got {type(value).__name__}", context=where
            )
    return tuple(values)


def _table_from_json(data: Any, where: str) -> Table:
    name = _require(data, "name", str, where)
    columns = []
    for i, col in enumerate(_require(data, "columns", list, where)):
        col_name = _require(col, "name", str, f"{where}.columns[{i}]")
        columns.append(
            Column(col_name, descriptor_from_json(col.get("data_type"), f"{name}.{col_name}"))
        )
    indexes = []
    for i, idx in enumerate(_optional(data, "indexes", list, [], where)):
        idx_where = f"{where}.indexes[{i}]"
        indexes.append(
            Index(
                name=_require(idx, "name", str, idx_where),
                kind=_optional(idx, "kind", str, "index", idx_where),
                fields=_strings(
                    _optional(idx, "fields", list, [], idx_where), "fields", idx_where
                ),
            )
        )
    return Table(name=name, columns=tuple(columns), indexes=tuple(indexes))


def _function_from_json(data: Any, where: str) -> Function:
    name = _require(data, "name", str, where)
    kind_name = _require(data, "type", str, where)
    kind = FUNCTION_KIND_NAMES.get(kind_name)
    if kind is None:
        raise ExtractionFailedError(f"unknown function type '{kind_name}'", context=where)
    file_name = _require(data, "file_name", str, where)
    params = []
    for i, p in enumerate(_optional(data, "params", list, [], where)):
        param_name = _require(p, "name", str, f"{where}.params[{i}]")
        params.append(
            Param(
                param_name,
                descriptor_from_json(p.get("data_type"), f"{file_name}.{name}.{param_name}"),
            )
        )
    returns_data = data.get("return_type")
    returns = (
        descriptor_from_json(returns_data, f"{file_name}.{name}.returns")
        if returns_data is not None
        else None
    )
    return Function(
        name=name, kind=kind, file_name=file_name, params=tuple(params), returns=returns
    )


def load_extraction(text: str) -> tuple[Schema, list[Function]]:
    """Parse an extraction result produced by ``dump_extraction`` or an external extractor."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionFailedError(f"invalid extraction JSON: {e}") from e

    schema_data = _require(data, "schema", dict, "$")
    tables: list[Table] = []
    for i, t in enumerate(_require(schema_data, "tables", list, "schema")):
        table = _table_from_json(t, f"schema.tables[{i}]")
        if table.name in (seen.name for seen in tables):
            raise ExtractionFailedError(
                f"duplicate table '{table.name}'", context=f"schema.tables[{i}]"
            )
        tables.append(table)
    functions = [
        _function_from_json(f, f"functions[{i}]")
        for i, f in enumerate(_optional(data, "functions", list, [], "$"))
    ]
    return Schema(tables=tuple(tables)), functions
