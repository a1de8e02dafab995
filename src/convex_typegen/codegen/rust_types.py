"""Rendering of type descriptors as Rust types and serde declarations."""

from __future__ import annotations

from dataclasses import dataclass

from convex_typegen.classify import (
    LiteralEnum,
    Nullable,
    ResultPattern,
    TaggedEnum,
    UnionShape,
    UntaggedEnum,
    classify_union,
)
from convex_typegen.naming import (
    NameRegistry,
    pascal_case,
    raw_field_name,
    rust_field_name,
    rust_string,
)
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
    Schema,
    StringType,
    TypeDescriptor,
    UnionType,
)

STRUCT_DERIVES = "#[derive(Debug, Clone, PartialEq, Serialize, Deserialize)]"
COPY_ENUM_DERIVES = (
    "#[derive(Debug, Clone, Copy, PartialEq, Eq, Hash, Serialize, Deserialize)]"
)

_PRIMITIVES: dict[type, str] = {
    NullType: "()",
    BooleanType: "bool",
    Int64Type: "i64",
    Float64Type: "f64",
    StringType: "String",
    BytesType: "Vec<u8>",
    IdType: "String",
    AnyType: "serde_json::Value",
}


def type_name(name: str) -> str:
    """PascalCase a path segment for use in a type name."""
    name = pascal_case(name)
    return "Self_" if name == "Self" else name


def is_option(descriptor: TypeDescriptor) -> bool:
    """Whether a descriptor renders as ``Option<...>``."""
    if isinstance(descriptor, OptionalType):
        return True
    if isinstance(descriptor, UnionType):
        return isinstance(classify_union(descriptor), Nullable)
    return False


@dataclass
class Field:
    """A struct field ready to be written out."""

    ident: str
    key: str
    rust_type: str
    optional: bool

    @property
    def serde_args(self) -> list[str]:
        args = []
        if self.ident.removeprefix("r#") != self.key:
            args.append(f"rename = {rust_string(self.key)}")
        if self.optional:
            args.append('default, skip_serializing_if = "Option::is_none"')
        return args

    def render(self, visibility: str = "pub ") -> list[str]:
        lines = []
        if self.serde_args:
            lines.append(f"#[serde({', '.join(self.serde_args)})]")
        lines.append(f"{visibility}{self.ident}: {self.rust_type},")
        return lines


class TypeRenderer:
    """Maps descriptors to Rust type expressions.

    Named types (structs and enums) are appended to ``items`` as they are
    first needed. A parent reserves its slot before rendering its children,
    so parents precede the types nested in them.
    """

    def __init__(self, schema: Schema, names: NameRegistry | None = None) -> None:
        self.schema = schema
        self.names = names or NameRegistry()
        self.items: list[str] = []
        self.table_types: dict[str, str] = {}

    # --- Output slots ---

    def reserve(self) -> int:
        self.items.append("")
        return len(self.items) - 1

    def fill(self, slot: int, text: str) -> None:
        self.items[slot] = text

    def add(self, text: str) -> None:
        self.items.append(text)

    # --- Type expressions ---

    def render(self, descriptor: TypeDescriptor, context: str) -> str:
        """Return the Rust type for ``descriptor``; ``context`` names nested types."""
        primitive = _PRIMITIVES.get(type(descriptor))
        if primitive is not None:
            return primitive
        if isinstance(descriptor, LiteralType):
            if isinstance(descriptor.value, bool):
                return "bool"
            if isinstance(descriptor.value, str):
                return "String"
            return "f64"
        if isinstance(descriptor, OptionalType):
            return f"Option<{self.render(descriptor.inner, context)}>"
        if isinstance(descriptor, ArrayType):
            return f"Vec<{self.render(descriptor.element, context)}>"
        if isinstance(descriptor, RecordType):
            key = self.render(descriptor.key, context + "Key")
            value = self.render(descriptor.value, context + "Value")
            return f"std::collections::HashMap<{key}, {value}>"
        if isinstance(descriptor, ObjectType):
            return self._render_object(descriptor, context)
        if isinstance(descriptor, UnionType):
            return self._render_union(classify_union(descriptor), context)
        raise TypeError(f"Not a type descriptor: {descriptor!r}")

    def document_table(self, obj: ObjectType) -> str | None:
        """Name of the table whose documents ``obj`` describes, if any."""
        doc_id = obj.get("_id")
        if (
            isinstance(doc_id, IdType)
            and doc_id.table in self.schema
            and obj.get("_creationTime") is not None
        ):
            return doc_id.table
        return None

    def _render_object(self, obj: ObjectType, context: str) -> str:
        if not obj.properties:
            return "serde_json::Value"
        table = self.document_table(obj)
        if table is not None and table in self.table_types:
            return self.table_types[table]
        return self.struct(obj.properties, context)

    def _render_union(self, shape: UnionShape, context: str) -> str:
        if isinstance(shape, Nullable):
            return f"Option<{self.render(shape.inner, context)}>"
        if isinstance(shape, ResultPattern):
            ok = self.render(shape.ok, context + "Ok")
            err = self.render(shape.err, context + "Err")
            return f"Result<{ok}, {err}>"
        if isinstance(shape, LiteralEnum):
            return self._literal_enum(shape, context)
        if isinstance(shape, TaggedEnum):
            return self._tagged_enum(shape, context)
        return self._untagged_enum(shape, context)

    # --- Declarations ---

    def fields(
        self,
        properties: tuple[tuple[str, TypeDescriptor], ...],
        owner: str,
        *,
        raw_names: bool = False,
        reserved: tuple[str, ...] = (),
    ) -> list[Field]:
        """Render struct fields; nested types are named ``owner + Key``."""
        idents = NameRegistry()
        for ident in reserved:
            idents.claim(ident)
        result = []
        for key, descriptor in properties:
            ident = raw_field_name(key) if raw_names else rust_field_name(key)
            ident = idents.claim(ident)
            rust_type = self.render(descriptor, owner + type_name(key))
            result.append(
                Field(
                    ident=ident,
                    key=key,
                    rust_type=rust_type,
                    optional=isinstance(descriptor, OptionalType),
                )
            )
        return result

    def struct(
        self, properties: tuple[tuple[str, TypeDescriptor], ...], context: str
    ) -> str:
        name = self.names.claim(context)
        slot = self.reserve()
        lines = [STRUCT_DERIVES, f"pub struct {name} {{"]
        for field in self.fields(properties, name):
            lines.extend("    " + line for line in field.render())
        lines.append("}")
        self.fill(slot, "\n".join(lines))
        return name

    def _literal_enum(self, shape: LiteralEnum, context: str) -> str:
        name = self.names.claim(context)
        variant_names = NameRegistry()
        lines = [COPY_ENUM_DERIVES, f"pub enum {name} {{"]
        for value in shape.values:
            variant = variant_names.claim(type_name(value))
            lines.append(f"    #[serde(rename = {rust_string(value)})]")
            lines.append(f"    {variant},")
        lines.append("}")
        self.add("\n".join(lines))
        return name

    def _tagged_enum(self, shape: TaggedEnum, context: str) -> str:
        name = self.names.claim(context)
        slot = self.reserve()
        variant_names = NameRegistry()
        lines = [STRUCT_DERIVES, '#[serde(tag = "type")]', f"pub enum {name} {{"]
        for tagged in shape.variants:
            variant = variant_names.claim(type_name(tagged.tag))
            lines.append(f"    #[serde(rename = {rust_string(tagged.tag)})]")
            if not tagged.fields:
                lines.append(f"    {variant},")
                continue
            fields = self.fields(tagged.fields, name + variant)
            if any(f.serde_args for f in fields):
                lines.append(f"    {variant} {{")
                for field in fields:
                    lines.extend("        " + line for line in field.render(""))
                lines.append("    },")
            else:
                inline = ", ".join(f"{f.ident}: {f.rust_type}" for f in fields)
                lines.append(f"    {variant} {{ {inline} }},")
        lines.append("}")
        self.fill(slot, "\n".join(lines))
        return name

    def _untagged_enum(self, shape: UntaggedEnum, context: str) -> str:
        name = self.names.claim(context)
        slot = self.reserve()
        lines = [STRUCT_DERIVES, "#[serde(untagged)]", f"pub enum {name} {{"]
        for member in shape.variants:
            if isinstance(member.type, NullType):
                lines.append(f"    {member.name},")
            else:
                payload = self.render(member.type, name + member.name)
                lines.append(f"    {member.name}({payload}),")
        lines.append("}")
        self.fill(slot, "\n".join(lines))
        return name
