"""Assembly of the generated Rust module."""

from __future__ import annotations

from convex_typegen.codegen.client import SHARED_HELPERS, ClientEmitter, function_context
from convex_typegen.codegen.rust_types import STRUCT_DERIVES, TypeRenderer, type_name
from convex_typegen.naming import NameRegistry
from convex_typegen.types import Function, Schema, Table

HEADER = """\
// @generated by convex-typegen. Do not edit.

#[allow(unused_imports)]
use serde::{Deserialize, Serialize};"""

# Rust field names of the system fields, as (field, key, type)
SYSTEM_FIELDS = (
    ("id", "_id", "String"),
    ("creation_time", "_creationTime", "f64"),
)


class RustEmitter:
    """Renders a schema and its functions into one Rust source text.

    Table and argument type names are claimed before anything else is
    rendered, so nested types never take them.
    """

    def __init__(self, schema: Schema, functions: list[Function]) -> None:
        self.schema = schema
        self.functions = functions
        self.names = NameRegistry()
        self.renderer = TypeRenderer(schema, self.names)
        self.client = ClientEmitter(self.renderer)

    def render(self) -> str:
        for table in self.schema.tables:
            self.renderer.table_types[table.name] = self.names.claim(
                type_name(table.name) + "Table"
            )
        args_types = [
            self.names.claim(function_context(f) + "Args") for f in self.functions
        ]

        for table in self.schema.tables:
            self._emit_table(table)
        for function, args_type in zip(self.functions, args_types):
            self.client.emit_function(function, args_type)

        sections = [HEADER] + [item for item in self.renderer.items if item]
        if self.client.methods:
            sections.append(SHARED_HELPERS)
            sections.append(self.client.render_client())
        return "\n\n".join(sections) + "\n"

    def _emit_table(self, table: Table) -> None:
        name = self.renderer.table_types[table.name]
        slot = self.renderer.reserve()
        properties = tuple((c.name, c.type) for c in table.columns)
        reserved = tuple(field for field, _, _ in SYSTEM_FIELDS)
        fields = self.renderer.fields(
            properties, type_name(table.name), reserved=reserved
        )

        lines = [f"/// A document in the `{table.name}` table."]
        if table.indexes:
            lines.append("///")
            for index in table.indexes:
                columns = ", ".join(f"`{f}`" for f in index.fields)
                lines.append(f"/// {index.kind} `{index.name}`: {columns}")
        lines.append(STRUCT_DERIVES)
        lines.append(f"pub struct {name} {{")
        for field, key, rust_type in SYSTEM_FIELDS:
            lines.append(f'    #[serde(rename = "{key}")]')
            lines.append(f"    pub {field}: {rust_type},")
        for field in fields:
            lines.extend("    " + line for line in field.render())
        lines.append("}")
        self.renderer.fill(slot, "\n".join(lines))


def render_module(schema: Schema, functions: list[Function]) -> str:
    """Render the complete generated module for a schema and its functions."""
    return RustEmitter(schema, functions).render()
