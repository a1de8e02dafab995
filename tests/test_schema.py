"""Tests for schema extraction."""

from pathlib import Path

import pytest

from convex_typegen.errors import InvalidSchemaStructureError, InvalidTypeError
from convex_typegen.parsing import Document, load_document, parse_source
from convex_typegen.schema import SchemaExtractor, extract_schema, find_define_table
from convex_typegen.types import (
    Column,
    Float64Type,
    IdType,
    Index,
    LiteralType,
    OptionalType,
    StringType,
    UnionType,
)

IMPORTS = """
import { defineSchema, defineTable } from "convex/server";
import { v } from "convex/values";
"""


def schema_document(source):
    return Document(Path("convex/schema.ts"), parse_source(IMPORTS + source, "schema.ts"))


class TestSchemaExtractor:
    """Tests for SchemaExtractor."""

    def test_tables_and_columns(self):
        """Test that tables and columns keep declaration order."""
        schema = extract_schema(
            schema_document(
                """
                export default defineSchema({
                  users: defineTable({
                    name: v.string(),
                    age: v.optional(v.number()),
                  }),
                  games: defineTable({
                    owner: v.id("users"),
                    status: v.union(v.literal("waiting"), v.literal("active")),
                  }),
                });
                """
            )
        )

        assert schema.table_names == ["users", "games"]
        assert schema.get("users").columns == (
            Column("name", StringType()),
            Column("age", OptionalType(Float64Type())),
        )
        assert schema.get("games").get_column("status").type == UnionType(
            (LiteralType("waiting"), LiteralType("active"))
        )
        assert schema.get("games").get_column("owner").type == IdType("users")

    def test_indexes(self):
        """Test that index modifiers are recorded in declaration order."""
        schema = extract_schema(
            schema_document(
                """
                export default defineSchema({
                  messages: defineTable({
                    author: v.string(),
                    body: v.string(),
                    embedding: v.array(v.float64()),
                  })
                    .index("by_author", ["author"])
                    .searchIndex("search_body", {
                      searchField: "body",
                      filterFields: ["author"],
                    })
                    .vectorIndex("by_embedding", {
                      vectorField: "embedding",
                      dimensions: 1536,
                    }),
                });
                """
            )
        )

        assert schema.get("messages").indexes == (
            Index("by_author", "index", ("author",)),
            Index("search_body", "searchIndex", ("body", "author")),
            Index("by_embedding", "vectorIndex", ("embedding",)),
        )

    def test_bound_tables_and_shared_columns(self):
        """Test tables and columns declared through bindings."""
        schema = extract_schema(
            schema_document(
                """
                const timestamps = { createdAt: v.number() };
                const status = v.union(v.literal("open"), v.literal("closed"));
                const tickets = defineTable({ ...timestamps, status });
                export default defineSchema({ tickets });
                """
            )
        )

        tickets = schema.get("tickets")
        assert [c.name for c in tickets.columns] == ["createdAt", "status"]
        assert tickets.columns[1].type == UnionType(
            (LiteralType("open"), LiteralType("closed"))
        )

    def test_object_validator_columns(self):
        """Test defineTable with a v.object validator."""
        schema = extract_schema(
            schema_document(
                """
                export default defineSchema({
                  points: defineTable(v.object({ x: v.number(), y: v.number() })),
                });
                """
            )
        )

        assert [c.name for c in schema.get("points").columns] == ["x", "y"]

    def test_schema_through_binding(self):
        """Test a schema assigned to a constant and exported by name."""
        schema = extract_schema(
            schema_document(
                """
                const schema = defineSchema({ users: defineTable({ name: v.string() }) });
                export default schema;
                """
            )
        )

        assert schema.table_names == ["users"]

    def test_repeated_table_last_definition_wins(self):
        """Test that a repeated table key keeps its first position and last value."""
        schema = extract_schema(
            schema_document(
                """
                export default defineSchema({
                  a: defineTable({ x: v.string() }),
                  b: defineTable({}),
                  a: defineTable({ y: v.number() }),
                });
                """
            )
        )

        assert schema.table_names == ["a", "b"]
        assert [c.name for c in schema.get("a").columns] == ["y"]

    def test_empty_table(self):
        """Test a table without columns."""
        schema = extract_schema(
            schema_document("export default defineSchema({ logs: defineTable({}) });")
        )
        assert schema.get("logs").columns == ()

    def test_load_from_file(self, tmp_path):
        """Test extraction from a document on disk."""
        path = tmp_path / "schema.ts"
        path.write_text(
            IMPORTS + "export default defineSchema({ t: defineTable({ a: v.int64() }) });"
        )

        schema = SchemaExtractor().extract(load_document(path))

        assert schema.table_names == ["t"]


class TestSchemaErrors:
    """Tests for malformed schema documents."""

    def test_no_define_schema(self):
        """Test error when there is no defineSchema call."""
        with pytest.raises(InvalidSchemaStructureError, match="could not find"):
            extract_schema(schema_document("export const x = v.string();"))

    def test_multiple_define_schema(self):
        """Test error when defineSchema is called twice."""
        with pytest.raises(InvalidSchemaStructureError, match="2 defineSchema calls"):
            extract_schema(
                schema_document(
                    """
                    const a = defineSchema({});
                    export default defineSchema({});
                    """
                )
            )

    def test_table_not_define_table(self):
        """Test error when a table value is not a defineTable call."""
        with pytest.raises(InvalidSchemaStructureError, match="defineTable") as exc_info:
            extract_schema(schema_document("export default defineSchema({ t: v.string() });"))
        assert exc_info.value.context == "t"

    def test_system_field_column(self):
        """Test that system fields cannot be declared as columns."""
        with pytest.raises(InvalidSchemaStructureError, match="system field"):
            extract_schema(
                schema_document(
                    "export default defineSchema({ t: defineTable({ _id: v.string() }) });"
                )
            )

    def test_invalid_column_type(self):
        """Test that an unknown validator names its column."""
        with pytest.raises(InvalidTypeError) as exc_info:
            extract_schema(
                schema_document(
                    "export default defineSchema({ t: defineTable({ a: v.date() }) });"
                )
            )
        assert exc_info.value.context == "t.a"
        assert exc_info.value.file == str(Path("convex/schema.ts"))

    def test_non_object_validator(self):
        """Test that defineTable needs an object validator."""
        with pytest.raises(
            InvalidSchemaStructureError, match="object validator, found string"
        ):
            extract_schema(
                schema_document(
                    "export default defineSchema({ t: defineTable(v.string()) });"
                )
            )


class TestFindDefineTable:
    """Tests for find_define_table."""

    def test_modifier_chain(self):
        """Test walking modifier calls down to defineTable."""
        program = parse_source(
            'const t = defineTable({}).index("a", ["x"]).index("b", ["y"]);'
        )
        define_table, modifiers = find_define_table(program.body[0].declarations[0].init)

        assert define_table.callee.name == "defineTable"
        assert [m.arguments[0].value for m in modifiers] == ["b", "a"]

    def test_not_a_table(self):
        """Test a chain that does not end in defineTable."""
        program = parse_source("const t = other().index('a');")
        define_table, _ = find_define_table(program.body[0].declarations[0].init)
        assert define_table is None
