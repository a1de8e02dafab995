"""Tests for function extraction and discovery."""

import logging
from pathlib import Path

import pytest

from convex_typegen.bindings import collect_bindings, merge_bindings
from convex_typegen.errors import InvalidSchemaStructureError
from convex_typegen.functions import (
    FunctionExtractor,
    discover_function_paths,
    extract_functions,
    function_kind,
)
from convex_typegen.parsing import Document, parse_source
from convex_typegen.parsing.nodes import Identifier
from convex_typegen.types import (
    AnyType,
    ArrayType,
    BooleanType,
    FunctionKind,
    IdType,
    LiteralType,
    NullType,
    ObjectType,
    OptionalType,
    Param,
    StringType,
    UnionType,
)

IMPORTS = """
import { query, mutation, internalQuery, httpAction } from "./_generated/server";
import { v } from "convex/values";
"""


def function_document(source, name="games.ts"):
    return Document(Path("convex") / name, parse_source(IMPORTS + source, name))


def extract(source, name="games.ts", extra_bindings=None):
    document = function_document(source, name)
    bindings = merge_bindings(extra_bindings or {}, collect_bindings(document.program))
    return extract_functions(document, bindings)


class TestFunctionExtractor:
    """Tests for FunctionExtractor."""

    def test_exported_functions(self):
        """Test kinds, names, params and returns of exported functions."""
        functions = extract(
            """
            export const getByStatus = query({
              args: { status: v.union(v.literal("waiting"), v.literal("active")) },
              returns: v.array(v.object({ _id: v.id("games"), name: v.string() })),
              handler: async (ctx, args) => {
                return await ctx.db.query("games").collect();
              },
            });

            export const create = mutation({
              args: { name: v.string(), private: v.optional(v.boolean()) },
              handler: async (ctx, args) => ctx.db.insert("games", args),
            });

            export const internalList = internalQuery({ handler: async (ctx) => [] });
            export const hook = httpAction(async (ctx, req) => new Response());
            const notExported = query({ args: {}, handler: async () => null });
            export const helper = (x) => x;
            """
        )

        assert [(f.name, f.kind) for f in functions] == [
            ("getByStatus", FunctionKind.QUERY),
            ("create", FunctionKind.MUTATION),
            ("internalList", FunctionKind.INTERNAL_QUERY),
            ("hook", FunctionKind.HTTP_ACTION),
        ]
        get_by_status, create, internal_list, hook = functions

        assert get_by_status.path == "games:getByStatus"
        assert get_by_status.params == (
            Param("status", UnionType((LiteralType("waiting"), LiteralType("active")))),
        )
        assert get_by_status.returns == ArrayType(
            ObjectType((("_id", IdType("games")), ("name", StringType())))
        )
        assert create.params == (
            Param("name", StringType()),
            Param("private", OptionalType(BooleanType())),
        )
        assert create.returns is None
        assert internal_list.params == ()
        assert hook.params == ()

    def test_default_export(self):
        """Test that a default export is named 'default'."""
        functions = extract("export default query({ args: {}, handler: async () => 1 });")
        assert functions[0].name == "default"

    def test_file_name_is_stem(self):
        """Test that the function path uses the document stem."""
        functions = extract(
            "export const list = query({ handler: async () => [] });", name="users.ts"
        )
        assert functions[0].path == "users:list"

    def test_bound_args(self):
        """Test args and returns declared through bindings."""
        functions = extract(
            """
            const listArgs = { limit: v.optional(v.number()), cursor: cursorValidator };
            const cursorValidator = v.union(v.string(), v.null());
            export const list = query({ args: listArgs, returns: v.null(), handler: async () => null });
            """
        )

        assert [p.name for p in functions[0].params] == ["limit", "cursor"]
        assert functions[0].params[1].type == UnionType((StringType(), NullType()))
        assert functions[0].returns == NullType()

    def test_schema_bindings_visible(self):
        """Test that validators exported by the schema document resolve."""
        schema = parse_source(
            'import { v } from "convex/values";\n'
            'export const status = v.union(v.literal("a"), v.literal("b"));\n'
        )
        functions = extract(
            "export const byStatus = query({ args: { status }, handler: async () => [] });",
            extra_bindings=collect_bindings(schema),
        )

        assert functions[0].params[0].type == UnionType((LiteralType("a"), LiteralType("b")))

    def test_local_bindings_shadow_schema(self):
        """Test that a document's own binding wins over the schema's."""
        schema = parse_source("export const status = v.string();")
        functions = extract(
            """
            const status = v.boolean();
            export const byStatus = query({ args: { status }, handler: async () => [] });
            """,
            extra_bindings=collect_bindings(schema),
        )

        assert functions[0].params[0].type == BooleanType()

    def test_unresolved_arg_is_any(self, caplog):
        """Test that an unresolvable argument validator falls back to any."""
        with caplog.at_level(logging.WARNING, logger="convex_typegen.functions"):
            functions = extract(
                "export const f = mutation({ args: { user: userValidator }, handler: async () => null });"
            )

        assert functions[0].params == (Param("user", AnyType()),)
        assert "userValidator" in caplog.text

    def test_unresolved_nested_reference(self):
        """Test that an unresolvable nested validator is an error."""
        with pytest.raises(InvalidSchemaStructureError, match="unresolved reference") as exc_info:
            extract(
                "export const f = query({ args: { ids: v.array(idValidator) }, handler: async () => [] });"
            )
        assert exc_info.value.context == "games.f.args.ids.elements"

    def test_args_must_be_object_literal(self):
        """Test error when args is not an object literal."""
        with pytest.raises(InvalidSchemaStructureError, match="object literal"):
            extract(
                "export const f = query({ args: v.object({}), handler: async () => [] });"
            )

    def test_args_spread_rejected(self):
        """Test that spreads in args are rejected."""
        with pytest.raises(InvalidSchemaStructureError, match="spread"):
            extract(
                """
                const common = { id: v.string() };
                export const f = query({ args: { ...common }, handler: async () => [] });
                """
            )

    def test_handler_only_function(self):
        """Test a function declared with a bare handler."""
        functions = extract("export const ping = mutation(async (ctx) => 'pong');")

        assert functions[0].kind is FunctionKind.MUTATION
        assert functions[0].params == ()
        assert functions[0].returns is None

    def test_wrapped_constructors(self):
        """Test constructors aliased or wrapped by helper bindings."""
        functions = extract(
            """
            const publicQuery = query;
            const authedMutation = customMutation(mutation, { args: {} });
            export const a = publicQuery({ handler: async () => null });
            export const b = authedMutation({ args: { x: v.string() }, handler: async () => null });
            export const c = somethingElse({ args: {} });
            """
        )

        assert [(f.name, f.kind) for f in functions] == [
            ("a", FunctionKind.QUERY),
            ("b", FunctionKind.MUTATION),
        ]

    def test_extractor_reusable(self):
        """Test that one extractor handles several documents."""
        extractor = FunctionExtractor()
        first = function_document("export const a = query({ handler: async () => 1 });", "a.ts")
        second = function_document("export const b = query({ handler: async () => 1 });", "b.ts")

        paths = [
            f.path
            for document in (first, second)
            for f in extractor.extract(document, collect_bindings(document.program))
        ]

        assert paths == ["a:a", "b:b"]


class TestFunctionKind:
    """Tests for function_kind."""

    def test_direct(self):
        """Test the constructors themselves."""
        assert function_kind(Identifier(name="action"), {}) is FunctionKind.ACTION
        assert function_kind(Identifier(name="defineTable"), {}) is None

    def test_alias_cycle(self):
        """Test that an alias cycle gives up."""
        bindings = {"a": Identifier(name="b"), "b": Identifier(name="a")}
        assert function_kind(Identifier(name="a"), bindings) is None


class TestDiscoverFunctionPaths:
    """Tests for discover_function_paths."""

    def test_discovery(self, tmp_path):
        """Test which files are picked up, in sorted order."""
        for name in ("users.ts", "games.ts", "_helpers.ts", "schema.ts", "types.d.ts"):
            (tmp_path / name).write_text("")
        (tmp_path / "README.md").write_text("")
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "util.ts").write_text("")

        paths = discover_function_paths(tmp_path)

        assert paths == [tmp_path / "games.ts", tmp_path / "users.ts"]

    def test_custom_schema_path_skipped(self, tmp_path):
        """Test that a schema with another name is not treated as functions."""
        (tmp_path / "tables.ts").write_text("")
        (tmp_path / "games.ts").write_text("")

        paths = discover_function_paths(tmp_path, tmp_path / "tables.ts")

        assert paths == [tmp_path / "games.ts"]
