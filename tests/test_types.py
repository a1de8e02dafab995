"""Tests for type descriptors and the extracted model."""

import pytest

from convex_typegen.types import (
    FUNCTION_KIND_NAMES,
    VALIDATOR_NAMES,
    AnyType,
    ArrayType,
    Column,
    Float64Type,
    Function,
    FunctionKind,
    IdType,
    Index,
    LiteralType,
    NullType,
    ObjectType,
    OptionalType,
    RecordType,
    Schema,
    StringType,
    Table,
    UnionType,
    ValidatorKind,
    describe,
)


class TestValidatorKind:
    """Tests for the recognized validator set."""

    def test_names(self):
        """Test the constructor name lookup."""
        assert VALIDATOR_NAMES["number"] is ValidatorKind.NUMBER
        assert VALIDATOR_NAMES["float64"] is ValidatorKind.FLOAT64
        assert "map" not in VALIDATOR_NAMES
        assert len(VALIDATOR_NAMES) == 15


class TestDescriptors:
    """Tests for descriptor values."""

    def test_structural_equality(self):
        """Test that descriptors compare by structure."""
        a = ObjectType((("x", Float64Type()), ("y", OptionalType(StringType()))))
        b = ObjectType((("x", Float64Type()), ("y", OptionalType(StringType()))))

        assert a == b
        assert hash(a) == hash(b)

    def test_object_lookup(self):
        """Test property lookup on objects."""
        obj = ObjectType((("_id", IdType("users")), ("name", StringType())))

        assert obj.get("_id") == IdType("users")
        assert obj.get("missing") is None
        assert obj.names == ["_id", "name"]

    def test_literal_is_string(self):
        """Test literal kind detection."""
        assert LiteralType("a").is_string
        assert not LiteralType(1).is_string
        assert not LiteralType(True).is_string

    def test_empty_union_rejected(self):
        """Test that a union needs at least one variant."""
        with pytest.raises(ValueError):
            UnionType(())

    def test_describe(self):
        """Test the TypeScript-like rendering used in messages."""
        desc = ObjectType(
            (
                ("tags", ArrayType(StringType())),
                ("owner", IdType("users")),
                ("meta", RecordType(StringType(), AnyType())),
                ("state", UnionType((LiteralType("on"), NullType()))),
            )
        )

        assert describe(desc) == (
            "{tags: string[], owner: Id<\"users\">, "
            "meta: Record<string, any>, state: 'on' | null}"
        )


class TestSchema:
    """Tests for the schema model."""

    def test_lookup(self):
        """Test table and column lookup."""
        users = Table(
            "users",
            columns=(Column("name", StringType()),),
            indexes=(Index("by_name", "index", ("name",)),),
        )
        schema = Schema((users,))

        assert "users" in schema
        assert "games" not in schema
        assert schema.get("users") is users
        assert schema.table_names == ["users"]
        assert users.get_column("name") == Column("name", StringType())
        assert users.get_column("age") is None


class TestFunctionKind:
    """Tests for function kinds."""

    def test_base(self):
        """Test that internal kinds use the public call."""
        assert FunctionKind.INTERNAL_QUERY.base is FunctionKind.QUERY
        assert FunctionKind.INTERNAL_MUTATION.base is FunctionKind.MUTATION
        assert FunctionKind.INTERNAL_ACTION.base is FunctionKind.ACTION
        assert FunctionKind.ACTION.base is FunctionKind.ACTION

    def test_client_methods(self):
        """Test which kinds get a client method."""
        assert FunctionKind.INTERNAL_QUERY.is_query
        assert not FunctionKind.MUTATION.is_query
        assert not FunctionKind.HTTP_ACTION.has_client_method
        assert FunctionKind.QUERY.has_client_method

    def test_names(self):
        """Test the constructor name lookup."""
        assert FUNCTION_KIND_NAMES["internalMutation"] is FunctionKind.INTERNAL_MUTATION
        assert "defineTable" not in FUNCTION_KIND_NAMES

    def test_function_path(self):
        """Test the function path."""
        function = Function("getByStatus", FunctionKind.QUERY, "games")
        assert function.path == "games:getByStatus"
