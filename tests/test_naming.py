"""Tests for Rust identifier conversion and name deduplication."""

import pytest

from convex_typegen.naming import (
    NameRegistry,
    is_rust_identifier,
    pascal_case,
    raw_field_name,
    rust_field_name,
    rust_identifier,
    rust_string,
    snake_case,
    split_words,
)


class TestCaseConversion:
    """Tests for case conversion."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("my_item", "MyItem"),
            ("yourItem", "YourItem"),
            ("games", "Games"),
            ("HTTPServer", "HTTPServer"),
            ("user-profile", "UserProfile"),
            ("2fa", "_2fa"),
            ("", "Empty"),
            ("---", "Empty"),
        ],
    )
    def test_pascal_case(self, name, expected):
        """Test PascalCase conversion."""
        assert pascal_case(name) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("isActive", "is_active"),
            ("_creationTime", "creation_time"),
            ("userID", "user_id"),
            ("HTTPServer", "http_server"),
            ("e-mail", "e_mail"),
            ("3d", "_3d"),
            ("$", "field"),
        ],
    )
    def test_snake_case(self, name, expected):
        """Test snake_case conversion."""
        assert snake_case(name) == expected

    def test_split_words(self):
        """Test word splitting."""
        assert split_words("getByStatus") == ["get", "By", "Status"]
        assert split_words("parseJSONValue") == ["parse", "JSON", "Value"]


class TestRustIdentifiers:
    """Tests for keyword escaping."""

    def test_keywords_become_raw(self):
        """Test that keywords are written as raw identifiers."""
        assert rust_identifier("type") == "r#type"
        assert rust_identifier("match") == "r#match"
        assert rust_identifier("name") == "name"

    def test_non_raw_keywords(self):
        """Test keywords that cannot be raw identifiers."""
        assert rust_identifier("self") == "self_"
        assert rust_identifier("Self") == "Self_"
        assert rust_identifier("crate") == "crate_"

    def test_field_names(self):
        """Test struct field names for serialized keys."""
        assert rust_field_name("type") == "r#type"
        assert rust_field_name("playerOne") == "player_one"
        assert raw_field_name("playerOne") == "playerOne"
        assert raw_field_name("e-mail") == "e_mail"
        assert raw_field_name("fn") == "r#fn"

    def test_is_rust_identifier(self):
        """Test identifier validation."""
        assert is_rust_identifier("_id")
        assert not is_rust_identifier("_")
        assert not is_rust_identifier("1a")
        assert not is_rust_identifier("a-b")

    def test_rust_string(self):
        """Test string literal escaping."""
        assert rust_string('say "hi"\n') == '"say \\"hi\\"\\n"'
        assert rust_string("a\\b") == '"a\\\\b"'
        assert rust_string("\x01") == '"\\u{1}"'


class TestNameRegistry:
    """Tests for NameRegistry."""

    def test_claim_suffixes_collisions(self):
        """Test that repeated claims get numbered."""
        names = NameRegistry()

        assert names.claim("Foo") == "Foo"
        assert names.claim("Foo") == "Foo2"
        assert names.claim("Foo") == "Foo3"
        assert "Foo2" in names
        assert "Bar" not in names

    def test_claim_skips_taken_suffix(self):
        """Test that a suffixed name already claimed is skipped."""
        names = NameRegistry()
        names.claim("Foo2")
        names.claim("Foo")

        assert names.claim("Foo") == "Foo3"
