"""Tests for configuration loading."""

from pathlib import Path

import pytest

from convex_typegen.config import (
    DEFAULT_OUT_FILE,
    DEFAULT_SCHEMA_PATH,
    Configuration,
    load_configuration,
)
from convex_typegen.errors import MissingInputError, TypegenError


class TestConfiguration:
    """Tests for the Configuration defaults and overrides."""

    def test_defaults(self):
        """Test the default configuration."""
        config = Configuration()

        assert config.schema_path == Path("convex/schema.ts")
        assert config.out_file == Path("src/convex_types.rs")
        assert config.function_paths == ()
        assert config.helper_stubs == {}
        assert config.functions_dir is None
        assert config.jobs == 1

    def test_overrides_skip_none(self):
        """Test that None overrides keep the current value."""
        config = Configuration().with_overrides(
            schema_path=Path("s.ts"), out_file=None, function_paths=["a.ts", "b.ts"]
        )

        assert config.schema_path == Path("s.ts")
        assert config.out_file == DEFAULT_OUT_FILE
        assert config.function_paths == (Path("a.ts"), Path("b.ts"))


class TestLoadConfiguration:
    """Tests for load_configuration."""

    def test_tool_table(self, tmp_path):
        """Test reading [tool.convex-typegen] with relative paths."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[project]
name = "app"

[tool.convex-typegen]
schema_path = "backend/schema.ts"
out_file = "/abs/types.rs"
function_paths = ["backend/games.ts"]
helper_stubs = { "customFunctions" = "stubs/custom.ts" }
jobs = 4
"""
        )

        config = load_configuration(pyproject)

        assert config.schema_path == tmp_path / "backend/schema.ts"
        assert config.out_file == Path("/abs/types.rs")
        assert config.function_paths == (tmp_path / "backend/games.ts",)
        assert config.helper_stubs == {"customFunctions": tmp_path / "stubs/custom.ts"}
        assert config.jobs == 4

    def test_defaults_relative_to_file(self, tmp_path):
        """Test that a file without the table yields project-relative defaults."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[project]\nname = "app"\n')

        config = load_configuration(pyproject)

        assert config.schema_path == tmp_path / DEFAULT_SCHEMA_PATH
        assert config.out_file == tmp_path / DEFAULT_OUT_FILE

    def test_missing_file(self, tmp_path):
        """Test error when the file does not exist."""
        with pytest.raises(MissingInputError):
            load_configuration(tmp_path / "pyproject.toml")

    def test_invalid_toml(self, tmp_path):
        """Test error on malformed TOML."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.convex-typegen\n")

        with pytest.raises(TypegenError, match="invalid TOML"):
            load_configuration(pyproject)

    def test_unknown_key(self, tmp_path):
        """Test that misspelled keys are rejected."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[tool.convex-typegen]\nschema = "x.ts"\n')

        with pytest.raises(TypegenError, match="unknown configuration keys: schema"):
            load_configuration(pyproject)

    @pytest.mark.parametrize(
        "line, message",
        [
            ("jobs = 0", "positive integer"),
            ("jobs = true", "positive integer"),
            ("function_paths = 'a.ts'", "must be a list"),
            ("schema_path = 3", "string path"),
            ("helper_stubs = ['a']", "must be a table"),
        ],
    )
    def test_invalid_values(self, tmp_path, line, message):
        """Test type validation of configuration values."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(f"[tool.convex-typegen]\n{line}\n")

        with pytest.raises(TypegenError, match=message):
            load_configuration(pyproject)
