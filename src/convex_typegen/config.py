"""Generator configuration with optional loading from pyproject.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from convex_typegen.errors import MissingInputError, TypegenError

DEFAULT_SCHEMA_PATH = Path("convex/schema.ts")
DEFAULT_OUT_FILE = Path("src/convex_types.rs")

# Table read from pyproject.toml
TOOL_TABLE = "convex-typegen"


@dataclass(frozen=True)
class Configuration:
    """Inputs and output of one generation run.

    Attributes:
        schema_path: The schema document holding the ``defineSchema`` call.
        out_file: Where the generated Rust module is written.
        function_paths: Function documents, in the order they are emitted.
        helper_stubs: Import-source regex mapped to a stub document whose
            top-level bindings are made visible to matching function documents.
        functions_dir: Directory scanned for function documents when
            ``function_paths`` is empty.
        jobs: Number of worker threads used to parse function documents.
    """

    schema_path: Path = DEFAULT_SCHEMA_PATH
    out_file: Path = DEFAULT_OUT_FILE
    function_paths: tuple[Path, ...] = ()
    helper_stubs: dict[str, Path] = field(default_factory=dict)
    functions_dir: Path | None = None
    jobs: int = 1

    def with_overrides(self, **overrides: Any) -> Configuration:
        """Return a copy with every override that is not None applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "function_paths" in values:
            values["function_paths"] = tuple(Path(p) for p in values["function_paths"])
        return replace(self, **values)


def _path(value: Any, base: Path, key: str, source: Path) -> Path:
    if not isinstance(value, str):
        raise TypegenError(f"'{key}' must be a string path", file=source)
    path = Path(value)
    return path if path.is_absolute() else base / path


def configuration_from_mapping(
    cfg: dict[str, Any], base: Path, source: Path
) -> Configuration:
    """Build a Configuration from a ``[tool.convex-typegen]`` mapping.

    Relative paths are resolved against ``base``. Unknown keys are rejected so
    that a typo does not silently fall back to a default.
    """
    known = {
        "schema_path",
        "out_file",
        "function_paths",
        "helper_stubs",
        "functions_dir",
        "jobs",
    }
    unknown = sorted(set(cfg) - known)
    if unknown:
        raise TypegenError(
            f"unknown configuration keys: {', '.join(unknown)}", file=source
        )

    config = Configuration()
    if "schema_path" in cfg:
        config = replace(
            config, schema_path=_path(cfg["schema_path"], base, "schema_path", source)
        )
    if "out_file" in cfg:
        config = replace(config, out_file=_path(cfg["out_file"], base, "out_file", source))
    if "function_paths" in cfg:
        paths = cfg["function_paths"]
        if not isinstance(paths, list):
            raise TypegenError("'function_paths' must be a list", file=source)
        config = replace(
            config,
            function_paths=tuple(
                _path(p, base, "function_paths", source) for p in paths
            ),
        )
    if "helper_stubs" in cfg:
        stubs = cfg["helper_stubs"]
        if not isinstance(stubs, dict):
            raise TypegenError("'helper_stubs' must be a table", file=source)
        config = replace(
            config,
            helper_stubs={
                pattern: _path(stub, base, "helper_stubs", source)
                for pattern, stub in stubs.items()
            },
        )
    if "functions_dir" in cfg:
        config = replace(
            config,
            functions_dir=_path(cfg["functions_dir"], base, "functions_dir", source),
        )
    if "jobs" in cfg:
        jobs = cfg["jobs"]
        if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
            raise TypegenError("'jobs' must be a positive integer", file=source)
        config = replace(config, jobs=jobs)
    return config


def load_configuration(pyproject: str | Path) -> Configuration:
    """Load the ``[tool.convex-typegen]`` table of a pyproject.toml.

    A file without the table yields the defaults, with paths resolved against
    the file's directory.
    """
    pyproject = Path(pyproject)
    if not pyproject.is_file():
        raise MissingInputError(pyproject)
    try:
        with open(pyproject, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise TypegenError(f"invalid TOML: {e}", file=pyproject) from e

    cfg = data.get("tool", {}).get(TOOL_TABLE, {})
    if not isinstance(cfg, dict):
        raise TypegenError(f"[tool.{TOOL_TABLE}] must be a table", file=pyproject)
    base = pyproject.parent
    config = configuration_from_mapping(cfg, base, pyproject)
    # Defaults are relative to the project, not the working directory
    if "schema_path" not in cfg:
        config = replace(config, schema_path=base / DEFAULT_SCHEMA_PATH)
    if "out_file" not in cfg:
        config = replace(config, out_file=base / DEFAULT_OUT_FILE)
    return config
