"""Tests for the convex-typegen command line."""

import json
from pathlib import Path

import pytest

from convex_typegen.cli import main

SCHEMA = """\
import { defineSchema, defineTable } from "convex/server";
import { v } from "convex/values";

export default defineSchema({
  tasks: defineTable({ text: v.string(), done: v.boolean() }),
});
"""

TASKS = """\
import { query } from "./_generated/server";
import { v } from "convex/values";

export const list = query({
  args: { done: v.optional(v.boolean()) },
  returns: v.array(v.object({ _id: v.id("tasks"), _creationTime: v.number(), text: v.string(), done: v.boolean() })),
  handler: async (ctx) => await ctx.db.query("tasks").collect(),
});
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Create a project and make it the working directory."""
    convex = tmp_path / "convex"
    convex.mkdir()
    (convex / "schema.ts").write_text(SCHEMA)
    (convex / "tasks.ts").write_text(TASKS)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestMain:
    """Tests for main."""

    def test_defaults(self, project):
        """Test a run with the default paths."""
        assert main([]) == 0

        module = (project / "src" / "convex_types.rs").read_text()
        assert "pub struct TasksTable {" in module
        assert "async fn query_tasks_list(&mut self, args: TasksListArgs)" in module

    def test_explicit_paths(self, project):
        """Test --schema, --out and positional function paths."""
        out = project / "gen" / "types.rs"

        code = main(
            [
                "--schema",
                str(project / "convex" / "schema.ts"),
                "--out",
                str(out),
                str(project / "convex" / "tasks.ts"),
            ]
        )

        assert code == 0
        assert "TasksListArgs" in out.read_text()

    def test_pyproject_configuration(self, project):
        """Test that ./pyproject.toml is read and flags override it."""
        (project / "pyproject.toml").write_text(
            '[tool.convex-typegen]\nout_file = "generated/api.rs"\n'
        )

        assert main([]) == 0
        assert (project / "generated" / "api.rs").exists()

        assert main(["--out", "other.rs"]) == 0
        assert (project / "other.rs").exists()

    def test_explicit_config_file(self, project):
        """Test --config pointing at another pyproject.toml."""
        config_dir = project / "settings"
        config_dir.mkdir()
        (config_dir / "pyproject.toml").write_text(
            '[tool.convex-typegen]\nschema_path = "../convex/schema.ts"\n'
            'out_file = "types.rs"\n'
        )

        assert main(["--config", str(config_dir / "pyproject.toml")]) == 0
        assert (config_dir / "types.rs").exists()

    def test_dump_and_load_json(self, project):
        """Test --dump-json followed by --from-json."""
        assert main(["--dump-json", "--out", "extraction.json"]) == 0
        data = json.loads((project / "extraction.json").read_text())
        assert data["functions"][0]["name"] == "list"
        assert data["schema"]["tables"][0]["name"] == "tasks"

        assert main(["--from-json", "extraction.json", "--out", "from_json.rs"]) == 0
        assert main(["--out", "direct.rs"]) == 0
        assert (project / "from_json.rs").read_text() == (project / "direct.rs").read_text()

    def test_stub_flag(self, project):
        """Test --stub makes wrapped constructors visible."""
        (project / "convex" / "secret.ts").write_text(
            'import { adminQuery } from "../lib/admin";\n'
            "export const peek = adminQuery({ handler: async () => null });\n"
        )
        (project / "admin.ts").write_text(
            "export const adminQuery = customQuery(query, {});\n"
        )

        assert main(["--stub", "lib/admin=admin.ts"]) == 0

        module = (project / "src" / "convex_types.rs").read_text()
        assert "SecretPeekArgs" in module


class TestErrors:
    """Tests for error reporting."""

    def test_missing_schema(self, project, capsys):
        """Test that errors go to stderr with exit code 1."""
        code = main(["--schema", "missing.ts"])

        assert code == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: missing.ts: input file not found")

    def test_invalid_type_reports_location(self, project, capsys):
        """Test that an invalid validator names file and position."""
        (project / "convex" / "schema.ts").write_text(
            SCHEMA.replace("v.boolean()", "v.bool()")
        )

        assert main([]) == 1

        err = capsys.readouterr().err
        assert "convex/schema.ts: tasks.done: invalid type 'bool'" in err.replace("\\", "/")

    def test_missing_from_json_file(self, project, capsys):
        """Test --from-json with a missing file."""
        assert main(["--from-json", "nope.json"]) == 1
        assert "input file not found" in capsys.readouterr().err

    def test_undecodable_from_json_file(self, project, capsys):
        """Test --from-json with bytes that are not UTF-8."""
        (project / "bad.json").write_bytes(b'{"schema": "\xff\xfe"}')

        assert main(["--from-json", "bad.json"]) == 1
        assert capsys.readouterr().err.startswith("Error: bad.json: parse failed")

    def test_malformed_from_json_file(self, project, capsys):
        """Test --from-json with a structurally wrong dump."""
        (project / "bad.json").write_text(
            '{"schema": {"tables": [{"name": "t", "columns": [], "indexes": 5}]}}'
        )

        assert main(["--from-json", "bad.json"]) == 1
        assert "'indexes' must be list" in capsys.readouterr().err

    def test_invalid_jobs(self, project, capsys):
        """Test that --jobs must be positive."""
        assert main(["-j", "0"]) == 1
        assert "--jobs" in capsys.readouterr().err

    def test_invalid_stub(self, project):
        """Test that a malformed --stub is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--stub", "no-equals-sign"])
        assert exc_info.value.code == 2

    def test_exclusive_modes(self, project):
        """Test that --dump-json and --from-json cannot be combined."""
        with pytest.raises(SystemExit):
            main(["--dump-json", "--from-json", "x.json"])

    def test_exclusive_verbosity(self, project):
        """Test that -v and -q cannot be combined."""
        with pytest.raises(SystemExit):
            main(["-v", "-q"])

    def test_failed_run_keeps_output(self, project):
        """Test that an error does not touch existing output."""
        out = project / "src" / "convex_types.rs"
        assert main([]) == 0
        before = out.read_text()

        (project / "convex" / "tasks.ts").write_text("export const list = ;\n")

        assert main([]) == 1
        assert out.read_text() == before
