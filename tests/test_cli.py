"""
Tests for docwen CLI commands.

Tests all CLI commands using Typer's testing utilities.
"""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from docwen.cli.main import app

runner = CliRunner()


@pytest.fixture
def project_config(c_project: Path) -> Path:
    """The sample project with a config listing its two filegroups."""
    config_path = c_project / "docwen.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "settings": {"target": "."},
                "filegroups": [
                    {"name": "foo", "files": ["include/foo.h", "src/foo.c"]},
                    {"name": "widget", "files": ["include/widget.hpp", "src/widget.cpp"]},
                ],
            }
        )
    )
    return config_path


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self) -> None:
        """Test that help lists every command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("create", "update", "check", "parse"):
            assert command in result.stdout

    def test_version_command(self) -> None:
        """Test version display."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "docwen v0.1.0" in result.stdout


class TestConfigCommands:
    """Test the create and update commands."""

    def test_create(self, tmp_path) -> None:
        """Test that create writes a default configuration once."""
        path = tmp_path / "docwen.yaml"

        result = runner.invoke(app, ["create", str(path)])
        assert result.exit_code == 0
        assert path.is_file()
        assert yaml.safe_load(path.read_text())["settings"]["target"] == "src"

        again = runner.invoke(app, ["create", str(path)])
        assert again.exit_code == 1
        assert "already exists" in again.stdout

    def test_update(self, c_project) -> None:
        """Test that update discovers the sample filegroups."""
        path = c_project / "docwen.yaml"
        path.write_text("settings:\n  target: .\n")

        result = runner.invoke(app, ["update", str(path)])

        assert result.exit_code == 0
        assert "2 filegroups" in result.stdout
        data = yaml.safe_load(path.read_text())
        assert [g["name"] for g in data["filegroups"]] == ["foo", "widget"]

    def test_update_without_config(self, tmp_path) -> None:
        """Test that update needs an existing configuration."""
        result = runner.invoke(app, ["update", str(tmp_path / "docwen.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestCheckCommand:
    """Test the check command."""

    def test_terminal_output(self, project_config) -> None:
        """Test mismatch blocks in terminal output."""
        result = runner.invoke(app, ["--plain", "check", str(project_config)])

        assert result.exit_code == 1
        assert "MISMATCH Missing documentation foo(int)" in result.stdout
        assert "Missing in: src/foo.c" in result.stdout
        assert "MISMATCH Documentation differs gfx::Widget::resize(int, int)" in result.stdout
        assert "line 2:" in result.stdout
        assert "include/widget.hpp: Both values are in pixels." in result.stdout

    def test_json_output(self, project_config) -> None:
        """Test the JSON report."""
        result = runner.invoke(app, ["check", str(project_config), "--format", "json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["mismatch_count"] == 2
        foo, widget = data["groups"]
        assert foo["summary"]["name"] == "foo"
        [missing] = foo["mismatches"]
        assert missing["kind"] == "missing_on_one_side"
        assert missing["missing_files"] == ["src/foo.c"]
        assert missing["locations"][0] == {
            "file": "include/foo.h",
            "line": 5,
            "column": 6,
            "end_line": 5,
            "signature": "void foo(int x)",
        }
        [differs] = widget["mismatches"]
        assert differs["diff"][0]["values"][1] == {
            "file": "src/widget.cpp",
            "text": "Both values are in millimetres.",
        }

    def test_single_group(self, project_config) -> None:
        """Test restricting the check to one group."""
        result = runner.invoke(
            app, ["check", str(project_config), "-g", "widget", "-f", "json"]
        )
        data = json.loads(result.stdout)
        assert [g["summary"]["name"] for g in data["groups"]] == ["widget"]

    def test_unknown_group(self, project_config) -> None:
        """Test that an unknown group name is a usage error."""
        result = runner.invoke(app, ["check", str(project_config), "--group", "nope"])
        assert result.exit_code == 2
        assert "no filegroup named 'nope'" in result.stdout

    def test_no_mismatches(self, write_file, tmp_path) -> None:
        """Test the all-clear message and exit status."""
        write_file("ok.h", "/// Frees it.\nvoid free_it(void);\n")
        write_file("ok.c", "/// Frees it.\nvoid free_it(void) {}\n")
        config = write_file(
            "docwen.yaml", "filegroups:\n  - name: ok\n    files: [ok.h, ok.c]\n"
        )

        result = runner.invoke(app, ["check", str(config)])

        assert result.exit_code == 0
        assert "Found no mismatches!" in result.stdout

    def test_unqualified_mode(self, write_file) -> None:
        """Test that --mode changes which declarations are paired."""
        write_file("m.hpp", "class C {\npublic:\n    /// Method m.\n    void m(int x);\n};\n")
        write_file("m.cpp", "/// Free m.\nvoid m(int x) {}\n")
        config = write_file(
            "docwen.yaml", "filegroups:\n  - name: m\n    files: [m.hpp, m.cpp]\n"
        )

        assert runner.invoke(app, ["check", str(config)]).exit_code == 0
        result = runner.invoke(app, ["check", str(config), "--mode", "unqualified"])
        assert result.exit_code == 1
        assert "m(int)" in result.stdout

    def test_report_unmatched_flag(self, write_file) -> None:
        """Test that --report-unmatched flags one-sided documented functions."""
        write_file("n.h", "/// Lonely.\nvoid lonely(void);\n")
        write_file("n.c", "void other(void) {}\n")
        config = write_file(
            "docwen.yaml", "filegroups:\n  - name: n\n    files: [n.h, n.c]\n"
        )

        assert runner.invoke(app, ["check", str(config)]).exit_code == 0
        result = runner.invoke(app, ["check", str(config), "--report-unmatched"])
        assert result.exit_code == 1
        assert "lonely()" in result.stdout

    def test_invalid_format(self, project_config) -> None:
        """Test that an unknown format is rejected."""
        result = runner.invoke(app, ["check", str(project_config), "--format", "xml"])
        assert result.exit_code == 2
        assert "unknown format" in result.stdout

    def test_missing_config(self, tmp_path) -> None:
        """Test that a missing configuration is a usage error with a hint."""
        result = runner.invoke(app, ["check", str(tmp_path / "docwen.yaml")])
        assert result.exit_code == 2
        assert "docwen create" in result.stdout


class TestParseCommand:
    """Test the parse command."""

    def test_parse_json(self, c_project) -> None:
        """Test JSON output for the sample header."""
        result = runner.invoke(
            app, ["parse", str(c_project / "include" / "widget.hpp"), "--json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [d["qualified_name"] for d in data["declarations"]] == [
            "gfx::Widget::Widget",
            "gfx::Widget::resize",
            "gfx::Widget::width",
        ]
        assert data["declarations"][1]["doc"]["lines"] == [
            "Resizes the widget.",
            "Both values are in pixels.",
        ]
        assert data["errors"] == []

    def test_parse_table(self, c_project) -> None:
        """Test the table output."""
        result = runner.invoke(app, ["parse", str(c_project / "include" / "foo.h")])
        assert result.exit_code == 0
        assert "add" in result.stdout

    def test_parse_no_functions(self, write_file) -> None:
        """Test a file without functions."""
        path = write_file("types.h", "struct point { int x; int y; };\n")
        result = runner.invoke(app, ["parse", str(path)])
        assert result.exit_code == 0
        assert "No functions found in the file." in result.stdout

    def test_parse_missing_file(self, tmp_path) -> None:
        """Test that a path that is not a file is rejected."""
        result = runner.invoke(app, ["parse", str(tmp_path / "missing.c")])
        assert result.exit_code == 1
        assert "is not a file" in result.stdout

    def test_parse_error_exit_code(self, c_project) -> None:
        """Test that parse errors are shown and fail the command."""
        result = runner.invoke(app, ["parse", str(c_project / "src" / "broken.c")])
        assert result.exit_code == 1
        assert "Unterminated block comment" in result.stdout
