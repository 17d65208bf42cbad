"""Tests for the valhalla CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from valhalla.cli.main import cli

runner = CliRunner()

POINT = (
    "class Point {\n"
    "    public int x;\n"
    "}\n"
    "\n"
    "void main () {\n"
    "    Point p = new Point ();\n"
    "    p.\n"
    "}\n"
)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Working directory without any config file."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("valhalla.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml")
    return tmp_path


@pytest.fixture
def point_file(project: Path) -> Path:
    path = project / "main.vala"
    path.write_text(POINT)
    return path


class TestCli:
    def test_version(self) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "valhalla, version 0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "complete" in result.output
        assert "scopes" in result.output


class TestCompleteCommand:
    """valhalla complete."""

    def test_given_member_access_when_complete_json_then_members(self, point_file: Path) -> None:
        # Given / When
        result = runner.invoke(cli, ["complete", str(point_file), "--line", "7", "--json"])

        # Then
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [
            {
                "displayText": "x",
                "type": "property",
                "text": "x",
                "leftLabel": "int",
                "sortKey": 0,
            }
        ]

    def test_table_output(self, point_file: Path) -> None:
        result = runner.invoke(cli, ["complete", str(point_file), "--line", "7"])

        assert result.exit_code == 0, result.output
        assert "x" in result.output
        assert "property" in result.output

    def test_column_cuts_the_line(self, point_file: Path) -> None:
        # `    Po|int p = ...`
        result = runner.invoke(
            cli, ["complete", str(point_file), "--line", "6", "--column", "7", "--json"]
        )

        assert result.exit_code == 0, result.output
        names = [c["displayText"] for c in json.loads(result.stdout)]
        assert names == ["Point"]

    def test_blank_line_prints_nothing(self, point_file: Path) -> None:
        result = runner.invoke(cli, ["complete", str(point_file), "--line", "4"])

        assert result.exit_code == 0
        assert result.output == ""

    def test_no_suggestions(self, project: Path) -> None:
        path = project / "main.vala"
        path.write_text("void main () {\n    nobody.\n}\n")

        result = runner.invoke(cli, ["complete", str(path), "--line", "2"])

        assert result.exit_code == 0
        assert "No suggestions" in result.output

    def test_line_past_end(self, point_file: Path) -> None:
        result = runner.invoke(cli, ["complete", str(point_file), "--line", "99"])

        assert result.exit_code == 2
        assert "--line" in result.output

    def test_vapi_dir(self, project: Path) -> None:
        vapi_dir = project / "vapi"
        vapi_dir.mkdir()
        (vapi_dir / "gee.vapi").write_text(
            "namespace Gee {\n"
            "    public class ArrayList<G> {\n"
            "        public bool add (G item);\n"
            "        public int size { get; }\n"
            "    }\n"
            "}\n"
        )
        path = project / "main.vala"
        path.write_text(
            "using Gee;\n"
            "void main () {\n"
            "    ArrayList<string> names = new ArrayList<string> ();\n"
            "    names.\n"
            "}\n"
        )

        result = runner.invoke(
            cli, ["complete", str(path), "--line", "4", "--vapi-dir", str(vapi_dir), "--json"]
        )

        assert result.exit_code == 0, result.output
        assert [c["displayText"] for c in json.loads(result.stdout)] == ["add", "size"]

    def test_invalid_config(self, point_file: Path, project: Path) -> None:
        config_dir = project / ".valhalla"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("completion:\n  empty_line_policy: bogus\n")

        result = runner.invoke(cli, ["complete", str(point_file), "--line", "7"])

        assert result.exit_code == 1
        assert "CONFIG_INVALID_VALUE" in result.output


class TestScopesCommand:
    """valhalla scopes."""

    def test_json(self, point_file: Path) -> None:
        result = runner.invoke(cli, ["scopes", str(point_file), "--json"])

        assert result.exit_code == 0, result.output
        (root,) = json.loads(result.stdout)
        assert root["kind"] == "global"
        assert [c["name"] for c in root["children"]] == ["Point", "main"]
        main = root["children"][1]
        assert main["locals"] == [{"name": "p", "type": "Point", "line": 5}]

    def test_tree(self, point_file: Path) -> None:
        result = runner.invoke(cli, ["scopes", str(point_file)])

        assert result.exit_code == 0, result.output
        assert "Point" in result.output
        assert "vars: p" in result.output
        assert "1-3" in result.output

    def test_missing_file(self, project: Path) -> None:
        result = runner.invoke(cli, ["scopes", str(project / "nope.vala")])

        assert result.exit_code == 2

    def test_project_config_applies(self, point_file: Path, project: Path) -> None:
        config_dir = project / ".valhalla"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("declarations:\n  max_unit_bytes: 8\n")

        result = runner.invoke(cli, ["scopes", str(point_file)])

        assert result.exit_code == 1
        assert "UNIT_TOO_LARGE" in result.output

    def test_one_line_class_members(self, project: Path) -> None:
        path = project / "point.vala"
        path.write_text("class Point { public int x; }\n")

        result = runner.invoke(cli, ["scopes", str(path), "--json"])

        assert result.exit_code == 0, result.output
        (root,) = json.loads(result.stdout)
        (point,) = root["children"]
        assert [c["name"] for c in point["children"]] == ["x"]
