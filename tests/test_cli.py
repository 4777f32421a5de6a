"""Tests for tasklint CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from tasklint.cli import app
from tasklint.template_manager import render_task_list

runner = CliRunner()

INVALID_DOCUMENT = """\
## Current Tasks

| ID | Description | Status | Priority |
| --- | --- | --- | --- |
| SSH0001 | Broken task | Bogus | High |
"""


def _write_valid(tmp_path: Path, semantic: bool = True) -> Path:
    path = tmp_path / "TaskList.md"
    path.write_text(render_task_list(category="phoenix_web", semantic=semantic), encoding="utf-8")
    return path


def _write_invalid(tmp_path: Path) -> Path:
    path = tmp_path / "TaskList.md"
    path.write_text(INVALID_DOCUMENT, encoding="utf-8")
    return path


def test_version() -> None:
    """Test --version flag shows version."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "tasklint version" in result.stdout


def test_help() -> None:
    """Test --help flag shows help."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Validate Markdown task lists" in result.stdout
    for command in ("validate", "create-template", "stats"):
        assert command in result.stdout


# -----------------------------------------------------------------------------
# Validate Command Tests
# -----------------------------------------------------------------------------


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_document(self, tmp_path: Path) -> None:
        """Test a valid document exits 0 with a success summary."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0
        assert "validation passed" in result.stdout

    def test_invalid_document(self, tmp_path: Path) -> None:
        """Test validation failures exit with code 2."""
        path = _write_invalid(tmp_path)
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 2
        assert "Invalid status 'Bogus'" in result.output
        assert "validation failed" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is a user error."""
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.md")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_document_without_tasks(self, tmp_path: Path) -> None:
        """Test an empty document is a user error."""
        path = tmp_path / "TaskList.md"
        path.write_text("# Nothing\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "No tasks found" in result.output

    def test_json_output(self, tmp_path: Path) -> None:
        """Test validate command with --json flag."""
        path = _write_invalid(tmp_path)
        result = runner.invoke(app, ["validate", str(path), "--json"])
        assert result.exit_code == 2
        data = json.loads(result.stdout)
        assert data["valid"] is False
        assert data["file"] == str(path)
        assert "invalid_status" in [e["type"] for e in data["errors"]]
        assert data["validators"][0] == "id"

    def test_yaml_output(self, tmp_path: Path) -> None:
        """Test validate command with --yaml flag."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["validate", str(path), "--yaml"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.stdout)
        assert data["valid"] is True
        assert data["task_count"] == 7

    def test_json_and_yaml_conflict(self, tmp_path: Path) -> None:
        """Test the output flags are mutually exclusive."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["validate", str(path), "--json", "--yaml"])
        assert result.exit_code == 1

    def test_selected_validators(self, tmp_path: Path) -> None:
        """Test --validators restricts the run."""
        path = _write_invalid(tmp_path)
        result = runner.invoke(app, ["validate", str(path), "--validators", "id", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["validators"] == ["id"]

    def test_unknown_validator(self, tmp_path: Path) -> None:
        """Test unknown validator names are a user error."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["validate", str(path), "--validators", "id,nope"])
        assert result.exit_code == 1
        assert "Unknown validator(s): nope" in result.output

    def test_strict_mode(self, tmp_path: Path) -> None:
        """Test --strict tightens KPI limits."""
        path = tmp_path / "TaskList.md"
        path.write_text(
            "### PHX0101: Task\n"
            "**Code Quality KPIs**\n"
            "- Functions per module: 7\n"
            "- Lines per function: 10\n"
            "- Call depth: 2\n",
            encoding="utf-8",
        )
        relaxed = runner.invoke(app, ["validate", str(path), "--validators", "kpi"])
        assert relaxed.exit_code == 0
        strict = runner.invoke(app, ["validate", str(path), "--validators", "kpi", "--strict"])
        assert strict.exit_code == 2
        assert "Functions per module limit" in strict.output

    def test_kpi_limit_option(self, tmp_path: Path) -> None:
        """Test a CLI limit override reaches the validators."""
        path = tmp_path / "TaskList.md"
        path.write_text(
            "### PHX0101: Task\n"
            "**Code Quality KPIs**\n"
            "- Functions per module: 7\n"
            "- Lines per function: 10\n"
            "- Call depth: 2\n",
            encoding="utf-8",
        )
        result = runner.invoke(
            app,
            ["validate", str(path), "--validators", "kpi", "--max-functions-per-module", "6"],
        )
        assert result.exit_code == 2

    def test_explicit_limit_wins_over_strict(self, tmp_path: Path) -> None:
        """Test --strict keeps explicitly given KPI limits."""
        path = tmp_path / "TaskList.md"
        path.write_text(
            "### PHX0101: Task\n"
            "**Code Quality KPIs**\n"
            "- Functions per module: 7\n"
            "- Lines per function: 10\n"
            "- Call depth: 2\n",
            encoding="utf-8",
        )
        result = runner.invoke(
            app,
            [
                "validate",
                str(path),
                "--validators",
                "kpi",
                "--strict",
                "--max-functions-per-module",
                "20",
            ],
        )
        assert result.exit_code == 0

    def test_quiet_mode(self, tmp_path: Path) -> None:
        """Test --quiet prints nothing on success."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["validate", str(path), "--quiet"])
        assert result.exit_code == 0
        assert result.stdout == ""

    def test_warnings_do_not_fail(self, tmp_path: Path) -> None:
        """Test warnings are shown but exit 0."""
        path = _write_valid(tmp_path, semantic=False)
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 0
        assert "Warning:" in result.output

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        """Test invalid configuration is a user error."""
        path = _write_valid(tmp_path)
        (tmp_path / ".tasklintrc").write_text("max_call_depth = -1\n")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


# -----------------------------------------------------------------------------
# Create-Template Command Tests
# -----------------------------------------------------------------------------


class TestCreateTemplateCommand:
    """Tests for the create-template command."""

    def test_creates_valid_document(self, tmp_path: Path) -> None:
        """Test the generated file is written and validates."""
        path = tmp_path / "docs" / "TaskList.md"
        result = runner.invoke(
            app, ["create-template", str(path), "--category", "testing", "--prefix", "QA"]
        )
        assert result.exit_code == 0
        assert "Created testing task list" in result.stdout
        assert "### QA0501:" in path.read_text(encoding="utf-8")

        check = runner.invoke(app, ["validate", str(path)])
        assert check.exit_code == 0

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        """Test an existing file is kept without --force."""
        path = tmp_path / "TaskList.md"
        path.write_text("keep me", encoding="utf-8")
        result = runner.invoke(app, ["create-template", str(path)])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert path.read_text(encoding="utf-8") == "keep me"

    def test_force_overwrites(self, tmp_path: Path) -> None:
        """Test --force replaces an existing file."""
        path = tmp_path / "TaskList.md"
        path.write_text("replace me", encoding="utf-8")
        result = runner.invoke(app, ["create-template", str(path), "--force", "--semantic"])
        assert result.exit_code == 0
        assert "### PHX0101:" in path.read_text(encoding="utf-8")

    def test_invalid_category(self, tmp_path: Path) -> None:
        """Test unknown categories are a user error."""
        result = runner.invoke(
            app, ["create-template", str(tmp_path / "TaskList.md"), "--category", "mobile"]
        )
        assert result.exit_code == 1
        assert "Unknown category" in result.output

    def test_invalid_prefix(self, tmp_path: Path) -> None:
        """Test malformed prefixes are a user error."""
        result = runner.invoke(
            app, ["create-template", str(tmp_path / "TaskList.md"), "--prefix", "lower"]
        )
        assert result.exit_code == 1
        assert not (tmp_path / "TaskList.md").exists()

    def test_quiet_mode(self, tmp_path: Path) -> None:
        """Test --quiet suppresses the success message."""
        result = runner.invoke(app, ["create-template", str(tmp_path / "TaskList.md"), "-q"])
        assert result.exit_code == 0
        assert result.stdout == ""


# -----------------------------------------------------------------------------
# Stats Command Tests
# -----------------------------------------------------------------------------


class TestStatsCommand:
    """Tests for the stats command."""

    def test_table_output(self, tmp_path: Path) -> None:
        """Test the statistics table is printed."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["stats", str(path)])
        assert result.exit_code == 0
        assert "Task List Statistics" in result.stdout
        assert "Category: phoenix_web" in result.stdout
        assert "References defined" in result.stdout

    def test_json_output(self, tmp_path: Path) -> None:
        """Test stats command with --json flag."""
        path = _write_valid(tmp_path)
        result = runner.invoke(app, ["stats", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["tasks"]["total"] == 7
        assert data["tasks"]["main"] == 3
        assert data["tasks"]["categories"] == {"phoenix_web": 3}
        assert data["references"]["total_references"] == 4
        assert data["references"]["most_used"] == {"name": "error-handling", "count": 3}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file is a user error."""
        result = runner.invoke(app, ["stats", str(tmp_path / "missing.md")])
        assert result.exit_code == 1
