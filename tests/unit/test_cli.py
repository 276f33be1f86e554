"""Tests for CLI commands."""

import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from metaforge.cli import app


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def lead_project(tmp_path: Path, examples_dir: Path) -> Path:
    """Copy the lead example so builds write into a temporary directory."""
    target = tmp_path / "lead"
    shutil.copytree(examples_dir / "lead", target, ignore=shutil.ignore_patterns("build"))
    return target


@pytest.fixture
def broken_project(tmp_path: Path) -> Path:
    """Create a project whose only view names a field the class lacks."""
    (tmp_path / "schema").mkdir()
    (tmp_path / "schema" / "tasks.yaml").write_text(
        """
classes:
  - id: tasks.class.Task
    parent: core.class.Doc
    properties:
      - {name: title, type: string}
views:
  - {target: tasks.class.Task, descriptor: table, fields: [title, budget]}
"""
    )
    (tmp_path / "metaforge.toml").write_text(
        '[project]\nname = "broken"\n\n[schema]\npaths = ["schema/tasks.yaml"]\n'
    )
    return tmp_path


def test_version(cli_runner: CliRunner):
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "metaforge version" in result.stdout


def test_validate_command_success(cli_runner: CliRunner, lead_project: Path):
    result = cli_runner.invoke(app, ["validate", str(lead_project)])

    assert result.exit_code == 0
    assert "OK: 2 batch(es)" in result.stdout
    # The create-lead action overrides the global one declared after it
    assert "WARNING" in result.stdout


def test_validate_command_with_errors(cli_runner: CliRunner, broken_project: Path):
    result = cli_runner.invoke(app, ["validate", str(broken_project)])

    assert result.exit_code == 1
    assert "unknown_field" in result.output
    assert "budget" in result.output


def test_validate_missing_manifest(cli_runner: CliRunner, tmp_path: Path):
    result = cli_runner.invoke(app, ["validate", str(tmp_path)])

    assert result.exit_code == 1
    assert "Manifest not found" in result.output


def test_build_command_writes_once(cli_runner: CliRunner, lead_project: Path, tmp_path: Path):
    out = tmp_path / "model.jsonl"

    first = cli_runner.invoke(app, ["build", str(lead_project), "--out", str(out)])
    lines = out.read_text().splitlines()
    second = cli_runner.invoke(app, ["build", str(lead_project), "--out", str(out)])

    assert first.exit_code == 0
    assert second.exit_code == 0
    assert f"Wrote {len(lines)} document(s)" in first.stdout
    assert "Wrote 0 document(s)" in second.stdout
    assert out.read_text().splitlines() == lines


def test_build_command_default_output(cli_runner: CliRunner, lead_project: Path):
    result = cli_runner.invoke(app, ["build", str(lead_project), "--clean"])

    assert result.exit_code == 0
    assert (lead_project / "build" / "model.jsonl").exists()


def test_build_command_with_errors_writes_nothing(cli_runner: CliRunner, broken_project: Path):
    result = cli_runner.invoke(app, ["build", str(broken_project)])

    assert result.exit_code == 1
    assert not (broken_project / "build").exists()


def test_inspect_command(cli_runner: CliRunner, lead_project: Path):
    result = cli_runner.invoke(app, ["inspect", "lead.class.Lead", str(lead_project)])

    assert result.exit_code == 0
    assert "title" in result.stdout
    assert "attachedTo" in result.stdout
    assert "dueDate" in result.stdout


def test_inspect_unknown_class(cli_runner: CliRunner, lead_project: Path):
    result = cli_runner.invoke(app, ["inspect", "lead.class.Missing", str(lead_project)])

    assert result.exit_code == 1
    assert "Class not found" in result.output


def test_build_command_conflict_in_later_batch_writes_nothing(
    cli_runner: CliRunner, lead_project: Path, tmp_path: Path
):
    out = tmp_path / "model.jsonl"
    out.write_text('{"kind": "a.class.Other", "space": "s", "id": "lead.app.Lead"}\n')
    before = out.read_text()

    result = cli_runner.invoke(app, ["build", str(lead_project), "--out", str(out)])

    assert result.exit_code == 1
    assert "lead.app.Lead" in result.output
    assert out.read_text() == before
