"""Tests for version lookup."""

from importlib.metadata import PackageNotFoundError
from pathlib import Path

from metaforge._version import get_version


def test_reads_project_version(tmp_path: Path):
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "metaforge"\nversion = "3.1.4"\n')

    assert get_version(pyproject) == "3.1.4"


def test_ignores_other_projects(tmp_path: Path, monkeypatch):
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "something-else"\nversion = "9.9.9"\n')
    monkeypatch.setattr("metaforge._version._metadata_version", lambda name: "1.0.0")

    assert get_version(pyproject) == "1.0.0"


def test_falls_back_when_not_installed(tmp_path: Path, monkeypatch):
    def missing(name):
        raise PackageNotFoundError(name)

    monkeypatch.setattr("metaforge._version._metadata_version", missing)

    assert get_version(tmp_path / "pyproject.toml") == "0.0.0"
