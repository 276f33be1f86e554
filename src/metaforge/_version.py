"""Version lookup for the metaforge distribution."""

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

DISTRIBUTION = "metaforge"
UNKNOWN_VERSION = "0.0.0"


def _source_tree_version(pyproject: Path) -> str | None:
    # Only trust a pyproject.toml that declares this distribution
    try:
        project = tomllib.loads(pyproject.read_text()).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return None
    if project.get("name") != DISTRIBUTION:
        return None
    return project.get("version")


def get_version(pyproject: Path | None = None) -> str:
    """Version from the source checkout's pyproject.toml, else the installed metadata."""
    if pyproject is None:
        pyproject = Path(__file__).parent.parent.parent / "pyproject.toml"
    if found := _source_tree_version(pyproject):
        return found
    try:
        return _metadata_version(DISTRIBUTION)
    except PackageNotFoundError:
        return UNKNOWN_VERSION
