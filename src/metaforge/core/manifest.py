"""
Project manifest (metaforge.toml) loading.

Example:

    [project]
    name = "lead"
    version = "0.1.0"

    [schema]
    paths = ["schema/base.yaml", "schema/lead.yaml"]

    [output]
    path = "build/model.jsonl"

    [logging]
    level = "INFO"
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ManifestError

MANIFEST_FILE = "metaforge.toml"


@dataclass
class OutputConfig:
    """Where committed documents are written."""

    path: str = "build/model.jsonl"


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class ProjectManifest:
    """
    Parsed metaforge.toml.

    Attributes:
        name: Project name
        version: Project version
        schema_paths: Schema files, each built as one batch, in order
        output: Output configuration
        logging: Logging configuration
        root: Directory containing the manifest
    """

    name: str
    version: str
    schema_paths: list[str] = field(default_factory=list)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    root: Path = field(default_factory=Path.cwd)

    def schema_files(self) -> list[Path]:
        return [self.root / p for p in self.schema_paths]

    @property
    def output_path(self) -> Path:
        return self.root / self.output.path


def load_manifest(path: Path) -> ProjectManifest:
    """
    Load a project manifest.

    Raises:
        ManifestError: If the file is missing, not valid TOML, or incomplete
    """
    if not path.exists():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Invalid TOML in {path}: {e}") from e

    project = data.get("project", {})
    schema = data.get("schema", {})
    output_data = data.get("output", {})
    logging_data = data.get("logging", {})

    name = project.get("name")
    if not name:
        raise ManifestError(f"{path}: [project] name is required")

    paths = schema.get("paths", [])
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise ManifestError(f"{path}: [schema] paths must be a list of strings")

    return ProjectManifest(
        name=name,
        version=project.get("version", "0.1.0"),
        schema_paths=paths,
        output=OutputConfig(path=output_data.get("path", "build/model.jsonl")),
        logging=LoggingConfig(level=str(logging_data.get("level", "WARNING")).upper()),
        root=path.parent,
    )
