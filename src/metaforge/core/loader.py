"""Project build pipeline.

Single implementation of manifest -> schema files -> incremental batches.
Each schema file is one batch resolved on top of the state committed by the
files before it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from . import ir
from .builder import BuildResult
from .graph import ModelState
from .manifest import MANIFEST_FILE, ProjectManifest, load_manifest
from .schema_loader import load_schema_file

logger = logging.getLogger(__name__)


@dataclass
class ProjectBuild:
    """Results of every batch of a project, in build order."""

    manifest: ProjectManifest
    results: list[BuildResult] = field(default_factory=list)

    @property
    def documents(self) -> list[ir.Document]:
        return [doc for result in self.results for doc in result.documents]

    @property
    def warnings(self) -> list[str]:
        return [w for result in self.results for w in result.warnings]

    @property
    def model(self) -> ModelState | None:
        return self.results[-1].model if self.results else None


def build_project(project_root: Path, base: ModelState | None = None) -> ProjectBuild:
    """
    Build all schema files of a project.

    The first failing batch raises. Nothing is written anywhere; committing
    to a sink is up to the caller.

    Raises:
        ManifestError: If metaforge.toml is missing or invalid
        SchemaLoadError: If a schema file cannot be loaded
        BatchError: If a batch fails validation
    """
    manifest = load_manifest(project_root / MANIFEST_FILE)
    project = ProjectBuild(manifest=manifest)
    state = base
    for schema_file in manifest.schema_files():
        builder = load_schema_file(schema_file, base=state)
        result = builder.build()
        project.results.append(result)
        state = result.model
        logger.info("Built %s (%d documents)", schema_file.name, len(result.documents))
    return project
