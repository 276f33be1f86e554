"""Core metaforge functionality: IR, class graph, batch builder, derivations, sinks."""

from . import ir
from .builder import BuildResult, ClassHandle, MixinHandle, ModelBuilder
from .emitter import DocumentSink, JsonLinesSink, MemorySink
from .errors import (
    BatchError,
    CyclicInheritance,
    DuplicateId,
    DuplicateProperty,
    ErrorContext,
    InvalidLookupPath,
    InvalidPayload,
    ManifestError,
    MetaforgeError,
    MixinTargetMismatch,
    ModelError,
    SchemaLoadError,
    UnknownField,
    UnknownParent,
    UnknownTarget,
    UnresolvedReferenceType,
)
from .graph import ModelGraph, ModelState
from .loader import ProjectBuild, build_project
from .manifest import ProjectManifest, load_manifest
from .schema_loader import load_schema_file

__all__ = [
    "ir",
    # Builder
    "BuildResult",
    "ClassHandle",
    "MixinHandle",
    "ModelBuilder",
    "ModelGraph",
    "ModelState",
    # Sinks
    "DocumentSink",
    "JsonLinesSink",
    "MemorySink",
    # Errors
    "BatchError",
    "CyclicInheritance",
    "DuplicateId",
    "DuplicateProperty",
    "ErrorContext",
    "InvalidLookupPath",
    "InvalidPayload",
    "ManifestError",
    "MetaforgeError",
    "MixinTargetMismatch",
    "ModelError",
    "SchemaLoadError",
    "UnknownField",
    "UnknownParent",
    "UnknownTarget",
    "UnresolvedReferenceType",
    # Projects
    "ProjectBuild",
    "ProjectManifest",
    "build_project",
    "load_manifest",
    "load_schema_file",
]
