"""
Error types for metaforge model resolution and validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class MetaforgeError(Exception):
    """Base exception for all metaforge errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message

    @property
    def declaration(self) -> str | None:
        return self.context.declaration if self.context else None


@dataclass
class ErrorContext:
    """
    Identifies the declaration an error belongs to.

    Attributes:
        declaration: Identifier of the offending declaration (class id,
            document id, action id, ...)
        invariant: Short name of the violated rule
        module: Optional batch/module name the declaration came from
    """

    declaration: str
    invariant: str | None = None
    module: str | None = None

    def format(self) -> str:
        """
        Format as a human-readable prefix.

        Returns:
            String like: "[lead] lead.class.Lead (parent)"
        """
        location = self.declaration
        if self.invariant:
            location += f" ({self.invariant})"
        if self.module:
            location = f"[{self.module}] {location}"
        return location


class ModelError(MetaforgeError):
    """
    Base class for validation failures found while resolving a batch.

    All of these are detected before anything reaches a document sink.
    """

    code = "model_error"


class UnresolvedReferenceType(ModelError):
    """A reference (property type, document, group, action, ...) does not resolve."""

    code = "unresolved_reference"


class UnknownParent(ModelError):
    """A class names a parent that is not registered."""

    code = "unknown_parent"


class UnknownTarget(ModelError):
    """A mixin names a target class that is not registered."""

    code = "unknown_target"


class MixinTargetMismatch(ModelError):
    """A mixin is applied to a document whose class is outside the mixin's target."""

    code = "mixin_target_mismatch"


class DuplicateProperty(ModelError):
    """The same property name is declared twice directly on one owner."""

    code = "duplicate_property"


class DuplicateId(ModelError):
    """An identifier is reused for a different kind or a different definition."""

    code = "duplicate_id"


class CyclicInheritance(ModelError):
    """A class or mixin is its own transitive ancestor."""

    code = "cyclic_inheritance"


class UnknownField(ModelError):
    """A field name is not in the effective property set of a class."""

    code = "unknown_field"


class InvalidLookupPath(ModelError):
    """A ``$lookup`` path is malformed or its relation is not declared."""

    code = "invalid_lookup_path"


class InvalidPayload(ModelError):
    """A document payload does not match the shape required by its kind."""

    code = "invalid_payload"


class BatchError(MetaforgeError):
    """
    Raised when a batch fails resolution.

    Carries every validation error found; nothing from the batch is emitted.
    """

    def __init__(self, errors: list[ModelError], module: str | None = None):
        self.errors = list(errors)
        self.module = module
        header = "Batch validation failed"
        if module:
            header += f" in '{module}'"
        message = header + ":\n" + "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(message)

    def of_kind(self, kind: type[ModelError]) -> list[ModelError]:
        """Return the collected errors of the given kind."""
        return [e for e in self.errors if isinstance(e, kind)]

    def has(self, kind: type[ModelError]) -> bool:
        return bool(self.of_kind(kind))


class ManifestError(MetaforgeError):
    """Raised when metaforge.toml is missing or malformed."""

    pass


class SchemaLoadError(MetaforgeError):
    """Raised when a schema source file cannot be read or understood."""

    pass


def make_error(
    kind: type[ModelError],
    message: str,
    declaration: str,
    invariant: str | None = None,
    module: str | None = None,
) -> ModelError:
    """
    Helper to create a model error with context attached.

    Args:
        kind: Error class to instantiate
        message: Error description
        declaration: Identifier of the offending declaration
        invariant: Optional name of the violated rule
        module: Optional batch name

    Returns:
        Error instance of the requested kind
    """
    context = ErrorContext(declaration=declaration, invariant=invariant, module=module)
    return kind(message, context)
