"""
Document types for metaforge IR.

A document is the unit handed to the external document sink: an opaque
payload of a given kind, placed in a space, addressed by an id. Extension
documents additionally name the document they extend.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .ids import canonical_json


class Document(BaseModel):
    """
    An emitted model document.

    Attributes:
        kind: Class id of the document (for extensions, the mixin id)
        space: Space the document lives in
        id: Document identifier
        payload: JSON-ready attribute values
        extends: For mixin extensions, the id of the extended document
    """

    kind: str
    space: str
    id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    extends: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_extension(self) -> bool:
        return self.extends is not None

    def as_tuple(self) -> tuple[str, str, str, dict[str, Any]]:
        return (self.kind, self.space, self.id, self.payload)

    def to_json(self) -> str:
        """Canonical JSON line for this document."""
        return canonical_json(self.model_dump(mode="json", exclude_none=True))


class DocumentDecl(BaseModel):
    """
    A document recorded in a batch but not yet resolved.

    ``payload`` is either a typed payload model (viewlets, notification types,
    actions, ...) or a plain dict for free-form documents.

    Attributes:
        kind: Class id of the document
        space: Target space
        id: Caller-supplied or generated id
        payload: Typed payload model or raw dict
        extends: Extended document for mixin documents
        explicit_id: Whether the caller supplied the id
        seq: Position in the batch
    """

    kind: str
    space: str
    id: str
    payload: Any = None
    extends: str | None = None
    explicit_id: bool = False
    seq: int = 0

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    def payload_dict(self) -> dict[str, Any]:
        """Return the payload as JSON-ready data."""
        if isinstance(self.payload, BaseModel):
            return self.payload.model_dump(mode="json", exclude_none=True)
        return dict(self.payload or {})

    def to_document(self) -> Document:
        return Document(
            kind=self.kind,
            space=self.space,
            id=self.id,
            payload=self.payload_dict(),
            extends=self.extends,
        )
