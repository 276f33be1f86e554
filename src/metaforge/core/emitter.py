"""
Document sinks for emitted model documents.

The sink is the boundary to the external document registry. Appending a
document whose id and kind were already appended is a no-op, so a batch can
be committed again safely. ``extend`` checks the whole list before storing
anything, so a conflicting document leaves the sink untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from . import ir
from .errors import DuplicateId, make_error

logger = logging.getLogger(__name__)


class DocumentSink(Protocol):
    """Anything that accepts emitted documents in order."""

    def check(self, docs: Iterable[ir.Document]) -> None: ...

    def extend(self, docs: Iterable[ir.Document]) -> int: ...


def _sink_key(doc: ir.Document) -> tuple[str, str | None]:
    # Extensions share the id space of the documents they extend
    return (doc.id, doc.extends)


class MemorySink:
    """Keeps appended documents in a list, in append order."""

    def __init__(self) -> None:
        self.documents: list[ir.Document] = []
        self._kinds: dict[tuple[str, str | None], str] = {}

    def pending(self, docs: Iterable[ir.Document]) -> list[ir.Document]:
        """
        Return the documents not stored yet, in order.

        Raises:
            DuplicateId: If any document reuses a stored id with another kind
        """
        seen = dict(self._kinds)
        fresh: list[ir.Document] = []
        for doc in docs:
            key = _sink_key(doc)
            existing = seen.get(key)
            if existing == doc.kind:
                logger.debug("Document %s already appended, skipping", doc.id)
                continue
            if existing is not None:
                raise make_error(
                    DuplicateId,
                    f"Document '{doc.id}' already stored as '{existing}', "
                    f"cannot store as '{doc.kind}'",
                    doc.id,
                    "sink",
                )
            seen[key] = doc.kind
            fresh.append(doc)
        return fresh

    def check(self, docs: Iterable[ir.Document]) -> None:
        """Raise ``DuplicateId`` if ``docs`` could not all be stored."""
        self.pending(docs)

    def extend(self, docs: Iterable[ir.Document]) -> int:
        """Store every new document of ``docs`` or none of them."""
        fresh = self.pending(docs)
        for doc in fresh:
            self._kinds[_sink_key(doc)] = doc.kind
            self.documents.append(doc)
        return len(fresh)

    def append(self, doc: ir.Document) -> None:
        self.extend([doc])

    def __len__(self) -> int:
        return len(self.documents)

    def as_tuples(self) -> list[tuple[str, str, str, dict]]:
        return [doc.as_tuple() for doc in self.documents]


class JsonLinesSink:
    """
    Writes one canonical JSON document per line.

    Documents already present in the file (same id and kind) are skipped.
    New documents of one ``extend`` call are written in a single write.
    """

    def __init__(self, path: Path):
        self.path = path
        self._memory = MemorySink()
        if path.exists():
            self._memory.extend(
                ir.Document.model_validate_json(line)
                for line in path.read_text().splitlines()
                if line.strip()
            )

    def check(self, docs: Iterable[ir.Document]) -> None:
        self._memory.check(docs)

    def extend(self, docs: Iterable[ir.Document]) -> int:
        docs = list(docs)
        fresh = self._memory.pending(docs)
        if not fresh:
            return 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write("".join(doc.to_json() + "\n" for doc in fresh))
        self._memory.extend(fresh)
        return len(fresh)

    def append(self, doc: ir.Document) -> None:
        self.extend([doc])

    @property
    def documents(self) -> list[ir.Document]:
        return self._memory.documents
