"""
Resolved class/mixin graph for metaforge.

``ModelGraph`` answers inheritance and property questions over a set of
classes that has already passed resolution (no unknown parents, no cycles).
``ModelState`` is the committed result of one or more batches: the graph
plus an index of every emitted document, used to validate later batches.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from . import ir
from .errors import CyclicInheritance, make_error


@dataclass
class ModelGraph:
    """
    Class and mixin definitions keyed by id.

    Classes form a single-inheritance tree through ``parent``. A mixin hangs
    off its ``target``: it is derived from the target, and its effective
    properties are the target's followed by its own.
    """

    classes: dict[str, ir.ClassSpec] = field(default_factory=dict)

    def __contains__(self, class_id: object) -> bool:
        return class_id in self.classes

    def get(self, class_id: str) -> ir.ClassSpec | None:
        return self.classes.get(class_id)

    def is_mixin(self, class_id: str) -> bool:
        spec = self.classes.get(class_id)
        return spec is not None and spec.is_mixin

    def ancestors(self, class_id: str) -> list[str]:
        """
        Return ``class_id`` followed by its ancestors, leaf to root.

        Raises:
            CyclicInheritance: If the chain revisits a class
        """
        chain: list[str] = []
        seen: set[str] = set()
        current: str | None = class_id
        while current is not None and current in self.classes:
            if current in seen:
                raise make_error(
                    CyclicInheritance,
                    f"Class '{class_id}' is its own ancestor via {' -> '.join(chain + [current])}",
                    class_id,
                    "inheritance",
                )
            seen.add(current)
            chain.append(current)
            current = self.classes[current].base
        return chain

    def is_derived(self, class_id: str, base: str) -> bool:
        """Check whether ``class_id`` is ``base`` or one of its descendants."""
        return base in self.ancestors(class_id)

    def descendants(self, class_id: str) -> list[str]:
        """All classes and mixins derived from ``class_id`` (excluding itself)."""
        return [
            cid for cid in self.classes if cid != class_id and self.is_derived(cid, class_id)
        ]

    def effective_properties(self, class_id: str) -> dict[str, ir.PropertySpec]:
        """
        Effective property set of a class or mixin.

        Walks the chain root to leaf; a property declared closer to the leaf
        shadows an ancestor property of the same name. Key order follows the
        first declaration of each name.
        """
        result: dict[str, ir.PropertySpec] = {}
        for cid in reversed(self.ancestors(class_id)):
            for prop in self.classes[cid].properties:
                result[prop.name] = prop
        return result

    def find_property(self, class_id: str, name: str) -> ir.PropertySpec | None:
        return self.effective_properties(class_id).get(name)

    def property_owner(self, class_id: str, name: str) -> str | None:
        """Id of the leaf-most class in the chain that declares ``name``."""
        for cid in self.ancestors(class_id):
            if self.classes[cid].get_property(name) is not None:
                return cid
        return None

    def merged(self, classes: dict[str, ir.ClassSpec]) -> ModelGraph:
        """Return a new graph with ``classes`` added (or replacing same ids)."""
        combined = dict(self.classes)
        combined.update(classes)
        return ModelGraph(classes=combined)


@dataclass
class ModelState:
    """
    Committed model: everything emitted by previous batches.

    Attributes:
        graph: Resolved class/mixin graph
        documents: Base (non-extension) documents by id
        action_precedence: Overriding action id -> overridden action ids
    """

    graph: ModelGraph = field(default_factory=ModelGraph)
    documents: dict[str, ir.Document] = field(default_factory=dict)
    action_precedence: dict[str, list[str]] = field(default_factory=dict)

    def kind_of(self, doc_id: str) -> str | None:
        doc = self.documents.get(doc_id)
        return doc.kind if doc else None

    def ids_of_kind(self, kind: str) -> list[str]:
        return [doc_id for doc_id, doc in self.documents.items() if doc.kind == kind]

    def effective_properties_of(self, class_id: str) -> dict[str, ir.PropertySpec]:
        return self.graph.effective_properties(class_id)

    def copy(self) -> ModelState:
        """Shallow copy with fresh containers; specs and documents are frozen."""
        return ModelState(
            graph=ModelGraph(classes=dict(self.graph.classes)),
            documents=dict(self.documents),
            action_precedence={k: list(v) for k, v in self.action_precedence.items()},
        )

    def extend(
        self,
        graph: ModelGraph,
        documents: list[ir.Document],
        action_precedence: dict[str, list[str]],
    ) -> ModelState:
        """Return a new state with a resolved batch layered on top."""
        docs = dict(self.documents)
        for doc in documents:
            if not doc.is_extension:
                docs[doc.id] = doc
        precedence = dict(self.action_precedence)
        precedence.update(action_precedence)
        return ModelState(graph=graph, documents=docs, action_precedence=precedence)
