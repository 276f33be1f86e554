"""
Batch builder for metaforge models.

A ``ModelBuilder`` is one build pass: registration calls only record
declarations, and ``build()`` resolves them together. Declaration order of
classes and mixins inside a batch does not matter. If anything fails to
resolve, ``build()`` raises a single ``BatchError`` and nothing is emitted.

Example:

    builder = ModelBuilder(name="lead")
    lead = builder.register_class("lead.class.Lead", "task.class.Task", label="lead.string.Lead")
    lead.declare_property("title", ir.type_string(), index=ir.IndexKind.FULL_TEXT)
    builder.expand_notifications("lead.class.Lead", group_id, [], ["state", "assignee"])
    result = builder.build()
    result.commit(sink)
"""

from __future__ import annotations

import itertools
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from . import ir, prelude
from .emitter import DocumentSink
from .graph import ModelGraph, ModelState
from .notifications import NotificationExpansion
from .resolver import resolve_classes, resolve_properties
from .validator import validate_documents

logger = logging.getLogger(__name__)


@dataclass
class PropertyDecl:
    """A property recorded against an owner, not yet resolved."""

    owner: str
    spec: ir.PropertySpec
    seq: int


@dataclass
class ClassHandle:
    """Handle returned by class registration; declares properties on the class."""

    builder: ModelBuilder
    id: str

    def declare_property(self, name: str, value_type: ir.ValueType, **options: Any) -> None:
        self.builder.declare_property(self.id, name, value_type, **options)


@dataclass
class MixinHandle(ClassHandle):
    """Handle returned by mixin registration."""

    pass


@dataclass
class BuildResult:
    """
    Outcome of a successful batch.

    Attributes:
        name: Batch name
        documents: Emitted documents, in emission order
        model: Committed state including this batch (base for the next one)
        warnings: Tolerated oddities found during resolution
    """

    name: str
    documents: list[ir.Document]
    model: ModelState
    warnings: list[str] = field(default_factory=list)

    def commit(self, sink: DocumentSink) -> int:
        """
        Append every document to ``sink``, or none if any conflicts.

        Returns the number of documents the sink did not already hold.
        """
        written = sink.extend(self.documents)
        logger.info("Committed %d documents from batch '%s'", written, self.name)
        return written

    def of_kind(self, kind: str) -> list[ir.Document]:
        return [doc for doc in self.documents if doc.kind == kind]

    def get(self, doc_id: str) -> ir.Document | None:
        for doc in self.documents:
            if doc.id == doc_id and not doc.is_extension:
                return doc
        return None


class ModelBuilder:
    """
    Collects declarations for one batch and resolves them on ``build()``.

    Args:
        name: Batch name used in error reports
        base: Committed state to resolve against; defaults to the prelude
    """

    def __init__(self, name: str = "model", base: ModelState | None = None):
        self.name = name
        self.base = base if base is not None else prelude.prelude_state()
        self._classes: list[ir.ClassSpec] = []
        self._properties: list[PropertyDecl] = []
        self._entries: list[ir.DocumentDecl | NotificationExpansion] = []
        self._occurrences: Counter[str] = Counter()
        self._seq = itertools.count()

    # -------------------------------------------------------------------------
    # Classes, mixins, properties
    # -------------------------------------------------------------------------

    def register_class(
        self,
        class_id: str,
        parent: str | None = None,
        label: str | None = None,
        icon: str | None = None,
        *,
        short_label: str | None = None,
        label_prop: str | None = None,
    ) -> ClassHandle:
        """Record a class; ``parent`` is resolved when the batch is built."""
        self._classes.append(
            ir.ClassSpec(
                id=class_id,
                kind=ir.ClassKind.CLASS,
                parent=parent,
                label=label,
                icon=icon,
                short_label=short_label,
                label_prop=label_prop,
                module=self.name,
            )
        )
        logger.debug("Registered class %s (parent=%s)", class_id, parent)
        return ClassHandle(self, class_id)

    def register_mixin(
        self,
        mixin_id: str,
        target: str,
        label: str | None = None,
        icon: str | None = None,
    ) -> MixinHandle:
        """Record a mixin attachable to instances of ``target``."""
        self._classes.append(
            ir.ClassSpec(
                id=mixin_id,
                kind=ir.ClassKind.MIXIN,
                target=target,
                label=label,
                icon=icon,
                module=self.name,
            )
        )
        logger.debug("Registered mixin %s (target=%s)", mixin_id, target)
        return MixinHandle(self, mixin_id)

    def declare_property(
        self,
        owner: str,
        name: str,
        value_type: ir.ValueType,
        *,
        label: str | None = None,
        short_label: str | None = None,
        index: ir.IndexKind = ir.IndexKind.NONE,
        read_only: bool = False,
        hidden: bool = False,
    ) -> None:
        """Record a property directly on ``owner`` (a class or mixin of this batch)."""
        spec = ir.PropertySpec(
            name=name,
            type=value_type,
            label=label,
            short_label=short_label,
            index=index,
            read_only=read_only,
            hidden=hidden,
        )
        self._properties.append(PropertyDecl(owner=owner, spec=spec, seq=next(self._seq)))

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def create_doc(
        self,
        kind: str,
        space: str,
        payload: BaseModel | dict[str, Any],
        doc_id: str | None = None,
        *,
        extends: str | None = None,
    ) -> ir.DocId:
        """
        Record a document of ``kind`` in ``space``.

        Without ``doc_id`` the id is derived from the document's content and
        its occurrence count in this batch, so rebuilds are stable.
        """
        explicit = doc_id is not None
        if doc_id is None:
            doc_id = self._generate_id(kind, space, extends, payload)
        decl = ir.DocumentDecl(
            kind=kind,
            space=space,
            id=doc_id,
            payload=payload,
            extends=extends,
            explicit_id=explicit,
            seq=next(self._seq),
        )
        self._entries.append(decl)
        return ir.DocId(doc_id)

    def create_mixin(
        self,
        target: str,
        mixin_class: str,
        space: str,
        payload: dict[str, Any],
        doc_id: str | None = None,
    ) -> ir.DocId:
        """Record an extension of document ``target`` under ``mixin_class``."""
        return self.create_doc(mixin_class, space, payload, doc_id, extends=target)

    def apply_mixin(self, doc_id: str, mixin_id: str, payload: dict[str, Any]) -> ir.DocId:
        """Attach mixin fields to a document or class-level default in the model space."""
        return self.create_mixin(doc_id, mixin_id, prelude.MODEL_SPACE, payload)

    def _generate_id(
        self, kind: str, space: str, extends: str | None, payload: BaseModel | dict[str, Any]
    ) -> str:
        data = (
            payload.model_dump(mode="json", exclude_none=True)
            if isinstance(payload, BaseModel)
            else payload
        )
        key = ir.canonical_json([kind, space, extends, data])
        occurrence = self._occurrences[key]
        self._occurrences[key] += 1
        return ir.generate_id(self.name, key, occurrence)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def derive_view(
        self,
        target: str,
        descriptor: ir.ViewletDescriptorKind | str,
        field_specs: list[ir.FieldSpecLike],
        *,
        lookup: dict[str, ir.LookupTarget] | None = None,
        config_options: ir.ConfigOptions | None = None,
        view_options: ir.ViewOptions | None = None,
        view_id: str | None = None,
    ) -> ir.ViewDescriptor:
        """
        Record a viewlet for ``target``.

        ``field_specs`` order is kept as presentation order. Field keys,
        lookup paths and sort/group keys are checked when the batch is built.
        """
        try:
            descriptor_id = prelude.DESCRIPTOR_IDS[ir.ViewletDescriptorKind(descriptor)]
        except ValueError:
            # Custom descriptor document id
            descriptor_id = descriptor
        view = ir.ViewDescriptor(
            target_class=target,
            descriptor=descriptor_id,
            fields=list(field_specs),
            lookup=dict(lookup or {}),
            config_options=config_options,
            view_options=view_options,
        )
        self.create_doc(prelude.VIEWLET, prelude.MODEL_SPACE, view, view_id)
        return view

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def register_notification_group(
        self,
        group_id: str,
        label: str,
        object_class: str,
        icon: str | None = None,
    ) -> ir.NotificationGroupId:
        spec = ir.NotificationGroupSpec(label=label, icon=icon, object_class=object_class)
        self.create_doc(prelude.NOTIFICATION_GROUP, prelude.MODEL_SPACE, spec, group_id)
        return ir.NotificationGroupId(group_id)

    def register_notification_type(
        self,
        type_id: str,
        spec: ir.NotificationTypeSpec,
    ) -> ir.NotificationTypeId:
        """Record a hand-written notification type."""
        self.create_doc(prelude.NOTIFICATION_TYPE, prelude.MODEL_SPACE, spec, type_id)
        return ir.NotificationTypeId(type_id)

    def expand_notifications(
        self,
        class_id: str,
        group: str,
        silent_fields: list[str],
        visible_fields: list[str],
    ) -> list[ir.NotificationTypeId]:
        """
        Record one generated notification type per listed field.

        Visible fields get both delivery providers enabled, silent fields get
        them disabled. Returned ids depend only on (class, group, field).
        """
        expansion = NotificationExpansion(
            class_id=class_id,
            group=group,
            silent_fields=list(silent_fields),
            visible_fields=list(visible_fields),
            seq=next(self._seq),
        )
        self._entries.append(expansion)
        return expansion.type_ids()

    # -------------------------------------------------------------------------
    # Actions and applications
    # -------------------------------------------------------------------------

    def register_action_category(
        self, category_id: str, label: str, visible: bool = True
    ) -> ir.CategoryId:
        spec = ir.ActionCategorySpec(label=label, visible=visible)
        self.create_doc(prelude.ACTION_CATEGORY, prelude.MODEL_SPACE, spec, category_id)
        return ir.CategoryId(category_id)

    def register_action(self, spec: ir.ActionSpec, action_id: str | None = None) -> ir.ActionId:
        """Record a UI action; overrides become precedence edges in the result."""
        return ir.ActionId(self.create_doc(prelude.ACTION, prelude.MODEL_SPACE, spec, action_id))

    def register_application(self, app_id: str, spec: ir.ApplicationSpec) -> ir.ApplicationId:
        self.create_doc(prelude.APPLICATION, prelude.MODEL_SPACE, spec, app_id)
        return ir.ApplicationId(app_id)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_graph(self) -> ModelGraph:
        """
        Resolve classes, mixins and properties of this batch.

        Raises:
            BatchError: On unknown parents/targets, cycles, duplicate or
                unresolved properties
        """
        graph, _ = self._resolve_graph()
        return graph

    def effective_properties_of(self, class_id: str) -> dict[str, ir.PropertySpec]:
        return self.resolve_graph().effective_properties(class_id)

    def _resolve_graph(self) -> tuple[ModelGraph, list[ir.ClassSpec]]:
        committed_kinds = {doc_id: doc.kind for doc_id, doc in self.base.documents.items()}
        new_classes = resolve_classes(
            self._classes, self._properties, self.base.graph, self.name, committed_kinds
        )
        graph = self.base.graph.merged({c.id: c for c in new_classes})
        declared_ids = {spec.id for spec in self._classes}
        resolve_properties(new_classes, self._properties, graph, declared_ids, self.name)
        return graph, new_classes

    def build(self) -> BuildResult:
        """
        Resolve the whole batch and produce its documents.

        Raises:
            BatchError: If any declaration fails validation
        """
        graph, new_classes = self._resolve_graph()

        class_docs = [_class_document(spec) for spec in new_classes]
        attribute_docs = [
            _attribute_document(spec.id, prop) for spec in new_classes for prop in spec.properties
        ]
        outcome = validate_documents(
            self._entries,
            graph,
            self.base,
            preceding=class_docs + attribute_docs,
            module=self.name,
        )

        documents = class_docs + attribute_docs + outcome.documents
        model = self.base.extend(graph, documents, outcome.action_precedence)
        for warning in outcome.warnings:
            logger.warning("%s: %s", self.name, warning)
        logger.info(
            "Batch '%s' resolved: %d classes, %d documents",
            self.name,
            len(new_classes),
            len(documents),
        )
        return BuildResult(
            name=self.name, documents=documents, model=model, warnings=outcome.warnings
        )


def _class_document(spec: ir.ClassSpec) -> ir.Document:
    kind = prelude.MIXIN if spec.is_mixin else prelude.CLASS
    payload = spec.model_dump(mode="json", exclude={"id", "properties", "module"}, exclude_none=True)
    return ir.Document(kind=kind, space=prelude.MODEL_SPACE, id=spec.id, payload=payload)


def _attribute_document(owner: str, prop: ir.PropertySpec) -> ir.Document:
    payload = {"attribute_of": owner}
    payload.update(prop.model_dump(mode="json", exclude_none=True))
    return ir.Document(
        kind=prelude.ATTRIBUTE,
        space=prelude.MODEL_SPACE,
        id=f"{owner}:{prop.name}",
        payload=payload,
    )
