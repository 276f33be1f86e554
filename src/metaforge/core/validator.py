"""
Document validation for metaforge batches.

Runs after the class graph is resolved. Expands notification rules, checks
document ids and kinds, coerces payloads of known kinds into their typed
shape, and dispatches kind-specific checks (views, notifications, actions,
applications, mixin extensions).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from . import ir, prelude
from .actions import validate_action
from .errors import (
    BatchError,
    DuplicateId,
    InvalidPayload,
    MixinTargetMismatch,
    ModelError,
    UnknownField,
    UnresolvedReferenceType,
    make_error,
)
from .graph import ModelGraph, ModelState
from .notifications import (
    NotificationExpansion,
    expand_notification_rule,
    validate_notification_type,
)
from .views import validate_view

logger = logging.getLogger(__name__)

# Payload shape of each document kind with a known structure
PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    prelude.VIEWLET: ir.ViewDescriptor,
    prelude.NOTIFICATION_GROUP: ir.NotificationGroupSpec,
    prelude.NOTIFICATION_TYPE: ir.NotificationTypeSpec,
    prelude.ACTION: ir.ActionSpec,
    prelude.ACTION_CATEGORY: ir.ActionCategorySpec,
    prelude.APPLICATION: ir.ApplicationSpec,
}


@dataclass
class ValidationOutcome:
    """Documents that passed validation, in emission order."""

    documents: list[ir.Document] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    action_precedence: dict[str, list[str]] = field(default_factory=dict)


def validate_documents(
    entries: list[ir.DocumentDecl | NotificationExpansion],
    graph: ModelGraph,
    base: ModelState,
    preceding: list[ir.Document] | None = None,
    module: str | None = None,
) -> ValidationOutcome:
    """
    Validate the document declarations of a batch.

    Args:
        entries: Declarations and notification rules, in batch order
        graph: Resolved graph including the batch's classes
        base: Committed state from earlier batches
        preceding: Documents already generated for this batch (classes,
            attributes); they take part in id checks
        module: Batch name

    Returns:
        ValidationOutcome with the documents to emit

    Raises:
        BatchError: If any declaration is invalid
    """
    errors: list[ModelError] = []
    outcome = ValidationOutcome()

    decls: list[ir.DocumentDecl] = []
    for entry in entries:
        if isinstance(entry, NotificationExpansion):
            expanded, rule_errors, rule_warnings = expand_notification_rule(entry, graph, module)
            decls.extend(expanded)
            errors.extend(rule_errors)
            outcome.warnings.extend(rule_warnings)
        else:
            decls.append(entry)

    kind_of: dict[str, str] = {doc_id: doc.kind for doc_id, doc in base.documents.items()}
    payload_of: dict[str, dict[str, Any]] = {
        doc_id: doc.payload for doc_id, doc in base.documents.items()
    }
    for doc in preceding or []:
        existing = kind_of.get(doc.id)
        if existing is not None:
            errors.append(
                make_error(
                    DuplicateId,
                    f"Id '{doc.id}' is already used by a committed '{existing}' document, "
                    f"cannot reuse it for '{doc.kind}'",
                    doc.id,
                    "unique document id",
                    module,
                )
            )
            continue
        kind_of[doc.id] = doc.kind
        payload_of[doc.id] = doc.payload
    order: dict[str, int] = {}

    kept: list[ir.DocumentDecl] = []
    for decl in decls:
        decl, payload_error = _coerce_payload(decl, module)
        if payload_error is not None:
            errors.append(payload_error)
            continue
        if decl.extends is not None:
            kept.append(decl)
            continue

        existing = kind_of.get(decl.id)
        if existing is None:
            kind_of[decl.id] = decl.kind
            payload_of[decl.id] = decl.payload_dict()
            order[decl.id] = decl.seq
            kept.append(decl)
        elif existing != decl.kind:
            errors.append(
                make_error(
                    DuplicateId,
                    f"Id '{decl.id}' is already used by a '{existing}' document, "
                    f"cannot reuse it for '{decl.kind}'",
                    decl.id,
                    "unique document id",
                    module,
                )
            )
        elif payload_of[decl.id] == decl.payload_dict():
            logger.debug("Document %s re-emitted unchanged, skipping", decl.id)
        else:
            errors.append(
                make_error(
                    DuplicateId,
                    f"Id '{decl.id}' is already used by a different '{decl.kind}' document",
                    decl.id,
                    "unique document id",
                    module,
                )
            )

    for decl in kept:
        if decl.kind not in graph:
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"Document kind '{decl.kind}' is not a registered class",
                    decl.id,
                    "document kind",
                    module,
                )
            )
            continue
        if decl.extends is not None:
            errors.extend(_validate_extension(decl, graph, kind_of, module))
            continue

        payload = decl.payload
        if isinstance(payload, ir.ViewDescriptor):
            errors.extend(validate_view(decl.id, payload, graph, kind_of, module))
        elif isinstance(payload, ir.NotificationGroupSpec):
            errors.extend(_validate_class_refs(decl.id, [payload.object_class], graph, module))
        elif isinstance(payload, ir.NotificationTypeSpec):
            errors.extend(validate_notification_type(decl.id, payload, graph, kind_of, module))
        elif isinstance(payload, ir.ActionSpec):
            action_errors, action_warnings = validate_action(
                decl.id, payload, graph, kind_of, order, module
            )
            errors.extend(action_errors)
            outcome.warnings.extend(action_warnings)
            if payload.override:
                outcome.action_precedence[decl.id] = list(payload.override)
        elif isinstance(payload, ir.ApplicationSpec):
            errors.extend(_validate_application(decl.id, payload, graph, module))

    if errors:
        raise BatchError(errors, module)

    outcome.documents = [decl.to_document() for decl in kept]
    return outcome


def _coerce_payload(
    decl: ir.DocumentDecl, module: str | None
) -> tuple[ir.DocumentDecl, ModelError | None]:
    """Give payloads of known kinds their typed shape."""
    model = PAYLOAD_MODELS.get(decl.kind)
    if model is None or decl.extends is not None or isinstance(decl.payload, model):
        return decl, None
    data = decl.payload_dict()
    try:
        typed = model.model_validate(data)
    except PydanticValidationError as e:
        return decl, make_error(
            InvalidPayload,
            f"Payload does not match '{decl.kind}': {e.error_count()} error(s): "
            + "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()),
            decl.id,
            "payload shape",
            module,
        )
    return decl.model_copy(update={"payload": typed}), None


def _validate_extension(
    decl: ir.DocumentDecl,
    graph: ModelGraph,
    kind_of: dict[str, str],
    module: str | None,
) -> list[ModelError]:
    """Check a mixin extension against its target document."""
    errors: list[ModelError] = []
    target = decl.extends or ""
    mixin = graph.get(decl.kind)
    if mixin is None or not mixin.is_mixin:
        return [
            make_error(
                UnresolvedReferenceType,
                f"'{decl.kind}' is not a registered mixin",
                target,
                "mixin",
                module,
            )
        ]

    if target in graph:
        target_class = prelude.MIXIN if graph.is_mixin(target) else prelude.CLASS
    elif target in kind_of:
        target_class = kind_of[target]
    else:
        return [
            make_error(
                UnresolvedReferenceType,
                f"Mixin '{decl.kind}' is applied to unknown document '{target}'",
                target,
                "mixin target document",
                module,
            )
        ]

    if target_class not in graph or not graph.is_derived(target_class, mixin.target or ""):
        errors.append(
            make_error(
                MixinTargetMismatch,
                f"Mixin '{decl.kind}' applies to '{mixin.target}' instances, "
                f"but '{target}' is a '{target_class}'",
                target,
                "mixin target",
                module,
            )
        )

    allowed: set[str] = set()
    for cid in graph.ancestors(decl.kind):
        spec = graph.classes[cid]
        if spec.is_mixin:
            allowed.update(p.name for p in spec.properties)
    for key in decl.payload_dict():
        if key not in allowed:
            errors.append(
                make_error(
                    UnknownField,
                    f"'{key}' is not a property of mixin '{decl.kind}'",
                    target,
                    "mixin field",
                    module,
                )
            )
    return errors


def _validate_class_refs(
    doc_id: str, class_refs: list[str | None], graph: ModelGraph, module: str | None
) -> list[ModelError]:
    return [
        make_error(
            UnresolvedReferenceType,
            f"'{ref}' is not a registered class",
            doc_id,
            "class reference",
            module,
        )
        for ref in class_refs
        if ref is not None and ref not in graph
    ]


def _validate_application(
    app_id: str, spec: ir.ApplicationSpec, graph: ModelGraph, module: str | None
) -> list[ModelError]:
    """Navigator entries must refer to registered space classes."""
    errors: list[ModelError] = []
    if spec.navigator is None:
        return errors

    space_classes = [s.space_class for s in spec.navigator.spaces]
    space_classes += [s.space_class for s in spec.navigator.specials if s.space_class]
    for space_class in space_classes:
        if space_class not in graph:
            errors.extend(_validate_class_refs(app_id, [space_class], graph, module))
        elif not graph.is_derived(space_class, prelude.SPACE):
            errors.append(
                make_error(
                    InvalidPayload,
                    f"Navigator space class '{space_class}' is not a space",
                    app_id,
                    "navigator space",
                    module,
                )
            )

    for special in spec.navigator.specials:
        class_ref = (special.component_props or {}).get("_class")
        if isinstance(class_ref, str):
            errors.extend(_validate_class_refs(app_id, [class_ref], graph, module))
    return errors
