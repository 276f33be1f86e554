"""
Class graph resolution for metaforge batches.

Resolution runs in two stages:

1. Graph: duplicate ids, parents, mixin targets and cycles. A failure here
   aborts the batch before any property is looked at.
2. Properties: owners, duplicate names, reference types and display
   properties, checked against the graph from stage 1.

Every error found within a stage is reported together in one ``BatchError``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from . import ir
from .errors import (
    BatchError,
    CyclicInheritance,
    DuplicateId,
    DuplicateProperty,
    ModelError,
    UnknownField,
    UnknownParent,
    UnknownTarget,
    UnresolvedReferenceType,
    make_error,
)
from .graph import ModelGraph

if TYPE_CHECKING:
    from .builder import PropertyDecl

logger = logging.getLogger(__name__)


def resolve_classes(
    classes: list[ir.ClassSpec],
    properties: list[PropertyDecl],
    base: ModelGraph,
    module: str | None = None,
    committed_kinds: Mapping[str, str] | None = None,
) -> list[ir.ClassSpec]:
    """
    Resolve the class and mixin declarations of one batch.

    Args:
        classes: Declarations in registration order (without properties)
        properties: Property declarations of the batch
        base: Graph committed by earlier batches
        module: Batch name for error reporting
        committed_kinds: Kind of every committed document by id

    Returns:
        New class specs with their properties attached. Classes identical to
        an already committed definition are left out.

    Raises:
        BatchError: On duplicate ids, unknown parents/targets or cycles
    """
    errors: list[ModelError] = []

    by_owner: dict[str, list[ir.PropertySpec]] = {}
    for decl in properties:
        by_owner.setdefault(decl.owner, []).append(decl.spec)

    declared: dict[str, ir.ClassSpec] = {}
    for spec in classes:
        full = spec.model_copy(update={"properties": by_owner.get(spec.id, [])})
        if spec.id in declared:
            errors.append(
                make_error(
                    DuplicateId,
                    f"Class '{spec.id}' is registered more than once in this batch",
                    spec.id,
                    "unique class id",
                    module,
                )
            )
            continue
        declared[spec.id] = full

    committed_kinds = committed_kinds or {}
    new_classes: list[ir.ClassSpec] = []
    for spec in declared.values():
        committed = base.get(spec.id)
        if committed is None:
            existing_kind = committed_kinds.get(spec.id)
            if existing_kind is not None:
                errors.append(
                    make_error(
                        DuplicateId,
                        f"Id '{spec.id}' is already used by a committed '{existing_kind}' "
                        "document, cannot reuse it for a class",
                        spec.id,
                        "unique document id",
                        module,
                    )
                )
                continue
            new_classes.append(spec)
        elif committed.same_definition(spec):
            logger.debug("Class %s already committed with identical definition", spec.id)
        else:
            errors.append(
                make_error(
                    DuplicateId,
                    f"Class '{spec.id}' is already committed by batch "
                    f"'{committed.module}' with a different definition",
                    spec.id,
                    "unique class id",
                    module,
                )
            )

    known = set(base.classes) | set(declared)
    for spec in new_classes:
        if spec.is_mixin:
            if spec.target is None or spec.target not in known:
                errors.append(
                    make_error(
                        UnknownTarget,
                        f"Mixin '{spec.id}' targets unknown class '{spec.target}'",
                        spec.id,
                        "mixin target",
                        module,
                    )
                )
        elif spec.parent is not None and spec.parent not in known:
            errors.append(
                make_error(
                    UnknownParent,
                    f"Class '{spec.id}' extends unknown class '{spec.parent}'",
                    spec.id,
                    "parent",
                    module,
                )
            )

    combined = dict(base.classes)
    combined.update({spec.id: spec for spec in new_classes})
    errors.extend(_find_cycles(new_classes, combined, module))

    if errors:
        raise BatchError(errors, module)
    return new_classes


def _find_cycles(
    classes: list[ir.ClassSpec],
    combined: dict[str, ir.ClassSpec],
    module: str | None,
) -> list[ModelError]:
    """Report each inheritance cycle reachable from the batch once."""
    errors: list[ModelError] = []
    reported: set[frozenset[str]] = set()
    for spec in classes:
        path: list[str] = []
        current: str | None = spec.id
        while current is not None and current in combined:
            if current in path:
                cycle = path[path.index(current) :]
                key = frozenset(cycle)
                if key not in reported:
                    reported.add(key)
                    errors.append(
                        make_error(
                            CyclicInheritance,
                            "Inheritance cycle: " + " -> ".join(cycle + [current]),
                            cycle[0],
                            "acyclic inheritance",
                            module,
                        )
                    )
                break
            path.append(current)
            current = combined[current].base
    return errors


def resolve_properties(
    classes: list[ir.ClassSpec],
    properties: list[PropertyDecl],
    graph: ModelGraph,
    declared_ids: set[str],
    module: str | None = None,
) -> None:
    """
    Validate property declarations against the resolved graph.

    Args:
        classes: New classes of the batch, properties attached
        properties: Property declarations of the batch
        graph: Graph including the batch
        declared_ids: Every class id registered in the batch, including
            identical re-declarations of committed classes

    Raises:
        BatchError: On unknown owners, duplicate names, unresolved reference
            types or unknown display properties
    """
    errors: list[ModelError] = []

    for decl in properties:
        if decl.owner in declared_ids:
            continue
        if decl.owner in graph:
            message = (
                f"Property '{decl.spec.name}' cannot be added to committed class "
                f"'{decl.owner}' outside its declaring batch"
            )
        else:
            message = f"Property '{decl.spec.name}' is declared on unknown class '{decl.owner}'"
        errors.append(
            make_error(
                UnresolvedReferenceType,
                message,
                f"{decl.owner}:{decl.spec.name}",
                "property owner",
                module,
            )
        )

    for spec in classes:
        seen: set[str] = set()
        for prop in spec.properties:
            if prop.name in seen:
                errors.append(
                    make_error(
                        DuplicateProperty,
                        f"Property '{prop.name}' is declared twice on '{spec.id}'",
                        f"{spec.id}:{prop.name}",
                        "unique property name",
                        module,
                    )
                )
            seen.add(prop.name)
            if prop.type.is_reference and prop.type.of not in graph:
                errors.append(
                    make_error(
                        UnresolvedReferenceType,
                        f"Property '{prop.name}' of '{spec.id}' refers to unknown class "
                        f"'{prop.type.of}'",
                        f"{spec.id}:{prop.name}",
                        "reference type",
                        module,
                    )
                )
        if spec.label_prop and spec.label_prop not in graph.effective_properties(spec.id):
            errors.append(
                make_error(
                    UnknownField,
                    f"Display property '{spec.label_prop}' is not a property of '{spec.id}'",
                    spec.id,
                    "label property",
                    module,
                )
            )

    if errors:
        raise BatchError(errors, module)
