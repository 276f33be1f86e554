"""
Notification rule expansion for metaforge.

Turns a compact rule ("notify on changes of fields X, Y of class C") into one
notification type document per field. Expansion happens when the batch is
built, once the class's effective properties are known.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from . import ir, prelude
from .errors import ModelError, UnknownField, UnresolvedReferenceType, make_error
from .graph import ModelGraph

logger = logging.getLogger(__name__)

DEFAULT_PROVIDERS = (ir.NotificationProvider.PLATFORM, ir.NotificationProvider.EMAIL)


def default_templates(field_label: str) -> ir.NotificationTemplates:
    """Templates for a generated rule; ``{doc}``/``{sender}`` are filled at delivery."""
    return ir.NotificationTemplates(
        text_template=f"{{doc}} {field_label} was changed by {{sender}}",
        html_template=f"<p>{{doc}} {field_label} was changed by {{sender}}</p>",
        subject_template=f"{{doc}} {field_label} was changed",
    )


def notification_type_id(class_id: str, group: str, field: str) -> ir.NotificationTypeId:
    return ir.NotificationTypeId(f"{group}:{class_id}:{field}")


@dataclass
class NotificationExpansion:
    """A recorded ``expand_notifications`` call."""

    class_id: str
    group: str
    silent_fields: list[str]
    visible_fields: list[str]
    seq: int = 0

    def fields(self) -> dict[str, bool]:
        """
        Field name -> enabled-by-default, in a fixed order.

        A field listed as both silent and visible is treated as visible.
        """
        result: dict[str, bool] = {}
        for name in self.silent_fields:
            result[name] = False
        for name in self.visible_fields:
            result[name] = True
        return dict(sorted(result.items()))

    def overlapping(self) -> list[str]:
        return sorted(set(self.silent_fields) & set(self.visible_fields))

    def type_ids(self) -> list[ir.NotificationTypeId]:
        return [notification_type_id(self.class_id, self.group, name) for name in self.fields()]


def expand_notification_rule(
    expansion: NotificationExpansion,
    graph: ModelGraph,
    module: str | None = None,
) -> tuple[list[ir.DocumentDecl], list[ModelError], list[str]]:
    """
    Expand one rule into notification type declarations.

    Returns:
        Tuple of (declarations, errors, warnings)
    """
    errors: list[ModelError] = []
    warnings: list[str] = []
    decls: list[ir.DocumentDecl] = []

    if expansion.class_id not in graph:
        errors.append(
            make_error(
                UnresolvedReferenceType,
                f"Notification rule refers to unknown class '{expansion.class_id}'",
                expansion.class_id,
                "notification class",
                module,
            )
        )
        return decls, errors, warnings

    for name in expansion.overlapping():
        warnings.append(
            f"Field '{name}' of '{expansion.class_id}' is listed as both silent and "
            "visible; generating it as visible"
        )

    properties = graph.effective_properties(expansion.class_id)
    for name, enabled in expansion.fields().items():
        type_id = notification_type_id(expansion.class_id, expansion.group, name)
        prop = properties.get(name)
        if prop is None and name not in prelude.RESERVED_KEYS:
            errors.append(
                make_error(
                    UnknownField,
                    f"Field '{name}' is not a property of '{expansion.class_id}'",
                    type_id,
                    "notification field",
                    module,
                )
            )
            continue

        spec = _generated_type(expansion, name, prop, enabled, graph)
        decls.append(
            ir.DocumentDecl(
                kind=prelude.NOTIFICATION_TYPE,
                space=prelude.MODEL_SPACE,
                id=type_id,
                payload=spec,
                explicit_id=True,
                seq=expansion.seq,
            )
        )
        logger.debug("Expanded notification %s (enabled=%s)", type_id, enabled)

    return decls, errors, warnings


def _generated_type(
    expansion: NotificationExpansion,
    name: str,
    prop: ir.PropertySpec | None,
    enabled: bool,
    graph: ModelGraph,
) -> ir.NotificationTypeSpec:
    object_class = expansion.class_id
    attached_to_class = None
    if prop is not None and prop.type.kind == ir.ValueKind.COLLECTION:
        # Collection changes are creations/removals of attached documents
        tx_classes = [prelude.TX_CREATE_DOC, prelude.TX_REMOVE_DOC]
        object_class = prop.type.of or object_class
        attached_to_class = expansion.class_id
    elif graph.is_mixin(graph.property_owner(expansion.class_id, name) or ""):
        tx_classes = [prelude.TX_MIXIN]
    else:
        tx_classes = [prelude.TX_UPDATE_DOC]

    label = (prop.label if prop else None) or name
    return ir.NotificationTypeSpec(
        label=label,
        group=expansion.group,
        field=name,
        tx_classes=tx_classes,
        object_class=object_class,
        attached_to_class=attached_to_class,
        templates=default_templates(label),
        providers={provider: enabled for provider in DEFAULT_PROVIDERS},
        generated=True,
    )


def validate_notification_type(
    type_id: str,
    spec: ir.NotificationTypeSpec,
    graph: ModelGraph,
    kind_of: dict[str, str],
    module: str | None = None,
) -> list[ModelError]:
    """Check group, classes, trigger field and transaction classes of a rule."""
    errors: list[ModelError] = []

    if kind_of.get(spec.group) != prelude.NOTIFICATION_GROUP:
        errors.append(
            make_error(
                UnresolvedReferenceType,
                f"Notification group '{spec.group}' is not registered",
                type_id,
                "notification group",
                module,
            )
        )

    for class_ref in (spec.object_class, spec.attached_to_class):
        if class_ref is not None and class_ref not in graph:
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"Notification refers to unknown class '{class_ref}'",
                    type_id,
                    "notification class",
                    module,
                )
            )

    source = spec.attached_to_class or spec.object_class
    if (
        source in graph
        and spec.field not in prelude.RESERVED_KEYS
        and graph.find_property(source, spec.field) is None
    ):
        errors.append(
            make_error(
                UnknownField,
                f"Field '{spec.field}' is not a property of '{source}'",
                type_id,
                "notification field",
                module,
            )
        )

    for tx in spec.tx_classes:
        if tx not in graph or not graph.is_derived(tx, prelude.TX):
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"'{tx}' is not a registered transaction class",
                    type_id,
                    "transaction class",
                    module,
                )
            )
    return errors
