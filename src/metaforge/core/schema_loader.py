"""
YAML schema source for metaforge.

A schema file declares one batch: classes, mixins and the derivation rules
built on them. Sections are applied in a fixed order (classes, mixins,
documents, mixin applications, views, notification groups/types/rules,
action categories, actions, applications).

Example:

    module: lead
    classes:
      - id: lead.class.Lead
        parent: task.class.Task
        label: lead.string.Lead
        label_prop: title
        properties:
          - {name: title, type: string, index: full_text}
          - {name: attachedTo, type: "ref:contact.class.Contact", read_only: true}
    notifications:
      - class: lead.class.Lead
        group: lead.ids.LeadNotificationGroup
        visible: [comments, state]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from . import ir, prelude
from .actions import TEMPLATES
from .builder import ModelBuilder
from .errors import SchemaLoadError
from .graph import ModelState

logger = logging.getLogger(__name__)

_SCALAR_TYPES = {
    "string": ir.type_string,
    "markup": ir.type_markup,
    "number": ir.type_number,
    "boolean": ir.type_boolean,
    "date": ir.type_date,
    "timestamp": ir.type_timestamp,
}

_REFERENCE_TYPES = {
    "ref": ir.type_ref,
    "collection": ir.collection,
    "array": ir.array_of,
}

_ORDER_NAMES = {
    "asc": ir.SortingOrder.ASCENDING,
    "ascending": ir.SortingOrder.ASCENDING,
    "desc": ir.SortingOrder.DESCENDING,
    "descending": ir.SortingOrder.DESCENDING,
}


# =============================================================================
# Value parsing
# =============================================================================


def parse_value_type(raw: Any) -> ir.ValueType:
    """
    Parse a property type.

    Accepts ``string``/``markup``/..., ``ref:<class>``, ``collection:<class>``,
    ``array:<class>``, ``enum:a,b,c`` or a mapping with ``kind``/``of``/``values``.
    """
    if isinstance(raw, dict):
        return ir.ValueType.model_validate(raw)
    if not isinstance(raw, str):
        raise ValueError(f"Invalid property type: {raw!r}")
    name, _, arg = raw.partition(":")
    if name in _SCALAR_TYPES and not arg:
        return _SCALAR_TYPES[name]()
    if name in _REFERENCE_TYPES and arg:
        return _REFERENCE_TYPES[name](arg)
    if name == "enum" and arg:
        return ir.type_enum(*[v.strip() for v in arg.split(",")])
    raise ValueError(f"Invalid property type: {raw!r}")


def _parse_order(raw: Any) -> tuple[str, ir.SortingOrder]:
    if isinstance(raw, dict):
        key, order = raw["key"], raw.get("order", "asc")
    else:
        key, order = raw
    if isinstance(order, str):
        order = _ORDER_NAMES[order.lower()]
    return key, ir.SortingOrder(order)


def _parse_view_options(raw: dict[str, Any] | None) -> ir.ViewOptions | None:
    if raw is None:
        return None
    data = dict(raw)
    data["order_by"] = [_parse_order(item) for item in data.get("order_by", [])]
    return ir.ViewOptions.model_validate(data)


def _parse_lookup(raw: dict[str, Any] | None) -> dict[str, ir.LookupTarget]:
    lookup: dict[str, ir.LookupTarget] = {}
    for relation, target in (raw or {}).items():
        if isinstance(target, dict):
            lookup[relation] = ir.RelatedLookup.model_validate(target)
        else:
            lookup[relation] = str(target)
    return lookup


def _parse_field(raw: Any) -> ir.FieldSpecLike:
    if isinstance(raw, str):
        return raw
    return ir.FieldConfig.model_validate(raw)


# =============================================================================
# Sections
# =============================================================================


def _declare_properties(builder: ModelBuilder, owner: str, items: list[dict[str, Any]]) -> None:
    for item in items:
        builder.declare_property(
            owner,
            item["name"],
            parse_value_type(item["type"]),
            label=item.get("label"),
            short_label=item.get("short_label"),
            index=ir.IndexKind(item.get("index", "none")),
            read_only=item.get("read_only", False),
            hidden=item.get("hidden", False),
        )


def apply_schema(data: dict[str, Any], builder: ModelBuilder) -> ModelBuilder:
    """Record every declaration of a parsed schema document on ``builder``."""
    for item in data.get("classes", []):
        builder.register_class(
            item["id"],
            item.get("parent"),
            item.get("label"),
            item.get("icon"),
            short_label=item.get("short_label"),
            label_prop=item.get("label_prop"),
        )
        _declare_properties(builder, item["id"], item.get("properties", []))

    for item in data.get("mixins", []):
        builder.register_mixin(item["id"], item["target"], item.get("label"), item.get("icon"))
        _declare_properties(builder, item["id"], item.get("properties", []))

    for item in data.get("documents", []):
        builder.create_doc(
            item["kind"],
            item.get("space", prelude.MODEL_SPACE),
            item.get("payload", {}),
            item.get("id"),
        )

    for item in data.get("apply", []):
        builder.apply_mixin(item["target"], item["mixin"], item.get("payload", {}))

    for item in data.get("views", []):
        config_options = item.get("config_options")
        builder.derive_view(
            item["target"],
            item["descriptor"],
            [_parse_field(f) for f in item.get("fields", [])],
            lookup=_parse_lookup(item.get("lookup")),
            config_options=(
                ir.ConfigOptions.model_validate(config_options) if config_options else None
            ),
            view_options=_parse_view_options(item.get("view_options")),
            view_id=item.get("id"),
        )

    for item in data.get("notification_groups", []):
        builder.register_notification_group(
            item["id"], item["label"], item["object_class"], item.get("icon")
        )

    for item in data.get("notification_types", []):
        spec = {k: v for k, v in item.items() if k != "id"}
        builder.register_notification_type(
            item["id"], ir.NotificationTypeSpec.model_validate(spec)
        )

    for item in data.get("notifications", []):
        builder.expand_notifications(
            item["class"],
            item["group"],
            item.get("silent", []),
            item.get("visible", []),
        )

    for item in data.get("action_categories", []):
        builder.register_action_category(item["id"], item["label"], item.get("visible", True))

    for item in data.get("actions", []):
        builder.register_action(_parse_action(item), item.get("id"))

    for item in data.get("applications", []):
        spec = {k: v for k, v in item.items() if k != "id"}
        builder.register_application(item["id"], ir.ApplicationSpec.model_validate(spec))

    return builder


def _parse_action(item: dict[str, Any]) -> ir.ActionSpec:
    fields = {k: v for k, v in item.items() if k not in ("id", "template")}
    template_name = item.get("template")
    if template_name is None:
        return ir.ActionSpec.model_validate(fields)
    if template_name not in TEMPLATES:
        raise ValueError(f"Unknown action template '{template_name}'")
    target = fields.pop("target")
    return TEMPLATES[template_name].for_target(target, **fields)


# =============================================================================
# Loading
# =============================================================================


def load_schema_file(path: Path, base: ModelState | None = None) -> ModelBuilder:
    """
    Read a schema file into a new batch.

    Args:
        path: YAML schema file
        base: Committed state to resolve against (prelude by default)

    Returns:
        ModelBuilder holding the file's declarations, ready to ``build()``

    Raises:
        SchemaLoadError: If the file cannot be read or a declaration is malformed
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise SchemaLoadError(f"Cannot read schema file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SchemaLoadError(f"{path}: schema must be a mapping")

    name = data.get("module") or path.stem
    builder = ModelBuilder(name=name, base=base)
    try:
        apply_schema(data, builder)
    except (KeyError, ValueError, TypeError, ValidationError) as e:
        raise SchemaLoadError(f"{path}: malformed declaration: {e}") from e

    logger.debug("Loaded schema %s as batch '%s'", path, name)
    return builder
