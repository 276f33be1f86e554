"""
View derivation support for metaforge.

Validates viewlet descriptors against the class graph and provides the
ordering semantics the descriptors declare: grouping and sorting rules apply
in listed order, first key dominant, ties keeping their input order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from . import ir, prelude
from .errors import (
    InvalidLookupPath,
    ModelError,
    UnknownField,
    UnresolvedReferenceType,
    make_error,
)
from .graph import ModelGraph


def parse_lookup_path(key: str) -> list[str] | None:
    """
    Split a ``$lookup.<relation>.<field>...`` path into segments.

    Returns:
        Segments after the leading ``$lookup`` (relation first), or None if
        the path is malformed
    """
    segments = key.split(".")
    if segments[0] != ir.LOOKUP_PREFIX or len(segments) < 2:
        return None
    if any(not segment for segment in segments[1:]):
        return None
    return segments[1:]


class ViewKeyChecker:
    """Resolves field, sort and group keys of one view against its target class."""

    def __init__(
        self,
        view_id: str,
        view: ir.ViewDescriptor,
        graph: ModelGraph,
        module: str | None = None,
    ):
        self.view_id = view_id
        self.view = view
        self.module = module
        self.properties = graph.effective_properties(view.target_class)

    def check(self, key: str, usage: str) -> ModelError | None:
        if key == "":
            return None
        if key.startswith("$"):
            segments = parse_lookup_path(key)
            if segments is None:
                return make_error(
                    InvalidLookupPath,
                    f"Malformed lookup path '{key}' in {usage}",
                    self.view_id,
                    "lookup path",
                    self.module,
                )
            if segments[0] not in self.view.lookup:
                return make_error(
                    InvalidLookupPath,
                    f"Lookup path '{key}' in {usage} uses relation '{segments[0]}' "
                    f"which is not declared in the view lookup",
                    self.view_id,
                    "lookup path",
                    self.module,
                )
            return None
        root = key.split(".", 1)[0]
        if root in self.properties or root in prelude.RESERVED_KEYS:
            return None
        return make_error(
            UnknownField,
            f"Key '{key}' in {usage} is not a property of '{self.view.target_class}'",
            self.view_id,
            "view field",
            self.module,
        )


def validate_view(
    view_id: str,
    view: ir.ViewDescriptor,
    graph: ModelGraph,
    kind_of: Mapping[str, str],
    module: str | None = None,
) -> list[ModelError]:
    """
    Validate a viewlet descriptor.

    Checks:
    - Target class and descriptor exist
    - Lookup relations are properties (or reserved keys) of the target and
      lookup classes are registered
    - Every field, sorting, grouping, ordering and hidden key resolves
    """
    errors: list[ModelError] = []

    if view.target_class not in graph:
        errors.append(
            make_error(
                UnresolvedReferenceType,
                f"View target class '{view.target_class}' is not registered",
                view_id,
                "view target",
                module,
            )
        )
        return errors

    if kind_of.get(view.descriptor) != prelude.VIEWLET_DESCRIPTOR:
        errors.append(
            make_error(
                UnresolvedReferenceType,
                f"View descriptor '{view.descriptor}' is not registered",
                view_id,
                "view descriptor",
                module,
            )
        )

    checker = ViewKeyChecker(view_id, view, graph, module)
    errors.extend(_validate_lookup(view_id, view, graph, checker.properties, module))

    keys: list[tuple[str, str]] = []
    for spec in view.fields:
        if isinstance(spec, str):
            keys.append((spec, "fields"))
        else:
            keys.append((spec.key, "fields"))
            keys.extend((k, f"sorting key of '{spec.key}'") for k in spec.sorting_keys)
    if view.config_options:
        keys.extend((k, "hidden keys") for k in view.config_options.hidden_keys)
    keys.extend((k, "group_by") for k in view.group_rules)
    keys.extend((k, "order_by") for k, _ in view.sort_rules)

    for key, usage in keys:
        error = checker.check(key, usage)
        if error is not None:
            errors.append(error)
    return errors


def _validate_lookup(
    view_id: str,
    view: ir.ViewDescriptor,
    graph: ModelGraph,
    properties: dict[str, ir.PropertySpec],
    module: str | None,
) -> list[ModelError]:
    errors: list[ModelError] = []
    for relation, target in view.lookup.items():
        prop = properties.get(relation)
        if prop is None and relation not in prelude.RESERVED_KEYS:
            errors.append(
                make_error(
                    InvalidLookupPath,
                    f"Lookup relation '{relation}' is not a property of '{view.target_class}'",
                    view_id,
                    "lookup relation",
                    module,
                )
            )
            continue

        lookup_class = target.related_class if isinstance(target, ir.RelatedLookup) else target
        if lookup_class not in graph:
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"Lookup '{relation}' refers to unknown class '{lookup_class}'",
                    view_id,
                    "lookup class",
                    module,
                )
            )
            continue

        if (
            isinstance(target, str)
            and prop is not None
            and prop.type.is_reference
            and prop.type.of is not None
            and not graph.is_derived(lookup_class, prop.type.of)
        ):
            errors.append(
                make_error(
                    InvalidLookupPath,
                    f"Lookup '{relation}' joins '{lookup_class}', which is not a "
                    f"'{prop.type.of}'",
                    view_id,
                    "lookup class",
                    module,
                )
            )
    return errors


# =============================================================================
# Ordering semantics
# =============================================================================


def _field_value(record: Mapping[str, Any], key: str) -> Any:
    value: Any = record
    for segment in key.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(segment)
    return value


def _sort_key(value: Any, descending: bool = False) -> tuple[int, int, Any]:
    # None sorts last in either order; numbers before strings, anything else as a string
    if value is None:
        return (-1, 0, "") if descending else (1, 0, "")
    if isinstance(value, (int, float)):
        return (0, 0, value)
    if isinstance(value, str):
        return (0, 1, value)
    return (0, 1, str(value))


def sort_records(
    records: Iterable[Mapping[str, Any]],
    order_by: list[tuple[str, ir.SortingOrder]],
) -> list[Mapping[str, Any]]:
    """
    Stable multi-key sort, first rule dominant.

    Applies the rules from last to first, relying on sort stability.
    """
    result = list(records)
    for key, order in reversed(order_by):
        descending = order == ir.SortingOrder.DESCENDING
        result.sort(
            key=lambda r: _sort_key(_field_value(r, key), descending),
            reverse=descending,
        )
    return result


def group_records(
    records: Iterable[Mapping[str, Any]],
    group_by: list[str],
) -> dict[Any, Any]:
    """
    Nest records into groups, one level per key, first key outermost.

    Groups appear in first-seen order and records keep their input order.
    """
    items = list(records)
    if not group_by:
        return {None: items}
    key, rest = group_by[0], group_by[1:]
    groups: dict[Any, list[Mapping[str, Any]]] = {}
    for record in items:
        groups.setdefault(_field_value(record, key), []).append(record)
    if not rest:
        return dict(groups)
    return {value: group_records(members, rest) for value, members in groups.items()}
