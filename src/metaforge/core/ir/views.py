"""
View descriptor types for metaforge IR.

A viewlet describes how instances of a class are tabulated or listed:
ordered columns, lookup joins, sorting and grouping. Rendering is done by
the presentation runtime; only the descriptor is emitted here.

Example (list view of leads):

    ViewDescriptor(
        target_class="lead.class.Lead",
        descriptor="view.viewlet.List",
        fields=[
            "title",
            FieldConfig(key="$lookup.attachedTo", presenter="contact.component.PersonPresenter"),
            "state",
        ],
        lookup={"attachedTo": "lead.mixin.Customer"},
        view_options=ViewOptions(group_by=["state"], order_by=[("modifiedOn", SortingOrder.DESCENDING)]),
    )
"""

from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LOOKUP_PREFIX = "$lookup"


class ViewletDescriptorKind(StrEnum):
    """Descriptor kinds understood by the presentation runtime."""

    TABLE = "table"
    LIST = "list"
    KANBAN = "kanban"
    DASHBOARD = "dashboard"
    STATUS_TABLE = "status_table"


class SortingOrder(IntEnum):
    ASCENDING = 1
    DESCENDING = -1


class FieldConfig(BaseModel):
    """
    A composite column spec.

    Attributes:
        key: Property name, ``$lookup`` path, or empty when the presenter
            supplies the value
        presenter: Component rendering the cell
        label: Column label
        sorting_key: Key (or keys) used when sorting by this column
        display_props: Layout hints (fixed side, divider, ...)
        props: Extra presenter props
    """

    key: str = ""
    presenter: str | None = None
    label: str | None = None
    sorting_key: str | list[str] | None = None
    display_props: dict[str, Any] | None = None
    props: dict[str, Any] | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def sorting_keys(self) -> list[str]:
        if self.sorting_key is None:
            return []
        if isinstance(self.sorting_key, str):
            return [self.sorting_key]
        return list(self.sorting_key)


FieldSpecLike = str | FieldConfig


class RelatedLookup(BaseModel):
    """Reverse lookup: documents of ``related[0]`` whose ``related[1]`` points here."""

    related: tuple[str, str]

    model_config = ConfigDict(frozen=True)

    @property
    def related_class(self) -> str:
        return self.related[0]


LookupTarget = str | RelatedLookup


class ViewOptionToggle(BaseModel):
    """A user-switchable view option."""

    key: str
    type: str = "toggle"
    default_value: Any = None
    action_target: str | None = None
    action: str | None = None
    label: str | None = None

    model_config = ConfigDict(frozen=True)


class ViewOptions(BaseModel):
    """
    Grouping and ordering rules, applied in listed order.

    Attributes:
        group_by: Grouping keys, first key dominant
        order_by: (key, order) pairs, first pair dominant
        other: User-switchable toggles
        group_depth: Number of grouping levels shown
    """

    group_by: list[str] = Field(default_factory=list)
    order_by: list[tuple[str, SortingOrder]] = Field(default_factory=list)
    other: list[ViewOptionToggle] = Field(default_factory=list)
    group_depth: int | None = None

    model_config = ConfigDict(frozen=True)


class ConfigOptions(BaseModel):
    hidden_keys: list[str] = Field(default_factory=list)
    sortable: bool | None = None
    strict: bool | None = None
    extra_props: dict[str, Any] | None = None

    model_config = ConfigDict(frozen=True)


class ViewDescriptor(BaseModel):
    """
    Payload of a ``view.class.Viewlet`` document.

    Attributes:
        target_class: Class (or mixin) the view is attached to
        descriptor: Descriptor id (table, list, kanban, ...)
        fields: Ordered field specs, in presentation order
        lookup: Join declarations keyed by relation name
        config_options: Column configuration options
        view_options: Grouping and ordering rules
    """

    target_class: str
    descriptor: str
    fields: list[FieldSpecLike] = Field(default_factory=list)
    lookup: dict[str, LookupTarget] = Field(default_factory=dict)
    config_options: ConfigOptions | None = None
    view_options: ViewOptions | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def sort_rules(self) -> list[tuple[str, SortingOrder]]:
        return list(self.view_options.order_by) if self.view_options else []

    @property
    def group_rules(self) -> list[str]:
        return list(self.view_options.group_by) if self.view_options else []

    def field_keys(self) -> list[str]:
        """Keys of all field specs, in order."""
        return [f if isinstance(f, str) else f.key for f in self.fields]
