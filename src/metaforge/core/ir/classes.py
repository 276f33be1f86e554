"""
Class and mixin types for metaforge IR.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .properties import PropertySpec


class ClassKind(StrEnum):
    CLASS = "class"
    MIXIN = "mixin"


class ClassSpec(BaseModel):
    """
    A registered class or mixin.

    Classes use single inheritance through ``parent``. Mixins have no parent;
    they attach to instances of ``target`` (or its subclasses) without changing
    the target's own definition.

    Attributes:
        id: Class identifier
        kind: Class or mixin
        parent: Parent class id (classes only)
        target: Target class id (mixins only)
        label: Display label
        icon: Display icon
        short_label: Optional compact label
        label_prop: Property used as the display title of instances
        properties: Properties declared directly on this class
        module: Batch the declaration came from
    """

    id: str
    kind: ClassKind = ClassKind.CLASS
    parent: str | None = None
    target: str | None = None
    label: str | None = None
    icon: str | None = None
    short_label: str | None = None
    label_prop: str | None = None
    properties: list[PropertySpec] = Field(default_factory=list)
    module: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_mixin(self) -> bool:
        return self.kind == ClassKind.MIXIN

    @property
    def base(self) -> str | None:
        """The class this one hangs off: parent for classes, target for mixins."""
        return self.target if self.is_mixin else self.parent

    def get_property(self, name: str) -> PropertySpec | None:
        """Get a property declared directly on this class."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def same_definition(self, other: ClassSpec) -> bool:
        """Compare definitions, ignoring the batch they came from."""
        return self.model_dump(exclude={"module"}) == other.model_dump(exclude={"module"})
