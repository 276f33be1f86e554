"""
Application types for metaforge IR.

An application is the workbench entry point of a model module: its
navigator lists special views and the space classes users can browse.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SpecialNavModel(BaseModel):
    """A fixed navigator entry (e.g. "My leads", "Archive")."""

    id: str
    label: str
    icon: str | None = None
    component: str
    component_props: dict[str, Any] | None = None
    position: str | None = None  # top | bottom
    visible_if: str | None = None
    space_class: str | None = None

    model_config = ConfigDict(frozen=True)


class SpacesNavModel(BaseModel):
    """A navigator section listing spaces of one class."""

    label: str
    space_class: str
    add_space_label: str | None = None
    create_component: str | None = None

    model_config = ConfigDict(frozen=True)


class NavigatorModel(BaseModel):
    specials: list[SpecialNavModel] = Field(default_factory=list)
    spaces: list[SpacesNavModel] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ApplicationSpec(BaseModel):
    """Payload of a ``workbench.class.Application`` document."""

    label: str
    icon: str | None = None
    alias: str
    hidden: bool = False
    navigator: NavigatorModel | None = None
    nav_header_component: str | None = None

    model_config = ConfigDict(frozen=True)
