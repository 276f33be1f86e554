"""
Action types for metaforge IR.

Actions are UI-invocable commands. The implementation behind ``action`` is
an opaque id resolved by the runtime.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActionInput(StrEnum):
    """What the action operates on."""

    NONE = "none"
    FOCUS = "focus"
    SELECTION = "selection"
    ANY = "any"


class ViewContextMode(StrEnum):
    WORKBENCH = "workbench"
    BROWSER = "browser"
    EDITOR = "editor"
    PANEL = "panel"
    POPUP = "popup"
    CONTEXT = "context"


class ActionContext(BaseModel):
    """Where an action is offered."""

    mode: list[ViewContextMode] = Field(default_factory=list)
    application: str | None = None
    group: str | None = None

    model_config = ConfigDict(frozen=True)


class ActionCategorySpec(BaseModel):
    """Payload of a ``view.class.ActionCategory`` document."""

    label: str
    visible: bool = True

    model_config = ConfigDict(frozen=True)


class ActionSpec(BaseModel):
    """
    Payload of a ``view.class.Action`` document.

    Attributes:
        action: Implementation id
        action_props: Props passed to the implementation
        label: Display label
        icon: Display icon
        input: Input arity
        category: Action category id
        target: Class the action applies to
        context: Contexts the action is offered in
        key_binding: Keyboard shortcuts
        override: Actions this one supersedes for matching contexts
    """

    action: str
    action_props: dict[str, Any] | None = None
    label: str
    icon: str | None = None
    input: ActionInput = ActionInput.NONE
    category: str | None = None
    target: str
    context: ActionContext = Field(default_factory=ActionContext)
    key_binding: list[str] | None = None
    override: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ActionTemplate(BaseModel):
    """A partial action spec; completed with a target (and overrides) on use."""

    action: str
    action_props: dict[str, Any] | None = None
    label: str
    icon: str | None = None
    input: ActionInput = ActionInput.NONE
    category: str | None = None
    context: ActionContext = Field(default_factory=ActionContext)
    key_binding: list[str] | None = None

    model_config = ConfigDict(frozen=True)

    def for_target(self, target: str, **update: Any) -> ActionSpec:
        data = self.model_dump()
        data.update(target=target, **update)
        return ActionSpec.model_validate(data)
