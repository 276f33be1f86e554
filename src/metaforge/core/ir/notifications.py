"""
Notification types for metaforge IR.

A notification group collects the notification types of one class. Each
notification type binds a change of one field to message templates and
per-provider delivery defaults.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class NotificationProvider(StrEnum):
    """Delivery providers a notification can be sent through."""

    PLATFORM = "platform"
    EMAIL = "email"


class NotificationTemplates(BaseModel):
    """Message templates; ``{doc}`` and ``{sender}`` are filled in at delivery."""

    text_template: str
    html_template: str
    subject_template: str

    model_config = ConfigDict(frozen=True)


class NotificationGroupSpec(BaseModel):
    """Payload of a ``notification.class.NotificationGroup`` document."""

    label: str
    icon: str | None = None
    object_class: str

    model_config = ConfigDict(frozen=True)


class NotificationTypeSpec(BaseModel):
    """
    Payload of a ``notification.class.NotificationType`` document.

    Attributes:
        label: Display label
        group: Notification group id
        field: Field whose change triggers the notification
        tx_classes: Transaction classes that trigger it
        object_class: Class of the changed object
        attached_to_class: For collection fields, the class owning the collection
        templates: Message templates
        providers: Default enablement per delivery provider
        hidden: Hidden from notification settings
        generated: Produced by rule expansion rather than written by hand
        space_subscribe: Subscribe to every document of the space
    """

    label: str | None = None
    group: str
    field: str
    tx_classes: list[str]
    object_class: str
    attached_to_class: str | None = None
    templates: NotificationTemplates | None = None
    providers: dict[NotificationProvider, bool] = Field(default_factory=dict)
    hidden: bool = False
    generated: bool = False
    space_subscribe: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def enabled(self) -> bool:
        return any(self.providers.values())
