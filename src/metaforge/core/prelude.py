"""
Base vocabulary every model batch builds on.

Declares the root document classes, the transaction classes notification
rules trigger on, the document kinds metaforge itself emits (viewlets,
actions, notification types, applications) and the class-level decoration
mixins the presentation runtime reads. User batches resolve against this
state unless they pass an explicit base.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from . import ir

if TYPE_CHECKING:
    from .graph import ModelState

logger = logging.getLogger(__name__)

# =============================================================================
# Core classes
# =============================================================================

OBJ = ir.ClassId("core.class.Obj")
DOC = ir.ClassId("core.class.Doc")
ATTACHED_DOC = ir.ClassId("core.class.AttachedDoc")
SPACE = ir.ClassId("core.class.Space")
CLASS = ir.ClassId("core.class.Class")
MIXIN = ir.ClassId("core.class.Mixin")
ATTRIBUTE = ir.ClassId("core.class.Attribute")

TX = ir.ClassId("core.class.Tx")
TX_CREATE_DOC = ir.ClassId("core.class.TxCreateDoc")
TX_UPDATE_DOC = ir.ClassId("core.class.TxUpdateDoc")
TX_REMOVE_DOC = ir.ClassId("core.class.TxRemoveDoc")
TX_MIXIN = ir.ClassId("core.class.TxMixin")

MODEL_SPACE = ir.SpaceId("core.space.Model")

# Keys every document carries; the runtime resolves them without a property
RESERVED_KEYS = frozenset(
    {"_id", "_class", "space", "modifiedOn", "modifiedBy", "createdOn", "createdBy"}
)

# =============================================================================
# Emitted document kinds
# =============================================================================

VIEWLET = ir.ClassId("view.class.Viewlet")
VIEWLET_DESCRIPTOR = ir.ClassId("view.class.ViewletDescriptor")
ACTION = ir.ClassId("view.class.Action")
ACTION_CATEGORY = ir.ClassId("view.class.ActionCategory")
NOTIFICATION_GROUP = ir.ClassId("notification.class.NotificationGroup")
NOTIFICATION_TYPE = ir.ClassId("notification.class.NotificationType")
APPLICATION = ir.ClassId("workbench.class.Application")

DESCRIPTOR_IDS: dict[ir.ViewletDescriptorKind, str] = {
    ir.ViewletDescriptorKind.TABLE: "view.viewlet.Table",
    ir.ViewletDescriptorKind.LIST: "view.viewlet.List",
    ir.ViewletDescriptorKind.KANBAN: "view.viewlet.Kanban",
    ir.ViewletDescriptorKind.DASHBOARD: "view.viewlet.Dashboard",
    ir.ViewletDescriptorKind.STATUS_TABLE: "view.viewlet.StatusTable",
}

CATEGORY_GENERAL = ir.CategoryId("view.category.General")
CATEGORY_NAVIGATION = ir.CategoryId("view.category.Navigation")

# =============================================================================
# Class-level decoration mixins
# =============================================================================

OBJECT_EDITOR = ir.MixinId("view.mixin.ObjectEditor")
OBJECT_PRESENTER = ir.MixinId("view.mixin.ObjectPresenter")
OBJECT_TITLE = ir.MixinId("view.mixin.ObjectTitle")
OBJECT_FACTORY = ir.MixinId("view.mixin.ObjectFactory")
COLLECTION_PRESENTER = ir.MixinId("view.mixin.CollectionPresenter")
COLLECTION_EDITOR = ir.MixinId("view.mixin.CollectionEditor")
CLASS_FILTERS = ir.MixinId("view.mixin.ClassFilters")
CLASS_COLLABORATORS = ir.MixinId("notification.mixin.ClassCollaborators")
SPACE_VIEW = ir.MixinId("workbench.mixin.SpaceView")

_DECORATIONS: dict[str, list[str]] = {
    OBJECT_EDITOR: ["editor"],
    OBJECT_PRESENTER: ["presenter"],
    OBJECT_TITLE: ["titleProvider"],
    OBJECT_FACTORY: ["component"],
    COLLECTION_PRESENTER: ["presenter"],
    COLLECTION_EDITOR: ["editor"],
    CLASS_FILTERS: ["filters"],
    CLASS_COLLABORATORS: ["fields"],
    SPACE_VIEW: ["view"],
}


def build_prelude() -> ModelState:
    """Build the base vocabulary as a committed model state."""
    from .builder import ModelBuilder
    from .graph import ModelState

    builder = ModelBuilder(name="prelude", base=ModelState())

    builder.register_class(OBJ)
    builder.register_class(DOC, OBJ)
    attached = builder.register_class(ATTACHED_DOC, DOC)
    attached.declare_property("attachedTo", ir.type_ref(DOC))
    attached.declare_property("attachedToClass", ir.type_string())
    attached.declare_property("collection", ir.type_string())
    space = builder.register_class(SPACE, DOC)
    space.declare_property("name", ir.type_string(), index=ir.IndexKind.FULL_TEXT)
    space.declare_property("description", ir.type_string())
    space.declare_property("private", ir.type_boolean())
    space.declare_property("archived", ir.type_boolean())
    builder.register_class(CLASS, DOC)
    builder.register_class(MIXIN, CLASS)
    builder.register_class(ATTRIBUTE, DOC)

    builder.register_class(TX, DOC)
    for tx in (TX_CREATE_DOC, TX_UPDATE_DOC, TX_REMOVE_DOC, TX_MIXIN):
        builder.register_class(tx, TX)

    for kind in (
        VIEWLET,
        VIEWLET_DESCRIPTOR,
        ACTION,
        ACTION_CATEGORY,
        NOTIFICATION_GROUP,
        NOTIFICATION_TYPE,
        APPLICATION,
    ):
        builder.register_class(kind, DOC)

    for mixin_id, keys in _DECORATIONS.items():
        handle = builder.register_mixin(mixin_id, CLASS)
        for key in keys:
            handle.declare_property(key, ir.type_string())

    builder.create_doc(SPACE, MODEL_SPACE, {"name": "Model", "private": False}, MODEL_SPACE)
    for kind, descriptor_id in DESCRIPTOR_IDS.items():
        builder.create_doc(VIEWLET_DESCRIPTOR, MODEL_SPACE, {"kind": kind.value}, descriptor_id)
    builder.register_action_category(CATEGORY_GENERAL, "view.string.General")
    builder.register_action_category(CATEGORY_NAVIGATION, "view.string.Navigation")

    result = builder.build()
    logger.debug("Prelude built with %d documents", len(result.documents))
    return result.model


@lru_cache(maxsize=1)
def _cached_prelude() -> ModelState:
    return build_prelude()


def prelude_state() -> ModelState:
    """Prelude state, built once per process; each caller gets its own copy."""
    return _cached_prelude().copy()
