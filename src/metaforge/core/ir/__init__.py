"""
metaforge Intermediate Representation (IR) types.

Types are organized into logical submodules; all of them are re-exported
from this package.
"""

# Actions
from .actions import (
    ActionCategorySpec,
    ActionContext,
    ActionInput,
    ActionSpec,
    ActionTemplate,
    ViewContextMode,
)

# Applications
from .application import (
    ApplicationSpec,
    NavigatorModel,
    SpacesNavModel,
    SpecialNavModel,
)

# Classes
from .classes import (
    ClassKind,
    ClassSpec,
)

# Documents
from .documents import (
    Document,
    DocumentDecl,
)

# Identifiers
from .ids import (
    ActionId,
    ApplicationId,
    CategoryId,
    ClassId,
    DocId,
    MixinId,
    NotificationGroupId,
    NotificationTypeId,
    SpaceId,
    ViewletId,
    canonical_json,
    generate_id,
)

# Notifications
from .notifications import (
    NotificationGroupSpec,
    NotificationProvider,
    NotificationTemplates,
    NotificationTypeSpec,
)

# Properties
from .properties import (
    Cardinality,
    IndexKind,
    PropertySpec,
    ValueKind,
    ValueType,
    array_of,
    collection,
    type_boolean,
    type_date,
    type_enum,
    type_markup,
    type_number,
    type_ref,
    type_string,
    type_timestamp,
)

# Views
from .views import (
    LOOKUP_PREFIX,
    ConfigOptions,
    FieldConfig,
    FieldSpecLike,
    LookupTarget,
    RelatedLookup,
    SortingOrder,
    ViewDescriptor,
    ViewletDescriptorKind,
    ViewOptions,
    ViewOptionToggle,
)

__all__ = [
    # Actions
    "ActionCategorySpec",
    "ActionContext",
    "ActionInput",
    "ActionSpec",
    "ActionTemplate",
    "ViewContextMode",
    # Applications
    "ApplicationSpec",
    "NavigatorModel",
    "SpacesNavModel",
    "SpecialNavModel",
    # Classes
    "ClassKind",
    "ClassSpec",
    # Documents
    "Document",
    "DocumentDecl",
    # Identifiers
    "ActionId",
    "ApplicationId",
    "CategoryId",
    "ClassId",
    "DocId",
    "MixinId",
    "NotificationGroupId",
    "NotificationTypeId",
    "SpaceId",
    "ViewletId",
    "canonical_json",
    "generate_id",
    # Notifications
    "NotificationGroupSpec",
    "NotificationProvider",
    "NotificationTemplates",
    "NotificationTypeSpec",
    # Properties
    "Cardinality",
    "IndexKind",
    "PropertySpec",
    "ValueKind",
    "ValueType",
    "array_of",
    "collection",
    "type_boolean",
    "type_date",
    "type_enum",
    "type_markup",
    "type_number",
    "type_ref",
    "type_string",
    "type_timestamp",
    # Views
    "LOOKUP_PREFIX",
    "ConfigOptions",
    "FieldConfig",
    "FieldSpecLike",
    "LookupTarget",
    "RelatedLookup",
    "SortingOrder",
    "ViewDescriptor",
    "ViewletDescriptorKind",
    "ViewOptions",
    "ViewOptionToggle",
]
