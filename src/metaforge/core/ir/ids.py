"""
Typed identifiers for metaforge IR.

Identifiers are plain strings at runtime, namespaced as
``<module>.<category>.<name>`` (e.g. ``lead.class.Lead``). Each namespace gets
its own ``NewType`` so a class id is not passed where an action id is expected.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, NewType

ClassId = NewType("ClassId", str)
MixinId = NewType("MixinId", str)
DocId = NewType("DocId", str)
SpaceId = NewType("SpaceId", str)
ActionId = NewType("ActionId", str)
CategoryId = NewType("CategoryId", str)
ViewletId = NewType("ViewletId", str)
NotificationGroupId = NewType("NotificationGroupId", str)
NotificationTypeId = NewType("NotificationTypeId", str)
ApplicationId = NewType("ApplicationId", str)

# Opaque references resolved by the presentation runtime
Label = str
Asset = str
Component = str

# Namespace for content-addressed document ids
ID_NAMESPACE = uuid.UUID("6f1c8d52-3b0e-4d7a-9a55-2f0c4b7e9d13")


def canonical_json(value: Any) -> str:
    """Serialize a payload deterministically (sorted keys, no whitespace)."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def generate_id(*parts: Any) -> DocId:
    """
    Generate a document id from its content.

    The same parts always give the same id, so rebuilding an unchanged source
    emits identical documents.
    """
    return DocId(str(uuid.uuid5(ID_NAMESPACE, canonical_json(list(parts)))))
