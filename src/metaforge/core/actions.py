"""
Action registration support for metaforge.

Provides reusable action templates and the checks applied to registered
actions: target class, category ordering, overrides and application context.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from . import ir, prelude
from .errors import ModelError, UnresolvedReferenceType, make_error
from .graph import ModelGraph

logger = logging.getLogger(__name__)

# Implementation ids resolved by the runtime
NAVIGATE = "workbench.actionImpl.Navigate"
SHOW_POPUP = "view.actionImpl.ShowPopup"
ARCHIVE = "view.actionImpl.Archive"
UNARCHIVE = "view.actionImpl.Unarchive"

# =============================================================================
# Templates
# =============================================================================

OPEN = ir.ActionTemplate(
    action="view.actionImpl.Open",
    label="view.string.Open",
    icon="view.icon.Open",
    input=ir.ActionInput.FOCUS,
    category=prelude.CATEGORY_GENERAL,
    key_binding=["Enter"],
    context=ir.ActionContext(mode=[ir.ViewContextMode.BROWSER, ir.ViewContextMode.CONTEXT]),
)

ARCHIVE_SPACE = ir.ActionTemplate(
    action=ARCHIVE,
    label="view.string.Archive",
    icon="view.icon.Archive",
    input=ir.ActionInput.FOCUS,
    category=prelude.CATEGORY_GENERAL,
    context=ir.ActionContext(mode=[ir.ViewContextMode.CONTEXT], group="tools"),
)

UNARCHIVE_SPACE = ir.ActionTemplate(
    action=UNARCHIVE,
    label="view.string.Unarchive",
    icon="view.icon.Archive",
    input=ir.ActionInput.FOCUS,
    category=prelude.CATEGORY_GENERAL,
    context=ir.ActionContext(mode=[ir.ViewContextMode.CONTEXT], group="tools"),
)

TEMPLATES: dict[str, ir.ActionTemplate] = {
    "open": OPEN,
    "archive_space": ARCHIVE_SPACE,
    "unarchive_space": UNARCHIVE_SPACE,
}


# =============================================================================
# Validation
# =============================================================================


def validate_action(
    action_id: str,
    spec: ir.ActionSpec,
    graph: ModelGraph,
    kind_of: Mapping[str, str],
    order: Mapping[str, int],
    module: str | None = None,
) -> tuple[list[ModelError], list[str]]:
    """
    Validate one action.

    Args:
        action_id: Id of the action document
        spec: Action payload
        graph: Resolved class graph
        kind_of: Document id -> kind, committed and batch documents
        order: Batch position of each batch document (committed ones absent)
        module: Batch name

    Returns:
        Tuple of (errors, warnings)
    """
    errors: list[ModelError] = []
    warnings: list[str] = []

    if spec.target not in graph:
        errors.append(
            make_error(
                UnresolvedReferenceType,
                f"Action target '{spec.target}' is not a registered class",
                action_id,
                "action target",
                module,
            )
        )

    if spec.category is not None:
        if kind_of.get(spec.category) != prelude.ACTION_CATEGORY:
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"Action category '{spec.category}' is not registered",
                    action_id,
                    "action category",
                    module,
                )
            )
        elif spec.category in order and order[spec.category] > order.get(action_id, 0):
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"Action category '{spec.category}' is registered after the action using it",
                    action_id,
                    "category precedes action",
                    module,
                )
            )

    for overridden in spec.override:
        if overridden == action_id:
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    "Action cannot override itself",
                    action_id,
                    "action override",
                    module,
                )
            )
        elif kind_of.get(overridden) != prelude.ACTION:
            errors.append(
                make_error(
                    UnresolvedReferenceType,
                    f"Overridden action '{overridden}' is not registered",
                    action_id,
                    "action override",
                    module,
                )
            )
        elif overridden in order and order[overridden] > order.get(action_id, 0):
            warnings.append(
                f"Action '{action_id}' overrides '{overridden}', which is declared later "
                "in the same batch"
            )

    application = spec.context.application
    if application is not None and kind_of.get(application) != prelude.APPLICATION:
        errors.append(
            make_error(
                UnresolvedReferenceType,
                f"Action context application '{application}' is not registered",
                action_id,
                "action application",
                module,
            )
        )

    return errors, warnings
