"""
metaforge - declarative domain-model composition engine.

Registers classes, mixins and properties into a validated type graph and
derives views, notification rules and actions from compact declarations.
"""

from __future__ import annotations

from ._version import get_version

# Re-export commonly used types for convenience
from .core import ir
from .core.builder import BuildResult, ModelBuilder
from .core.errors import BatchError, MetaforgeError, ModelError

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "BatchError",
    "BuildResult",
    "MetaforgeError",
    "ModelBuilder",
    "ModelError",
]
