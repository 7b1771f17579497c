"""
Resource types for the authctl provider.

Each resource type maps a declared configuration block onto management API
calls. Additional types can be discovered via the 'authctl.resources'
entry point group.
"""

from resources.base import (
    AttributeChange,
    Resource,
    ResourceData,
    has_change,
    is_new_resource,
)
from resources.registry import ResourceRegistry, get_registry

__all__ = [
    "AttributeChange",
    "Resource",
    "ResourceData",
    "has_change",
    "is_new_resource",
    "ResourceRegistry",
    "get_registry",
]
