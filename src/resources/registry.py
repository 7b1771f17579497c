"""
Resource Registry - Discovery and registration of resource types.

This module provides the central registry for resource handlers, keyed by
resource type name.
"""

import logging
from importlib.metadata import entry_points
from typing import Dict, Iterable, Optional, Type

from resources.base import Resource
from validation import validate_resource_schema

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "authctl.resources"


class ResourceRegistry:
    """
    Central registry for resource types.

    Handles registration and instantiation of resource handlers.
    """

    def __init__(self):
        # Registered resource classes (not instantiated)
        self._resources: Dict[str, Type[Resource]] = {}

        # Instantiated resource handlers
        self._instances: Dict[str, Resource] = {}

    def register_resource(self, resource_class: Type[Resource]) -> None:
        """
        Register a resource class.

        Args:
            resource_class: The Resource subclass to register

        Raises:
            ValueError: If the resource schema is not valid JSON Schema
        """
        instance = resource_class()
        name = instance.type_name

        is_valid, error = validate_resource_schema(instance.schema)
        if not is_valid:
            raise ValueError(f"Resource type {name} has an invalid schema: {error}")

        if name in self._resources:
            logger.warning(f"Overwriting existing resource type: {name}")

        self._resources[name] = resource_class
        self._instances[name] = instance
        logger.debug(f"Registered resource type: {name}")

    def get_resource(self, type_name: str) -> Resource:
        """
        Get the handler for a resource type.

        Args:
            type_name: The resource type name

        Returns:
            A Resource instance

        Raises:
            ValueError: If the type name is not registered
        """
        if type_name not in self._instances:
            available = ", ".join(sorted(self._resources.keys())) or "none"
            raise ValueError(
                f"Unknown resource type: {type_name}. Available types: {available}"
            )
        return self._instances[type_name]

    def list_resources(self) -> list[str]:
        """List all registered resource type names."""
        return list(self._resources.keys())

    def has_resource(self, type_name: str) -> bool:
        """Check if a resource type is registered."""
        return type_name in self._resources


# Global registry instance
_registry: Optional[ResourceRegistry] = None


def get_registry() -> ResourceRegistry:
    """Get the global resource registry singleton."""
    global _registry
    if _registry is None:
        _registry = ResourceRegistry()
    return _registry


def reset_registry() -> None:
    """Reset the global registry (mainly for testing)."""
    global _registry
    _registry = None


def register_builtin_resources(enabled: Optional[Iterable[str]] = None) -> ResourceRegistry:
    """
    Register the built-in resource types and discover extra ones via
    entry points.

    Args:
        enabled: Resource type names to keep; None or empty keeps all.

    Returns:
        The global registry.
    """
    from resources.hook import HookResource
    from resources.log_stream import LogStreamResource

    registry = get_registry()
    candidates = [LogStreamResource, HookResource]

    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            candidates.append(ep.load())
        except Exception as e:
            logger.warning(f"Could not load resource type {ep.name}: {e}")

    allowed = set(enabled or [])
    for resource_class in candidates:
        if allowed and resource_class().type_name not in allowed:
            continue
        try:
            registry.register_resource(resource_class)
        except ValueError as e:
            logger.warning(f"Skipping resource type: {e}")

    return registry
