"""
Resource Base - declared-configuration access and the resource interface.

Resources map a declared configuration block onto create/read/update/delete
calls against the management API. The management client is passed into
every operation; resources hold no client of their own.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from validation import validate_spec_against_schema

logger = logging.getLogger(__name__)

Condition = Callable[["ResourceData", str], bool]


def is_new_resource() -> Condition:
    """Condition: the resource is being created."""
    return lambda d, key: d.is_new_resource()


def has_change() -> Condition:
    """Condition: the attribute differs from the prior state."""
    return lambda d, key: d.has_change(key)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == {} or value == []


class ResourceData:
    """
    Declared configuration and prior state of a single resource instance.

    Reads come from values set during this operation, then the declared
    configuration, then (for computed attributes left undeclared) the prior
    state. ``state()`` is what gets persisted once the operation is done.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        prior: Optional[Dict[str, Any]] = None,
        resource_id: str = "",
        new_resource: bool = False,
        computed: Iterable[str] = (),
    ):
        self._config = dict(config or {})
        self._prior = dict(prior or {})
        self._values: Dict[str, Any] = {}
        self._id = resource_id or ""
        self._new_resource = new_resource
        self._computed = set(computed)

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, resource_id: Optional[str]) -> None:
        self._id = resource_id or ""

    def is_new_resource(self) -> bool:
        return self._new_resource

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._values:
            return self._values[key]
        if key in self._config:
            return self._config[key]
        if key in self._computed:
            return self._prior.get(key, default)
        return default

    def get_ok(self, key: str) -> Tuple[Any, bool]:
        value = self.get(key)
        return value, not _is_empty(value)

    def _conditional(self, key: str, conditions: Tuple[Condition, ...]) -> Any:
        value = self.get(key)
        if value is None:
            return None
        if conditions and not any(condition(self, key) for condition in conditions):
            return None
        return value

    def get_string(self, key: str, *conditions: Condition) -> Optional[str]:
        """String value of an attribute, or None if unset or a condition fails."""
        value = self._conditional(key, conditions)
        return None if value is None else str(value)

    def get_bool(self, key: str, *conditions: Condition) -> Optional[bool]:
        value = self._conditional(key, conditions)
        return None if value is None else bool(value)

    def get_map(self, key: str) -> Dict[str, Any]:
        return dict(self.get(key) or {})

    def get_set(self, key: str) -> List[Any]:
        """Distinct values of a set attribute, in declaration order."""
        seen: List[Any] = []
        for value in self.get(key) or []:
            if value not in seen:
                seen.append(value)
        return seen

    def get_list(self, key: str) -> List["ResourceData"]:
        """Elements of a nested block list, each wrapped as ResourceData."""
        prior_elements = self._prior.get(key) or []
        elements = []
        for index, element in enumerate(self.get(key) or []):
            prior = prior_elements[index] if index < len(prior_elements) else {}
            elements.append(
                ResourceData(
                    config=element,
                    prior=prior,
                    resource_id=self._id,
                    new_resource=self._new_resource,
                )
            )
        return elements

    def has_change(self, key: str) -> bool:
        """Whether the declared value differs from the prior state."""
        if key not in self._config and key in self._computed:
            return False
        declared = self._config.get(key)
        prior = self._prior.get(key)
        if _is_empty(declared) and _is_empty(prior):
            return False
        return declared != prior

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def to_dict(self) -> Dict[str, Any]:
        return {**self._config, **self._values}

    def state(self) -> Dict[str, Any]:
        """Attributes to persist: declared values overlaid with read-back values."""
        return {k: v for k, v in self.to_dict().items() if v is not None}


@dataclass
class AttributeChange:
    """A declared attribute that differs from the prior state."""

    path: str
    force_new: bool = False


def _walk_properties(schema: Dict[str, Any], prefix: str = ""):
    """Yield (path, property schema) for every attribute, descending into blocks."""
    for key, prop in schema.get("properties", {}).items():
        path = f"{prefix}{key}"
        yield path, prop
        items = prop.get("items")
        if prop.get("type") == "array" and isinstance(items, dict) and "properties" in items:
            yield from _walk_properties(items, prefix=f"{path}.")


def schema_attributes(schema: Dict[str, Any], annotation: str) -> Set[str]:
    """Attribute paths whose schema carries a truthy annotation."""
    return {path for path, prop in _walk_properties(schema) if prop.get(annotation)}


def diff_attributes(
    schema: Dict[str, Any],
    desired: Dict[str, Any],
    prior: Dict[str, Any],
    prefix: str = "",
) -> List[AttributeChange]:
    """
    Compare declared attributes against prior state.

    Read-only attributes are never compared, and optional computed
    attributes only when they are declared.
    """
    changes: List[AttributeChange] = []
    for key, prop in schema.get("properties", {}).items():
        if prop.get("readOnly"):
            continue
        if prop.get("x-computed") and key not in desired:
            continue

        want = desired.get(key)
        have = prior.get(key)
        items = prop.get("items")
        path = f"{prefix}{key}"

        if prop.get("type") == "array" and isinstance(items, dict) and "properties" in items:
            want_list = want or []
            have_list = have or []
            if len(want_list) != len(have_list):
                changes.append(AttributeChange(path, bool(prop.get("x-force-new"))))
                continue
            for index, element in enumerate(want_list):
                changes.extend(
                    diff_attributes(items, element or {}, have_list[index] or {}, f"{path}.")
                )
            continue

        if prop.get("uniqueItems") and isinstance(want, list) and isinstance(have, list):
            if set(want) == set(have):
                continue

        if _is_empty(want) and _is_empty(have):
            continue
        if want != have:
            changes.append(AttributeChange(path, bool(prop.get("x-force-new"))))

    return changes


class Resource(ABC):
    """
    Abstract base class for provider resources.

    Resources are registered with the ResourceRegistry under their type name
    and driven by the Provider. Implementations translate ResourceData into
    management API calls.
    """

    @property
    @abstractmethod
    def type_name(self) -> str:
        """Unique resource type name (e.g., 'auth0_hook')."""
        pass

    @property
    @abstractmethod
    def schema(self) -> Dict[str, Any]:
        """JSON Schema of the declared configuration."""
        pass

    @abstractmethod
    def create(self, d: ResourceData, client) -> None:
        """
        Create the remote object and adopt its id.

        Args:
            d: ResourceData holding the declared configuration
            client: ManagementClient handle
        """
        pass

    @abstractmethod
    def read(self, d: ResourceData, client) -> None:
        """
        Refresh ResourceData from the remote object.

        A remote not-found clears the id instead of raising.
        """
        pass

    @abstractmethod
    def update(self, d: ResourceData, client) -> None:
        """Push the declared configuration to the existing remote object."""
        pass

    @abstractmethod
    def delete(self, d: ResourceData, client) -> None:
        """Delete the remote object; an already-absent object is not an error."""
        pass

    def import_state(self, d: ResourceData, client) -> None:
        """Import by id: the given id is the remote id."""
        self.read(d, client)

    @abstractmethod
    def list_remote(self, client) -> List[Tuple[str, str]]:
        """List remote objects of this type as (id, name) pairs."""
        pass

    def validate(self, config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        return validate_spec_against_schema(config, self.schema)

    @property
    def computed_attributes(self) -> Set[str]:
        return schema_attributes(self.schema, "readOnly") | schema_attributes(
            self.schema, "x-computed"
        )

    @property
    def force_new_attributes(self) -> Set[str]:
        return schema_attributes(self.schema, "x-force-new")

    @property
    def sensitive_attributes(self) -> Set[str]:
        return schema_attributes(self.schema, "writeOnly")

    def data(
        self,
        config: Optional[Dict[str, Any]] = None,
        prior: Optional[Dict[str, Any]] = None,
        resource_id: str = "",
        new_resource: bool = False,
    ) -> ResourceData:
        """Build ResourceData that knows this resource's computed attributes."""
        return ResourceData(
            config=config,
            prior=prior,
            resource_id=resource_id,
            new_resource=new_resource,
            computed=self.computed_attributes,
        )

    def diff(self, desired: Dict[str, Any], prior: Dict[str, Any]) -> List[AttributeChange]:
        return diff_attributes(self.schema, desired, prior)
