"""
Provider - plan and apply declared resources against the management API.

Compares the declared resources with the state file, refreshes tracked
resources from the API, and dispatches create/update/replace/delete to the
registered resource handlers.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import requests
import yaml

from management.client import ManagementError
from resources.base import Resource
from resources.registry import ResourceRegistry, get_registry
from state import ResourceState, StateStore
from validation import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class Declaration:
    """A resource block from the declared configuration."""

    type_name: str
    name: str
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.type_name}.{self.name}"


class ChangeAction(Enum):
    """What apply will do to a resource."""

    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "noop"


@dataclass
class PlannedChange:
    address: str
    type_name: str
    action: ChangeAction
    reason: str = ""
    declaration: Optional[Declaration] = None


@dataclass
class ApplyResult:
    """Outcome of an apply or destroy run."""

    changes: List[PlannedChange] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


def load_declarations(path: str) -> List[Declaration]:
    """
    Load declared resources from a YAML or JSON file.

    The file holds ``resources: [{type, name, config}]``.

    Raises:
        ConfigurationError: If the file structure is invalid
    """
    with open(path, "r") as f:
        if path.endswith(".yaml") or path.endswith(".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict) or not isinstance(data.get("resources", []), list):
        raise ConfigurationError(f"{path}: expected a mapping with a 'resources' list")

    declarations = []
    for index, block in enumerate(data.get("resources") or []):
        if not isinstance(block, dict) or "type" not in block or "name" not in block:
            raise ConfigurationError(
                f"{path}: resources[{index}] must have 'type' and 'name'"
            )
        declarations.append(
            Declaration(
                type_name=block["type"],
                name=block["name"],
                config=block.get("config") or {},
            )
        )
    return declarations


class Provider:
    """
    Drives declared resources to their desired state.

    The management client is passed in and handed to every resource
    operation; the provider keeps no other shared state besides the state
    store.
    """

    def __init__(
        self,
        client,
        registry: Optional[ResourceRegistry] = None,
        state: Optional[StateStore] = None,
    ):
        self.client = client
        self.registry = registry or get_registry()
        self.state = state or StateStore()

    def validate(self, declarations: List[Declaration]) -> List[str]:
        """
        Validate declarations against their resource schemas.

        Returns:
            A list of error messages (empty when everything is valid).
        """
        errors = []
        seen = set()
        for decl in declarations:
            if decl.address in seen:
                errors.append(f"{decl.address}: declared more than once")
                continue
            seen.add(decl.address)

            if not self.registry.has_resource(decl.type_name):
                errors.append(f"{decl.address}: unknown resource type {decl.type_name}")
                continue

            is_valid, error = self.registry.get_resource(decl.type_name).validate(
                decl.config
            )
            if not is_valid:
                errors.append(f"{decl.address}: {error}")
        return errors

    def _check(self, declarations: List[Declaration]) -> None:
        errors = self.validate(declarations)
        if errors:
            raise ConfigurationError("; ".join(errors))

    def refresh(self, address: str) -> Optional[ResourceState]:
        """
        Re-read a tracked resource from the API.

        Returns:
            The refreshed state, or None if the remote object is gone (it is
            then dropped from state).
        """
        entry = self.state.get(address)
        if entry is None:
            return None

        resource = self.registry.get_resource(entry.type)
        d = resource.data(config=entry.attributes, resource_id=entry.id)
        resource.read(d, self.client)

        if not d.id:
            logger.warning(f"{address} no longer exists remotely")
            self.state.remove(address)
            return None

        refreshed = ResourceState(
            type=entry.type,
            name=entry.name,
            id=d.id,
            attributes=d.state(),
            tainted=entry.tainted,
        )
        self.state.put(refreshed)
        return refreshed

    def plan(self, declarations: List[Declaration]) -> List[PlannedChange]:
        """
        Compute the changes needed to reach the declared state.

        Tracked resources are refreshed first, so objects deleted out of band
        are planned for creation.
        """
        self._check(declarations)
        changes: List[PlannedChange] = []
        declared = {decl.address: decl for decl in declarations}

        for decl in declarations:
            resource = self.registry.get_resource(decl.type_name)
            current = self.refresh(decl.address)

            if current is None:
                changes.append(
                    PlannedChange(
                        decl.address, decl.type_name, ChangeAction.CREATE,
                        "not present remotely", decl,
                    )
                )
                continue

            if current.tainted:
                changes.append(
                    PlannedChange(
                        decl.address, decl.type_name, ChangeAction.REPLACE,
                        "tainted by an incomplete create", decl,
                    )
                )
                continue

            diffs = resource.diff(decl.config, current.attributes)
            forcing = [c.path for c in diffs if c.force_new]
            if forcing:
                changes.append(
                    PlannedChange(
                        decl.address, decl.type_name, ChangeAction.REPLACE,
                        f"{', '.join(forcing)} forces replacement", decl,
                    )
                )
            elif diffs:
                changes.append(
                    PlannedChange(
                        decl.address, decl.type_name, ChangeAction.UPDATE,
                        f"changed: {', '.join(c.path for c in diffs)}", decl,
                    )
                )
            else:
                changes.append(
                    PlannedChange(decl.address, decl.type_name, ChangeAction.NOOP, "", decl)
                )

        for entry in self.state.entries():
            if entry.address in declared:
                continue
            if not self._is_registered(entry):
                continue
            changes.append(
                PlannedChange(
                    entry.address, entry.type, ChangeAction.DELETE,
                    "no longer declared",
                )
            )

        return changes

    def _is_registered(self, entry: ResourceState) -> bool:
        """Whether a tracked entry's type is handled; unknown types are left alone."""
        if self.registry.has_resource(entry.type):
            return True
        logger.warning(
            f"Leaving {entry.address} untouched: resource type {entry.type} is not enabled"
        )
        return False

    def apply(self, declarations: List[Declaration]) -> ApplyResult:
        """
        Plan and execute changes.

        A failing resource is recorded and the remaining resources are still
        processed. State is saved after every resource.
        """
        result = ApplyResult(changes=self.plan(declarations))

        for change in result.changes:
            if change.action is ChangeAction.NOOP:
                continue
            try:
                self._execute(change)
            except (
                ManagementError,
                ConfigurationError,
                requests.RequestException,
            ) as e:
                logger.error(f"Failed to {change.action.value} {change.address}: {e}")
                result.errors[change.address] = str(e)
            finally:
                self.state.save()

        return result

    def _execute(self, change: PlannedChange) -> None:
        resource = self.registry.get_resource(change.type_name)

        if change.action is ChangeAction.CREATE:
            self._create(resource, change.declaration)
        elif change.action is ChangeAction.UPDATE:
            self._update(resource, change.declaration)
        elif change.action is ChangeAction.REPLACE:
            logger.info(f"Replacing {change.address}: {change.reason}")
            self._delete(resource, change.address)
            self._create(resource, change.declaration)
        elif change.action is ChangeAction.DELETE:
            self._delete(resource, change.address)

    def _create(self, resource: Resource, decl: Declaration) -> None:
        d = resource.data(config=decl.config, new_resource=True)
        try:
            resource.create(d, self.client)
        except (ManagementError, ConfigurationError, requests.RequestException):
            if d.id:
                # The remote object exists; track it so the next apply replaces it
                self.state.put(
                    ResourceState(
                        type=decl.type_name,
                        name=decl.name,
                        id=d.id,
                        attributes=d.state(),
                        tainted=True,
                    )
                )
                logger.warning(f"{decl.address}: {d.id} created incompletely, marked tainted")
            raise
        if not d.id:
            raise ConfigurationError(f"{decl.address} vanished right after creation")
        self.state.put(
            ResourceState(type=decl.type_name, name=decl.name, id=d.id, attributes=d.state())
        )
        logger.info(f"{decl.address}: created {d.id}")

    def _update(self, resource: Resource, decl: Declaration) -> None:
        entry = self.state.get(decl.address)
        d = resource.data(config=decl.config, prior=entry.attributes, resource_id=entry.id)
        resource.update(d, self.client)
        if not d.id:
            self.state.remove(decl.address)
            return
        self.state.put(
            ResourceState(type=decl.type_name, name=decl.name, id=d.id, attributes=d.state())
        )
        logger.info(f"{decl.address}: updated {d.id}")

    def _delete(self, resource: Resource, address: str) -> None:
        entry = self.state.get(address)
        if entry is None:
            return
        d = resource.data(config=entry.attributes, resource_id=entry.id)
        resource.delete(d, self.client)
        self.state.remove(address)
        logger.info(f"{address}: deleted {entry.id}")

    def destroy(self) -> ApplyResult:
        """Delete every tracked resource."""
        result = ApplyResult()
        for entry in self.state.entries():
            if not self._is_registered(entry):
                continue
            change = PlannedChange(entry.address, entry.type, ChangeAction.DELETE, "destroy")
            result.changes.append(change)
            try:
                self._execute(change)
            except (
                ManagementError,
                ConfigurationError,
                requests.RequestException,
            ) as e:
                logger.error(f"Failed to delete {entry.address}: {e}")
                result.errors[entry.address] = str(e)
            finally:
                self.state.save()
        return result

    def import_resource(self, type_name: str, name: str, resource_id: str) -> ResourceState:
        """
        Start tracking an existing remote object under ``type_name.name``.

        Raises:
            ConfigurationError: If the address is already tracked or the
                remote object does not exist
        """
        address = f"{type_name}.{name}"
        if self.state.get(address) is not None:
            raise ConfigurationError(f"{address} is already managed")

        resource = self.registry.get_resource(type_name)
        d = resource.data(resource_id=resource_id)
        resource.import_state(d, self.client)
        if not d.id:
            raise ConfigurationError(f"{type_name} {resource_id} does not exist")

        entry = ResourceState(type=type_name, name=name, id=d.id, attributes=d.state())
        self.state.put(entry)
        self.state.save()
        logger.info(f"Imported {address} ({d.id})")
        return entry

    def sweep(self, type_name: str, match: str) -> List[str]:
        """
        Delete remote objects whose name contains ``match``.

        Meant for cleaning up after test runs; state is not consulted.

        Returns:
            The ids that were deleted.
        """
        resource = self.registry.get_resource(type_name)
        deleted = []
        for resource_id, name in resource.list_remote(self.client):
            if match not in name:
                continue
            logger.info(f"Sweeping {type_name} {resource_id} ({name})")
            resource.delete(resource.data(resource_id=resource_id), self.client)
            deleted.append(resource_id)
        return deleted
