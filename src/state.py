"""
State Store - JSON file holding the last applied state of each resource.

Layout::

    {"version": 1,
     "resources": {"auth0_hook.my_hook": {"type": ..., "name": ...,
                                          "id": ..., "attributes": {...},
                                          "tainted": false}}}

Sensitive attributes are stored too (they drive change detection), so the
file is written with owner-only permissions.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STATE_VERSION = 1


@dataclass
class ResourceState:
    """Persisted state of one resource instance."""

    type: str
    name: str
    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    # Created remotely but the create did not finish; replaced on next apply
    tainted: bool = False

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


class StateStore:
    """Load, mutate and save the provider state file."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._resources: Dict[str, ResourceState] = {}

    def load(self) -> "StateStore":
        """Load the state file; a missing file means empty state."""
        if not self.path or not os.path.exists(self.path):
            logger.debug(f"No state file at {self.path}, starting empty")
            return self

        with open(self.path, "r") as f:
            data = json.load(f)

        version = data.get("version")
        if version != STATE_VERSION:
            raise ValueError(
                f"Unsupported state file version {version} in {self.path}"
            )

        self._resources = {
            address: ResourceState(**entry)
            for address, entry in data.get("resources", {}).items()
        }
        logger.debug(f"Loaded {len(self._resources)} resource(s) from {self.path}")
        return self

    def save(self) -> None:
        if not self.path:
            return

        data = {
            "version": STATE_VERSION,
            "resources": {
                address: asdict(entry)
                for address, entry in sorted(self._resources.items())
            },
        }
        tmp_path = f"{self.path}.tmp"
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)

    def get(self, address: str) -> Optional[ResourceState]:
        return self._resources.get(address)

    def put(self, entry: ResourceState) -> None:
        self._resources[entry.address] = entry

    def remove(self, address: str) -> None:
        self._resources.pop(address, None)

    def addresses(self) -> List[str]:
        return sorted(self._resources.keys())

    def entries(self) -> List[ResourceState]:
        return [self._resources[a] for a in self.addresses()]
