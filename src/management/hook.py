"""
Hook entities and API manager.

Hook secrets are write-only: the API returns the secret names with masked
values, never the values themselves.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Placeholder the API returns in place of secret values
MASKED_SECRET_VALUE = "_VALUE_NOT_SHOWN_"


class HookSecrets(dict):
    """Mapping of secret name to secret value."""

    def names(self) -> List[str]:
        return list(self.keys())


@dataclass
class Hook:
    """A hook as exchanged with the management API."""

    id: Optional[str] = None
    name: Optional[str] = None
    script: Optional[str] = None
    trigger_id: Optional[str] = None
    enabled: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.name is not None:
            data["name"] = self.name
        if self.script is not None:
            data["script"] = self.script
        if self.trigger_id is not None:
            data["triggerId"] = self.trigger_id
        if self.enabled is not None:
            data["enabled"] = self.enabled
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Hook":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            script=data.get("script"),
            trigger_id=data.get("triggerId"),
            enabled=data.get("enabled"),
        )


class HookManager:
    """Hook and hook secret endpoints of the management API."""

    path = "api/v2/hooks"

    def __init__(self, client):
        self.client = client

    def create(self, hook: Hook) -> Hook:
        """Create a hook; the passed object adopts the server-assigned fields."""
        created = Hook.from_dict(self.client.post(self.path, hook.to_dict()) or {})
        hook.id = created.id
        if created.enabled is not None:
            hook.enabled = created.enabled
        return hook

    def read(self, hook_id: str) -> Hook:
        return Hook.from_dict(self.client.get(f"{self.path}/{hook_id}") or {})

    def update(self, hook_id: str, hook: Hook) -> Hook:
        self.client.patch(f"{self.path}/{hook_id}", hook.to_dict())
        return hook

    def delete(self, hook_id: str) -> None:
        self.client.delete(f"{self.path}/{hook_id}")

    def list(self) -> List[Hook]:
        return [Hook.from_dict(item) for item in self.client.get(self.path) or []]

    def secrets(self, hook_id: str) -> HookSecrets:
        """Return the hook's secrets; values are masked by the API."""
        return HookSecrets(self.client.get(f"{self.path}/{hook_id}/secrets") or {})

    def create_secrets(self, hook_id: str, secrets: HookSecrets) -> None:
        self.client.post(f"{self.path}/{hook_id}/secrets", dict(secrets))

    def update_secrets(self, hook_id: str, secrets: HookSecrets) -> None:
        self.client.patch(f"{self.path}/{hook_id}/secrets", dict(secrets))

    def remove_secrets(self, hook_id: str, *names: str) -> None:
        self.client.delete(f"{self.path}/{hook_id}/secrets", list(names))
