"""
Hook resource (``auth0_hook``).

Hook secrets are write-only remotely; after the hook itself is written they
are converged with the secret reconciler.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from management.client import ManagementError, is_not_found
from management.hook import Hook
from resources.base import Resource, ResourceData, is_new_resource
from secret_reconciler import apply_plan, reconcile

logger = logging.getLogger(__name__)

HOOK_TRIGGERS = [
    "credentials-exchange",
    "pre-user-registration",
    "post-user-registration",
    "post-change-password",
    "send-phone-message",
]

# Alphanumerics, spaces and '-'; neither starting nor ending with '-' or a space
HOOK_NAME_PATTERN = r"^[^\s-][\w -]+[^\s-]$"

HOOK_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name", "script", "trigger_id"],
    "additionalProperties": False,
    "properties": {
        "name": {
            "type": "string",
            "pattern": HOOK_NAME_PATTERN,
            "description": "Name of this hook",
        },
        "script": {
            "type": "string",
            "description": "Code to be executed when this hook runs",
        },
        "trigger_id": {
            "type": "string",
            "enum": HOOK_TRIGGERS,
            "description": "Execution stage of this hook",
            "x-force-new": True,
        },
        "secrets": {
            "type": "object",
            "additionalProperties": {"type": "string"},
            "description": "The secrets associated with the hook",
            "writeOnly": True,
        },
        "enabled": {
            "type": "boolean",
            "description": "Whether the hook is enabled, or disabled",
            "x-computed": True,
        },
    },
}


def expand_hook(d: ResourceData) -> Hook:
    return Hook(
        name=d.get_string("name"),
        script=d.get_string("script"),
        trigger_id=d.get_string("trigger_id", is_new_resource()),
        enabled=d.get_bool("enabled"),
    )


def upsert_hook_secrets(d: ResourceData, client) -> None:
    """
    Converge the hook's remote secrets with the declared ``secrets`` map.

    Runs only for new hooks or when ``secrets`` changed since the last
    apply. New hooks are planned against an unknown remote key set.
    """
    if not (d.is_new_resource() or d.has_change("secrets")):
        return

    remote_keys: Optional[List[str]] = None
    if not d.is_new_resource():
        try:
            remote_keys = client.hooks.secrets(d.id).names()
        except ManagementError as e:
            if not is_not_found(e):
                raise
            logger.warning(f"Secrets of hook {d.id} not found, treating as unknown")

    plan = reconcile(remote_keys, d.get_map("secrets"))
    apply_plan(client.hooks, d.id, plan)


class HookResource(Resource):
    """Hook resource handler."""

    @property
    def type_name(self) -> str:
        return "auth0_hook"

    @property
    def schema(self) -> Dict[str, Any]:
        return HOOK_SCHEMA

    def create(self, d: ResourceData, client) -> None:
        hook = expand_hook(d)
        client.hooks.create(hook)
        d.set_id(hook.id)
        logger.info(f"Created hook {hook.id} ({hook.name})")
        upsert_hook_secrets(d, client)
        self.read(d, client)

    def read(self, d: ResourceData, client) -> None:
        try:
            hook = client.hooks.read(d.id)
        except ManagementError as e:
            if is_not_found(e):
                logger.warning(f"Hook {d.id} not found, removing from state")
                d.set_id("")
                return
            raise

        d.set("name", hook.name)
        d.set("script", hook.script)
        d.set("trigger_id", hook.trigger_id)
        d.set("enabled", hook.enabled)

    def update(self, d: ResourceData, client) -> None:
        hook = expand_hook(d)
        client.hooks.update(d.id, hook)
        logger.info(f"Updated hook {d.id}")
        upsert_hook_secrets(d, client)
        self.read(d, client)

    def delete(self, d: ResourceData, client) -> None:
        try:
            client.hooks.delete(d.id)
        except ManagementError as e:
            if is_not_found(e):
                logger.warning(f"Hook {d.id} already deleted")
                d.set_id("")
                return
            raise
        logger.info(f"Deleted hook {d.id}")
        d.set_id("")

    def list_remote(self, client) -> List[Tuple[str, str]]:
        return [(hook.id, hook.name or "") for hook in client.hooks.list()]
