"""
Secret Reconciler - converge a hook's secrets to the declared map.

The API never returns secret values, only names. A plan is therefore
computed from the remote names and the declared name/value map alone:
names missing from the declaration are removed, declared names already
present are re-uploaded, and the rest are added.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from management.hook import HookManager, HookSecrets

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationPlan:
    """Disjoint removals, updates and additions for one hook."""

    to_remove: List[str] = field(default_factory=list)
    to_update: Dict[str, str] = field(default_factory=dict)
    to_add: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.to_remove or self.to_update or self.to_add)


def reconcile(
    remote_keys: Optional[Iterable[str]],
    desired: Optional[Mapping[str, str]],
) -> ReconciliationPlan:
    """
    Plan the secret changes needed to reach the declared state.

    Args:
        remote_keys: Secret names currently held remotely, or None when
            unknown (e.g. the hook was just created)
        desired: Declared secret name -> value map

    Returns:
        A ReconciliationPlan; empty when there is nothing to do.
    """
    desired = dict(desired or {})
    known = None if remote_keys is None else set(remote_keys)

    if not known:
        return ReconciliationPlan(to_add=desired)

    plan = ReconciliationPlan()
    for name, value in desired.items():
        # Values are unreadable remotely, so every shared name is re-uploaded
        if name in known:
            plan.to_update[name] = value
        else:
            plan.to_add[name] = value

    plan.to_remove = sorted(name for name in known if name not in desired)
    return plan


def apply_plan(hooks: HookManager, hook_id: str, plan: ReconciliationPlan) -> None:
    """
    Apply a plan: removals, then updates, then additions.

    Each bucket is one API call and empty buckets are skipped. The first
    failing call raises and the remaining steps are not attempted; running
    reconcile() again against the same declaration converges.
    """
    if plan.is_empty:
        logger.debug(f"Secrets of hook {hook_id} already converged")
        return

    if plan.to_remove:
        logger.info(
            f"Removing secrets from hook {hook_id}: {', '.join(plan.to_remove)}"
        )
        hooks.remove_secrets(hook_id, *plan.to_remove)

    if plan.to_update:
        logger.info(
            f"Updating secrets of hook {hook_id}: {', '.join(sorted(plan.to_update))}"
        )
        hooks.update_secrets(hook_id, HookSecrets(plan.to_update))

    if plan.to_add:
        logger.info(
            f"Adding secrets to hook {hook_id}: {', '.join(sorted(plan.to_add))}"
        )
        hooks.create_secrets(hook_id, HookSecrets(plan.to_add))
