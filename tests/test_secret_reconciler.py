"""Unit tests for secret_reconciler.py - hook secret reconciliation."""

from unittest.mock import MagicMock, call

import pytest

from management.client import ManagementError
from secret_reconciler import ReconciliationPlan, apply_plan, reconcile


class TestReconciliationPlan:
    """Tests for the ReconciliationPlan dataclass."""

    def test_default_is_empty(self):
        plan = ReconciliationPlan()
        assert plan.to_remove == []
        assert plan.to_update == {}
        assert plan.to_add == {}
        assert plan.is_empty is True

    def test_not_empty_with_removals(self):
        assert ReconciliationPlan(to_remove=["a"]).is_empty is False


class TestReconcile:
    """Tests for reconcile()."""

    def test_empty_remote_and_desired(self):
        """Test that nothing declared and nothing remote yields an empty plan."""
        assert reconcile(set(), {}).is_empty

    def test_unknown_remote_and_empty_desired(self):
        assert reconcile(None, None).is_empty

    def test_classifies_removals_updates_additions(self):
        """Test the basic three-way split."""
        plan = reconcile({"a", "b"}, {"a": "v1", "c": "v2"})
        assert plan.to_remove == ["b"]
        assert plan.to_update == {"a": "v1"}
        assert plan.to_add == {"c": "v2"}

    def test_unknown_remote_adds_everything(self):
        """Test that an unknown baseline treats every secret as an addition."""
        plan = reconcile(None, {"x": "v"})
        assert plan.to_add == {"x": "v"}
        assert plan.to_remove == []
        assert plan.to_update == {}

    def test_empty_remote_adds_everything(self):
        plan = reconcile([], {"x": "v", "y": "w"})
        assert plan.to_add == {"x": "v", "y": "w"}
        assert plan.to_remove == []
        assert plan.to_update == {}

    def test_empty_desired_removes_all(self):
        """Test that clearing the map removes every remote secret."""
        plan = reconcile(["b", "a"], {})
        assert plan.to_remove == ["a", "b"]
        assert plan.to_update == {}
        assert plan.to_add == {}

    def test_shared_keys_always_updated(self):
        """Test that unchanged values are still re-uploaded."""
        plan = reconcile({"a"}, {"a": "same"})
        assert plan.to_update == {"a": "same"}

    def test_accepts_generator(self):
        plan = reconcile((k for k in ["a", "b"]), {"a": "1"})
        assert plan.to_remove == ["b"]
        assert plan.to_update == {"a": "1"}

    def test_buckets_are_disjoint(self):
        plan = reconcile({"a", "b", "c"}, {"b": "1", "d": "2"})
        names = [plan.to_remove, list(plan.to_update), list(plan.to_add)]
        flat = [n for bucket in names for n in bucket]
        assert len(flat) == len(set(flat))
        assert set(flat) == {"a", "b", "c", "d"}

    def test_does_not_mutate_desired(self):
        desired = {"a": "1"}
        plan = reconcile(None, desired)
        plan.to_add["b"] = "2"
        assert desired == {"a": "1"}

    def test_converges_after_partial_application(self):
        """Test that re-planning after the removals were applied converges."""
        desired = {"a": "v1", "c": "v2"}
        remote = {"a", "b"}
        first = reconcile(remote, desired)

        remote -= set(first.to_remove)
        second = reconcile(remote, desired)
        assert second.to_remove == []
        assert second.to_update == first.to_update
        assert second.to_add == first.to_add

        remote |= set(second.to_update) | set(second.to_add)
        third = reconcile(remote, desired)
        assert third.to_remove == []
        assert third.to_add == {}
        assert third.to_update == desired


class TestApplyPlan:
    """Tests for apply_plan()."""

    @pytest.fixture
    def hooks(self):
        return MagicMock()

    def test_empty_plan_issues_no_calls(self, hooks):
        apply_plan(hooks, "hk_1", ReconciliationPlan())
        assert hooks.mock_calls == []

    def test_order_is_remove_update_add(self, hooks):
        """Test that removals run before updates, and updates before additions."""
        plan = ReconciliationPlan(
            to_remove=["b", "c"], to_update={"a": "1"}, to_add={"d": "2"}
        )
        apply_plan(hooks, "hk_1", plan)

        assert hooks.mock_calls == [
            call.remove_secrets("hk_1", "b", "c"),
            call.update_secrets("hk_1", {"a": "1"}),
            call.create_secrets("hk_1", {"d": "2"}),
        ]

    def test_skips_empty_buckets(self, hooks):
        apply_plan(hooks, "hk_1", ReconciliationPlan(to_remove=["a"]))
        hooks.remove_secrets.assert_called_once_with("hk_1", "a")
        hooks.update_secrets.assert_not_called()
        hooks.create_secrets.assert_not_called()

    def test_failure_aborts_remaining_steps(self, hooks):
        """Test that a failed removal stops updates and additions."""
        hooks.remove_secrets.side_effect = ManagementError(429, "Too many requests")
        plan = ReconciliationPlan(
            to_remove=["b"], to_update={"a": "1"}, to_add={"c": "2"}
        )

        with pytest.raises(ManagementError) as exc_info:
            apply_plan(hooks, "hk_1", plan)

        assert exc_info.value.status_code == 429
        hooks.update_secrets.assert_not_called()
        hooks.create_secrets.assert_not_called()

    def test_failed_update_skips_additions(self, hooks):
        hooks.update_secrets.side_effect = ManagementError(400, "Bad Request")
        plan = ReconciliationPlan(to_update={"a": "1"}, to_add={"c": "2"})

        with pytest.raises(ManagementError):
            apply_plan(hooks, "hk_1", plan)

        hooks.create_secrets.assert_not_called()
