"""Unit tests for resources/registry.py - resource type registration."""

from typing import Any, Dict
from unittest.mock import MagicMock, patch

import pytest

from resources.base import Resource
from resources.hook import HookResource
from resources.log_stream import LogStreamResource
from resources.registry import (
    ENTRY_POINT_GROUP,
    ResourceRegistry,
    get_registry,
    register_builtin_resources,
    reset_registry,
)


class ClientGrantResource(Resource):
    """Minimal resource type used to exercise the registry."""

    @property
    def type_name(self) -> str:
        return "auth0_client_grant"

    @property
    def schema(self) -> Dict[str, Any]:
        return {"type": "object"}

    def create(self, d, client):
        d.set_id("cgr_1")

    def read(self, d, client):
        pass

    def update(self, d, client):
        pass

    def delete(self, d, client):
        d.set_id("")

    def list_remote(self, client):
        return []


class IncompleteResource(Resource):
    """Resource type that does not implement listing."""

    type_name = "auth0_rule"
    schema = {"type": "object"}

    def create(self, d, client):
        pass

    def read(self, d, client):
        pass

    def update(self, d, client):
        pass

    def delete(self, d, client):
        pass


class BadSchemaResource(ClientGrantResource):
    """Resource type whose schema is not valid JSON Schema."""

    @property
    def type_name(self) -> str:
        return "auth0_bad_schema"

    @property
    def schema(self) -> Dict[str, Any]:
        return {"type": "not-a-type"}


@pytest.fixture(autouse=True)
def clean_registry():
    reset_registry()
    yield
    reset_registry()


class TestResourceRegistry:
    """Tests for ResourceRegistry."""

    def test_register_and_get(self):
        registry = ResourceRegistry()
        registry.register_resource(HookResource)

        assert registry.has_resource("auth0_hook")
        assert isinstance(registry.get_resource("auth0_hook"), HookResource)
        assert registry.list_resources() == ["auth0_hook"]

    def test_get_returns_same_instance(self):
        registry = ResourceRegistry()
        registry.register_resource(HookResource)
        assert registry.get_resource("auth0_hook") is registry.get_resource("auth0_hook")

    def test_unknown_type(self):
        registry = ResourceRegistry()
        registry.register_resource(HookResource)

        with pytest.raises(ValueError, match="Available types: auth0_hook"):
            registry.get_resource("auth0_rule")

    def test_overwrite_warns(self, caplog):
        registry = ResourceRegistry()
        registry.register_resource(HookResource)
        registry.register_resource(HookResource)
        assert "Overwriting existing resource type: auth0_hook" in caplog.text


class TestGlobalRegistry:
    """Tests for the registry singleton."""

    def test_singleton(self):
        assert get_registry() is get_registry()

    def test_reset(self):
        first = get_registry()
        reset_registry()
        assert get_registry() is not first

    @patch("resources.registry.entry_points", return_value=[])
    def test_register_builtin(self, mock_entry_points):
        registry = register_builtin_resources()

        assert registry is get_registry()
        assert sorted(registry.list_resources()) == ["auth0_hook", "auth0_log_stream"]
        mock_entry_points.assert_called_once_with(group=ENTRY_POINT_GROUP)

    @patch("resources.registry.entry_points", return_value=[])
    def test_register_builtin_filtered(self, mock_entry_points):
        registry = register_builtin_resources(["auth0_log_stream"])
        assert registry.list_resources() == ["auth0_log_stream"]
        assert isinstance(registry.get_resource("auth0_log_stream"), LogStreamResource)

    @patch("resources.registry.entry_points")
    def test_entry_point_discovery(self, mock_entry_points):
        """Test that resource types are discovered through entry points."""
        ep = MagicMock()
        ep.name = "client_grant"
        ep.load.return_value = ClientGrantResource
        mock_entry_points.return_value = [ep]

        registry = register_builtin_resources()

        assert registry.has_resource("auth0_client_grant")

    @patch("resources.registry.entry_points")
    def test_broken_entry_point_is_skipped(self, mock_entry_points, caplog):
        ep = MagicMock()
        ep.name = "broken"
        ep.load.side_effect = ImportError("No module named 'broken'")
        mock_entry_points.return_value = [ep]

        registry = register_builtin_resources()

        assert sorted(registry.list_resources()) == ["auth0_hook", "auth0_log_stream"]
        assert "Could not load resource type broken" in caplog.text


class TestResourceContract:
    """Tests for the checks applied to resource types."""

    def test_listing_is_required(self):
        """Test that a resource type without list_remote cannot be instantiated."""
        with pytest.raises(TypeError):
            IncompleteResource()

    def test_invalid_schema_rejected(self):
        registry = ResourceRegistry()

        with pytest.raises(ValueError, match="auth0_bad_schema has an invalid schema"):
            registry.register_resource(BadSchemaResource)

        assert not registry.has_resource("auth0_bad_schema")

    @patch("resources.registry.entry_points")
    def test_entry_point_with_invalid_schema_is_skipped(self, mock_entry_points, caplog):
        ep = MagicMock()
        ep.name = "bad_schema"
        ep.load.return_value = BadSchemaResource
        mock_entry_points.return_value = [ep]

        registry = register_builtin_resources()

        assert sorted(registry.list_resources()) == ["auth0_hook", "auth0_log_stream"]
        assert "Skipping resource type" in caplog.text
