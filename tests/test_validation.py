"""Unit tests for validation.py - JSON Schema validation of declared configuration."""

from resources.hook import HOOK_SCHEMA
from resources.log_stream import LOG_STREAM_SCHEMA
from validation import validate_resource_schema, validate_spec_against_schema


class TestValidateResourceSchema:
    """Tests for validate_resource_schema function."""

    def test_valid_simple_schema(self):
        """Test validation of a simple valid schema."""
        schema = {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "enabled": {"type": "boolean"},
            },
        }
        is_valid, error = validate_resource_schema(schema)
        assert is_valid is True
        assert error is None

    def test_provider_annotations_are_allowed(self):
        """Test that readOnly/writeOnly and x- annotations keep a schema valid."""
        schema = {
            "type": "object",
            "properties": {
                "token": {"type": "string", "writeOnly": True, "x-force-new": True},
                "status": {"type": "string", "x-computed": True},
                "topic": {"type": "string", "readOnly": True},
            },
        }
        is_valid, error = validate_resource_schema(schema)
        assert is_valid is True
        assert error is None

    def test_builtin_resource_schemas_are_valid(self):
        """Test that the shipped resource schemas are themselves valid."""
        assert validate_resource_schema(HOOK_SCHEMA) == (True, None)
        assert validate_resource_schema(LOG_STREAM_SCHEMA) == (True, None)

    def test_invalid_schema_bad_type(self):
        """Test that invalid type value is rejected."""
        schema = {
            "type": "invalid_type",
        }
        is_valid, error = validate_resource_schema(schema)
        assert is_valid is False
        assert error is not None
        assert "Invalid schema" in error

    def test_empty_schema_is_valid(self):
        """Test that empty schema is valid (matches anything)."""
        is_valid, error = validate_resource_schema({})
        assert is_valid is True
        assert error is None


class TestValidateSpecAgainstSchema:
    """Tests for validate_spec_against_schema function."""

    def test_valid_spec_matches_schema(self):
        """Test that valid configuration passes validation."""
        schema = {
            "type": "object",
            "required": ["name"],
            "properties": {"name": {"type": "string"}},
        }
        is_valid, error = validate_spec_against_schema({"name": "hook"}, schema)
        assert is_valid is True
        assert error is None

    def test_missing_required_field(self):
        """Test that missing required field fails validation."""
        schema = {
            "type": "object",
            "required": ["name"],
            "properties": {"name": {"type": "string"}},
        }
        is_valid, error = validate_spec_against_schema({}, schema)
        assert is_valid is False
        assert "(root)" in error
        assert "name" in error

    def test_nested_error_path(self):
        """Test that errors inside nested blocks report their path."""
        schema = {
            "type": "object",
            "properties": {
                "sink": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"splunk_secure": {"type": "boolean"}},
                    },
                }
            },
        }
        is_valid, error = validate_spec_against_schema(
            {"sink": [{"splunk_secure": "yes"}]}, schema
        )
        assert is_valid is False
        assert error.startswith("sink.0.splunk_secure:")

    def test_enum_validation_invalid_value(self):
        """Test that a value outside the enum fails validation."""
        schema = {
            "type": "object",
            "properties": {"status": {"type": "string", "enum": ["active", "paused"]}},
        }
        is_valid, error = validate_spec_against_schema({"status": "stopped"}, schema)
        assert is_valid is False
        assert "status" in error

    def test_additional_properties_not_allowed(self):
        """Test that additional properties are rejected when disallowed."""
        schema = {
            "type": "object",
            "additionalProperties": False,
            "properties": {"name": {"type": "string"}},
        }
        is_valid, error = validate_spec_against_schema(
            {"name": "test", "extra": "not allowed"}, schema
        )
        assert is_valid is False
        assert error is not None

    def test_multiple_errors(self):
        """Test that multiple validation errors are reported in one message."""
        schema = {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "script": {"type": "string"},
            },
        }
        is_valid, error = validate_spec_against_schema({"name": 1, "script": 2}, schema)
        assert is_valid is False
        assert error == "name: 1 is not of type 'string'; script: 2 is not of type 'string'"

    def test_empty_spec_against_empty_schema(self):
        """Test empty configuration against empty schema."""
        is_valid, error = validate_spec_against_schema({}, {})
        assert is_valid is True
        assert error is None
