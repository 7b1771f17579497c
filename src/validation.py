"""
Schema Validation - JSON Schema validation of declared resource configuration.

Resource schemas are JSON Schema (Draft 7) documents. Besides the standard
keywords they carry provider annotations: ``readOnly`` for attributes only
the API sets, ``writeOnly`` for sensitive attributes, ``x-computed`` for
optional attributes the API fills in when omitted, and ``x-force-new`` for
attributes that cannot change after creation.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Declared configuration is invalid or cannot be applied."""


def validate_resource_schema(schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate that a resource schema is a valid JSON Schema.

    The registry checks every resource type with this at registration.

    Args:
        schema: The schema to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        Draft7Validator.check_schema(schema)
        return True, None
    except SchemaError as e:
        return False, f"Invalid schema: {e.message}"


def validate_spec_against_schema(
    spec: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate a declared resource configuration against its schema.

    Args:
        spec: The declared configuration to validate
        schema: The JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        validator = Draft7Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
        errors = sorted(
            validator.iter_errors(spec),
            key=lambda e: [str(p) for p in e.absolute_path],
        )

        if not errors:
            return True, None

        error_messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            error_messages.append(f"{path}: {error.message}")

        return False, "; ".join(error_messages)

    except ValidationError as e:
        return False, f"Validation error: {str(e)}"
    except Exception as e:
        logger.error(f"Unexpected error during validation: {e}")
        return False, f"Validation failed: {str(e)}"
