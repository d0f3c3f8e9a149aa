"""
JSON Schema validation service.

Used for the persisted encryption envelope, the health condition catalog and
patient intake documents. All errors are collected rather than failing on the
first one.
"""

from typing import Any

import jsonschema


def validate_against_schema(data: Any, schema: dict[str, Any]) -> list[str]:
    """
    Validate a value against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    return [error.message for error in validator.iter_errors(data)]


def is_valid(data: Any, schema: dict[str, Any]) -> bool:
    return jsonschema.Draft7Validator(schema).is_valid(data)
