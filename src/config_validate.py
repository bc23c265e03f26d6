"""JSON Schema validation of the fpinstall configuration file.

Wraps jsonschema Draft7 validation; the first error (by path) is reported.
"""

from __future__ import annotations

from typing import Any, Dict

from jsonschema import Draft7Validator


class SchemaError(ValueError):
    """Raised when data fails to validate against a provided schema."""


_COMMAND = {"type": "array", "items": {"type": "string"}, "minItems": 1}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "feature_packs": {"type": "array", "items": {"type": "string"}},
        "staged_dir": {"type": "string"},
        "installation": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "thin": {"type": "boolean"},
                "output_repo": {"type": "string"},
                "provisioning_repo": {"type": "string"},
                "transform_artifacts": {"type": "boolean"},
                "transform_verbose": {"type": "boolean"},
                "overridden_artifacts": {
                    "oneOf": [
                        {"type": "string"},
                        {"type": "array", "items": {"type": "string"}},
                    ]
                },
            },
        },
        "maven": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "local_repository": {"type": "string"},
                "remote_repositories": {"type": "array", "items": {"type": "string"}},
                "offline": {"type": "boolean"},
            },
        },
        "transformer": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "command": _COMMAND,
                "configs_dir": {"type": "string"},
                "timeout": {"type": "integer", "minimum": 1},
            },
        },
        "hooks": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "config_generator": _COMMAND,
                "cli_script_runner": _COMMAND,
                "indexer": _COMMAND,
            },
        },
    },
}


def validate(schema: Dict[str, Any], data: Dict[str, Any], what: str = "input") -> None:
    """Validate ``data`` strictly and raise on the first error.

    Args:
        schema: Draft-07 JSON Schema dict.
        data:   Payload to validate.
        what:   Name used in the error message.
    """
    validator = Draft7Validator(schema)
    errs = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errs:
        first = errs[0]
        path = "/".join([str(p) for p in first.path])
        msg = f"Invalid {what} at '{path}': {first.message}"
        raise SchemaError(msg)


def validate_config(data: Dict[str, Any]) -> None:
    """Validate a loaded configuration file."""
    validate(CONFIG_SCHEMA, data, "configuration")
