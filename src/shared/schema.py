"""JSON Schema helpers for tool arguments."""

from typing import Any

from jsonschema import Draft7Validator

# Short type names accepted in parameter definitions
TYPE_ALIASES = {
    "str": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
    "list": "array",
    "dict": "object",
}


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against; empty means anything goes

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    messages = []
    for error in Draft7Validator(schema).iter_errors(data):
        location = ".".join(str(p) for p in error.path)
        messages.append(f"{location}: {error.message}" if location else error.message)

    return not messages, messages


def create_tool_schema(parameters: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Build an object schema from flat parameter definitions.

    Each definition has a ``name`` and optionally ``type``, ``description``,
    ``enum`` and ``default``. A parameter is required unless it has a
    default or sets ``required`` to False.
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for param in parameters:
        kind = param.get("type", "string")
        prop: dict[str, Any] = {
            "type": TYPE_ALIASES.get(kind, kind),
            "description": param.get("description", ""),
        }
        for key in ("enum", "default"):
            if key in param:
                prop[key] = param[key]

        properties[param["name"]] = prop
        if param.get("required", True) and "default" not in param:
            required.append(param["name"])

    return {"type": "object", "properties": properties, "required": required}
