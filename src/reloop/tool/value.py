"""Argument values — JSON-shaped payloads passed to tools."""

from __future__ import annotations

from typing import Any

from pydantic import JsonValue, TypeAdapter, ValidationError

from reloop.tool.errors import InvalidArgumentsError

# string / number / boolean / null / list / object
ArgumentValue = JsonValue
Arguments = dict[str, JsonValue]

_arguments_adapter: TypeAdapter[dict[str, Any]] = TypeAdapter(Arguments)


def parse_arguments(raw: str) -> Arguments:
    """Parse a raw JSON payload into an argument mapping.

    Tools without parameters still need ``"{}"``; an empty payload is
    not a JSON object.

    Raises:
        InvalidArgumentsError: if the payload is not a JSON object.
    """
    if not raw or not raw.strip():
        raise InvalidArgumentsError("Arguments must be a JSON object: empty payload")
    try:
        return _arguments_adapter.validate_json(raw)
    except ValidationError as e:
        raise InvalidArgumentsError(
            f"Arguments must be a JSON object: {_first_error(e)}"
        ) from e


def encode_arguments(arguments: Arguments) -> str:
    """Serialize an argument mapping back to a JSON string."""
    return _arguments_adapter.dump_json(arguments).decode("utf-8")


def _first_error(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return str(error)
    return errors[0].get("msg", str(error))
