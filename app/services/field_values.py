# app/services/field_values.py
import json
from typing import Any, Callable, Tuple

from app.core.errors import MalformedFieldJSON

_JSON_OPENERS = ("{", "[")


def looks_like_json(value: str) -> bool:
    return value.startswith(_JSON_OPENERS)


def _parse_json(value: str) -> Any:
    try:
        return json.loads(value)
    except ValueError as e:
        raise MalformedFieldJSON(str(e)) from e


def attempt(parse: Callable[[str], Any], value: str) -> Tuple[bool, Any]:
    """(True, parsed) or (False, value) when the parser rejects it."""
    try:
        return True, parse(value)
    except MalformedFieldJSON:
        return False, value


def parse_field_value(value: str) -> Any:
    """
    Best effort, not a schema: '{...}' / '[...]' become JSON, anything else
    (or JSON that does not parse) stays the raw string.
    """
    if not looks_like_json(value):
        return value
    _, parsed = attempt(_parse_json, value)
    return parsed
