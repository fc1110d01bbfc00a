"""Locate and decode JSON embedded in free-form model output."""

import json
from typing import Any

from paper2slides.errors import ParseError

_CLOSERS = {"{": "}", "[": "]"}


def find_balanced(text: str, opener: str) -> str | None:
    """Return the first balanced ``{...}`` or ``[...]`` span in ``text``.

    Brackets inside JSON string literals are ignored. Returns None when no
    opener exists or the first one is never closed.
    """
    start = text.find(opener)
    if start == -1:
        return None

    closer = _CLOSERS[opener]
    depth = 0
    in_string = False
    escaped = False

    for position in range(start, len(text)):
        char = text[position]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start : position + 1]

    return None


def _extract(text: str, opener: str, expected: type, label: str) -> Any:
    span = find_balanced(text, opener)
    if span is None:
        raise ParseError(f"No JSON {label} found in response")

    try:
        value = json.loads(span)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON {label} in response: {e}") from e

    if not isinstance(value, expected):
        raise ParseError(f"Response JSON is not an {label}")
    return value


def extract_json_object(text: str) -> dict[str, Any]:
    """Decode the first balanced JSON object in ``text``.

    Raises:
        ParseError: No object found or it does not decode.
    """
    return _extract(text, "{", dict, "object")


def extract_json_array(text: str) -> list[Any]:
    """Decode the first balanced JSON array in ``text``.

    Raises:
        ParseError: No array found or it does not decode.
    """
    return _extract(text, "[", list, "array")
