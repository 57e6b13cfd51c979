"""Tolerant JSON parsing for LLM-produced payloads."""

import json
import re
from typing import Any

CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def escape_control_characters(json_text: str) -> str:
    """Escape raw newlines, carriage returns and tabs inside JSON strings.

    Characters outside string literals are left alone, so pretty-printed
    JSON keeps its layout.
    """
    result: list[str] = []
    in_string = False
    escaped = False

    for char in json_text:
        if not in_string:
            if char == '"':
                in_string = True
                escaped = False
            result.append(char)
            continue

        if escaped:
            result.append(char)
            escaped = False
        elif char == "\\":
            result.append(char)
            escaped = True
        elif char == '"':
            result.append(char)
            in_string = False
        else:
            result.append(_CONTROL_ESCAPES.get(char, char))

    return "".join(result)


def parse_json_safe(content: str) -> Any:
    """Parse JSON that may be wrapped in a Markdown code block.

    Args:
        content: Raw text, e.g. an LLM response or a saved output file.

    Returns:
        The decoded JSON value.

    Raises:
        json.JSONDecodeError: If the cleaned text is still not valid JSON.
    """
    match = CODE_BLOCK_PATTERN.search(content)
    json_text = match.group(1) if match else content
    return json.loads(escape_control_characters(json_text))
