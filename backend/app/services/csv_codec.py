"""Line-level CSV codec for the insight import/export files.

Lines are split before they reach :func:`decode_line`, so a quoted field can
never span two physical lines on import. Everything here is lenient: nothing
raises on malformed input.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

QUOTE = '"'
SEPARATOR = ","

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def decode_line(line: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == QUOTE:
            if in_quotes and index + 1 < length and line[index + 1] == QUOTE:
                current.append(QUOTE)
                index += 1
            else:
                in_quotes = not in_quotes
        elif char == SEPARATOR and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1

    # An unterminated quote still yields the partial field.
    fields.append("".join(current))
    return fields


def escape_field(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE


def encode_line(values: list[Any]) -> str:
    return SEPARATOR.join(escape_field(value) for value in values)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def best_effort_json(raw: str, default: Any) -> Any:
    """Decode an embedded JSON value, falling back to ``default`` on any failure.

    Values re-quoted by an outer CSV encoding (``"[""a""]"``) are unwrapped
    first. Failures are logged, never raised.
    """
    if not raw or raw == QUOTE * 2:
        return default

    cleaned = raw
    if len(cleaned) >= 2 and cleaned.startswith(QUOTE) and cleaned.endswith(QUOTE):
        cleaned = cleaned[1:-1].replace(QUOTE * 2, QUOTE)
    try:
        return json.loads(cleaned, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        logger.warning("Failed to parse JSON field %r: %s", raw[:80], exc)
        return default


def best_effort_json_list(raw: str) -> list[Any]:
    value = best_effort_json(raw, [])
    if not isinstance(value, list):
        logger.warning("JSON field %r is not a list, using empty list", raw)
        return []
    return value


def parse_int(raw: str, default: int) -> int:
    if not raw:
        return default
    match = _INT_PREFIX.match(raw)
    if not match:
        return default
    return int(match.group(1))
