"""Degraded-mode report recovery from raw process output.

Used only when the structured report artifact is missing or unreadable. The
runner's output is scanned for JSON objects from the end backward, since the
final report is the most likely thing to trail the output.
"""

import json
from typing import Any

# Only the tail of very large outputs is scanned.
MAX_SCAN_CHARS = 4 * 1024 * 1024

_DECODER = json.JSONDecoder()


def looks_like_report(value: Any) -> bool:
    """A top-level test report has a suite list plus run-level config or stats."""
    return (
        isinstance(value, dict)
        and isinstance(value.get("suites"), list)
        and ("config" in value or "stats" in value)
    )


def extract_trailing_report(raw_output: str) -> dict[str, Any] | None:
    """Return the last embedded JSON test report in raw_output, or None."""
    text = raw_output[-MAX_SCAN_CHARS:]
    position = text.rfind("{")
    while position != -1:
        try:
            value, _ = _DECODER.raw_decode(text, position)
        except json.JSONDecodeError:
            value = None
        if looks_like_report(value):
            return value
        position = text.rfind("{", 0, position)
    return None
