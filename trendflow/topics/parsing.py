"""
Recovery of structured directions from free-text model output.

Each stage is a plain function so it can be tested on its own:

1. ``strip_code_fences``: drop a surrounding ```/```json fence
2. ``extract_json_object``: first balanced ``{...}``, ignoring braces in strings
3. ``loads_strict``: ``json.loads``
4. ``repair_syntax``: quote bare keys, turn single-quoted strings into JSON strings
5. ``repair_structure``: tolerant repair through ``json_repair``

``parse_payload`` chains them and ``parse_directions`` normalizes the
result into ``Direction`` objects.
"""

import json
import logging
import re
from typing import Any

from json_repair import repair_json

from trendflow.core.errors import MalformedResponseError
from trendflow.topics.schemas import Direction

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"```$")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z0-9_\-]+)\s*:")
_SINGLE_QUOTED_VALUE_RE = re.compile(r":\s*'([^']*)'")
_SINGLE_QUOTED_ITEM_RE = re.compile(r"([\[,]\s*)'([^']*)'(?=\s*[,\]])")


def strip_code_fences(content: str) -> str:
    payload = (content or "").strip()
    if payload.startswith("```"):
        payload = _FENCE_OPEN_RE.sub("", payload, count=1)
        payload = _FENCE_CLOSE_RE.sub("", payload).strip()
    return payload


def extract_json_object(payload: str) -> str:
    """
    Slice out the first balanced top-level ``{...}``.

    Braces inside single- or double-quoted strings do not count, and a
    backslash escapes the next character. When there is no ``{`` or the
    object never closes, the payload is returned unchanged for the repair
    stages to work on.
    """
    start = payload.find("{")
    if start < 0:
        return payload

    depth = 0
    quote: str | None = None
    escape = False
    for i in range(start, len(payload)):
        char = payload[i]
        if escape:
            escape = False
            continue
        if char == "\\":
            escape = True
            continue
        if quote is not None:
            if char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return payload[start:i + 1].strip()

    return payload


def loads_strict(payload: str) -> Any:
    return json.loads(payload)


def _double_quote(value: str) -> str:
    return '"' + value.replace('"', '\\"') + '"'


def repair_syntax(payload: str) -> str | None:
    """
    Targeted fixes for JavaScript-style object literals.

    Returns:
        The rewritten payload, or None when no fix applied
    """
    repaired, keys = _BARE_KEY_RE.subn(lambda m: f'{m.group(1)}"{m.group(2)}":', payload)
    repaired, values = _SINGLE_QUOTED_VALUE_RE.subn(
        lambda m: f": {_double_quote(m.group(1))}", repaired
    )
    repaired, items = _SINGLE_QUOTED_ITEM_RE.subn(
        lambda m: f"{m.group(1)}{_double_quote(m.group(2))}", repaired
    )
    if keys or values or items:
        return repaired
    return None


def repair_structure(payload: str) -> str:
    """Generic tolerant repair (missing brackets, trailing commas, comments)."""
    return repair_json(payload)


def parse_payload(content: str) -> dict[str, Any]:
    """
    Run the recovery stages until one yields an object with a ``directions`` list.

    Raises:
        MalformedResponseError: If every stage fails
    """
    payload = extract_json_object(strip_code_fences(content))

    def candidates():
        yield "strict", lambda: loads_strict(payload)
        repaired = repair_syntax(payload)
        if repaired is not None:
            yield "syntax", lambda: loads_strict(repaired)
        yield "structure", lambda: loads_strict(repair_structure(payload))

    for stage, attempt in candidates():
        try:
            parsed = attempt()
        except (ValueError, TypeError) as e:
            logger.debug(f"JSON recovery stage {stage} failed: {e}")
            continue
        if isinstance(parsed, dict) and isinstance(parsed.get("directions"), list):
            if stage != "strict":
                logger.info(f"Recovered model output with {stage} repair")
            return parsed
        logger.debug(f"JSON recovery stage {stage} produced no directions list")

    raise MalformedResponseError("Model response has no recoverable directions object")


def parse_directions(content: str) -> list[Direction]:
    """Parse model output into normalized directions, dropping untitled entries."""
    payload = parse_payload(content)
    directions = [Direction.from_raw(raw) for raw in payload["directions"]]
    return [d for d in directions if d is not None]
