"""Pull a JSON object out of free-form model output."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_SCAN_LIMIT = 200_000

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


@dataclass(frozen=True)
class ParseResult:
    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def extract_json_object(text: Optional[str], *, max_chars: int = DEFAULT_SCAN_LIMIT) -> ParseResult:
    """Return the JSON object contained in ``text``.

    The whole (optionally fenced) text is tried first. Failing that, the
    first balanced ``{...}`` span within ``max_chars`` characters is parsed.
    Never raises; failures are reported through ``ParseResult.error``.
    """
    if not text or not text.strip():
        return ParseResult(error="empty response")

    stripped = text.strip()
    candidates = [stripped]
    fenced = _FENCE_RE.match(stripped)
    if fenced:
        candidates.append(fenced.group(1).strip())
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return ParseResult(value=parsed)

    span = _first_balanced_object(text[:max_chars])
    if span is None:
        return ParseResult(error="no balanced JSON object found")
    try:
        parsed = json.loads(span)
    except ValueError as exc:
        return ParseResult(error=f"invalid JSON object: {exc}")
    if not isinstance(parsed, dict):
        return ParseResult(error="JSON value is not an object")
    return ParseResult(value=parsed)


def _first_balanced_object(text: str) -> Optional[str]:
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
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
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None
