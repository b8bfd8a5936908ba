"""Recover structured JSON from free-form model output."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple

from scout.src.utils.models import OracleResponse

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_MARKERS = re.compile(r"```(?:json)?", re.IGNORECASE)

# Classification fields that can still be salvaged from a truncated answer.
PARTIAL_FIELDS: Tuple[Tuple[str, Dict[str, Any]], ...] = (
    ("pageType", {"primaryActions": []}),
)

_CLOSERS = {"{": "}", "[": "]"}


def strip_markers(text: str) -> str:
    """Isolate a ```json fenced block, or drop stray fence markers."""
    match = _FENCED_JSON.search(text or "")
    if match:
        return match.group(1).strip()
    return _MARKERS.sub("", text or "").strip()


def _scan(text: str, start: int) -> Tuple[Optional[int], List[str], bool]:
    """
    Walk from the opening brace tracking nesting and string state.

    Returns the index of the brace closing the outermost object (or None when
    the text ends first), the stack of still-open brackets, and whether the
    text ended inside a string literal.
    """
    stack: List[str] = []
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
        elif char in _CLOSERS:
            stack.append(char)
        elif char in ("}", "]"):
            if stack and _CLOSERS[stack[-1]] == char:
                stack.pop()
            if not stack:
                return index, stack, False
    return None, stack, in_string


def extract_object(text: str) -> Optional[str]:
    """Outermost balanced `{...}` in the text, repaired if it was cut short."""
    cleaned = strip_markers(text)
    start = cleaned.find("{")
    if start == -1:
        return None
    end, open_stack, in_string = _scan(cleaned, start)
    if end is not None:
        return cleaned[start : end + 1]
    return close_truncated(cleaned[start:], open_stack, in_string)


def close_truncated(fragment: str, open_stack: List[str], in_string: bool = False) -> str:
    """Synthesize the missing closing brackets to the depth still open."""
    repaired = fragment
    if in_string:
        repaired += '"'
    repaired = re.sub(r"[,:\s]+$", "", repaired)
    return repaired + "".join(_CLOSERS[opener] for opener in reversed(open_stack))


def _partial(raw: str) -> Optional[Dict[str, Any]]:
    for field_name, defaults in PARTIAL_FIELDS:
        match = re.search(r'"%s"\s*:\s*"([^"]+)"' % re.escape(field_name), raw or "")
        if match:
            data = {field_name: match.group(1)}
            data.update({key: (list(val) if isinstance(val, list) else val) for key, val in defaults.items()})
            return data
    return None


def parse_response(raw: str) -> OracleResponse:
    """Turn raw model text into an OracleResponse, salvaging what it can."""
    fragment = extract_object(raw)
    if fragment is None:
        return OracleResponse(
            success=False,
            raw_response=raw or "",
            error="No JSON structure found in response",
            error_kind="malformed",
        )
    try:
        data = json.loads(fragment)
    except json.JSONDecodeError as exc:
        partial = _partial(raw)
        if partial is not None:
            return OracleResponse(success=True, data=partial, raw_response=raw, partial=True)
        return OracleResponse(
            success=False,
            raw_response=raw,
            error=f"JSON parsing failed: {exc}",
            error_kind="malformed",
        )
    if not isinstance(data, dict):
        return OracleResponse(
            success=False,
            raw_response=raw,
            error="Response JSON is not an object",
            error_kind="malformed",
        )
    return OracleResponse(success=True, data=data, raw_response=raw)
