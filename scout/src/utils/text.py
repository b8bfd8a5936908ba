"""Text helpers shared by similarity and relevance matching."""
from __future__ import annotations

import json
import re
from typing import List

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-_]+")
_PATH_SEPARATORS = re.compile(r"[/\-_.]+")


def split_camel(value: str) -> List[str]:
    """`TestRunReportTable` -> ["Test", "Run", "Report", "Table"]."""
    return [part for part in _CAMEL_BOUNDARY.split(value or "") if part]


def name_words(value: str) -> List[str]:
    """Lowercased words of an identifier, split on case transitions and separators."""
    words: List[str] = []
    for chunk in _SEPARATORS.split(value or ""):
        words.extend(part.lower() for part in split_camel(chunk))
    return [word for word in words if word]


def path_segments(path: str) -> List[str]:
    return [seg.lower() for seg in _PATH_SEPARATORS.split(path or "") if seg]


def contains_either(left: str, right: str) -> bool:
    """Case-insensitive substring containment in either direction."""
    a = (left or "").lower()
    b = (right or "").lower()
    if not a or not b:
        return False
    return a in b or b in a


def quoted(value: str) -> str:
    """Double-quoted selector value with embedded quotes and backslashes escaped."""
    return json.dumps(value or "", ensure_ascii=False)


def text_selector(text: str, limit: int = 60) -> str:
    return "text=" + quoted((text or "")[:limit])
