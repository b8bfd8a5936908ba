"""Persistent context-store snapshots for scout sessions."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from scout.src.context.store import ContextStore

SESSIONS_ROOT = Path.home() / ".scout" / "sessions"
WORKSPACE_DEFAULT = "workspace_default"


def _safe_key(session_key: str) -> str:
    key = (session_key or WORKSPACE_DEFAULT).strip()
    if not key:
        key = WORKSPACE_DEFAULT
    return re.sub(r"[^a-zA-Z0-9_.-]+", "_", key)


def session_file_path(session_key: str) -> Path:
    return SESSIONS_ROOT / f"{_safe_key(session_key)}.json"


def save_context(store: ContextStore, session_key: str) -> Path:
    SESSIONS_ROOT.mkdir(parents=True, exist_ok=True)
    path = session_file_path(session_key)
    path.write_text(
        json.dumps(store.export_state(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return path


def load_context(session_key: str) -> Optional[Dict[str, Any]]:
    """Exported store state, or None when the file is missing or unreadable."""
    path = session_file_path(session_key)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    return data


def restore_context(store: ContextStore, session_key: str) -> bool:
    data = load_context(session_key)
    if data is None:
        return False
    try:
        store.import_state(data)
    except (ValidationError, TypeError, ValueError):
        store.clear()
        return False
    return True
