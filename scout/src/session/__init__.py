"""Session storage helpers."""

from .session_store import (
    WORKSPACE_DEFAULT,
    load_context,
    restore_context,
    save_context,
    session_file_path,
)

__all__ = [
    "WORKSPACE_DEFAULT",
    "load_context",
    "restore_context",
    "save_context",
    "session_file_path",
]
