"""Artifact sinks: where per-step captures go once the executor emits them."""
from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from scout.src.utils.models import Artifact, ArtifactKind, RunResult

from .driver import BrowserDriver


def collect_artifact(kind: ArtifactKind, driver: BrowserDriver) -> Any:
    """Raw payload for one artifact kind."""
    if kind == ArtifactKind.SCREENSHOT:
        return driver.screenshot()
    if kind == ArtifactKind.CONSOLE:
        return driver.telemetry.console.recent()
    if kind == ArtifactKind.NETWORK:
        return driver.telemetry.network_snapshot()
    if kind == ArtifactKind.PERFORMANCE:
        return driver.performance_metrics()
    if kind == ArtifactKind.DOM:
        return driver.content()
    raise ValueError(f"unsupported artifact kind: {kind}")


class MemoryArtifactSink:
    """Keeps every emitted artifact in memory."""

    def __init__(self) -> None:
        self.artifacts: List[Artifact] = []

    def emit(self, step_id: str, kind: ArtifactKind, payload: Any = None, *, name: str = "") -> Artifact:
        artifact = Artifact(step_id=step_id, kind=kind, payload=payload)
        self.artifacts.append(artifact)
        return artifact

    def save_run(self, result: RunResult) -> Optional[Path]:
        return None


_SAFE_NAME = re.compile(r"[^a-zA-Z0-9_.-]+")


class FileArtifactSink:
    """Writes artifacts under `<root>/<run-id>/<kind>/`."""

    _EXTENSIONS = {
        ArtifactKind.SCREENSHOT: "png",
        ArtifactKind.DOM: "html",
    }

    def __init__(self, root: str | Path, run_id: Optional[str] = None) -> None:
        self.run_id = run_id or f"run-{int(time.time())}"
        self.run_dir = Path(root) / self.run_id
        for kind in ArtifactKind:
            (self.run_dir / kind.value).mkdir(parents=True, exist_ok=True)
        self.artifacts: List[Artifact] = []

    def emit(self, step_id: str, kind: ArtifactKind, payload: Any = None, *, name: str = "") -> Artifact:
        stem = _SAFE_NAME.sub("_", name or f"{step_id}-{kind.value}")
        ext = self._EXTENSIONS.get(kind, "json")
        path = self.run_dir / kind.value / f"{stem}.{ext}"
        if isinstance(payload, (bytes, bytearray)):
            path.write_bytes(bytes(payload))
        elif isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
        # Binary and markup payloads live on disk only.
        kept = payload if ext == "json" else None
        artifact = Artifact(step_id=step_id, kind=kind, payload=kept, path=str(path))
        self.artifacts.append(artifact)
        return artifact

    def save_run(self, result: RunResult) -> Path:
        path = self.run_dir / "execution-results.json"
        data: Dict[str, Any] = result.model_dump(mode="json", exclude={"steps": {"__all__": {"artifacts": {"__all__": {"payload"}}}}})
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return path
