"""Per-run browser telemetry buffers handed to issue detectors."""
from __future__ import annotations

import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional


class EventBuffer:
    """Bounded event log; counts what falls off the front."""

    def __init__(self, maxlen: int = 500) -> None:
        self._events: Deque[Dict[str, Any]] = deque(maxlen=maxlen)
        self.dropped = 0

    def add(self, event: Dict[str, Any]) -> None:
        if len(self._events) == self._events.maxlen:
            self.dropped += 1
        self._events.append(event)

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        events = list(self._events)
        if limit is None:
            return events
        return events[-limit:] if limit > 0 else []

    def clear(self) -> None:
        self._events.clear()
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._events)


class SessionTelemetry:
    """Console, page-error and network events seen during one run."""

    def __init__(self, *, maxlen: int = 800) -> None:
        self.maxlen = maxlen
        self.console = EventBuffer(maxlen=maxlen)
        self.errors = EventBuffer(maxlen=maxlen)
        self.requests = EventBuffer(maxlen=maxlen)
        self._request_seq = 0
        self._request_ids: Dict[Any, str] = {}

    def _next_request_id(self) -> str:
        self._request_seq += 1
        return f"req_{self._request_seq}"

    def add_console(self, level: str, text: str) -> None:
        self.console.add({"ts": int(time.time() * 1000), "type": level, "text": text})

    def add_page_error(self, text: str) -> None:
        self.errors.add({"ts": int(time.time() * 1000), "type": "pageerror", "text": text})

    def add_request(self, key: Any, method: str, url: str, resource_type: str = "") -> str:
        req_id = self._next_request_id()
        self._request_ids[key] = req_id
        # requests that never get a response must not pile up
        while len(self._request_ids) > self.maxlen:
            del self._request_ids[next(iter(self._request_ids))]
        self.requests.add(
            {
                "request_id": req_id,
                "ts": int(time.time() * 1000),
                "stage": "request",
                "method": method,
                "url": url,
                "status": None,
                "resource_type": resource_type,
            }
        )
        return req_id

    def add_response(
        self,
        key: Any,
        method: str,
        url: str,
        status: int,
        resource_type: str = "",
    ) -> str:
        req_id = self._request_ids.pop(key, None) or self._next_request_id()
        self.requests.add(
            {
                "request_id": req_id,
                "ts": int(time.time() * 1000),
                "stage": "response",
                "method": method,
                "url": url,
                "status": int(status),
                "resource_type": resource_type,
            }
        )
        return req_id

    def network_snapshot(self, limit: Optional[int] = None) -> Dict[str, Any]:
        rows = self.requests.recent(limit)
        requests = [row for row in rows if row["stage"] == "request"]
        responses = [row for row in rows if row["stage"] == "response"]
        return {
            "requests": requests,
            "responses": responses,
            "summary": {
                "total_requests": len(requests),
                "successful_responses": sum(1 for row in responses if row["status"] < 400),
                "failed_responses": sum(1 for row in responses if row["status"] >= 400),
            },
        }

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "console": self.console.recent(),
            "errors": self.errors.recent(),
            "network": self.requests.recent(),
        }

    def clear(self) -> None:
        self.console.clear()
        self.errors.clear()
        self.requests.clear()
        self._request_ids.clear()
