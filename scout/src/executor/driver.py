"""Abstract browser capability set consumed by the executor."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .telemetry import SessionTelemetry

PERFORMANCE_SCRIPT = """() => {
  const nav = performance.getEntriesByType('navigation')[0];
  if (!nav) { return { timestamp: Date.now() }; }
  return {
    load_time: nav.loadEventEnd - nav.loadEventStart,
    dom_content_loaded: nav.domContentLoadedEventEnd - nav.domContentLoadedEventStart,
    ttfb: nav.responseStart - nav.requestStart,
    dom_complete: nav.domComplete,
    timestamp: Date.now(),
  };
}"""


class BrowserDriver(ABC):
    """
    Element handles are opaque to the executor; it only passes them back to
    the driver. Timeouts are in milliseconds. Failures raise DriverError or
    NavigationTimeout from scout.src.utils.errors.
    """

    def __init__(self) -> None:
        self.telemetry = SessionTelemetry()

    def start(self) -> None:
        """Bring the browser up; raises DriverInitError when it cannot."""

    def close(self) -> None:
        """Release browser resources."""

    @abstractmethod
    def navigate(self, url: str, timeout: int) -> Optional[int]:
        """Load a url and return the HTTP status when known."""

    @abstractmethod
    def find(self, selector: str) -> Optional[Any]: ...

    @abstractmethod
    def find_all(self, selector: str, limit: int = 10) -> List[Any]: ...

    @abstractmethod
    def click(self, element: Any, timeout: int) -> None: ...

    @abstractmethod
    def type(self, element: Any, text: str, *, clear: bool = True, timeout: int = 5000) -> None: ...

    @abstractmethod
    def select(self, selector: str, value: str, timeout: int) -> None: ...

    @abstractmethod
    def hover(self, element: Any, timeout: int) -> None: ...

    @abstractmethod
    def scroll(self, element: Optional[Any] = None) -> None:
        """Scroll the element into view, or to the bottom of the page."""

    @abstractmethod
    def press(self, key: str) -> None: ...

    @abstractmethod
    def set_viewport(self, width: int, height: int) -> None: ...

    @abstractmethod
    def wait_for(self, selector: str, state: str, timeout: int) -> None: ...

    @abstractmethod
    def wait_for_idle(self, timeout: int) -> bool:
        """Wait for network idle; False when it did not settle in time."""

    @abstractmethod
    def current_url(self) -> str: ...

    @abstractmethod
    def title(self) -> str: ...

    @abstractmethod
    def viewport(self) -> Optional[dict]: ...

    @abstractmethod
    def screenshot(self) -> bytes: ...

    @abstractmethod
    def content(self) -> str: ...

    @abstractmethod
    def evaluate(self, script: str) -> Any: ...

    @abstractmethod
    def is_visible(self, element: Any) -> bool: ...

    @abstractmethod
    def element_text(self, element: Any) -> str: ...

    @abstractmethod
    def element_attribute(self, element: Any, name: str) -> Optional[str]: ...

    @abstractmethod
    def element_tag(self, element: Any) -> str: ...

    def performance_metrics(self) -> dict:
        metrics = dict(self.evaluate(PERFORMANCE_SCRIPT) or {})
        metrics["network_requests"] = len(self.telemetry.requests)
        metrics["console_messages"] = len(self.telemetry.console)
        return metrics
