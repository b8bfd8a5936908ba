"""BrowserDriver backed by Playwright's sync API."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from scout.src.utils.errors import DriverError, DriverInitError, NavigationTimeout

from .driver import BrowserDriver


@contextmanager
def _translate(operation: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as exc:
        raise NavigationTimeout(f"{operation} timed out: {exc}") from exc
    except PlaywrightError as exc:
        raise DriverError(f"{operation} failed: {exc}") from exc


class PlaywrightDriver(BrowserDriver):
    def __init__(
        self,
        *,
        headless: bool = True,
        viewport: Optional[dict] = None,
        browser_name: str = "chromium",
    ) -> None:
        super().__init__()
        self.headless = headless
        self.viewport_size = viewport or {"width": 1280, "height": 800}
        self.browser_name = browser_name
        self._playwright = None
        self._browser = None
        self.page = None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.page is not None:
            return
        try:
            self._playwright = sync_playwright().start()
            launcher = getattr(self._playwright, self.browser_name)
            self._browser = launcher.launch(headless=self.headless)
            self.page = self._browser.new_page(viewport=self.viewport_size)
        except PlaywrightError as exc:
            self.close()
            raise DriverInitError(f"browser launch failed: {exc}") from exc
        self._attach(self.page)

    def close(self) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as exc:
            print(f"[PlaywrightDriver] browser close failed: {exc}")
        finally:
            self._browser = None
            self.page = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None

    def _attach(self, page: Any) -> None:
        page.on("console", lambda msg: self.telemetry.add_console(str(msg.type), str(msg.text)))
        page.on("pageerror", lambda exc: self.telemetry.add_page_error(str(exc)))
        page.on(
            "request",
            lambda req: self.telemetry.add_request(req, str(req.method), str(req.url), str(req.resource_type)),
        )
        page.on(
            "response",
            lambda res: self.telemetry.add_response(
                res.request,
                str(res.request.method),
                str(res.url),
                int(res.status),
                str(res.request.resource_type),
            ),
        )

    def _page(self) -> Any:
        if self.page is None:
            raise DriverError("browser is not started")
        return self.page

    # ------------------------------------------------------------------
    # navigation & waiting
    # ------------------------------------------------------------------
    def navigate(self, url: str, timeout: int) -> Optional[int]:
        with _translate(f"navigate to {url}"):
            response = self._page().goto(url, timeout=timeout, wait_until="domcontentloaded")
        return response.status if response is not None else None

    def wait_for(self, selector: str, state: str, timeout: int) -> None:
        with _translate(f"wait for {selector}"):
            self._page().wait_for_selector(selector, state=state, timeout=timeout)

    def wait_for_idle(self, timeout: int) -> bool:
        try:
            self._page().wait_for_load_state("networkidle", timeout=timeout)
        except PlaywrightTimeoutError:
            return False
        return True

    # ------------------------------------------------------------------
    # elements
    # ------------------------------------------------------------------
    def find(self, selector: str) -> Optional[Any]:
        with _translate(f"query {selector}"):
            return self._page().query_selector(selector)

    def find_all(self, selector: str, limit: int = 10) -> List[Any]:
        with _translate(f"query all {selector}"):
            return list(self._page().query_selector_all(selector))[:limit]

    def click(self, element: Any, timeout: int) -> None:
        with _translate("click"):
            element.click(timeout=timeout)

    def type(self, element: Any, text: str, *, clear: bool = True, timeout: int = 5000) -> None:
        with _translate("type"):
            if clear:
                element.fill("", timeout=timeout)
            element.type(text, delay=50, timeout=timeout)

    def select(self, selector: str, value: str, timeout: int) -> None:
        with _translate(f"select {selector}"):
            self._page().select_option(selector, value, timeout=timeout)

    def hover(self, element: Any, timeout: int) -> None:
        with _translate("hover"):
            element.hover(timeout=timeout)

    def scroll(self, element: Optional[Any] = None) -> None:
        with _translate("scroll"):
            if element is not None:
                element.scroll_into_view_if_needed()
            else:
                self._page().evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    def press(self, key: str) -> None:
        with _translate(f"press {key}"):
            self._page().keyboard.press(key)

    def set_viewport(self, width: int, height: int) -> None:
        with _translate("resize"):
            self._page().set_viewport_size({"width": width, "height": height})

    def is_visible(self, element: Any) -> bool:
        with _translate("visibility check"):
            return bool(element.is_visible())

    def element_text(self, element: Any) -> str:
        with _translate("read text"):
            return (element.text_content() or "").strip()

    def element_attribute(self, element: Any, name: str) -> Optional[str]:
        with _translate(f"read attribute {name}"):
            return element.get_attribute(name)

    def element_tag(self, element: Any) -> str:
        with _translate("read tag"):
            return str(element.evaluate("el => el.tagName"))

    # ------------------------------------------------------------------
    # page state
    # ------------------------------------------------------------------
    def current_url(self) -> str:
        return self._page().url

    def title(self) -> str:
        with _translate("read title"):
            return self._page().title()

    def viewport(self) -> Optional[dict]:
        return self._page().viewport_size

    def screenshot(self) -> bytes:
        with _translate("screenshot"):
            return self._page().screenshot(full_page=True)

    def content(self) -> str:
        with _translate("read content"):
            return self._page().content()

    def evaluate(self, script: str) -> Any:
        with _translate("evaluate"):
            return self._page().evaluate(script)
