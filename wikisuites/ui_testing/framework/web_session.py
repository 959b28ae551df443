"""
================================================================================
Web Session (Playwright)
================================================================================

Session adapter over Playwright's synchronous API.

Locator mapping:
    stable id            -> [id="..."]
    accessibility label  -> [aria-label="..."]
    structural path      -> XPath when it starts with "/" or "(", CSS otherwise

Readiness flag: document.readyState == "complete".

Playwright errors never leave this module raw: a missing element becomes
NoSuchElementError, a closed page/context/browser becomes SessionError and
anything else an action raises becomes UiAutomationError.

    factory = WebSessionFactory.from_config()
    session = factory()
    session.open_url("https://ru.wikipedia.org")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page, sync_playwright

from wikisuites.common.config_loader import ConfigLoader

from .exceptions import NoSuchElementError, SessionError, UiAutomationError
from .locators import LocatorKind, LocatorStrategy


# Substrings Playwright uses when the target page, context or browser is gone
_CLOSED_MARKERS = (
    "has been closed",
    "Target closed",
    "Browser closed",
    "Connection closed",
)


def _is_closed(error: BaseException) -> bool:
    message = str(error)
    return any(marker in message for marker in _CLOSED_MARKERS)


@contextmanager
def _translate(action: str) -> Iterator[None]:
    try:
        yield
    except PlaywrightError as e:
        if _is_closed(e):
            raise SessionError(f"Browser session lost during {action}: {e}") from e
        raise UiAutomationError(f"{action} failed: {e}") from e


def to_selector(locator: LocatorStrategy) -> str:
    """Translate a LocatorStrategy into a Playwright selector string."""
    if locator.kind is LocatorKind.STABLE_ID:
        return f'[id="{locator.value}"]'
    if locator.kind is LocatorKind.ACCESSIBILITY_LABEL:
        return f'[aria-label="{locator.value}"]'
    if locator.value.startswith(("/", "(")):
        return f"xpath={locator.value}"
    return locator.value


class WebHandle:
    """ElementHandle over a Playwright Locator pinned to one match."""

    def __init__(self, locator: Locator, action_timeout_ms: float):
        self._locator = locator
        self._timeout = action_timeout_ms

    def click(self) -> None:
        with _translate("click"):
            self._locator.click(timeout=self._timeout)

    def send_keys(self, text: str) -> None:
        with _translate("send_keys"):
            self._locator.press_sequentially(text, timeout=self._timeout)

    def press(self, key: str) -> None:
        with _translate(f"press {key}"):
            self._locator.press(key, timeout=self._timeout)

    def clear(self) -> None:
        with _translate("clear"):
            self._locator.clear(timeout=self._timeout)

    def get_text(self) -> str:
        with _translate("get_text"):
            return self._locator.inner_text(timeout=self._timeout).strip()

    def get_attribute(self, name: str) -> Any:
        with _translate(f"get_attribute {name}"):
            return self._locator.get_attribute(name, timeout=self._timeout)

    def is_displayed(self) -> bool:
        try:
            return self._locator.is_visible()
        except PlaywrightError as e:
            if _is_closed(e):
                raise SessionError(f"Browser session lost: {e}") from e
            # Detached from the DOM between lookup and check
            return False

    def is_enabled(self) -> bool:
        try:
            return self._locator.is_enabled(timeout=self._timeout)
        except PlaywrightError as e:
            if _is_closed(e):
                raise SessionError(f"Browser session lost: {e}") from e
            return False

    def scroll_into_view(self) -> None:
        with _translate("scroll_into_view"):
            self._locator.scroll_into_view_if_needed(timeout=self._timeout)

    def __repr__(self) -> str:
        return f"WebHandle({self._locator})"


class WebSession:
    """
    Session over one Playwright page.

    Attributes:
        page: Playwright Page
        base_url: Prefix for relative URLs passed to open_url()
    """

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        action_timeout_ms: float = 10000,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.page = page
        self.base_url = base_url.rstrip("/")
        self.action_timeout_ms = action_timeout_ms
        self._on_close = on_close
        self._closed = False

    # =========================================================================
    # Session protocol
    # =========================================================================

    def find_element(self, locator: LocatorStrategy) -> WebHandle:
        handles = self.find_elements(locator)
        if not handles:
            raise NoSuchElementError(locator)
        return handles[0]

    def find_elements(self, locator: LocatorStrategy) -> List[WebHandle]:
        self._ensure_open()
        selector = to_selector(locator)
        with _translate(f"lookup {locator}"):
            matches = self.page.locator(selector)
            count = matches.count()
        return [WebHandle(matches.nth(i), self.action_timeout_ms) for i in range(count)]

    def navigate_back(self) -> None:
        self._ensure_open()
        with _translate("navigate back"):
            self.page.go_back()

    def current_readiness_flag(self) -> bool:
        self._ensure_open()
        with _translate("readiness check"):
            return self.page.evaluate("document.readyState") == "complete"

    def execute_raw_command(self, script: str, *args: Any) -> Any:
        self._ensure_open()
        with _translate("script"):
            if not args:
                return self.page.evaluate(script)
            return self.page.evaluate(script, args[0] if len(args) == 1 else list(args))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close:
            try:
                self._on_close()
            except PlaywrightError as e:
                raise SessionError(f"Failed to close browser session: {e}") from e
        logger.debug("Web session closed")

    # =========================================================================
    # Browser extras
    # =========================================================================

    def open_url(self, url: str) -> None:
        """Navigate to `url`; relative paths are joined to base_url."""
        self._ensure_open()
        if url.startswith("/"):
            url = f"{self.base_url}{url}"
        logger.info(f"Opening {url}")
        with _translate(f"open {url}"):
            self.page.goto(url, wait_until="domcontentloaded")

    @property
    def current_url(self) -> str:
        return self.page.url

    def title(self) -> str:
        with _translate("title"):
            return self.page.title()

    def screenshot(self) -> bytes:
        with _translate("screenshot"):
            return self.page.screenshot(full_page=False)

    def _ensure_open(self) -> None:
        if self._closed or self.page.is_closed():
            raise SessionError("Browser session is closed")


class WebSessionFactory:
    """
    Zero-arg factory producing a WebSession backed by a fresh browser.

    Each call starts Playwright, launches a browser and opens one page in an
    isolated context; closing the session tears all three down.
    """

    DEFAULT_LAUNCH_ARGS: List[str] = [
        "--disable-notifications",
        "--disable-dev-shm-usage",
        "--no-sandbox",
    ]

    def __init__(
        self,
        base_url: str = "https://ru.wikipedia.org",
        browser_type: str = "chromium",
        headless: bool = True,
        viewport: Optional[Dict[str, int]] = None,
        action_timeout_ms: float = 10000,
        locale: str = "ru-RU",
    ):
        self.base_url = base_url
        self.browser_type = browser_type
        self.headless = headless
        self.viewport = viewport or {"width": 1920, "height": 1080}
        self.action_timeout_ms = action_timeout_ms
        self.locale = locale

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "WebSessionFactory":
        config = config or ConfigLoader()
        return cls(
            base_url=config.get("web.base_url", "https://ru.wikipedia.org"),
            browser_type=config.get("web.browser", "chromium"),
            headless=config.get("web.headless", True),
            viewport={
                "width": config.get("web.viewport_width", 1920),
                "height": config.get("web.viewport_height", 1080),
            },
            action_timeout_ms=config.get("web.action_timeout_ms", 10000.0),
            locale=config.get("web.locale", "ru-RU"),
        )

    def __call__(self) -> WebSession:
        try:
            playwright = sync_playwright().start()
        except PlaywrightError as e:
            raise SessionError(f"Failed to start Playwright: {e}") from e
        try:
            launcher = getattr(playwright, self.browser_type, None)
            if launcher is None:
                raise ValueError(f"Unknown browser type: {self.browser_type}")

            args = self.DEFAULT_LAUNCH_ARGS if self.browser_type == "chromium" else []
            browser = launcher.launch(headless=self.headless, args=args)
            context = browser.new_context(viewport=self.viewport, locale=self.locale)
            context.set_default_timeout(self.action_timeout_ms)
            page = context.new_page()
        except PlaywrightError as e:
            playwright.stop()
            raise SessionError(f"Failed to start {self.browser_type}: {e}") from e
        except Exception:
            playwright.stop()
            raise

        logger.debug(f"Browser started: {self.browser_type} (headless={self.headless})")

        def shutdown() -> None:
            try:
                context.close()
            finally:
                try:
                    browser.close()
                finally:
                    playwright.stop()

        return WebSession(
            page,
            base_url=self.base_url,
            action_timeout_ms=self.action_timeout_ms,
            on_close=shutdown,
        )


__all__ = [
    "WebHandle",
    "WebSession",
    "WebSessionFactory",
    "to_selector",
]
