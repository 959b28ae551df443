"""
In-memory Session / ElementHandle doubles for unit tests.

A FakeSession maps LocatorStrategy -> list of FakeHandle. Elements can be
scheduled to appear after a delay, and clicking a handle can run a callback
(e.g. removing the overlay it belongs to).
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from wikisuites.ui_testing.framework.exceptions import NoSuchElementError, SessionError
from wikisuites.ui_testing.framework.locators import LocatorStrategy
from wikisuites.ui_testing.framework.timing import TimingConfig


def fast_timing(**overrides: Any) -> TimingConfig:
    """Timings small enough for unit tests; no settle delays, no back-off."""
    values: Dict[str, Any] = dict(
        default_timeout=0.5,
        strategy_timeout=0.1,
        poll_interval=0.02,
        overlay_probe_timeout=0.05,
        settle_delays={
            "after_dismiss": 0.0,
            "after_tap": 0.0,
            "after_type": 0.0,
            "after_navigation": 0.0,
            "after_page_load": 0.0,
            "after_scroll": 0.0,
        },
        retry_max_attempts=3,
        retry_backoff=0.0,
        retry_backoff_multiplier=1.0,
        retry_max_backoff=0.0,
    )
    settle_delays = overrides.pop("settle_delays", {})
    values.update(overrides)
    values["settle_delays"] = {**values["settle_delays"], **settle_delays}
    return TimingConfig(**values)


class FakeHandle:
    """Scriptable ElementHandle."""

    def __init__(
        self,
        text: str = "",
        displayed: bool = True,
        enabled: bool = True,
        attributes: Optional[Dict[str, Any]] = None,
        on_click: Optional[Callable[[], None]] = None,
        click_error: Optional[BaseException] = None,
    ):
        self.text = text
        self.displayed = displayed
        self.enabled = enabled
        self.attributes = attributes or {}
        self.on_click = on_click
        self.click_error = click_error
        self.clicks = 0
        self.typed: List[str] = []
        self.pressed: List[str] = []
        self.cleared = 0
        self.scrolled = 0

    def click(self) -> None:
        if self.click_error is not None:
            raise self.click_error
        self.clicks += 1
        if self.on_click:
            self.on_click()

    def send_keys(self, text: str) -> None:
        self.typed.append(text)
        self.text += text

    def press(self, key: str) -> None:
        self.pressed.append(key)

    def clear(self) -> None:
        self.cleared += 1
        self.text = ""

    def get_text(self) -> str:
        return self.text

    def get_attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    def is_displayed(self) -> bool:
        return self.displayed

    def is_enabled(self) -> bool:
        return self.enabled

    def scroll_into_view(self) -> None:
        self.scrolled += 1


class FakeSession:
    """Scriptable Session keyed by LocatorStrategy."""

    def __init__(self, ready: bool = True):
        self._elements: Dict[LocatorStrategy, List[FakeHandle]] = {}
        self._scheduled: Dict[LocatorStrategy, Tuple[float, List[FakeHandle]]] = {}
        self.ready = ready
        self.lookups: List[LocatorStrategy] = []
        self.back_presses = 0
        self.scripts: List[Tuple[str, Tuple[Any, ...]]] = []
        self.closed = False
        self.close_error: Optional[BaseException] = None
        self.lost = False
        self.screenshots = 0
        self.url = "about:blank"
        self.opened: List[str] = []

    # -- scripting ------------------------------------------------------------

    def add(self, locator: LocatorStrategy, *handles: FakeHandle) -> FakeHandle:
        """Make `handles` (or one default handle) match `locator`; returns the first."""
        handles = handles or (FakeHandle(),)
        self._elements.setdefault(locator, []).extend(handles)
        return handles[0]

    def add_later(self, locator: LocatorStrategy, delay: float, *handles: FakeHandle) -> FakeHandle:
        handles = handles or (FakeHandle(),)
        self._scheduled[locator] = (time.monotonic() + delay, list(handles))
        return handles[0]

    def remove(self, locator: LocatorStrategy) -> None:
        self._elements.pop(locator, None)

    # -- Session protocol -----------------------------------------------------

    def find_element(self, locator: LocatorStrategy) -> FakeHandle:
        handles = self.find_elements(locator)
        if not handles:
            raise NoSuchElementError(locator)
        return handles[0]

    def find_elements(self, locator: LocatorStrategy) -> List[FakeHandle]:
        self._check()
        self.lookups.append(locator)
        scheduled = self._scheduled.get(locator)
        if scheduled and time.monotonic() >= scheduled[0]:
            self._elements.setdefault(locator, []).extend(scheduled[1])
            del self._scheduled[locator]
        return list(self._elements.get(locator, []))

    def navigate_back(self) -> None:
        self._check()
        self.back_presses += 1

    def current_readiness_flag(self) -> bool:
        self._check()
        return self.ready

    def execute_raw_command(self, script: str, *args: Any) -> Any:
        self._check()
        self.scripts.append((script, args))
        return None

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error

    # -- extras used by page objects ------------------------------------------

    def open_url(self, url: str) -> None:
        self._check()
        self.opened.append(url)
        self.url = f"https://ru.wikipedia.org{url}" if url.startswith("/") else url

    @property
    def current_url(self) -> str:
        return self.url

    def screenshot(self) -> bytes:
        self.screenshots += 1
        return b"\x89PNG\r\n\x1a\n"

    def _check(self) -> None:
        if self.lost:
            raise SessionError("session lost")


class FakeSessionFactory:
    """Session factory recording every session it creates."""

    def __init__(self, fail_first: int = 0, error: Optional[BaseException] = None):
        self.fail_first = fail_first
        self.error = error or SessionError("could not start session")
        self.calls = 0
        self.sessions: List[FakeSession] = []

    def __call__(self) -> FakeSession:
        self.calls += 1
        if self.calls <= self.fail_first:
            raise self.error
        session = FakeSession()
        self.sessions.append(session)
        return session
