"""
================================================================================
Session Interfaces
================================================================================

The interaction layer only talks to a remote automation backend through the
two protocols below. `web_session.WebSession` (Playwright) and
`mobile_session.MobileSession` (Appium) implement them; unit tests use an
in-memory fake.

A handle returned by a session is valid for the interaction that immediately
follows; the UI behind it may be torn down and rebuilt at any time, so
callers re-resolve instead of holding on to handles.

================================================================================
"""

from __future__ import annotations

from typing import Any, Callable, List, Protocol, runtime_checkable

from .locators import LocatorStrategy


@runtime_checkable
class ElementHandle(Protocol):
    """Live reference to a UI element owned by the current interaction."""

    def click(self) -> None: ...

    def send_keys(self, text: str) -> None: ...

    def press(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def get_text(self) -> str: ...

    def get_attribute(self, name: str) -> Any: ...

    def is_displayed(self) -> bool: ...

    def is_enabled(self) -> bool: ...

    def scroll_into_view(self) -> None: ...


@runtime_checkable
class Session(Protocol):
    """One live connection to a browser or app instance."""

    def find_element(self, locator: LocatorStrategy) -> ElementHandle:
        """Return the first match or raise NoSuchElementError."""
        ...

    def find_elements(self, locator: LocatorStrategy) -> List[ElementHandle]:
        """Return all matches; an empty list when nothing matches."""
        ...

    def navigate_back(self) -> None: ...

    def current_readiness_flag(self) -> bool: ...

    def execute_raw_command(self, script: str, *args: Any) -> Any: ...

    def close(self) -> None: ...


SessionFactory = Callable[[], Session]


__all__ = [
    "ElementHandle",
    "Session",
    "SessionFactory",
]
