"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Every interaction helper follows the same sequence:
    dismiss overlays -> resolve element -> act -> settle

Subclasses declare their elements in `_build_elements()` and their known
overlays in `OVERLAYS`; both are fixed at construction time.

    class SearchPage(BasePage):
        OVERLAYS = (OverlaySignature.of("cookies", LocatorStrategy.by_stable_id("accept")),)

        def _build_elements(self):
            return {
                "search_input": LogicalElement.of(
                    "search input",
                    LocatorStrategy.by_stable_id("searchInput"),
                    LocatorStrategy.by_structural_path("input[name='search']"),
                ),
            }

        def search(self, query):
            self.type_text("search_input", query)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

import allure
from loguru import logger

from .element_resolver import ElementResolver, InteractionMode
from .exceptions import UiAutomationError
from .locators import LogicalElement
from .overlay_dismisser import OverlayDismisser, OverlaySignature
from .session import ElementHandle, Session
from .settle_waiter import SettleWaiter
from .timing import TimingConfig


# Default output directory for screenshots
SCREENSHOT_DIR = Path(__file__).parent.parent / "screenshots"


class BasePage:
    """
    Base class for all page objects.

    Attributes:
        session: Live automation session (owned by the caller)
        elements: Read-only mapping of element key -> LogicalElement
        resolver: ElementResolver bound to the session
        waiter: SettleWaiter for condition waits and settle delays
        dismisser: OverlayDismisser loaded with OVERLAYS
    """

    # Override in subclasses, in dismissal priority order
    OVERLAYS: Sequence[OverlaySignature] = ()

    def __init__(self, session: Session, timing: Optional[TimingConfig] = None):
        """
        Initialize page object.

        Args:
            session: Live session; its lifecycle stays with the caller
            timing: Timeouts and settle delays (loaded from config if omitted)
        """
        self.session = session
        self.timing = timing or TimingConfig.from_config()
        self.resolver = ElementResolver(session, self.timing)
        self.waiter = SettleWaiter(self.timing)
        self.dismisser = OverlayDismisser(
            session,
            self.OVERLAYS,
            resolver=self.resolver,
            waiter=self.waiter,
            timing=self.timing,
        )
        self.elements: Mapping[str, LogicalElement] = MappingProxyType(dict(self._build_elements()))

    def _build_elements(self) -> Dict[str, LogicalElement]:
        return {}

    # =========================================================================
    # Element Lookup
    # =========================================================================

    def element(self, key: str) -> LogicalElement:
        """Look up a declared element; unknown keys are a programming error."""
        try:
            return self.elements[key]
        except KeyError:
            raise KeyError(
                f"{type(self).__name__} has no element '{key}'. Known: {sorted(self.elements)}"
            ) from None

    def resolve(
        self,
        key: str,
        mode: InteractionMode = InteractionMode.VISIBLE,
        timeout: Optional[float] = None,
    ) -> ElementHandle:
        """Dismiss overlays, then resolve a declared element."""
        self.dismisser.dismiss_all()
        return self.resolver.resolve(self.element(key), timeout=timeout, mode=mode)

    # =========================================================================
    # Interactions
    # =========================================================================

    def click(self, key: str, timeout: Optional[float] = None) -> None:
        """
        Click a declared element once it is clickable.

        Raises:
            ElementNotFoundError: If no strategy yields a clickable element
        """
        with allure.step(f"Click: {self.element(key).name}"):
            handle = self.resolve(key, InteractionMode.CLICKABLE, timeout)
            handle.click()
            self.waiter.settle("after_tap")

    def type_text(
        self,
        key: str,
        text: str,
        clear: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        """Type into a declared input, clearing it first by default."""
        with allure.step(f"Type into {self.element(key).name}: {text}"):
            handle = self.resolve(key, InteractionMode.VISIBLE, timeout)
            if clear:
                handle.clear()
            handle.send_keys(text)
            self.waiter.settle("after_type")

    def get_text(self, key: str, timeout: Optional[float] = None) -> str:
        """Text of a visible declared element."""
        return self.resolve(key, InteractionMode.VISIBLE, timeout).get_text()

    def is_visible(self, key: str, timeout: Optional[float] = None) -> bool:
        """
        Check if a declared element is visible.

        Args:
            key: Element key
            timeout: Seconds to keep looking (defaults to the per-strategy timeout)

        Returns:
            True if visible; False on any interaction-layer failure
        """
        effective = self.timing.strategy_timeout if timeout is None else timeout
        try:
            self.dismisser.dismiss_all()
            return self.resolver.exists(self.element(key), effective, InteractionMode.VISIBLE)
        except UiAutomationError as e:
            logger.debug(f"Visibility check for '{key}' failed: {e}")
            return False

    def count(self, key: str, timeout: Optional[float] = None) -> int:
        """Number of matches of a declared element (0 when none appear in time)."""
        effective = self.timing.strategy_timeout if timeout is None else timeout
        return len(self.resolver.resolve_all(self.element(key), effective))

    def texts(self, key: str, timeout: Optional[float] = None) -> List[str]:
        """Non-empty texts of every match of a declared element."""
        effective = self.timing.strategy_timeout if timeout is None else timeout
        result = []
        for handle in self.resolver.resolve_all(self.element(key), effective):
            text = handle.get_text()
            if text:
                result.append(text)
        return result

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    def screenshot(self, name: str, attach_to_allure: bool = True) -> Optional[Path]:
        """
        Take screenshot and optionally attach to Allure.

        Args:
            name: Screenshot name (without extension)
            attach_to_allure: Whether to attach to Allure report

        Returns:
            Path to saved screenshot, or None when the session cannot take one
        """
        capture = getattr(self.session, "screenshot", None)
        if capture is None:
            logger.debug(f"{type(self.session).__name__} does not support screenshots")
            return None

        png = capture()
        SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = SCREENSHOT_DIR / f"{name}_{timestamp}.png"
        filepath.write_bytes(png)

        if attach_to_allure:
            allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    def capture_failure(self, test_name: str) -> None:
        """
        Capture debugging information on test failure.

        Saves the screenshot and the locator health report.
        """
        with allure.step("Capture failure details"):
            try:
                self.screenshot(f"failure_{test_name}")
            except UiAutomationError as e:
                logger.warning(f"Could not capture failure screenshot: {e}")

            allure.attach(
                self.resolver.health_report(),
                name="Locator health",
                attachment_type=allure.attachment_type.TEXT,
            )


__all__ = [
    "BasePage",
    "SCREENSHOT_DIR",
]
