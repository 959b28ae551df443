"""
================================================================================
Wikipedia App Page Object (Android / Appium)
================================================================================

Page object for the Wikipedia Android app (alpha build).

The app shows an onboarding flow on first launch and announcement dialogs
at unpredictable times; all of them are registered as overlays and
dismissed before every interaction.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Dict, Optional

import allure
from loguru import logger

from wikisuites.ui_testing.framework.element_resolver import InteractionMode
from wikisuites.ui_testing.framework.exceptions import (
    ElementNotFoundError,
    SessionError,
    UiAutomationError,
)
from wikisuites.ui_testing.framework.locators import LocatorStrategy as By
from wikisuites.ui_testing.framework.locators import LogicalElement
from wikisuites.ui_testing.framework.mobile_session import MobileSession
from wikisuites.ui_testing.framework.overlay_dismisser import DismissAction, OverlaySignature
from wikisuites.ui_testing.framework.page_base import BasePage
from wikisuites.ui_testing.framework.retry_runner import RetryPolicy, with_retry
from wikisuites.ui_testing.framework.timing import TimingConfig


APP_PACKAGE = "org.wikipedia.alpha"
ONBOARDING_OVERLAY = "onboarding skip"


def app_id(name: str) -> By:
    """Resource-id strategy inside the app package."""
    return By.by_stable_id(f"{APP_PACKAGE}:id/{name}")


def _row_rerendered(error: BaseException) -> bool:
    """A tap failed on a stale row; lost sessions and missing lists are final."""
    return isinstance(error, UiAutomationError) and not isinstance(
        error, (SessionError, ElementNotFoundError)
    )


class WikipediaAppPage(BasePage):
    """Wikipedia Android app page object."""

    OVERLAYS = (
        OverlaySignature.of(ONBOARDING_OVERLAY, app_id("fragment_onboarding_skip_button")),
        OverlaySignature.of("announcement", app_id("view_announcement_action_negative")),
        OverlaySignature.of("close button", app_id("closeButton")),
        OverlaySignature.of("dialog", app_id("dialogContainer"), action=DismissAction.BACK),
    )

    # Article titles are short single lines; longer text views are body text
    TITLE_MIN_LENGTH = 3
    TITLE_MAX_LENGTH = 100

    def __init__(self, session: MobileSession, timing: Optional[TimingConfig] = None):
        super().__init__(session, timing)
        self.session: MobileSession = session

    def _build_elements(self) -> Dict[str, LogicalElement]:
        return {
            "search_container": LogicalElement.of(
                "search container",
                app_id("search_container"),
                By.by_accessibility_label("Search Wikipedia"),
            ),
            "search_input": LogicalElement.of(
                "search input",
                app_id("search_src_text"),
                By.by_structural_path("android.widget.EditText"),
            ),
            "result_titles": LogicalElement.of(
                "search result titles",
                app_id("page_list_item_title"),
            ),
            "article_header_title": LogicalElement.of(
                "article header title",
                app_id("view_article_header_title"),
            ),
            "text_views": LogicalElement.of(
                "text views",
                By.by_structural_path("android.widget.TextView"),
            ),
            "first_text_view": LogicalElement.of(
                "first text view",
                By.by_structural_path("(//android.widget.TextView)[1]"),
            ),
            "navigate_up": LogicalElement.of(
                "navigate up button",
                By.by_accessibility_label("Navigate up"),
                By.by_structural_path('new UiSelector().description("Navigate up")'),
                By.by_structural_path("//android.widget.ImageButton[@content-desc='Navigate up']"),
            ),
        }

    # =========================================================================
    # Overlays
    # =========================================================================

    @allure.step("Skip onboarding if present")
    def skip_onboarding_if_present(self) -> bool:
        skipped = self.dismisser.dismiss(ONBOARDING_OVERLAY)
        if not skipped:
            logger.info("No onboarding shown, continuing")
        return skipped

    @allure.step("Dismiss all popups")
    def dismiss_all_popups(self) -> int:
        return self.dismisser.dismiss_all()

    # =========================================================================
    # Main Screen
    # =========================================================================

    def is_main_screen_loaded(self) -> bool:
        try:
            self.resolve("search_container", InteractionMode.CLICKABLE)
            return True
        except UiAutomationError as e:
            logger.error(f"Main screen did not load: {e}")
            return False

    # =========================================================================
    # Search
    # =========================================================================

    @allure.step("Search article: {query}")
    def search_article(self, query: str) -> None:
        """
        Search and open the first result.

        Raises:
            SettleTimeoutError: If the search produced no results in time
        """
        logger.info(f"Searching article: '{query}'")
        self.click("search_container")
        self.type_text("search_input", query, clear=False)

        results = self.waiter.wait_until(
            lambda: self.resolver.resolve_all(self.element("result_titles"), timeout=0),
            description=f"search results for '{query}'",
        )
        logger.info(f"Found {len(results)} result(s)")
        self.select_search_result(0)

    def get_search_results_count(self) -> int:
        return self.count("result_titles")

    @allure.step("Select search result #{index}")
    def select_search_result(self, index: int = 0) -> None:
        """
        Tap the search result at `index` and wait for the article.

        The results list re-renders while suggestions stream in, so a tap on
        a detached row is retried against a fresh lookup.
        """
        policy = RetryPolicy.from_timing(self.timing, is_retryable=_row_rerendered)
        with_retry(policy)(self._tap_result)(index)
        self.waiter.settle("after_tap")
        self.wait_for_article_to_load()

    def _tap_result(self, index: int) -> None:
        results = self.resolver.resolve_all(self.element("result_titles"))
        if index >= len(results):
            raise IndexError(f"Search result #{index} requested, only {len(results)} shown")
        results[index].click()

    @allure.step("Clear search field")
    def clear_search_field(self) -> None:
        self.resolve("search_input").clear()
        self.waiter.settle("after_type")

    # =========================================================================
    # Article
    # =========================================================================

    def get_article_title(self) -> str:
        """
        Title of the open article.

        Tries the article header first, then the first short displayed text
        view, then the first text view on screen.
        """
        try:
            return self.get_text("article_header_title", timeout=self.timing.strategy_timeout)
        except ElementNotFoundError:
            logger.info("Article header not found, scanning text views")

        for handle in self.resolver.resolve_all(self.element("text_views"), timeout=0):
            if not handle.is_displayed():
                continue
            text = handle.get_text()
            if self.TITLE_MIN_LENGTH < len(text) < self.TITLE_MAX_LENGTH:
                return text

        return self.get_text("first_text_view")

    def wait_for_article_to_load(self) -> None:
        """Clear overlays once, then poll until article text is displayed."""
        self.dismisser.dismiss_all()

        def article_visible() -> bool:
            handles = self.resolver.resolve_all(self.element("text_views"), timeout=0)
            return any(handle.is_displayed() for handle in handles)

        self.waiter.wait_until(article_visible, description="article text to be displayed")
        self.waiter.settle("after_page_load")

    # =========================================================================
    # Navigation
    # =========================================================================

    def is_navigate_up_displayed(self) -> bool:
        return self.is_visible("navigate_up", timeout=self.timing.strategy_timeout)

    @allure.step("Go back")
    def go_back(self) -> None:
        """Use the toolbar's navigate-up button if shown, else the system back key."""
        logger.info("Going back")
        if self.is_navigate_up_displayed():
            self.click("navigate_up")
            logger.info("Pressed navigate up")
        else:
            self.session.navigate_back()
            logger.info("Used system back")

        self.waiter.settle("after_navigation")
        self.dismisser.dismiss_all()


__all__ = [
    "APP_PACKAGE",
    "WikipediaAppPage",
    "app_id",
]
