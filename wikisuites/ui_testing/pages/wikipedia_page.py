"""
================================================================================
Wikipedia Page Object (Web / Playwright)
================================================================================

Page object for the Russian-language Wikipedia web site.

Covers the main page, search (plain and through suggestions), random
articles, article structure (infobox, table of contents, tabs, categories,
images, external links, coordinates) and scrolling.

Element locators list the current skin's selectors first and the legacy
skin's as fallbacks; the resolver reports every fallback it had to use.

================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import unquote

import allure
from loguru import logger

from wikisuites.ui_testing.framework.element_resolver import InteractionMode
from wikisuites.ui_testing.framework.exceptions import ElementNotFoundError, UiAutomationError
from wikisuites.ui_testing.framework.locators import LocatorStrategy as By
from wikisuites.ui_testing.framework.locators import LogicalElement
from wikisuites.ui_testing.framework.overlay_dismisser import OverlaySignature
from wikisuites.ui_testing.framework.page_base import BasePage
from wikisuites.ui_testing.framework.timing import TimingConfig
from wikisuites.ui_testing.framework.web_session import WebSession


MAIN_PAGE_PATH = "/wiki/Заглавная_страница"
RANDOM_PAGE_PATH = "/wiki/Special:Random"

# Total hit count in ".results-info", e.g. "Результаты 1 – 20 из 12 345"
_NUMBER = re.compile(r"\d[\d\s,.]*")


@dataclass(frozen=True)
class SearchResult:
    """Outcome of a search: hit count and the title of the page it landed on."""

    results_count: int
    article_title: str


def parse_results_count(text: str) -> int:
    """
    Extract the total hit count from a search summary line.

    Raises:
        ValueError: If the text holds no number
    """
    numbers = _NUMBER.findall(text)
    if not numbers:
        raise ValueError(f"No result count in: {text!r}")
    return int(re.sub(r"\D", "", numbers[-1]))


class WikipediaPage(BasePage):
    """Wikipedia web page object."""

    OVERLAYS = (
        OverlaySignature.of(
            "cookie banner",
            By.by_structural_path(".mw-cookiewarning-container button"),
            By.by_structural_path(".cookie-banner button"),
        ),
    )

    def __init__(self, session: WebSession, timing: Optional[TimingConfig] = None):
        super().__init__(session, timing)
        self.session: WebSession = session

    def _build_elements(self) -> Dict[str, LogicalElement]:
        return {
            "wiki_logo": LogicalElement.of(
                "wiki logo",
                By.by_structural_path("a.mw-logo"),
                By.by_structural_path("div#p-logo a"),
            ),
            "page_heading": LogicalElement.of(
                "page heading",
                By.by_stable_id("firstHeading"),
                By.by_structural_path("h1.firstHeading"),
            ),
            "body_content": LogicalElement.of(
                "body content",
                By.by_stable_id("bodyContent"),
                By.by_stable_id("mw-content-text"),
            ),
            "search_input": LogicalElement.of(
                "search input",
                By.by_stable_id("searchInput"),
                By.by_structural_path("input[name='search']"),
            ),
            "search_button": LogicalElement.of(
                "search button",
                By.by_structural_path("#searchform button"),
            ),
            "search_suggestions": LogicalElement.of(
                "search suggestions",
                By.by_structural_path(".cdx-menu-item a"),
                By.by_structural_path(".suggestions-results a"),
            ),
            "search_results": LogicalElement.of(
                "search results",
                By.by_structural_path(".mw-search-results li"),
                By.by_structural_path(".mw-search-result"),
            ),
            "results_info": LogicalElement.of(
                "search results summary",
                By.by_structural_path(".results-info"),
            ),
            "random_page_link": LogicalElement.of(
                "random page link",
                By.by_stable_id("n-randompage"),
                By.by_structural_path("a[href$='Special:Random']"),
            ),
            "infobox": LogicalElement.of(
                "infobox",
                By.by_structural_path(".infobox"),
            ),
            "table_of_contents": LogicalElement.of(
                "table of contents",
                By.by_stable_id("vector-toc"),
                By.by_stable_id("toc"),
            ),
            "discussion_tab": LogicalElement.of("discussion tab", By.by_stable_id("ca-talk")),
            "edit_tab": LogicalElement.of(
                "edit tab",
                By.by_stable_id("ca-edit"),
                By.by_stable_id("ca-viewsource"),
            ),
            "history_tab": LogicalElement.of("history tab", By.by_stable_id("ca-history")),
            "categories": LogicalElement.of(
                "category links",
                By.by_structural_path("#catlinks ul li a"),
            ),
            "coordinates": LogicalElement.of(
                "coordinates",
                By.by_structural_path(".geo-dms, .geo-dec"),
            ),
            "external_links": LogicalElement.of(
                "external links",
                By.by_structural_path("a.external"),
            ),
            "images": LogicalElement.of(
                "article images",
                By.by_structural_path(".image img, .thumb img"),
                By.by_structural_path("#mw-content-text figure img"),
            ),
        }

    # =========================================================================
    # Navigation
    # =========================================================================

    @allure.step("Open Wikipedia main page")
    def open_main_page(self) -> "WikipediaPage":
        logger.info("Opening Wikipedia main page")
        self.session.open_url(MAIN_PAGE_PATH)
        self.wait_for_page_load()
        self.dismisser.dismiss_all()
        return self

    def is_main_page_loaded(self) -> bool:
        if not self.is_visible("wiki_logo", self.timing.default_timeout):
            logger.error("Main page did not load: logo not visible")
            return False
        if not self.is_visible("page_heading", self.timing.default_timeout):
            logger.error("Main page did not load: heading not visible")
            return False
        return "Заглавная_страница" in unquote(self.session.current_url)

    @allure.step("Go to random page")
    def go_to_random_page(self) -> str:
        """Open a random article; falls back to the sidebar link if the URL fails."""
        logger.info("Going to a random page")
        try:
            self.session.open_url(RANDOM_PAGE_PATH)
            self.wait_for_page_load()
        except UiAutomationError as e:
            logger.warning(f"Random page URL failed ({e}), using sidebar link")
            self.click("random_page_link")
            self.wait_for_page_load()

        title = self.get_page_title()
        logger.info(f"Opened page: {title}")
        return title

    def wait_for_page_load(self) -> None:
        """Body content present, document ready, then the page-load settle delay."""
        self.resolver.resolve(self.element("body_content"), mode=InteractionMode.PRESENCE)
        self.waiter.wait_for_readiness(self.session)
        self.waiter.settle("after_page_load")

    # =========================================================================
    # Search
    # =========================================================================

    @allure.step("Search article: {query}")
    def search_article(self, query: str, use_suggestions: bool = False) -> Optional[SearchResult]:
        """
        Search for an article.

        Args:
            query: Search text
            use_suggestions: Open the first suggestion instead of submitting

        Returns:
            SearchResult for the page the search landed on, or None when
            suggestions were requested but none could be selected
        """
        logger.info(f"Searching article: '{query}'")
        self.type_text("search_input", query)

        if use_suggestions and self.are_search_suggestions_available():
            logger.info("Using search suggestions")
            return self.select_first_search_suggestion()

        logger.info("Submitting search")
        self.resolve("search_input", InteractionMode.VISIBLE).press("Enter")
        self.wait_for_page_load()
        return SearchResult(self.get_search_results_count(), self.get_page_title())

    def are_search_suggestions_available(self) -> bool:
        return self.resolver.exists(
            self.element("search_suggestions"),
            timeout=self.timing.overlay_probe_timeout,
        )

    @allure.step("Select first search suggestion")
    def select_first_search_suggestion(self) -> Optional[SearchResult]:
        try:
            suggestion = self.resolve("search_suggestions", InteractionMode.CLICKABLE)
        except ElementNotFoundError:
            logger.warning("No search suggestions found")
            return None

        logger.info(f"Selecting suggestion: {suggestion.get_text()}")
        suggestion.click()
        self.wait_for_page_load()
        return SearchResult(1, self.get_page_title())

    def get_search_results_count(self) -> int:
        """Total hits from the results summary, else the number of listed results."""
        try:
            return parse_results_count(
                self.get_text("results_info", timeout=self.timing.overlay_probe_timeout)
            )
        except (ElementNotFoundError, ValueError) as e:
            logger.debug(f"No parsable results summary ({e}), counting results")
            return self.count("search_results", timeout=0)

    def is_search_input_available(self) -> bool:
        return self.resolver.exists(
            self.element("search_input"),
            timeout=self.timing.default_timeout,
            mode=InteractionMode.CLICKABLE,
        )

    # =========================================================================
    # Article Content
    # =========================================================================

    def get_page_title(self) -> str:
        return self.get_text("page_heading")

    def has_infobox(self) -> bool:
        return self.resolver.exists(self.element("infobox"), timeout=self.timing.strategy_timeout)

    def get_infobox_content(self) -> Optional[str]:
        if not self.has_infobox():
            return None
        return self.resolve("infobox", InteractionMode.PRESENCE).get_text()

    def has_table_of_contents(self) -> bool:
        return self.is_visible("table_of_contents", self.timing.default_timeout)

    @allure.step("Click table of contents link: {link_text}")
    def click_toc_link(self, link_text: str) -> None:
        link = LogicalElement.of(
            f"TOC link '{link_text}'",
            By.by_structural_path(f"//*[@id='vector-toc']//a[contains(., '{link_text}')]"),
            By.by_structural_path(f"//div[@id='toc']//a[contains(., '{link_text}')]"),
        )
        self.dismisser.dismiss_all()
        self.resolver.resolve(link, mode=InteractionMode.CLICKABLE).click()
        self.waiter.settle("after_scroll")

    def count_images(self) -> int:
        return self.count("images")

    def count_external_links(self) -> int:
        return self.count("external_links", timeout=0)

    def get_coordinates(self) -> Optional[str]:
        try:
            return self.resolve("coordinates", InteractionMode.PRESENCE, timeout=0).get_text()
        except ElementNotFoundError:
            return None

    def get_article_categories(self) -> List[str]:
        return self.texts("categories", timeout=0)

    # =========================================================================
    # Tabs
    # =========================================================================

    @allure.step("Switch to discussion tab")
    def switch_to_discussion_tab(self) -> None:
        self._switch_tab("discussion_tab")

    @allure.step("Switch to edit tab")
    def switch_to_edit_tab(self) -> None:
        self._switch_tab("edit_tab")

    @allure.step("Switch to history tab")
    def switch_to_history_tab(self) -> None:
        self._switch_tab("history_tab")

    def _switch_tab(self, key: str) -> None:
        logger.info(f"Switching to {self.element(key).name}")
        self.click(key)
        self.wait_for_page_load()

    # =========================================================================
    # Scrolling
    # =========================================================================

    def scroll_to(self, key: str) -> None:
        self.resolve(key, InteractionMode.PRESENCE).scroll_into_view()
        self.waiter.settle("after_scroll")

    def scroll_to_bottom(self) -> None:
        self.session.execute_raw_command("window.scrollTo(0, document.body.scrollHeight)")
        self.waiter.settle("after_scroll")


__all__ = [
    "MAIN_PAGE_PATH",
    "RANDOM_PAGE_PATH",
    "SearchResult",
    "WikipediaPage",
    "parse_results_count",
]
