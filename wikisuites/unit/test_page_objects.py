import pytest

from wikisuites.ui_testing.framework.exceptions import (
    ElementNotFoundError,
    SessionError,
    SettleTimeoutError,
    UiAutomationError,
)
from wikisuites.ui_testing.framework.locators import LocatorStrategy as By
from wikisuites.ui_testing.pages.wikipedia_app_page import WikipediaAppPage, app_id
from wikisuites.ui_testing.pages.wikipedia_page import (
    MAIN_PAGE_PATH,
    RANDOM_PAGE_PATH,
    SearchResult,
    WikipediaPage,
    parse_results_count,
)
from wikisuites.unit.fakes import FakeHandle, FakeSession, fast_timing


# ================================================================================
# Web
# ================================================================================

BODY = By.by_stable_id("bodyContent")
HEADING = By.by_stable_id("firstHeading")
SEARCH_INPUT = By.by_stable_id("searchInput")
RESULTS_INFO = By.by_structural_path(".results-info")
SEARCH_RESULTS = By.by_structural_path(".mw-search-results li")
SUGGESTIONS = By.by_structural_path(".cdx-menu-item a")
COOKIE_BUTTON = By.by_structural_path(".mw-cookiewarning-container button")
LEGACY_LOGO = By.by_structural_path("div#p-logo a")


@pytest.fixture
def web_session():
    session = FakeSession()
    session.add(BODY)
    return session


@pytest.fixture
def wiki(web_session):
    return WikipediaPage(web_session, fast_timing())


def test_elements_are_read_only(wiki):
    with pytest.raises(TypeError):
        wiki.elements["search_input"] = None


def test_unknown_element_key(wiki):
    with pytest.raises(KeyError):
        wiki.element("login_button")


def test_open_main_page_accepts_cookies(web_session, wiki):
    cookie = web_session.add(
        COOKIE_BUTTON, FakeHandle(on_click=lambda: web_session.remove(COOKIE_BUTTON))
    )

    wiki.open_main_page()

    assert web_session.opened == [MAIN_PAGE_PATH]
    assert cookie.clicks == 1


def test_main_page_loaded_through_legacy_logo(web_session, wiki):
    web_session.add(LEGACY_LOGO)
    web_session.add(HEADING, FakeHandle("Заглавная страница"))

    wiki.open_main_page()

    assert wiki.is_main_page_loaded() is True
    assert "wiki logo" in wiki.resolver.fallbacks_used


def test_main_page_not_loaded_without_heading(web_session, wiki):
    web_session.add(LEGACY_LOGO)
    wiki.open_main_page()

    assert wiki.is_main_page_loaded() is False


def test_open_main_page_fails_when_page_never_ready(web_session, wiki):
    web_session.ready = False

    with pytest.raises(SettleTimeoutError):
        wiki.open_main_page()


def test_search_article_submits_query(web_session, wiki):
    search_input = web_session.add(SEARCH_INPUT, FakeHandle("старый запрос"))
    web_session.add(RESULTS_INFO, FakeHandle("Результаты 1 – 20 из 1 234"))
    web_session.add(HEADING, FakeHandle("Математика"))

    result = wiki.search_article("Математика")

    assert result == SearchResult(results_count=1234, article_title="Математика")
    assert search_input.cleared == 1
    assert search_input.typed == ["Математика"]
    assert search_input.pressed == ["Enter"]


def test_search_article_through_suggestion(web_session, wiki):
    web_session.add(SEARCH_INPUT)
    suggestion = web_session.add(SUGGESTIONS, FakeHandle("Москва"))
    web_session.add(HEADING, FakeHandle("Москва"))

    result = wiki.search_article("Москва", use_suggestions=True)

    assert result == SearchResult(1, "Москва")
    assert suggestion.clicks == 1


def test_search_results_count_falls_back_to_listed_results(web_session, wiki):
    web_session.add(SEARCH_RESULTS, FakeHandle("a"), FakeHandle("b"), FakeHandle("c"))

    assert wiki.get_search_results_count() == 3


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Результаты 1 – 20 из 1 234", 1234),
        ("Results 1 – 20 of 5,678", 5678),
        ("Найдено 42", 42),
    ],
)
def test_parse_results_count(text, expected):
    assert parse_results_count(text) == expected


def test_parse_results_count_without_number():
    with pytest.raises(ValueError):
        parse_results_count("Ничего не найдено")


def test_random_page_falls_back_to_sidebar_link(monkeypatch, web_session, wiki):
    random_link = web_session.add(By.by_stable_id("n-randompage"))
    web_session.add(HEADING, FakeHandle("Случайная статья"))
    original_open = web_session.open_url

    def open_url(url):
        if url == RANDOM_PAGE_PATH:
            raise UiAutomationError("navigation failed")
        original_open(url)

    monkeypatch.setattr(web_session, "open_url", open_url)

    assert wiki.go_to_random_page() == "Случайная статья"
    assert random_link.clicks == 1


def test_article_structure(web_session, wiki):
    web_session.add(By.by_structural_path(".infobox"), FakeHandle("Альберт Эйнштейн"))
    web_session.add(
        By.by_structural_path("#catlinks ul li a"),
        FakeHandle("Физики"),
        FakeHandle("Лауреаты Нобелевской премии"),
    )
    web_session.add(By.by_structural_path("a.external"), FakeHandle(), FakeHandle())

    assert wiki.has_infobox() is True
    assert "Эйнштейн" in wiki.get_infobox_content()
    assert wiki.get_article_categories() == ["Физики", "Лауреаты Нобелевской премии"]
    assert wiki.count_external_links() == 2
    assert wiki.count_images() == 0
    assert wiki.get_coordinates() is None


def test_missing_infobox(wiki):
    assert wiki.has_infobox() is False
    assert wiki.get_infobox_content() is None


def test_switch_to_discussion_tab(web_session, wiki):
    tab = web_session.add(By.by_stable_id("ca-talk"))

    wiki.switch_to_discussion_tab()

    assert tab.clicks == 1


def test_switch_tab_missing_raises(wiki):
    with pytest.raises(ElementNotFoundError):
        wiki.switch_to_history_tab()


def test_scrolling(web_session, wiki):
    toc = web_session.add(By.by_stable_id("toc"))

    wiki.scroll_to("table_of_contents")
    wiki.scroll_to_bottom()

    assert toc.scrolled == 1
    assert web_session.scripts[-1][0].startswith("window.scrollTo")


def test_screenshot_saved(monkeypatch, tmp_path, web_session, wiki):
    monkeypatch.setattr("wikisuites.ui_testing.framework.page_base.SCREENSHOT_DIR", tmp_path)

    path = wiki.screenshot("main", attach_to_allure=False)

    assert path.parent == tmp_path
    assert path.read_bytes().startswith(b"\x89PNG")


# ================================================================================
# Android app
# ================================================================================

SEARCH_CONTAINER = app_id("search_container")
APP_SEARCH_INPUT = app_id("search_src_text")
RESULT_TITLES = app_id("page_list_item_title")
HEADER_TITLE = app_id("view_article_header_title")
ONBOARDING_SKIP = app_id("fragment_onboarding_skip_button")
ANNOUNCEMENT = app_id("view_announcement_action_negative")
DIALOG = app_id("dialogContainer")
TEXT_VIEWS = By.by_structural_path("android.widget.TextView")
NAVIGATE_UP = By.by_accessibility_label("Navigate up")


@pytest.fixture
def app_session():
    return FakeSession()


@pytest.fixture
def app(app_session):
    return WikipediaAppPage(app_session, fast_timing())


def test_main_screen_loaded(app_session, app):
    assert app.is_main_screen_loaded() is False

    app_session.add(SEARCH_CONTAINER)

    assert app.is_main_screen_loaded() is True


def test_skip_onboarding_if_present(app_session, app):
    assert app.skip_onboarding_if_present() is False

    skip = app_session.add(ONBOARDING_SKIP, FakeHandle(on_click=lambda: app_session.remove(ONBOARDING_SKIP)))

    assert app.skip_onboarding_if_present() is True
    assert skip.clicks == 1


def test_dismiss_all_popups(app_session, app):
    announcement = app_session.add(ANNOUNCEMENT, FakeHandle(on_click=lambda: app_session.remove(ANNOUNCEMENT)))
    app_session.add(DIALOG)

    assert app.dismiss_all_popups() == 2
    assert announcement.clicks == 1
    assert app_session.back_presses == 1


def test_search_article_opens_first_result(app_session, app):
    container = app_session.add(SEARCH_CONTAINER)
    search_input = app_session.add(APP_SEARCH_INPUT)
    first = app_session.add_later(RESULT_TITLES, 0.1, FakeHandle("Python"), FakeHandle("Python (film)"))
    app_session.add(TEXT_VIEWS, FakeHandle("Python"))

    app.search_article("Python")

    assert container.clicks == 1
    assert search_input.typed == ["Python"]
    assert search_input.cleared == 0
    assert first.clicks == 1
    assert app.get_search_results_count() == 2


def test_search_without_results_times_out(app_session, app):
    app_session.add(SEARCH_CONTAINER)
    app_session.add(APP_SEARCH_INPUT)

    with pytest.raises(SettleTimeoutError):
        app.search_article("qwertyuiopasdfgh")


def test_select_missing_search_result(app_session, app):
    app_session.add(RESULT_TITLES, FakeHandle("Java"))

    with pytest.raises(IndexError):
        app.select_search_result(3)


def test_clear_search_field(app_session, app):
    search_input = app_session.add(APP_SEARCH_INPUT, FakeHandle("Kotlin"))

    app.clear_search_field()

    assert search_input.text == ""


def test_article_title_from_header(app_session, app):
    app_session.add(HEADER_TITLE, FakeHandle("Java"))

    assert app.get_article_title() == "Java"


def test_article_title_from_text_views(app_session, app):
    app_session.add(
        TEXT_VIEWS,
        FakeHandle(""),
        FakeHandle("ok"),
        FakeHandle("Hidden title", displayed=False),
        FakeHandle("Automation"),
    )

    assert app.get_article_title() == "Automation"


def test_go_back_prefers_navigate_up(app_session, app):
    navigate_up = app_session.add(NAVIGATE_UP)

    app.go_back()

    assert navigate_up.clicks == 1
    assert app_session.back_presses == 0


def test_go_back_uses_system_back_without_toolbar(app_session, app):
    assert app.is_navigate_up_displayed() is False

    app.go_back()

    assert app_session.back_presses == 1


class DetachingRow(FakeHandle):
    def __init__(self, text, failures, error=None):
        super().__init__(text)
        self.failures = failures
        self.error = error or UiAutomationError("element detached from the list")

    def click(self):
        if self.failures:
            self.failures -= 1
            raise self.error
        super().click()


def test_select_search_result_retries_detached_row(app_session, app):
    row = app_session.add(RESULT_TITLES, DetachingRow("Kotlin", failures=1))
    app_session.add(TEXT_VIEWS, FakeHandle("Kotlin"))

    app.select_search_result(0)

    assert row.clicks == 1
    assert row.failures == 0


def test_select_search_result_gives_up_after_policy_attempts(app_session, app):
    row = app_session.add(RESULT_TITLES, DetachingRow("Kotlin", failures=5))

    with pytest.raises(UiAutomationError):
        app.select_search_result(0)

    assert row.failures == 2
    assert row.clicks == 0


def test_select_search_result_does_not_retry_lost_session(app_session, app):
    row = app_session.add(RESULT_TITLES, DetachingRow("Java", failures=5, error=SessionError("gone")))

    with pytest.raises(SessionError):
        app.select_search_result(0)

    assert row.failures == 4


def test_article_wait_clears_overlays_once(monkeypatch, app_session):
    app = WikipediaAppPage(app_session, fast_timing(default_timeout=0.2))
    passes = []
    monkeypatch.setattr(app.dismisser, "dismiss_all", lambda: passes.append(1) or 0)

    with pytest.raises(SettleTimeoutError):
        app.wait_for_article_to_load()

    assert passes == [1]
