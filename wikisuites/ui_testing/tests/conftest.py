"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for the live Wikipedia suites: sessions, page objects and the
failure screenshot hook.

Key Features:
- Session creation through RetryingOperationRunner (flaky driver starts)
- Page Object fixtures for the web site and the Android app
- Screenshot capture on failure, attached to Allure

================================================================================
"""

from typing import Iterator

import allure
import pytest
from loguru import logger

from wikisuites.ui_testing.framework.mobile_session import MobileSession, MobileSessionFactory
from wikisuites.ui_testing.framework.retry_runner import RetryingOperationRunner, RetryPolicy
from wikisuites.ui_testing.framework.timing import TimingConfig
from wikisuites.ui_testing.framework.web_session import WebSession, WebSessionFactory
from wikisuites.ui_testing.pages.wikipedia_app_page import WikipediaAppPage
from wikisuites.ui_testing.pages.wikipedia_page import WikipediaPage


PAGE_FIXTURES = ("wikipedia_page", "app_page")
SESSION_FIXTURES = ("web_session", "mobile_session")


# ================================================================================
# Framework Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def timing() -> TimingConfig:
    """Timeouts and settle delays from config/config.yaml."""
    return TimingConfig.from_config()


@pytest.fixture(scope="session")
def runner(timing: TimingConfig) -> RetryingOperationRunner:
    """Retries session start-up; drivers occasionally fail to come up."""
    return RetryingOperationRunner(RetryPolicy.from_timing(timing))


# ================================================================================
# Session Fixtures
# ================================================================================

@pytest.fixture(scope="function")
def web_session(runner: RetryingOperationRunner) -> Iterator[WebSession]:
    """
    Function-scoped browser session.

    Each test gets its own browser and context, closed on teardown.
    """
    session = runner.open_session(WebSessionFactory.from_config())
    yield session
    session.close()


@pytest.fixture(scope="function")
def mobile_session(runner: RetryingOperationRunner) -> Iterator[MobileSession]:
    """
    Function-scoped Appium session against the Wikipedia app.
    """
    session = runner.open_session(MobileSessionFactory.from_config())
    yield session
    session.close()


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def wikipedia_page(web_session: WebSession, timing: TimingConfig) -> WikipediaPage:
    """
    Provides WikipediaPage opened on the main page.
    """
    return WikipediaPage(web_session, timing).open_main_page()


@pytest.fixture
def app_page(mobile_session: MobileSession, timing: TimingConfig) -> WikipediaAppPage:
    """
    Provides WikipediaAppPage past the onboarding screens.
    """
    page = WikipediaAppPage(mobile_session, timing)
    page.skip_onboarding_if_present()
    page.dismiss_all_popups()
    return page


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Hook to capture screenshots on test failure.

    Page object fixtures attach a screenshot plus the locator health report;
    bare session fixtures attach a screenshot only.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when != "call" or not report.failed:
        return

    funcargs = getattr(item, "funcargs", {})
    try:
        for name in PAGE_FIXTURES:
            page = funcargs.get(name)
            if page is not None:
                page.capture_failure(item.name)
                return

        for name in SESSION_FIXTURES:
            session = funcargs.get(name)
            if session is not None:
                allure.attach(
                    session.screenshot(),
                    name="failure_screenshot",
                    attachment_type=allure.attachment_type.PNG,
                )
                return
    except Exception as e:
        # Log but don't fail if screenshot capture fails
        logger.warning(f"Failed to capture screenshot on failure: {e}")
