"""
================================================================================
Suite Pytest Configuration
================================================================================

Registers the project-wide markers, tags tests by location and keeps the
live suites opt-in:

    UI_E2E=1        run the web suite against a real browser
    MOBILE_E2E=1    run the Android suite against an Appium server

Unit tests under `wikisuites/unit/` always run.

================================================================================
"""

import os

import pytest

from wikisuites.common.log_setup import init_logger


# Marker -> environment switch that enables it
_LIVE_SWITCHES = {
    "web": "UI_E2E",
    "mobile": "MOBILE_E2E",
}


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for release"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line("markers", "smoke: Quick verification tests")
    config.addinivalue_line("markers", "regression: Full regression test suite")
    config.addinivalue_line("markers", "e2e: End-to-end tests against a live UI")
    config.addinivalue_line("markers", "unit: Fast tests against in-memory sessions")

    # Domain markers
    config.addinivalue_line("markers", "ui: UI-specific tests")
    config.addinivalue_line("markers", "web: Wikipedia web site (Playwright)")
    config.addinivalue_line("markers", "mobile: Wikipedia Android app (Appium)")

    init_logger()


def _enabled(switch: str) -> bool:
    return os.getenv(switch, "").lower() in ("1", "true", "yes", "on")


def pytest_collection_modifyitems(config, items):
    """
    Tag tests by directory and skip live suites that were not switched on.
    """
    for item in items:
        path = str(item.fspath)

        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
            item.add_marker(pytest.mark.e2e)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)

        for marker, switch in _LIVE_SWITCHES.items():
            if item.get_closest_marker(marker) and not _enabled(switch):
                item.add_marker(pytest.mark.skip(reason=f"live {marker} suite disabled; set {switch}=1"))


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Wikipedia UI Automation Suites",
        f"web live: {_enabled('UI_E2E')} | mobile live: {_enabled('MOBILE_E2E')}",
        "=" * 60,
        "",
    ]
