import time

import pytest

from wikisuites.ui_testing.framework.element_resolver import ElementResolver, InteractionMode
from wikisuites.ui_testing.framework.exceptions import ElementNotFoundError, SessionError
from wikisuites.ui_testing.framework.locators import LocatorStrategy, LogicalElement
from wikisuites.unit.fakes import FakeHandle, FakeSession, fast_timing


SEARCH_ID = LocatorStrategy.by_stable_id("org.wikipedia.alpha:id/search_src_text")
SEARCH_LABEL = LocatorStrategy.by_accessibility_label("Search Wikipedia")
SEARCH_PATH = LocatorStrategy.by_structural_path("android.widget.EditText")

SEARCH_INPUT = LogicalElement.of("search input", SEARCH_ID, SEARCH_LABEL, SEARCH_PATH)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def resolver(session):
    return ElementResolver(session, fast_timing())


def test_primary_strategy_wins_when_present(session, resolver):
    primary = session.add(SEARCH_ID, FakeHandle("by id"))
    session.add(SEARCH_LABEL, FakeHandle("by label"))

    handle = resolver.resolve(SEARCH_INPUT)

    assert handle is primary
    assert session.lookups == [SEARCH_ID]
    assert resolver.fallbacks_used == {}


def test_fallback_used_when_primary_missing(session, resolver):
    fallback = session.add(SEARCH_PATH, FakeHandle("by path"))

    handle = resolver.resolve(SEARCH_INPUT, timeout=1.0)

    assert handle is fallback
    health = resolver.fallbacks_used["search input"]
    assert health.fallback == SEARCH_PATH
    assert health.fallback_index == 2
    assert "search input" in resolver.health_report()


def test_first_strategy_satisfying_mode_wins(session, resolver):
    session.add(SEARCH_ID, FakeHandle(displayed=False))
    visible = session.add(SEARCH_LABEL, FakeHandle())

    assert resolver.resolve(SEARCH_INPUT, mode=InteractionMode.VISIBLE) is visible
    assert resolver.resolve(SEARCH_INPUT, mode=InteractionMode.PRESENCE) is not visible


def test_clickable_requires_enabled(session, resolver):
    session.add(SEARCH_ID, FakeHandle(enabled=False))
    enabled = session.add(SEARCH_PATH, FakeHandle())

    assert resolver.resolve(SEARCH_INPUT, mode=InteractionMode.CLICKABLE) is enabled


def test_later_match_among_several_handles_is_returned(session, resolver):
    hidden = FakeHandle(displayed=False)
    shown = FakeHandle()
    session.add(SEARCH_ID, hidden, shown)

    assert resolver.resolve(SEARCH_INPUT) is shown


def test_not_found_reports_strategies_and_respects_timeout(session):
    timing = fast_timing(default_timeout=0.3, strategy_timeout=0.1)
    resolver = ElementResolver(session, timing)

    start = time.monotonic()
    with pytest.raises(ElementNotFoundError) as exc_info:
        resolver.resolve(SEARCH_INPUT)
    elapsed = time.monotonic() - start

    error = exc_info.value
    assert error.element is SEARCH_INPUT
    assert error.strategies_tried == (SEARCH_ID, SEARCH_LABEL, SEARCH_PATH)
    assert error.timeout == 0.3
    assert 0.3 <= elapsed < 0.3 + 0.25
    assert error.elapsed >= 0.3
    assert "search input" in str(error)


def test_zero_timeout_still_probes_every_strategy(session, resolver):
    with pytest.raises(ElementNotFoundError) as exc_info:
        resolver.resolve(SEARCH_INPUT, timeout=0)

    assert exc_info.value.strategies_tried == (SEARCH_ID, SEARCH_LABEL, SEARCH_PATH)
    assert set(session.lookups) == {SEARCH_ID, SEARCH_LABEL, SEARCH_PATH}


def test_element_appearing_later_is_found_on_a_later_pass(session):
    resolver = ElementResolver(session, fast_timing(default_timeout=1.0, strategy_timeout=0.05))
    late = session.add_later(SEARCH_ID, 0.3, FakeHandle("late"))

    assert resolver.resolve(SEARCH_INPUT) is late


def test_session_loss_is_not_reported_as_not_found(session, resolver):
    session.lost = True

    with pytest.raises(SessionError):
        resolver.resolve(SEARCH_INPUT)


def test_handles_are_not_cached(session, resolver):
    first = session.add(SEARCH_ID, FakeHandle("first"))
    assert resolver.resolve(SEARCH_INPUT) is first

    session.remove(SEARCH_ID)
    second = session.add(SEARCH_ID, FakeHandle("second"))

    assert resolver.resolve(SEARCH_INPUT) is second


def test_resolve_all_returns_matches_of_first_matching_strategy(session, resolver):
    titles = [FakeHandle("Java"), FakeHandle("JavaScript")]
    session.add(SEARCH_LABEL, *titles)
    session.add(SEARCH_PATH, FakeHandle("ignored"))

    assert resolver.resolve_all(SEARCH_INPUT) == titles


def test_resolve_all_returns_empty_list_when_nothing_matches(resolver):
    assert resolver.resolve_all(SEARCH_INPUT, timeout=0.1) == []


def test_exists(session, resolver):
    assert resolver.exists(SEARCH_INPUT) is False

    session.add(SEARCH_ID, FakeHandle(displayed=False))

    assert resolver.exists(SEARCH_INPUT) is True
    assert resolver.exists(SEARCH_INPUT, mode=InteractionMode.VISIBLE) is False


def test_health_report_when_no_fallbacks(resolver):
    assert "No maintenance needed" in resolver.health_report()
