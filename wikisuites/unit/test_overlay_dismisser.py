import time

import pytest

from wikisuites.ui_testing.framework.exceptions import UiAutomationError
from wikisuites.ui_testing.framework.locators import LocatorStrategy
from wikisuites.ui_testing.framework.overlay_dismisser import (
    DismissAction,
    OverlayDismisser,
    OverlaySignature,
)
from wikisuites.ui_testing.framework.settle_waiter import SettleWaiter
from wikisuites.unit.fakes import FakeHandle, FakeSession, fast_timing


SKIP = LocatorStrategy.by_stable_id("org.wikipedia.alpha:id/fragment_onboarding_skip_button")
ANNOUNCEMENT = LocatorStrategy.by_stable_id("org.wikipedia.alpha:id/view_announcement_action_negative")
DIALOG = LocatorStrategy.by_stable_id("org.wikipedia.alpha:id/dialogContainer")

REGISTRY = (
    OverlaySignature.of("onboarding skip", SKIP),
    OverlaySignature.of("announcement", ANNOUNCEMENT),
    OverlaySignature.of("dialog", DIALOG, action=DismissAction.BACK),
)


class RecordingWaiter(SettleWaiter):
    def __init__(self, timing):
        super().__init__(timing)
        self.settled = []

    def settle(self, kind):
        self.settled.append(kind)
        super().settle(kind)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def waiter():
    return RecordingWaiter(fast_timing())


@pytest.fixture
def dismisser(session, waiter):
    return OverlayDismisser(session, REGISTRY, waiter=waiter, timing=fast_timing())


def closes_on_click(session, locator):
    return FakeHandle(on_click=lambda: session.remove(locator))


def test_nothing_to_dismiss(session, dismisser, waiter):
    assert dismisser.dismiss_all() == 0
    assert waiter.settled == []


def test_absent_overlay_probe_is_short(session):
    timing = fast_timing(overlay_probe_timeout=0.1)
    dismisser = OverlayDismisser(session, REGISTRY[:1], timing=timing)

    start = time.monotonic()
    assert dismisser.dismiss_all() == 0
    assert time.monotonic() - start < 0.1 + 0.15


def test_dismisses_visible_overlay_and_settles(session, dismisser, waiter):
    skip = session.add(SKIP, closes_on_click(session, SKIP))

    assert dismisser.dismiss_all() == 1
    assert skip.clicks == 1
    assert waiter.settled == ["after_dismiss"]


def test_second_call_is_a_no_op(session, dismisser):
    skip = session.add(SKIP, closes_on_click(session, SKIP))

    assert dismisser.dismiss_all() == 1
    assert dismisser.dismiss_all() == 0
    assert skip.clicks == 1


def test_registry_order_is_dismissal_order(session, dismisser):
    order = []
    session.add(ANNOUNCEMENT, FakeHandle(on_click=lambda: order.append("announcement")))
    session.add(SKIP, FakeHandle(on_click=lambda: order.append("onboarding skip")))

    assert dismisser.dismiss_all() == 2
    assert order == ["onboarding skip", "announcement"]


def test_back_action_uses_navigate_back(session, dismisser):
    dialog = session.add(DIALOG, FakeHandle())

    assert dismisser.dismiss_all() == 1
    assert session.back_presses == 1
    assert dialog.clicks == 0


def test_hidden_overlay_is_left_alone(session, dismisser):
    hidden = session.add(SKIP, FakeHandle(displayed=False))

    assert dismisser.dismiss_all() == 0
    assert hidden.clicks == 0


def test_failed_dismissal_is_swallowed(session, dismisser):
    session.add(SKIP, FakeHandle(click_error=UiAutomationError("element detached")))
    announcement = session.add(ANNOUNCEMENT, FakeHandle())

    assert dismisser.dismiss_all() == 1
    assert announcement.clicks == 1


def test_lost_session_never_escapes(session, dismisser):
    session.lost = True

    assert dismisser.dismiss_all() == 0


def test_dismiss_single_overlay_by_name(session, dismisser):
    skip = session.add(SKIP, closes_on_click(session, SKIP))
    announcement = session.add(ANNOUNCEMENT, FakeHandle())

    assert dismisser.dismiss("onboarding skip") is True
    assert dismisser.dismiss("onboarding skip") is False
    assert skip.clicks == 1
    assert announcement.clicks == 0


def test_dismiss_unknown_name(dismisser):
    with pytest.raises(KeyError):
        dismisser.dismiss("cookie banner")


def test_partial_settle_map_still_settles_after_dismiss(session):
    timing = fast_timing().with_overrides(settle_delays={"after_tap": 0.0})
    session.add(SKIP, closes_on_click(session, SKIP))

    start = time.monotonic()
    assert OverlayDismisser(session, REGISTRY[:1], timing=timing).dismiss_all() == 1
    assert time.monotonic() - start >= timing.settle_delay("after_dismiss")
