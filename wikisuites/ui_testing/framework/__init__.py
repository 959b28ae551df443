"""
================================================================================
UI Testing Framework
================================================================================

Resilient element location and interaction layer shared by the web
(Playwright) and Android (Appium) suites.

Components:
    - locators: LocatorStrategy / LogicalElement
    - element_resolver: Multi-strategy resolution with bounded waits
    - overlay_dismisser: Best-effort dismissal of transient overlays
    - settle_waiter: Condition waits and fixed settle delays
    - retry_runner: Retry with back-off and per-attempt sessions
    - page_base: Base page object tying the above together

Backend adapters are imported from their own modules so that only the
driver stack a suite needs gets loaded:
    - web_session: WebSession / WebSessionFactory (Playwright)
    - mobile_session: MobileSession / MobileSessionFactory (Appium)

Author: Automation Team
License: MIT
================================================================================
"""

from .element_resolver import ElementResolver, InteractionMode, LocatorHealth
from .exceptions import (
    ElementNotFoundError,
    NoSuchElementError,
    OverlayDismissalError,
    RetryExhaustedError,
    SessionError,
    SettleTimeoutError,
    UiAutomationError,
)
from .locators import LocatorKind, LocatorStrategy, LogicalElement
from .overlay_dismisser import DismissAction, OverlayDismisser, OverlaySignature
from .page_base import BasePage
from .retry_runner import RetryingOperationRunner, RetryPolicy, with_retry
from .session import ElementHandle, Session, SessionFactory
from .settle_waiter import SettleWaiter, WaitSpec
from .timing import TimingConfig

__all__ = [
    "BasePage",
    "DismissAction",
    "ElementHandle",
    "ElementNotFoundError",
    "ElementResolver",
    "InteractionMode",
    "LocatorHealth",
    "LocatorKind",
    "LocatorStrategy",
    "LogicalElement",
    "NoSuchElementError",
    "OverlayDismissalError",
    "OverlayDismisser",
    "OverlaySignature",
    "RetryExhaustedError",
    "RetryPolicy",
    "RetryingOperationRunner",
    "Session",
    "SessionError",
    "SessionFactory",
    "SettleTimeoutError",
    "SettleWaiter",
    "TimingConfig",
    "UiAutomationError",
    "WaitSpec",
    "with_retry",
]
