"""
================================================================================
UI Automation Exceptions
================================================================================

Typed failure taxonomy for the interaction layer. Backend-specific errors
(Playwright, Selenium/Appium) are translated into these at the session
adapter boundary and never leak out as raw protocol exceptions.

    UiAutomationError
    ├── NoSuchElementError      single lookup found nothing (adapter level)
    ├── SessionError            remote session lost / unusable
    ├── ElementNotFoundError    every locator strategy failed within timeout
    ├── SettleTimeoutError      awaited condition never became true
    ├── RetryExhaustedError     retry runner used all attempts
    └── OverlayDismissalError   best-effort dismissal failed (never escapes)

================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .locators import LocatorStrategy, LogicalElement


class UiAutomationError(Exception):
    """Base class for all interaction-layer failures."""
    pass


class NoSuchElementError(UiAutomationError):
    """Raised by a session when a single-element lookup matches nothing."""

    def __init__(self, locator: "LocatorStrategy", message: str = ""):
        self.locator = locator
        super().__init__(message or f"No element matches {locator}")


class SessionError(UiAutomationError):
    """Raised when the remote automation session is lost or unusable."""
    pass


class ElementNotFoundError(UiAutomationError):
    """
    Raised when all locator strategies fail to produce a usable handle.

    Attributes:
        element: The logical element that was being resolved
        strategies_tried: Strategies attempted, in the order they were tried
        last_error: Description of the last lookup failure (if any)
        elapsed: Seconds spent before giving up
        timeout: Overall timeout that was in effect
        mode: Interaction mode the handle had to satisfy
    """

    def __init__(
        self,
        element: "LogicalElement",
        strategies_tried: Sequence["LocatorStrategy"],
        last_error: Optional[str] = None,
        elapsed: float = 0.0,
        timeout: float = 0.0,
        mode: Optional[str] = None,
    ):
        self.element = element
        self.strategies_tried = tuple(strategies_tried)
        self.last_error = last_error
        self.elapsed = elapsed
        self.timeout = timeout
        self.mode = mode

        tried = ", ".join(str(s) for s in self.strategies_tried) or "<none>"
        message = (
            f"Element '{element.name}' not found"
            f"{f' ({mode})' if mode else ''} after {elapsed:.2f}s "
            f"(timeout={timeout:.2f}s). Strategies tried: {tried}"
        )
        if last_error:
            message += f". Last error: {last_error}"
        super().__init__(message)


class SettleTimeoutError(UiAutomationError):
    """
    Raised when an awaited UI condition never holds within its timeout.

    Attributes:
        elapsed: Seconds spent polling
        timeout: Timeout that was in effect
        description: Human-readable description of the condition
        last_error: Last exception raised by the condition (if any)
    """

    def __init__(
        self,
        elapsed: float,
        timeout: float,
        description: str = "",
        last_error: Optional[str] = None,
    ):
        self.elapsed = elapsed
        self.timeout = timeout
        self.description = description
        self.last_error = last_error

        message = (
            f"Timeout after {elapsed:.2f}s (timeout={timeout:.2f}s) "
            f"waiting for: {description or 'condition'}"
        )
        if last_error:
            message += f". Last error: {last_error}"
        super().__init__(message)


class RetryExhaustedError(UiAutomationError):
    """
    Raised when a retried operation never succeeded.

    Attributes:
        attempts: Number of attempts consumed
        last_error: Exception raised by the final attempt
    """

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None, operation: str = ""):
        self.attempts = attempts
        self.last_error = last_error
        self.operation = operation

        label = f" '{operation}'" if operation else ""
        message = f"Operation{label} failed after {attempts} attempt(s)"
        if last_error is not None:
            message += f": {type(last_error).__name__}: {last_error}"
        super().__init__(message)


class OverlayDismissalError(UiAutomationError):
    """Best-effort overlay dismissal failure; handled inside the dismisser."""

    def __init__(self, overlay_name: str, cause: BaseException):
        self.overlay_name = overlay_name
        self.cause = cause
        super().__init__(
            f"Failed to dismiss overlay '{overlay_name}': {type(cause).__name__}: {cause}"
        )


__all__ = [
    "UiAutomationError",
    "NoSuchElementError",
    "SessionError",
    "ElementNotFoundError",
    "SettleTimeoutError",
    "RetryExhaustedError",
    "OverlayDismissalError",
]
