"""
================================================================================
Settle Waiter
================================================================================

Bounded waits for asynchronous UI state transitions.

Two primitives:
    wait_until(condition, timeout)   poll until the condition holds, or raise
                                     SettleTimeoutError
    settle_delay(seconds)            unconditional pause

The readiness signals exposed by browsers and the Android accessibility tree
often flip to "ready" before layout and animations finish. The fixed settle
delays are layered on top of the condition waits to absorb that gap; their
durations come from configuration, one value per wait kind (see timing.py).

Usage:
    waiter = SettleWaiter(TimingConfig.from_config())
    waiter.wait_until(lambda: session.current_readiness_flag(),
                      timeout=10, description="document ready")
    waiter.settle("after_page_load")

================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, Type

from loguru import logger

from .exceptions import SessionError, SettleTimeoutError
from .locators import LocatorStrategy
from .session import ElementHandle, Session
from .timing import TimingConfig


@dataclass
class WaitSpec:
    """
    A single wait request.

    Attributes:
        condition: Zero-arg callable; a truthy return value ends the wait
        timeout: Seconds before giving up
        poll_interval: Seconds between evaluations
        description: Human-readable description for logs and errors
    """

    condition: Callable[[], Any]
    timeout: float
    poll_interval: float
    description: str = ""


@dataclass
class PollOutcome:
    """Result of a poll loop that did not raise."""

    value: Any
    satisfied: bool
    elapsed: float
    attempts: int
    last_error: Optional[str] = None


def poll(
    condition: Callable[[], Any],
    timeout: float,
    poll_interval: float,
    propagate: Tuple[Type[BaseException], ...] = (SessionError,),
) -> PollOutcome:
    """
    Evaluate `condition` until it returns a truthy value or `timeout` elapses.

    The condition is always evaluated at least once. Exceptions raised by the
    condition count as "not yet" and are remembered as `last_error`, except
    those listed in `propagate` (a lost session will not come back by
    polling). Never sleeps past the deadline.
    """
    start = time.monotonic()
    deadline = start + max(timeout, 0.0)
    attempts = 0
    last_error: Optional[str] = None

    while True:
        attempts += 1
        try:
            value = condition()
        except propagate:
            raise
        except Exception as e:
            value = None
            last_error = f"{type(e).__name__}: {e}"
        else:
            if value:
                return PollOutcome(value, True, time.monotonic() - start, attempts, last_error)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return PollOutcome(value, False, time.monotonic() - start, attempts, last_error)
        time.sleep(min(poll_interval, remaining))


class SettleWaiter:
    """
    Condition-based waits plus named fixed settle delays.

    Attributes:
        timing: Timeouts, poll interval and settle delays in effect
    """

    def __init__(self, timing: Optional[TimingConfig] = None):
        self.timing = timing or TimingConfig.from_config()

    def wait(self, spec: WaitSpec) -> Any:
        """
        Run a WaitSpec.

        Returns:
            The condition's first truthy value

        Raises:
            SettleTimeoutError: If the condition never held within spec.timeout
        """
        outcome = poll(spec.condition, spec.timeout, spec.poll_interval)
        if outcome.satisfied:
            logger.debug(
                f"Condition met after {outcome.attempts} poll(s) "
                f"({outcome.elapsed:.2f}s): {spec.description or 'condition'}"
            )
            return outcome.value

        error = SettleTimeoutError(
            elapsed=outcome.elapsed,
            timeout=spec.timeout,
            description=spec.description,
            last_error=outcome.last_error,
        )
        logger.warning(str(error))
        raise error

    def wait_until(
        self,
        condition: Callable[[], Any],
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        description: str = "",
    ) -> Any:
        """
        Wait for `condition` to return a truthy value.

        Args:
            condition: Zero-arg predicate over driver state
            timeout: Seconds to wait (defaults to timing.default_timeout)
            poll_interval: Seconds between polls (defaults to timing.poll_interval)
            description: Used in logs and in SettleTimeoutError

        Returns:
            The condition's first truthy value

        Raises:
            SettleTimeoutError: If the condition never held
        """
        spec = WaitSpec(
            condition=condition,
            timeout=self.timing.default_timeout if timeout is None else timeout,
            poll_interval=self.timing.poll_interval if poll_interval is None else poll_interval,
            description=description,
        )
        return self.wait(spec)

    def settle_delay(self, seconds: float) -> None:
        """Pause unconditionally to let animations and layout finish."""
        if seconds <= 0:
            return
        logger.debug(f"Settling for {seconds:.2f}s")
        time.sleep(seconds)

    def settle(self, kind: str) -> None:
        """Pause for the configured delay of a wait kind (e.g. "after_tap")."""
        self.settle_delay(self.timing.settle_delay(kind))

    # =========================================================================
    # Common Conditions
    # =========================================================================

    def wait_for_non_empty(
        self,
        session: Session,
        locator: LocatorStrategy,
        timeout: Optional[float] = None,
        description: str = "",
    ) -> List[ElementHandle]:
        """Wait until `locator` matches at least one element; return the matches."""
        return self.wait_until(
            lambda: session.find_elements(locator),
            timeout=timeout,
            description=description or f"{locator} to be non-empty",
        )

    def wait_for_readiness(self, session: Session, timeout: Optional[float] = None) -> None:
        """Wait until the session reports its readiness flag as true."""
        self.wait_until(
            session.current_readiness_flag,
            timeout=timeout,
            description="session readiness flag",
        )

    def wait_for_displayed(
        self,
        handle: ElementHandle,
        timeout: Optional[float] = None,
        description: str = "",
    ) -> ElementHandle:
        """Wait until a handle reports itself as displayed."""
        self.wait_until(
            handle.is_displayed,
            timeout=timeout,
            description=description or "element to be displayed",
        )
        return handle


__all__ = [
    "PollOutcome",
    "SettleWaiter",
    "WaitSpec",
    "poll",
]
