"""
================================================================================
Element Resolver
================================================================================

Resolves a LogicalElement to a live handle by trying its locator strategies
in declared order, within a bounded wait.

    resolver = ElementResolver(session)
    handle = resolver.resolve(SEARCH_INPUT, timeout=10, mode=InteractionMode.CLICKABLE)
    handle.click()

Algorithm:
    - Each strategy is polled for at most `strategy_timeout` (clamped to the
      time left before the overall deadline).
    - The first strategy producing a handle that satisfies the requested mode
      wins; later strategies are not tried.
    - If a full pass finds nothing and time remains, the strategies are tried
      again from the top until the overall deadline.
    - Exhaustion raises ElementNotFoundError carrying the strategies tried,
      the last lookup error and the elapsed time.

Handles are never cached: each call returns a fresh lookup.

When a fallback strategy wins, the resolver logs a warning and records the
element in its health report so stale primary locators can be updated.

================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, TypeVar

from loguru import logger

from .exceptions import ElementNotFoundError
from .locators import LocatorStrategy, LogicalElement
from .session import ElementHandle, Session
from .settle_waiter import poll
from .timing import TimingConfig


T = TypeVar("T")


class InteractionMode(str, Enum):
    """What a resolved handle must satisfy before it is returned."""

    PRESENCE = "present"
    VISIBLE = "visible"
    CLICKABLE = "clickable"


@dataclass
class LocatorHealth:
    """
    Records that an element was found through a fallback strategy.

    Attributes:
        element_name: Human-readable element name
        primary: The preferred (first) strategy
        fallback: The strategy that actually matched
        fallback_index: Position of the matching strategy in the element
    """

    element_name: str
    primary: LocatorStrategy
    fallback: LocatorStrategy
    fallback_index: int


def satisfies(handle: ElementHandle, mode: InteractionMode) -> bool:
    """Check a handle against an interaction mode."""
    if mode is InteractionMode.PRESENCE:
        return True
    if not handle.is_displayed():
        return False
    if mode is InteractionMode.CLICKABLE:
        return handle.is_enabled()
    return True


class ElementResolver:
    """
    Multi-strategy element resolution against one session.

    Attributes:
        session: Live automation session
        timing: Timeouts in effect (default, per strategy, poll interval)
    """

    def __init__(self, session: Session, timing: Optional[TimingConfig] = None):
        self.session = session
        self.timing = timing or TimingConfig.from_config()
        self._fallback_used: Dict[str, LocatorHealth] = {}

    def resolve(
        self,
        element: LogicalElement,
        timeout: Optional[float] = None,
        mode: InteractionMode = InteractionMode.VISIBLE,
    ) -> ElementHandle:
        """
        Resolve an element to a handle satisfying `mode`.

        Args:
            element: Logical element with ordered strategies
            timeout: Overall timeout in seconds (defaults to timing.default_timeout)
            mode: Required interaction state of the returned handle

        Returns:
            A live handle, valid for the interaction that follows

        Raises:
            ElementNotFoundError: When no strategy produced a suitable handle in time
        """

        def pick(handles: List[ElementHandle]) -> Optional[ElementHandle]:
            for handle in handles:
                if satisfies(handle, mode):
                    return handle
            return None

        return self._search(element, timeout, pick, mode)

    def resolve_all(
        self,
        element: LogicalElement,
        timeout: Optional[float] = None,
    ) -> List[ElementHandle]:
        """
        Return every match of the first strategy that matches anything.

        Unlike resolve(), running out of time is not an error here: an empty
        list is returned, since "no results" is a legitimate answer for a
        collection.
        """
        try:
            return self._search(element, timeout, lambda handles: handles or None, InteractionMode.PRESENCE)
        except ElementNotFoundError as e:
            logger.debug(f"No matches for '{element.name}': {e.last_error}")
            return []

    def exists(
        self,
        element: LogicalElement,
        timeout: float = 0.0,
        mode: InteractionMode = InteractionMode.PRESENCE,
    ) -> bool:
        """Check whether the element can be resolved in `mode` within `timeout`."""
        try:
            self.resolve(element, timeout=timeout, mode=mode)
            return True
        except ElementNotFoundError:
            return False

    # =========================================================================
    # Locator Health
    # =========================================================================

    @property
    def fallbacks_used(self) -> Dict[str, LocatorHealth]:
        return dict(self._fallback_used)

    def health_report(self) -> str:
        """
        Summarize elements that needed a fallback strategy.

        Returns:
            Formatted report; maintenance candidates are listed by element name
        """
        if not self._fallback_used:
            return "All elements used primary locators. No maintenance needed."

        lines = [
            "Locator Health Report - Fallbacks Used:",
            "",
            "The following elements used fallback locators.",
            "Consider updating the primary locators:",
            "",
        ]
        for name, health in self._fallback_used.items():
            lines.extend([
                f"  [{name}]",
                f"    Failed primary: {health.primary}",
                f"    Used #{health.fallback_index}: {health.fallback}",
                "",
            ])
        return "\n".join(lines)

    # =========================================================================
    # Internals
    # =========================================================================

    def _search(
        self,
        element: LogicalElement,
        timeout: Optional[float],
        pick: Callable[[List[ElementHandle]], Optional[T]],
        mode: InteractionMode,
    ) -> T:
        effective_timeout = self.timing.default_timeout if timeout is None else timeout
        start = time.monotonic()
        deadline = start + effective_timeout

        tried: List[LocatorStrategy] = []
        last_error: Optional[str] = None
        first_pass = True

        while True:
            for index, strategy in enumerate(element.strategies):
                remaining = deadline - time.monotonic()
                # Every strategy gets at least one look, even with no time left.
                if remaining <= 0 and not first_pass:
                    break
                if strategy not in tried:
                    tried.append(strategy)

                budget = max(0.0, min(self.timing.strategy_timeout, remaining))
                found, error = self._probe(strategy, pick, mode, budget)
                if found is not None:
                    self._record(element, index, strategy)
                    return found
                last_error = error or last_error

            first_pass = False
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            time.sleep(min(self.timing.poll_interval, remaining))

        elapsed = time.monotonic() - start
        error = ElementNotFoundError(
            element=element,
            strategies_tried=tried,
            last_error=last_error,
            elapsed=elapsed,
            timeout=effective_timeout,
            mode=mode.value,
        )
        logger.debug(str(error))
        raise error

    def _probe(
        self,
        strategy: LocatorStrategy,
        pick: Callable[[List[ElementHandle]], Optional[T]],
        mode: InteractionMode,
        budget: float,
    ):
        """Poll one strategy for `budget` seconds. Returns (result, last_error)."""
        note: Dict[str, str] = {}

        def attempt() -> Optional[T]:
            handles = self.session.find_elements(strategy)
            if not handles:
                note["error"] = f"{strategy}: no match"
                return None
            result = pick(handles)
            if result is None:
                note["error"] = f"{strategy}: {len(handles)} match(es), none {mode.value}"
            return result

        outcome = poll(attempt, budget, self.timing.poll_interval)
        if outcome.satisfied:
            return outcome.value, None
        return None, outcome.last_error or note.get("error")

    def _record(self, element: LogicalElement, index: int, strategy: LocatorStrategy) -> None:
        if index == 0:
            logger.debug(f"Element '{element.name}' found: {strategy}")
            return
        health = LocatorHealth(
            element_name=element.name,
            primary=element.primary,
            fallback=strategy,
            fallback_index=index,
        )
        self._fallback_used[element.name] = health
        logger.warning(
            f"Element '{element.name}' used fallback #{index}: {strategy} "
            f"(primary {element.primary} failed)"
        )


__all__ = [
    "ElementResolver",
    "InteractionMode",
    "LocatorHealth",
    "satisfies",
]
