"""
================================================================================
Overlay Dismisser
================================================================================

Closes transient overlays (onboarding screens, announcement popups, cookie
banners) before interactions they could block.

Overlay appearance depends on network timing; page objects call
`dismiss_all()` before every interaction. Absence of an overlay
is the normal case and costs one short probe per registered signature.

    dismisser = OverlayDismisser(session, registry=(
        OverlaySignature.of("onboarding skip", LocatorStrategy.by_stable_id("skip_button")),
        OverlaySignature.of("announcement", LocatorStrategy.by_stable_id("close"),
                            action=DismissAction.BACK),
    ))
    dismisser.dismiss_all()   # -> number of overlays closed, never raises

Registry order is dismissal priority. After each dismissal the UI is given
the "after_dismiss" settle delay, because closing one overlay can reveal the
next.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from loguru import logger

from .element_resolver import ElementResolver, InteractionMode
from .exceptions import ElementNotFoundError, OverlayDismissalError
from .locators import LocatorStrategy, LogicalElement
from .session import Session
from .settle_waiter import SettleWaiter
from .timing import TimingConfig


class DismissAction(str, Enum):
    """How an overlay is closed."""

    CLICK = "click"
    BACK = "back"


@dataclass(frozen=True)
class OverlaySignature:
    """
    A known transient overlay.

    Attributes:
        element: What to look for (and click, for DismissAction.CLICK)
        action: How to close the overlay once it is showing
    """

    element: LogicalElement
    action: DismissAction = DismissAction.CLICK

    @property
    def name(self) -> str:
        return self.element.name

    @classmethod
    def of(
        cls,
        name: str,
        *strategies: LocatorStrategy,
        action: DismissAction = DismissAction.CLICK,
    ) -> "OverlaySignature":
        return cls(LogicalElement.of(name, *strategies), action)


class OverlayDismisser:
    """
    Best-effort, idempotent dismissal of registered overlays.

    Attributes:
        session: Live automation session
        registry: Ordered overlay signatures
    """

    def __init__(
        self,
        session: Session,
        registry: Sequence[OverlaySignature],
        resolver: Optional[ElementResolver] = None,
        waiter: Optional[SettleWaiter] = None,
        timing: Optional[TimingConfig] = None,
    ):
        self.session = session
        self.registry: Tuple[OverlaySignature, ...] = tuple(registry)
        self.timing = timing or (resolver.timing if resolver else TimingConfig.from_config())
        self.resolver = resolver or ElementResolver(session, self.timing)
        self.waiter = waiter or SettleWaiter(self.timing)

    def dismiss_all(self) -> int:
        """
        Close every registered overlay that is currently showing.

        Returns:
            Number of overlays dismissed (0 when none were showing)
        """
        dismissed = 0
        for signature in self.registry:
            if self._dismiss_one(signature):
                dismissed += 1
        if dismissed:
            logger.info(f"Dismissed {dismissed} overlay(s)")
        return dismissed

    def dismiss(self, name: str) -> bool:
        """
        Close a single registered overlay by name, if it is showing.

        Raises:
            KeyError: If no overlay with that name is registered
        """
        for signature in self.registry:
            if signature.name == name:
                return self._dismiss_one(signature)
        raise KeyError(f"No overlay registered as '{name}'")

    def _dismiss_one(self, signature: OverlaySignature) -> bool:
        try:
            handle = self.resolver.resolve(
                signature.element,
                timeout=self.timing.overlay_probe_timeout,
                mode=InteractionMode.PRESENCE,
            )
        except ElementNotFoundError:
            logger.debug(f"Overlay '{signature.name}' not present")
            return False
        except Exception as e:
            self._report(OverlayDismissalError(signature.name, e))
            return False

        try:
            if not handle.is_displayed():
                logger.debug(f"Overlay '{signature.name}' present but hidden")
                return False

            logger.info(f"Closing overlay '{signature.name}' ({signature.action.value})")
            if signature.action is DismissAction.CLICK:
                handle.click()
            else:
                self.session.navigate_back()
        except Exception as e:
            self._report(OverlayDismissalError(signature.name, e))
            return False

        self.waiter.settle("after_dismiss")
        return True

    @staticmethod
    def _report(error: OverlayDismissalError) -> None:
        # Dismissal is best-effort; the interaction that follows surfaces any
        # real blockage as a typed failure.
        logger.warning(str(error))


__all__ = [
    "DismissAction",
    "OverlayDismisser",
    "OverlaySignature",
]
