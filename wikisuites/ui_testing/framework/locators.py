"""
================================================================================
Locator Definitions
================================================================================

Pure data describing *what* to find, independent of any live session.

    LocatorStrategy   one technique for finding an element
    LogicalElement    a named element with an ordered list of strategies

Strategy order is significant: cheaper, more stable locators (stable id)
go first and fragile ones (structural path) last, so the common case is fast
and the fallbacks only matter when the UI drifts (renamed ids, localized
labels).

Example:
    SEARCH_INPUT = LogicalElement.of(
        "search input",
        LocatorStrategy.by_stable_id("org.wikipedia.alpha:id/search_src_text"),
        LocatorStrategy.by_accessibility_label("Search Wikipedia"),
    )

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class LocatorKind(str, Enum):
    """Locator technique, listed from most to least stable."""

    STABLE_ID = "id"
    ACCESSIBILITY_LABEL = "accessibility"
    STRUCTURAL_PATH = "path"


@dataclass(frozen=True)
class LocatorStrategy:
    """
    One way of finding an element.

    Attributes:
        kind: Locator technique
        value: Identifier, label or path, interpreted by the session backend
    """

    kind: LocatorKind
    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError(f"{self.kind.name} locator requires a non-empty value")

    @classmethod
    def by_stable_id(cls, value: str) -> "LocatorStrategy":
        return cls(LocatorKind.STABLE_ID, value)

    @classmethod
    def by_accessibility_label(cls, value: str) -> "LocatorStrategy":
        return cls(LocatorKind.ACCESSIBILITY_LABEL, value)

    @classmethod
    def by_structural_path(cls, value: str) -> "LocatorStrategy":
        return cls(LocatorKind.STRUCTURAL_PATH, value)

    def __str__(self) -> str:
        return f"{self.kind.value}={self.value!r}"


@dataclass(frozen=True)
class LogicalElement:
    """
    A semantic UI element ("search input"), not a live handle.

    Attributes:
        name: Human-readable element name used in logs and errors
        strategies: Ordered, non-empty tuple of locator strategies
    """

    name: str
    strategies: Tuple[LocatorStrategy, ...]

    def __post_init__(self) -> None:
        # Accept any iterable at construction time but store a tuple.
        object.__setattr__(self, "strategies", tuple(self.strategies))
        if not self.strategies:
            raise ValueError(f"Element '{self.name}' needs at least one locator strategy")
        for strategy in self.strategies:
            if not isinstance(strategy, LocatorStrategy):
                raise TypeError(
                    f"Element '{self.name}' has a non-LocatorStrategy entry: {strategy!r}"
                )

    @classmethod
    def of(cls, name: str, *strategies: LocatorStrategy) -> "LogicalElement":
        """Build an element from positional strategies, primary first."""
        return cls(name, tuple(strategies))

    @property
    def primary(self) -> LocatorStrategy:
        return self.strategies[0]

    def __str__(self) -> str:
        return self.name


__all__ = [
    "LocatorKind",
    "LocatorStrategy",
    "LogicalElement",
]
