"""
================================================================================
Timing Configuration
================================================================================

Every timeout, polling interval and settle delay used by the interaction
layer, resolved once from configuration (`config/config.yaml`):

    timeouts:
      default: 10.0          # overall element resolution / condition wait
      strategy: 3.0          # budget per locator strategy
      poll_interval: 0.25
    overlay:
      probe_timeout: 2.0     # per overlay signature
    settle:                  # fixed post-action delays, one per wait kind
      after_dismiss: 1.0
      after_tap: 0.5
      ...
    retry:
      max_attempts: 3
      backoff: 2.0

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from loguru import logger

from wikisuites.common.config_loader import ConfigLoader


# Observed post-action delays (seconds) per interaction type.
DEFAULT_SETTLE_DELAYS: Dict[str, float] = {
    "after_dismiss": 1.0,
    "after_tap": 0.5,
    "after_type": 1.5,
    "after_navigation": 1.5,
    "after_page_load": 1.0,
    "after_scroll": 0.5,
}


@dataclass(frozen=True)
class TimingConfig:
    """
    Resolved timing values.

    Attributes:
        default_timeout: Overall timeout for resolution and condition waits
        strategy_timeout: Sub-timeout for a single locator strategy
        poll_interval: Delay between polls inside a wait
        overlay_probe_timeout: How long to look for each overlay signature
        settle_delays: Fixed delay per wait kind (see DEFAULT_SETTLE_DELAYS)
        retry_max_attempts: Attempts for RetryingOperationRunner
        retry_backoff: Initial sleep between attempts
        retry_backoff_multiplier: Growth factor applied after each sleep
        retry_max_backoff: Upper bound for the sleep
    """

    default_timeout: float = 10.0
    strategy_timeout: float = 3.0
    poll_interval: float = 0.25
    overlay_probe_timeout: float = 2.0
    settle_delays: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SETTLE_DELAYS))
    retry_max_attempts: int = 3
    retry_backoff: float = 2.0
    retry_backoff_multiplier: float = 1.0
    retry_max_backoff: float = 10.0

    def __post_init__(self) -> None:
        for name in ("default_timeout", "strategy_timeout", "overlay_probe_timeout"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if self.retry_max_attempts < 1:
            raise ValueError("retry_max_attempts must be >= 1")

        # Partial maps only override; every built-in kind stays defined.
        settle = dict(DEFAULT_SETTLE_DELAYS)
        settle.update(self.settle_delays)
        negative = sorted(kind for kind, delay in settle.items() if delay < 0)
        if negative:
            raise ValueError(f"settle delays must be >= 0: {negative}")
        object.__setattr__(self, "settle_delays", settle)

    def settle_delay(self, kind: str) -> float:
        """Delay for a wait kind; unknown kinds are a programming error."""
        try:
            return self.settle_delays[kind]
        except KeyError:
            raise KeyError(
                f"Unknown settle kind '{kind}'. Known: {sorted(self.settle_delays)}"
            ) from None

    def with_overrides(self, **changes) -> "TimingConfig":
        return replace(self, **changes)

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "TimingConfig":
        """Build timings from ConfigLoader (YAML + environment overrides)."""
        config = config or ConfigLoader()
        defaults = cls()

        settle = dict(DEFAULT_SETTLE_DELAYS)
        settle.update({k: float(v) for k, v in config.get_section("settle").items()})
        # Individual keys may also come from the environment (SETTLE_AFTER_TAP).
        for kind in list(settle):
            settle[kind] = float(config.get(f"settle.{kind}", settle[kind]))

        timing = cls(
            default_timeout=float(config.get("timeouts.default", defaults.default_timeout)),
            strategy_timeout=float(config.get("timeouts.strategy", defaults.strategy_timeout)),
            poll_interval=float(config.get("timeouts.poll_interval", defaults.poll_interval)),
            overlay_probe_timeout=float(
                config.get("overlay.probe_timeout", defaults.overlay_probe_timeout)
            ),
            settle_delays=settle,
            retry_max_attempts=int(config.get("retry.max_attempts", defaults.retry_max_attempts)),
            retry_backoff=float(config.get("retry.backoff", defaults.retry_backoff)),
            retry_backoff_multiplier=float(
                config.get("retry.backoff_multiplier", defaults.retry_backoff_multiplier)
            ),
            retry_max_backoff=float(config.get("retry.max_backoff", defaults.retry_max_backoff)),
        )
        logger.debug(f"Timing configuration: {timing}")
        return timing


__all__ = [
    "DEFAULT_SETTLE_DELAYS",
    "TimingConfig",
]
