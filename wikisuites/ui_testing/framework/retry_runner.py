"""
================================================================================
Retrying Operation Runner
================================================================================

Runs a driver-level operation against a fresh session, retrying with
back-off when the session or the operation fails.

    runner = RetryingOperationRunner()
    title = runner.run(WebSessionFactory(), lambda s: WikipediaPage(s).open_main_page())

Each attempt owns its session: it is created by the factory, handed to the
operation, and closed in a `finally` block whether the attempt succeeded or
not. A failing factory call counts as an attempt. Errors raised while closing
are logged and never replace the attempt's real outcome.

Two lighter variants share the same policy:
    open_session(factory)   retry construction only, caller owns the session
    @with_retry(policy)     retry a single in-session command, no rebuild

================================================================================
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

from .exceptions import RetryExhaustedError
from .session import Session, SessionFactory
from .timing import TimingConfig


T = TypeVar("T")


def _always_retry(error: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (>= 1)
        backoff: Initial delay between attempts in seconds
        backoff_multiplier: Factor applied to the delay after each retry
        max_backoff: Upper bound for the delay
        is_retryable: Predicate deciding whether an error is worth another attempt
    """

    max_attempts: int = 3
    backoff: float = 2.0
    backoff_multiplier: float = 1.0
    max_backoff: float = 10.0
    is_retryable: Callable[[BaseException], bool] = _always_retry

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff must be >= 0")

    def delays(self):
        """Yield the sleep before each retry (max_attempts - 1 values)."""
        delay = self.backoff
        for _ in range(self.max_attempts - 1):
            yield min(delay, self.max_backoff)
            delay = min(delay * self.backoff_multiplier, self.max_backoff)

    @classmethod
    def from_timing(
        cls,
        timing: Optional[TimingConfig] = None,
        is_retryable: Callable[[BaseException], bool] = _always_retry,
    ) -> "RetryPolicy":
        timing = timing or TimingConfig.from_config()
        return cls(
            max_attempts=timing.retry_max_attempts,
            backoff=timing.retry_backoff,
            backoff_multiplier=timing.retry_backoff_multiplier,
            max_backoff=timing.retry_max_backoff,
            is_retryable=is_retryable,
        )


def _describe(func: Callable) -> str:
    return getattr(func, "__name__", None) or repr(func)


class RetryingOperationRunner:
    """
    Executes operations with bounded retries and per-attempt sessions.

    Attributes:
        policy: Default RetryPolicy for run() / open_session()
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy or RetryPolicy.from_timing()
        self._sleep = sleep

    def run(
        self,
        session_factory: SessionFactory,
        operation: Callable[[Session], T],
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        """
        Run `operation` against a new session, retrying on failure.

        Args:
            session_factory: Zero-arg callable producing a live session
            operation: Callable receiving the session
            policy: Overrides the runner's default policy

        Returns:
            The operation's result from the first successful attempt

        Raises:
            RetryExhaustedError: When every attempt failed, or an error was
                not retryable. The final error is chained as __cause__.
        """
        policy = policy or self.policy

        def attempt() -> T:
            session = session_factory()
            try:
                return operation(session)
            finally:
                self._close_quietly(session)

        return self._execute(attempt, policy, _describe(operation))

    def open_session(
        self,
        session_factory: SessionFactory,
        policy: Optional[RetryPolicy] = None,
    ) -> Session:
        """
        Create a session, retrying construction only.

        Ownership of the returned session passes to the caller, who must
        close it.
        """
        policy = policy or self.policy
        return self._execute(session_factory, policy, _describe(session_factory))

    def _execute(self, attempt: Callable[[], T], policy: RetryPolicy, label: str) -> T:
        delays = policy.delays()
        last_error: Optional[BaseException] = None

        for number in range(1, policy.max_attempts + 1):
            try:
                return attempt()
            except Exception as e:
                last_error = e
                if not policy.is_retryable(e):
                    logger.error(f"Non-retryable failure in {label}: {type(e).__name__}: {e}")
                    raise RetryExhaustedError(number, e, label) from e
                if number < policy.max_attempts:
                    delay = next(delays)
                    logger.warning(
                        f"Attempt {number}/{policy.max_attempts} failed for {label}: "
                        f"{e}. Retrying in {delay}s..."
                    )
                    self._sleep(delay)

        logger.error(f"All {policy.max_attempts} attempts failed for {label}: {last_error}")
        raise RetryExhaustedError(policy.max_attempts, last_error, label) from last_error

    @staticmethod
    def _close_quietly(session: Any) -> None:
        try:
            session.close()
        except Exception as e:
            logger.warning(f"Error while closing session: {type(e).__name__}: {e}")


def with_retry(policy: Optional[RetryPolicy] = None):
    """
    Decorator adding retry with back-off to a single in-session command.

    Unlike the runner, the last exception is re-raised as is, so callers see
    the same error type the command raises.

    Args:
        policy: RetryPolicy controlling attempts and back-off
    """

    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            effective = policy or RetryPolicy.from_timing()
            delays = effective.delays()
            for number in range(1, effective.max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if number == effective.max_attempts or not effective.is_retryable(e):
                        logger.error(
                            f"Attempt {number}/{effective.max_attempts} failed for "
                            f"{func.__name__}, giving up: {e}"
                        )
                        raise
                    delay = next(delays)
                    logger.warning(
                        f"Attempt {number}/{effective.max_attempts} failed for "
                        f"{func.__name__}: {e}. Retrying in {delay}s..."
                    )
                    time.sleep(delay)

        return wrapper

    return decorator


__all__ = [
    "RetryPolicy",
    "RetryingOperationRunner",
    "with_retry",
]
