"""RetryPolicy and the shared polling loop used by every poller."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from .domain.results import NotYetAvailable
from .primitives.exceptions import (
    CrossChainOpsError,
    OperationAbortedError,
    TrackingTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .domain.results import Maybe

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Max attempts plus a non-decreasing delay between attempts."""

    def __init__(
        self,
        *,
        max_attempts: int = 10,
        base_delay: float = 3.0,
        max_delay: float = 30.0,
        multiplier: float = 1.0,
        backoff: Callable[[int], float] | None = None,
    ) -> None:
        """Configure retry behavior.

        Args:
            max_attempts: Maximum number of attempts (including the first).
            base_delay: Delay in seconds before the second attempt.
            max_delay: Cap on delay in seconds.
            multiplier: Growth factor per attempt; 1.0 keeps the delay fixed.
            backoff: Optional ``attempt -> seconds`` override. The polling loop
                never lets a delay drop below the previous one.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0 or max_delay < 0:
            raise ValueError("base_delay and max_delay must be >= 0")
        if base_delay > max_delay:
            raise ValueError("base_delay must be <= max_delay")
        if multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.backoff = backoff

    @classmethod
    def fixed(cls, max_attempts: int, delay: float) -> RetryPolicy:
        return cls(max_attempts=max_attempts, base_delay=delay, max_delay=delay)

    def should_retry(self, attempt: int) -> bool:
        """Return True if another attempt is allowed (attempt is 1-based)."""
        return 1 <= attempt < self.max_attempts

    def delay_for_attempt(self, attempt: int) -> float:
        """Return the delay in seconds after the given 1-based attempt.

        ``base_delay * multiplier^(attempt-1)``, capped by ``max_delay``.
        """
        if attempt < 1:
            return 0.0
        if self.backoff is not None:
            return float(max(0.0, self.backoff(attempt)))
        delay = min(
            self.base_delay * (self.multiplier ** (attempt - 1)),
            self.max_delay,
        )
        return float(max(0.0, delay))

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"base_delay={self.base_delay}, max_delay={self.max_delay}, "
            f"multiplier={self.multiplier})"
        )


def is_retryable(error: BaseException) -> bool:
    """Default classification: only library errors flagged retryable."""
    return isinstance(error, CrossChainOpsError) and error.retryable


async def _sleep(seconds: float) -> None:
    """Async sleep (overridable for tests)."""
    await asyncio.sleep(seconds)


async def _wait(seconds: float, cancel_event: asyncio.Event | None) -> bool:
    """Sleep for ``seconds``; return True if ``cancel_event`` fired meanwhile."""
    if cancel_event is None:
        await _sleep(seconds)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


async def poll(
    attempt_fn: Callable[[], Awaitable[Maybe[T]]],
    policy: RetryPolicy,
    *,
    operation: str,
    retryable: Callable[[BaseException], bool] = is_retryable,
    deadline: float | None = None,
    cancel_event: asyncio.Event | None = None,
) -> T:
    """Call ``attempt_fn`` until it yields a value.

    ``NOT_YET_AVAILABLE`` and retryable errors trigger another attempt after
    the policy's delay. Non-retryable errors propagate at once. When the
    budget runs out, the last retryable error is re-raised if the final
    attempt failed with one; otherwise ``TrackingTimeoutError`` is raised.

    Args:
        attempt_fn: Single, non-blocking attempt.
        policy: Attempt budget and delays.
        operation: Name used in logs and errors.
        retryable: Classifies exceptions raised by ``attempt_fn``.
        deadline: Absolute time on the running loop's clock
            (``loop.time()``) after which no new attempt starts.
        cancel_event: When set, polling stops with ``OperationAbortedError``.
    """
    loop = asyncio.get_running_loop()
    last_error: BaseException | None = None
    previous_delay = 0.0
    attempt = 0

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationAbortedError(operation, attempt)
        attempt += 1
        try:
            result = await attempt_fn()
        except Exception as exc:
            if not retryable(exc):
                raise
            last_error = exc
            logger.debug("%s attempt %d failed: %s", operation, attempt, exc)
        else:
            if not isinstance(result, NotYetAvailable):
                logger.debug("%s succeeded on attempt %d", operation, attempt)
                return result
            last_error = None
            logger.debug("%s attempt %d: not yet available", operation, attempt)

        if not policy.should_retry(attempt):
            break

        delay = max(previous_delay, policy.delay_for_attempt(attempt))
        previous_delay = delay
        if deadline is not None and loop.time() + delay > deadline:
            logger.info("%s: deadline reached after %d attempt(s)", operation, attempt)
            raise TrackingTimeoutError(operation, attempt, last_error)
        if await _wait(delay, cancel_event):
            raise OperationAbortedError(operation, attempt)

    if last_error is not None:
        logger.warning(
            "%s failed after %d attempt(s): %s", operation, attempt, last_error
        )
        raise last_error
    logger.info("%s: retry budget of %d attempt(s) exhausted", operation, attempt)
    raise TrackingTimeoutError(operation, attempt)
