"""Client-side token bucket rate limiting.

One RateLimiter is shared by every request issued through one client so
that concurrent callers draw from a single request budget. Refill is lazy:
it is computed from elapsed time on every access and no background task
runs.
"""

import asyncio
import math
import threading
import time
from typing import Callable, Optional

from registry_client.core.logging import get_logger
from registry_client.exceptions import RequestCancelledError

# Re-export models
from registry_client.ratelimit.models import TokenBucketState

logger = get_logger(__name__)

__all__ = [
    "TokenBucketState",
    "RateLimiter",
]


class RateLimiter:
    """Token bucket admission control.

    ``max_tokens`` acquisitions are allowed per ``refill_period`` seconds.
    Waiters are not queued: when a token frees up, concurrent waiters race
    for it and the losers sleep another cycle.

    Usage:
        limiter = RateLimiter(max_tokens=100, refill_period=60.0)

        if limiter.try_acquire():
            ...

        await limiter.wait(cancel_event)  # blocks until a token is free
    """

    def __init__(
        self,
        max_tokens: int,
        refill_period: float,
        refill_rate: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter with a full bucket.

        Args:
            max_tokens: Bucket capacity
            refill_period: Seconds over which ``refill_rate`` tokens are added
            refill_rate: Tokens added per period (defaults to ``max_tokens``)
            clock: Monotonic time source in seconds
        """
        if max_tokens < 1:
            raise ValueError("rate limit requests must be positive")
        if refill_period <= 0:
            raise ValueError("rate limit period must be positive")
        rate = max_tokens if refill_rate is None else refill_rate
        if rate < 1:
            raise ValueError("refill rate must be positive")

        self._clock = clock
        self._lock = threading.Lock()
        self._state = TokenBucketState(
            tokens=max_tokens,
            max_tokens=max_tokens,
            refill_rate=rate,
            refill_period=refill_period,
            last_refill=clock(),
        )

    @property
    def max_tokens(self) -> int:
        return self._state.max_tokens

    @property
    def refill_period(self) -> float:
        return self._state.refill_period

    def _refill(self) -> None:
        """Apply elapsed-time refill. Caller must hold the lock."""
        state = self._state
        now = self._clock()
        elapsed = now - state.last_refill

        if elapsed >= state.refill_period:
            state.tokens = state.max_tokens
            state.last_refill = now
            return

        tokens_to_add = math.floor(state.refill_rate * elapsed / state.refill_period)
        if tokens_to_add > 0:
            state.tokens = min(state.tokens + tokens_to_add, state.max_tokens)
            state.last_refill = now

    def try_acquire(self) -> bool:
        """Take one token if available, without blocking."""
        with self._lock:
            self._refill()
            if self._state.tokens > 0:
                self._state.tokens -= 1
                return True
            return False

    def time_until_next_token(self) -> float:
        """Estimate the seconds until the next token becomes available."""
        with self._lock:
            state = self._state
            if state.tokens > 0:
                return 0.0

            since_refill = self._clock() - state.last_refill
            if since_refill >= state.refill_period:
                return 0.0

            per_token = state.seconds_per_token
            return per_token - (since_refill % per_token)

    async def wait(self, cancel_event: Optional[asyncio.Event] = None) -> None:
        """Suspend until a token has been acquired.

        Args:
            cancel_event: Optional signal; once set, the wait is abandoned

        Raises:
            RequestCancelledError: If ``cancel_event`` is set before a token
                is acquired
        """
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelledError("rate limit wait cancelled")

            if self.try_acquire():
                return

            delay = self.time_until_next_token()
            logger.debug(f"Rate limit reached, waiting {delay:.3f}s for next token")

            if cancel_event is None:
                await asyncio.sleep(delay)
                continue

            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=delay)
            except TimeoutError:
                continue
            raise RequestCancelledError("rate limit wait cancelled")

    def reset(self) -> None:
        """Refill the bucket to capacity immediately."""
        with self._lock:
            self._state.tokens = self._state.max_tokens
            self._state.last_refill = self._clock()

    def tokens_remaining(self) -> int:
        """Current token count after applying any pending refill."""
        with self._lock:
            self._refill()
            return self._state.tokens
