"""Retry policy with exponential backoff for registry requests.

Classification and looping are kept apart: RetryPolicy decides what an
attempt's outcome means and how long to back off, RetryAttemptContext
records the per-call state machine, and ResilientTransport drives the loop.

State machine::

    ATTEMPTING -> SUCCESS | FATAL_FAILURE | RETRIES_EXHAUSTED
    ATTEMPTING -> BACKOFF -> ATTEMPTING
"""

import email.utils
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from registry_client.core.config import Settings

RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"
RETRY_AFTER_HEADER = "Retry-After"


class AttemptOutcome(str, Enum):
    """Classification of one attempt."""

    SUCCESS = "success"
    RETRYABLE_NETWORK = "retryable_network"
    RETRYABLE_RATE_LIMITED = "retryable_rate_limited"
    RETRYABLE_SERVER_ERROR = "retryable_server_error"
    FATAL = "fatal"

    @property
    def retryable(self) -> bool:
        return self in (
            AttemptOutcome.RETRYABLE_NETWORK,
            AttemptOutcome.RETRYABLE_RATE_LIMITED,
            AttemptOutcome.RETRYABLE_SERVER_ERROR,
        )


class RetryState(str, Enum):
    """States of one retried call."""

    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCESS = "success"
    FATAL_FAILURE = "fatal_failure"
    RETRIES_EXHAUSTED = "retries_exhausted"

    @property
    def terminal(self) -> bool:
        return self in (
            RetryState.SUCCESS,
            RetryState.FATAL_FAILURE,
            RetryState.RETRIES_EXHAUSTED,
        )


@dataclass
class RetryPolicy:
    """Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Retries after the initial attempt (default: 3)
        min_wait: Delay before the first retry in seconds (default: 1.0)
        max_wait: Upper bound for exponential delays in seconds (default: 30.0)
        exponential_base: Base for exponential calculation (default: 2.0)

    Example:
        >>> policy = RetryPolicy(max_retries=5, min_wait=1.0)
        >>> policy.calculate_delay(attempt=2)
        4.0
    """

    max_retries: int = 3
    min_wait: float = 1.0
    max_wait: float = 30.0
    exponential_base: float = 2.0

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryPolicy":
        return cls(
            max_retries=settings.max_retries,
            min_wait=settings.retry_wait_min,
            max_wait=settings.retry_wait_max,
            exponential_base=settings.retry_exponential_base,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay after a failed attempt.

        Uses exponential backoff: delay = min(min_wait * (exponential_base ^ attempt), max_wait)

        Args:
            attempt: Number of the attempt that failed, 0-indexed

        Returns:
            Delay in seconds
        """
        delay = self.min_wait * (self.exponential_base**attempt)
        return min(delay, self.max_wait)

    def classify(
        self,
        response: Optional[httpx.Response] = None,
        error: Optional[BaseException] = None,
    ) -> AttemptOutcome:
        """Classify the outcome of one attempt.

        Network-level failures, 429 and any 5xx are retryable; every other
        non-2xx status is fatal.
        """
        if error is not None:
            if isinstance(error, httpx.TransportError):
                return AttemptOutcome.RETRYABLE_NETWORK
            return AttemptOutcome.FATAL

        if response is None:
            return AttemptOutcome.FATAL

        status = response.status_code
        if status == 429:
            return AttemptOutcome.RETRYABLE_RATE_LIMITED
        if status >= 500:
            return AttemptOutcome.RETRYABLE_SERVER_ERROR
        if 200 <= status < 300:
            return AttemptOutcome.SUCCESS
        return AttemptOutcome.FATAL

    def rate_limit_delay(self, response: httpx.Response, now: float) -> Optional[float]:
        """Seconds until the reset hint of a 429 response, if it carries one.

        ``X-RateLimit-Reset`` is an absolute unix timestamp; ``Retry-After``
        may be delta seconds or an HTTP date.
        """
        reset = response.headers.get(RATE_LIMIT_RESET_HEADER)
        if reset:
            try:
                return max(0.0, float(reset) - now)
            except ValueError:
                pass

        retry_after = response.headers.get(RETRY_AFTER_HEADER)
        if retry_after:
            try:
                return max(0.0, float(retry_after))
            except ValueError:
                pass
            try:
                when = email.utils.parsedate_to_datetime(retry_after)
            except (TypeError, ValueError):
                return None
            return max(0.0, when.timestamp() - now)
        return None

    def backoff_for(
        self,
        attempt: int,
        outcome: AttemptOutcome,
        response: Optional[httpx.Response],
        now: float,
    ) -> float:
        """Delay before the next attempt.

        Args:
            attempt: Number of the attempt that failed, 0-indexed
            outcome: Classification of that attempt
            response: Response of that attempt, if any
            now: Current wall-clock time in unix seconds
        """
        if outcome is AttemptOutcome.RETRYABLE_RATE_LIMITED and response is not None:
            hinted = self.rate_limit_delay(response, now)
            if hinted is not None:
                return hinted
        return self.calculate_delay(attempt)


@dataclass
class RetryAttemptContext:
    """Per-call retry state. Created for one call and discarded afterwards."""

    method: str
    url: str
    max_attempts: int
    attempt: int = 0
    started_at: float = field(default_factory=time.monotonic)
    elapsed: float = 0.0
    state: RetryState = RetryState.ATTEMPTING
    last_outcome: Optional[AttemptOutcome] = None
    last_error: Optional[BaseException] = None

    def describe(self) -> str:
        return f"{self.method} {self.url}"

    def begin_attempt(self) -> None:
        """Enter ATTEMPTING for the next try."""
        if self.state.terminal:
            raise RuntimeError(f"retry loop already finished in state {self.state.value}")
        self.attempt += 1
        self.state = RetryState.ATTEMPTING

    def record(
        self,
        outcome: AttemptOutcome,
        error: Optional[BaseException] = None,
        now: Optional[float] = None,
    ) -> RetryState:
        """Record an attempt's outcome and return the state it leads to."""
        self.last_outcome = outcome
        self.last_error = error
        self.elapsed = (time.monotonic() if now is None else now) - self.started_at

        if outcome is AttemptOutcome.SUCCESS:
            self.state = RetryState.SUCCESS
        elif not outcome.retryable:
            self.state = RetryState.FATAL_FAILURE
        elif self.attempt >= self.max_attempts:
            self.state = RetryState.RETRIES_EXHAUSTED
        else:
            self.state = RetryState.BACKOFF
        return self.state
