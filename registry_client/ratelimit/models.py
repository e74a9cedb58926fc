"""Rate limiting data models.

This module contains the dataclass holding token bucket state.
"""

from dataclasses import dataclass


@dataclass
class TokenBucketState:
    """Token bucket state, owned and locked by one RateLimiter.

    Invariant: ``0 <= tokens <= max_tokens``.
    """
    tokens: int
    max_tokens: int
    refill_rate: int  # tokens added per refill_period
    refill_period: float  # seconds
    last_refill: float

    @property
    def seconds_per_token(self) -> float:
        return self.refill_period / self.refill_rate
