"""Request transport for the registry client.

This package provides:
- Retry policy and per-call state machine (RetryPolicy, RetryAttemptContext)
- Rate-limited, retried execution (ResilientTransport, RequestDescriptor)
"""

from registry_client.transport.resilient import RequestDescriptor, ResilientTransport
from registry_client.transport.retry import (
    AttemptOutcome,
    RetryAttemptContext,
    RetryPolicy,
    RetryState,
)

__all__ = [
    "AttemptOutcome",
    "RequestDescriptor",
    "ResilientTransport",
    "RetryAttemptContext",
    "RetryPolicy",
    "RetryState",
]
