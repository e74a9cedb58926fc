"""Rate-limited, retried execution of registry requests."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Type

import httpx

from registry_client.core.logging import get_log_context, get_logger
from registry_client.exceptions import (
    NetworkError,
    RateLimitedError,
    RequestCancelledError,
    ResponseDecodeError,
    RetryExhaustedError,
    api_error_from_response,
)
from registry_client.models import ModelT, decode
from registry_client.ratelimit import RateLimiter
from registry_client.transport.retry import (
    AttemptOutcome,
    RetryAttemptContext,
    RetryPolicy,
    RetryState,
)

logger = get_logger(__name__)


@dataclass
class RequestDescriptor:
    """One logical request, replayable across attempts."""

    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    json: Optional[Any] = None

    def describe(self) -> str:
        return f"{self.method} {self.path}"


AttemptFn = Callable[[RequestDescriptor], Awaitable[httpx.Response]]


class ResilientTransport:
    """Executes requests with rate limiting and bounded retries.

    Every attempt, retries included, first takes a token from the shared
    RateLimiter. The transport itself holds only configuration.

    Args:
        client: HTTP client used for the default single-attempt primitive
        rate_limiter: Limiter shared by all callers of one client
        policy: Retry policy
        attempt: Override for the single-attempt primitive
        sleep: Coroutine used for backoff delays
        clock: Wall-clock source in unix seconds, used for reset hints
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient],
        rate_limiter: RateLimiter,
        policy: Optional[RetryPolicy] = None,
        attempt: Optional[AttemptFn] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        if client is None and attempt is None:
            raise ValueError("either an HTTP client or an attempt function is required")
        self._client = client
        self.rate_limiter = rate_limiter
        self.policy = policy or RetryPolicy()
        self._attempt = attempt or self._send
        self._sleep = sleep
        self._clock = clock

    async def _send(self, request: RequestDescriptor) -> httpx.Response:
        assert self._client is not None
        return await self._client.request(
            request.method,
            request.path,
            params=request.params or None,
            headers=request.headers or None,
            json=request.json,
        )

    async def _pause(self, delay: float, cancel_event: Optional[asyncio.Event]) -> None:
        """Back off for ``delay`` seconds unless cancellation fires first."""
        if cancel_event is None:
            await self._sleep(delay)
            return
        sleeper = asyncio.ensure_future(self._sleep(delay))
        canceller = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
        if cancel_event.is_set():
            raise RequestCancelledError("request cancelled during backoff")

    async def execute(
        self,
        request: RequestDescriptor,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> httpx.Response:
        """Run the retry loop for one request.

        Returns:
            The successful (2xx) response

        Raises:
            RequestCancelledError: Cancellation observed at a suspension point
            NotFoundError, UnauthorizedError, ForbiddenError, APIError: Fatal
                status, returned on the first occurrence
            ServerError: 5xx on every allowed attempt
            RetryExhaustedError: Network failures or 429s on every attempt
        """
        ctx = RetryAttemptContext(
            method=request.method,
            url=request.path,
            max_attempts=self.policy.max_attempts,
        )

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelledError(f"request cancelled: {ctx.describe()}")
            await self.rate_limiter.wait(cancel_event)

            ctx.begin_attempt()
            response: Optional[httpx.Response] = None
            error: Optional[Exception] = None
            started = time.monotonic()
            try:
                response = await self._attempt(request)
            except httpx.TransportError as e:
                error = e

            outcome = self.policy.classify(response, error)
            state = ctx.record(outcome, error)
            logger.debug(
                f"Attempt {ctx.attempt}/{ctx.max_attempts} for {ctx.describe()}: {outcome.value}",
                extra=get_log_context(
                    method=request.method,
                    url=request.path,
                    attempt=ctx.attempt,
                    status_code=response.status_code if response is not None else None,
                    duration_ms=round((time.monotonic() - started) * 1000, 1),
                ),
            )

            if state is RetryState.SUCCESS:
                assert response is not None
                return response

            if state is RetryState.FATAL_FAILURE:
                assert response is not None
                raise api_error_from_response(response, attempts=ctx.attempt)

            if state is RetryState.RETRIES_EXHAUSTED:
                logger.warning(
                    f"Max retries ({self.policy.max_retries}) exceeded for {ctx.describe()}: "
                    f"{outcome.value}"
                )
                raise self._exhausted(ctx, request, response, error)

            delay = self.policy.backoff_for(ctx.attempt - 1, outcome, response, self._clock())
            logger.warning(
                f"Retry {ctx.attempt}/{self.policy.max_retries} for {ctx.describe()} "
                f"after {outcome.value}. Waiting {delay:.2f}s...",
                extra=get_log_context(method=request.method, url=request.path, attempt=ctx.attempt),
            )
            await self._pause(delay, cancel_event)

    def _exhausted(
        self,
        ctx: RetryAttemptContext,
        request: RequestDescriptor,
        response: Optional[httpx.Response],
        error: Optional[Exception],
    ) -> Exception:
        if ctx.last_outcome is AttemptOutcome.RETRYABLE_NETWORK:
            assert error is not None
            last: Exception = NetworkError(request.method, request.path, error)
            last.__cause__ = error
            return RetryExhaustedError(ctx.attempt, last)

        assert response is not None
        api_error = api_error_from_response(response, attempts=ctx.attempt)
        if isinstance(api_error, RateLimitedError):
            return RetryExhaustedError(ctx.attempt, api_error)
        return api_error

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]],
        cancel_event: Optional[asyncio.Event],
    ) -> httpx.Response:
        return await self.execute(
            RequestDescriptor("GET", path, params=dict(params or {})), cancel_event
        )

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ResponseDecodeError(response.status_code, f"error decoding response: {e}") from e

    async def get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """GET ``path`` and decode the JSON body."""
        return self._body(await self._get(path, params, cancel_event))

    async def get_model(
        self,
        model: Type[ModelT],
        path: str,
        params: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModelT:
        """GET ``path`` and validate the JSON body as ``model``.

        Raises:
            ResponseDecodeError: The body is not JSON or does not fit ``model``
        """
        response = await self._get(path, params, cancel_event)
        return decode(model, self._body(response), response.status_code)
