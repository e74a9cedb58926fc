"""HTTP client construction for the registry client.

The client owns exactly one httpx.AsyncClient, created here from its
settings, so that every service shares one connection pool.
"""

from typing import Any, Dict

import httpx

from registry_client.core.config import Settings


def build_headers(settings: Settings) -> Dict[str, str]:
    """Build the default headers sent with every registry request."""
    headers = {
        "Accept": "application/json",
        "User-Agent": settings.user_agent,
    }
    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"
    return headers


def create_http_client(settings: Settings, **kwargs: Any) -> httpx.AsyncClient:
    """Create a new HTTP client with granular timeouts and pool limits.

    Note: The returned client should be closed when done:
        async with create_http_client(settings) as client:
            ...

    Args:
        settings: Client settings supplying base URL, timeouts and limits
        **kwargs: Overrides. Can include:
            - timeout: Single timeout value (overrides all granular timeouts)
            - transport: Custom httpx transport (e.g. httpx.MockTransport)

    Returns:
        A new httpx.AsyncClient instance.
    """
    timeout_override = kwargs.get("timeout")
    if timeout_override is not None:
        timeout = httpx.Timeout(timeout_override)
    else:
        timeout = httpx.Timeout(
            settings.timeout,
            connect=settings.connect_timeout,
            read=settings.read_timeout,
            write=settings.write_timeout,
            pool=settings.pool_timeout,
        )

    config: Dict[str, Any] = {
        "base_url": settings.base_url,
        "headers": build_headers(settings),
        "timeout": timeout,
        "limits": httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
            keepalive_expiry=settings.keepalive_expiry,
        ),
    }
    if kwargs.get("transport") is not None:
        config["transport"] = kwargs["transport"]
    return httpx.AsyncClient(**config)
