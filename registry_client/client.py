"""Client facade wiring settings, transport and services together."""

from typing import Optional

import httpx

from registry_client.core.config import Settings
from registry_client.core.http_client import create_http_client
from registry_client.core.identifiers import IdentifierParser
from registry_client.core.logging import get_logger
from registry_client.core.versions import VersionComparator
from registry_client.ratelimit import RateLimiter
from registry_client.services.modules import ModulesService
from registry_client.services.policies import PoliciesService
from registry_client.services.providers import ProvidersService
from registry_client.transport import ResilientTransport, RetryPolicy

logger = get_logger(__name__)


class RegistryClient:
    """Entry point for talking to a module/provider/policy registry.

    One client owns one rate limiter, so every service it exposes draws from
    the same request budget.

    Example:
        async with RegistryClient() as client:
            results = await client.modules.search_all("vpc")

    Args:
        settings: Client settings; read from the environment when omitted
        http_client: Pre-built httpx client. It is left open on close.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or Settings()
        self._owns_http_client = http_client is None
        self.http_client = http_client or create_http_client(self.settings)

        self.rate_limiter = RateLimiter(
            max_tokens=self.settings.rate_limit_requests,
            refill_period=self.settings.rate_limit_period,
        )
        self.transport = ResilientTransport(
            self.http_client,
            self.rate_limiter,
            RetryPolicy.from_settings(self.settings),
        )
        self.versions = VersionComparator()
        self.identifiers = IdentifierParser(self.versions)

        page_size = self.settings.default_page_size
        max_pages = self.settings.search_max_pages
        self.modules = ModulesService(
            self.transport,
            self.identifiers,
            max_pages=max_pages,
            page_size=page_size,
            base_url=self.settings.base_url,
        )
        self.providers = ProvidersService(
            self.transport, self.identifiers, max_pages=max_pages, page_size=page_size
        )
        self.policies = PoliciesService(
            self.transport,
            self.identifiers,
            max_pages=max_pages,
            page_size=page_size,
            base_url=self.settings.base_url,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()
            logger.debug("Closed registry HTTP client")

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
