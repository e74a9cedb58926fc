"""Tests for the client facade and HTTP client construction."""

import httpx
import pytest
import respx

from registry_client import RegistryClient, Settings
from registry_client.core.http_client import build_headers, create_http_client

BASE_URL = "https://registry.example.com"


class TestHttpClient:
    def test_headers_without_token(self):
        headers = build_headers(Settings(_env_file=None, user_agent="tests/1.0"))

        assert headers == {"Accept": "application/json", "User-Agent": "tests/1.0"}

    def test_bearer_token(self):
        headers = build_headers(Settings(_env_file=None, api_token="t0k"))
        assert headers["Authorization"] == "Bearer t0k"

    @pytest.mark.asyncio
    async def test_granular_timeouts_and_base_url(self):
        settings = Settings(_env_file=None, base_url=BASE_URL, connect_timeout=3.0, read_timeout=7.0)

        async with create_http_client(settings) as client:
            assert str(client.base_url).rstrip("/") == BASE_URL
            assert client.timeout.connect == 3.0
            assert client.timeout.read == 7.0

    @pytest.mark.asyncio
    async def test_timeout_override(self):
        async with create_http_client(Settings(_env_file=None), timeout=2.0) as client:
            assert client.timeout.connect == 2.0
            assert client.timeout.read == 2.0


class TestRegistryClient:
    """Test wiring and lifecycle."""

    @pytest.mark.asyncio
    async def test_services_share_one_transport(self, settings):
        async with RegistryClient(settings) as client:
            assert client.modules._transport is client.transport
            assert client.providers._transport is client.transport
            assert client.policies._transport is client.transport
            assert client.transport.rate_limiter is client.rate_limiter
            assert client.identifiers.versions is client.versions

    @pytest.mark.asyncio
    async def test_settings_drive_components(self, settings):
        async with RegistryClient(settings) as client:
            assert client.rate_limiter.max_tokens == settings.rate_limit_requests
            assert client.transport.policy.max_attempts == settings.max_retries + 1
            assert client.modules.page_size == settings.default_page_size

    @pytest.mark.asyncio
    async def test_closes_owned_http_client(self, settings):
        client = RegistryClient(settings)
        await client.aclose()
        assert client.http_client.is_closed

    @pytest.mark.asyncio
    async def test_leaves_injected_http_client_open(self, settings):
        async with httpx.AsyncClient(base_url=BASE_URL) as http_client:
            async with RegistryClient(settings, http_client=http_client):
                pass
            assert not http_client.is_closed

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_default_headers(self):
        route = respx.get(f"{BASE_URL}/v2/providers").mock(
            return_value=httpx.Response(200, json={"data": [], "meta": {"pagination": {}}})
        )
        settings = Settings(_env_file=None, base_url=BASE_URL, api_token="abc", max_retries=0)

        async with RegistryClient(settings) as client:
            await client.providers.search("aws")

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.headers["Accept"] == "application/json"
