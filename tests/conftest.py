"""Shared fixtures for registry client tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from registry_client.client import RegistryClient
from registry_client.core.config import Settings

BASE_URL = "https://registry.example.com"


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a mocked registry, retries disabled."""
    return Settings(
        _env_file=None,
        base_url=BASE_URL,
        max_retries=0,
        rate_limit_requests=1000,
        default_page_size=2,
    )


@pytest_asyncio.fixture
async def registry(settings) -> AsyncGenerator[RegistryClient, None]:
    async with RegistryClient(settings) as client:
        yield client
