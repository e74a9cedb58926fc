"""Module operations against the v1 registry API."""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from registry_client.core.identifiers import IdentifierParser
from registry_client.core.logging import get_logger
from registry_client.exceptions import NotFoundError, ValidationError
from registry_client.models import Module, ModuleDetails, ModuleList, ModuleVersions
from registry_client.services.base import (
    ModulesAPI,
    validate_list_params,
    validate_module_params,
    validate_page_size,
    validate_query,
)
from registry_client.services.search import (
    Page,
    RankedItem,
    RelevanceSearchEngine,
    SearchFields,
)
from registry_client.transport import ResilientTransport

logger = get_logger(__name__)


def module_fields(module: Module) -> SearchFields:
    return SearchFields(
        key=module.id or f"{module.namespace}/{module.name}/{module.provider}",
        name=module.name,
        description=module.description,
        namespace=module.namespace,
        provider=module.provider,
        verified=module.verified,
        downloads=module.downloads,
        published_at=module.published_at,
    )


class ModulesService(ModulesAPI):
    """Searches, fetches and resolves registry modules.

    Args:
        transport: Rate-limited, retried request executor
        identifiers: Parser validating module identifiers
        max_pages: Page cap for ``search_all``
        page_size: Results requested per search page
        base_url: Registry URL used to build download links
    """

    def __init__(
        self,
        transport: ResilientTransport,
        identifiers: IdentifierParser,
        max_pages: int = 100,
        page_size: int = 50,
        base_url: str = "",
    ):
        validate_page_size(page_size)
        self._transport = transport
        self._identifiers = identifiers
        self._versions = identifiers.versions
        self._engine = RelevanceSearchEngine(extractor=module_fields, max_pages=max_pages)
        self.page_size = page_size
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def _path(*segments: str) -> str:
        return "/v1/modules/" + "/".join(quote(s, safe="") for s in segments)

    async def list(
        self,
        namespace: str = "",
        provider: str = "",
        verified: bool = False,
        offset: int = 0,
        limit: int = 0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModuleList:
        """Fetch one page of the module listing.

        Args:
            namespace: Only list modules published under this namespace
            provider: Only list modules for this provider
            verified: Only list verified modules
            offset: Listing offset
            limit: Page size, 0 meaning the service's ``page_size``
        """
        validate_list_params(self._identifiers, namespace, provider, offset, limit)

        params: Dict[str, Any] = {"limit": limit or self.page_size}
        if offset > 0:
            params["offset"] = offset
        if provider:
            params["provider"] = provider
        if verified:
            params["verified"] = "true"
        path = self._path(namespace) if namespace else "/v1/modules"
        return await self._transport.get_model(ModuleList, path, params, cancel_event)

    async def search(
        self, query: str, offset: int = 0, cancel_event: Optional[asyncio.Event] = None
    ) -> ModuleList:
        query = validate_query(query)
        if offset < 0:
            raise ValidationError("offset", "offset cannot be negative", value=offset)

        return await self._transport.get_model(
            ModuleList,
            "/v1/modules/search",
            {"q": query, "offset": offset, "limit": self.page_size},
            cancel_event,
        )

    async def search_with_relevance(
        self, query: str, offset: int = 0, cancel_event: Optional[asyncio.Event] = None
    ) -> List[RankedItem[Module]]:
        result = await self.search(query, offset, cancel_event)
        return self._engine.rank_one_page(query, result.modules)

    async def search_all(
        self, query: str, cancel_event: Optional[asyncio.Event] = None
    ) -> List[RankedItem[Module]]:
        query = validate_query(query)

        async def fetch_page(q: str, token: Optional[str]) -> Page[Module]:
            result = await self.search(q, int(token or 0), cancel_event)
            next_offset = result.meta.next_offset
            return Page(
                items=result.modules,
                next_token=str(next_offset) if next_offset is not None else None,
            )

        return await self._engine.rank_all(query, fetch_page)

    async def get(
        self,
        namespace: str,
        name: str,
        provider: str,
        version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModuleDetails:
        validate_module_params(self._identifiers, namespace, name, provider, version)
        if self._identifiers.is_latest(version):
            return await self.get_latest(namespace, name, provider, cancel_event)
        return await self._transport.get_model(
            ModuleDetails,
            self._path(namespace, name, provider, version),
            cancel_event=cancel_event,
        )

    async def get_by_id(
        self, module_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ModuleDetails:
        parsed = self._identifiers.parse_module_id(module_id)
        return await self.get(
            parsed.namespace, parsed.name, parsed.provider, parsed.version, cancel_event
        )

    async def list_versions(
        self,
        namespace: str,
        name: str,
        provider: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[str]:
        validate_module_params(self._identifiers, namespace, name, provider)
        result = await self._transport.get_model(
            ModuleVersions,
            self._path(namespace, name, provider, "versions"),
            cancel_event=cancel_event,
        )
        module_id = f"{namespace}/{name}/{provider}"
        if not result.modules:
            raise NotFoundError(f"module {module_id} not found", status_code=404)

        versions = [v.version for v in result.modules[0].versions if v.version]
        if not versions:
            raise NotFoundError(f"no versions found for module {module_id}", status_code=404)
        return versions

    async def get_latest(
        self,
        namespace: str,
        name: str,
        provider: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModuleDetails:
        versions = await self.list_versions(namespace, name, provider, cancel_event)
        latest = self._versions.max(versions)
        logger.debug(f"Latest version of {namespace}/{name}/{provider} is {latest}")
        return await self.get(namespace, name, provider, latest, cancel_event)

    async def download_url(
        self,
        namespace: str,
        name: str,
        provider: str,
        version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        # Confirms the version exists; raises NotFoundError otherwise
        details = await self.get(namespace, name, provider, version, cancel_event)
        resolved = details.version or version
        return f"{self.base_url}{self._path(namespace, name, provider, resolved, 'download')}"
