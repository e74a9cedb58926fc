"""Provider operations against the v1 and v2 registry APIs."""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from registry_client.core.identifiers import IdentifierParser
from registry_client.core.logging import get_logger
from registry_client.exceptions import NotFoundError, ValidationError
from registry_client.models import (
    ProviderData,
    ProviderDoc,
    ProviderDocDetails,
    ProviderDocList,
    ProviderLatestVersion,
    ProviderList,
    ProviderVersionList,
)
from registry_client.services.base import (
    ProvidersAPI,
    validate_page_size,
    validate_provider_params,
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

VALID_TIERS = ("official", "partner", "community")
VALID_DOC_CATEGORIES = ("resources", "data-sources", "functions", "guides", "overview")
VALID_DOC_LANGUAGES = ("hcl", "terraform", "json")
TRUSTED_TIERS = ("official",)

# Subcategories shared by the major cloud providers; providers may define others,
# which list_docs accepts unchecked
VALID_SUBCATEGORIES = (
    "Networking",
    "Compute",
    "Storage",
    "Database",
    "Security",
    "Identity",
    "Monitoring",
    "Container",
    "Serverless",
    "Analytics",
    "Messaging",
    "Developer",
    "Management",
)
SUBCATEGORY_DOC_CATEGORIES = ("resources", "data-sources")


def provider_fields(provider: ProviderData) -> SearchFields:
    attrs = provider.attributes
    return SearchFields(
        key=provider.id or f"{attrs.namespace}/{attrs.name}",
        name=attrs.name,
        description=attrs.description,
        namespace=attrs.namespace,
        verified=attrs.tier in TRUSTED_TIERS,
        downloads=attrs.downloads,
    )


class ProvidersService(ProvidersAPI):
    """Fetches providers, their versions and their documentation.

    Args:
        transport: Rate-limited, retried request executor
        identifiers: Parser validating provider identifiers
        max_pages: Page cap for listings walked to the end
        page_size: Items requested per listing page
    """

    def __init__(
        self,
        transport: ResilientTransport,
        identifiers: IdentifierParser,
        max_pages: int = 100,
        page_size: int = 50,
    ):
        validate_page_size(page_size)
        self._transport = transport
        self._identifiers = identifiers
        self._versions = identifiers.versions
        self._engine = RelevanceSearchEngine(extractor=provider_fields, max_pages=max_pages)
        self.page_size = page_size

    async def get(
        self, namespace: str, name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderData:
        validate_provider_params(self._identifiers, namespace, name)
        result = await self._transport.get_model(
            ProviderList,
            "/v2/providers",
            {"filter[namespace]": namespace, "filter[name]": name},
            cancel_event,
        )
        if not result.data:
            raise NotFoundError(f"provider {namespace}/{name} not found", status_code=404)
        return result.data[0]

    async def get_by_uri(
        self, uri: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderLatestVersion:
        parsed = self._identifiers.parse_provider_uri(uri)
        if self._identifiers.is_latest(parsed.version):
            return await self.get_latest(parsed.namespace, parsed.name, cancel_event)

        versions = await self.list_versions(parsed.namespace, parsed.name, cancel_event)
        wanted = self._versions.normalize(parsed.version or "")
        for v in versions.included:
            if self._versions.normalize(v.attributes.version) == wanted:
                return ProviderLatestVersion(provider=versions.data, version=v.attributes.version)
        raise NotFoundError(
            f"provider version {parsed.namespace}/{parsed.name}@{parsed.version} not found",
            status_code=404,
        )

    async def list_versions(
        self, namespace: str, name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderVersionList:
        provider = await self.get(namespace, name, cancel_event)
        return await self._transport.get_model(
            ProviderVersionList,
            f"/v2/providers/{quote(provider.id, safe='')}",
            {"include": "provider-versions"},
            cancel_event,
        )

    async def get_latest(
        self, namespace: str, name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderLatestVersion:
        versions = await self.list_versions(namespace, name, cancel_event)
        published = [v.attributes.version for v in versions.included if v.attributes.version]
        if not published:
            raise NotFoundError(f"no versions found for provider {namespace}/{name}", status_code=404)
        latest = self._versions.max(published)
        logger.debug(f"Latest version of provider {namespace}/{name} is {latest}")
        return ProviderLatestVersion(provider=versions.data, version=latest)

    async def get_version_id(
        self,
        namespace: str,
        name: str,
        version: str = "",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        validate_provider_params(self._identifiers, namespace, name)
        error = self._identifiers.check_version(version, required=False)
        if error is not None:
            raise error

        versions = await self.list_versions(namespace, name, cancel_event)
        if self._identifiers.is_latest(version):
            published = [v.attributes.version for v in versions.included if v.attributes.version]
            if not published:
                raise NotFoundError(
                    f"no versions found for provider {namespace}/{name}", status_code=404
                )
            version = self._versions.max(published)

        wanted = self._versions.normalize(version)
        for v in versions.included:
            if self._versions.normalize(v.attributes.version) == wanted:
                return v.id
        raise NotFoundError(
            f"provider version {namespace}/{name}@{version} not found", status_code=404
        )

    async def list_docs(
        self,
        provider_version_id: str,
        category: str = "",
        subcategory: str = "",
        slug: str = "",
        language: str = "hcl",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ProviderDoc]:
        if not provider_version_id:
            raise ValidationError(
                "provider_version_id", "provider version ID is required", value=provider_version_id
            )
        if category and category not in VALID_DOC_CATEGORIES:
            raise ValidationError(
                "category",
                f"invalid category, must be one of: {', '.join(VALID_DOC_CATEGORIES)}",
                value=category,
            )
        if language not in VALID_DOC_LANGUAGES:
            raise ValidationError("language", "invalid language", value=language)

        params: Dict[str, Any] = {
            "filter[provider-version]": provider_version_id,
            "filter[language]": language,
            "page[size]": self.page_size,
        }
        if category:
            params["filter[category]"] = category
        if subcategory:
            params["filter[subcategory]"] = subcategory
        if slug:
            params["filter[slug]"] = slug

        async def fetch_page(_: str, token: Optional[str]) -> Page[ProviderDoc]:
            result = await self._transport.get_model(
                ProviderDocList,
                "/v2/provider-docs",
                {**params, "page[number]": int(token or 1)},
                cancel_event,
            )
            next_page = result.meta.pagination.next_page
            return Page(items=result.data, next_token=str(next_page) if next_page else None)

        return await self._engine.collect_pages(provider_version_id, fetch_page)

    async def list_docs_by_subcategory(
        self,
        provider_version_id: str,
        subcategory: str,
        category: str = "resources",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ProviderDoc]:
        """List the HCL resource or data source docs of one well-known subcategory."""
        if not subcategory:
            raise ValidationError("subcategory", "subcategory cannot be empty", value=subcategory)
        if subcategory not in VALID_SUBCATEGORIES:
            raise ValidationError(
                "subcategory",
                f"invalid subcategory, must be one of: {', '.join(VALID_SUBCATEGORIES)}",
                value=subcategory,
            )
        if category not in SUBCATEGORY_DOC_CATEGORIES:
            raise ValidationError(
                "category",
                f"category must be one of: {', '.join(SUBCATEGORY_DOC_CATEGORIES)}",
                value=category,
            )
        return await self.list_docs(
            provider_version_id,
            category=category,
            subcategory=subcategory,
            cancel_event=cancel_event,
        )

    async def get_doc(
        self, doc_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderDocDetails:
        if not doc_id:
            raise ValidationError("doc_id", "doc ID cannot be empty", value=doc_id)
        return await self._transport.get_model(
            ProviderDocDetails,
            f"/v2/provider-docs/{quote(doc_id, safe='')}",
            cancel_event=cancel_event,
        )

    async def get_overview_docs(
        self, provider_version_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        """Concatenate the content of a provider version's overview pages.

        Each page is fetched individually since listings omit content.
        """
        docs = await self.list_docs(
            provider_version_id, category="overview", slug="index", cancel_event=cancel_event
        )
        if not docs:
            raise NotFoundError(
                f"overview documentation not found for {provider_version_id}", status_code=404
            )

        parts = []
        for doc in docs:
            details = await self.get_doc(doc.id, cancel_event)
            parts.append(details.data.attributes.content + "\n")
        return "".join(parts)

    async def search(
        self,
        query: str,
        tier: str = "",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[RankedItem[ProviderData]]:
        query = validate_query(query)
        if tier and tier not in VALID_TIERS:
            raise ValidationError(
                "tier", f"tier must be one of: {', '.join(VALID_TIERS)}", value=tier
            )

        params: Dict[str, Any] = {"page[size]": self.page_size}
        if tier:
            params["filter[tier]"] = tier

        async def fetch_page(_: str, token: Optional[str]) -> Page[ProviderData]:
            result = await self._transport.get_model(
                ProviderList,
                "/v2/providers",
                {**params, "page[number]": int(token or 1)},
                cancel_event,
            )
            next_page = result.meta.pagination.next_page
            return Page(items=result.data, next_token=str(next_page) if next_page else None)

        return await self._engine.rank_all(query, fetch_page, min_relevance=0.0)
