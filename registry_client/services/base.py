"""Capability sets for each registry resource kind.

Each kind has exactly one implementation; the abstract classes document
the operations and let callers substitute fakes in tests.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

from registry_client.core.identifiers import IdentifierParser
from registry_client.exceptions import MultiError, ValidationError
from registry_client.models import (
    ModuleDetails,
    ModuleList,
    Module,
    Policy,
    PolicyDetails,
    PolicyList,
    ProviderData,
    ProviderDoc,
    ProviderDocDetails,
    ProviderLatestVersion,
    ProviderVersionList,
)
from registry_client.services.search import RankedItem

if TYPE_CHECKING:
    from registry_client.services.policies import SentinelPolicyContent

MAX_PAGE_SIZE = 100


class ModulesAPI(ABC):
    """Module operations."""

    @abstractmethod
    async def list(
        self,
        namespace: str = "",
        provider: str = "",
        verified: bool = False,
        offset: int = 0,
        limit: int = 0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModuleList:
        """Fetch one page of the module listing, optionally filtered."""

    @abstractmethod
    async def search(
        self, query: str, offset: int = 0, cancel_event: Optional[asyncio.Event] = None
    ) -> ModuleList:
        """Fetch one page of module search results."""

    @abstractmethod
    async def search_with_relevance(
        self, query: str, offset: int = 0, cancel_event: Optional[asyncio.Event] = None
    ) -> List[RankedItem[Module]]:
        """Fetch one page of search results and rank it."""

    @abstractmethod
    async def search_all(
        self, query: str, cancel_event: Optional[asyncio.Event] = None
    ) -> List[RankedItem[Module]]:
        """Walk every page of search results and rank them together."""

    @abstractmethod
    async def get(
        self,
        namespace: str,
        name: str,
        provider: str,
        version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModuleDetails:
        """Fetch one module version."""

    @abstractmethod
    async def get_by_id(
        self, module_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ModuleDetails:
        """Fetch one module version by ``namespace/name/provider/version``."""

    @abstractmethod
    async def list_versions(
        self,
        namespace: str,
        name: str,
        provider: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[str]:
        """List every published version of a module."""

    @abstractmethod
    async def get_latest(
        self,
        namespace: str,
        name: str,
        provider: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ModuleDetails:
        """Fetch the greatest published version of a module."""

    @abstractmethod
    async def download_url(
        self,
        namespace: str,
        name: str,
        provider: str,
        version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Return the download URL of an existing module version."""


class ProvidersAPI(ABC):
    """Provider operations."""

    @abstractmethod
    async def get(
        self, namespace: str, name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderData:
        """Fetch a provider."""

    @abstractmethod
    async def get_by_uri(
        self, uri: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderLatestVersion:
        """Resolve a provider URI to the provider and a concrete version."""

    @abstractmethod
    async def list_versions(
        self, namespace: str, name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderVersionList:
        """Fetch a provider with its published versions."""

    @abstractmethod
    async def get_latest(
        self, namespace: str, name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderLatestVersion:
        """Fetch a provider with its greatest published version."""

    @abstractmethod
    async def get_version_id(
        self,
        namespace: str,
        name: str,
        version: str = "",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Resolve a provider version (or latest) to its registry ID."""

    @abstractmethod
    async def list_docs(
        self,
        provider_version_id: str,
        category: str = "",
        subcategory: str = "",
        slug: str = "",
        language: str = "hcl",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ProviderDoc]:
        """List documentation entries of a provider version, all pages."""

    @abstractmethod
    async def list_docs_by_subcategory(
        self,
        provider_version_id: str,
        subcategory: str,
        category: str = "resources",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ProviderDoc]:
        """List resource or data source docs of a well-known subcategory."""

    @abstractmethod
    async def get_doc(
        self, doc_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> ProviderDocDetails:
        """Fetch one documentation page with its content."""

    @abstractmethod
    async def get_overview_docs(
        self, provider_version_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        """Fetch the overview documentation of a provider version as one text."""

    @abstractmethod
    async def search(
        self,
        query: str,
        tier: str = "",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[RankedItem[ProviderData]]:
        """Rank the provider listing against a query."""


class PoliciesAPI(ABC):
    """Policy operations."""

    @abstractmethod
    async def list(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PolicyList:
        """Fetch one page of the policy listing."""

    @abstractmethod
    async def get(
        self,
        namespace: str,
        name: str,
        version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PolicyDetails:
        """Fetch one policy version."""

    @abstractmethod
    async def get_by_id(
        self, policy_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> PolicyDetails:
        """Fetch one policy version by ``[policies/]namespace/name/version``."""

    @abstractmethod
    async def search(
        self, query: str, cancel_event: Optional[asyncio.Event] = None
    ) -> List[RankedItem[Policy]]:
        """Rank every listed policy against a query, dropping non-matches."""

    @abstractmethod
    async def get_sentinel_content(
        self, policy_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> "SentinelPolicyContent":
        """Collect what a Sentinel configuration needs from a policy version."""


def validate_query(query: str) -> str:
    if not query or not query.strip():
        raise ValidationError("query", "search query cannot be empty", value=query)
    return query.strip()


def validate_page_size(page_size: int, field: str = "page_size") -> None:
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(
            field, f"page size must be between 1 and {MAX_PAGE_SIZE}", value=page_size
        )


def validate_module_params(
    parser: IdentifierParser,
    namespace: str,
    name: str,
    provider: str,
    version: Optional[str] = None,
) -> None:
    """Check every module field, raising all violations together.

    ``version`` is skipped when None.
    """
    errs = MultiError()
    errs.add(parser.check_name("namespace", namespace))
    errs.add(parser.check_name("name", name, "module name"))
    errs.add(parser.check_provider("provider", provider))
    if version is not None:
        errs.add(parser.check_version(version))
    error = errs.error_or_none()
    if error is not None:
        raise error


def validate_provider_params(parser: IdentifierParser, namespace: str, name: str) -> None:
    errs = MultiError()
    errs.add(parser.check_name("namespace", namespace))
    errs.add(parser.check_provider("name", name))
    error = errs.error_or_none()
    if error is not None:
        raise error


def validate_policy_params(
    parser: IdentifierParser, namespace: str, name: str, version: str
) -> None:
    errs = MultiError()
    errs.add(parser.check_name("namespace", namespace))
    errs.add(parser.check_name("name", name, "policy name"))
    errs.add(parser.check_version(version))
    error = errs.error_or_none()
    if error is not None:
        raise error


def validate_list_params(
    parser: IdentifierParser, namespace: str, provider: str, offset: int, limit: int
) -> None:
    """Check module listing filters; empty filters are not applied."""
    errs = MultiError()
    if namespace:
        errs.add(parser.check_name("namespace", namespace))
    if provider:
        errs.add(parser.check_provider("provider", provider))
    if offset < 0:
        errs.add(ValidationError("offset", "offset cannot be negative", value=offset))
    if limit < 0 or limit > MAX_PAGE_SIZE:
        errs.add(
            ValidationError("limit", f"limit must be between 0 and {MAX_PAGE_SIZE}", value=limit)
        )
    error = errs.error_or_none()
    if error is not None:
        raise error
