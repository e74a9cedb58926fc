"""Resource services for the registry client.

This package provides:
- Capability interfaces per resource kind (ModulesAPI, ProvidersAPI, PoliciesAPI)
- Their HTTP implementations (ModulesService, ProvidersService, PoliciesService)
- Relevance ranking and page traversal (RelevanceSearchEngine)
"""

from registry_client.services.base import ModulesAPI, PoliciesAPI, ProvidersAPI
from registry_client.services.modules import ModulesService
from registry_client.services.policies import (
    PoliciesService,
    SentinelModule,
    SentinelPolicy,
    SentinelPolicyContent,
)
from registry_client.services.providers import ProvidersService
from registry_client.services.search import (
    Page,
    PageLimitExceeded,
    RankedItem,
    RelevanceSearchEngine,
    SearchFields,
)

__all__ = [
    # Interfaces
    "ModulesAPI",
    "PoliciesAPI",
    "ProvidersAPI",
    # Implementations
    "ModulesService",
    "PoliciesService",
    "ProvidersService",
    # Sentinel configuration
    "SentinelModule",
    "SentinelPolicy",
    "SentinelPolicyContent",
    # Search
    "Page",
    "PageLimitExceeded",
    "RankedItem",
    "RelevanceSearchEngine",
    "SearchFields",
]
