"""Async client for Terraform-style module, provider and policy registries."""

from registry_client.client import RegistryClient
from registry_client.core.config import Settings
from registry_client.core.identifiers import IdentifierParser, ModuleID, PolicyID, ProviderURI
from registry_client.core.logging import setup_logging
from registry_client.core.versions import SemanticVersion, VersionComparator
from registry_client.exceptions import (
    APIError,
    ForbiddenError,
    MultiError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RegistryError,
    RequestCancelledError,
    ResponseDecodeError,
    RetryExhaustedError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from registry_client.ratelimit import RateLimiter
from registry_client.services import (
    Page,
    RankedItem,
    RelevanceSearchEngine,
    SentinelPolicyContent,
)
from registry_client.transport import RequestDescriptor, ResilientTransport, RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "RegistryClient",
    "Settings",
    "setup_logging",
    # Identifiers and versions
    "IdentifierParser",
    "ModuleID",
    "PolicyID",
    "ProviderURI",
    "SemanticVersion",
    "VersionComparator",
    # Request machinery
    "RateLimiter",
    "RequestDescriptor",
    "ResilientTransport",
    "RetryPolicy",
    # Search
    "Page",
    "RankedItem",
    "RelevanceSearchEngine",
    "SentinelPolicyContent",
    # Errors
    "APIError",
    "ForbiddenError",
    "MultiError",
    "NetworkError",
    "NotFoundError",
    "RateLimitedError",
    "RegistryError",
    "RequestCancelledError",
    "ResponseDecodeError",
    "RetryExhaustedError",
    "ServerError",
    "UnauthorizedError",
    "ValidationError",
]
