"""Core utilities for the registry client."""

from registry_client.core.config import Settings
from registry_client.core.http_client import create_http_client
from registry_client.core.identifiers import (
    IdentifierParser,
    ModuleID,
    PolicyID,
    ProviderURI,
)
from registry_client.core.logging import get_logger, setup_logging
from registry_client.core.versions import SemanticVersion, VersionComparator

__all__ = [
    "Settings",
    "create_http_client",
    "IdentifierParser",
    "ModuleID",
    "PolicyID",
    "ProviderURI",
    "get_logger",
    "setup_logging",
    "SemanticVersion",
    "VersionComparator",
]
