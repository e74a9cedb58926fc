"""Parsing of composite registry identifiers.

Three shapes are understood:

- module IDs: ``namespace/name/provider/version``
- policy IDs: ``[policies/]namespace/name/version``
- provider URIs: ``namespace/name[/version]``, optionally prefixed with
  ``registry://`` or ``providers/``, and optionally written with marker
  segments (``namespace/providers/name/versions/version``) or a trailing
  ``/versions/<version>``.

An identifier is either returned fully validated or rejected with a
ValidationError naming the offending field (or a MultiError when several
fields are wrong at once).
"""

import re
from dataclasses import dataclass
from typing import Optional

from registry_client.core.versions import VersionComparator, is_sentinel
from registry_client.exceptions import MultiError, ValidationError

URI_SCHEME_PREFIX = "registry://"
PROVIDERS_PREFIX = "providers/"
POLICIES_PREFIX = "policies/"

_NAME_MARKERS = ("providers", "name")
_VERSION_MARKERS = ("versions", "version")


@dataclass(frozen=True)
class ModuleID:
    namespace: str
    name: str
    provider: str
    version: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}/{self.provider}/{self.version}"

    @property
    def base(self) -> str:
        """The version-independent ``namespace/name/provider`` key."""
        return f"{self.namespace}/{self.name}/{self.provider}"


@dataclass(frozen=True)
class PolicyID:
    namespace: str
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}/{self.version}"


@dataclass(frozen=True)
class ProviderURI:
    namespace: str
    name: str
    version: Optional[str] = None

    def __str__(self) -> str:
        if self.version:
            return f"{self.namespace}/{self.name}/{self.version}"
        return f"{self.namespace}/{self.name}"


class IdentifierParser:
    """Validates identifier segments against the registry's naming grammar.

    Args:
        versions: Comparator used to validate version segments
    """

    def __init__(self, versions: Optional[VersionComparator] = None):
        self.versions = versions or VersionComparator()
        # Namespaces, module names and policy names
        self._name_pattern = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9\-_]*")
        # Provider names: lowercase with digits and hyphens
        self._provider_pattern = re.compile(r"[a-z][a-z0-9\-]*")

    # -- single fields -----------------------------------------------------

    def is_valid_name(self, value: str) -> bool:
        return self._name_pattern.fullmatch(value) is not None

    def is_valid_provider(self, value: str) -> bool:
        return self._provider_pattern.fullmatch(value) is not None

    def check_name(self, field: str, value: str, label: str = "") -> Optional[ValidationError]:
        """Return the violation for a namespace/name segment, if any."""
        label = label or field
        if not value:
            return ValidationError(field, f"{label} cannot be empty", value=value)
        if not self.is_valid_name(value):
            return ValidationError(field, f"invalid {label} format: {value}", value=value)
        return None

    def check_provider(self, field: str, value: str) -> Optional[ValidationError]:
        if not value:
            return ValidationError(field, f"{field} cannot be empty", value=value)
        if not self.is_valid_provider(value):
            return ValidationError(field, f"invalid provider name format: {value}", value=value)
        return None

    def check_version(
        self, value: str, field: str = "version", required: bool = True
    ) -> Optional[ValidationError]:
        if not value:
            if required:
                return ValidationError(field, f"{field} cannot be empty", value=value)
            return None
        try:
            self.versions.validate(value, field=field)
        except ValidationError as e:
            return e
        return None

    # -- composite identifiers ---------------------------------------------

    def parse_module_id(self, module_id: str) -> ModuleID:
        """Parse ``namespace/name/provider/version``."""
        if not module_id or not module_id.strip():
            raise ValidationError("module_id", "module ID cannot be empty", value=module_id)

        parts = [p.strip() for p in module_id.strip().split("/")]
        if len(parts) != 4:
            raise ValidationError(
                "module_id",
                f"invalid module ID format: {module_id}, expected namespace/name/provider/version "
                f"(got {len(parts)} segments)",
                value=module_id,
            )

        namespace, name, provider, version = parts
        errs = MultiError()
        errs.add(self.check_name("namespace", namespace))
        errs.add(self.check_name("name", name, "module name"))
        errs.add(self.check_provider("provider", provider))
        errs.add(self.check_version(version))
        self._raise_collected(errs)
        return ModuleID(namespace, name, provider, version)

    def parse_policy_id(self, policy_id: str) -> PolicyID:
        """Parse ``[policies/]namespace/name/version``."""
        if not policy_id or not policy_id.strip():
            raise ValidationError("policy_id", "policy ID cannot be empty", value=policy_id)

        remainder = policy_id.strip()
        if remainder.startswith(POLICIES_PREFIX):
            remainder = remainder[len(POLICIES_PREFIX):]

        parts = [p.strip() for p in remainder.split("/")]
        if len(parts) != 3:
            raise ValidationError(
                "policy_id",
                f"invalid policy ID format: {remainder}, expected namespace/name/version "
                f"(got {len(parts)} segments)",
                value=policy_id,
            )

        namespace, name, version = parts
        errs = MultiError()
        errs.add(self.check_name("namespace", namespace))
        errs.add(self.check_name("name", name, "policy name"))
        errs.add(self.check_version(version))
        self._raise_collected(errs)
        return PolicyID(namespace, name, version)

    def parse_provider_uri(self, uri: str) -> ProviderURI:
        """Parse any of the accepted provider URI forms."""
        if not uri or not uri.strip():
            raise ValidationError("uri", "provider URI cannot be empty", value=uri)

        normalized = uri.strip()
        for prefix in (URI_SCHEME_PREFIX, PROVIDERS_PREFIX):
            if normalized.startswith(prefix):
                normalized = normalized[len(prefix):]
        normalized = normalized.strip().rstrip("/")

        parts = [p.strip() for p in normalized.split("/")]
        if len(parts) < 2:
            raise ValidationError(
                "uri",
                f"invalid provider URI format: {normalized}, expected at least namespace/name",
                value=uri,
            )

        namespace = parts[0]
        # Three segments are always namespace/name/version
        if len(parts) >= 4 and parts[1] in _NAME_MARKERS:
            name, rest = parts[2], parts[3:]
        else:
            name, rest = parts[1], parts[2:]

        version: Optional[str] = None
        if len(rest) == 1:
            version = rest[0]
        elif len(rest) == 2 and rest[0] in _VERSION_MARKERS:
            version = rest[1]
        elif rest:
            raise ValidationError(
                "uri",
                f"invalid provider URI format: {normalized}, unexpected segments {'/'.join(rest)}",
                value=uri,
            )

        errs = MultiError()
        errs.add(self.check_name("namespace", namespace))
        errs.add(self.check_provider("name", name))
        if version is not None:
            errs.add(self.check_version(version))
        self._raise_collected(errs)
        return ProviderURI(namespace, name, version or None)

    @staticmethod
    def _raise_collected(errs: MultiError) -> None:
        error = errs.error_or_none()
        if error is not None:
            raise error

    @staticmethod
    def is_latest(version: Optional[str]) -> bool:
        return version is None or is_sentinel(version)
