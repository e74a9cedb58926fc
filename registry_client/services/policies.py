"""Policy operations against the v2 registry API."""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import quote

from registry_client.core.identifiers import IdentifierParser
from registry_client.core.logging import get_logger
from registry_client.exceptions import ValidationError
from registry_client.models import Policy, PolicyDetails, PolicyList
from registry_client.services.base import (
    MAX_PAGE_SIZE,
    PoliciesAPI,
    validate_page_size,
    validate_policy_params,
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

POLICY_DETAIL_INCLUDES = "policies,policy-modules,policy-library"
ENFORCEMENT_LEVELS = ("advisory", "soft-mandatory", "hard-mandatory")
DEFAULT_ENFORCEMENT_LEVEL = "advisory"


def validate_enforcement_level(level: str) -> None:
    if level not in ENFORCEMENT_LEVELS:
        raise ValidationError(
            "enforcement_level",
            f"invalid enforcement level, must be one of: {', '.join(ENFORCEMENT_LEVELS)}",
            value=level,
        )


@dataclass
class SentinelModule:
    name: str
    source: str


@dataclass
class SentinelPolicy:
    name: str
    checksum: str
    source: str


@dataclass
class SentinelPolicyContent:
    """What a Sentinel policy set configuration needs from one policy version."""

    policy_id: str
    description: str = ""
    version: str = ""
    modules: List[SentinelModule] = field(default_factory=list)
    policies: List[SentinelPolicy] = field(default_factory=list)

    def generate_hcl(self, enforcement_level: str = DEFAULT_ENFORCEMENT_LEVEL) -> str:
        """Render a ``sentinel.hcl`` policy set configuration.

        An unknown enforcement level falls back to advisory.
        """
        try:
            validate_enforcement_level(enforcement_level)
        except ValidationError as e:
            logger.warning(f"{e.reason}; using {DEFAULT_ENFORCEMENT_LEVEL}")
            enforcement_level = DEFAULT_ENFORCEMENT_LEVEL

        lines = [
            "# Sentinel Policy Configuration",
            f"# Policy: {self.policy_id}",
            f"# Version: {self.version}",
            f"# Description: {self.description}",
            "",
        ]
        if self.modules:
            lines.append("# Policy Modules")
            for module in self.modules:
                lines += [f'module "{module.name}" {{', f'  source = "{module.source}"', "}", ""]
        if self.policies:
            lines.append("# Policies")
            for policy in self.policies:
                lines += [
                    f'policy "{policy.name}" {{',
                    f'  source            = "{policy.source}"',
                    f'  enforcement_level = "{enforcement_level}"',
                    "}",
                    "",
                ]
        return "\n".join(lines) + "\n"


def policy_fields(policy: Policy) -> SearchFields:
    attrs = policy.attributes
    # Titles are the human-readable summary of a policy set
    return SearchFields(
        key=policy.id or f"{attrs.namespace}/{attrs.name}",
        name=attrs.name,
        description=attrs.title or attrs.description,
        namespace=attrs.namespace,
        verified=attrs.verified,
        downloads=attrs.downloads,
    )


class PoliciesService(PoliciesAPI):
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
        self._engine = RelevanceSearchEngine(extractor=policy_fields, max_pages=max_pages)
        self.page_size = page_size
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def _path(namespace: str, name: str, version: str) -> str:
        return "/v2/policies/" + "/".join(quote(s, safe="") for s in (namespace, name, version))

    async def list(
        self,
        page: int = 1,
        page_size: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PolicyList:
        if page < 1:
            raise ValidationError("page", "page must be at least 1", value=page)
        size = self.page_size if page_size is None else page_size
        validate_page_size(size)

        return await self._transport.get_model(
            PolicyList,
            "/v2/policies",
            {"page[size]": size, "page[number]": page, "include": "latest-version"},
            cancel_event,
        )

    async def get(
        self,
        namespace: str,
        name: str,
        version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PolicyDetails:
        validate_policy_params(self._identifiers, namespace, name, version)
        return await self._transport.get_model(
            PolicyDetails,
            self._path(namespace, name, version),
            {"include": POLICY_DETAIL_INCLUDES},
            cancel_event,
        )

    async def get_by_id(
        self, policy_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> PolicyDetails:
        parsed = self._identifiers.parse_policy_id(policy_id)
        return await self.get(parsed.namespace, parsed.name, parsed.version, cancel_event)

    async def search(
        self, query: str, cancel_event: Optional[asyncio.Event] = None
    ) -> List[RankedItem[Policy]]:
        query = validate_query(query)

        async def fetch_page(_: str, token: Optional[str]) -> Page[Policy]:
            result = await self.list(int(token or 1), MAX_PAGE_SIZE, cancel_event)
            next_page = result.meta.pagination.next_page
            return Page(items=result.data, next_token=str(next_page) if next_page else None)

        ranked = await self._engine.rank_all(query, fetch_page, min_relevance=0.0)
        logger.debug(f"Policy search {query!r} matched {len(ranked)} policies")
        return ranked

    async def get_sentinel_content(
        self, policy_id: str, cancel_event: Optional[asyncio.Event] = None
    ) -> SentinelPolicyContent:
        """Collect the modules and policies of a policy version with their sources.

        Included entries missing a name or checksum are skipped.
        """
        parsed = self._identifiers.parse_policy_id(policy_id)
        details = await self.get(parsed.namespace, parsed.name, parsed.version, cancel_event)
        attrs = details.data.attributes
        content = SentinelPolicyContent(
            policy_id=policy_id,
            description=attrs.description,
            version=attrs.version or parsed.version,
        )

        base = f"{self.base_url}{self._path(parsed.namespace, parsed.name, parsed.version)}"
        for included in details.included:
            if included.type not in ("policy-modules", "policies"):
                continue
            item = included.attributes
            if not item.name or not item.shasum:
                logger.warning(
                    f"Skipping {included.type} entry {included.id!r} of {policy_id}: "
                    "missing name or shasum"
                )
                continue
            checksum = f"sha256:{item.shasum}"
            if included.type == "policy-modules":
                content.modules.append(
                    SentinelModule(
                        name=item.name,
                        source=f"{base}/policy-module/{item.name}.sentinel?checksum={checksum}",
                    )
                )
            else:
                content.policies.append(
                    SentinelPolicy(
                        name=item.name,
                        checksum=checksum,
                        source=f"{base}/policy/{item.name}.sentinel?checksum={checksum}",
                    )
                )
        return content
