"""Tests for policy listing, lookup and search."""

import httpx
import pytest

from registry_client.exceptions import ValidationError
from registry_client.services.policies import (
    SentinelModule,
    SentinelPolicy,
    SentinelPolicyContent,
    validate_enforcement_level,
)

BASE_URL = "https://registry.example.com"


def policy(name, title="", policy_id=None, namespace="hashicorp", **extra):
    return {
        "type": "policy-libraries",
        "id": policy_id or name,
        "attributes": {"name": name, "title": title, "namespace": namespace, **extra},
    }


def listing(data, next_page=None):
    return {"data": data, "meta": {"pagination": {"current-page": 1, "next-page": next_page}}}


class TestList:
    @pytest.mark.asyncio
    async def test_list_params(self, registry, respx_mock):
        route = respx_mock.get(f"{BASE_URL}/v2/policies").mock(
            return_value=httpx.Response(200, json=listing([policy("cis")], next_page=3))
        )

        result = await registry.policies.list(page=2, page_size=10)

        params = route.calls.last.request.url.params
        assert params["page[number]"] == "2"
        assert params["page[size]"] == "10"
        assert params["include"] == "latest-version"
        assert result.meta.pagination.next_page == 3

    @pytest.mark.asyncio
    async def test_default_page_size_from_settings(self, registry, respx_mock):
        route = respx_mock.get(f"{BASE_URL}/v2/policies").mock(
            return_value=httpx.Response(200, json=listing([]))
        )

        await registry.policies.list()

        assert route.calls.last.request.url.params["page[size]"] == "2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("page", "page_size"), [(0, None), (1, 0), (1, 101)])
    async def test_rejects_bad_paging(self, registry, page, page_size):
        with pytest.raises(ValidationError):
            await registry.policies.list(page=page, page_size=page_size)


class TestGet:
    @pytest.mark.asyncio
    async def test_get_includes_related(self, registry, respx_mock):
        route = respx_mock.get(f"{BASE_URL}/v2/policies/hashicorp/cis/1.0.1").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": policy("cis"),
                    "included": [{"type": "policy-modules", "id": "m1"}],
                },
            )
        )

        details = await registry.policies.get("hashicorp", "cis", "1.0.1")

        include = route.calls.last.request.url.params["include"]
        assert include == "policies,policy-modules,policy-library"
        assert details.data.attributes.name == "cis"
        assert details.included[0].type == "policy-modules"

    @pytest.mark.asyncio
    async def test_get_by_id_strips_prefix(self, registry, respx_mock):
        route = respx_mock.get(f"{BASE_URL}/v2/policies/hashicorp/cis/1.0.1").mock(
            return_value=httpx.Response(200, json={"data": policy("cis")})
        )

        await registry.policies.get_by_id("policies/hashicorp/cis/1.0.1")

        assert route.called

    @pytest.mark.asyncio
    async def test_get_requires_version(self, registry):
        with pytest.raises(ValidationError) as exc_info:
            await registry.policies.get("hashicorp", "cis", "")
        assert exc_info.value.field == "version"


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_all_pages_and_drops_zero_scores(self, registry, respx_mock):
        route = respx_mock.get(f"{BASE_URL}/v2/policies").mock(
            side_effect=[
                httpx.Response(200, json=listing(
                    [policy("cis-aws", title="CIS benchmark for AWS"), policy("unrelated")],
                    next_page=2,
                )),
                httpx.Response(200, json=listing([policy("aws", title="AWS basics")])),
            ]
        )

        ranked = await registry.policies.search("aws")

        assert route.call_count == 2
        assert route.calls[0].request.url.params["page[size]"] == "100"
        assert [r.item.attributes.name for r in ranked] == ["aws", "cis-aws"]
        assert all(r.relevance > 0 for r in ranked)

    @pytest.mark.asyncio
    async def test_empty_query(self, registry):
        with pytest.raises(ValidationError):
            await registry.policies.search("")


def included(kind, name, shasum="abc123", item_id=None):
    return {
        "type": kind,
        "id": item_id or name,
        "attributes": {"name": name, "shasum": shasum, "shasum-type": "sha256"},
    }


class TestSentinelContent:
    @pytest.mark.asyncio
    async def test_collects_modules_and_policies(self, registry, respx_mock):
        respx_mock.get(f"{BASE_URL}/v2/policies/hashicorp/cis/1.0.1").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": policy("cis", description="CIS checks", version="1.0.1"),
                    "included": [
                        included("policy-modules", "tfplan-functions", shasum="m1"),
                        included("policies", "require-tags", shasum="p1"),
                        included("policies", "", item_id="nameless"),
                        included("policies", "no-shasum", shasum=None),
                        included("policy-library", "cis"),
                    ],
                },
            )
        )

        content = await registry.policies.get_sentinel_content("policies/hashicorp/cis/1.0.1")

        base = f"{BASE_URL}/v2/policies/hashicorp/cis/1.0.1"
        assert content.policy_id == "policies/hashicorp/cis/1.0.1"
        assert content.description == "CIS checks"
        assert content.version == "1.0.1"
        assert content.modules == [
            SentinelModule(
                "tfplan-functions",
                f"{base}/policy-module/tfplan-functions.sentinel?checksum=sha256:m1",
            )
        ]
        assert content.policies == [
            SentinelPolicy(
                "require-tags",
                "sha256:p1",
                f"{base}/policy/require-tags.sentinel?checksum=sha256:p1",
            )
        ]

    @pytest.mark.asyncio
    async def test_invalid_policy_id(self, registry):
        with pytest.raises(ValidationError):
            await registry.policies.get_sentinel_content("hashicorp/cis")


class TestGenerateHCL:
    def content(self):
        return SentinelPolicyContent(
            policy_id="hashicorp/cis/1.0.1",
            description="CIS checks",
            version="1.0.1",
            modules=[SentinelModule("funcs", "https://r/funcs.sentinel")],
            policies=[SentinelPolicy("require-tags", "sha256:p1", "https://r/tags.sentinel")],
        )

    def test_renders_modules_and_policies(self):
        hcl = self.content().generate_hcl("hard-mandatory")

        assert hcl == (
            "# Sentinel Policy Configuration\n"
            "# Policy: hashicorp/cis/1.0.1\n"
            "# Version: 1.0.1\n"
            "# Description: CIS checks\n"
            "\n"
            "# Policy Modules\n"
            'module "funcs" {\n'
            '  source = "https://r/funcs.sentinel"\n'
            "}\n"
            "\n"
            "# Policies\n"
            'policy "require-tags" {\n'
            '  source            = "https://r/tags.sentinel"\n'
            '  enforcement_level = "hard-mandatory"\n'
            "}\n"
            "\n"
        )

    def test_unknown_level_falls_back_to_advisory(self):
        hcl = self.content().generate_hcl("mandatory-ish")
        assert 'enforcement_level = "advisory"' in hcl

    def test_empty_content_is_header_only(self):
        hcl = SentinelPolicyContent(policy_id="hashicorp/cis/1.0.1").generate_hcl()
        assert "# Policies" not in hcl
        assert "module " not in hcl

    @pytest.mark.parametrize("level", ["advisory", "soft-mandatory", "hard-mandatory"])
    def test_validate_accepts_known_levels(self, level):
        validate_enforcement_level(level)

    def test_validate_rejects_unknown_level(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_enforcement_level("strict")
        assert exc_info.value.field == "enforcement_level"
