"""Tests for module ID, policy ID and provider URI parsing."""

import pytest

from registry_client.core.identifiers import (
    IdentifierParser,
    ModuleID,
    PolicyID,
    ProviderURI,
)
from registry_client.exceptions import MultiError, ValidationError


@pytest.fixture
def parser():
    return IdentifierParser()


class TestNameGrammar:
    """Test single-segment grammars."""

    @pytest.mark.parametrize("value", ["hashicorp", "terraform-aws-modules", "a_b", "9lives"])
    def test_valid_names(self, parser, value):
        assert parser.is_valid_name(value)

    @pytest.mark.parametrize("value", ["", "-lead", "_lead", "has space", "dot.ted"])
    def test_invalid_names(self, parser, value):
        assert not parser.is_valid_name(value)

    @pytest.mark.parametrize("value", ["aws", "google-beta", "k8s"])
    def test_valid_providers(self, parser, value):
        assert parser.is_valid_provider(value)

    @pytest.mark.parametrize("value", ["AWS", "1aws", "aws_x", ""])
    def test_invalid_providers(self, parser, value):
        assert not parser.is_valid_provider(value)

    def test_check_version_optional(self, parser):
        assert parser.check_version("", required=False) is None
        assert isinstance(parser.check_version(""), ValidationError)


class TestParseModuleID:
    """Test module ID parsing."""

    def test_valid(self, parser):
        parsed = parser.parse_module_id("terraform-aws-modules/vpc/aws/5.0.0")

        assert parsed == ModuleID("terraform-aws-modules", "vpc", "aws", "5.0.0")
        assert parsed.base == "terraform-aws-modules/vpc/aws"
        assert str(parsed) == "terraform-aws-modules/vpc/aws/5.0.0"

    def test_latest_version_accepted(self, parser):
        assert parser.parse_module_id("hashicorp/consul/aws/latest").version == "latest"

    def test_wrong_segment_count(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_module_id("hashicorp/consul/aws")

        assert exc_info.value.field == "module_id"
        assert "got 3 segments" in str(exc_info.value)

    def test_empty(self, parser):
        with pytest.raises(ValidationError):
            parser.parse_module_id("  ")

    def test_bad_namespace_character(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_module_id("na@me/name/prov/1.0.0")

        assert exc_info.value.field == "namespace"
        assert "invalid namespace format" in str(exc_info.value)

    def test_empty_segment(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_module_id("ns//prov/1.0.0")
        assert exc_info.value.field == "name"

    def test_single_bad_field_is_not_wrapped(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_module_id("hashicorp/consul/AWS/1.0.0")
        assert exc_info.value.field == "provider"

    def test_several_bad_fields_collected(self, parser):
        with pytest.raises(MultiError) as exc_info:
            parser.parse_module_id("-bad/consul/AWS/1.0")

        fields = {e.field for e in exc_info.value.errors}
        assert fields == {"namespace", "provider", "version"}
        assert "3 errors" in str(exc_info.value)


class TestParsePolicyID:
    """Test policy ID parsing."""

    def test_with_prefix(self, parser):
        parsed = parser.parse_policy_id("policies/hashicorp/CIS-Policy-Set-for-AWS-Terraform/1.0.1")
        assert parsed == PolicyID("hashicorp", "CIS-Policy-Set-for-AWS-Terraform", "1.0.1")

    def test_without_prefix(self, parser):
        assert parser.parse_policy_id("hashicorp/cis/1.0.0") == PolicyID("hashicorp", "cis", "1.0.0")

    def test_wrong_segment_count(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_policy_id("policies/hashicorp/cis")
        assert "got 2 segments" in str(exc_info.value)


class TestParseProviderURI:
    """Test provider URI parsing."""

    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            ("hashicorp/aws", ProviderURI("hashicorp", "aws")),
            ("hashicorp/aws/5.0.0", ProviderURI("hashicorp", "aws", "5.0.0")),
            ("registry://hashicorp/aws/latest", ProviderURI("hashicorp", "aws", "latest")),
            ("providers/hashicorp/aws/", ProviderURI("hashicorp", "aws")),
            ("hashicorp/name/1.0.0", ProviderURI("hashicorp", "name", "1.0.0")),
            ("hashicorp/providers/1.0.0", ProviderURI("hashicorp", "providers", "1.0.0")),
            ("hashicorp/providers/aws/5.1.0", ProviderURI("hashicorp", "aws", "5.1.0")),
            ("hashicorp/providers/aws/versions/5.1.0", ProviderURI("hashicorp", "aws", "5.1.0")),
            ("hashicorp/aws/versions/5.1.0", ProviderURI("hashicorp", "aws", "5.1.0")),
        ],
    )
    def test_accepted_forms(self, parser, uri, expected):
        assert parser.parse_provider_uri(uri) == expected

    def test_too_short(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_provider_uri("hashicorp")
        assert exc_info.value.field == "uri"

    def test_trailing_segments_rejected(self, parser):
        with pytest.raises(ValidationError):
            parser.parse_provider_uri("hashicorp/aws/5.0.0/extra")

    def test_marker_in_three_segments_is_a_name(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_provider_uri("hashicorp/providers/aws")
        assert exc_info.value.field == "version"

    def test_invalid_version(self, parser):
        with pytest.raises(ValidationError) as exc_info:
            parser.parse_provider_uri("hashicorp/aws/five")
        assert exc_info.value.field == "version"

    def test_str_round_trip(self, parser):
        assert str(parser.parse_provider_uri("registry://hashicorp/aws/5.0.0")) == "hashicorp/aws/5.0.0"


def test_is_latest():
    assert IdentifierParser.is_latest(None)
    assert IdentifierParser.is_latest("")
    assert IdentifierParser.is_latest("latest")
    assert not IdentifierParser.is_latest("1.0.0")
