"""Tests for semantic version parsing and ordering."""

import pytest

from registry_client.core.versions import SemanticVersion, VersionComparator
from registry_client.exceptions import ValidationError


@pytest.fixture
def versions():
    return VersionComparator()


class TestParse:
    """Test version parsing."""

    def test_full_version(self, versions):
        parsed = versions.parse("v1.2.3-rc.1+build.7")

        assert parsed == SemanticVersion(1, 2, 3, "rc.1", "build.7")
        assert parsed.is_prerelease
        assert str(parsed) == "1.2.3-rc.1+build.7"

    def test_sentinels_do_not_parse(self, versions):
        assert versions.parse("") is None
        assert versions.parse("latest") is None

    def test_partial_match_rejected(self, versions):
        """Trailing garbage must not be accepted."""
        assert versions.parse("1.2.3 ") is None
        assert versions.parse("1.2.3.4") is None


class TestValidate:
    """Test version validation."""

    @pytest.mark.parametrize(
        "version",
        ["1.0.0", "v1.0.0", "1.0.0-beta", "1.0.0-beta.1", "1.0.0+build.123", "latest", ""],
    )
    def test_accepts(self, versions, version):
        versions.validate(version)
        assert versions.is_valid(version)

    @pytest.mark.parametrize("version", ["1.0", "1", "v1", "abc", "1.0.0.0", "1.0.0-"])
    def test_rejects(self, versions, version):
        with pytest.raises(ValidationError) as exc_info:
            versions.validate(version)

        assert exc_info.value.field == "version"
        assert version in str(exc_info.value)
        assert not versions.is_valid(version)

    def test_field_name_is_reported(self, versions):
        with pytest.raises(ValidationError) as exc_info:
            versions.validate("nope", field="provider_version")
        assert exc_info.value.field == "provider_version"


class TestCompare:
    """Test version ordering."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("1.0.0", "2.0.0", -1),
            ("2.0.0", "1.0.0", 1),
            ("1.0.0", "1.0.0", 0),
            ("v1.0.0", "1.0.0", 0),
            ("1.0.0", "1.0.0-beta", 1),
            ("1.0.0-alpha", "1.0.0-beta", -1),
            ("1.10.0", "1.9.0", 1),
            ("1.2.3", "1.10.0", -1),
            ("1.0.0+build.1", "1.0.0+build.2", 0),
        ],
    )
    def test_compare(self, versions, a, b, expected):
        assert versions.compare(a, b) == expected

    def test_antisymmetric(self, versions):
        pairs = [("1.2.3", "1.2.4"), ("2.0.0-rc.1", "2.0.0"), ("0.1.0", "0.0.9")]
        for a, b in pairs:
            assert versions.compare(a, b) == -versions.compare(b, a)

    def test_prerelease_compared_lexically(self, versions):
        """Prerelease tags are plain strings, so beta.10 < beta.2."""
        assert versions.compare("1.0.0-beta.10", "1.0.0-beta.2") == -1

    def test_unparsable_orders_as_zero(self, versions):
        assert versions.compare("garbage", "0.0.0") == 0
        assert versions.compare("latest", "0.0.1") == -1


class TestMax:
    """Test latest-version selection."""

    def test_picks_greatest(self, versions):
        assert versions.max(["1.0.0", "2.1.0", "2.0.5", "2.1.0-rc.1"]) == "2.1.0"

    def test_tie_keeps_first_occurrence(self, versions):
        assert versions.max(["v1.0.0", "1.0.0"]) == "v1.0.0"

    def test_accepts_generator(self, versions):
        assert versions.max(v for v in ("0.1.0", "0.2.0")) == "0.2.0"

    def test_empty_raises(self, versions):
        with pytest.raises(ValidationError):
            versions.max([])


def test_normalize_strips_leading_v():
    assert VersionComparator.normalize("v1.2.3") == "1.2.3"
    assert VersionComparator.normalize("1.2.3") == "1.2.3"
