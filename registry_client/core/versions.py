"""Semantic version parsing and ordering.

Versions look like ``[v]major.minor.patch[-prerelease][+build]``. The empty
string and ``latest`` are accepted sentinels meaning "unconstrained / most
recent"; they validate but do not parse into a SemanticVersion.

Prerelease tags are ordered by plain string comparison, not by the
dot-separated identifier rules of the SemVer specification, so
``1.0.0-beta.10`` sorts before ``1.0.0-beta.2``.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from registry_client.exceptions import ValidationError

LATEST = "latest"


@dataclass(frozen=True)
class SemanticVersion:
    """A parsed version. ``build`` never takes part in ordering."""

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)


ZERO_VERSION = SemanticVersion(0, 0, 0)


def is_sentinel(version: str) -> bool:
    """True for the "unconstrained" forms: empty string and ``latest``."""
    return version == "" or version == LATEST


class VersionComparator:
    """Validates and orders version strings.

    Stateless apart from its compiled grammar; one instance is owned by each
    client and shared by the identifier parser and the services.
    """

    def __init__(self) -> None:
        self._pattern = re.compile(
            r"v?([0-9]+)\.([0-9]+)\.([0-9]+)"
            r"(?:-([0-9A-Za-z.\-]+))?"
            r"(?:\+([0-9A-Za-z.\-]+))?"
        )

    def parse(self, version: str) -> Optional[SemanticVersion]:
        """Parse a version string; None for sentinels and malformed input."""
        match = self._pattern.fullmatch(version)
        if match is None:
            return None
        major, minor, patch, prerelease, build = match.groups()
        return SemanticVersion(
            int(major), int(minor), int(patch), prerelease or "", build or ""
        )

    def validate(self, version: str, field: str = "version") -> None:
        """Raise ValidationError unless ``version`` is a sentinel or well formed."""
        if is_sentinel(version):
            return
        if self.parse(version) is None:
            raise ValidationError(
                field, f"invalid semantic version format: {version}", value=version
            )

    def is_valid(self, version: str) -> bool:
        return is_sentinel(version) or self.parse(version) is not None

    def compare(self, a: str, b: str) -> int:
        """Order two version strings, returning -1, 0 or 1.

        Strings that do not parse (including the sentinels) order as 0.0.0
        with no prerelease tag.
        """
        va = self.parse(a) or ZERO_VERSION
        vb = self.parse(b) or ZERO_VERSION

        for left, right in (
            (va.major, vb.major),
            (va.minor, vb.minor),
            (va.patch, vb.patch),
        ):
            if left != right:
                return -1 if left < right else 1

        # A release outranks any prerelease of the same numbers
        if not va.prerelease and vb.prerelease:
            return 1
        if va.prerelease and not vb.prerelease:
            return -1

        if va.prerelease < vb.prerelease:
            return -1
        if va.prerelease > vb.prerelease:
            return 1
        return 0

    def max(self, versions: Iterable[str]) -> str:
        """Return the greatest version of a non-empty collection.

        Ties keep the earliest occurrence.
        """
        latest: Optional[str] = None
        for version in versions:
            if latest is None or self.compare(version, latest) > 0:
                latest = version
        if latest is None:
            raise ValidationError("versions", "cannot select the latest of an empty version list")
        return latest

    @staticmethod
    def normalize(version: str) -> str:
        """Strip a leading ``v``."""
        return version[1:] if version.startswith("v") else version
