"""Version comparison with release-channel awareness.

Versions follow semver with an optional channel suffix:

- ``1.2.3`` is a production version
- ``1.2.3-integration`` is on the ``integration`` channel
- ``1.2.3-rc.1`` is on the ``rc.1`` channel

Ordering is standard semver precedence: base versions compare numerically
and, for the same base, a production version sorts after any prerelease.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable, List, Optional

import semantic_version

from .models import ParsedVersion

_INVALID_IDENTIFIER_CHARS = re.compile(r"[^0-9A-Za-z-]")


def _to_int(part: str) -> int:
    try:
        return int(part)
    except ValueError:
        return 0


def _sanitize_identifier(part: str) -> str:
    part = _INVALID_IDENTIFIER_CHARS.sub("-", part)
    if part.isdigit():
        return str(int(part))  # semver forbids leading zeroes
    return part


class VersionComparator:
    """Channel-aware version utility.

    ``compare("0.2.299", "0.2.299-integration")`` is 1 (production wins) and
    ``is_newer("0.2.299", "0.2.300-integration")`` is True.
    """

    def parse(self, version: str) -> ParsedVersion:
        """Parse a version string into base and channel.

        Strict semver is tried first; anything else is split on the first
        ``-`` into base and channel, missing base components default to 0.
        """
        try:
            semver = semantic_version.Version(version)
        except ValueError:
            return self._parse_loose(version)

        channel = ".".join(str(p) for p in semver.prerelease) or None
        return ParsedVersion(
            original=version,
            base=f"{semver.major}.{semver.minor}.{semver.patch}",
            semver=semver,
            channel=channel,
        )

    def _parse_loose(self, version: str) -> ParsedVersion:
        base, sep, channel = version.partition("-")
        parts = [_to_int(p) for p in base.split(".")[:3]]
        parts += [0] * (3 - len(parts))
        major, minor, patch = parts

        identifiers = tuple(
            _sanitize_identifier(p) for p in channel.split(".") if p
        ) if sep else ()
        identifiers = tuple(p for p in identifiers if p)

        semver = semantic_version.Version(
            major=major, minor=minor, patch=patch, prerelease=identifiers, build=()
        )
        return ParsedVersion(
            original=version,
            base=f"{major}.{minor}.{patch}",
            semver=semver,
            channel=channel or None,
        )

    def compare(self, a: str, b: str) -> int:
        """Return -1, 0 or 1 as ``a`` sorts before, equal to, or after ``b``."""
        sa = self.parse(a).semver
        sb = self.parse(b).semver
        if sa < sb:
            return -1
        if sa > sb:
            return 1
        return 0

    def is_newer(self, current: str, candidate: str) -> bool:
        """True if ``candidate`` is strictly newer than ``current``."""
        return self.compare(current, candidate) < 0

    def has_channel(self, version: str, channel: Optional[str] = None) -> bool:
        """True if ``version`` is on ``channel`` (None means production)."""
        parsed = self.parse(version)
        if channel is None:
            return parsed.is_production
        return parsed.channel == channel

    def get_channel(self, version: str) -> Optional[str]:
        return self.parse(version).channel

    def get_versions_by_channel(self, versions: Iterable[str], channel: Optional[str] = None) -> List[str]:
        """Versions on ``channel`` (None = production), newest first."""
        matching = [v for v in versions if self.has_channel(v, channel)]
        return sorted(matching, key=functools.cmp_to_key(self.compare), reverse=True)

    def find_latest(self, versions: Iterable[str], channel: Optional[str] = None) -> Optional[str]:
        """Latest version on ``channel`` (None = production only), or None."""
        ordered = self.get_versions_by_channel(versions, channel)
        return ordered[0] if ordered else None

    def build_version(self, base: str, channel: Optional[str] = None) -> str:
        """Join a base version and an optional channel suffix."""
        return f"{base}-{channel}" if channel else base
