"""Data models for versioning and registry lookups."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

import semantic_version


@dataclass(frozen=True)
class ParsedVersion:
    """A version split into its base and release channel."""
    original: str
    base: str  # "major.minor.patch"
    semver: semantic_version.Version
    channel: Optional[str]  # prerelease identifiers joined by ".", None for production

    @property
    def is_production(self) -> bool:
        return not self.channel


@dataclass
class AvailableVersion:
    """A version published to a registry."""
    version: str
    channel: Optional[str] = None
    published_at: Optional[datetime] = None
    yanked: bool = False


@dataclass
class ResolveOptions:
    """Per-call options for registry lookups."""
    timeout: Optional[float] = None  # seconds; None defers to Constants.REQUEST_TIMEOUT
    include_yanked: bool = False


# Type alias for stable cache keys: (registry, package name)
PackageKey = Tuple[str, str]
