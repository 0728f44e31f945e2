"""Version semantics and registry version sources."""

from .cache import TTLCache
from .comparator import VersionComparator
from .models import AvailableVersion, ParsedVersion, ResolveOptions
from .resolver import PRODUCTION_CHANNEL, VersionResolver

__all__ = [
    "AvailableVersion",
    "ParsedVersion",
    "ResolveOptions",
    "TTLCache",
    "VersionComparator",
    "VersionResolver",
    "PRODUCTION_CHANNEL",
]
