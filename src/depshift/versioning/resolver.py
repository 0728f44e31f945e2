"""Version source: available versions for a package from JSR or npm.

Listings are cached per (registry, package name) in an explicit
:class:`~depshift.versioning.cache.TTLCache` handed to the resolver, so
callers decide how long entries stay fresh.
"""

from __future__ import annotations

import functools
import logging
from typing import Dict, List, Mapping, Optional

import requests

from ..common.logging_utils import extra_context, is_debug_enabled
from ..constants import Constants, Registry
from .cache import TTLCache
from .comparator import VersionComparator
from .models import AvailableVersion, PackageKey, ResolveOptions
from .resolvers import JsrRegistryClient, NpmRegistryClient, RegistryClient

logger = logging.getLogger(__name__)

PRODUCTION_CHANNEL = "production"


class VersionResolver:
    """Fetch, normalize and cache registry version listings.

    Args:
        cache: Cache for listings; defaults to a TTLCache configured from Constants.
        comparator: Version semantics used for sorting and channel filtering.
        session: Optional requests session shared by the default clients.
        clients: Override the registry clients (keyed by registry prefix).
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        comparator: Optional[VersionComparator] = None,
        session: Optional[requests.Session] = None,
        clients: Optional[Mapping[str, RegistryClient]] = None,
    ):
        self.comparator = comparator or VersionComparator()
        self.cache = cache if cache is not None else TTLCache(
            default_ttl=Constants.VERSION_CACHE_TTL_SEC,
            max_entries=Constants.VERSION_CACHE_MAX_ENTRIES,
        )
        if clients is None:
            clients = {
                Registry.JSR.value: JsrRegistryClient(session=session, comparator=self.comparator),
                Registry.NPM.value: NpmRegistryClient(session=session, comparator=self.comparator),
            }
        self.clients: Dict[str, RegistryClient] = dict(clients)

    def clear_cache(self) -> None:
        self.cache.clear()

    def _client(self, registry: str) -> RegistryClient:
        try:
            return self.clients[registry]
        except KeyError:
            raise ValueError(
                f"Unsupported registry '{registry}'; expected one of {sorted(self.clients)}"
            ) from None

    def get_versions(
        self,
        registry: str,
        package_name: str,
        options: Optional[ResolveOptions] = None,
    ) -> List[AvailableVersion]:
        """All available versions of a package, newest first.

        Yanked (JSR) and deprecated (npm) versions are left out unless
        ``options.include_yanked`` is set.

        Raises:
            NotFoundError: the package does not exist.
            RegistryFetchError: the registry returned another error status.
            requests.RequestException: network failures, unchanged.
        """
        options = options or ResolveOptions()
        key: PackageKey = (registry, package_name)

        versions = self.cache.get(key)
        if versions is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Version cache hit",
                    extra=extra_context(
                        event="cache_hit", component="version_resolver",
                        action="get_versions", target=f"{registry}:{package_name}",
                    ),
                )
        else:
            versions = self._client(registry).fetch_versions(package_name, timeout=options.timeout)
            versions = sorted(
                versions,
                key=functools.cmp_to_key(lambda a, b: self.comparator.compare(a.version, b.version)),
                reverse=True,
            )
            self.cache.set(key, versions)

        if options.include_yanked:
            return list(versions)
        return [v for v in versions if not v.yanked]

    def get_latest(
        self,
        registry: str,
        package_name: str,
        channel: Optional[str] = None,
        options: Optional[ResolveOptions] = None,
    ) -> Optional[str]:
        """Latest version on ``channel`` (None = production), or None."""
        versions = self.get_versions(registry, package_name, options)
        return self.comparator.find_latest([v.version for v in versions], channel)

    def get_versions_by_channel(
        self,
        registry: str,
        package_name: str,
        options: Optional[ResolveOptions] = None,
    ) -> Dict[str, List[AvailableVersion]]:
        """Versions grouped by channel; production versions sit under ``"production"``."""
        grouped: Dict[str, List[AvailableVersion]] = {}
        for version in self.get_versions(registry, package_name, options):
            grouped.setdefault(version.channel or PRODUCTION_CHANNEL, []).append(version)
        return grouped

    def has_version(
        self,
        registry: str,
        package_name: str,
        version: str,
        options: Optional[ResolveOptions] = None,
    ) -> bool:
        return any(v.version == version for v in self.get_versions(registry, package_name, options))
