"""Base class for registry clients that list published versions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Optional

import requests

from ...common.http_client import get_json
from ...errors import NotFoundError, RegistryFetchError
from ..comparator import VersionComparator
from ..models import AvailableVersion

logger = logging.getLogger(__name__)


def parse_iso8601(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime, or None."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        if text.endswith("Z"):
            text = text[:-1]
            if "." in text:
                # fromisoformat only accepts 3 or 6 fractional digits before 3.11
                head, frac = text.split(".", 1)
                text = f"{head}.{(frac + '000000')[:6]}"
            return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    except (ValueError, TypeError):
        return None


class RegistryClient(ABC):
    """Fetches and normalizes the version list of one registry.

    Subclasses build the package URL and translate the registry payload;
    status handling is shared here.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        comparator: Optional[VersionComparator] = None,
    ):
        self.session = session
        self.comparator = comparator or VersionComparator()

    @property
    @abstractmethod
    def registry(self) -> str:
        """Registry prefix handled by this client ("jsr" or "npm")."""

    @abstractmethod
    def package_url(self, package_name: str) -> str:
        """Return the metadata URL for ``package_name``."""

    @abstractmethod
    def extract_versions(self, data: Any) -> List[AvailableVersion]:
        """Translate a decoded payload into versions, yanked ones included."""

    def fetch_versions(self, package_name: str, timeout: Optional[float] = None) -> List[AvailableVersion]:
        """Fetch every published version of ``package_name``.

        Raises:
            NotFoundError: the registry answered 404.
            RegistryFetchError: any other non-2xx status or an unusable body.
            requests.RequestException: network failures and timeouts, unchanged.
        """
        url = self.package_url(package_name)
        status_code, data = get_json(url, context=self.registry, session=self.session, timeout=timeout)

        if status_code == 404:
            raise NotFoundError(self.registry, package_name)
        if not 200 <= status_code < 300:
            raise RegistryFetchError(self.registry, package_name, status_code=status_code)
        if not isinstance(data, dict) or not isinstance(data.get("versions"), dict):
            raise RegistryFetchError(
                self.registry, package_name, status_code=status_code, reason="unexpected response body"
            )

        versions = self.extract_versions(data)
        logger.debug("%s: %d version(s) listed for %s", self.registry, len(versions), package_name)
        return versions

    def _make_version(self, version: str, published: Optional[str], yanked: bool) -> AvailableVersion:
        return AvailableVersion(
            version=version,
            channel=self.comparator.parse(version).channel,
            published_at=parse_iso8601(published),
            yanked=yanked,
        )
