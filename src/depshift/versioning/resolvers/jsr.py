"""JSR registry client (``GET https://jsr.io/@scope/name/meta.json``)."""

from typing import Any, List

from ...constants import Constants, Registry
from ..models import AvailableVersion
from .base import RegistryClient


class JsrRegistryClient(RegistryClient):
    """Lists versions from a JSR package's ``meta.json``."""

    @property
    def registry(self) -> str:
        return Registry.JSR.value

    def package_url(self, package_name: str) -> str:
        return f"{Constants.REGISTRY_URL_JSR.rstrip('/')}/{package_name}/meta.json"

    def extract_versions(self, data: Any) -> List[AvailableVersion]:
        versions = []
        for version, info in data["versions"].items():
            info = info if isinstance(info, dict) else {}
            versions.append(
                self._make_version(version, info.get("createdAt"), bool(info.get("yanked")))
            )
        return versions
