"""npm registry client reading the package document (packument)."""

from typing import Any, List

from ...constants import Constants, Registry
from ..models import AvailableVersion
from .base import RegistryClient


def encode_package_name(package_name: str) -> str:
    """Percent-encode the scope separator: ``@scope/name`` -> ``@scope%2Fname``."""
    if package_name.startswith("@"):
        return package_name.replace("/", "%2F", 1)
    return package_name


class NpmRegistryClient(RegistryClient):
    """Lists versions from ``https://registry.npmjs.org/<name>``.

    Deprecated versions are reported as yanked; publish times come from the
    packument's ``time`` map.
    """

    @property
    def registry(self) -> str:
        return Registry.NPM.value

    def package_url(self, package_name: str) -> str:
        return f"{Constants.REGISTRY_URL_NPM.rstrip('/')}/{encode_package_name(package_name)}"

    def extract_versions(self, data: Any) -> List[AvailableVersion]:
        times = data.get("time") if isinstance(data.get("time"), dict) else {}
        versions = []
        for version, info in data["versions"].items():
            info = info if isinstance(info, dict) else {}
            versions.append(
                self._make_version(version, times.get(version), bool(info.get("deprecated")))
            )
        return versions
