"""Tests for the registry-backed version resolver."""

import json
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from depshift.errors import NotFoundError, RegistryFetchError
from depshift.versioning.cache import TTLCache
from depshift.versioning.models import ResolveOptions
from depshift.versioning.resolver import VersionResolver
from depshift.versioning.resolvers.npm import encode_package_name

JSR_META = {
    "latest": "1.0.0",
    "versions": {
        "0.9.0": {"createdAt": "2024-01-01T00:00:00.000Z"},
        "1.0.0": {"createdAt": "2024-02-01T12:30:00.123Z"},
        "1.1.0-integration": {},
        "1.0.1": {"yanked": True},
    },
}

NPM_PACKUMENT = {
    "dist-tags": {"latest": "2.0.0"},
    "versions": {
        "1.0.0": {},
        "2.0.0": {},
        "2.1.0-beta.1": {},
        "1.5.0": {"deprecated": "use 2.x"},
    },
    "time": {
        "created": "2023-01-01T00:00:00.000Z",
        "2.0.0": "2024-03-01T00:00:00.000Z",
    },
}


def make_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.text = json.dumps(payload) if payload is not None else ""
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def resolver(session):
    return VersionResolver(session=session)


class TestJsr:
    """JSR meta.json listings."""

    def test_versions_sorted_and_yanked_excluded(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        versions = resolver.get_versions("jsr", "@t/pkg")

        assert [v.version for v in versions] == ["1.1.0-integration", "1.0.0", "0.9.0"]
        assert session.get.call_args[0][0] == "https://jsr.io/@t/pkg/meta.json"

    def test_include_yanked(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        versions = resolver.get_versions("jsr", "@t/pkg", ResolveOptions(include_yanked=True))

        assert [v.version for v in versions] == ["1.1.0-integration", "1.0.1", "1.0.0", "0.9.0"]
        assert next(v for v in versions if v.version == "1.0.1").yanked

    def test_metadata_fields(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        versions = {v.version: v for v in resolver.get_versions("jsr", "@t/pkg")}

        assert versions["1.1.0-integration"].channel == "integration"
        assert versions["1.0.0"].channel is None
        assert versions["1.0.0"].published_at == datetime(2024, 2, 1, 12, 30, 0, 123000, tzinfo=timezone.utc)
        assert versions["1.1.0-integration"].published_at is None

    def test_get_latest(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        assert resolver.get_latest("jsr", "@t/pkg") == "1.0.0"
        assert resolver.get_latest("jsr", "@t/pkg", "integration") == "1.1.0-integration"
        assert resolver.get_latest("jsr", "@t/pkg", "missing") is None

    def test_get_versions_by_channel(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        grouped = resolver.get_versions_by_channel("jsr", "@t/pkg")

        assert set(grouped) == {"production", "integration"}
        assert [v.version for v in grouped["production"]] == ["1.0.0", "0.9.0"]

    def test_has_version(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        assert resolver.has_version("jsr", "@t/pkg", "0.9.0")
        assert not resolver.has_version("jsr", "@t/pkg", "1.0.1")
        assert not resolver.has_version("jsr", "@t/pkg", "5.0.0")


class TestNpm:
    """npm packument listings."""

    def test_scoped_name_is_encoded(self, resolver, session):
        session.get.return_value = make_response(payload=NPM_PACKUMENT)

        resolver.get_versions("npm", "@types/node")

        assert session.get.call_args[0][0] == "https://registry.npmjs.org/@types%2Fnode"

    def test_deprecated_excluded_and_time_map_used(self, resolver, session):
        session.get.return_value = make_response(payload=NPM_PACKUMENT)

        versions = resolver.get_versions("npm", "left-pad")

        assert [v.version for v in versions] == ["2.1.0-beta.1", "2.0.0", "1.0.0"]
        latest = next(v for v in versions if v.version == "2.0.0")
        assert latest.published_at == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_encode_package_name(self):
        assert encode_package_name("@scope/name") == "@scope%2Fname"
        assert encode_package_name("zod") == "zod"


class TestErrors:
    """Status and network failure handling."""

    def test_not_found(self, resolver, session):
        session.get.return_value = make_response(status_code=404)

        with pytest.raises(NotFoundError, match="Package not found: @t/missing"):
            resolver.get_versions("jsr", "@t/missing")

    def test_other_status_is_fetch_error(self, resolver, session):
        session.get.return_value = make_response(status_code=503)

        with pytest.raises(RegistryFetchError) as exc_info:
            resolver.get_versions("npm", "zod")
        assert exc_info.value.status_code == 503

    def test_unexpected_body_is_fetch_error(self, resolver, session):
        session.get.return_value = make_response(payload={"name": "zod"})

        with pytest.raises(RegistryFetchError):
            resolver.get_versions("npm", "zod")

    def test_network_errors_propagate(self, resolver, session):
        session.get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(requests.ConnectionError):
            resolver.get_versions("jsr", "@t/pkg")

    def test_timeout_is_forwarded(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        resolver.get_versions("jsr", "@t/pkg", ResolveOptions(timeout=2.5))

        assert session.get.call_args[1]["timeout"] == 2.5

    def test_unsupported_registry(self, resolver):
        with pytest.raises(ValueError, match="Unsupported registry"):
            resolver.get_versions("pypi", "requests")

    @patch("depshift.common.http_client.requests.get")
    def test_default_transport_is_requests(self, mock_get):
        mock_get.return_value = make_response(payload=JSR_META)

        assert VersionResolver().get_latest("jsr", "@t/pkg") == "1.0.0"
        mock_get.assert_called_once()


class TestCaching:
    """Listings are cached per (registry, package)."""

    def test_second_lookup_uses_cache(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        resolver.get_versions("jsr", "@t/pkg")
        resolver.get_latest("jsr", "@t/pkg")
        resolver.get_versions("jsr", "@t/pkg", ResolveOptions(include_yanked=True))

        assert session.get.call_count == 1

    def test_registries_cached_separately(self, resolver, session):
        session.get.side_effect = [make_response(payload=JSR_META), make_response(payload=NPM_PACKUMENT)]

        resolver.get_versions("jsr", "pkg")
        resolver.get_versions("npm", "pkg")

        assert session.get.call_count == 2

    def test_clear_cache(self, resolver, session):
        session.get.return_value = make_response(payload=JSR_META)

        resolver.get_versions("jsr", "@t/pkg")
        resolver.clear_cache()
        resolver.get_versions("jsr", "@t/pkg")

        assert session.get.call_count == 2

    def test_injected_ttl_cache_expires(self, session):
        now = [1000.0]
        cache = TTLCache(default_ttl=60, clock=lambda: now[0])
        resolver = VersionResolver(cache=cache, session=session)
        session.get.return_value = make_response(payload=JSR_META)

        resolver.get_versions("jsr", "@t/pkg")
        now[0] += 30
        resolver.get_versions("jsr", "@t/pkg")
        assert session.get.call_count == 1

        now[0] += 31
        resolver.get_versions("jsr", "@t/pkg")
        assert session.get.call_count == 2

    def test_failures_are_not_cached(self, resolver, session):
        session.get.side_effect = [make_response(status_code=500), make_response(payload=JSR_META)]

        with pytest.raises(RegistryFetchError):
            resolver.get_versions("jsr", "@t/pkg")
        assert resolver.get_latest("jsr", "@t/pkg") == "1.0.0"
