"""Exception types raised by the depshift engine."""

from __future__ import annotations

from typing import Optional


class DepshiftError(Exception):
    """Base class for all depshift errors."""


class NotFoundError(DepshiftError):
    """A package or version is absent from its registry."""

    def __init__(self, registry: str, package_name: str):
        self.registry = registry
        self.package_name = package_name
        super().__init__(f"Package not found: {package_name}")


class ParseError(DepshiftError):
    """A manifest or version string could not be parsed."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class RegistryFetchError(DepshiftError):
    """A registry answered with a non-success status or an unusable body."""

    def __init__(self, registry: str, package_name: str, status_code: Optional[int] = None, reason: str = ""):
        self.registry = registry
        self.package_name = package_name
        self.status_code = status_code
        detail = reason or (str(status_code) if status_code is not None else "unknown error")
        super().__init__(f"Failed to fetch {registry} package {package_name}: {detail}")


class MultipleProjectsError(DepshiftError):
    """A reference expected to resolve to one project matched several."""

    def __init__(self, ref: str, count: int):
        self.ref = ref
        self.count = count
        super().__init__(
            f"Reference '{ref}' matched {count} projects; expected exactly one."
        )
