"""Data models for parsed dependency specifiers."""

from dataclasses import dataclass
from typing import Optional

from .specifier import format_specifier


@dataclass(frozen=True)
class ParsedSpecifier:
    """A specifier parsed out of a standalone string (e.g. an import map value)."""
    registry: str  # "jsr" | "npm"
    scope: Optional[str]  # "@fathym", None for unscoped packages
    name: str  # package name without scope
    full_name: str  # "@fathym/common" or "zod"
    version: str
    subpath: Optional[str]  # "/merge", leading slash included
    full_specifier: str

    def to_specifier(self) -> str:
        """Rebuild the specifier text from the individual fields."""
        return format_specifier(self.registry, self.full_name, self.version, self.subpath)


@dataclass(frozen=True)
class DepsReference(ParsedSpecifier):
    """A specifier found while scanning file content."""
    line: int = 0  # 1-indexed
    column: int = 0  # 1-indexed start of the specifier


@dataclass(frozen=True)
class PendingUpgrade:
    """A dependency upgrade computed from registry data, not yet applied."""
    package_name: str
    registry: str
    current_version: str
    new_version: str
    source: str  # "import-map" | "deps-file"
    file: str
    line: int = 0  # first line holding the current specifier, 0 if unknown
    project_name: str = ""
