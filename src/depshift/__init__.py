"""depshift: discover workspace projects and keep package versions in step."""

from .deps import DependencyUpgradePlanner, DepsFileParser, UpgradeMode
from .errors import DepshiftError, MultipleProjectsError, NotFoundError, ParseError, RegistryFetchError
from .fs import LocalFileSystem, MemoryFileSystem
from .projects import (
    ImportsSyncMode,
    ProjectResolver,
    find_package_references,
    sync_imports,
    upgrade_package_references,
)
from .versioning import TTLCache, VersionComparator, VersionResolver

__version__ = "0.4.0"

__all__ = [
    "DependencyUpgradePlanner",
    "DepsFileParser",
    "DepshiftError",
    "ImportsSyncMode",
    "LocalFileSystem",
    "MemoryFileSystem",
    "MultipleProjectsError",
    "NotFoundError",
    "ParseError",
    "ProjectResolver",
    "RegistryFetchError",
    "TTLCache",
    "UpgradeMode",
    "VersionComparator",
    "VersionResolver",
    "find_package_references",
    "sync_imports",
    "upgrade_package_references",
]
