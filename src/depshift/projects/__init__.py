"""Workspace projects and cross-project package references."""

from .imports_sync import ImportsSyncMode, discover_local_packages, sync_imports
from .models import Diagnostic, LocalPackage, PackageReference, ProjectRef, SyncResult, UpgradeResult
from .references import find_package_references, get_source_type, upgrade_package_references
from .resolver import ProjectResolver

__all__ = [
    "Diagnostic",
    "ImportsSyncMode",
    "LocalPackage",
    "PackageReference",
    "ProjectRef",
    "ProjectResolver",
    "SyncResult",
    "UpgradeResult",
    "discover_local_packages",
    "find_package_references",
    "get_source_type",
    "sync_imports",
    "upgrade_package_references",
]
