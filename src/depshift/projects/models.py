"""Data models for workspace projects and package references."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..constants import SourceType


@dataclass(frozen=True)
class ProjectRef:
    """A project discovered in the workspace.

    ``dir`` and ``config_path`` are workspace-relative with forward slashes;
    a manifest at the workspace root has ``dir == "."``.
    """
    name: Optional[str]
    dir: str
    config_path: str
    has_dev: bool = False
    tasks: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Diagnostic:
    """An entry skipped during discovery or scanning, kept for debugging."""
    path: str
    reason: str  # "unreadable" | "invalid_manifest" | "not_an_object"
    detail: str = ""


@dataclass(frozen=True)
class PackageReference:
    """One occurrence of a package specifier in the workspace."""
    file: str
    line: int
    current_version: str
    source: SourceType
    project_name: str
    registry: str = "jsr"
    column: int = 0


@dataclass
class UpgradeResult:
    """Outcome of rewriting (or previewing) one reference."""
    file: str
    line: int
    old_version: str
    new_version: str
    source: SourceType
    project_name: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class LocalPackage:
    """A named workspace package that exposes an export map."""
    name: str
    config_path: str
    package_dir: str
    exports: Dict[str, str] = field(default_factory=dict)
    kind: str = "library"  # "runtime" | "library"


@dataclass
class SyncResult:
    """Outcome of an import map sync over one or more targets."""
    local_packages: List[LocalPackage]
    target_configs: List[str]
    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
