"""Registry-driven dependency upgrades for a single project.

The planner looks at a project's import map and its ``*.deps.ts`` files,
asks the version source for the latest version of every referenced package
(optionally on a release channel) and proposes an upgrade wherever that
version is newer than the one in use. Applying a plan rewrites only the
specifiers still at the recorded current version.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple, Union

import requests

from ..common import jsonc
from ..common.logging_utils import extra_context, is_debug_enabled
from ..constants import Constants, SourceType
from ..errors import DepshiftError, ParseError
from ..fs.base import directory_patterns, normalize_path
from ..versioning.comparator import VersionComparator
from ..versioning.models import ResolveOptions
from .models import ParsedSpecifier, PendingUpgrade
from .parser import DepsFileParser
from .specifier import rewrite_specifiers

if TYPE_CHECKING:
    from ..projects.models import ProjectRef, UpgradeResult
    from ..projects.resolver import ProjectResolver
    from ..versioning.resolver import VersionResolver

logger = logging.getLogger(__name__)

SOURCE_IMPORT_MAP = "import-map"
SOURCE_DEPS_FILE = "deps-file"


class UpgradeMode(Enum):
    """Which dependencies a plan considers.

    Args:
        Enum (string): Mode name.
    """

    ALL = "all"
    JSR = "jsr"
    NPM = "npm"
    LOCAL_ONLY = "local-only"  # only packages published by projects in this workspace


class DependencyUpgradePlanner:
    """Compute and apply registry upgrades for one project at a time."""

    def __init__(
        self,
        resolver: "ProjectResolver",
        version_resolver: "VersionResolver",
        parser: Optional[DepsFileParser] = None,
        comparator: Optional[VersionComparator] = None,
    ):
        self.resolver = resolver
        self.version_resolver = version_resolver
        self.parser = parser or DepsFileParser()
        self.comparator = comparator or VersionComparator()

    @property
    def fs(self):
        return self.resolver.fs

    def plan(
        self,
        project: "ProjectRef",
        *,
        mode: Union[UpgradeMode, str] = UpgradeMode.ALL,
        channel: Optional[str] = None,
        package_filter: Optional[str] = None,
        options: Optional[ResolveOptions] = None,
    ) -> List[PendingUpgrade]:
        """Collect upgrades for ``project``'s import map and dependency files.

        Args:
            project: Project to inspect.
            mode: Registry or locality restriction.
            channel: Release channel to target; None targets production.
            package_filter: Full-name pattern, ``*`` wildcards allowed.
            options: Forwarded to registry lookups.

        Raises:
            ParseError: the project manifest is not valid JSON(C).
        """
        mode = UpgradeMode(mode)
        local_names: Optional[Set[str]] = None
        if mode is UpgradeMode.LOCAL_ONLY:
            local_names = {p.name for p in self.resolver.resolve() if p.name}

        lookups: Dict[Tuple[str, str], Optional[str]] = {}
        project_name = project.name or project.dir

        def consider(spec: ParsedSpecifier, source: str, path: str, line: int) -> Optional[PendingUpgrade]:
            if not self._accepts(spec, mode, package_filter, local_names):
                return None
            latest = self._latest(spec, channel, options, lookups)
            if latest is None or not self.comparator.is_newer(spec.version, latest):
                return None
            return PendingUpgrade(
                package_name=spec.full_name,
                registry=spec.registry,
                current_version=spec.version,
                new_version=latest,
                source=source,
                file=path,
                line=line,
                project_name=project_name,
            )

        pending: List[PendingUpgrade] = []

        text = self._read(project.config_path)
        if text is not None:
            lines = {(ref.full_name, ref.version): ref.line for ref in reversed(self.parser.parse(text))}
            for spec in self._import_map_specifiers(project.config_path, text):
                upgrade = consider(
                    spec, SOURCE_IMPORT_MAP, project.config_path,
                    lines.get((spec.full_name, spec.version), 0),
                )
                if upgrade:
                    pending.append(upgrade)

        for path in self._deps_files(project):
            text = self._read(path)
            if not text:
                continue
            refs = self.parser.parse(text)
            for ref in self.parser.get_unique_packages(refs).values():
                upgrade = consider(ref, SOURCE_DEPS_FILE, path, ref.line)
                if upgrade:
                    pending.append(upgrade)

        logger.info(
            "%s: %d upgrade(s) available", project_name, len(pending),
            extra=extra_context(
                event="deps_plan", component="upgrade_planner", action="plan",
                outcome="success", target=project_name,
            ),
        )
        return pending

    def apply(self, pending: List[PendingUpgrade], *, dry_run: bool = False) -> List["UpgradeResult"]:
        """Apply a plan, one read-modify-write per file.

        A file that cannot be read or written fails only its own upgrades.
        """
        from ..projects.models import UpgradeResult

        by_file: Dict[str, List[PendingUpgrade]] = {}
        for upgrade in pending:
            by_file.setdefault(upgrade.file, []).append(upgrade)

        results: List[UpgradeResult] = []
        for path, upgrades in by_file.items():
            error: Optional[str] = None
            try:
                content = self._read(path, strict=True)
                updated = content
                for upgrade in upgrades:
                    updated, _ = rewrite_specifiers(
                        updated,
                        upgrade.package_name,
                        upgrade.new_version,
                        should_rewrite=lambda old, current=upgrade.current_version: old == current,
                        registries=[upgrade.registry],
                    )
                if not dry_run and updated != content:
                    self.fs.write_file(path, updated)
            except (OSError, UnicodeDecodeError) as exc:
                error = str(exc)
                logger.warning("Failed to apply upgrades to %s: %s", path, error)

            for upgrade in upgrades:
                results.append(
                    UpgradeResult(
                        file=path,
                        line=upgrade.line,
                        old_version=upgrade.current_version,
                        new_version=upgrade.new_version,
                        source=SourceType.CONFIG if upgrade.source == SOURCE_IMPORT_MAP else SourceType.DEPS,
                        project_name=upgrade.project_name,
                        success=error is None,
                        error=error,
                    )
                )
        return results

    def _accepts(
        self,
        spec: ParsedSpecifier,
        mode: UpgradeMode,
        package_filter: Optional[str],
        local_names: Optional[Set[str]],
    ) -> bool:
        if mode in (UpgradeMode.JSR, UpgradeMode.NPM) and spec.registry != mode.value:
            return False
        if local_names is not None and spec.full_name not in local_names:
            return False
        if package_filter and not self.parser.filter_by_pattern([spec], package_filter):
            return False
        return True

    def _latest(
        self,
        spec: ParsedSpecifier,
        channel: Optional[str],
        options: Optional[ResolveOptions],
        lookups: Dict[Tuple[str, str], Optional[str]],
    ) -> Optional[str]:
        key = (spec.registry, spec.full_name)
        if key in lookups:
            return lookups[key]

        try:
            latest = self.version_resolver.get_latest(spec.registry, spec.full_name, channel, options)
        except (DepshiftError, requests.RequestException) as exc:
            logger.warning(
                "Failed to fetch versions for %s: %s", spec.full_name, exc,
                extra=extra_context(
                    event="registry_lookup", component="upgrade_planner", action="get_latest",
                    outcome="error", target=f"{spec.registry}:{spec.full_name}",
                ),
            )
            latest = None
        else:
            if latest is None and is_debug_enabled(logger):
                logger.debug("%s: no version found%s", spec.full_name, f" ({channel})" if channel else "")

        lookups[key] = latest
        return latest

    def _import_map_specifiers(self, config_path: str, text: str) -> List[ParsedSpecifier]:
        try:
            config = jsonc.loads(text)
        except ValueError as exc:
            raise ParseError(str(exc), path=config_path) from exc

        imports = config.get("imports") if isinstance(config, dict) else None
        if not isinstance(imports, dict):
            return []

        specs = []
        for value in imports.values():
            if not isinstance(value, str):
                continue
            spec = self.parser.parse_specifier(value)
            if spec is not None:
                specs.append(spec)
        return specs

    def _deps_files(self, project: "ProjectRef") -> List[str]:
        directory = normalize_path(project.dir).rstrip("/")
        prefix = "" if directory in ("", ".") else f"{directory}/"
        paths = []
        for entry in self.fs.walk(
            match=[re.compile(Constants.DEPS_FILE_PATTERN)],
            skip=directory_patterns(Constants.REFERENCE_SKIP_DIRS),
        ):
            path = normalize_path(entry.path)
            if entry.is_file and path.startswith(prefix):
                paths.append(path)
        return paths

    def _read(self, path: str, strict: bool = False) -> Optional[str]:
        """File text, or None when missing or unreadable (raises when ``strict``)."""
        try:
            info = self.fs.get_file_info(path)
            if info is None:
                raise FileNotFoundError(f"File not found: {path}")
            return info.read_text()
        except (OSError, UnicodeDecodeError) as exc:
            if strict:
                raise
            logger.debug("Skipping unreadable file %s: %s", path, exc)
            return None
