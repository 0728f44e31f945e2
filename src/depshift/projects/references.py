"""Find and upgrade references to a package across a workspace.

References are collected from the manifest of every named project plus any
dependency file, template, document or TypeScript source in the workspace.
Each match is attributed to the project whose directory contains the file;
matches outside every named project are dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Set, Union

from ..common.logging_utils import Timer, extra_context, is_debug_enabled
from ..constants import Constants, SourceType
from ..deps.specifier import build_specifier_pattern, rewrite_specifiers
from ..fs.base import directory_patterns, matches_any, normalize_path
from ..versioning.comparator import VersionComparator
from .ignore import load_ignore
from .models import Diagnostic, PackageReference, ProjectRef, UpgradeResult
from .resolver import ProjectResolver

logger = logging.getLogger(__name__)

SourceFilter = Union[str, SourceType, Iterable[Union[str, SourceType]]]

_MANIFEST_RE = re.compile(r"deno\.jsonc?$")
_DEPS_RE = re.compile(Constants.DEPS_FILE_PATTERN)
_TEMPLATE_RE = re.compile(r"\.hbs$")
_DOCS_RE = re.compile(r"\.mdx?$")


def get_source_type(path: str) -> SourceType:
    """Categorize a file by its name."""
    if _MANIFEST_RE.search(path):
        return SourceType.CONFIG
    if _DEPS_RE.search(path):
        return SourceType.DEPS
    if _TEMPLATE_RE.search(path):
        return SourceType.TEMPLATE
    if _DOCS_RE.search(path):
        return SourceType.DOCS
    return SourceType.OTHER


def _source_types(source_filter: SourceFilter) -> Optional[Set[SourceType]]:
    """None means every source type is accepted."""
    if isinstance(source_filter, SourceType):
        return {source_filter}
    if isinstance(source_filter, str):
        if source_filter == "all":
            return None
        return {SourceType(source_filter)}
    return {SourceType(s) if isinstance(s, str) else s for s in source_filter}


def _project_names(resolver: ProjectResolver, refs: Optional[Sequence[str]]) -> Optional[Set[str]]:
    if not refs:
        return None
    names: Set[str] = set()
    for ref in refs:
        for project in resolver.resolve(ref):
            if project.name:
                names.add(project.name)
    return names


def _dir_prefix(project: ProjectRef) -> str:
    directory = normalize_path(project.dir).rstrip("/")
    return "" if directory in ("", ".") else f"{directory}/"


def _owning_project(path: str, owners: Sequence[ProjectRef]) -> Optional[ProjectRef]:
    """Most specific project whose directory contains ``path``.

    ``owners`` must be ordered by directory length, longest first.
    """
    normalized = normalize_path(path)
    for project in owners:
        prefix = _dir_prefix(project)
        if not prefix or normalized.startswith(prefix) or normalized == prefix.rstrip("/"):
            return project
    return None


def _read(resolver: ProjectResolver, path: str) -> Optional[str]:
    info = resolver.fs.get_file_info(path)
    if info is None:
        return None
    return info.read_text()


def find_package_references(
    package_name: str,
    resolver: ProjectResolver,
    *,
    source_filter: SourceFilter = "all",
    project_filter: Optional[Sequence[str]] = None,
    exclude_project_filter: Optional[Sequence[str]] = None,
    diagnostics: Optional[List[Diagnostic]] = None,
) -> List[PackageReference]:
    """Find every ``jsr:``/``npm:`` specifier for ``package_name`` in the workspace.

    Args:
        package_name: Full package name, e.g. ``@fathym/common``.
        resolver: Resolver bound to the workspace filesystem.
        source_filter: ``"all"``, a source type, or several source types.
        project_filter: Project refs whose files are searched (default: all).
        exclude_project_filter: Project refs whose files are never searched.
        diagnostics: Optional list receiving files that could not be read.

    Returns:
        References ordered by file discovery, then line and column.
    """
    fs = resolver.fs
    sources = _source_types(source_filter)
    allowed = _project_names(resolver, project_filter)
    excluded = _project_names(resolver, exclude_project_filter) or set()
    is_ignored = load_ignore(fs)
    skip_dirs = directory_patterns(Constants.REFERENCE_SKIP_DIRS)
    pattern = build_specifier_pattern(package_name)

    projects = [p for p in resolver.resolve(diagnostics=diagnostics) if p.name]
    owners = sorted(projects, key=lambda p: len(_dir_prefix(p)), reverse=True)

    references: List[PackageReference] = []
    seen_files: Set[str] = set()

    def search_file(path: str, project_name: str) -> None:
        path = normalize_path(path)
        if path in seen_files:
            return
        seen_files.add(path)

        if matches_any(path, skip_dirs) or is_ignored(path):
            return
        if allowed is not None and project_name not in allowed:
            return
        if project_name in excluded:
            return
        source = get_source_type(path)
        if sources is not None and source not in sources:
            return

        try:
            content = _read(resolver, path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable file %s: %s", path, exc)
            if diagnostics is not None:
                diagnostics.append(Diagnostic(path=path, reason="unreadable", detail=str(exc)))
            return
        if not content:
            return

        for line_index, line in enumerate(content.split("\n")):
            for match in pattern.finditer(line):
                references.append(
                    PackageReference(
                        file=path,
                        line=line_index + 1,
                        current_version=match.group("version"),
                        source=source,
                        project_name=project_name,
                        registry=match.group("registry"),
                        column=match.start() + 1,
                    )
                )

    with Timer() as timer:
        # Manifests are always searched
        for project in projects:
            search_file(project.config_path, project.name)

        for entry in fs.walk(
            match=[re.compile(p) for p in Constants.REFERENCE_FILE_PATTERNS],
            skip=skip_dirs,
        ):
            if not entry.is_file:
                continue
            owner = _owning_project(entry.path, owners)
            if owner is not None:
                search_file(entry.path, owner.name)

    if is_debug_enabled(logger):
        logger.debug(
            "Reference scan complete",
            extra=extra_context(
                event="reference_scan", component="package_references",
                action="find", outcome="success", target=package_name,
                files=len(seen_files), references=len(references),
                duration_ms=timer.duration_ms(),
            ),
        )
    return references


def upgrade_package_references(
    package_name: str,
    resolver: ProjectResolver,
    *,
    version: str,
    dry_run: bool = False,
    source_filter: SourceFilter = "all",
    project_filter: Optional[Sequence[str]] = None,
    exclude_project_filter: Optional[Sequence[str]] = None,
    allow_downgrade: bool = False,
    comparator: Optional[VersionComparator] = None,
) -> List[UpgradeResult]:
    """Rewrite references to ``package_name`` so they point at ``version``.

    Only references older than ``version`` are rewritten unless
    ``allow_downgrade`` is set; references already at ``version`` are left
    alone and not reported, so repeating an upgrade returns no results.
    Each file is read and written once. A failing file yields
    ``success=False`` results for its references and the batch continues.
    With ``dry_run`` nothing is written.
    """
    comparator = comparator or VersionComparator()

    def accepts(current: str) -> bool:
        if current == version:
            return False
        return allow_downgrade or comparator.is_newer(current, version)

    refs = find_package_references(
        package_name,
        resolver,
        source_filter=source_filter,
        project_filter=project_filter,
        exclude_project_filter=exclude_project_filter,
    )

    refs_by_file: Dict[str, List[PackageReference]] = {}
    for ref in refs:
        if accepts(ref.current_version):
            refs_by_file.setdefault(ref.file, []).append(ref)

    results: List[UpgradeResult] = []
    for path, file_refs in refs_by_file.items():
        error: Optional[str] = None
        try:
            content = _read(resolver, path)
            if content is None:
                raise FileNotFoundError(f"File not found: {path}")
            updated, changed = rewrite_specifiers(content, package_name, version, should_rewrite=accepts)
            if not dry_run and updated != content:
                resolver.fs.write_file(path, updated)
        except (OSError, UnicodeDecodeError) as exc:
            error = str(exc)
            logger.warning(
                "Failed to upgrade %s in %s: %s", package_name, path, error,
                extra=extra_context(
                    event="upgrade_file", component="package_references",
                    action="write", outcome="error", target=path,
                ),
            )
        else:
            logger.info(
                "%s %d reference(s) to %s in %s",
                "Would update" if dry_run else "Updated", changed, package_name, path,
                extra=extra_context(
                    event="upgrade_file", component="package_references",
                    action="dry_run" if dry_run else "write", outcome="success", target=path,
                ),
            )

        for ref in file_refs:
            results.append(
                UpgradeResult(
                    file=ref.file,
                    line=ref.line,
                    old_version=ref.current_version,
                    new_version=version,
                    source=ref.source,
                    project_name=ref.project_name,
                    success=error is None,
                    error=error,
                )
            )

    return results
