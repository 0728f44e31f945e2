"""Project discovery and resolution for a multi-project workspace.

A project is a directory holding a manifest (``deno.json`` or
``deno.jsonc``). :meth:`ProjectResolver.resolve` accepts flexible input:

============================  ======================================
Input                         Resolution
============================  ======================================
None / empty                  every project in the workspace
path to a manifest            that single project
directory path                manifest directly beneath it, else every
                              project found below the directory
package name                  projects whose ``name`` matches exactly
``a,b,c``                     each element resolved independently,
                              deduplicated by manifest path
============================  ======================================
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Iterator, List, Optional, Pattern

from ..common import jsonc
from ..constants import Constants
from ..errors import MultipleProjectsError
from ..fs.base import FileSystem, directory_patterns, normalize_path
from .models import Diagnostic, ProjectRef

logger = logging.getLogger(__name__)


def _manifest_pattern() -> Pattern[str]:
    names = "|".join(re.escape(name) for name in Constants.MANIFEST_FILES)
    return re.compile(rf"(^|/)({names})$")


def split_ref(ref: str) -> List[str]:
    """Split a comma-separated project reference into its non-empty elements."""
    return [part.strip() for part in ref.split(",") if part.strip()]


class ProjectResolver:
    """Resolve project references against a :class:`~depshift.fs.base.FileSystem`.

    Walks skip ``node_modules``, ``.git``, ``.deno`` and ``cov`` directories.
    Manifests that cannot be read or parsed are treated as absent; pass a
    list as ``diagnostics`` to collect what was skipped.
    """

    def __init__(self, fs: FileSystem):
        self.fs = fs

    def resolve(
        self,
        ref: Optional[str] = None,
        *,
        include_nameless: bool = True,
        single_only: bool = False,
        use_first: bool = False,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> List[ProjectRef]:
        """Resolve ``ref`` into projects.

        Args:
            ref: Package name, manifest path, directory, or a comma-separated
                list of those. None discovers every project.
            include_nameless: Keep manifests that have no ``name``.
            single_only: Raise MultipleProjectsError on more than one match.
            use_first: Stop at the first match; wins over ``single_only``.
            diagnostics: Optional list receiving skipped manifests.

        Returns:
            Matching projects in first-seen order.
        """
        found = self.iter_resolve(ref, include_nameless=include_nameless, diagnostics=diagnostics)

        if use_first:
            first = next(found, None)
            found.close()
            return [first] if first is not None else []

        projects = list(found)
        if single_only and len(projects) > 1:
            raise MultipleProjectsError(ref or "", len(projects))
        return projects

    def iter_resolve(
        self,
        ref: Optional[str] = None,
        *,
        include_nameless: bool = True,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> Iterator[ProjectRef]:
        """Lazily yield the projects :meth:`resolve` would return."""
        tokens = split_ref(ref) if ref and ref.strip() else [""]
        seen = set()
        for token in tokens:
            for project in self._resolve_token(token, include_nameless, diagnostics):
                if project.config_path in seen:
                    continue
                seen.add(project.config_path)
                yield project

    def _resolve_token(
        self,
        token: str,
        include_nameless: bool,
        diagnostics: Optional[List[Diagnostic]],
    ) -> Iterator[ProjectRef]:
        normalized = normalize_path(token).rstrip("/")

        if normalized in ("", "."):
            yield from self._discover(None, include_nameless, diagnostics)
            return

        # Direct manifest path
        if posixpath.basename(normalized) in Constants.MANIFEST_FILES:
            project = self._load_project(normalized, diagnostics)
            if project is not None:
                if project.name or include_nameless:
                    yield project
                return

        # Directory holding a manifest
        for manifest in Constants.MANIFEST_FILES:
            project = self._load_project(f"{normalized}/{manifest}", diagnostics)
            if project is not None:
                if project.name or include_nameless:
                    yield project
                return

        # Directory tree with nested projects
        if self._is_directory(normalized):
            yield from self._discover(normalized, include_nameless, diagnostics)
            return

        # Package name
        for project in self._discover(None, True, diagnostics):
            if project.name == token:
                yield project

    def _discover(
        self,
        under: Optional[str],
        include_nameless: bool,
        diagnostics: Optional[List[Diagnostic]],
    ) -> Iterator[ProjectRef]:
        prefix = f"{under}/" if under else ""
        for entry in self.fs.walk(
            match=[_manifest_pattern()],
            skip=directory_patterns(Constants.PROJECT_SKIP_DIRS),
        ):
            if not entry.is_file:
                continue
            path = normalize_path(entry.path)
            if prefix and not path.startswith(prefix):
                continue

            project = self._load_project(path, diagnostics)
            if project is None:
                continue
            if not project.name and not include_nameless:
                continue
            yield project

    def _is_directory(self, path: str) -> bool:
        prefix = f"{path}/"
        for entry in self.fs.walk(skip=directory_patterns(Constants.PROJECT_SKIP_DIRS)):
            if normalize_path(entry.path).startswith(prefix):
                return True
        return False

    def _load_project(
        self,
        config_path: str,
        diagnostics: Optional[List[Diagnostic]],
    ) -> Optional[ProjectRef]:
        """Load a manifest; None when it is missing, unreadable or malformed."""
        normalized = normalize_path(config_path)

        try:
            info = self.fs.get_file_info(normalized)
            if info is None:
                return None
            text = info.read_text()
            config = jsonc.loads(text)
        except (OSError, ValueError) as exc:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            reason = "unreadable" if isinstance(exc, (OSError, UnicodeDecodeError)) else "invalid_manifest"
            self._skip(normalized, reason, str(exc), diagnostics)
            return None

        if not isinstance(config, dict):
            self._skip(normalized, "not_an_object", type(config).__name__, diagnostics)
            return None

        name = config.get("name") if isinstance(config.get("name"), str) else None
        raw_tasks = config.get("tasks") if isinstance(config.get("tasks"), dict) else {}
        tasks = {key: value for key, value in raw_tasks.items() if isinstance(value, str)}

        return ProjectRef(
            name=name,
            dir=posixpath.dirname(normalized) or ".",
            config_path=normalized,
            has_dev="dev" in raw_tasks,
            tasks=tasks,
        )

    @staticmethod
    def _skip(
        path: str,
        reason: str,
        detail: str,
        diagnostics: Optional[List[Diagnostic]],
    ) -> None:
        logger.debug("Skipping manifest %s (%s): %s", path, reason, detail)
        if diagnostics is not None:
            diagnostics.append(Diagnostic(path=path, reason=reason, detail=detail))
