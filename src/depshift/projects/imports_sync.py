"""Switch import maps between local workspace paths and registry specifiers.

``local`` mode points every ``jsr:`` import of a workspace package at that
package's exported source files, and keeps the original ``imports`` block in
the manifest as line comments between the sync markers::

    "imports": {
      "@t/utils": "../utils/src/.exports.ts"
    },
    // @sync-imports BEGIN ORIGINAL IMPORTS
    //   "imports": {
    //     "@t/utils": "jsr:@t/utils@1.0.0"
    //   },
    // @sync-imports END ORIGINAL IMPORTS

``remote`` mode puts the preserved block back verbatim, so a local/remote
round trip leaves the manifest unchanged byte for byte. Running ``local``
again on a manifest that is already local rebuilds the map from the
preserved block.

Packages are classified as runtimes (deployable apps, recognized by
``Constants.RUNTIME_MARKER_FILES``) or libraries. A library target also maps
the ``jsr:`` specifiers used by its dependency files onto local paths; a
runtime target inherits those mappings from every library.
"""

from __future__ import annotations

import json
import logging
import posixpath
import re
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..common import jsonc
from ..common.logging_utils import extra_context
from ..constants import Constants, Registry
from ..deps.parser import DepsFileParser
from ..errors import DepshiftError
from ..fs.base import FileSystem, directory_patterns, normalize_path
from .models import LocalPackage, SyncResult
from .resolver import ProjectResolver

logger = logging.getLogger(__name__)

_QUOTED_JSR = re.compile(r"[\"'](jsr:[^\"']+)[\"']")
_UNCOMMENT = re.compile(r"^//\s?")
_INDENT = re.compile(r"^\s*")


class ImportsSyncMode(Enum):
    """Direction of an import map sync.

    Args:
        Enum (string): Mode name as accepted by :func:`sync_imports`.
    """

    LOCAL = "local"
    REMOTE = "remote"


def sync_imports(
    mode: Union[str, ImportsSyncMode],
    target: str,
    resolver: ProjectResolver,
) -> SyncResult:
    """Rewrite the import maps of ``target`` for local development or publishing.

    Args:
        mode: ``"local"`` or ``"remote"``.
        target: Project reference as accepted by ProjectResolver.resolve.
        resolver: Resolver bound to the workspace filesystem.

    Returns:
        SyncResult with the local packages found, the resolved target
        manifests, and which of them were rewritten or failed.

    Raises:
        DepshiftError: ``target`` resolves to no ``deno.jsonc`` manifest.
    """
    mode = ImportsSyncMode(mode)
    fs = resolver.fs

    packages = discover_local_packages(resolver)
    runtimes = [p.name for p in packages if p.kind == "runtime"]
    libraries = [p.name for p in packages if p.kind == "library"]
    logger.info(
        "Discovered %d local package(s) (runtimes: %d, libraries: %d)",
        len(packages), len(runtimes), len(libraries),
    )
    logger.debug("Runtimes: %s; libraries: %s", ", ".join(runtimes), ", ".join(libraries))

    targets: List[str] = []
    for project in resolver.resolve(target):
        if project.config_path.endswith(".jsonc"):
            targets.append(project.config_path)
        else:
            logger.warning("Skipping %s; only deno.jsonc manifests can keep the original imports", project.config_path)
    if not targets:
        raise DepshiftError(f"No usable deno.jsonc targets resolved for: {target}")

    result = SyncResult(local_packages=packages, target_configs=targets)
    for config_path in targets:
        try:
            text = _read_text(fs, config_path)
            if mode is ImportsSyncMode.LOCAL:
                updated = apply_local_mode(config_path, text, packages, fs)
            else:
                updated = apply_remote_mode(config_path, text)
            if updated is not None and updated != text:
                fs.write_file(config_path, updated)
                result.updated.append(config_path)
        except (OSError, ValueError) as exc:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            result.failed.append(config_path)
            logger.error(
                "Failed to sync imports in %s: %s", config_path, exc,
                extra=extra_context(
                    event="sync_imports", component="imports_sync",
                    action=mode.value, outcome="error", target=config_path,
                ),
            )
        else:
            logger.info(
                "%s %s (%s mode)",
                "Synced imports in" if config_path in result.updated else "No import changes for",
                config_path, mode.value,
                extra=extra_context(
                    event="sync_imports", component="imports_sync",
                    action=mode.value, outcome="success", target=config_path,
                ),
            )
    return result


def discover_local_packages(resolver: ProjectResolver) -> List[LocalPackage]:
    """Named workspace projects that declare ``exports``, classified by kind."""
    packages: List[LocalPackage] = []
    for project in resolver.resolve(include_nameless=False):
        config = _read_manifest(resolver.fs, project.config_path)
        exports = _export_map(config.get("exports")) if config is not None else None
        if exports is None:
            continue
        packages.append(
            LocalPackage(
                name=project.name,
                config_path=project.config_path,
                package_dir=project.dir,
                exports=exports,
                kind="runtime" if _is_runtime(resolver.fs, project.dir) else "library",
            )
        )
    return packages


def apply_local_mode(
    config_path: str,
    text: str,
    packages: Sequence[LocalPackage],
    fs: FileSystem,
) -> Optional[str]:
    """Return ``text`` with its imports pointed at local packages.

    None means the manifest has no imports block to rewrite.
    """
    config = jsonc.loads(text)
    imports = config.get("imports") if isinstance(config, dict) else None
    if not isinstance(imports, dict):
        logger.warning("No imports object in %s; skipping", config_path)
        return None

    newline = _newline(text)
    lines = text.split(newline)

    preserved: Optional[List[str]] = None
    markers = _find_markers(lines)
    if markers is not None:
        preserved = _extract_preserved(lines, markers)
        start, end = _marker_block(lines, markers)
        del lines[start:end + 1]
        imports = _imports_from_block(preserved)

    block = _find_imports_block(lines)
    if block is None:
        logger.warning("Unable to locate the imports block in %s; skipping", config_path)
        return None
    start, end = block

    original = preserved if preserved is not None else lines[start:end + 1]
    indent = _INDENT.match(lines[start]).group(0)
    trailing_comma = lines[end].rstrip().endswith(",")

    mapped = local_import_map(config_path, imports, packages, fs)
    lines[start:end + 1] = _render_imports(indent, mapped, trailing_comma) + _comment_block(indent, original)
    return newline.join(lines)


def apply_remote_mode(config_path: str, text: str) -> Optional[str]:
    """Return ``text`` with the preserved imports block restored.

    None means there is nothing to restore.
    """
    jsonc.loads(text)  # malformed manifests are reported, never rewritten

    newline = _newline(text)
    lines = text.split(newline)
    markers = _find_markers(lines)
    if markers is None:
        logger.warning("No preserved imports in %s; nothing to restore", config_path)
        return None

    preserved = _extract_preserved(lines, markers)
    start, end = _marker_block(lines, markers)
    del lines[start:end + 1]

    block = _find_imports_block(lines)
    if block is None:
        lines[start:start] = preserved
    else:
        lines[block[0]:block[1] + 1] = preserved
    return newline.join(lines)


def local_import_map(
    config_path: str,
    imports: Dict[str, object],
    packages: Sequence[LocalPackage],
    fs: FileSystem,
) -> Dict[str, str]:
    """Compute the local-mode import map for the manifest at ``config_path``."""
    by_name = {p.name: p for p in packages}
    current = next((p for p in packages if p.config_path == config_path), None)
    config_dir = posixpath.dirname(config_path) or "."
    original = {key: value for key, value in imports.items() if isinstance(value, str)}

    mapped: Dict[str, str] = {}
    for key, value in original.items():
        if key in by_name and value.startswith("jsr:"):
            continue
        mapped[key] = value

    # Every export of a package imported from jsr gets a local entry
    for pkg in packages:
        if not original.get(pkg.name, "").startswith("jsr:"):
            continue
        for export_key, export_path in pkg.exports.items():
            mapped[_export_import_key(pkg.name, export_key)] = _relative_import(
                config_dir, _join(pkg.package_dir, export_path)
            )

    if current is not None and current.kind == "library":
        mapped.update(_library_overrides(current, by_name, fs))
    elif current is not None and current.kind == "runtime":
        for specifier, path in _runtime_overrides(packages, fs).items():
            mapped[specifier] = _relative_import(config_dir, path)
    return mapped


def _library_overrides(
    lib: LocalPackage,
    by_name: Dict[str, LocalPackage],
    fs: FileSystem,
) -> Dict[str, str]:
    """Map jsr specifiers in the library's dependency files to local exports."""
    parser = DepsFileParser()
    prefix = _dir_prefix(lib.package_dir)
    overrides: Dict[str, str] = {}

    for entry in fs.walk(
        match=[re.compile(Constants.DEPS_FILE_PATTERN)],
        skip=directory_patterns(Constants.PROJECT_SKIP_DIRS),
    ):
        if not entry.is_file:
            continue
        path = normalize_path(entry.path)
        if prefix and not path.startswith(prefix):
            continue
        try:
            text = _read_text(fs, path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable dependency file %s: %s", path, exc)
            continue

        for match in _QUOTED_JSR.finditer(text):
            specifier = match.group(1)
            if specifier in overrides:
                continue
            local = _local_path_for(specifier, lib, by_name, parser)
            if local is None:
                logger.debug("%s has no local export; left as is", specifier)
                continue
            overrides[specifier] = local
    return overrides


def _runtime_overrides(packages: Sequence[LocalPackage], fs: FileSystem) -> Dict[str, str]:
    """Collect ``jsr:`` keyed imports from every library, as workspace paths."""
    overrides: Dict[str, str] = {}
    for lib in packages:
        if lib.kind != "library":
            continue
        config = _read_manifest(fs, lib.config_path)
        imports = config.get("imports") if config is not None else None
        if not isinstance(imports, dict):
            continue
        for key, value in imports.items():
            if key.startswith("jsr:") and isinstance(value, str):
                overrides.setdefault(key, _join(lib.package_dir, value))
    return overrides


def _local_path_for(
    specifier: str,
    from_pkg: LocalPackage,
    by_name: Dict[str, LocalPackage],
    parser: DepsFileParser,
) -> Optional[str]:
    parsed = parser.parse_specifier(specifier)
    if parsed is None or parsed.registry != Registry.JSR.value:
        return None
    pkg = by_name.get(parsed.full_name)
    if pkg is None:
        return None

    wanted = parsed.full_name + (parsed.subpath or "")
    for export_key, export_path in pkg.exports.items():
        if _export_import_key(pkg.name, export_key) == wanted:
            return _relative_import(from_pkg.package_dir, _join(pkg.package_dir, export_path))
    return None


def _find_imports_block(lines: Sequence[str]) -> Optional[Tuple[int, int]]:
    """Line range from the ``"imports"`` key to its closing brace."""
    key_line = next((i for i, line in enumerate(lines) if '"imports"' in line), None)
    if key_line is None:
        return None

    depth = 0
    opened = False
    for index in range(key_line, len(lines)):
        line = lines[index]
        if index == key_line:
            line = line[line.index('"imports"'):]
        for ch in line:
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
        if opened and depth <= 0:
            return key_line, index
    return None


def _find_markers(lines: Sequence[str]) -> Optional[Tuple[int, int]]:
    start = end = -1
    for index, line in enumerate(lines):
        if Constants.SYNC_IMPORTS_BEGIN in line:
            start = index
        if Constants.SYNC_IMPORTS_END in line:
            end = index
            break
    if start == -1 or end <= start:
        return None
    return start, end


def _marker_block(lines: Sequence[str], markers: Tuple[int, int]) -> Tuple[int, int]:
    """Marker range widened over a surrounding ``/** ... */`` wrapper, if any."""
    start, end = markers
    if start > 0 and lines[start - 1].strip() == "/**":
        start -= 1
    if end + 1 < len(lines) and lines[end + 1].strip().startswith("*/"):
        end += 1
    return start, end


def _extract_preserved(lines: Sequence[str], markers: Tuple[int, int]) -> List[str]:
    start, end = markers
    return [_UNCOMMENT.sub("", line, count=1) for line in lines[start + 1:end]]


def _comment_block(indent: str, block: Sequence[str]) -> List[str]:
    commented = [f"// {line}" if line.strip() else line for line in block]
    return [f"{indent}{Constants.SYNC_IMPORTS_BEGIN}", *commented, f"{indent}{Constants.SYNC_IMPORTS_END}"]


def _imports_from_block(block: Sequence[str]) -> Dict[str, object]:
    parsed = jsonc.loads("{" + "\n".join(block) + "}")
    imports = parsed.get("imports") if isinstance(parsed, dict) else None
    if not isinstance(imports, dict):
        raise ValueError("preserved imports block is not an object")
    return imports


def _render_imports(indent: str, imports: Dict[str, str], trailing_comma: bool) -> List[str]:
    body = json.dumps(imports, indent=2, ensure_ascii=False).split("\n")[1:-1]
    closing = f"{indent}}}{',' if trailing_comma else ''}"
    return [f'{indent}"imports": {{', *[f"{indent}{line}" for line in body], closing]


def _export_map(value: object) -> Optional[Dict[str, str]]:
    if isinstance(value, str):
        return {".": value}
    if isinstance(value, dict):
        return {key: path for key, path in value.items() if isinstance(path, str)}
    return None


def _export_import_key(name: str, export_key: str) -> str:
    if export_key == ".":
        return name
    if export_key.startswith("./"):
        return f"{name}/{export_key[2:]}"
    return f"{name}/{export_key}"


def _is_runtime(fs: FileSystem, package_dir: str) -> bool:
    return any(
        all(_has_file(fs, _join(package_dir, name)) for name in names)
        for names in Constants.RUNTIME_MARKER_FILES
    )


def _has_file(fs: FileSystem, path: str) -> bool:
    info = fs.get_file_info(path)
    if info is None:
        return False
    info.contents.close()
    return True


def _read_text(fs: FileSystem, path: str) -> str:
    info = fs.get_file_info(path)
    if info is None:
        raise FileNotFoundError(f"File not found: {path}")
    return info.read_text()


def _read_manifest(fs: FileSystem, path: str) -> Optional[dict]:
    try:
        config = jsonc.loads(_read_text(fs, path))
    except (OSError, ValueError) as exc:
        logger.debug("Could not read manifest %s: %s", path, exc)
        return None
    return config if isinstance(config, dict) else None


def _join(directory: str, path: str) -> str:
    return posixpath.normpath(posixpath.join(directory, path))


def _relative_import(from_dir: str, to_path: str) -> str:
    rel = posixpath.relpath(to_path, from_dir or ".")
    return rel if rel.startswith("../") else f"./{rel}"


def _dir_prefix(directory: str) -> str:
    directory = normalize_path(directory).rstrip("/")
    return "" if directory in ("", ".") else f"{directory}/"


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"
