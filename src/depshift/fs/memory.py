"""In-memory filesystem backend, used by tests and dry tooling."""

from __future__ import annotations

import io
from typing import Dict, Iterator, Mapping, Optional, Pattern, Sequence, Set

from .base import FileInfo, WalkEntry, matches_any, normalize_path


class MemoryFileSystem:
    """Workspace held as a mapping of relative path to text content.

    Directories are implied by file paths.
    """

    def __init__(self, files: Optional[Mapping[str, str]] = None, root: str = "/workspace"):
        self._root = root.rstrip("/") or "/"
        self.files: Dict[str, str] = {
            normalize_path(path): content for path, content in (files or {}).items()
        }
        self.writes: Dict[str, int] = {}

    @property
    def root(self) -> str:
        return self._root

    def resolve_path(self, path: str) -> str:
        rel = normalize_path(path)
        return f"{self._root}/{rel}" if rel else self._root

    def _directories(self) -> Set[str]:
        dirs = set()
        for path in self.files:
            parts = path.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                dirs.add("/".join(parts[:i]))
        return dirs

    def walk(
        self,
        match: Optional[Sequence[Pattern[str]]] = None,
        skip: Optional[Sequence[Pattern[str]]] = None,
    ) -> Iterator[WalkEntry]:
        dirs = self._directories()
        entries = sorted(
            [(d, False) for d in dirs] + [(f, True) for f in self.files]
        )
        skipped_dirs = []
        for path, is_file in entries:
            if any(path.startswith(d + "/") for d in skipped_dirs):
                continue
            if matches_any(path, skip):
                if not is_file:
                    skipped_dirs.append(path)
                continue
            if match and not matches_any(path, match):
                continue
            yield WalkEntry(path=path, is_file=is_file)

    def get_file_info(self, path: str) -> Optional[FileInfo]:
        rel = normalize_path(path)
        if rel not in self.files:
            return None
        return FileInfo(path=rel, contents=io.BytesIO(self.files[rel].encode("utf-8")))

    def write_file(self, path: str, content: str) -> None:
        rel = normalize_path(path)
        self.files[rel] = content
        self.writes[rel] = self.writes.get(rel, 0) + 1
