"""Filesystem backend over a directory on the host disk."""

from __future__ import annotations

import logging
import os
from typing import Iterator, Optional, Pattern, Sequence

from .base import FileInfo, WalkEntry, matches_any, normalize_path

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Workspace rooted at a local directory."""

    def __init__(self, root: str):
        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def resolve_path(self, path: str) -> str:
        return os.path.join(self._root, *normalize_path(path).split("/"))

    def walk(
        self,
        match: Optional[Sequence[Pattern[str]]] = None,
        skip: Optional[Sequence[Pattern[str]]] = None,
    ) -> Iterator[WalkEntry]:
        for current, dirs, files in os.walk(self._root):
            rel_dir = os.path.relpath(current, self._root)
            rel_dir = "" if rel_dir == "." else rel_dir.replace(os.sep, "/")

            # Sort for a deterministic order and prune skipped dirs in place
            kept = []
            for name in sorted(dirs):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if matches_any(rel, skip):
                    continue
                kept.append(name)
                if not match or matches_any(rel, match):
                    yield WalkEntry(path=rel, is_file=False)
            dirs[:] = kept

            for name in sorted(files):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if matches_any(rel, skip):
                    continue
                if match and not matches_any(rel, match):
                    continue
                yield WalkEntry(path=rel, is_file=True)

    def get_file_info(self, path: str) -> Optional[FileInfo]:
        full = self.resolve_path(path)
        if not os.path.isfile(full):
            return None
        return FileInfo(path=normalize_path(path), contents=open(full, "rb"))

    def write_file(self, path: str, content: str) -> None:
        full = self.resolve_path(path)
        parent = os.path.dirname(full)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(full, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        logger.debug("Wrote %s", normalize_path(path))
