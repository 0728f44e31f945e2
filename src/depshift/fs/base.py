"""Filesystem capability shared by the local and in-memory backends.

Every engine read and write goes through an object satisfying
:class:`FileSystem`. Paths handed in and out are workspace-relative and
forward-slash separated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, List, Optional, Pattern, Protocol, Sequence


@dataclass(frozen=True)
class WalkEntry:
    """One entry produced by :meth:`FileSystem.walk`."""

    path: str
    is_file: bool


@dataclass
class FileInfo:
    """Handle to a readable file."""

    path: str
    contents: BinaryIO

    def read_text(self, encoding: str = "utf-8") -> str:
        """Read and close the content stream."""
        try:
            return self.contents.read().decode(encoding)
        finally:
            self.contents.close()


class FileSystem(Protocol):
    """Capabilities the engine needs from a workspace backend."""

    @property
    def root(self) -> str:
        """Absolute (or backend-specific) workspace root."""

    def walk(
        self,
        match: Optional[Sequence[Pattern[str]]] = None,
        skip: Optional[Sequence[Pattern[str]]] = None,
    ) -> Iterator[WalkEntry]:
        """Lazily yield entries below the root.

        ``skip`` patterns are tested against every relative path; a skipped
        directory is not descended into. ``match`` patterns filter what is
        yielded but never stop traversal.
        """

    def get_file_info(self, path: str) -> Optional[FileInfo]:
        """Return a readable handle, or None when ``path`` is not a file."""

    def write_file(self, path: str, content: str) -> None:
        """Create or replace the file at ``path`` with UTF-8 ``content``."""

    def resolve_path(self, path: str) -> str:
        """Map a relative path to the backend's absolute form."""


def normalize_path(path: str) -> str:
    """Normalize a path for consistent comparison.

    Converts backslashes to forward slashes and removes a leading ``./`` or ``/``.
    """
    normalized = path.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    if normalized.startswith("/"):
        normalized = normalized[1:]
    return normalized


def directory_patterns(dirs: Iterable[str]) -> List[Pattern[str]]:
    """Compile patterns matching each name as a whole path component.

    ``.git`` matches ``.git`` and ``a/.git/b`` but not ``deno.git.ts``.
    """
    return [re.compile(r"(^|[/\\])" + re.escape(d) + r"([/\\]|$)") for d in dirs]


def matches_any(path: str, patterns: Optional[Sequence[Pattern[str]]]) -> bool:
    """True when any compiled pattern finds a match in ``path``."""
    return bool(patterns) and any(p.search(path) for p in patterns)
