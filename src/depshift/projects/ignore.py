"""Workspace-root ignore file support (``.gitignore`` semantics via pathspec)."""

from __future__ import annotations

import logging
from typing import Callable

import pathspec

from ..constants import Constants
from ..fs.base import FileSystem, normalize_path

logger = logging.getLogger(__name__)

IgnoreMatcher = Callable[[str], bool]


def _ignore_nothing(_path: str) -> bool:
    return False


def compile_ignore(content: str) -> IgnoreMatcher:
    """Compile ignore-file text into a predicate over workspace-relative paths."""
    spec = pathspec.GitIgnoreSpec.from_lines(content.splitlines())
    return lambda path: spec.match_file(normalize_path(path))


def load_ignore(fs: FileSystem) -> IgnoreMatcher:
    """Load the ignore file at the workspace root.

    A missing or unreadable file ignores nothing.
    """
    try:
        info = fs.get_file_info(Constants.IGNORE_FILE)
        if info is None:
            return _ignore_nothing
        content = info.read_text()
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Could not read %s: %s", Constants.IGNORE_FILE, exc)
        return _ignore_nothing
    return compile_ignore(content)
