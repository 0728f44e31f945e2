"""Registry-qualified specifier patterns (``registry:name@version[/subpath]``).

Scanning, parsing and rewriting all build their regular expressions through
:func:`build_specifier_pattern` so that every caller agrees on where a version
ends and a subpath begins. A version stops at the first ``/``, quote,
backtick, comma, whitespace, semicolon, bracket or angle bracket, and never
ends in ``.``; whatever follows a ``/`` up to the same terminators is the
subpath, again without a trailing ``.``. Prose such as
``(see jsr:@t/pkg@1.0.0).`` keeps its punctuation outside the match.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Callable, Optional, Pattern, Sequence, Tuple

from ..constants import Registry

_TERMINATORS = "\"'`\\s,;()\\[\\]<>"
# A sentence-ending dot is punctuation, not part of the version or subpath
VERSION_PATTERN = rf"[^/{_TERMINATORS}]*[^/.{_TERMINATORS}]"
SUBPATH_PATTERN = rf"/(?:[^{_TERMINATORS}]*[^.{_TERMINATORS}])?"
# Scoped (@scope/name) or unscoped package names
PACKAGE_PATTERN = rf"@[^/@{_TERMINATORS}]+/[^/@{_TERMINATORS}]+|[^/@:{_TERMINATORS}]+"

DEFAULT_REGISTRIES: Tuple[str, ...] = tuple(r.value for r in Registry)


@lru_cache(maxsize=256)
def _compile(full_name: Optional[str], registries: Tuple[str, ...], anchored: bool) -> Pattern[str]:
    registry_alt = "|".join(re.escape(r) for r in registries)
    name = re.escape(full_name) if full_name else f"(?:{PACKAGE_PATTERN})"
    body = (
        rf"(?P<prefix>(?P<registry>{registry_alt}):(?P<name>{name})@)"
        rf"(?P<version>{VERSION_PATTERN})"
        rf"(?P<subpath>{SUBPATH_PATTERN})?"
    )
    if anchored:
        # \Z, unlike $, does not match before a trailing newline
        return re.compile(rf"^{body}\Z")
    return re.compile(rf"(?<![\w.-]){body}")


def build_specifier_pattern(
    full_name: Optional[str] = None,
    registries: Optional[Sequence[str]] = None,
    anchored: bool = False,
) -> Pattern[str]:
    """Return the compiled specifier pattern.

    Args:
        full_name: Restrict matches to this package (escaped literally);
            None matches any package name.
        registries: Registry prefixes to accept (default: jsr and npm).
        anchored: Require the whole string to be a single specifier.

    Groups: ``prefix`` (``registry:name@``), ``registry``, ``name``,
    ``version`` and the optional ``subpath`` (leading slash included).
    """
    regs = tuple(registries) if registries else DEFAULT_REGISTRIES
    return _compile(full_name, regs, anchored)


def split_package_name(full_name: str) -> Tuple[Optional[str], str]:
    """Split ``@scope/name`` into (``@scope``, ``name``); unscoped names have no scope."""
    if full_name.startswith("@") and "/" in full_name:
        scope, name = full_name.split("/", 1)
        return scope, name
    return None, full_name


def format_specifier(registry: str, full_name: str, version: str, subpath: Optional[str] = None) -> str:
    """Reconstruct a specifier string from its parts."""
    return f"{registry}:{full_name}@{version}{subpath or ''}"


def rewrite_specifiers(
    content: str,
    full_name: str,
    new_version: str,
    should_rewrite: Optional[Callable[[str], bool]] = None,
    registries: Optional[Sequence[str]] = None,
) -> Tuple[str, int]:
    """Replace the version token of every specifier for ``full_name``.

    The registry prefix and any trailing subpath are kept verbatim.

    Args:
        content: Text to rewrite.
        full_name: Package whose specifiers are rewritten.
        new_version: Replacement version.
        should_rewrite: Optional predicate on the old version; occurrences for
            which it returns False are left untouched.
        registries: Registry prefixes to consider.

    Returns:
        Tuple of (new content, number of occurrences whose text changed).
    """
    pattern = build_specifier_pattern(full_name, registries)
    changed = 0

    def _replace(match: "re.Match[str]") -> str:
        nonlocal changed
        old_version = match.group("version")
        if should_rewrite is not None and not should_rewrite(old_version):
            return match.group(0)
        if old_version != new_version:
            changed += 1
        return f"{match.group('prefix')}{new_version}{match.group('subpath') or ''}"

    return pattern.sub(_replace, content), changed
