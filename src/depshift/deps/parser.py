"""Parser for files containing direct jsr:/npm: specifiers.

Supported specifier formats:

- ``jsr:@scope/package@version`` and ``jsr:@scope/package@version/subpath``
- ``jsr:package@version`` (unscoped)
- ``npm:package@version`` and ``npm:@scope/package@version``
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional

from .models import DepsReference, ParsedSpecifier
from .specifier import build_specifier_pattern, rewrite_specifiers, split_package_name

logger = logging.getLogger(__name__)


def _fields_from_match(match: "re.Match[str]") -> dict:
    registry = match.group("registry")
    full_name = match.group("name")
    scope, name = split_package_name(full_name)
    subpath = match.group("subpath") or None
    return {
        "registry": registry,
        "scope": scope,
        "name": name,
        "full_name": full_name,
        "version": match.group("version"),
        "subpath": subpath,
        "full_specifier": match.group(0),
    }


class DepsFileParser:
    """Extract and update dependency references in text content."""

    def parse(self, content: str) -> List[DepsReference]:
        """Parse content and return every specifier with its position.

        Args:
            content: The file content to parse

        Returns:
            References in order of appearance, with 1-indexed line/column.
        """
        pattern = build_specifier_pattern()
        refs: List[DepsReference] = []
        for line_index, line in enumerate(content.split("\n")):
            for match in pattern.finditer(line):
                refs.append(
                    DepsReference(
                        **_fields_from_match(match),
                        line=line_index + 1,
                        column=match.start() + 1,
                    )
                )
        return refs

    def parse_specifier(self, specifier: str) -> Optional[ParsedSpecifier]:
        """Parse a single specifier string such as ``jsr:@fathym/common@0.2.307/merge``.

        Returns None when the whole string is not exactly one specifier.
        """
        match = build_specifier_pattern(anchored=True).match(specifier)
        if not match:
            return None
        return ParsedSpecifier(**_fields_from_match(match))

    def update(self, content: str, updates: Mapping[str, str]) -> str:
        """Rewrite versions for the named packages, keeping subpaths.

        Args:
            content: The original file content
            updates: Mapping of package full name to new version

        Returns:
            Updated content
        """
        result = content
        for package_name, new_version in updates.items():
            result, changed = rewrite_specifiers(result, package_name, new_version)
            if changed:
                logger.debug("Updated %d specifier(s) for %s -> %s", changed, package_name, new_version)
        return result

    def get_unique_packages(self, refs: Iterable[DepsReference]) -> Dict[str, DepsReference]:
        """Map each package full name to the first reference seen for it."""
        packages: Dict[str, DepsReference] = {}
        for ref in refs:
            packages.setdefault(ref.full_name, ref)
        return packages

    def filter_by_registry(self, refs: Iterable[ParsedSpecifier], registry: str) -> list:
        return [ref for ref in refs if ref.registry == registry]

    def filter_by_pattern(self, refs: Iterable[ParsedSpecifier], pattern: str) -> list:
        """Filter references by full name.

        ``*`` is a wildcard: ``@fathym/eac*`` matches ``@fathym/eac`` and
        ``@fathym/eac-identity``; ``@fathym/*`` matches the whole scope.
        Without a wildcard the name must match exactly.
        """
        if "*" not in pattern:
            return [ref for ref in refs if ref.full_name == pattern]

        regex = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")
        return [ref for ref in refs if regex.match(ref.full_name)]
