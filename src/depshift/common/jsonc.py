"""JSON-with-comments helpers for workspace manifests."""

from __future__ import annotations

import json
import re
from typing import Any

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_jsonc_comments(content: str) -> str:
    """Strip comments from JSONC (JSON with comments) content.

    Removes:
    - Single-line comments (// ...)
    - Multi-line comments (/* ... */)
    - Trailing commas before closing brackets/braces

    String literals are copied verbatim, so URLs such as ``https://jsr.io``
    inside values survive.

    Args:
        content: JSONC string content

    Returns:
        JSON string with comments removed
    """
    out = []
    i = 0
    n = len(content)
    in_string = False

    while i < n:
        ch = content[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(content[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif content.startswith("//", i):
            end = content.find("\n", i)
            i = n if end == -1 else end
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1

    return _remove_trailing_commas("".join(out))


def _remove_trailing_commas(content: str) -> str:
    """Drop commas directly before ``}`` or ``]`` outside of strings."""
    pieces = re.split(r'("(?:\\.|[^"\\])*")', content)
    for idx in range(0, len(pieces), 2):
        pieces[idx] = _TRAILING_COMMA.sub(r"\1", pieces[idx])
    return "".join(pieces)


def loads(content: str) -> Any:
    """Parse JSONC text; raises ``json.JSONDecodeError`` on malformed input."""
    return json.loads(strip_jsonc_comments(content))
