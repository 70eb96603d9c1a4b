"""JSON with comments, as accepted in project configuration files."""

from __future__ import annotations

import json
import re
from typing import Any

_STRING = r'"(?:\\.|[^"\\])*"'
_COMMENT_RE = re.compile(_STRING + r"|//[^\n]*|/\*.*?\*/", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(_STRING + r"|,(?=\s*[}\]])")


def _keep_strings(match: "re.Match[str]") -> str:
    text = match.group(0)
    return text if text.startswith('"') else ""


def _strip_jsonc_comments(content: str) -> str:
    """Strip comments from JSONC (JSON with comments) content.

    Removes:
    - Single-line comments (// ...)
    - Multi-line comments (/* ... */)
    - Trailing commas before closing brackets/braces

    String literals are matched first so ``"https://..."`` survives.
    """
    without_comments = _COMMENT_RE.sub(_keep_strings, content)
    return _TRAILING_COMMA_RE.sub(_keep_strings, without_comments)


def loads(content: str) -> Any:
    """Parse JSONC text."""
    return json.loads(_strip_jsonc_comments(content))
