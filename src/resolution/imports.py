"""Static import extraction from JavaScript/TypeScript source.

This is a lexical scan, not a parser: comments are removed first (string
literals are kept intact), then static ``import``/``export ... from`` forms and
dynamic ``import()`` calls with a literal argument are collected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

_COMMENT_OR_STRING_RE = re.compile(
    r'"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'"
    r"|`(?:\\.|[^`\\])*`"
    r"|//[^\n]*"
    r"|/\*.*?\*/",
    re.DOTALL,
)

_STATIC_RE = re.compile(
    r"""(?<![\w$.])(?:import|export)\s*(?:type\s+)?(?:[\w$*{}\s,]+?\s*from\s*)?(["'])([^"'\n]+)\1"""
)
_DYNAMIC_RE = re.compile(r"""(?<![\w$.])import\s*\(\s*(["'])([^"'\n]+)\1\s*[,)]""")


@dataclass(frozen=True)
class ImportRef:
    """One import found in a module."""
    specifier: str
    dynamic: bool = False


def strip_comments(source: str) -> str:
    """Remove line and block comments, keeping string and template literals."""
    def _replace(match: "re.Match[str]") -> str:
        text = match.group(0)
        if text.startswith("//"):
            return ""
        if text.startswith("/*"):
            # Keep line structure so positions stay roughly comparable.
            return "\n" * text.count("\n")
        return text
    return _COMMENT_OR_STRING_RE.sub(_replace, source)


def extract_imports(source: str) -> List[ImportRef]:
    """Return imports in order of first appearance, without duplicates."""
    code = strip_comments(source)
    found = []
    for match in _STATIC_RE.finditer(code):
        found.append((match.start(), ImportRef(specifier=match.group(2).strip())))
    for match in _DYNAMIC_RE.finditer(code):
        found.append((match.start(), ImportRef(specifier=match.group(2).strip(), dynamic=True)))
    found.sort(key=lambda item: item[0])

    seen = set()
    refs: List[ImportRef] = []
    for _, ref in found:
        if ref.specifier in seen:
            continue
        seen.add(ref.specifier)
        refs.append(ref)
    return refs
