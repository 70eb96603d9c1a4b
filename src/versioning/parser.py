"""Parsing of the version range subset used in registry specifiers."""

import re

import semantic_version

from .models import RangeKind, VersionRange

_PARTIAL_RE = re.compile(r"^(\d+)(?:\.(\d+))?$")


def _full_version(text: str) -> str:
    """Validate a complete semver version and return its canonical form."""
    try:
        return str(semantic_version.Version(text))
    except ValueError as exc:
        raise ValueError(f"invalid version '{text}'") from exc


def parse_range(raw: str) -> VersionRange:
    """Parse a version range expression.

    Accepted forms:
        ``""``, ``latest``, ``*``  -> LATEST
        ``1.2.3``                  -> EXACT
        ``^1.2.3``, ``1``, ``^1``  -> CARET (partial versions fill with zeros)
        ``~1.2.3``, ``1.2``, ``~1.2`` -> TILDE
        ``~1``                     -> CARET (``~1`` spans the whole major)

    Raises:
        ValueError: For any other syntax (comparators, unions, hyphen ranges).
    """
    text = (raw or "").strip()
    if text in ("", "*", "x") or text.lower() == "latest":
        return VersionRange(kind=RangeKind.LATEST, version=None, raw=text)

    prefix = ""
    body = text
    if text[0] in "^~":
        prefix, body = text[0], text[1:].strip()
    if body.startswith(("v", "=")):
        body = body[1:]

    partial = _PARTIAL_RE.match(body)
    if partial:
        major, minor = partial.group(1), partial.group(2)
        if minor is None:
            return VersionRange(kind=RangeKind.CARET, version=f"{int(major)}.0.0", raw=text)
        version = f"{int(major)}.{int(minor)}.0"
        if prefix == "^":
            return VersionRange(kind=RangeKind.CARET, version=version, raw=text)
        return VersionRange(kind=RangeKind.TILDE, version=version, raw=text)

    if any(ch in body for ch in "<>|, *") or body.endswith((".x", ".*")):
        raise ValueError(f"unsupported version range '{text}'")

    version = _full_version(body)
    if prefix == "^":
        return VersionRange(kind=RangeKind.CARET, version=version, raw=text)
    if prefix == "~":
        return VersionRange(kind=RangeKind.TILDE, version=version, raw=text)
    return VersionRange(kind=RangeKind.EXACT, version=version, raw=text)
