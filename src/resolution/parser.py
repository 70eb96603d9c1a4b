"""Classify raw import strings into specifier variants."""

from __future__ import annotations

import os
import re
import urllib.parse
import urllib.request
from typing import TYPE_CHECKING, Optional

from constants import Constants
from errors import UnmappedSpecifier, UnresolvedSpecifier
from versioning.parser import parse_range
from .models import (
    BareSpecifier,
    LocalSpecifier,
    RegistryKind,
    RegistrySpecifier,
    Specifier,
    UrlSpecifier,
)

if TYPE_CHECKING:
    from .import_map import ImportMap

_JSR_RE = re.compile(r"^jsr:/?(?P<name>@[^/@\s]+/[^/@\s]+)(?:@(?P<range>[^/\s]*))?(?:/(?P<subpath>\S*))?$")
_JSR_UNSCOPED_RE = re.compile(r"^jsr:/?[^@/\s]")
_NPM_RE = re.compile(
    r"^npm:/?(?P<name>(?:@[^/@\s]+/)?[^/@\s]+)(?:@(?P<range>[^/\s]*))?(?:/(?P<subpath>\S*))?$"
)


def is_url(value: str) -> bool:
    """True for absolute http(s) URLs."""
    return value.lower().startswith(("http://", "https://"))


def parse_registry_specifier(raw: str) -> RegistrySpecifier:
    """Parse ``jsr:`` and ``npm:`` specifiers."""
    if raw.startswith("jsr:"):
        kind, match = RegistryKind.JSR, _JSR_RE.match(raw)
        if match is None and _JSR_UNSCOPED_RE.match(raw):
            raise UnresolvedSpecifier(raw, "jsr packages must be scoped, e.g. 'jsr:@scope/name'")
    else:
        kind, match = RegistryKind.NPM, _NPM_RE.match(raw)
    if match is None:
        raise UnresolvedSpecifier(raw, f"malformed {kind.value} specifier")
    try:
        version_range = parse_range(match.group("range") or "")
    except ValueError as exc:
        raise UnresolvedSpecifier(raw, str(exc)) from exc
    subpath = (match.group("subpath") or "").strip("/")
    return RegistrySpecifier(kind=kind, name=match.group("name"), version_range=version_range, subpath=subpath)


def _local(path: str, raw: str) -> LocalSpecifier:
    """Build a local specifier, refusing paths without a module extension."""
    name = os.path.basename(path)
    if not name.lower().endswith(Constants.MODULE_EXTENSIONS):
        raise UnresolvedSpecifier(
            raw,
            "module path has no recognized file extension "
            f"(expected one of {', '.join(Constants.MODULE_EXTENSIONS)})",
        )
    return LocalSpecifier(path=path)


def _base_dir(base: str) -> str:
    if base.endswith(("/", os.sep)):
        return base
    return os.path.dirname(base)


def parse_specifier(
    raw: str,
    base: str,
    import_map: Optional["ImportMap"] = None,
    referrer: Optional[str] = None,
) -> Specifier:
    """Parse an import string into a specifier variant.

    Args:
        raw: The import string as written.
        base: Location relative imports resolve against: a file path or URL
            of the importing module, or a directory path ending in a separator.
        import_map: Project import map; bare names are only recognized through it.
        referrer: Importing module identity used for scope matching.

    Raises:
        UnresolvedSpecifier: Empty, unsupported scheme, malformed registry
            specifier, or a local path without a module extension.
        UnmappedSpecifier: A bare name with no import map entry.
    """
    text = raw.strip()
    if not text:
        raise UnresolvedSpecifier(raw, "empty specifier")
    if text.startswith(("jsr:", "npm:")):
        return parse_registry_specifier(text)
    if import_map is not None and import_map.matches(text, referrer):
        return BareSpecifier(name=text)
    if is_url(text):
        return UrlSpecifier(url=text)

    scheme = urllib.parse.urlsplit(text).scheme.lower()
    if scheme == "file":
        path = urllib.request.url2pathname(urllib.parse.urlsplit(text).path)
        return _local(os.path.normpath(path), text)
    if scheme and len(scheme) > 1:
        raise UnresolvedSpecifier(text, f"unsupported scheme '{scheme}:'")

    if text.startswith(("./", "../", "/")):
        if is_url(base):
            return UrlSpecifier(url=urllib.parse.urljoin(base, text))
        joined = os.path.normpath(os.path.join(_base_dir(base), text))
        return _local(joined, text)

    raise UnmappedSpecifier(text, referrer)
