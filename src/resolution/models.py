"""Specifier variants produced by the parser.

All variants are frozen dataclasses; ``str()`` yields the canonical form used
as module identity, cache key and lock file key.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from versioning.models import VersionRange


class RegistryKind(Enum):
    """Registries addressable with a specifier prefix."""
    JSR = "jsr"
    NPM = "npm"


@dataclass(frozen=True)
class LocalSpecifier:
    """A module on the local file system, as an absolute path."""
    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class BareSpecifier:
    """A name that must be looked up in the import map."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RegistrySpecifier:
    """A ``jsr:`` or ``npm:`` package reference."""
    kind: RegistryKind
    name: str
    version_range: VersionRange
    subpath: str = ""

    def __str__(self) -> str:
        text = self.package_id
        if self.version_range.version is not None:
            text += f"@{self.version_range}"
        if self.subpath:
            text += f"/{self.subpath}"
        return text

    @property
    def package_id(self) -> str:
        """Registry-qualified package name, e.g. ``jsr:@std/path``."""
        return f"{self.kind.value}:{self.name}"

    @property
    def requested(self) -> str:
        """Package plus range as written, used as the lock file pin key."""
        if not self.version_range.raw:
            return self.package_id
        return f"{self.package_id}@{self.version_range.raw}"

    @property
    def is_resolved(self) -> bool:
        """True once the range has been narrowed to one concrete version."""
        return self.version_range.is_exact

    def with_version(self, version: str) -> "RegistrySpecifier":
        """Copy of this specifier pinned to ``version``."""
        return replace(self, version_range=VersionRange.exact(version))


@dataclass(frozen=True)
class UrlSpecifier:
    """An absolute http(s) URL."""
    url: str

    def __str__(self) -> str:
        return self.url


Specifier = Union[LocalSpecifier, BareSpecifier, RegistrySpecifier, UrlSpecifier]
