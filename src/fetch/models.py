"""Fetch modes and results shared by the fetcher and the registries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple


class FetchModeKind(Enum):
    """How the cache is consulted for a fetch."""
    NORMAL = "normal"
    RELOAD = "reload"
    RELOAD_SPECIFIC = "reload_specific"
    CACHED_ONLY = "cached_only"


def _key_matches(key: str, target: str) -> bool:
    """True when ``key`` is ``target`` or extends it at a ``@``, ``/`` or ``#`` boundary."""
    if key == target:
        return True
    if not key.startswith(target):
        return False
    if target.endswith(("/", "@")):
        return True
    return key[len(target)] in "@/#"


@dataclass(frozen=True)
class FetchMode:
    """Cache policy for a run or a single fetch."""

    kind: FetchModeKind = FetchModeKind.NORMAL
    targets: Tuple[str, ...] = ()

    @classmethod
    def normal(cls) -> "FetchMode":
        return cls(FetchModeKind.NORMAL)

    @classmethod
    def reload(cls, targets: Iterable[str] = ()) -> "FetchMode":
        """Reload everything, or only keys matching ``targets`` when given."""
        targets = tuple(t.strip() for t in targets if t and t.strip())
        if targets:
            return cls(FetchModeKind.RELOAD_SPECIFIC, targets)
        return cls(FetchModeKind.RELOAD)

    @classmethod
    def cached_only(cls) -> "FetchMode":
        return cls(FetchModeKind.CACHED_ONLY)

    @property
    def allows_network(self) -> bool:
        """False only for cached-only mode."""
        return self.kind != FetchModeKind.CACHED_ONLY

    def reloads(self, key: str) -> bool:
        """True when the cache must be bypassed for ``key``."""
        if self.kind == FetchModeKind.RELOAD:
            return True
        if self.kind == FetchModeKind.RELOAD_SPECIFIC:
            return any(_key_matches(key, target) for target in self.targets)
        return False

    def __str__(self) -> str:
        if self.kind == FetchModeKind.RELOAD_SPECIFIC:
            return f"reload({', '.join(self.targets)})"
        return self.kind.value


@dataclass(frozen=True)
class LoadResult:
    """Bytes for one cache key and where they came from."""

    key: str
    url: str
    content: bytes
    cached: bool
