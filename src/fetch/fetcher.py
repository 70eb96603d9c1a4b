"""Module retrieval through the cache, honoring the run's fetch mode."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Set

from errors import NotCached
from common.http_client import HttpClient
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from registry import Registry, default_registries
from resolution.models import RegistryKind, RegistrySpecifier, Specifier, UrlSpecifier
from .cache import DiskCache
from .models import FetchMode, LoadResult
from .vendor import VendorStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleSource:
    """Fetched module: identity, serving URL and bytes."""

    specifier: str
    url: str
    content: bytes
    cached: bool


class Fetcher:
    """Cache-aware loader for remote modules and registry metadata.

    At most one network retrieval per key is in flight; concurrent callers
    await the same task. In reload modes a key is refreshed once per run and
    served from the fresh cache entry afterwards.
    """

    def __init__(
        self,
        cache: DiskCache,
        http: HttpClient,
        mode: Optional[FetchMode] = None,
        vendor: Optional[VendorStore] = None,
        registries: Optional[Mapping[RegistryKind, Registry]] = None,
    ):
        self._cache = cache
        self._http = http
        self._mode = mode or FetchMode.normal()
        self._vendor = vendor
        self._registries: Dict[RegistryKind, Registry] = dict(
            registries if registries is not None else default_registries(self.load)
        )
        self._inflight: Dict[str, asyncio.Future] = {}
        self._refreshed: Set[str] = set()
        self.network_fetches = 0

    @property
    def mode(self) -> FetchMode:
        """Default mode for fetches that do not pass one."""
        return self._mode

    @property
    def vendor(self) -> Optional[VendorStore]:
        return self._vendor

    def registry(self, kind: RegistryKind) -> Registry:
        """Registry client for ``kind``."""
        return self._registries[kind]

    async def fetch(self, specifier: Specifier, mode: Optional[FetchMode] = None) -> ModuleSource:
        """Fetch a URL or a version-resolved registry specifier.

        Raises:
            NotCached: Cached-only mode and the module is not cached.
            FetchError: Retrieval failed.
            TypeError: For local or bare specifiers, which are never fetched.
        """
        mode = mode or self._mode
        if isinstance(specifier, UrlSpecifier):
            result = await self.load(specifier.url, specifier.url, context="remote", mode=mode)
        elif isinstance(specifier, RegistrySpecifier):
            if not specifier.is_resolved:
                raise ValueError(f"registry specifier '{specifier}' has no concrete version")
            key = str(specifier)
            hit = None if self._must_refresh(key, mode) else self._lookup(key)
            if hit is not None:
                result = LoadResult(key=key, url=hit.url, content=hit.content, cached=True)
            elif not mode.allows_network:
                raise NotCached(key)
            else:
                result = await self.registry(specifier.kind).fetch_content(
                    specifier.name, str(specifier.version_range.version), specifier.subpath, mode=mode
                )
        else:
            raise TypeError(f"cannot fetch {type(specifier).__name__} '{specifier}'")
        return ModuleSource(specifier=result.key, url=result.url, content=result.content, cached=result.cached)

    def _must_refresh(self, key: str, mode: FetchMode) -> bool:
        return mode.reloads(key) and key not in self._refreshed

    def _lookup(self, key: str):
        """Vendor directory first, then the global cache."""
        if self._vendor is not None:
            entry = self._vendor.get(key)
            if entry is not None:
                return entry
        entry = self._cache.get(key)
        if entry is not None and self._vendor is not None:
            self._vendor.put(key, entry.url, entry.content)
        return entry

    async def load(
        self,
        key: str,
        url: str,
        *,
        context: str,
        mode: Optional[FetchMode] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> LoadResult:
        """Return bytes for ``key``, downloading ``url`` when the mode requires it."""
        mode = mode or self._mode
        pending = self._inflight.get(key)
        if pending is None:
            if not self._must_refresh(key, mode):
                hit = self._lookup(key)
                if hit is not None:
                    if is_debug_enabled(logger):
                        logger.debug(
                            "Cache hit",
                            extra=extra_context(
                                event="cache_hit", component="fetcher", action="load", target=key
                            ),
                        )
                    return LoadResult(key=key, url=hit.url, content=hit.content, cached=True)
            if not mode.allows_network:
                raise NotCached(key)
            pending = asyncio.ensure_future(self._retrieve(key, url, context, headers))
            self._inflight[key] = pending
            pending.add_done_callback(lambda _task, _key=key: self._inflight.pop(_key, None))
        # Shield so one cancelled waiter does not cancel the download for the others.
        return await asyncio.shield(pending)

    async def _retrieve(
        self, key: str, url: str, context: str, headers: Optional[Dict[str, str]]
    ) -> LoadResult:
        logger.info("Download %s", safe_url(url))
        self.network_fetches += 1
        final_url, content = await self._http.get(url, context=context, headers=headers)
        self._cache.put(key, final_url, content)
        if self._vendor is not None:
            self._vendor.put(key, final_url, content)
        self._refreshed.add(key)
        return LoadResult(key=key, url=final_url, content=content, cached=False)

    async def close(self) -> None:
        """Cancel downloads still in flight, e.g. after a fatal error."""
        pending = list(self._inflight.values())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._inflight.clear()
