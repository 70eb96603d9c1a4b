"""Concurrent module graph traversal.

Each module goes through the same pipeline: parse the import string, map bare
names through the import map, pick a version for registry ranges (or reuse
the lock file pin), fetch, check the lock file, then scan the source for
further imports. Children of a module are visited concurrently; the first
failure cancels the remaining visits and propagates.
"""

from __future__ import annotations

import asyncio
import logging
import os
import urllib.parse
from typing import Iterable, Optional

from constants import Constants
from errors import UnresolvedSpecifier
from common.logging_utils import Timer, extra_context, is_debug_enabled
from fetch.fetcher import Fetcher
from lockfile import LockFile
from resolution import (
    BareSpecifier,
    ImportMap,
    LocalSpecifier,
    RegistrySpecifier,
    Specifier,
    extract_imports,
    parse_specifier,
)
from versioning import VersionResolver
from .models import ModuleGraph, ModuleKind, ModuleNode

logger = logging.getLogger(__name__)


def _is_scannable(location: str) -> bool:
    """True when the module at ``location`` may contain imports worth following."""
    path = urllib.parse.urlsplit(location).path if "://" in location else location
    name = path.rsplit("/", 1)[-1]
    ext = os.path.splitext(name)[1].lower()
    if not ext:
        # Extensionless remote URLs are usually served as JavaScript/TypeScript.
        return "://" in location
    return ext in Constants.SCANNABLE_EXTENSIONS


async def _run_all(coros: Iterable) -> None:
    """Await all coroutines; cancel the rest as soon as one fails."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    if not tasks:
        return
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        raise
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    for task in done:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()


class GraphBuilder:
    """Walk the import graph from a set of entry points."""

    def __init__(
        self,
        fetcher: Fetcher,
        import_map: Optional[ImportMap] = None,
        lockfile: Optional[LockFile] = None,
        resolver: Optional[VersionResolver] = None,
    ):
        self._fetcher = fetcher
        self._import_map = import_map or ImportMap()
        self._lockfile = lockfile
        self._resolver = resolver or VersionResolver(
            prefer_stable=Constants.PREFER_STABLE_VERSIONS
        )
        self._graph = ModuleGraph()
        self._seen: set = set()

    async def build(self, entries: Iterable[str], base: Optional[str] = None) -> ModuleGraph:
        """Resolve and fetch every module reachable from ``entries``.

        Args:
            entries: Import strings (paths, URLs, registry or mapped bare names).
            base: Directory relative entries resolve against; defaults to the
                working directory.

        Raises:
            ModgateError: The first resolution, fetch or integrity failure.
        """
        base_dir = os.path.join(os.path.abspath(base or os.getcwd()), "")
        specs = []
        for raw in entries:
            # Entry points given as plain file names behave like "./name".
            text = raw
            if (
                not os.path.isabs(raw)
                and not raw.startswith(("./", "../"))
                and os.path.exists(os.path.join(base_dir, raw))
            ):
                text = "./" + raw
            spec = await self._resolve(text, base_dir, referrer=None)
            self._graph.roots.append(str(spec))
            specs.append(spec)

        with Timer() as timer:
            await _run_all(self._visit(spec) for spec in specs)
        logger.info(
            "Resolved %d modules (%d downloaded) in %.0f ms",
            len(self._graph), self._fetcher.network_fetches, timer.duration_ms(),
        )
        return self._graph

    async def _resolve(self, raw: str, base: str, referrer: Optional[str]) -> Specifier:
        """Turn an import string into a fetchable specifier."""
        spec = parse_specifier(raw, base, self._import_map, referrer)
        if isinstance(spec, BareSpecifier):
            spec = self._import_map.resolve(spec.name, referrer)
        if isinstance(spec, RegistrySpecifier):
            # Exact versions are checked against the published list too.
            spec = await self._resolve_version(spec)
        return spec

    async def _resolve_version(self, spec: RegistrySpecifier) -> RegistrySpecifier:
        requested = spec.requested
        version = self._lockfile.pinned(requested) if self._lockfile is not None else None
        if version is None:
            registry = self._fetcher.registry(spec.kind)
            candidates = await registry.list_versions(spec.name)
            version = self._resolver.resolve(spec.package_id, spec.version_range, candidates)
            if self._lockfile is not None:
                self._lockfile.pin(requested, version)
        else:
            logger.debug("Lock pin %s -> %s", requested, version)
        self._graph.resolutions[requested] = version
        return spec.with_version(version)

    async def _visit(self, spec: Specifier) -> None:
        key = str(spec)
        if key in self._seen:
            return
        self._seen.add(key)

        if isinstance(spec, LocalSpecifier):
            try:
                with open(spec.path, "rb") as fh:
                    content = fh.read()
            except FileNotFoundError as exc:
                raise UnresolvedSpecifier(key, "module not found") from exc
            except OSError as exc:
                raise UnresolvedSpecifier(key, f"cannot read module: {exc}") from exc
            node = ModuleNode(specifier=key, kind=ModuleKind.LOCAL, url=None, size=len(content))
            location = spec.path
        else:
            source = await self._fetcher.fetch(spec)
            integrity = self._lockfile.check(key, source.content) if self._lockfile is not None else None
            kind = ModuleKind.REGISTRY if isinstance(spec, RegistrySpecifier) else ModuleKind.REMOTE
            node = ModuleNode(
                specifier=key, kind=kind, url=source.url, size=len(source.content),
                cached=source.cached, integrity=integrity,
            )
            content = source.content
            location = source.url
        self._graph.modules[key] = node

        if is_debug_enabled(logger):
            logger.debug(
                "Visited module",
                extra=extra_context(
                    event="module_visited", component="graph", action="visit",
                    target=key, kind=node.kind.value, cached=node.cached,
                ),
            )
        if not _is_scannable(location):
            return

        children = []
        for ref in extract_imports(content.decode("utf-8", errors="replace")):
            child = await self._resolve(ref.specifier, location, referrer=location)
            node.dependencies.append(str(child))
            children.append(child)
        await _run_all(self._visit(child) for child in children)
