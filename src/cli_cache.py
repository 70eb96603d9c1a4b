"""CLI entry points for the ``cache`` and ``vendor`` commands.

Both commands build the same pipeline: project config, import map, lock
file, disk cache (plus the vendor directory when enabled), fetcher and graph
builder. The lock file and vendor manifest are only persisted after the whole
graph resolved successfully.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from constants import Constants
from common.http_client import HttpClient
from common.logging_utils import extra_context, is_debug_enabled
from common.proxy_config import ProxyConfig
from fetch import DiskCache, FetchMode, VendorStore
from fetch.fetcher import Fetcher
from graph import GraphBuilder, ModuleGraph
from lockfile import LockFile, LockMode
from project import ProjectConfig, discover_config, load_config

logger = logging.getLogger(__name__)


def load_project(args) -> ProjectConfig:
    """Load ``--config`` or the configuration discovered from the working directory."""
    path = getattr(args, "CONFIG", None) or discover_config(os.getcwd())
    if not path:
        logger.debug("No project configuration found")
        return ProjectConfig()
    return load_config(path)


def fetch_mode(args) -> FetchMode:
    """Fetch mode selected by ``--reload`` and ``--cached-only``."""
    if getattr(args, "CACHED_ONLY", False):
        return FetchMode.cached_only()
    reload = getattr(args, "RELOAD", None)
    if reload is None:
        return FetchMode.normal()
    targets = [target.strip() for target in reload.split(",") if target.strip()]
    return FetchMode.reload(targets)


def open_lockfile(args, project: ProjectConfig) -> Optional[LockFile]:
    """Open the run's lock file, or return None when locking is disabled.

    ``--lock`` always enables it; otherwise a configuration file with ``lock``
    not set to false enables it at the configured or default location.
    """
    if getattr(args, "NO_LOCK", False):
        return None
    lock_arg = getattr(args, "LOCK", None)
    if lock_arg:
        path = os.path.abspath(lock_arg)
    elif lock_arg is not None or (project.path and project.lock_enabled):
        path = project.lock_path
    else:
        return None

    if getattr(args, "LOCK_WRITE", False):
        mode = LockMode.WRITE
    elif getattr(args, "FROZEN", False) or project.lock_frozen:
        mode = LockMode.FROZEN
    else:
        mode = LockMode.ADDITIVE
    logger.debug("Using lock file %s in %s mode", path, mode.value)
    return LockFile.load(path, mode)


async def resolve_graph(args, vendor: bool = False) -> ModuleGraph:
    """Resolve, fetch and lock-check the graph of ``args.ENTRIES``.

    Raises:
        ModgateError: The first fatal error; nothing is persisted in that case.
    """
    project = load_project(args)
    import_map = project.import_map()
    lockfile = open_lockfile(args, project)
    mode = fetch_mode(args)
    vendor_store = VendorStore(project.vendor_dir) if (vendor or project.vendor) else None
    cache = DiskCache(Constants.CACHE_DIR)

    if is_debug_enabled(logger):
        logger.debug(
            "Resolution start",
            extra=extra_context(
                event="function_entry", component="cli", action="resolve_graph",
                mode=str(mode), lock=lockfile.path if lockfile else None,
                vendor=vendor_store.root if vendor_store else None,
            ),
        )

    async with HttpClient(proxy_config=ProxyConfig.from_env()) as http:
        fetcher = Fetcher(cache, http, mode=mode, vendor=vendor_store)
        builder = GraphBuilder(fetcher, import_map, lockfile)
        try:
            graph = await builder.build(args.ENTRIES, os.getcwd())
        finally:
            # Cancels downloads left behind by a failed traversal.
            await fetcher.close()

    if lockfile is not None:
        lockfile.save()
    if vendor_store is not None and vendor_store.save():
        logger.info("Vendored %d modules into %s", len(vendor_store), vendor_store.root)
    return graph


def run_cache(args) -> ModuleGraph:
    """``modgate cache``: populate the cache for the given entry points."""
    graph = asyncio.run(resolve_graph(args))
    stats = DiskCache(Constants.CACHE_DIR).stats()
    logger.info(
        "Cached %d remote modules (%d cache entries, %d bytes in %s)",
        len(graph.remote_modules()), stats["entries"], stats["blob_bytes"], stats["root"],
    )
    return graph


def run_vendor(args) -> ModuleGraph:
    """``modgate vendor``: same as cache, then materialize remote modules locally."""
    return asyncio.run(resolve_graph(args, vendor=True))
