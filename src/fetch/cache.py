"""Content-addressable on-disk module cache.

Layout under the cache root::

    blobs/<aa>/<sha256>        raw content, named by its hash
    index/<sha256 of key>.json {"key", "url", "integrity", "size", "fetched_at"}

A blob is written before its index record and both are published by rename,
so an entry is visible only once complete. Entries are replaced, never edited.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import Constants
from common.fs_utils import atomic_write_bytes, integrity_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached module keyed by its fully resolved specifier."""

    key: str
    url: str
    content: bytes
    integrity: str
    fetched_at: float = field(default_factory=time.time)


class DiskCache:
    """Global cache shared by all projects of one user."""

    def __init__(self, root: Optional[str] = None):
        """Initialize the cache.

        Args:
            root: Cache directory; defaults to Constants.CACHE_DIR.
        """
        self._root = os.path.abspath(root or Constants.CACHE_DIR)

    @property
    def root(self) -> str:
        """Absolute cache directory."""
        return self._root

    def _index_path(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self._root, "index", f"{digest}.json")

    def _blob_path(self, integrity: str) -> str:
        return os.path.join(self._root, "blobs", integrity[:2], integrity)

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` or None when absent or damaged."""
        index_path = self._index_path(key)
        try:
            with open(index_path, "r", encoding="utf-8") as fh:
                record = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.debug("Ignoring unreadable cache index for %s: %s", key, exc)
            return None

        if not isinstance(record, dict) or record.get("key") != key:
            return None
        integrity = record.get("integrity")
        if not isinstance(integrity, str) or len(integrity) != 64:
            return None
        try:
            with open(self._blob_path(integrity), "rb") as fh:
                content = fh.read()
        except OSError:
            logger.debug("Cache blob missing for %s", key)
            return None
        if integrity_hash(content) != integrity:
            logger.warning("Discarding corrupt cache entry for %s", key)
            return None
        return CacheEntry(
            key=key,
            url=str(record.get("url") or key),
            content=content,
            integrity=integrity,
            fetched_at=float(record.get("fetched_at") or 0.0),
        )

    def contains(self, key: str) -> bool:
        """True when a valid entry exists for ``key``."""
        return self.get(key) is not None

    def put(self, key: str, url: str, content: bytes) -> CacheEntry:
        """Store content for ``key``, replacing any previous entry."""
        integrity = integrity_hash(content)
        blob_path = self._blob_path(integrity)
        if not os.path.exists(blob_path):
            atomic_write_bytes(blob_path, content)
        entry = CacheEntry(key=key, url=url, content=content, integrity=integrity)
        record = {
            "key": key,
            "url": url,
            "integrity": integrity,
            "size": len(content),
            "fetched_at": entry.fetched_at,
        }
        atomic_write_bytes(self._index_path(key), json.dumps(record, sort_keys=True).encode("utf-8"))
        return entry

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        entries = 0
        total_bytes = 0
        index_dir = os.path.join(self._root, "index")
        blob_dir = os.path.join(self._root, "blobs")
        if os.path.isdir(index_dir):
            entries = sum(1 for name in os.listdir(index_dir) if name.endswith(".json"))
        for dirpath, _, files in os.walk(blob_dir):
            for name in files:
                if not name.startswith(".tmp-"):
                    total_bytes += os.path.getsize(os.path.join(dirpath, name))
        return {"root": self._root, "entries": entries, "blob_bytes": total_bytes}
