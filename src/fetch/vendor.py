"""Project-local vendor directory for offline, reproducible builds.

Remote modules are materialized as plain files under ``vendor/<host>/<path>``
so they can be reviewed and committed. ``manifest.json`` maps each cache key
to its file and the URL it was served from.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import urllib.parse
from typing import Dict, Optional

from common.fs_utils import atomic_write_bytes, integrity_hash
from .cache import CacheEntry

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


class VendorStore:
    """Read-through/write-through copy of remote modules inside a project."""

    def __init__(self, root: str):
        self._root = os.path.abspath(root)
        self._manifest: Dict[str, Dict[str, str]] = self._load_manifest()
        self._dirty = False

    @property
    def root(self) -> str:
        """Absolute vendor directory."""
        return self._root

    def __len__(self) -> int:
        return len(self._manifest)

    def _load_manifest(self) -> Dict[str, Dict[str, str]]:
        path = os.path.join(self._root, MANIFEST_FILE)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable vendor manifest %s: %s", path, exc)
            return {}
        modules = data.get("modules") if isinstance(data, dict) else None
        if not isinstance(modules, dict):
            return {}
        return {
            key: value for key, value in modules.items()
            if isinstance(value, dict) and isinstance(value.get("path"), str)
        }

    def relative_path_for(self, url: str) -> str:
        """Map a URL to its path inside the vendor directory."""
        parts = urllib.parse.urlsplit(url)
        host = (parts.hostname or "unknown-host").lower()
        if parts.port:
            host = f"{host}_{parts.port}"
        segments = [seg for seg in parts.path.split("/") if seg not in ("", ".", "..")]
        if not segments or parts.path.endswith("/"):
            segments.append("index")
        if parts.query:
            digest = hashlib.sha256(parts.query.encode("utf-8")).hexdigest()[:12]
            segments[-1] = f"{segments[-1]}#{digest}"
        return "/".join([host] + segments)

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the vendored copy for ``key`` or None."""
        record = self._manifest.get(key)
        if record is None:
            return None
        path = os.path.join(self._root, *record["path"].split("/"))
        try:
            with open(path, "rb") as fh:
                content = fh.read()
        except OSError:
            logger.debug("Vendored file missing for %s: %s", key, path)
            return None
        return CacheEntry(
            key=key,
            url=record.get("url") or key,
            content=content,
            integrity=integrity_hash(content),
        )

    def put(self, key: str, url: str, content: bytes) -> None:
        """Materialize ``content`` for ``key``."""
        rel_path = self.relative_path_for(url)
        atomic_write_bytes(os.path.join(self._root, *rel_path.split("/")), content)
        if self._manifest.get(key) != {"url": url, "path": rel_path}:
            self._manifest[key] = {"url": url, "path": rel_path}
            self._dirty = True

    def save(self) -> bool:
        """Write the manifest when it changed. Returns True if written."""
        if not self._dirty:
            return False
        body = json.dumps({"modules": self._manifest}, indent=2, sort_keys=True) + "\n"
        atomic_write_bytes(os.path.join(self._root, MANIFEST_FILE), body.encode("utf-8"))
        self._dirty = False
        return True
