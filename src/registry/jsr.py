"""JSR registry client."""

from __future__ import annotations

import logging
from typing import List, Optional

from constants import Constants
from errors import UnresolvedSpecifier
from fetch.models import FetchMode, LoadResult
from resolution.models import RegistryKind
from .base import Loader, Registry

logger = logging.getLogger(__name__)


class JsrRegistry(Registry):
    """Client for jsr.io style registries.

    ``<base>/<name>/meta.json`` lists versions; ``<base>/<name>/<version>_meta.json``
    carries the export map used to locate module files under
    ``<base>/<name>/<version>/``.
    """

    kind = RegistryKind.JSR

    def __init__(self, loader: Loader, base_url: Optional[str] = None):
        super().__init__(loader, base_url or Constants.REGISTRY_URL_JSR)

    async def list_versions(self, name: str, mode: Optional[FetchMode] = None) -> List[str]:
        key = self.metadata_key(name)
        result = await self._load(key, f"{self.base_url}{name}/meta.json", context="jsr", mode=mode)
        data = self._decode_json(key, result.content)
        versions = data.get("versions") or {}
        if not isinstance(versions, dict):
            return []
        # Yanked versions stay resolvable through the lock file but are not candidates.
        return [
            version for version, info in versions.items()
            if not (isinstance(info, dict) and info.get("yanked"))
        ]

    async def fetch_content(
        self, name: str, version: str, subpath: str = "", mode: Optional[FetchMode] = None
    ) -> LoadResult:
        content_key = self.content_key(name, version, subpath)
        meta_key = f"{self.kind.value}:{name}@{version}#meta"
        meta_result = await self._load(
            meta_key, f"{self.base_url}{name}/{version}_meta.json", context="jsr", mode=mode
        )
        meta = self._decode_json(meta_key, meta_result.content)
        exports = meta.get("exports") or {}
        export_name = f"./{subpath}" if subpath else "."
        target = exports.get(export_name) if isinstance(exports, dict) else None
        if not isinstance(target, str):
            raise UnresolvedSpecifier(
                content_key, f"package {name}@{version} does not export '{export_name}'"
            )
        path = target[2:] if target.startswith("./") else target.lstrip("/")
        url = f"{self.base_url}{name}/{version}/{path}"
        logger.debug("JSR export %s of %s@%s -> %s", export_name, name, version, url)
        return await self._load(content_key, url, context="jsr", mode=mode)
