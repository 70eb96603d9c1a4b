"""npm registry client."""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from constants import Constants
from errors import FetchError, VersionNotFound
from fetch.models import FetchMode, LoadResult
from resolution.models import RegistryKind
from .base import Loader, Registry

logger = logging.getLogger(__name__)

_PACKUMENT_HEADERS = {
    "Accept": "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
}


class NpmRegistry(Registry):
    """Client for npm-compatible registries.

    Module content for an npm package is its published tarball; resolving
    files inside the package is left to the runtime.
    """

    kind = RegistryKind.NPM

    def __init__(self, loader: Loader, base_url: Optional[str] = None):
        super().__init__(loader, base_url or Constants.REGISTRY_URL_NPM)

    def _packument_url(self, name: str) -> str:
        # Scoped names keep the leading "@" but encode the slash.
        return f"{self.base_url}{urllib.parse.quote(name, safe='@')}"

    async def _packument(self, name: str, mode: Optional[FetchMode]) -> Dict[str, Any]:
        key = self.metadata_key(name)
        result = await self._load(
            key, self._packument_url(name), context="npm", mode=mode, headers=_PACKUMENT_HEADERS
        )
        return self._decode_json(key, result.content)

    async def list_versions(self, name: str, mode: Optional[FetchMode] = None) -> List[str]:
        versions = (await self._packument(name, mode)).get("versions") or {}
        if not isinstance(versions, dict):
            return []
        return list(versions.keys())

    async def fetch_content(
        self, name: str, version: str, subpath: str = "", mode: Optional[FetchMode] = None
    ) -> LoadResult:
        content_key = self.content_key(name, version)
        versions = (await self._packument(name, mode)).get("versions") or {}
        info = versions.get(version) if isinstance(versions, dict) else None
        if not isinstance(info, dict):
            raise VersionNotFound(f"npm:{name}", version, None)
        tarball = (info.get("dist") or {}).get("tarball")
        if not isinstance(tarball, str) or not tarball:
            raise FetchError(content_key, "packument has no tarball URL for this version")
        return await self._load(content_key, tarball, context="npm", mode=mode)
