"""Registry capability interface.

A registry answers two questions: which versions of a package are published,
and what the bytes of a module at a concrete version are. All I/O goes through
the fetcher's ``load`` callable so caching, cache modes and de-duplication
apply uniformly to metadata and content.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from errors import FetchError
from fetch.models import FetchMode, LoadResult
from resolution.models import RegistryKind, RegistrySpecifier
from versioning.models import VersionRange

logger = logging.getLogger(__name__)

# load(key, url, *, context, mode=None, headers=None) -> LoadResult
Loader = Callable[..., Awaitable[LoadResult]]


class Registry(ABC):
    """Base class for registry clients."""

    kind: RegistryKind

    def __init__(self, loader: Loader, base_url: str):
        self._load = loader
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"

    @property
    def base_url(self) -> str:
        """Registry root URL, always ending in ``/``."""
        return self._base_url

    def metadata_key(self, name: str) -> str:
        """Cache key for the package's version listing."""
        return f"{self.kind.value}:{name}"

    def content_key(self, name: str, version: str, subpath: str = "") -> str:
        """Cache and lock key for module content at a concrete version."""
        return str(
            RegistrySpecifier(
                kind=self.kind, name=name, version_range=VersionRange.exact(version), subpath=subpath
            )
        )

    def _decode_json(self, key: str, body: bytes) -> Dict[str, Any]:
        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise FetchError(key, f"registry returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise FetchError(key, "registry metadata is not a JSON object")
        return data

    @abstractmethod
    async def list_versions(self, name: str, mode: Optional[FetchMode] = None) -> List[str]:
        """Return the published version strings for ``name``."""

    @abstractmethod
    async def fetch_content(
        self, name: str, version: str, subpath: str = "", mode: Optional[FetchMode] = None
    ) -> LoadResult:
        """Return the module bytes for ``name`` at ``version``."""
