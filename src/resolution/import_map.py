"""Project import map with scoped overrides.

Only the root project's map is ever loaded; import maps shipped inside fetched
modules are not read.
"""

from __future__ import annotations

import json
import logging
import os
import urllib.parse
import urllib.request
from typing import Dict, List, Mapping, Optional

from errors import ConfigError, UnmappedSpecifier
from .models import Specifier
from .parser import is_url, parse_specifier

logger = logging.getLogger(__name__)


def _as_dir(path: str) -> str:
    return path if path.endswith(os.sep) else path + os.sep


class ImportMap:
    """Bare name to specifier bindings plus per-scope overrides.

    Keys ending in ``/`` map every name under that prefix. Relative targets
    and scope keys are made absolute against ``base_dir``, the directory of
    the file that declared the map.
    """

    def __init__(
        self,
        imports: Optional[Mapping[str, str]] = None,
        scopes: Optional[Mapping[str, Mapping[str, str]]] = None,
        base_dir: Optional[str] = None,
    ):
        self._base = _as_dir(os.path.abspath(base_dir or os.getcwd()))
        self._imports = self._normalize_mapping(imports or {})
        normalized_scopes = {
            self._absolute(scope): self._normalize_mapping(mapping)
            for scope, mapping in (scopes or {}).items()
        }
        # Longest prefix first so the most specific scope is consulted first.
        self._scopes: List[tuple] = sorted(
            normalized_scopes.items(), key=lambda item: len(item[0]), reverse=True
        )

    @property
    def base_dir(self) -> str:
        """Directory relative targets were resolved against."""
        return self._base

    @property
    def imports(self) -> Dict[str, str]:
        """Root mapping after normalization."""
        return dict(self._imports)

    @property
    def scopes(self) -> Dict[str, Dict[str, str]]:
        """Scope mappings after normalization."""
        return {scope: dict(mapping) for scope, mapping in self._scopes}

    def __len__(self) -> int:
        return len(self._imports) + sum(len(mapping) for _, mapping in self._scopes)

    @classmethod
    def from_dict(cls, data: Mapping, base_dir: str, source: str = "<import map>") -> "ImportMap":
        """Validate and build an import map from ``{"imports": ..., "scopes": ...}``."""
        imports = data.get("imports") or {}
        scopes = data.get("scopes") or {}
        if not isinstance(imports, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in imports.items()
        ):
            raise ConfigError(source, "'imports' must map strings to strings")
        if not isinstance(scopes, dict):
            raise ConfigError(source, "'scopes' must be an object")
        for scope, mapping in scopes.items():
            if not isinstance(mapping, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()
            ):
                raise ConfigError(source, f"scope '{scope}' must map strings to strings")
        return cls(imports=imports, scopes=scopes, base_dir=base_dir)

    @classmethod
    def load(cls, path: str) -> "ImportMap":
        """Load a standalone import map JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError as exc:
            raise ConfigError(path, "import map file not found") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(path, f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(path, "import map must be a JSON object")
        return cls.from_dict(data, os.path.dirname(os.path.abspath(path)), source=path)

    def _absolute(self, value: str) -> str:
        """Resolve relative and file: locations against the base directory."""
        if is_url(value):
            return value
        if value.startswith("file:"):
            value = urllib.request.url2pathname(urllib.parse.urlsplit(value).path)
        elif not value.startswith(("./", "../", "/")):
            return value
        absolute = os.path.normpath(os.path.join(self._base, value))
        if value.endswith("/"):
            absolute = _as_dir(absolute)
        return absolute

    def _normalize_mapping(self, mapping: Mapping[str, str]) -> Dict[str, str]:
        normalized: Dict[str, str] = {}
        for key, target in mapping.items():
            if not key:
                logger.warning("Ignoring import map entry with an empty key")
                continue
            if key.endswith("/") and not target.endswith("/"):
                logger.warning(
                    "Ignoring import map entry '%s': target '%s' must end with '/'", key, target
                )
                continue
            normalized[key] = self._absolute(target)
        return normalized

    @staticmethod
    def _lookup_in(mapping: Mapping[str, str], name: str) -> Optional[str]:
        """Exact key first, then the longest matching ``/``-terminated prefix."""
        if name in mapping:
            return mapping[name]
        best = None
        for key in mapping:
            if key.endswith("/") and name.startswith(key) and (best is None or len(key) > len(best)):
                best = key
        if best is None:
            return None
        return mapping[best] + name[len(best):]

    def lookup(self, name: str, referrer: Optional[str] = None) -> Optional[str]:
        """Return the mapped target string for ``name`` or None."""
        if referrer:
            for scope, mapping in self._scopes:
                if referrer.startswith(scope):
                    target = self._lookup_in(mapping, name)
                    if target is not None:
                        return target
        return self._lookup_in(self._imports, name)

    def matches(self, name: str, referrer: Optional[str] = None) -> bool:
        """True when ``resolve`` would find a mapping for ``name``."""
        return self.lookup(name, referrer) is not None

    def resolve(self, name: str, referrer: Optional[str] = None) -> Specifier:
        """Resolve a bare name to the specifier it is mapped to.

        Args:
            name: Import string as written.
            referrer: Identity of the importing module (path or URL) for scopes.

        Raises:
            UnmappedSpecifier: No entry in a matching scope or the root mapping.
        """
        target = self.lookup(name, referrer)
        if target is None:
            raise UnmappedSpecifier(name, referrer)
        logger.debug("Import map: %s -> %s (referrer %s)", name, target, referrer)
        return parse_specifier(target, base=self._base)
