"""Project configuration (``deno.json`` / ``deno.jsonc``).

Recognized keys: ``imports``, ``scopes``, ``importMap``, ``vendor`` and
``lock``. Unknown keys are ignored; the file may contain comments.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from constants import Constants
from errors import ConfigError
from resolution.import_map import ImportMap
from . import jsonc

logger = logging.getLogger(__name__)


@dataclass
class ProjectConfig:
    """Loaded project configuration. ``path`` is None when no file was found."""

    path: Optional[str] = None
    imports: Dict[str, str] = field(default_factory=dict)
    scopes: Dict[str, Dict[str, str]] = field(default_factory=dict)
    import_map_path: Optional[str] = None
    vendor: bool = False
    lock_enabled: bool = True
    lock_file: Optional[str] = None
    lock_frozen: bool = False

    @property
    def root_dir(self) -> str:
        """Directory holding the config file, or the working directory."""
        if self.path:
            return os.path.dirname(os.path.abspath(self.path))
        return os.getcwd()

    @property
    def lock_path(self) -> str:
        """Absolute lock file location (config value or the default name)."""
        lock_file = self.lock_file or Constants.LOCK_FILE
        return os.path.normpath(os.path.join(self.root_dir, lock_file))

    @property
    def vendor_dir(self) -> str:
        """Absolute vendor directory."""
        return os.path.join(self.root_dir, Constants.VENDOR_DIR)

    def import_map(self) -> ImportMap:
        """Build the run's import map.

        Inline ``imports``/``scopes`` win; ``importMap`` is read only when
        neither is present.
        """
        if not self.imports and not self.scopes and self.import_map_path:
            return ImportMap.load(self.import_map_path)
        return ImportMap(imports=self.imports, scopes=self.scopes, base_dir=self.root_dir)


def discover_config(start_dir: Optional[str] = None) -> Optional[str]:
    """Walk up from ``start_dir`` and return the first config file found."""
    current = os.path.abspath(start_dir or os.getcwd())
    while True:
        for name in Constants.CONFIG_FILES:
            candidate = os.path.join(current, name)
            if os.path.isfile(candidate):
                return candidate
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def _parse_lock(path: str, value, config: ProjectConfig) -> None:
    if value is None:
        return
    if isinstance(value, bool):
        config.lock_enabled = value
    elif isinstance(value, str):
        config.lock_file = value
    elif isinstance(value, dict):
        lock_path = value.get("path")
        frozen = value.get("frozen", False)
        if lock_path is not None and not isinstance(lock_path, str):
            raise ConfigError(path, "'lock.path' must be a string")
        if not isinstance(frozen, bool):
            raise ConfigError(path, "'lock.frozen' must be a boolean")
        config.lock_file = lock_path
        config.lock_frozen = frozen
    else:
        raise ConfigError(path, "'lock' must be a boolean, a path or an object")


def load_config(path: str) -> ProjectConfig:
    """Load and validate a project configuration file.

    Raises:
        ConfigError: Unreadable file, invalid JSONC or wrongly typed keys.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = jsonc.loads(fh.read())
    except FileNotFoundError as exc:
        raise ConfigError(path, "file not found") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(path, "top level must be an object")

    path = os.path.abspath(path)
    # Validates the import map shape early so errors name the config file.
    ImportMap.from_dict(data, os.path.dirname(path), source=path)
    config = ProjectConfig(
        path=path,
        imports=dict(data.get("imports") or {}),
        scopes={k: dict(v) for k, v in (data.get("scopes") or {}).items()},
    )

    import_map = data.get("importMap")
    if import_map is not None:
        if not isinstance(import_map, str):
            raise ConfigError(path, "'importMap' must be a path string")
        config.import_map_path = os.path.normpath(os.path.join(config.root_dir, import_map))
        if config.imports or config.scopes:
            logger.warning("%s: 'importMap' is ignored because 'imports' or 'scopes' is set", path)

    vendor = data.get("vendor", False)
    if not isinstance(vendor, bool):
        raise ConfigError(path, "'vendor' must be a boolean")
    config.vendor = vendor

    _parse_lock(path, data.get("lock"), config)
    logger.debug("Loaded project config %s", path)
    return config
