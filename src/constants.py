"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    RESOLUTION_ERROR = 1
    CONNECTION_ERROR = 2
    FILE_ERROR = 3
    INTEGRITY_ERROR = 10


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_JSR = "https://jsr.io/"
    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    CONFIG_FILES = ["deno.json", "deno.jsonc"]
    LOCK_FILE = "deno.lock"
    LOCK_FILE_VERSION = "1"
    VENDOR_DIR = "vendor"
    CACHE_DIR = os.path.join(
        os.environ.get("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache"),
        "modgate",
    )
    MODULE_EXTENSIONS = (
        ".ts", ".tsx", ".mts", ".cts",
        ".js", ".jsx", ".mjs", ".cjs",
        ".json", ".wasm",
    )
    SCANNABLE_EXTENSIONS = (
        ".ts", ".tsx", ".mts", ".cts",
        ".js", ".jsx", ".mjs", ".cjs",
    )
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30.0  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_MAX_REDIRECTS = 5
    MAX_CONCURRENCY = 16
    PREFER_STABLE_VERSIONS = False
    USER_AGENT = "modgate/0.1"


# Keys accepted from the YAML tool config, mapped to Constants attributes.
_YAML_OVERRIDES = {
    "cache_dir": "CACHE_DIR",
    "timeout": "REQUEST_TIMEOUT",
    "retries": "HTTP_RETRY_MAX",
    "retry_delay": "HTTP_RETRY_BASE_DELAY_SEC",
    "max_concurrency": "MAX_CONCURRENCY",
    "jsr_url": "REGISTRY_URL_JSR",
    "npm_url": "REGISTRY_URL_NPM",
    "prefer_stable": "PREFER_STABLE_VERSIONS",
}


def _yaml_config_paths() -> list:
    """Candidate locations for the tool config, highest precedence first."""
    paths = []
    env_path = os.environ.get("MODGATE_CONFIG")
    if env_path:
        paths.append(env_path)
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    paths.append(os.path.join(xdg, "modgate", "modgate.yml"))
    paths.append(os.path.join(xdg, "modgate", "modgate.yaml"))
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML tool config from an explicit path or the default locations.

    Returns an empty dict when no file is found or the file cannot be parsed.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [path] if path else _yaml_config_paths()
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", candidate)
            return {}
        return data
    return {}


def apply_yaml_overrides(cfg: Dict[str, Any]) -> None:
    """Apply tunables from a loaded YAML config onto Constants."""
    for key, attr in _YAML_OVERRIDES.items():
        if key not in cfg or cfg[key] is None:
            continue
        current = getattr(Constants, attr)
        value = cfg[key]
        try:
            if isinstance(current, bool):
                value = bool(value)
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float):
                value = float(value)
            else:
                value = str(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid config value for %s: %r", key, cfg[key])
            continue
        setattr(Constants, attr, value)
