"""Runtime tunables from the YAML tool config, the environment and the CLI.

Precedence, lowest first: Constants defaults, YAML config (``MODGATE_CONFIG``
or ``~/.config/modgate/modgate.yml``), ``MODGATE_DIR``, CLI flags.
"""

from __future__ import annotations

import logging
import os

from constants import Constants, _load_yaml_config, apply_yaml_overrides

logger = logging.getLogger(__name__)


def load_tool_config() -> None:
    """Load the YAML tool config and apply it onto Constants."""
    cfg = _load_yaml_config()
    if cfg:
        apply_yaml_overrides(cfg)
        logger.debug("Applied tool config keys: %s", ", ".join(sorted(cfg)))


def apply_env_overrides(environ=None) -> None:
    """Apply environment overrides (currently ``MODGATE_DIR``)."""
    environ = os.environ if environ is None else environ
    cache_dir = environ.get("MODGATE_DIR")
    if cache_dir:
        Constants.CACHE_DIR = os.path.abspath(os.path.expanduser(cache_dir))


def apply_network_overrides(args) -> None:
    """Apply CLI overrides for cache location and request timeout."""
    cache_dir = getattr(args, "CACHE_DIR", None)
    if cache_dir:
        Constants.CACHE_DIR = os.path.abspath(os.path.expanduser(cache_dir))
    timeout = getattr(args, "TIMEOUT", None)
    if timeout is not None:
        if timeout <= 0:
            logger.warning("Ignoring non-positive --timeout %s", timeout)
        else:
            Constants.REQUEST_TIMEOUT = timeout


def apply_all(args) -> None:
    """Apply every configuration layer in precedence order."""
    load_tool_config()
    apply_env_overrides()
    apply_network_overrides(args)
