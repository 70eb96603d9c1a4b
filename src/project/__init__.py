"""Project configuration discovery and loading."""

from .config import ProjectConfig, discover_config, load_config

__all__ = ["ProjectConfig", "discover_config", "load_config"]
