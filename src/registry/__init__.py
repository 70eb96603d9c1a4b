"""Registry clients addressable by specifier prefix."""

from typing import Dict, Optional

from resolution.models import RegistryKind
from .base import Loader, Registry
from .jsr import JsrRegistry
from .npm import NpmRegistry


def default_registries(
    loader: Loader,
    jsr_url: Optional[str] = None,
    npm_url: Optional[str] = None,
) -> Dict[RegistryKind, Registry]:
    """Build one client per registry kind sharing the same loader."""
    return {
        RegistryKind.JSR: JsrRegistry(loader, jsr_url),
        RegistryKind.NPM: NpmRegistry(loader, npm_url),
    }


__all__ = [
    "JsrRegistry",
    "Loader",
    "NpmRegistry",
    "Registry",
    "default_registries",
]
