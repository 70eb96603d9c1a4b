"""Module graph produced by a resolution run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ModuleKind(Enum):
    """Where a module's bytes came from."""
    LOCAL = "local"
    REMOTE = "remote"
    REGISTRY = "registry"


@dataclass
class ModuleNode:
    """One module in the graph, keyed by its identity (path, URL or specifier)."""

    specifier: str
    kind: ModuleKind
    url: Optional[str] = None
    size: int = 0
    cached: bool = False
    integrity: Optional[str] = None
    dependencies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "specifier": self.specifier,
            "kind": self.kind.value,
            "url": self.url,
            "size": self.size,
            "cached": self.cached,
            "integrity": self.integrity,
            "dependencies": list(self.dependencies),
        }


@dataclass
class ModuleGraph:
    """Entry points, every reachable module and the registry resolutions made."""

    roots: List[str] = field(default_factory=list)
    modules: Dict[str, ModuleNode] = field(default_factory=dict)
    resolutions: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.modules)

    def __contains__(self, specifier: str) -> bool:
        return specifier in self.modules

    def remote_modules(self) -> List[ModuleNode]:
        """Modules fetched over the network or from the cache, sorted by identity."""
        return sorted(
            (node for node in self.modules.values() if node.kind != ModuleKind.LOCAL),
            key=lambda node: node.specifier,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": list(self.roots),
            "modules": [self.modules[key].to_dict() for key in sorted(self.modules)],
            "resolutions": dict(sorted(self.resolutions.items())),
        }
