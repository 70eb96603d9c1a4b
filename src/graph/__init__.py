"""Module graph construction."""

from .builder import GraphBuilder
from .models import ModuleGraph, ModuleKind, ModuleNode

__all__ = ["GraphBuilder", "ModuleGraph", "ModuleKind", "ModuleNode"]
