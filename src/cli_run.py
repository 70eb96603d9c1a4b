"""CLI entry point for ``modgate run``.

Resolves and verifies the program's module graph against the cache and lock
file, then reports what would be loaded. Executing the program is left to
the JavaScript runtime.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from cli_cache import resolve_graph
from graph import ModuleGraph

logger = logging.getLogger(__name__)


def format_module_list(graph: ModuleGraph) -> str:
    """One line per module: identity, then the URL it was served from."""
    lines = []
    for key in sorted(graph.modules):
        node = graph.modules[key]
        line = key if not node.url or node.url == key else f"{key} -> {node.url}"
        lines.append(line)
    return "\n".join(lines)


def run_program(args: Any) -> ModuleGraph:
    """Resolve the entry's graph and print the module list to stdout."""
    graph = asyncio.run(resolve_graph(args))
    sys.stdout.write(format_module_list(graph) + "\n")
    script_args = [arg for arg in (getattr(args, "SCRIPT_ARGS", None) or []) if arg != "--"]
    logger.info(
        "Verified %d modules for %s%s",
        len(graph),
        args.ENTRY,
        f" (args: {' '.join(script_args)})" if script_args else "",
    )
    return graph
