"""Rank module-graph files by how connected they are, for the map view."""

from __future__ import annotations

import os
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Tuple

from .models import MapEntry, ModuleGraph

DEFAULT_MAP_LIMIT = 15


def _relative(path: str, root_dir: str) -> str:
    return os.path.relpath(path, root_dir).replace(os.sep, "/")


def summarize_module_graph(
    graph: ModuleGraph,
    root_dir: str,
    change_stats: Optional[Mapping[str, int]] = None,
    limit: int = DEFAULT_MAP_LIMIT,
) -> List[MapEntry]:
    """Return the *limit* most connected files, most connected first.

    Connectedness is outgoing plus incoming local imports; ties keep the
    graph's discovery order.
    """
    change_stats = change_stats or {}
    outgoing: Dict[str, List[Tuple[str, str]]] = defaultdict(list)
    incoming: Dict[str, int] = defaultdict(int)
    for imp in graph.imports:
        source = _relative(imp.from_file, root_dir)
        target = _relative(imp.to_file, root_dir)
        outgoing[source].append((target, imp.specifier))
        incoming[target] += 1

    entries = []
    for path in graph.files:
        rel = _relative(path, root_dir)
        entries.append(
            MapEntry(
                relative_path=rel,
                imports=len(outgoing.get(rel, [])),
                imported_by=incoming.get(rel, 0),
                changes=change_stats.get(rel, 0),
                dependencies=list(outgoing.get(rel, [])),
            )
        )

    entries.sort(key=lambda e: e.importance, reverse=True)
    return entries[:limit]


def render_module_map(entries: List[MapEntry]) -> str:
    """Plain-text rendering used when no interactive terminal is available."""
    if not entries:
        return "Project Map\nNo source files found."

    lines = ["Import dependencies", "", "Components (by importance)"]
    for entry in entries:
        changes = f", {entry.changes} commits" if entry.changes else ""
        lines.append(f"  {entry.relative_path} ({entry.imports} imports, {entry.imported_by} importers{changes})")
        if entry.dependencies:
            for target, specifier in entry.dependencies:
                lines.append(f"    -> {target} ({specifier})")
    return "\n".join(lines)
