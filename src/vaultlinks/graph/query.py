from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from .check import find_orphan_notes
from .model import Graph


def describe_note(graph: Graph, key: str) -> dict[str, Any] | None:
    """Outbound, inbound and dangling links of one note (by path or title)."""
    note = graph.note(key)
    if note is None:
        return None

    outbound = graph.outbound(note)
    return {
        "title": note.title,
        "path": note.path,
        "tags": sorted(note.tags),
        "outbound": [e.to_dict() for e in outbound if e.resolved],
        "dangling": [e.to_dict() for e in outbound if not e.resolved],
        "inbound": [e.to_dict() for e in graph.inbound(note)],
        "warnings": [
            {"line": w.line, "column": w.column, "message": w.message} for w in note.warnings
        ],
    }


def graph_stats(
    graph: Graph,
    *,
    entry_points: Iterable[str] = (),
    entry_tags: Iterable[str] = (),
    top: int = 5,
) -> dict[str, Any]:
    resolved = sum(1 for e in graph.edges if e.resolved)
    tags = Counter(t for n in graph.notes for t in n.tags)
    in_degree = Counter({n.path: len(graph.inbound(n)) for n in graph.notes})

    return {
        "notes": len(graph.notes),
        "edges": len(graph.edges),
        "resolved": resolved,
        "dangling": len(graph.edges) - resolved,
        "orphans": len(find_orphan_notes(graph, entry_points=entry_points, entry_tags=entry_tags)),
        "duplicate_titles": len(graph.duplicate_titles()),
        "tags": len(tags),
        "top_tags": tags.most_common(top),
        "most_linked": [(p, n) for p, n in in_degree.most_common(top) if n > 0],
    }
