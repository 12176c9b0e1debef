"""Link-graph construction.

Resolution needs the complete title index, so the builder takes the fully
loaded note list; nothing here reads files.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..ingest.loader import Note
from .extract import LinkTarget
from .model import Edge, Graph


logger = logging.getLogger(__name__)


def build_title_index(notes: Iterable[Note]) -> dict[str, Note]:
    """Map title -> note. The first note registered under a title wins."""
    index: dict[str, Note] = {}
    for n in notes:
        prev = index.get(n.title)
        if prev is None:
            index[n.title] = n
        else:
            logger.info("Duplicate title %r: %s shadowed by %s", n.title, n.path, prev.path)
    return index


def resolve_link(link: LinkTarget, *, title_index: dict[str, Note], by_title: dict[str, list[Note]]) -> Note | None:
    # A folder prefix only narrows the choice among notes sharing the title.
    if link.path:
        wanted = f"{link.path}/{link.title}"
        for candidate in by_title.get(link.title, ()):
            stem = candidate.stem_path
            if stem == wanted or stem.endswith("/" + wanted):
                return candidate
    return title_index.get(link.title)


def build_graph(notes: Iterable[Note]) -> Graph:
    """Resolve every extracted link of every note into a :class:`Graph`.

    One edge per link occurrence, in note order then document order.
    Unresolved targets stay in the graph as dangling edges.
    """
    notes = list(notes)
    title_index = build_title_index(notes)

    by_title: dict[str, list[Note]] = {}
    for n in notes:
        by_title.setdefault(n.title, []).append(n)

    edges: list[Edge] = []
    dangling = 0
    for n in notes:
        for link in n.links:
            target = resolve_link(link, title_index=title_index, by_title=by_title)
            if target is None:
                dangling += 1
            edges.append(Edge(source=n, link=link, target=target))

    logger.info("Built graph: %d notes, %d edges, %d dangling", len(notes), len(edges), dangling)
    return Graph(notes=notes, title_index=title_index, edges=edges)
