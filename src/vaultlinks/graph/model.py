from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..ingest.loader import Note
from .extract import LinkTarget


@dataclass(frozen=True)
class Edge:
    source: Note
    link: LinkTarget
    target: Note | None = None

    @property
    def resolved(self) -> bool:
        return self.target is not None

    @property
    def target_title(self) -> str:
        return self.link.title

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source.path,
            "target": self.link.title,
            "target_path": self.target.path if self.target is not None else None,
            "resolved": self.resolved,
            "line": self.link.line,
            "column": self.link.column,
            "alias": self.link.alias,
            "anchor": self.link.anchor,
            "embed": self.link.embed,
        }


class Graph:
    """Bidirectional wiki-link graph over a fixed set of notes.

    Notes are keyed by their relative path. Title lookups use the first note
    registered under that title. Inbound edges are derived from resolved
    outbound edges and are never added on their own.
    """

    def __init__(
        self,
        *,
        notes: Sequence[Note],
        title_index: Mapping[str, Note],
        edges: Sequence[Edge],
    ):
        self.notes: tuple[Note, ...] = tuple(notes)
        self.title_index: dict[str, Note] = dict(title_index)
        self.edges: tuple[Edge, ...] = tuple(edges)

        self._by_path: dict[str, Note] = {n.path: n for n in self.notes}
        self._outbound: dict[str, list[Edge]] = {n.path: [] for n in self.notes}
        self._inbound: dict[str, list[Edge]] = {n.path: [] for n in self.notes}
        for e in self.edges:
            self._outbound[e.source.path].append(e)
            if e.target is not None:
                self._inbound[e.target.path].append(e)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self.notes == other.notes and self.edges == other.edges

    def __repr__(self) -> str:
        return f"Graph(notes={len(self.notes)}, edges={len(self.edges)})"

    def resolve(self, title: str) -> Note | None:
        """Exact, case-sensitive title lookup (first-registered match)."""
        return self.title_index.get(title)

    def note(self, key: str) -> Note | None:
        """Look a note up by relative path first, then by title."""
        return self._by_path.get(key) or self.resolve(key)

    def outbound(self, note: Note | str) -> list[Edge]:
        return list(self._outbound.get(self._key(note), ()))

    def inbound(self, note: Note | str) -> list[Edge]:
        return list(self._inbound.get(self._key(note), ()))

    def dangling_edges(self) -> list[Edge]:
        return [e for e in self.edges if not e.resolved]

    def duplicate_titles(self) -> dict[str, list[Note]]:
        by_title: dict[str, list[Note]] = {}
        for n in self.notes:
            by_title.setdefault(n.title, []).append(n)
        return {t: ns for t, ns in by_title.items() if len(ns) > 1}

    def to_dict(self) -> dict[str, Any]:
        return {
            "notes": [
                {
                    "title": n.title,
                    "path": n.path,
                    "tags": sorted(n.tags),
                    "outbound": [e.to_dict() for e in self._outbound[n.path]],
                    "inbound": [e.source.path for e in self._inbound[n.path]],
                }
                for n in self.notes
            ],
            "edges": len(self.edges),
            "dangling": sum(1 for e in self.edges if not e.resolved),
        }

    def _key(self, note: Note | str) -> str:
        if isinstance(note, Note):
            return note.path
        found = self.note(note)
        return found.path if found is not None else note
