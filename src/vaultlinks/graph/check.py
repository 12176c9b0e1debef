from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, NamedTuple, Sequence

from ..ingest.loader import LoadError, Note
from .extract import ParseWarning
from .model import Edge, Graph


class DanglingLink(NamedTuple):
    source: Note
    target: str


def find_dangling_links(graph: Graph) -> list[DanglingLink]:
    """One ``(source, target_title)`` pair per unresolved link occurrence."""
    return [DanglingLink(e.source, e.link.title) for e in graph.edges if not e.resolved]


def is_entry_point(note: Note, *, entry_points: Iterable[str] = (), entry_tags: Iterable[str] = ()) -> bool:
    names = set(entry_points)
    if note.title in names or note.path in names or note.stem_path in names:
        return True
    return bool(note.tags & set(entry_tags))


def find_orphan_notes(
    graph: Graph,
    *,
    entry_points: Iterable[str] = (),
    entry_tags: Iterable[str] = (),
    strict: bool = False,
) -> list[Note]:
    """Notes nobody else links to.

    Self-links do not count. Unless ``strict`` is set, a note that links out
    to another existing note is treated as a hub (like a map of content) and
    is not reported.
    """
    entry_points = tuple(entry_points)
    entry_tags = tuple(entry_tags)

    out: list[Note] = []
    for n in graph.notes:
        if any(e.source.path != n.path for e in graph.inbound(n)):
            continue
        if not strict and any(e.target is not None and e.target.path != n.path for e in graph.outbound(n)):
            continue
        if is_entry_point(n, entry_points=entry_points, entry_tags=entry_tags):
            continue
        out.append(n)
    return out


def find_duplicate_titles(graph: Graph) -> dict[str, list[Note]]:
    return graph.duplicate_titles()


@dataclass(frozen=True)
class IntegrityReport:
    notes: int
    edges: int
    dangling: list[Edge] = field(default_factory=list)
    orphans: list[Note] = field(default_factory=list)
    duplicates: dict[str, list[Note]] = field(default_factory=dict)
    warnings: list[tuple[Note, ParseWarning]] = field(default_factory=list)
    load_errors: list[LoadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.dangling

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "notes": self.notes,
            "edges": self.edges,
            "dangling_links": [
                {
                    "source": e.source.path,
                    "target": e.link.title,
                    "line": e.link.line,
                    "column": e.link.column,
                }
                for e in self.dangling
            ],
            "orphan_notes": [{"title": n.title, "path": n.path} for n in self.orphans],
            "duplicate_titles": {t: [n.path for n in ns] for t, ns in self.duplicates.items()},
            "parse_warnings": [
                {"path": n.path, "line": w.line, "column": w.column, "message": w.message}
                for n, w in self.warnings
            ],
            "load_errors": [{"path": e.path, "message": e.message} for e in self.load_errors],
        }


def check_vault(
    graph: Graph,
    *,
    load_errors: Sequence[LoadError] = (),
    entry_points: Iterable[str] = (),
    entry_tags: Iterable[str] = (),
    strict: bool = False,
) -> IntegrityReport:
    """Collect every reportable problem of ``graph`` into one report."""
    return IntegrityReport(
        notes=len(graph.notes),
        edges=len(graph.edges),
        dangling=graph.dangling_edges(),
        orphans=find_orphan_notes(graph, entry_points=entry_points, entry_tags=entry_tags, strict=strict),
        duplicates=find_duplicate_titles(graph),
        warnings=[(n, w) for n in graph.notes for w in n.warnings],
        load_errors=list(load_errors),
    )
