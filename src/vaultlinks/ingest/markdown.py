from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from ..graph.extract import ParseWarning, iter_prose_lines


_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(.*?\n)?---[ \t]*(?:\n|\Z)", re.DOTALL)

# Inline #tag: not preceded by a word char or "#"/"&" (headings, entities),
# must contain a non-digit, may nest with "/".
_TAG_RE = re.compile(r"(?<![\w#&/])#([\w/-]*[^\W\d][\w/-]*)")


@dataclass(frozen=True)
class FrontMatter:
    data: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    body_start_line: int = 1  # 1-based
    warning: ParseWarning | None = None


def split_front_matter(text: str) -> FrontMatter:
    """Split a leading ``---`` delimited YAML block from the note body."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    m = _FRONT_MATTER_RE.match(normalized)
    if m is None:
        return FrontMatter(data={}, body=normalized, body_start_line=1)

    body = normalized[m.end():]
    body_start_line = normalized[: m.end()].count("\n") + 1
    raw = m.group(1) or ""

    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as e:
        return FrontMatter(
            data={},
            body=body,
            body_start_line=body_start_line,
            warning=ParseWarning(line=1, column=1, message=f"invalid front matter: {_first_line(str(e))}"),
        )

    if not isinstance(data, dict):
        return FrontMatter(
            data={},
            body=body,
            body_start_line=body_start_line,
            warning=ParseWarning(line=1, column=1, message="front matter is not a mapping"),
        )

    return FrontMatter(data=data, body=body, body_start_line=body_start_line)


def extract_tags(front_matter: dict[str, Any], body: str) -> frozenset[str]:
    """Collect tags from front matter (``tags``/``tag``) and inline ``#tags``.

    Tags are returned without the leading ``#``. Inline tags inside code are
    ignored.
    """
    tags: set[str] = set()

    for key in ("tags", "tag"):
        value = front_matter.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            items = re.split(r"[,\s]+", value)
        elif isinstance(value, (list, tuple)):
            items = [str(v) for v in value if v is not None]
        else:
            items = [str(value)]
        for item in items:
            t = item.strip().lstrip("#")
            if t:
                tags.add(t)

    for _, line in iter_prose_lines(body):
        if "#" not in line:
            continue
        line = re.sub(r"`+[^`]*`+", " ", line)
        for t in _TAG_RE.findall(line):
            tags.add(t.rstrip("/"))

    return frozenset(t for t in tags if t)


def _first_line(message: str) -> str:
    return message.strip().split("\n", 1)[0]
