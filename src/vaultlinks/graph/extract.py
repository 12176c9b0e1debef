from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

# [[Target]]  [[Target|Alias]]  ![[Embed]]
# Wiki-links never span lines and cannot contain brackets.
_WIKILINK_RE = re.compile(r"(!?)\[\[([^\[\]\n]*)\]\]")
_OPEN_RE = re.compile(r"\[\[")

_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_INDENTED_RE = re.compile(r"^(?: {4}|\t)")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s")
_INLINE_CODE_RE = re.compile(r"(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)")

NOTE_EXTENSIONS = (".md", ".markdown")


@dataclass(frozen=True)
class LinkTarget:
    title: str  # resolvable title (final path segment)
    raw: str  # text between the brackets
    path: str | None = None
    alias: str | None = None
    anchor: str | None = None  # "#Heading" or "^block"
    embed: bool = False
    line: int = 0  # 1-based
    column: int = 0  # 1-based


@dataclass(frozen=True)
class ParseWarning:
    line: int
    column: int
    message: str


def extract_links(text: str) -> Iterator[LinkTarget]:
    """Yield the wiki-link targets of ``text`` in document order.

    The generator keeps no state between calls; calling it again on the same
    text yields the same sequence. Links inside fenced or indented code blocks
    and inline code spans are ignored.
    """
    for token in _iter_tokens(text):
        if isinstance(token, LinkTarget):
            yield token


def scan_links(text: str) -> tuple[list[LinkTarget], list[ParseWarning]]:
    """Like :func:`extract_links` but also report malformed link tokens."""
    links: list[LinkTarget] = []
    warnings: list[ParseWarning] = []
    for token in _iter_tokens(text):
        if isinstance(token, LinkTarget):
            links.append(token)
        else:
            warnings.append(token)
    return links, warnings


def iter_prose_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(lineno, line)`` for lines outside fenced and indented code.

    An indented block starts with a 4-space or tab indent after a blank line,
    unless it continues a list item.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    fence: str | None = None
    indented = False
    in_list = False
    prev_blank = True

    for lineno, line in enumerate(lines, start=1):
        if fence is not None:
            if _is_closing_fence(line, fence):
                fence = None
            continue

        blank = not line.strip()
        if blank:
            prev_blank = True
            yield lineno, line
            continue

        if _INDENTED_RE.match(line) and (indented or (prev_blank and not in_list)):
            indented = True
            prev_blank = False
            continue

        indented = False
        prev_blank = False

        m = _FENCE_RE.match(line)
        if m:
            fence = m.group(1)
            continue

        if _LIST_ITEM_RE.match(line):
            in_list = True
        elif not _INDENTED_RE.match(line):
            in_list = False

        yield lineno, line


def _is_closing_fence(line: str, fence: str) -> bool:
    # Same char, at least as long, nothing after it.
    m = _FENCE_RE.match(line)
    return bool(m and m.group(1)[0] == fence[0] and len(m.group(1)) >= len(fence) and not line[m.end():].strip())


def _iter_tokens(text: str) -> Iterator[LinkTarget | ParseWarning]:
    if not text:
        return

    for lineno, line in iter_prose_lines(text):
        masked = _mask_inline_code(line)
        if "[[" not in masked:
            continue

        for match in _WIKILINK_RE.finditer(masked):
            column = match.start() + 1
            inner = match.group(2)
            embed = bool(match.group(1))
            token = _parse_inner(inner, embed=embed, line=lineno, column=column)
            if token is not None:
                yield token

        # Whatever "[[" survives after removing complete links is unterminated.
        rest = _WIKILINK_RE.sub(lambda mm: " " * len(mm.group(0)), masked)
        for m_open in _OPEN_RE.finditer(rest):
            yield ParseWarning(
                line=lineno,
                column=m_open.start() + 1,
                message="unterminated wiki-link",
            )


def _mask_inline_code(line: str) -> str:
    # Blank out code spans but keep columns stable.
    if "`" not in line:
        return line
    return _INLINE_CODE_RE.sub(lambda m: " " * len(m.group(0)), line)


def _parse_inner(
    inner: str,
    *,
    embed: bool,
    line: int,
    column: int,
) -> LinkTarget | ParseWarning | None:
    target, sep, alias_part = inner.partition("|")
    alias = alias_part.strip() if sep else None

    target = target.rstrip()
    if target.endswith("\\"):
        # Escaped pipe inside Markdown tables: [[Note\|Alias]]
        target = target[:-1]
    target = target.strip()

    anchor = None
    cut = min((i for i in (target.find("#"), target.find("^")) if i >= 0), default=-1)
    if cut >= 0:
        anchor = target[cut:].strip() or None
        target = target[:cut].strip()
        if not target and anchor:
            # [[#Heading]] points inside the current note.
            return None

    path, _, title = target.rpartition("/")
    title = title.strip()
    for ext in NOTE_EXTENSIONS:
        if title.lower().endswith(ext):
            title = title[: -len(ext)].rstrip()
            break
    path = path.strip().strip("/") or None

    if not title:
        return ParseWarning(line=line, column=column, message=f"empty wiki-link target: [[{inner}]]")

    return LinkTarget(
        title=title,
        raw=inner,
        path=path,
        alias=alias,
        anchor=anchor,
        embed=embed,
        line=line,
        column=column,
    )
