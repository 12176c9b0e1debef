from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Iterable

from ..graph.extract import LinkTarget, ParseWarning, scan_links
from . import markdown as md


logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".md", ".markdown")


class VaultError(OSError):
    pass


class VaultNotFoundError(VaultError, FileNotFoundError):
    pass


@dataclass(frozen=True)
class LoadOptions:
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    ignore_dirs: tuple[str, ...] = ()
    workers: int = 1


@dataclass(frozen=True)
class LoadError:
    path: str
    message: str


@dataclass(frozen=True)
class Note:
    title: str
    path: str  # POSIX path relative to the vault root
    text: str
    tags: frozenset[str] = frozenset()
    links: tuple[LinkTarget, ...] = ()
    warnings: tuple[ParseWarning, ...] = ()
    front_matter: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def stem_path(self) -> str:
        """Relative path without the extension, e.g. ``folder/Note``."""
        return str(PurePosixPath(self.path).with_suffix(""))


def parse_note(text: str, *, path: str) -> Note:
    """Build a :class:`Note` from raw file text.

    Links are extracted from the whole text, front matter included, so that
    ``[[Link]]`` values in properties count as references.
    """
    rel = Path(path)
    fm = md.split_front_matter(text)
    links, warnings = scan_links(text)
    if fm.warning is not None:
        warnings.insert(0, fm.warning)

    return Note(
        title=rel.stem,
        path=rel.as_posix(),
        text=text,
        tags=md.extract_tags(fm.data, fm.body),
        links=tuple(links),
        warnings=tuple(warnings),
        front_matter=fm.data,
    )


def iter_note_files(
    root: Path,
    options: LoadOptions | None = None,
    *,
    errors: list[LoadError] | None = None,
) -> Iterable[Path]:
    """Yield note files under ``root`` in registration (sorted path) order.

    Directories that cannot be listed are appended to ``errors`` when given.
    """
    options = options or LoadOptions()
    exts = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in options.extensions}
    ignored = set(options.ignore_dirs)

    def on_error(e: OSError) -> None:
        if errors is not None:
            errors.append(LoadError(path=_relative(e.filename, root), message=e.strerror or str(e)))

    found: list[tuple[str, Path]] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        # Prune in place so hidden and ignored folders are never listed.
        dirnames[:] = [d for d in dirnames if not d.startswith(".") and d not in ignored]
        for name in filenames:
            if name.startswith("."):
                continue
            if os.path.splitext(name)[1].lower() not in exts:
                continue
            p = Path(dirpath, name)
            found.append((p.relative_to(root).as_posix(), p))

    for _, p in sorted(found, key=lambda item: item[0]):
        yield p


def _relative(filename: str | bytes | None, root: Path) -> str:
    if not filename:
        return "."
    p = Path(os.fsdecode(filename))
    try:
        return p.relative_to(root).as_posix() or "."
    except ValueError:
        return p.as_posix()


def load_notes(
    root: str | Path,
    *,
    options: LoadOptions | None = None,
    errors: list[LoadError] | None = None,
) -> list[Note]:
    """Load every note under ``root``.

    Raises :class:`VaultNotFoundError` if ``root`` is missing or not a
    directory, :class:`VaultError` if it cannot be listed. Unreadable files
    are logged, appended to ``errors`` when given, and skipped.
    """
    options = options or LoadOptions()
    root = Path(root)
    if not root.is_dir():
        raise VaultNotFoundError(f"Vault directory not found: {root}")

    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise VaultError(f"Vault directory not readable: {root}: {e}") from e

    walk_errors: list[LoadError] = []
    paths = list(iter_note_files(root, options, errors=walk_errors))
    logger.debug("Found %d note files under %s", len(paths), root)

    def read(p: Path) -> Note | LoadError:
        rel = p.relative_to(root).as_posix()
        try:
            text = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return LoadError(path=rel, message=str(e))
        return parse_note(text, path=rel)

    if options.workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=options.workers) as pool:
            # map() keeps input order regardless of completion order.
            results = list(pool.map(read, paths))
    else:
        results = [read(p) for p in paths]

    for err in walk_errors:
        logger.warning("Skipping unreadable directory %s: %s", err.path, err.message)
        if errors is not None:
            errors.append(err)

    notes: list[Note] = []
    for res in results:
        if isinstance(res, LoadError):
            logger.warning("Skipping unreadable note %s: %s", res.path, res.message)
            if errors is not None:
                errors.append(res)
            continue
        for w in res.warnings:
            logger.debug("%s:%d:%d: %s", res.path, w.line, w.column, w.message)
        notes.append(res)

    logger.info("Loaded %d notes from %s", len(notes), root)
    return notes
