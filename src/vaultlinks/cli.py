from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .config import Settings
from .graph.build import build_graph
from .graph.check import IntegrityReport, check_vault
from .graph.model import Graph
from .graph.query import describe_note, graph_stats
from .ingest.loader import LoadError, LoadOptions, VaultError, load_notes
from .logging_setup import setup_logging


app = typer.Typer(add_completion=False, help="Index and check the wiki-links of a Markdown vault.")
console = Console()

FORMATS = ("text", "json")


def _load_graph(vault: Path | None, *, settings: Settings, workers: int | None) -> tuple[Graph, list[LoadError]]:
    root = vault if vault is not None else Path(settings.vault_path)
    opts = LoadOptions(
        extensions=settings.extensions,
        ignore_dirs=settings.ignore_dirs,
        workers=int(workers if workers is not None else settings.workers),
    )

    errors: list[LoadError] = []
    try:
        notes = load_notes(root, options=opts, errors=errors)
    except VaultError as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)

    return build_graph(notes), errors


def _setup_logging(log_level: str | None, *, settings: Settings) -> None:
    level = log_level or settings.log_level
    try:
        setup_logging(level)
    except ValueError:
        raise typer.BadParameter(f"--log-level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL (got {level!r})")


def _check_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise typer.BadParameter(f"--format must be one of: {', '.join(FORMATS)}")
    return fmt


@app.command()
def check(
    vault: Path | None = typer.Option(None, "--vault", help="Vault root (defaults to VAULTLINKS_VAULT_PATH)"),
    fmt: str = typer.Option("text", "--format", help="Report format: text or json"),
    entry_point: list[str] | None = typer.Option(None, "--entry-point", help="Title or path never reported as orphan"),
    entry_tag: list[str] | None = typer.Option(None, "--entry-tag", help="Notes with this tag are never orphans"),
    strict_orphans: bool = typer.Option(False, "--strict-orphans", help="Only inbound links save a note from being an orphan"),
    workers: int | None = typer.Option(None, "--workers", help="Reader threads"),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
):
    """Report dangling links and orphan notes. Exits 1 if any link dangles."""
    settings = Settings()
    fmt = _check_format(fmt)
    _setup_logging(log_level, settings=settings)

    graph, errors = _load_graph(vault, settings=settings, workers=workers)
    report = check_vault(
        graph,
        load_errors=errors,
        entry_points=entry_point or settings.entry_points,
        entry_tags=entry_tag or settings.entry_tags,
        strict=bool(strict_orphans),
    )

    if fmt == "json":
        typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_report(report)

    if not report.ok:
        raise typer.Exit(code=1)


@app.command()
def links(
    note: str = typer.Argument(..., help="Note title or relative path"),
    vault: Path | None = typer.Option(None, "--vault", help="Vault root (defaults to VAULTLINKS_VAULT_PATH)"),
    fmt: str = typer.Option("text", "--format", help="Output format: text or json"),
    log_level: str | None = typer.Option(None, "--log-level"),
):
    """Show outbound, inbound and dangling links of one note."""
    settings = Settings()
    fmt = _check_format(fmt)
    _setup_logging(log_level, settings=settings)

    graph, _ = _load_graph(vault, settings=settings, workers=None)
    info = describe_note(graph, note)
    if info is None:
        console.print(f"No note titled {note!r}.", style="yellow", markup=False)
        raise typer.Exit(code=2)

    if fmt == "json":
        typer.echo(json.dumps(info, indent=2, ensure_ascii=False))
        return

    console.print(f"{info['title']} ({info['path']})", markup=False, style="bold")
    if info["tags"]:
        console.print("tags: " + ", ".join(info["tags"]), markup=False)

    for label, key, ref in (
        ("outbound", "outbound", "target_path"),
        ("dangling", "dangling", "target"),
        ("inbound", "inbound", "source"),
    ):
        console.print(f"{label} ({len(info[key])}):", markup=False)
        for e in info[key]:
            console.print(f"- {e[ref]} (line {e['line']})", markup=False)

    for w in info["warnings"]:
        console.print(f"warning: line {w['line']}:{w['column']} {w['message']}", style="yellow", markup=False)


@app.command()
def stats(
    vault: Path | None = typer.Option(None, "--vault", help="Vault root (defaults to VAULTLINKS_VAULT_PATH)"),
    log_level: str | None = typer.Option(None, "--log-level"),
):
    """Show vault link statistics."""
    settings = Settings()
    _setup_logging(log_level, settings=settings)

    graph, errors = _load_graph(vault, settings=settings, workers=None)
    res = graph_stats(graph, entry_points=settings.entry_points, entry_tags=settings.entry_tags)

    table = Table(title="Vault Stats")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for key in ("notes", "edges", "resolved", "dangling", "orphans", "duplicate_titles", "tags"):
        table.add_row(key, str(res[key]))
    table.add_row("load_errors", str(len(errors)))
    console.print(table)

    if res["most_linked"]:
        t2 = Table(title="Most Linked")
        t2.add_column("note")
        t2.add_column("inbound", justify="right")
        for path, n in res["most_linked"]:
            t2.add_row(Text(path), str(n))
        console.print(t2)

    if res["top_tags"]:
        t3 = Table(title="Top Tags")
        t3.add_column("tag")
        t3.add_column("notes", justify="right")
        for tag, n in res["top_tags"]:
            t3.add_row(Text(tag), str(n))
        console.print(t3)


@app.command()
def export(
    vault: Path | None = typer.Option(None, "--vault", help="Vault root (defaults to VAULTLINKS_VAULT_PATH)"),
    out: Path | None = typer.Option(None, "--out", help="Write JSON here instead of stdout"),
    log_level: str | None = typer.Option(None, "--log-level"),
):
    """Export the link graph as JSON."""
    settings = Settings()
    _setup_logging(log_level, settings=settings)

    graph, _ = _load_graph(vault, settings=settings, workers=None)
    payload = json.dumps(graph.to_dict(), indent=2, ensure_ascii=False)

    if out is None:
        typer.echo(payload)
        return

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(payload + "\n", encoding="utf-8")
    console.print(f"Wrote {len(graph.notes)} notes and {len(graph.edges)} edges to {out}", markup=False)


def _print_report(report: IntegrityReport) -> None:
    console.print(f"Notes: {report.notes}", markup=False)
    console.print(f"Links: {report.edges}", markup=False)

    if report.dangling:
        table = Table(title=f"Dangling Links ({len(report.dangling)})")
        table.add_column("source")
        table.add_column("line", justify="right", width=6)
        table.add_column("target")
        for e in report.dangling:
            table.add_row(Text(e.source.path), Text(str(e.link.line)), Text(e.link.title))
        console.print(table)

    if report.orphans:
        console.print(f"\nOrphan notes ({len(report.orphans)}):", markup=False)
        for n in report.orphans:
            console.print(f"- {n.path}", markup=False)

    if report.duplicates:
        console.print(f"\nDuplicate titles ({len(report.duplicates)}):", markup=False)
        for title, notes in report.duplicates.items():
            console.print(f"- {title}: {', '.join(n.path for n in notes)} (links resolve to {notes[0].path})", markup=False)

    if report.warnings:
        console.print(f"\nParse warnings ({len(report.warnings)}):", markup=False, style="yellow")
        for n, w in report.warnings:
            console.print(f"- {n.path}:{w.line}:{w.column}: {w.message}", markup=False)

    if report.load_errors:
        console.print(f"\nUnreadable files ({len(report.load_errors)}):", markup=False, style="yellow")
        for e in report.load_errors:
            console.print(f"- {e.path}: {e.message}", markup=False)

    console.print("")
    if report.ok:
        console.print("OK: no dangling links.", style="green", markup=False)
    else:
        console.print(f"FAIL: {len(report.dangling)} dangling link(s).", style="red", markup=False)


if __name__ == "__main__":
    app()
