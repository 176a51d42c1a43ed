"""CLI entry point for Noema.

Commands:
    noema status    — Show backend status
    noema data-dir  — Show where Noema stores its own state
    noema set-root  — Persist the notes root directory
    noema scan      — List markdown notes under the root
    noema chunks    — Chunk notes for embedding
    noema watch     — Re-scan notes whenever they change
    noema embed     — Embed a piece of text
    noema index     — Scan, chunk, embed and store notes in memory
    noema search    — Index notes, then search them
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from noema import __version__

if TYPE_CHECKING:
    from noema.config import Settings
    from noema.indexer.embedder import Embedder
    from noema.notes.events import RescanEvent

console = Console()

PATH_ARG = click.Path(file_okay=False, path_type=Path)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _fail(message: str) -> NoReturn:
    console.print(f"[red]✗[/red] {escape(message)}")
    sys.exit(1)


def _preview(text: str, limit: int) -> str:
    return escape(text[:limit] + ("…" if len(text) > limit else ""))


def _display_path(path: Path, root: Path) -> str:
    """Path relative to the notes root when possible, escaped for rich markup."""
    try:
        shown = path.relative_to(root)
    except ValueError:
        shown = path
    return escape(str(shown))


def _resolve_root(path: Path | None, settings: Settings) -> Path:
    """Explicit argument, then NOEMA_NOTES_ROOT, then the persisted root."""
    from noema.config import get_notes_root

    root = path or settings.notes_root or get_notes_root()
    if root is None:
        _fail("No notes root configured. Run: noema set-root <PATH>")
    return root


def _create_embedder(settings: Settings, url: str | None, model: str | None) -> Embedder:
    """Create an Embedder from settings, with CLI overrides."""
    from noema.indexer.embedder import Embedder, EmbeddingError

    overrides: dict[str, str] = {}
    if url:
        overrides["base_url"] = url
    if model:
        overrides["model"] = model
    config = settings.embedding.model_copy(update=overrides)

    try:
        return Embedder(config, api_key=settings.openai_api_key)
    except EmbeddingError as e:
        _fail(f"Error: {e}")


def _embedding_options(func):  # type: ignore[no-untyped-def]
    func = click.option("--model", default=None, help="Embedding model (default from config)")(func)
    func = click.option("--url", default=None, help="Embedding provider base URL")(func)
    return func


@click.group(invoke_without_command=True)
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-c", "--config", type=click.Path(exists=True), help="Config file path")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """Noema — local-first knowledge assistant."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


@cli.command()
def status() -> None:
    """Show backend status."""
    console.print("Noema backend")
    console.print(f"  core: noema {__version__} ready")


@cli.command("data-dir")
def data_dir() -> None:
    """Show where Noema stores its config and state."""
    from noema.config import app_data_dir

    try:
        console.print(str(app_data_dir()))
    except OSError as e:
        _fail(f"Could not create app data directory: {e}")


@cli.command("set-root")
@click.argument("path", type=click.Path(path_type=Path))
def set_root(path: Path) -> None:
    """Set the notes root directory (persisted for future use)."""
    from noema.config import ConfigError, set_notes_root

    try:
        resolved = set_notes_root(path)
    except (ConfigError, OSError) as e:
        _fail(f"Error: {e}")
    else:
        console.print(f"[green]✓[/green] Notes root set to {resolved}")


@cli.command()
@click.argument("path", required=False, type=PATH_ARG)
@click.pass_context
def scan(ctx: click.Context, path: Path | None) -> None:
    """Scan a directory for markdown notes. Uses the configured root if PATH is omitted."""
    from noema.config import load_settings
    from noema.notes import ScanError, scan_notes

    settings = load_settings(ctx.obj.get("config_path"))
    root = _resolve_root(path, settings)

    try:
        notes = scan_notes(root)
    except ScanError as e:
        _fail(f"Error: {e}")

    console.print(f"Scanned {len(notes)} note(s) under {root}")
    for note in notes:
        first_line = note.body.splitlines()[0].strip() if note.body.strip() else ""
        console.print(f"  {_display_path(note.path, root)}  [dim]{_preview(first_line, 60)}[/dim]")


@cli.command()
@click.argument("path", required=False, type=PATH_ARG)
@click.option("--max-chars", type=click.IntRange(min=0), default=None, help="Max characters per chunk")
@click.pass_context
def chunks(ctx: click.Context, path: Path | None, max_chars: int | None) -> None:
    """Chunk notes for embedding. Uses the configured root if PATH is omitted."""
    from noema.config import load_settings
    from noema.notes import ScanError, chunk_notes, scan_notes

    settings = load_settings(ctx.obj.get("config_path"))
    root = _resolve_root(path, settings)
    budget = settings.chunking.max_chars if max_chars is None else max_chars

    try:
        notes = scan_notes(root)
    except ScanError as e:
        _fail(f"Error: {e}")

    all_chunks = chunk_notes(notes, budget)
    console.print(
        f"Chunked {len(notes)} note(s) into {len(all_chunks)} chunk(s) (max {budget} chars)"
    )
    for c in all_chunks[:10]:
        console.print(f"  \\[{c.index}] {_display_path(c.note_path, root)}  {_preview(c.text, 50)}")
    if len(all_chunks) > 10:
        console.print(f"  ... and {len(all_chunks) - 10} more")


@cli.command()
@click.argument("path", required=False, type=PATH_ARG)
@click.pass_context
def watch(ctx: click.Context, path: Path | None) -> None:
    """Watch the notes directory and re-scan when files change. Ctrl+C to stop."""
    from noema.config import load_settings
    from noema.notes import NotesWatcher, ScanError, scan_notes

    settings = load_settings(ctx.obj.get("config_path"))
    root = _resolve_root(path, settings)

    def _on_change(event: RescanEvent) -> None:
        if event.ok:
            console.print(f"Rescanned: {len(event.notes)} note(s)")
        else:
            console.print(f"[red]✗[/red] Scan error: {escape(str(event.error))}")

    try:
        watcher = NotesWatcher(root, _on_change, debounce_ms=settings.watch.debounce_ms)
    except ScanError as e:
        _fail(f"Error: {e}")

    console.print(f"Watching {root}. Edit notes to trigger re-scan. Ctrl+C to stop.")
    console.print(f"  Debounce: {settings.watch.debounce_ms}ms")
    try:
        console.print(f"Initial scan: {len(scan_notes(root))} note(s)")
    except ScanError as e:
        console.print(f"[red]✗[/red] Scan error: {escape(str(e))}")

    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()
        console.print("\n[yellow]Watcher stopped.[/yellow]")


@cli.command()
@click.argument("text")
@_embedding_options
@click.pass_context
def embed(ctx: click.Context, text: str, url: str | None, model: str | None) -> None:
    """Embed text with the configured provider and show its dimensionality."""
    from noema.config import load_settings
    from noema.indexer import EmbeddingError

    settings = load_settings(ctx.obj.get("config_path"))
    embedder = _create_embedder(settings, url, model)

    try:
        vector = embedder.embed_query(text)
    except EmbeddingError as e:
        _fail(f"Error: {e}")
    console.print(f"Embedding: {len(vector)} dimensions")


@cli.command()
@click.argument("path", required=False, type=PATH_ARG)
@click.option("--max-chars", type=click.IntRange(min=0), default=None, help="Max characters per chunk")
@_embedding_options
@click.pass_context
def index(
    ctx: click.Context,
    path: Path | None,
    max_chars: int | None,
    url: str | None,
    model: str | None,
) -> None:
    """Index notes: scan, chunk, embed and store in memory. No persistence."""
    from noema.config import load_settings
    from noema.indexer import IndexBuildError, build_index

    settings = load_settings(ctx.obj.get("config_path"))
    root = _resolve_root(path, settings)
    embedder = _create_embedder(settings, url, model)
    budget = settings.chunking.max_chars if max_chars is None else max_chars

    try:
        with console.status(f"Indexing {root}..."):
            store = build_index(root, embedder, budget)
    except IndexBuildError as e:
        _fail(f"Error: {e}")

    console.print(f"[green]✓[/green] Indexed {len(store)} chunk(s) (in memory, no persistence)")


@cli.command()
@click.argument("query")
@click.argument("path", required=False, type=PATH_ARG)
@click.option("-k", "--k", "top_k", type=click.IntRange(min=0), default=None, help="Max results")
@click.option("--max-chars", type=click.IntRange(min=0), default=None, help="Max characters per chunk")
@_embedding_options
@click.pass_context
def search(
    ctx: click.Context,
    query: str,
    path: Path | None,
    top_k: int | None,
    max_chars: int | None,
    url: str | None,
    model: str | None,
) -> None:
    """Search notes: runs the index pipeline, then ranks chunks against QUERY."""
    from rich.table import Table

    from noema.config import load_settings
    from noema.indexer import EmbeddingError, IndexBuildError, build_index, search_notes

    settings = load_settings(ctx.obj.get("config_path"))
    root = _resolve_root(path, settings)
    embedder = _create_embedder(settings, url, model)
    budget = settings.chunking.max_chars if max_chars is None else max_chars
    k = settings.search.top_k if top_k is None else top_k

    try:
        with console.status(f"Indexing {root}..."):
            store = build_index(root, embedder, budget)
    except IndexBuildError as e:
        _fail(f"Error: {e}")

    try:
        hits = search_notes(store, embedder, query, k)
    except EmbeddingError as e:
        _fail(f"Error embedding query: {e}")

    if not hits:
        console.print("[dim]No results.[/dim]")
        return

    table = Table(show_header=True, header_style="bold magenta", box=None)
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Note")
    table.add_column("Chunk")
    for rank, hit in enumerate(hits, start=1):
        table.add_row(
            str(rank),
            f"{hit.score:.3f}",
            f"{_display_path(hit.chunk.note_path, root)} \\[{hit.chunk.index}]",
            _preview(hit.chunk.text, 80),
        )
    console.print(table)


if __name__ == "__main__":
    cli()
