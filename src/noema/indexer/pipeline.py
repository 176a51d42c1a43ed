"""Index pipeline: scan → chunk → embed → store. Builds an in-memory vector store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from noema.indexer.embedder import EmbeddingError
from noema.indexer.store import DimensionMismatchError, VectorStore
from noema.notes.chunker import DEFAULT_MAX_CHARS, chunk_notes
from noema.notes.scanner import ScanError, scan_notes

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from noema.indexer.embedder import EmbeddingProvider
    from noema.indexer.store import SearchHit
    from noema.notes.models import Note

logger = logging.getLogger(__name__)

type Stage = Literal["scan", "embed"]


class IndexBuildError(Exception):
    """An indexing run failed. ``stage`` names the step that failed."""

    def __init__(self, message: str, stage: Stage, original: Exception | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.original = original


def build_index(
    root: Path,
    embedder: EmbeddingProvider,
    max_chars: int | None = None,
) -> VectorStore:
    """Run the full pipeline over *root* and return a populated store.

    Raises:
        IndexBuildError: scanning or embedding failed; no store is produced.
    """
    try:
        notes = scan_notes(root)
    except ScanError as e:
        raise IndexBuildError(f"scan error: {e}", stage="scan", original=e) from e
    return index_notes(notes, embedder, max_chars)


def index_notes(
    notes: Sequence[Note],
    embedder: EmbeddingProvider,
    max_chars: int | None = None,
) -> VectorStore:
    """Chunk, embed and store already-scanned notes in a fresh store."""
    max_chars = DEFAULT_MAX_CHARS if max_chars is None else max_chars
    chunks = chunk_notes(notes, max_chars)

    store = VectorStore()
    if not chunks:
        logger.warning("No chunks to index")
        return store

    texts = [c.text for c in chunks]
    try:
        embeddings = embedder.embed_texts(texts)
    except EmbeddingError as e:
        raise IndexBuildError(f"embedding error: {e}", stage="embed", original=e) from e

    if len(embeddings) != len(chunks):
        raise IndexBuildError(
            f"embedding error: provider returned {len(embeddings)} embeddings"
            f" for {len(chunks)} chunks",
            stage="embed",
        )

    try:
        store.add_batch(chunks, embeddings)
    except DimensionMismatchError as e:
        raise IndexBuildError(f"embedding error: {e}", stage="embed", original=e) from e

    logger.info("Indexed %d chunks from %d notes", len(store), len(notes))
    return store


def search_notes(
    store: VectorStore,
    embedder: EmbeddingProvider,
    query: str,
    k: int = 5,
) -> list[SearchHit]:
    """Embed *query* and return the *k* most similar chunks in *store*.

    The provider is not called when the store is empty.
    """
    if store.is_empty:
        return []
    return store.search(embedder.embed_query(query), k)
