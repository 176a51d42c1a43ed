"""Indexer — embedding client, in-memory vector store, and index pipeline."""

from noema.indexer.embedder import Embedder, EmbeddingError, EmbeddingProvider
from noema.indexer.pipeline import IndexBuildError, build_index, index_notes, search_notes
from noema.indexer.store import (
    DimensionMismatchError,
    IndexedChunk,
    SearchHit,
    VectorStore,
    normalize,
)

__all__ = [
    "DimensionMismatchError",
    "Embedder",
    "EmbeddingError",
    "EmbeddingProvider",
    "IndexBuildError",
    "IndexedChunk",
    "SearchHit",
    "VectorStore",
    "build_index",
    "index_notes",
    "normalize",
    "search_notes",
]
