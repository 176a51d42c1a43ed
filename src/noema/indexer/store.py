"""Vector store — in-memory chunk embeddings with exhaustive cosine search.

No persistence: a store lives for one indexing run and is discarded with
the process.  Embeddings are normalized to unit length on insert, so the
score of a search is a plain dot product with the normalized query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from noema.notes.models import Chunk

logger = logging.getLogger(__name__)


class DimensionMismatchError(ValueError):
    """Raised when a vector's length differs from the store's dimensionality."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"embedding dimension mismatch: expected {expected}, got {actual}")


@dataclass(frozen=True, slots=True)
class IndexedChunk:
    """A chunk paired with its normalized embedding."""

    chunk: Chunk
    embedding: np.ndarray


@dataclass(frozen=True, slots=True)
class SearchHit:
    """A search result: the matching chunk and its cosine similarity."""

    chunk: Chunk
    score: float


def normalize(vector: Sequence[float] | np.ndarray) -> np.ndarray:
    """Scale *vector* to unit length. Zero or invalid norms leave it unchanged."""
    arr = np.asarray(vector, dtype=np.float32)
    norm = float(np.linalg.norm(arr))
    if not norm > 0.0:
        return arr.copy()
    return arr / norm


class VectorStore:
    """Ordered, append-only collection of indexed chunks.

    Ties in search score keep insertion order.
    """

    def __init__(self) -> None:
        self._items: list[IndexedChunk] = []
        self._matrix: np.ndarray | None = None

    def add(self, chunk: Chunk, embedding: Sequence[float]) -> None:
        """Normalize *embedding* and append it with *chunk*."""
        vector = normalize(embedding)
        dims = self.dimensions
        if dims is not None and vector.shape[0] != dims:
            raise DimensionMismatchError(dims, vector.shape[0])
        self._items.append(IndexedChunk(chunk=chunk, embedding=vector))
        self._matrix = None

    def add_batch(self, chunks: Sequence[Chunk], embeddings: Sequence[Sequence[float]]) -> None:
        """Add chunks and embeddings pairwise, in order."""
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"add_batch length mismatch: {len(chunks)} chunks, {len(embeddings)} embeddings"
            )
        for chunk, embedding in zip(chunks, embeddings, strict=True):
            self.add(chunk, embedding)
        logger.debug("Added %d chunks (store size %d)", len(chunks), len(self._items))

    def search(self, query_embedding: Sequence[float], k: int) -> list[SearchHit]:
        """Return up to *k* chunks most similar to *query_embedding*.

        Scores are cosine similarities in [-1, 1], highest first.
        """
        if not self._items or len(query_embedding) == 0 or k <= 0:
            return []

        query = normalize(query_embedding)
        dims = self.dimensions
        if query.shape[0] != dims:
            raise DimensionMismatchError(dims, query.shape[0])  # type: ignore[arg-type]

        scores = self._embedding_matrix() @ query
        # Stable sort on the negated scores keeps insertion order among ties
        order = np.argsort(-scores, kind="stable")[:k]
        return [SearchHit(chunk=self._items[i].chunk, score=float(scores[i])) for i in order]

    def _embedding_matrix(self) -> np.ndarray:
        if self._matrix is None:
            self._matrix = np.vstack([item.embedding for item in self._items])
        return self._matrix

    @property
    def dimensions(self) -> int | None:
        """Embedding length shared by all entries, or None when empty."""
        if not self._items:
            return None
        return int(self._items[0].embedding.shape[0])

    @property
    def entries(self) -> list[IndexedChunk]:
        """Indexed chunks in insertion order."""
        return list(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def __len__(self) -> int:
        return len(self._items)
