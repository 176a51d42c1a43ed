"""Tests for the in-memory VectorStore — normalization, scoring, ranking."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pytest

from noema.indexer.store import DimensionMismatchError, VectorStore, normalize
from noema.notes.models import Chunk

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _chunk(text: str, index: int = 0, path: str = "note.md") -> Chunk:
    return Chunk(text=text, note_path=Path(path), index=index)


@pytest.fixture
def store() -> VectorStore:
    s = VectorStore()
    s.add_batch(
        [_chunk("east"), _chunk("north"), _chunk("north-east")],
        [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]],
    )
    return s


# ---------------------------------------------------------------------------
# Tests — normalize
# ---------------------------------------------------------------------------


class TestNormalize:
    def test_unit_length(self) -> None:
        v = normalize([3.0, 4.0])
        assert float(np.linalg.norm(v)) == pytest.approx(1.0)
        assert v.tolist() == pytest.approx([0.6, 0.8])

    def test_zero_vector_unchanged(self) -> None:
        v = normalize([0.0, 0.0, 0.0])
        assert v.tolist() == [0.0, 0.0, 0.0]
        assert not np.isnan(v).any()

    def test_empty_vector(self) -> None:
        assert normalize([]).shape == (0,)


# ---------------------------------------------------------------------------
# Tests — add / add_batch
# ---------------------------------------------------------------------------


class TestAdd:
    def test_new_store_is_empty(self) -> None:
        s = VectorStore()
        assert len(s) == 0
        assert s.is_empty
        assert s.dimensions is None

    def test_add_normalizes(self) -> None:
        s = VectorStore()
        s.add(_chunk("a"), [10.0, 0.0, 0.0])
        (entry,) = s.entries
        assert entry.embedding.tolist() == pytest.approx([1.0, 0.0, 0.0])
        assert s.dimensions == 3

    def test_zero_embedding_stored_as_is(self) -> None:
        s = VectorStore()
        s.add(_chunk("zero"), [0.0, 0.0])
        assert s.entries[0].embedding.tolist() == [0.0, 0.0]

    def test_no_dedup(self) -> None:
        s = VectorStore()
        c = _chunk("same")
        s.add(c, [1.0, 0.0])
        s.add(c, [1.0, 0.0])
        assert len(s) == 2

    def test_batch_preserves_order(self, store: VectorStore) -> None:
        assert [e.chunk.text for e in store.entries] == ["east", "north", "north-east"]
        assert len(store) == 3
        assert not store.is_empty

    def test_batch_length_mismatch(self) -> None:
        s = VectorStore()
        with pytest.raises(ValueError, match="length mismatch"):
            s.add_batch([_chunk("a"), _chunk("b")], [[1.0, 0.0]])

    def test_dimension_mismatch_on_add(self, store: VectorStore) -> None:
        with pytest.raises(DimensionMismatchError) as exc:
            store.add(_chunk("3d"), [1.0, 0.0, 0.0])
        assert exc.value.expected == 2
        assert exc.value.actual == 3
        assert len(store) == 3


# ---------------------------------------------------------------------------
# Tests — search
# ---------------------------------------------------------------------------


class TestSearch:
    def test_orthogonal_top1(self) -> None:
        s = VectorStore()
        s.add_batch([_chunk("x"), _chunk("y")], [[1.0, 0.0], [0.0, 1.0]])
        hits = s.search([1.0, 0.0], k=1)
        assert len(hits) == 1
        assert hits[0].chunk.text == "x"
        assert hits[0].score == pytest.approx(1.0, abs=1e-6)

    def test_identical_vector_scores_one(self) -> None:
        s = VectorStore()
        s.add(_chunk("a"), [0.3, -1.2, 4.5, 0.01])
        (hit,) = s.search([0.3, -1.2, 4.5, 0.01], k=5)
        assert hit.score == pytest.approx(1.0, abs=1e-5)

    def test_query_magnitude_irrelevant(self, store: VectorStore) -> None:
        small = store.search([1.0, 0.0], k=3)
        large = store.search([250.0, 0.0], k=3)
        assert [h.chunk.text for h in small] == [h.chunk.text for h in large]
        assert [h.score for h in small] == pytest.approx([h.score for h in large])

    def test_descending_scores(self, store: VectorStore) -> None:
        hits = store.search([1.0, 0.2], k=3)
        assert [h.chunk.text for h in hits] == ["east", "north-east", "north"]
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)
        assert scores[1] == pytest.approx((1.0 + 0.2) / (math.sqrt(2) * math.sqrt(1.04)), abs=1e-5)

    def test_negative_similarity(self) -> None:
        s = VectorStore()
        s.add(_chunk("opposite"), [-1.0, 0.0])
        (hit,) = s.search([1.0, 0.0], k=1)
        assert hit.score == pytest.approx(-1.0)

    def test_ties_keep_insertion_order(self) -> None:
        s = VectorStore()
        s.add_batch(
            [_chunk("first", 0), _chunk("second", 1), _chunk("third", 2)],
            [[1.0, 0.0], [2.0, 0.0], [0.5, 0.0]],
        )
        hits = s.search([1.0, 0.0], k=3)
        assert [h.chunk.text for h in hits] == ["first", "second", "third"]

    def test_k_limits_results(self, store: VectorStore) -> None:
        assert len(store.search([1.0, 0.0], k=2)) == 2

    def test_k_larger_than_store(self, store: VectorStore) -> None:
        assert len(store.search([1.0, 0.0], k=10)) == 3

    def test_k_zero(self, store: VectorStore) -> None:
        assert store.search([1.0, 0.0], k=0) == []

    def test_empty_store(self) -> None:
        assert VectorStore().search([1.0, 0.0], k=5) == []

    def test_empty_query(self, store: VectorStore) -> None:
        assert store.search([], k=5) == []

    def test_zero_query_scores_zero(self, store: VectorStore) -> None:
        hits = store.search([0.0, 0.0], k=3)
        assert [h.score for h in hits] == [0.0, 0.0, 0.0]

    def test_zero_embedding_entry_scores_zero(self) -> None:
        s = VectorStore()
        s.add_batch([_chunk("zero"), _chunk("real")], [[0.0, 0.0], [0.0, 1.0]])
        hits = s.search([0.0, 1.0], k=2)
        assert hits[0].chunk.text == "real"
        assert hits[1].score == 0.0

    def test_query_dimension_mismatch(self, store: VectorStore) -> None:
        with pytest.raises(DimensionMismatchError):
            store.search([1.0, 0.0, 0.0], k=1)

    def test_search_after_more_adds(self, store: VectorStore) -> None:
        store.search([1.0, 0.0], k=1)
        store.add(_chunk("west"), [-1.0, 0.0])
        hits = store.search([-1.0, 0.0], k=1)
        assert hits[0].chunk.text == "west"
