"""Shared factories for hand-built corpus items and results."""

import math

import pytest

from rag_core.retrieval.models import (
    ChunkMetadata,
    EmbeddedItem,
    RankedResult,
    RerankMethod,
    SearchResult,
)


def unit_vector(similarity: float) -> list[float]:
    """2-D unit vector whose dot product with [1, 0] equals `similarity`."""
    return [similarity, math.sqrt(1.0 - similarity**2)]


@pytest.fixture
def make_item():
    def _make(id, similarity, source="doc.md", text=None, position=None):
        return EmbeddedItem(
            id=id,
            text=text or f"chunk {id}",
            source=source,
            embedding=unit_vector(similarity),
            metadata=ChunkMetadata(position=position, total_chunks=10)
            if position is not None
            else None,
        )

    return _make


@pytest.fixture
def make_result():
    def _make(id, score, source="doc.md", text=None, position=None):
        return SearchResult(
            id=id,
            text=text or f"chunk {id}",
            source=source,
            score=score,
            metadata=ChunkMetadata(position=position, total_chunks=10)
            if position is not None
            else None,
        )

    return _make


@pytest.fixture
def make_ranked():
    def _make(id, score, rerank_score, source="doc.md", text=None, boost_reason=None, rank=1):
        return RankedResult(
            id=id,
            text=text or f"chunk {id}",
            source=source,
            score=score,
            rerank_score=rerank_score,
            rerank_method=RerankMethod.HYBRID,
            original_rank=rank,
            boost_reason=boost_reason,
        )

    return _make
