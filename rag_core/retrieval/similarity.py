"""
Exact nearest-neighbour scoring over pre-normalised embeddings.

Query and corpus vectors are unit length, so the dot product is the cosine
similarity. No magnitudes are computed here; callers own normalisation.

Brute force is fine at the target scale (low thousands of chunks): the whole
corpus is scored with one matrix-vector product.
"""

from collections.abc import Sequence

import numpy as np

from rag_core.errors import InvalidInputError
from rag_core.logger import get_logger
from rag_core.retrieval.models import EmbeddedItem, SearchResult, SearchStats

logger = get_logger(__name__)


def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    """Similarity of two unit vectors."""
    if len(a) != len(b):
        raise InvalidInputError(
            f"Vector dimensions differ: {len(a)} vs {len(b)}"
        )
    return float(np.dot(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))


def score_corpus(
    query_vector: Sequence[float], corpus: Sequence[EmbeddedItem]
) -> np.ndarray:
    """Similarity of the query to every corpus item, in corpus order."""
    if not corpus:
        return np.zeros(0, dtype=np.float64)

    query = np.asarray(query_vector, dtype=np.float64)
    if query.ndim != 1 or query.size == 0:
        raise InvalidInputError("Query vector must be a non-empty 1-D vector")

    for item in corpus:
        if len(item.embedding) != query.size:
            raise InvalidInputError(
                f"Item {item.id!r} has dimension {len(item.embedding)}, "
                f"query has {query.size}"
            )

    matrix = np.asarray([item.embedding for item in corpus], dtype=np.float64)
    return matrix @ query


def find_top_k(
    query_vector: Sequence[float],
    corpus: Sequence[EmbeddedItem],
    k: int = 5,
) -> list[SearchResult]:
    """
    Top-k corpus items by similarity, best first.

    Equal scores keep corpus order. An empty corpus is a valid input and
    yields an empty list.
    """
    if not corpus:
        logger.info("empty_corpus")
        return []

    scores = score_corpus(query_vector, corpus)
    # stable sort on the negated scores keeps corpus order among ties
    order = np.argsort(-scores, kind="stable")[: max(k, 0)]

    results = [
        SearchResult(
            id=corpus[i].id,
            text=corpus[i].text,
            source=corpus[i].source,
            score=float(scores[i]),
            metadata=corpus[i].metadata,
        )
        for i in order
    ]
    logger.debug("top_k_found", corpus=len(corpus), k=k, returned=len(results))
    return results


def filter_by_min_score(
    results: Sequence[SearchResult], threshold: float = 0.3
) -> list[SearchResult]:
    return [r for r in results if r.score >= threshold]


def group_by_source(
    results: Sequence[SearchResult],
) -> dict[str, list[SearchResult]]:
    """Sources in first-seen order, results in input order within a source."""
    groups: dict[str, list[SearchResult]] = {}
    for r in results:
        groups.setdefault(r.source, []).append(r)
    return groups


def compute_stats(results: Sequence[SearchResult]) -> SearchStats:
    if not results:
        return SearchStats()

    scores = [r.score for r in results]
    return SearchStats(
        count=len(scores),
        avg_score=round(sum(scores) / len(scores), 4),
        max_score=round(max(scores), 4),
        min_score=round(min(scores), 4),
    )
