"""
Confidence tiers for a retrieved evidence set.

The caller uses the tier to decide between answering from retrieved
evidence and falling back to a model-only answer.

    empty                           -> none   (0.0)
    max > 0.7 and avg > 0.5         -> high   (0.9)
    max > 0.5 and avg > 0.3         -> medium (0.6)
    otherwise                       -> low    (0.3)
"""

from collections.abc import Sequence

from rag_core.logger import get_logger
from rag_core.retrieval.models import (
    QualityAssessment,
    QualityTier,
    RankedResult,
    SearchResult,
)

logger = get_logger(__name__)

RECOMMENDATIONS = {
    QualityTier.NONE: "No relevant information found. The model will answer from general knowledge.",
    QualityTier.LOW: "Low relevance. Consider answering without retrieved context or refining the query.",
    QualityTier.MEDIUM: "Partially relevant information found. The answer may be incomplete.",
    QualityTier.HIGH: "Highly relevant information found. The answer should be accurate.",
}

CONFIDENCE = {
    QualityTier.NONE: 0.0,
    QualityTier.LOW: 0.3,
    QualityTier.MEDIUM: 0.6,
    QualityTier.HIGH: 0.9,
}


def classify(max_score: float, avg_score: float) -> QualityTier:
    if max_score > 0.7 and avg_score > 0.5:
        return QualityTier.HIGH
    if max_score > 0.5 and avg_score > 0.3:
        return QualityTier.MEDIUM
    return QualityTier.LOW


def evaluate_context_quality(
    results: Sequence[SearchResult],
    use_rerank_score: bool = False,
) -> QualityAssessment:
    """
    Classify a result set by its score distribution.

    Reads the similarity score unless use_rerank_score is set, in which case
    ranked results contribute their rerank_score. Order does not matter.
    """
    if not results:
        return QualityAssessment(
            quality=QualityTier.NONE,
            confidence=CONFIDENCE[QualityTier.NONE],
            recommendation=RECOMMENDATIONS[QualityTier.NONE],
        )

    scores = [
        r.rerank_score if use_rerank_score and isinstance(r, RankedResult) else r.score
        for r in results
    ]
    avg_score = sum(scores) / len(scores)
    max_score = max(scores)
    tier = classify(max_score, avg_score)

    logger.debug("quality_evaluated", quality=tier.value, avg=avg_score, max=max_score)
    return QualityAssessment(
        quality=tier,
        confidence=CONFIDENCE[tier],
        recommendation=RECOMMENDATIONS[tier],
        avg_score=round(avg_score, 4),
        max_score=round(max_score, 4),
        total_chunks=len(results),
    )


def should_use_context(assessment: QualityAssessment) -> bool:
    return assessment.quality is not QualityTier.NONE
