"""Reranking audit records and method comparison summaries."""

from collections.abc import Sequence

import pandas as pd

from rag_core.retrieval.models import (
    ComparisonSummary,
    MethodComparison,
    MethodSummary,
    QualityDistribution,
    QualityThresholds,
    RankedResult,
    RankEntry,
    RankingAnalysis,
    RerankedEntry,
    RerankerConfig,
    RerankingStats,
    SearchResult,
)


def analyze_quality(
    results: Sequence[RankedResult], thresholds: QualityThresholds
) -> QualityDistribution:
    """Count results per rerank score tier. Below `low` is not counted."""
    high = medium = low = 0
    for r in results:
        if r.rerank_score >= thresholds.high:
            high += 1
        elif r.rerank_score >= thresholds.medium:
            medium += 1
        elif r.rerank_score >= thresholds.low:
            low += 1
    return QualityDistribution(high=high, medium=medium, low=low)


def _avg_improvement(
    original: Sequence[SearchResult], reranked: Sequence[RankedResult]
) -> float:
    if not reranked:
        return 0.0
    original_scores = {r.id: r.score for r in original}
    deltas = [
        r.rerank_score - original_scores[r.id] if r.id in original_scores else 0.0
        for r in reranked
    ]
    return sum(deltas) / len(deltas)


def create_reranking_stats(
    original: Sequence[SearchResult],
    reranked: Sequence[RankedResult],
    rerank_time_ms: float,
    config: RerankerConfig,
) -> RerankingStats:
    return RerankingStats(
        original_results=[
            RankEntry(id=r.id, score=r.score, rank=i)
            for i, r in enumerate(original, start=1)
        ],
        reranked_results=[
            RerankedEntry(id=r.id, score=r.score, rerank_score=r.rerank_score, rank=i)
            for i, r in enumerate(reranked, start=1)
        ],
        filtered_count=len(original) - len(reranked),
        avg_score_improvement=round(_avg_improvement(original, reranked), 4),
        rerank_method=config.rerank_method,
        rerank_time_ms=round(rerank_time_ms, 3),
        quality_distribution=analyze_quality(reranked, config.quality_thresholds),
    )


def analyze_ranking_quality(
    original: Sequence[SearchResult], reranked: Sequence[RankedResult]
) -> RankingAnalysis:
    """How much a rerank pass moved things: score delta, top-1 change, shifts."""
    top_changed = (original[0].id if original else None) != (
        reranked[0].id if reranked else None
    )

    old_positions = {}
    for i, r in enumerate(original):
        old_positions.setdefault(r.id, i)
    shifts = [
        abs(old_positions[r.id] - new_index)
        for new_index, r in enumerate(reranked)
        if r.id in old_positions
    ]
    avg_shift = sum(shifts) / len(shifts) if shifts else 0.0

    return RankingAnalysis(
        improvement=round(_avg_improvement(original, reranked), 4),
        top_changed=top_changed,
        avg_position_change=round(avg_shift, 2),
    )


def summarize_comparison(
    comparison: MethodComparison,
    thresholds: QualityThresholds | None = None,
    top_n: int = 5,
) -> ComparisonSummary:
    """Per-method tier distribution and mean rerank score, plus the winner."""
    thresholds = thresholds or QualityThresholds()

    methods = {}
    for method, ranked in comparison.by_method().items():
        avg = sum(r.rerank_score for r in ranked) / len(ranked) if ranked else 0.0
        methods[method] = MethodSummary(
            results=ranked[:top_n],
            quality=analyze_quality(ranked, thresholds),
            avg_score=round(avg, 4),
        )

    # first method wins ties, so the baseline stays best unless beaten
    best = None
    for method, summary in methods.items():
        if best is None or summary.avg_score > methods[best].avg_score:
            best = method

    return ComparisonSummary(
        best_method=best,
        methods=methods,
        total_results=len(comparison.original),
    )


def comparison_table(comparison: MethodComparison, top_n: int = 5) -> pd.DataFrame:
    """Rank-by-rank side-by-side view of the four methods."""
    rows = []
    depth = min(top_n, len(comparison.original))
    for i in range(depth):
        row: dict[str, object] = {"rank": i + 1}
        for method, ranked in comparison.by_method().items():
            r = ranked[i] if i < len(ranked) else None
            prefix = method.value
            row[f"{prefix}_id"] = r.id if r else None
            row[f"{prefix}_score"] = r.rerank_score if r else 0.0
            row[f"{prefix}_source"] = r.source if r else None
            row[f"{prefix}_boost"] = r.boost_reason if r else None
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=["rank"]).set_index("rank")
    return pd.DataFrame(rows).set_index("rank")
