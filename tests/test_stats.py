import pytest

from rag_core.retrieval.models import QualityThresholds, RerankerConfig, RerankMethod
from rag_core.retrieval.reranker import compare_ranking_methods
from rag_core.retrieval.stats import (
    analyze_quality,
    analyze_ranking_quality,
    comparison_table,
    create_reranking_stats,
    summarize_comparison,
)


def test_analyze_quality_buckets(make_ranked) -> None:
    ranked = [
        make_ranked("a", 0.5, 0.9),
        make_ranked("b", 0.5, 0.7),
        make_ranked("c", 0.5, 0.6),
        make_ranked("d", 0.5, 0.3),
        make_ranked("e", 0.5, 0.1),
    ]

    dist = analyze_quality(ranked, QualityThresholds())

    assert (dist.high, dist.medium, dist.low) == (2, 1, 1)


def test_create_reranking_stats(make_result, make_ranked) -> None:
    original = [make_result("a", 0.5), make_result("b", 0.4), make_result("c", 0.2)]
    reranked = [make_ranked("b", 0.4, 0.6), make_ranked("a", 0.5, 0.6)]

    stats = create_reranking_stats(original, reranked, 1.5, RerankerConfig())

    assert stats.filtered_count == 1
    assert stats.avg_score_improvement == pytest.approx(0.15)
    assert [e.rank for e in stats.reranked_results] == [1, 2]
    assert stats.reranked_results[0].id == "b"
    assert stats.rerank_method is RerankMethod.HYBRID
    assert stats.quality_distribution.medium == 2


def test_create_reranking_stats_with_nothing_kept(make_result) -> None:
    stats = create_reranking_stats([make_result("a", 0.5)], [], 0.0, RerankerConfig())

    assert stats.filtered_count == 1
    assert stats.avg_score_improvement == 0.0


def test_analyze_ranking_quality(make_result, make_ranked) -> None:
    original = [make_result("a", 0.6), make_result("b", 0.5), make_result("c", 0.4)]
    reranked = [make_ranked("c", 0.4, 0.7), make_ranked("a", 0.6, 0.6), make_ranked("b", 0.5, 0.5)]

    analysis = analyze_ranking_quality(original, reranked)

    assert analysis.top_changed is True
    # c moved 2 -> 0, a 0 -> 1, b 1 -> 2
    assert analysis.avg_position_change == pytest.approx(4 / 3, abs=0.01)
    assert analysis.improvement == pytest.approx(0.1)


def test_analyze_ranking_quality_unchanged(make_result, make_ranked) -> None:
    original = [make_result("a", 0.6)]
    reranked = [make_ranked("a", 0.6, 0.6)]

    analysis = analyze_ranking_quality(original, reranked)

    assert analysis.top_changed is False
    assert analysis.avg_position_change == 0.0


def test_summarize_comparison_picks_highest_average(make_result) -> None:
    results = [
        make_result("a", 0.6, text="PostgreSQL database is used in this project", position=0),
        make_result("b", 0.5, text="Redis cache layer"),
    ]
    comparison = compare_ranking_methods("database used project", results)

    summary = summarize_comparison(comparison, top_n=1)

    assert summary.total_results == 2
    assert set(summary.methods) == set(RerankMethod)
    averages = {m: s.avg_score for m, s in summary.methods.items()}
    assert summary.best_method is max(averages, key=averages.get)
    assert summary.best_method is not RerankMethod.NONE
    assert all(len(s.results) == 1 for s in summary.methods.values())


def test_summarize_comparison_without_candidates() -> None:
    summary = summarize_comparison(compare_ranking_methods("q", []))

    assert summary.total_results == 0
    assert summary.best_method is RerankMethod.NONE


def test_comparison_table_shape(make_result) -> None:
    results = [make_result(str(i), 0.9 - i * 0.1) for i in range(7)]
    comparison = compare_ranking_methods("q", results)

    table = comparison_table(comparison, top_n=5)

    assert list(table.index) == [1, 2, 3, 4, 5]
    assert "hybrid_score" in table.columns
    assert "keyword-boost_boost" in table.columns
    assert table.loc[1, "none_id"] == "0"
