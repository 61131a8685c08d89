import pytest

from rag_core.errors import InvalidInputError
from rag_core.retrieval.similarity import (
    compute_stats,
    dot_product,
    filter_by_min_score,
    find_top_k,
    group_by_source,
    score_corpus,
)


class TestDotProduct:
    def test_identical_unit_vectors(self) -> None:
        assert dot_product([0.6, 0.8], [0.6, 0.8]) == pytest.approx(1.0, abs=1e-6)

    def test_orthogonal_vectors(self) -> None:
        assert dot_product([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0, abs=1e-6)

    def test_opposite_vectors(self) -> None:
        assert dot_product([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_dimension_mismatch_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            dot_product([1.0, 0.0], [1.0, 0.0, 0.0])


def test_score_corpus_rejects_mismatched_item(make_item) -> None:
    corpus = [make_item("a", 0.5)]
    with pytest.raises(InvalidInputError):
        score_corpus([1.0, 0.0, 0.0], corpus)


def test_find_top_k_orders_by_score(make_item) -> None:
    corpus = [make_item("b", 0.6), make_item("c", 0.2), make_item("a", 0.9)]

    results = find_top_k([1.0, 0.0], corpus, k=2)

    assert [r.id for r in results] == ["a", "b"]
    assert results[0].score == pytest.approx(0.9)
    assert results[1].score == pytest.approx(0.6)


@pytest.mark.parametrize("k", [1, 2, 3, 10])
def test_find_top_k_length_and_sortedness(make_item, k) -> None:
    corpus = [make_item("x", 0.1), make_item("y", 0.7), make_item("z", 0.4)]

    results = find_top_k([1.0, 0.0], corpus, k=k)

    assert len(results) == min(k, len(corpus))
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_find_top_k_ties_keep_corpus_order(make_item) -> None:
    corpus = [make_item(id, 0.5) for id in ("first", "second", "third")]

    results = find_top_k([1.0, 0.0], corpus, k=3)

    assert [r.id for r in results] == ["first", "second", "third"]


def test_find_top_k_carries_item_fields(make_item) -> None:
    corpus = [make_item("a", 0.9, source="guide.md", text="hello", position=0)]

    [result] = find_top_k([1.0, 0.0], corpus, k=1)

    assert result.source == "guide.md"
    assert result.text == "hello"
    assert result.metadata.position == 0


def test_empty_corpus_returns_nothing() -> None:
    assert find_top_k([1.0, 0.0], [], k=5) == []


class TestFilterByMinScore:
    def test_keeps_both_above_low_threshold(self, make_item) -> None:
        corpus = [make_item("a", 0.9), make_item("b", 0.6), make_item("c", 0.2)]
        top = find_top_k([1.0, 0.0], corpus, k=2)

        assert [r.id for r in filter_by_min_score(top, 0.3)] == ["a", "b"]

    def test_high_threshold_keeps_only_best(self, make_item) -> None:
        corpus = [make_item("a", 0.9), make_item("b", 0.6), make_item("c", 0.2)]
        top = find_top_k([1.0, 0.0], corpus, k=2)

        assert [r.id for r in filter_by_min_score(top, 0.7)] == ["a"]

    def test_threshold_is_inclusive(self, make_result) -> None:
        results = [make_result("a", 0.5), make_result("b", 0.49)]

        assert [r.id for r in filter_by_min_score(results, 0.5)] == ["a"]

    def test_subset_without_reordering(self, make_result) -> None:
        results = [make_result("a", 0.2), make_result("b", 0.8), make_result("c", 0.4)]

        kept = filter_by_min_score(results, 0.3)

        assert [r.id for r in kept] == ["b", "c"]
        assert all(r.score >= 0.3 for r in kept)


def test_compute_stats(make_result) -> None:
    stats = compute_stats([make_result("a", 0.9), make_result("b", 0.5)])

    assert stats.count == 2
    assert stats.avg_score == pytest.approx(0.7)
    assert stats.max_score == pytest.approx(0.9)
    assert stats.min_score == pytest.approx(0.5)


def test_compute_stats_empty_is_all_zero() -> None:
    stats = compute_stats([])

    assert (stats.count, stats.avg_score, stats.max_score, stats.min_score) == (0, 0.0, 0.0, 0.0)


def test_group_by_source_preserves_order(make_result) -> None:
    results = [
        make_result("a1", 0.9, source="a.md"),
        make_result("b1", 0.8, source="b.md"),
        make_result("a2", 0.7, source="a.md"),
    ]

    groups = group_by_source(results)

    assert list(groups) == ["a.md", "b.md"]
    assert [r.id for r in groups["a.md"]] == ["a1", "a2"]
