"""
Rule-based reranking.

Re-scores retrieved candidates so that ordering errors of pure vector
similarity can be corrected. Every strategy is a pure function of
(query, candidates, policy) and explains its boosts in boost_reason.

Methods:
    none           - passthrough, rerank_score = similarity
    keyword-boost  - 0.7 * similarity + 0.3 * query keyword overlap
    semantic-deep  - similarity + capped heuristic boosts (position, length,
                     specific data, direct query word matches)
    hybrid         - equal-weight average of keyword-boost and semantic-deep

Reranking reorders and rescales, it never adds candidates.
"""

import re
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from rag_core.logger import get_logger
from rag_core.retrieval.models import (
    MethodComparison,
    RankedResult,
    RerankerConfig,
    RerankingStats,
    RerankMethod,
    SearchResult,
    SemanticBoostPolicy,
)
from rag_core.retrieval.stats import create_reranking_stats

logger = get_logger(__name__)

STOP_WORDS = frozenset(
    {
        # english
        "the", "is", "at", "which", "on", "a", "an", "as", "are", "was", "were",
        # russian
        "и", "в", "на", "с", "по", "для", "от", "до", "из", "к", "о", "у",
        "это", "этот", "эта", "быть", "был", "была", "были", "есть",
    }
)
MIN_KEYWORD_LENGTH = 3

KEYWORD_SIMILARITY_WEIGHT = 0.7
KEYWORD_OVERLAP_WEIGHT = 0.3
HYBRID_KEYWORD_WEIGHT = 0.5
HYBRID_SEMANTIC_WEIGHT = 0.5

DEFAULT_BOOST_POLICY = SemanticBoostPolicy()

_NON_WORD = re.compile(r"[^\w\s]")
# digit runs, or two capitalised words in a row (names, titles, dates)
_SPECIFIC_DATA = re.compile(r"\d+|[A-ZА-ЯЁ][a-zа-яё]+\s+[A-ZА-ЯЁ][a-zа-яё]+")

Strategy = Callable[
    [str, Sequence[SearchResult], SemanticBoostPolicy], list[RankedResult]
]


def extract_keywords(text: str) -> list[str]:
    """Unique lowercase word tokens, stop words and short tokens dropped."""
    words = _NON_WORD.sub(" ", text.lower()).split()
    return list(
        dict.fromkeys(
            w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS
        )
    )


def _ranked(
    result: SearchResult,
    score: float,
    method: RerankMethod,
    original_rank: int,
    boost_reason: str | None = None,
) -> RankedResult:
    return RankedResult(
        id=result.id,
        text=result.text,
        source=result.source,
        score=result.score,
        metadata=result.metadata,
        rerank_score=round(score, 4),
        rerank_method=method,
        original_rank=original_rank,
        boost_reason=boost_reason,
    )


def _sorted(ranked: list[RankedResult]) -> list[RankedResult]:
    # sorted() is stable: equal scores keep input order
    return sorted(ranked, key=lambda r: r.rerank_score, reverse=True)


def rerank_passthrough(
    query: str,
    results: Sequence[SearchResult],
    policy: SemanticBoostPolicy = DEFAULT_BOOST_POLICY,
) -> list[RankedResult]:
    return _sorted(
        [
            _ranked(r, r.score, RerankMethod.NONE, i)
            for i, r in enumerate(results, start=1)
        ]
    )


def rerank_by_keywords(
    query: str,
    results: Sequence[SearchResult],
    policy: SemanticBoostPolicy = DEFAULT_BOOST_POLICY,
) -> list[RankedResult]:
    """
    Boost candidates sharing keywords with the query.

    A query keyword matches when it contains, or is contained in, any
    document keyword, which tolerates plural and suffix variants.
    """
    query_keywords = extract_keywords(query)
    logger.debug("keyword_rerank", keywords=query_keywords)

    ranked: list[RankedResult] = []
    for index, result in enumerate(results, start=1):
        doc_keywords = extract_keywords(result.text)
        matching = [
            kw
            for kw in query_keywords
            if any(dk in kw or kw in dk for dk in doc_keywords)
        ]
        overlap = len(matching) / max(len(query_keywords), 1)
        score = KEYWORD_SIMILARITY_WEIGHT * result.score + KEYWORD_OVERLAP_WEIGHT * overlap
        reason = f"{len(matching)} keyword matches" if matching else None
        ranked.append(_ranked(result, score, RerankMethod.KEYWORD_BOOST, index, reason))

    return _sorted(ranked)


def rerank_by_semantic(
    query: str,
    results: Sequence[SearchResult],
    policy: SemanticBoostPolicy = DEFAULT_BOOST_POLICY,
) -> list[RankedResult]:
    """Add the policy's independent boosts to the similarity, capped."""
    query_words = query.lower().split()

    ranked: list[RankedResult] = []
    for index, result in enumerate(results, start=1):
        text_lower = result.text.lower()
        factors: list[str] = []
        boost = 0.0

        if result.metadata is not None and result.metadata.position == 0:
            boost += policy.first_chunk_boost
            factors.append("first chunk")

        if policy.length_band_min <= len(result.text) <= policy.length_band_max:
            boost += policy.length_boost
            factors.append("optimal length")

        if _SPECIFIC_DATA.search(result.text):
            boost += policy.specific_data_boost
            factors.append("specific data")

        direct_matches = sum(
            1
            for word in query_words
            if len(word) >= policy.direct_match_min_word_length and word in text_lower
        )
        if direct_matches:
            boost += policy.direct_match_boost * min(direct_matches, policy.direct_match_cap)
            factors.append(f"{direct_matches} direct matches")

        score = min(result.score + boost, policy.score_cap)
        reason = ", ".join(factors) if factors else None
        ranked.append(_ranked(result, score, RerankMethod.SEMANTIC_DEEP, index, reason))

    return _sorted(ranked)


def combine_hybrid(
    results: Sequence[SearchResult],
    keyword: Sequence[RankedResult],
    semantic: Sequence[RankedResult],
) -> list[RankedResult]:
    """
    Average keyword and semantic scores per candidate, matched by id.

    A candidate missing from either pass uses its similarity score for that
    half instead.
    """
    keyword_by_id = {r.id: r for r in keyword}
    semantic_by_id = {r.id: r for r in semantic}

    ranked: list[RankedResult] = []
    for index, result in enumerate(results, start=1):
        kw = keyword_by_id.get(result.id)
        sem = semantic_by_id.get(result.id)
        kw_score = kw.rerank_score if kw is not None else result.score
        sem_score = sem.rerank_score if sem is not None else result.score

        reasons = []
        if kw is not None and kw.boost_reason:
            reasons.append(f"keyword: {kw.boost_reason}")
        if sem is not None and sem.boost_reason:
            reasons.append(f"semantic: {sem.boost_reason}")

        score = HYBRID_KEYWORD_WEIGHT * kw_score + HYBRID_SEMANTIC_WEIGHT * sem_score
        ranked.append(
            _ranked(
                result,
                score,
                RerankMethod.HYBRID,
                index,
                "; ".join(reasons) if reasons else None,
            )
        )

    return _sorted(ranked)


def rerank_hybrid(
    query: str,
    results: Sequence[SearchResult],
    policy: SemanticBoostPolicy = DEFAULT_BOOST_POLICY,
) -> list[RankedResult]:
    return combine_hybrid(
        results,
        rerank_by_keywords(query, results, policy),
        rerank_by_semantic(query, results, policy),
    )


STRATEGIES: dict[RerankMethod, Strategy] = {
    RerankMethod.NONE: rerank_passthrough,
    RerankMethod.KEYWORD_BOOST: rerank_by_keywords,
    RerankMethod.SEMANTIC_DEEP: rerank_by_semantic,
    RerankMethod.HYBRID: rerank_hybrid,
}


def rerank_results(
    query: str,
    results: Sequence[SearchResult],
    config: RerankerConfig | None = None,
    policy: SemanticBoostPolicy | None = None,
) -> list[RankedResult]:
    """Re-score candidates with the configured method. Best first."""
    config = config or RerankerConfig()
    if not results:
        return []

    strategy = STRATEGIES[config.rerank_method]
    ranked = strategy(query, results, policy or DEFAULT_BOOST_POLICY)

    logger.info(
        "rerank_done",
        method=config.rerank_method.value,
        input=len(results),
        output=len(ranked),
    )
    return ranked


def filter_by_quality(
    results: Sequence[RankedResult], threshold: float
) -> list[RankedResult]:
    filtered = [r for r in results if r.rerank_score >= threshold]
    logger.debug(
        "rerank_filtered", input=len(results), output=len(filtered), threshold=threshold
    )
    return filtered


def get_top_ranked(
    results: Sequence[RankedResult],
    top_k: int,
    min_score: float | None = None,
) -> list[RankedResult]:
    if min_score is not None:
        results = [r for r in results if r.rerank_score >= min_score]
    return list(results[:top_k])


def run_rerank(
    query: str,
    results: Sequence[SearchResult],
    config: RerankerConfig | None = None,
    policy: SemanticBoostPolicy | None = None,
) -> tuple[list[RankedResult], RerankingStats]:
    """Rerank, drop candidates below min_rerank_score, keep final_top_k."""
    config = config or RerankerConfig()
    started = time.perf_counter()

    ranked = rerank_results(query, results, config, policy)
    kept = filter_by_quality(ranked, config.min_rerank_score)
    final = get_top_ranked(kept, config.final_top_k)

    elapsed_ms = (time.perf_counter() - started) * 1000
    stats = create_reranking_stats(results, final, elapsed_ms, config)
    logger.info(
        "rerank_pipeline_done",
        candidates=len(results),
        kept=len(final),
        avg_improvement=stats.avg_score_improvement,
    )
    return final, stats


def compare_ranking_methods(
    query: str,
    results: Sequence[SearchResult],
    policy: SemanticBoostPolicy | None = None,
) -> MethodComparison:
    """
    Run every method over the same candidates.

    The passes share only immutable inputs, so they run side by side on a
    thread pool.
    """
    policy = policy or DEFAULT_BOOST_POLICY
    candidates = list(results)

    with ThreadPoolExecutor(max_workers=len(STRATEGIES)) as pool:
        futures = {
            method: pool.submit(strategy, query, candidates, policy)
            for method, strategy in STRATEGIES.items()
        }
        ranked = {method: future.result() for method, future in futures.items()}

    logger.info("methods_compared", candidates=len(candidates))
    return MethodComparison(
        original=candidates,
        none=ranked[RerankMethod.NONE],
        keyword=ranked[RerankMethod.KEYWORD_BOOST],
        semantic=ranked[RerankMethod.SEMANTIC_DEEP],
        hybrid=ranked[RerankMethod.HYBRID],
    )
