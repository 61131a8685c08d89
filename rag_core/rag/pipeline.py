"""
Retrieval-augmented answering.

Pipeline:
    1. Embed the query (injected capability)
    2. Exact top-k over the corpus, wider pull when reranking
    3. Drop candidates below min_score
    4. Optional rerank -> drop below min_rerank_score -> keep final_top_k
    5. Quality tier of what is left
    6. Budget-pack the context
    7. Generate (injected capability) with the recent conversation turns,
       falling back to a no-context answer when there is no evidence

"Nothing found" is reported through RetrievalStatus, never raised.
"""

import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from rag_core.config.settings import settings
from rag_core.errors import GenerationError, InvalidInputError
from rag_core.logger import get_logger
from rag_core.rag.models import (
    AnswerMode,
    GenerationResult,
    ModeComparison,
    RAGAnswer,
    RetrievalOutcome,
    RetrievalStatus,
    SearchOutcome,
)
from rag_core.retrieval.context import (
    assemble_context,
    assemble_ranked_context,
    create_sources_summary,
    extract_sources_info,
)
from rag_core.retrieval.models import (
    AssembledContext,
    ComparisonSummary,
    EmbeddedItem,
    MethodComparison,
    QualityTier,
    RetrievalOptions,
    SemanticBoostPolicy,
)
from rag_core.retrieval.quality import evaluate_context_quality, should_use_context
from rag_core.retrieval.reranker import compare_ranking_methods, run_rerank
from rag_core.retrieval.similarity import compute_stats, filter_by_min_score, find_top_k
from rag_core.retrieval.stats import analyze_ranking_quality, summarize_comparison

logger = get_logger(__name__)

EmbedFn = Callable[[str], Sequence[float]]
GenerateFn = Callable[[str, str | None, list[dict] | None], GenerationResult]

MODE_RECOMMENDATIONS = {
    QualityTier.HIGH: "Retrieved context clearly improved the answer. Use RAG for this kind of question.",
    QualityTier.MEDIUM: "Retrieved context partly helped. Compare both answers.",
    QualityTier.LOW: "Retrieved context did not help. Answer general questions without RAG.",
    QualityTier.NONE: "Retrieved context did not help. Answer general questions without RAG.",
}


def _check_query(query: str) -> None:
    if not query or not query.strip():
        raise InvalidInputError("Query text must not be empty")


class RAGPipeline:
    def __init__(
        self,
        corpus: Sequence[EmbeddedItem],
        embed: EmbedFn,
        generate: GenerateFn | None = None,
        boost_policy: SemanticBoostPolicy | None = None,
    ):
        self.corpus = tuple(corpus)
        self.embed = embed
        self.generate = generate
        self.boost_policy = boost_policy

    def search(
        self,
        query: str,
        top_k: int | None = None,
        min_score: float | None = None,
    ) -> SearchOutcome:
        """Top-k above min_score with score stats. No reranking, no context."""
        _check_query(query)
        options = settings.retrieval_options(top_k=top_k, min_score=min_score)
        started = time.perf_counter()

        if not self.corpus:
            logger.warning("search_empty_corpus")
            return SearchOutcome(
                query=query,
                status=RetrievalStatus.EMPTY_CORPUS,
                top_k=options.top_k,
                min_score=options.min_score,
            )

        candidates = find_top_k(self.embed(query), self.corpus, options.top_k)
        results = filter_by_min_score(candidates, options.min_score)
        duration = time.perf_counter() - started

        logger.info(
            "search_done",
            candidates=len(candidates),
            results=len(results),
            duration_seconds=round(duration, 3),
        )
        return SearchOutcome(
            query=query,
            status=RetrievalStatus.OK if results else RetrievalStatus.NO_RELEVANT_RESULTS,
            top_k=options.top_k,
            min_score=options.min_score,
            candidates_found=len(candidates),
            results=results,
            stats=compute_stats(results),
            duration_seconds=round(duration, 3),
        )

    def retrieve(
        self, query: str, options: RetrievalOptions | None = None
    ) -> RetrievalOutcome:
        """Run retrieval up to the assembled context."""
        _check_query(query)
        options = options or settings.retrieval_options()

        if not self.corpus:
            logger.warning("retrieval_empty_corpus")
            return self._nothing_found(query, options, RetrievalStatus.EMPTY_CORPUS)

        query_vector = self.embed(query)

        pull = options.top_k_for_rerank if options.rerank else options.top_k
        candidates = find_top_k(query_vector, self.corpus, pull)
        relevant = filter_by_min_score(candidates, options.min_score)

        logger.info(
            "retrieval_candidates",
            pulled=len(candidates),
            relevant=len(relevant),
            min_score=options.min_score,
        )

        if not relevant:
            return self._nothing_found(
                query,
                options,
                RetrievalStatus.NO_RELEVANT_RESULTS,
                candidates_found=len(candidates),
            )

        reranking = None
        analysis = None
        if options.rerank:
            final, reranking = run_rerank(
                query, relevant, options.reranker_config(), self.boost_policy
            )
            analysis = analyze_ranking_quality(relevant, final)
            context = assemble_ranked_context(final, options.char_budget)
        else:
            final = relevant
            context = assemble_context(final, options.char_budget)

        quality = evaluate_context_quality(final)
        status = RetrievalStatus.OK if final else RetrievalStatus.NO_RELEVANT_RESULTS

        logger.info(
            "retrieval_done",
            status=status.value,
            results=len(final),
            quality=quality.quality.value,
            context_chars=len(context.text),
        )
        return RetrievalOutcome(
            query=query,
            status=status,
            options=options,
            candidates_found=len(candidates),
            results=final,
            quality=quality,
            context=context,
            sources=extract_sources_info(final),
            previews=create_sources_summary(final),
            reranking=reranking,
            ranking_analysis=analysis,
        )

    def answer(
        self,
        query: str,
        options: RetrievalOptions | None = None,
        use_rag: bool = True,
        history: list[dict] | None = None,
    ) -> RAGAnswer:
        """
        Retrieve evidence and generate; answer without context if none found.

        history holds earlier {"role", "content"} turns, oldest first. Only the
        last settings.history_turns of them reach the generator.
        """
        if self.generate is None:
            raise GenerationError("No generator configured for this pipeline")

        started = time.perf_counter()
        outcome = None
        turns = list(history or [])[-settings.history_turns :] or None

        if not use_rag:
            result = self.generate(query, None, turns)
            mode = AnswerMode.WITHOUT_RAG
        else:
            outcome = self.retrieve(query, options)
            if should_use_context(outcome.quality) and outcome.has_evidence:
                result = self.generate(query, outcome.context.text, turns)
                mode = AnswerMode.WITH_RAG
            else:
                logger.info(
                    "answer_fallback",
                    status=outcome.status.value,
                    recommendation=outcome.quality.recommendation,
                )
                result = self.generate(query, None, turns)
                mode = AnswerMode.FALLBACK

        duration = time.perf_counter() - started
        logger.info(
            "answer_done",
            mode=mode.value,
            duration_seconds=round(duration, 3),
            history_length=len(history or []),
            input_tokens=result.usage.input_tokens,
            output_tokens=result.usage.output_tokens,
        )
        return RAGAnswer(
            query=query,
            answer=result.answer,
            mode=mode,
            usage=result.usage,
            duration_seconds=round(duration, 3),
            history_length=len(history or []),
            retrieval=outcome,
        )

    def compare_modes(
        self, query: str, options: RetrievalOptions | None = None
    ) -> ModeComparison:
        """Answer with and without retrieved context, side by side."""
        _check_query(query)
        started = time.perf_counter()

        with ThreadPoolExecutor(max_workers=2) as pool:
            with_rag = pool.submit(self.answer, query, options)
            without_rag = pool.submit(self.answer, query, options, False)
            with_rag_answer = with_rag.result()
            without_rag_answer = without_rag.result()

        quality = with_rag_answer.retrieval.quality.quality
        comparison = ModeComparison(
            query=query,
            with_rag=with_rag_answer,
            without_rag=without_rag_answer,
            recommendation=MODE_RECOMMENDATIONS[quality],
            duration_seconds=round(time.perf_counter() - started, 3),
        )
        logger.info(
            "modes_compared",
            with_rag_mode=with_rag_answer.mode.value,
            quality=quality.value,
            answers_differ=comparison.answers_differ,
        )
        return comparison

    def compare_methods(
        self,
        query: str,
        top_k: int | None = None,
        min_score: float | None = None,
        top_n: int | None = None,
    ) -> tuple[MethodComparison, ComparisonSummary]:
        """Rank the same candidates with every method, side by side."""
        _check_query(query)
        top_k = top_k or settings.compare_top_k
        min_score = settings.compare_min_score if min_score is None else min_score
        top_n = top_n or settings.compare_display_top_n

        candidates = []
        if self.corpus:
            candidates = filter_by_min_score(
                find_top_k(self.embed(query), self.corpus, top_k), min_score
            )

        comparison = compare_ranking_methods(query, candidates, self.boost_policy)
        summary = summarize_comparison(comparison, top_n=top_n)
        logger.info(
            "comparison_done",
            candidates=len(candidates),
            best_method=summary.best_method.value,
        )
        return comparison, summary

    @staticmethod
    def _nothing_found(
        query: str,
        options: RetrievalOptions,
        status: RetrievalStatus,
        candidates_found: int = 0,
    ) -> RetrievalOutcome:
        return RetrievalOutcome(
            query=query,
            status=status,
            options=options,
            candidates_found=candidates_found,
            quality=evaluate_context_quality([]),
            context=AssembledContext(text=""),
        )
