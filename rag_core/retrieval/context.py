"""
Context assembly: pack retrieved fragments into a bounded text block.

Fragments are taken greedily in the given order and grouped under one
header per source document. A fragment is either included whole or not at
all; packing stops at the first fragment that would push the rendered text
past the character budget. Rendering depends only on the inputs.
"""

from collections.abc import Sequence

from rag_core.logger import get_logger
from rag_core.retrieval.models import (
    AssembledContext,
    RankedResult,
    SearchResult,
    SourceInfo,
    SourcePreview,
    SourcesInfo,
)
from rag_core.retrieval.similarity import group_by_source

logger = get_logger(__name__)

NO_CONTEXT_MESSAGE = "No relevant information was found in the documents."
PREVIEW_CHARS = 150


def _render_fragment(index: int, result: SearchResult, ranked: bool) -> str:
    is_ranked = ranked and isinstance(result, RankedResult)
    relevance = result.rerank_score if is_ranked else result.score
    block = f"\n[Fragment {index}, relevance: {relevance * 100:.1f}%]\n{result.text}\n"
    if is_ranked and result.boost_reason:
        block += f"(+boost: {result.boost_reason})\n"
    return block


def _render(results: Sequence[SearchResult], ranked: bool) -> str:
    parts = []
    for doc_index, (source, chunks) in enumerate(group_by_source(results).items(), start=1):
        parts.append(f"\n--- DOCUMENT {doc_index}: {source} ---\n")
        parts.extend(
            _render_fragment(i, chunk, ranked) for i, chunk in enumerate(chunks, start=1)
        )
    return "".join(parts).strip()


def format_context(results: Sequence[SearchResult]) -> str:
    """Grouped document layout of every result, no budget."""
    if not results:
        return NO_CONTEXT_MESSAGE
    return _render(results, ranked=True)


def _pack(
    results: Sequence[SearchResult], char_budget: int | None, ranked: bool
) -> AssembledContext:
    accepted: list[SearchResult] = []
    text = ""
    for result in results:
        candidate = _render([*accepted, result], ranked)
        if char_budget is not None and len(candidate) > char_budget:
            break
        accepted.append(result)
        text = candidate

    logger.info(
        "context_assembled",
        used=len(accepted),
        candidates=len(results),
        chars=len(text),
        budget=char_budget,
    )
    return AssembledContext(text=text, included=accepted, total_candidates=len(results))


def assemble_context(
    results: Sequence[SearchResult], char_budget: int | None = 8000
) -> AssembledContext:
    """
    Budget-pack results in similarity order.

    char_budget=None means unlimited. If not even the first fragment fits,
    the context is empty rather than truncated.
    """
    return _pack(results, char_budget, ranked=False)


def assemble_ranked_context(
    results: Sequence[RankedResult], char_budget: int | None = 8000
) -> AssembledContext:
    """Same as assemble_context, fragments report rerank score and boost reason."""
    return _pack(results, char_budget, ranked=True)


def extract_sources_info(results: Sequence[SearchResult]) -> SourcesInfo:
    sources = []
    for source, chunks in group_by_source(results).items():
        scores = [c.score for c in chunks]
        sources.append(
            SourceInfo(
                filename=source,
                chunks_used=len(chunks),
                avg_relevance=round(sum(scores) / len(scores), 4),
                max_relevance=round(max(scores), 4),
            )
        )
    return SourcesInfo(
        total_sources=len(sources),
        total_chunks=len(results),
        sources=sources,
    )


def create_sources_summary(results: Sequence[SearchResult]) -> list[SourcePreview]:
    return [
        SourcePreview(
            id=r.id,
            source=r.source,
            text=r.text[:PREVIEW_CHARS] + ("..." if len(r.text) > PREVIEW_CHARS else ""),
            score=round(r.score * 100, 1),
        )
        for r in results
    ]
