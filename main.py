"""
Document Q&A over a prebuilt embedding index.

Usage:
    python main.py --status                                              # Index readiness
    python main.py --query "Which database is used?"                     # Answer with retrieved context
    python main.py --query "Which database is used?" --rerank --method keyword-boost
    python main.py --query "Which database is used?" --no-rag            # Model-only answer
    python main.py --query "Which database is used?" --compare           # Compare rerank methods
    python main.py --query "Which database is used?" --compare-rag       # With vs without RAG
    python main.py --query "Which database is used?" --search            # Search only, with score stats
    python main.py --query "And the cache?" --history turns.json         # Follow-up with earlier turns
    python scripts/evaluate.py                                           # Evaluation
"""

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from rag_core.config.settings import settings
from rag_core.errors import RAGCoreError
from rag_core.index.loader import index_status, load_index
from rag_core.index.models import SearchIndex
from rag_core.logger import get_logger, setup_logging
from rag_core.rag.models import ModeComparison, RAGAnswer, SearchOutcome
from rag_core.rag.pipeline import RAGPipeline
from rag_core.retrieval.models import RerankMethod, RetrievalOptions
from rag_core.retrieval.stats import comparison_table
from rag_core.services.embedding import create_embedding_service
from rag_core.services.llm import LLMClient

setup_logging()
logger = get_logger("main")


@dataclass
class Dependencies:
    """Shared services."""
    index: SearchIndex
    pipeline: RAGPipeline


def build_dependencies(index_path: str | None = None, with_generator: bool = True) -> Dependencies:
    index = load_index(index_path)
    embedder = create_embedding_service()
    generator = LLMClient() if with_generator else None
    return Dependencies(index=index, pipeline=RAGPipeline(index.chunks, embedder, generator))


def save_output(name: str, payload) -> Path:
    output_path = Path(settings.output_dir) / name
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str, ensure_ascii=False)
    logger.info("output_saved", path=str(output_path))
    return output_path


def run_status(index_path: str | None):
    status = index_status(index_path, settings.embedding_dimension)

    print(f"\n{'='*70}")
    print(f" Index status: {'READY' if status.ready else 'NOT READY'}")
    print(f"{'='*70}\n")
    print(f"  Path:       {status.path}")
    print(f"  Chunks:     {status.total_chunks}")
    print(f"  Documents:  {status.total_documents}")
    print(f"  Model:      {status.model}")
    print(f"  Dimension:  {status.dimension}")
    for w in status.warnings:
        print(f"  ! {w}")
    print()
    return status


def build_options(args: argparse.Namespace) -> RetrievalOptions:
    options = settings.retrieval_options(
        top_k=args.top_k,
        min_score=args.min_score,
        rerank=args.rerank or None,
        rerank_method=args.method,
        char_budget=args.char_budget or None,
    )
    if args.char_budget == 0:
        options = options.model_copy(update={"char_budget": None})
    return options


def load_history(path: str | None) -> list[dict] | None:
    """Earlier turns as a JSON list of {"role", "content"} objects."""
    if not path:
        return None
    return json.loads(Path(path).read_text(encoding="utf-8"))


def run_search(query: str, args: argparse.Namespace, deps: Dependencies) -> SearchOutcome:
    outcome = deps.pipeline.search(query, top_k=args.top_k, min_score=args.min_score)
    stats = outcome.stats

    print(f"\n{'='*70}")
    print(f" Search: {stats.count} results ({outcome.status.value}, {outcome.duration_seconds:.3f}s)")
    print(f" Query: {query[:100]}")
    print(f"{'='*70}\n")
    for i, r in enumerate(outcome.results, 1):
        print(f"  {i}. [{r.score:.4f}] {r.source} | {r.text[:100]}")
    print(f"\n  Scores: avg {stats.avg_score:.4f}, max {stats.max_score:.4f}, min {stats.min_score:.4f}")
    print(f"  Index: {deps.index.metadata.total_chunks or len(deps.index.chunks)} chunks, "
          f"model {deps.index.metadata.model}\n")

    save_output("search.json", {
        **outcome.model_dump(mode="json"),
        "index_info": {
            "total_chunks": deps.index.metadata.total_chunks or len(deps.index.chunks),
            "model": deps.index.metadata.model,
        },
    })
    return outcome


def run_compare_modes(query: str, args: argparse.Namespace, deps: Dependencies) -> ModeComparison:
    comparison = deps.pipeline.compare_modes(query, build_options(args))

    print(f"\n{'='*70}")
    print(f" With vs without RAG ({comparison.duration_seconds:.2f}s)")
    print(f" Query: {query[:100]}")
    print(f"{'='*70}\n")
    for label, result in (("WITH RAG", comparison.with_rag), ("WITHOUT RAG", comparison.without_rag)):
        print(f"--- {label} ({result.mode.value}) ---")
        print(result.answer)
        print()

    outcome = comparison.with_rag.retrieval
    print(f"  Context quality: {outcome.quality.quality.value} "
          f"(confidence {outcome.quality.confidence:.1f}), {outcome.sources.total_sources} sources")
    print(f"  Answers differ: {comparison.answers_differ}")
    print(f"  {comparison.recommendation}\n")

    save_output("compare_rag.json", {
        **comparison.model_dump(mode="json"),
        "answers_differ": comparison.answers_differ,
    })
    return comparison


def run_answer(query: str, args: argparse.Namespace, deps: Dependencies) -> RAGAnswer:
    result = deps.pipeline.answer(
        query,
        build_options(args),
        use_rag=not args.no_rag,
        history=load_history(args.history),
    )

    print(f"\n{'='*70}")
    print(f" Answer ({result.mode.value}, {result.duration_seconds:.2f}s)")
    print(f" Query: {query[:100]}")
    print(f"{'='*70}\n")
    print(result.answer)
    print()

    outcome = result.retrieval
    if outcome is not None:
        q = outcome.quality
        print(f"  Retrieval: {outcome.status.value} | quality {q.quality.value} "
              f"(confidence {q.confidence:.1f}) | {len(outcome.context.included)} chunks in context")
        print(f"  {q.recommendation}")
        for s in outcome.sources.sources:
            print(f"    - {s.filename}: {s.chunks_used} chunks, max {s.max_relevance:.3f}")
        if outcome.reranking is not None:
            print(f"  Reranking: {outcome.reranking.rerank_method.value}, "
                  f"{outcome.reranking.filtered_count} filtered, "
                  f"avg improvement {outcome.reranking.avg_score_improvement:+.4f}")
    print(f"  Tokens: {result.usage.input_tokens} in + {result.usage.output_tokens} out\n")

    save_output("answer.json", result.model_dump(mode="json"))
    return result


def run_compare(query: str, args: argparse.Namespace, deps: Dependencies):
    comparison, summary = deps.pipeline.compare_methods(
        query, top_k=args.top_k, min_score=args.min_score
    )

    print(f"\n{'='*70}")
    print(f" Rerank method comparison ({summary.total_results} candidates)")
    print(f" Query: {query[:100]}")
    print(f"{'='*70}\n")

    if not comparison.original:
        print("  No relevant documents found.\n")
        return summary

    for method, s in summary.methods.items():
        marker = "*" if method == summary.best_method else " "
        print(f" {marker} {method.value:<14} avg {s.avg_score:.4f} | "
              f"high {s.quality.high}, medium {s.quality.medium}, low {s.quality.low}")
    print()
    print(comparison_table(comparison, settings.compare_display_top_n).to_string())
    print()

    save_output("comparison.json", summary.model_dump(mode="json"))
    return summary


# CLI
def main():
    parser = argparse.ArgumentParser(description="Document Q&A over an embedding index")
    parser.add_argument("--query", type=str)
    parser.add_argument("--index", type=str, default=None)
    parser.add_argument("--status", action="store_true")
    parser.add_argument("--search", action="store_true", help="Semantic search only, no generation")
    parser.add_argument("--compare", action="store_true", help="Compare rerank methods")
    parser.add_argument("--compare-rag", action="store_true", help="Answer with and without RAG")
    parser.add_argument("--no-rag", action="store_true")
    parser.add_argument("--history", type=str, help="JSON file with earlier conversation turns")
    parser.add_argument("--rerank", action="store_true")
    parser.add_argument("--method", type=RerankMethod, choices=list(RerankMethod))
    parser.add_argument("--top-k", type=int)
    parser.add_argument("--min-score", type=float)
    parser.add_argument("--char-budget", type=int, help="0 for unlimited")
    args = parser.parse_args()

    if args.status:
        status = run_status(args.index)
        sys.exit(0 if status.ready else 1)

    if not args.query:
        parser.error("--query is required unless --status is given")

    try:
        deps = build_dependencies(
            args.index, with_generator=not (args.compare or args.search)
        )
        if args.search:
            run_search(args.query, args, deps)
        elif args.compare:
            run_compare(args.query, args, deps)
        elif args.compare_rag:
            run_compare_modes(args.query, args, deps)
        else:
            run_answer(args.query, args, deps)
    except FileNotFoundError as e:
        logger.error("file_missing", error=str(e))
        sys.exit(1)
    except json.JSONDecodeError as e:
        logger.error("invalid_history", error=str(e))
        sys.exit(2)
    except ValidationError as e:
        logger.error("invalid_options", error=str(e))
        sys.exit(2)
    except RAGCoreError as e:
        logger.error("request_failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
