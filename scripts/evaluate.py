"""
Hit rate of each rerank method against labelled queries.

A query counts as a hit for a method when a chunk from the expected source
appears in that method's top-k.

Usage: python scripts/evaluate.py [labels.json] [--top-k 5]
"""

import argparse
import json
from pathlib import Path

from rag_core.config.settings import settings
from rag_core.index.loader import load_index
from rag_core.logger import setup_logging
from rag_core.rag.pipeline import RAGPipeline
from rag_core.retrieval.models import RerankMethod
from rag_core.services.embedding import create_embedding_service


def evaluate(labels_path: Path, top_k: int):
    labels = json.loads(labels_path.read_text(encoding="utf-8"))
    index = load_index()
    pipeline = RAGPipeline(index.chunks, create_embedding_service())

    print(f"\n{'='*50}")
    print(f" Evaluation: {len(labels)} queries, top-{top_k}")
    print(f"{'='*50}\n")

    hits = {method: 0 for method in RerankMethod}
    for i, label in enumerate(labels, 1):
        comparison, _ = pipeline.compare_methods(label["query"])
        expected = label["expected_source"]
        row = []
        for method, ranked in comparison.by_method().items():
            hit = any(r.source == expected for r in ranked[:top_k])
            hits[method] += hit
            row.append(f"{method.value}={'hit' if hit else 'miss'}")
        print(f"Query {i}: {', '.join(row)}")

    total = len(labels)
    print()
    for method, count in hits.items():
        rate = count / total if total else 0
        print(f"  {method.value:<14} {count}/{total} ({rate:.0%})")
    print()


if __name__ == "__main__":
    setup_logging()
    parser = argparse.ArgumentParser()
    parser.add_argument("labels", nargs="?", default=str(Path(settings.index_path).parent / "ground_truth.json"))
    parser.add_argument("--top-k", type=int, default=settings.final_top_k)
    args = parser.parse_args()
    evaluate(Path(args.labels), args.top_k)
