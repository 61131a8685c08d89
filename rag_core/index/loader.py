"""Read-only access to the externally built JSON index."""

from pathlib import Path

from pydantic import ValidationError

from rag_core.config.settings import settings
from rag_core.index.models import IndexStatus, SearchIndex
from rag_core.logger import get_logger

logger = get_logger(__name__)


def load_index(path: str | Path | None = None) -> SearchIndex:
    """
    Load and validate the index.

    :raises FileNotFoundError: no index at path
    :raises ValidationError: file is not a valid index
    """
    index_path = Path(path or settings.index_path)
    if not index_path.exists():
        raise FileNotFoundError(f"Index not found: {index_path}")

    index = SearchIndex.model_validate_json(index_path.read_text(encoding="utf-8"))
    logger.info(
        "index_loaded",
        path=str(index_path),
        chunks=len(index.chunks),
        documents=index.metadata.total_documents,
    )
    return index


def index_status(
    path: str | Path | None = None, expected_dimension: int | None = None
) -> IndexStatus:
    """
    Readiness report. Never raises for a missing or broken index.

    With expected_dimension set, an index built with a different embedding
    size is reported as not ready.
    """
    index_path = Path(path or settings.index_path)
    if not index_path.exists():
        return IndexStatus(
            path=str(index_path),
            exists=False,
            ready=False,
            warnings=["Index has not been built yet"],
        )

    try:
        index = load_index(index_path)
    except ValidationError as e:
        logger.error("index_invalid", path=str(index_path), error=str(e))
        return IndexStatus(
            path=str(index_path),
            exists=True,
            ready=False,
            warnings=[f"Index file is invalid: {e.error_count()} validation errors"],
        )

    warnings = []
    dimensions = {len(c.embedding) for c in index.chunks}
    if not index.chunks:
        warnings.append("Index is empty, no documents were indexed")
    if len(dimensions) > 1:
        warnings.append(f"Chunks have mixed embedding dimensions: {sorted(dimensions)}")
    dimension_mismatch = (
        expected_dimension is not None
        and len(dimensions) == 1
        and expected_dimension not in dimensions
    )
    if dimension_mismatch:
        warnings.append(
            f"Index dimension {next(iter(dimensions))} does not match the "
            f"configured embedding dimension {expected_dimension}"
        )

    return IndexStatus(
        path=str(index_path),
        exists=True,
        ready=bool(index.chunks) and len(dimensions) == 1 and not dimension_mismatch,
        total_chunks=len(index.chunks),
        total_documents=index.metadata.total_documents
        or len({c.source for c in index.chunks}),
        model=index.metadata.model,
        indexed_at=index.metadata.indexed_at,
        dimension=dimensions.pop() if len(dimensions) == 1 else None,
        warnings=warnings,
    )
