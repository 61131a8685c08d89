"""Index domain models."""

from pydantic import BaseModel, Field

from rag_core.retrieval.models import EmbeddedItem


class IndexMetadata(BaseModel):
    """Written by the indexer alongside the chunks."""

    model: str = "unknown"
    indexed_at: str | None = None
    total_chunks: int = 0
    total_documents: int = 0
    documents: list[str] = Field(default_factory=list)


class SearchIndex(BaseModel):
    chunks: list[EmbeddedItem] = Field(default_factory=list)
    metadata: IndexMetadata = Field(default_factory=IndexMetadata)


class IndexStatus(BaseModel):
    path: str
    exists: bool
    ready: bool
    total_chunks: int = 0
    total_documents: int = 0
    model: str | None = None
    indexed_at: str | None = None
    dimension: int | None = None
    warnings: list[str] = Field(default_factory=list)
