"""RAG pipeline domain models."""

from enum import Enum

from pydantic import BaseModel, Field

from rag_core.retrieval.models import (
    AssembledContext,
    QualityAssessment,
    RankedResult,
    RankingAnalysis,
    RerankingStats,
    RetrievalOptions,
    SearchResult,
    SearchStats,
    SourcePreview,
    SourcesInfo,
)


class RetrievalStatus(str, Enum):
    OK = "ok"
    EMPTY_CORPUS = "empty_corpus"
    NO_RELEVANT_RESULTS = "no_relevant_results"


class AnswerMode(str, Enum):
    WITH_RAG = "with_rag"
    WITHOUT_RAG = "without_rag"
    FALLBACK = "fallback"


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class GenerationResult(BaseModel):
    """What the generator hands back."""

    answer: str
    usage: TokenUsage = Field(default_factory=TokenUsage)


class SearchOutcome(BaseModel):
    """Plain semantic search: filtered top-k and their score stats."""

    query: str
    status: RetrievalStatus
    top_k: int
    min_score: float
    candidates_found: int = 0
    results: list[SearchResult] = Field(default_factory=list)
    stats: SearchStats = Field(default_factory=SearchStats)
    duration_seconds: float = 0.0


class RetrievalOutcome(BaseModel):
    """Everything one retrieval pass produced, up to the assembled context."""

    query: str
    status: RetrievalStatus
    options: RetrievalOptions
    candidates_found: int = 0
    results: list[RankedResult | SearchResult] = Field(default_factory=list)
    quality: QualityAssessment
    context: AssembledContext
    sources: SourcesInfo = Field(default_factory=SourcesInfo)
    previews: list[SourcePreview] = Field(default_factory=list)
    reranking: RerankingStats | None = None
    ranking_analysis: RankingAnalysis | None = None

    @property
    def has_evidence(self) -> bool:
        return self.status is RetrievalStatus.OK and bool(self.context.text)


class RAGAnswer(BaseModel):
    query: str
    answer: str
    mode: AnswerMode
    usage: TokenUsage = Field(default_factory=TokenUsage)
    duration_seconds: float = 0.0
    history_length: int = 0
    retrieval: RetrievalOutcome | None = None


class ModeComparison(BaseModel):
    """The same question answered with and without retrieved context."""

    query: str
    with_rag: RAGAnswer
    without_rag: RAGAnswer
    recommendation: str
    duration_seconds: float = 0.0

    @property
    def answers_differ(self) -> bool:
        return self.with_rag.answer != self.without_rag.answer
