"""Retrieval domain models."""

from enum import Enum

from pydantic import AliasChoices, BaseModel, Field


class RerankMethod(str, Enum):
    NONE = "none"
    KEYWORD_BOOST = "keyword-boost"
    SEMANTIC_DEEP = "semantic-deep"
    HYBRID = "hybrid"


class ChunkMetadata(BaseModel):
    """Where a chunk sits inside its source document."""

    position: int = Field(ge=0)
    total_chunks: int = Field(
        ge=1, validation_alias=AliasChoices("total_chunks", "totalChunks")
    )

    model_config = {"frozen": True, "populate_by_name": True}


class EmbeddedItem(BaseModel):
    """A chunk as stored in the vector corpus. Read-only to retrieval."""

    id: str
    text: str
    source: str
    embedding: list[float] = Field(..., min_length=1)
    metadata: ChunkMetadata | None = None

    model_config = {"frozen": True}


class SearchResult(BaseModel):
    """Corpus item projected with its similarity to the query."""

    id: str
    text: str
    source: str
    score: float
    metadata: ChunkMetadata | None = None

    model_config = {"frozen": True}


class RankedResult(SearchResult):
    """Search result after a rerank pass."""

    rerank_score: float
    rerank_method: RerankMethod
    original_rank: int = Field(ge=1)
    boost_reason: str | None = None


class SearchStats(BaseModel):
    count: int = 0
    avg_score: float = 0.0
    max_score: float = 0.0
    min_score: float = 0.0

    model_config = {"frozen": True}


class QualityThresholds(BaseModel):
    high: float = 0.7
    medium: float = 0.5
    low: float = 0.3

    model_config = {"frozen": True}


class RerankerConfig(BaseModel):
    """Per-call reranking configuration."""

    min_similarity: float = Field(default=0.3, ge=0.0, le=1.0)
    min_rerank_score: float = Field(default=0.5, ge=0.0, le=1.0)
    top_k_for_rerank: int = Field(default=20, ge=1, le=100)
    final_top_k: int = Field(default=5, ge=1, le=100)
    rerank_method: RerankMethod = RerankMethod.HYBRID
    quality_thresholds: QualityThresholds = Field(default_factory=QualityThresholds)

    model_config = {"frozen": True}


class SemanticBoostPolicy(BaseModel):
    """
    Additive boosts used by the semantic-deep strategy.

    Values are empirical. Every boost that fires is named in boost_reason.
    """

    first_chunk_boost: float = 0.10
    length_band_min: int = 200
    length_band_max: int = 500
    length_boost: float = 0.05
    specific_data_boost: float = 0.05
    direct_match_boost: float = 0.05
    direct_match_cap: int = 3
    direct_match_min_word_length: int = 4
    score_cap: float = 1.0

    model_config = {"frozen": True}


class QualityTier(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class QualityAssessment(BaseModel):
    quality: QualityTier
    confidence: float = Field(ge=0.0, le=1.0)
    recommendation: str
    avg_score: float = 0.0
    max_score: float = 0.0
    total_chunks: int = 0

    model_config = {"frozen": True}


class QualityDistribution(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0

    model_config = {"frozen": True}


class RankEntry(BaseModel):
    id: str
    score: float
    rank: int


class RerankedEntry(RankEntry):
    rerank_score: float


class RerankingStats(BaseModel):
    """Audit record of one rerank pass. Never persisted."""

    original_results: list[RankEntry]
    reranked_results: list[RerankedEntry]
    filtered_count: int
    avg_score_improvement: float
    rerank_method: RerankMethod
    rerank_time_ms: float
    quality_distribution: QualityDistribution


class RankingAnalysis(BaseModel):
    improvement: float
    top_changed: bool
    avg_position_change: float


class MethodComparison(BaseModel):
    """Original candidates and the four ranked lists built from them."""

    original: list[SearchResult]
    none: list[RankedResult]
    keyword: list[RankedResult]
    semantic: list[RankedResult]
    hybrid: list[RankedResult]

    def by_method(self) -> dict[RerankMethod, list[RankedResult]]:
        return {
            RerankMethod.NONE: self.none,
            RerankMethod.KEYWORD_BOOST: self.keyword,
            RerankMethod.SEMANTIC_DEEP: self.semantic,
            RerankMethod.HYBRID: self.hybrid,
        }


class MethodSummary(BaseModel):
    results: list[RankedResult]
    quality: QualityDistribution
    avg_score: float


class ComparisonSummary(BaseModel):
    """Side-by-side evaluation of all rerank methods for one query."""

    best_method: RerankMethod
    methods: dict[RerankMethod, MethodSummary]
    total_results: int


class AssembledContext(BaseModel):
    """Budget-packed evidence handed to the generator."""

    text: str
    included: list[RankedResult | SearchResult] = Field(default_factory=list)
    total_candidates: int = 0

    model_config = {"frozen": True}


class SourceInfo(BaseModel):
    filename: str
    chunks_used: int
    avg_relevance: float
    max_relevance: float


class SourcesInfo(BaseModel):
    total_sources: int = 0
    total_chunks: int = 0
    sources: list[SourceInfo] = Field(default_factory=list)


class SourcePreview(BaseModel):
    id: str
    source: str
    text: str
    score: float


class RetrievalOptions(BaseModel):
    """
    Caller-facing knobs for one retrieval request.

    Ranges are validated here, at the boundary. The retrieval core assumes
    whatever it receives already passed this model.
    """

    top_k: int = Field(default=5, ge=1, le=100)
    min_score: float = Field(default=0.3, ge=0.0, le=1.0)
    rerank: bool = False
    rerank_method: RerankMethod = RerankMethod.HYBRID
    min_rerank_score: float = Field(default=0.5, ge=0.0, le=1.0)
    top_k_for_rerank: int = Field(default=20, ge=1, le=100)
    final_top_k: int = Field(default=5, ge=1, le=100)
    char_budget: int | None = Field(default=8000, ge=1)

    model_config = {"frozen": True}

    def reranker_config(self) -> RerankerConfig:
        return RerankerConfig(
            min_similarity=self.min_score,
            min_rerank_score=self.min_rerank_score,
            top_k_for_rerank=self.top_k_for_rerank,
            final_top_k=self.final_top_k,
            rerank_method=self.rerank_method,
        )
