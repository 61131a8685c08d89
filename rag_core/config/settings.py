"""Settings. .env overrides some of these values."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from rag_core.retrieval.models import (
    RerankerConfig,
    RerankMethod,
    RetrievalOptions,
)


class Settings(BaseSettings):
    # Embedding settings
    embedding_provider: str = "local"  # "local" or "openrouter"
    embedding_model_local: str = "all-MiniLM-L6-v2"
    embedding_model_openrouter: str = "openai/text-embedding-3-small"
    embedding_dimension: int = 384

    # Generator via OpenRouter (OpenAI-compatible API)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "deepseek/deepseek-chat"
    llm_max_tokens: int = 2000
    llm_temperature: float = 0.7

    # Retrieval
    top_k: int = 5
    min_score: float = 0.3

    # Reranker
    rerank: bool = False
    rerank_method: RerankMethod = RerankMethod.HYBRID
    min_rerank_score: float = 0.5
    top_k_for_rerank: int = 20
    final_top_k: int = 5

    # Context assembly
    char_budget: int = 8000

    # Method comparison
    compare_top_k: int = 20
    compare_min_score: float = 0.2
    compare_display_top_n: int = 5

    # Chat
    history_turns: int = Field(default=6, ge=1)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    # Paths
    index_path: str = "data/index.json"
    output_dir: str = "outputs"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    def retrieval_options(self, **overrides) -> RetrievalOptions:
        """Defaults from settings, caller overrides on top. Validated."""
        values = {
            "top_k": self.top_k,
            "min_score": self.min_score,
            "rerank": self.rerank,
            "rerank_method": self.rerank_method,
            "min_rerank_score": self.min_rerank_score,
            "top_k_for_rerank": self.top_k_for_rerank,
            "final_top_k": self.final_top_k,
            "char_budget": self.char_budget,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return RetrievalOptions(**values)

    def reranker_config(self) -> RerankerConfig:
        return self.retrieval_options().reranker_config()


settings = Settings()
