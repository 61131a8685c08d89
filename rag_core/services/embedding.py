"""
Embedding service with two providers:

- "local": sentence-transformers (no API calls, runs on CPU/GPU)
- "openrouter": OpenRouter API (same key as the generator)

Configured via EMBEDDING_PROVIDER in settings (.env overrides).
Both return unit-length vectors, so retrieval can score with a plain dot product.
"""

import abc

import numpy as np
from openai import OpenAI, OpenAIError
from sentence_transformers import SentenceTransformer

from rag_core.config.settings import settings
from rag_core.errors import EmbeddingError
from rag_core.logger import get_logger

logger = get_logger(__name__)


def normalize(vector) -> list[float]:
    arr = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(arr)
    if norm == 0:
        return arr.tolist()
    return (arr / norm).tolist()


def _check_text(text: str) -> None:
    if not text or not text.strip():
        raise EmbeddingError("Text to embed must not be empty")


class BaseEmbeddingService(abc.ABC):
    """Interface that any provider implements."""

    @abc.abstractmethod
    def embed(self, text: str) -> list[float]: ...

    @abc.abstractmethod
    def embed_batch(self, texts: list[str]) -> list[list[float]]: ...

    def __call__(self, text: str) -> list[float]:
        return self.embed(text)


class LocalEmbeddingService(BaseEmbeddingService):
    """Embeddings via sentence-transformers."""

    def __init__(self, model_name: str | None = None, model: SentenceTransformer | None = None):
        self.model_name = model_name or settings.embedding_model_local
        if model is None:
            logger.info("loading_local_embedding_model", model=self.model_name)
            model = SentenceTransformer(self.model_name)
        self.model = model

    def _encode(self, inputs, **kwargs):
        try:
            return self.model.encode(inputs, normalize_embeddings=True, **kwargs)
        except Exception as e:
            logger.error("embedding_failed", model=self.model_name, error=str(e))
            raise EmbeddingError(f"Local embedding failed: {e}") from e

    def embed(self, text: str) -> list[float]:
        _check_text(text)
        return normalize(self._encode(text))

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        for t in texts:
            _check_text(t)
        logger.info("embedding_batch_local", count=len(texts))
        vectors = self._encode(texts, batch_size=32, show_progress_bar=False)
        return [normalize(v) for v in vectors]


class OpenRouterEmbeddingService(BaseEmbeddingService):
    """Embeddings via OpenRouter (OpenAI-compatible API)."""

    def __init__(self, client: OpenAI | None = None):
        self.client = client or OpenAI(
            base_url=settings.openrouter_base_url,
            api_key=settings.openrouter_api_key,
        )
        self.model = settings.embedding_model_openrouter

    def embed(self, text: str) -> list[float]:
        _check_text(text)
        try:
            response = self.client.embeddings.create(model=self.model, input=text)
        except OpenAIError as e:
            logger.error("embedding_failed", model=self.model, error=str(e))
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        return normalize(response.data[0].embedding)

    def embed_batch(self, texts: list[str], batch_size: int = 100) -> list[list[float]]:
        for t in texts:
            _check_text(t)
        logger.info("embedding_batch_openrouter", count=len(texts))
        all_embeddings = []
        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            try:
                response = self.client.embeddings.create(model=self.model, input=batch)
            except OpenAIError as e:
                logger.error("embedding_failed", model=self.model, error=str(e))
                raise EmbeddingError(f"Embedding request failed: {e}") from e
            all_embeddings.extend(normalize(item.embedding) for item in response.data)
        return all_embeddings


def create_embedding_service() -> BaseEmbeddingService:
    """Return the configured provider."""
    provider = settings.embedding_provider.lower()

    if provider == "local":
        return LocalEmbeddingService()
    elif provider == "openrouter":
        return OpenRouterEmbeddingService()
    else:
        raise ValueError(
            f"Unknown embedding provider: {provider}. Use 'local' or 'openrouter'."
        )
