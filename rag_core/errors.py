"""Exception hierarchy.

Only faults are exceptions. "Nothing found" outcomes (empty corpus, no result
above threshold) are reported as data, see RetrievalStatus.
"""


class RAGCoreError(Exception):
    """Base class for all rag_core errors."""


class InvalidInputError(RAGCoreError):
    """Vector dimension mismatch or blank query text."""


class EmbeddingError(RAGCoreError):
    """The embedding provider rejected the text or failed."""


class GenerationError(RAGCoreError):
    """The generator call failed."""
