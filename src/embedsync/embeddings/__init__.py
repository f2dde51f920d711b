"""Embeddings domain — provider protocol and the OpenAI HTTP client."""

from embedsync.embeddings.provider import (
    DEFAULT_MODEL,
    Embedding,
    EmbeddingConfig,
    EmbeddingError,
    EmbeddingProvider,
    OpenAIEmbeddingProvider,
    normalize_input,
)

__all__ = [
    "DEFAULT_MODEL",
    "Embedding",
    "EmbeddingConfig",
    "EmbeddingError",
    "EmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "normalize_input",
]
