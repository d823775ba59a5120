"""Embedding service module."""

from ideamatch.embeddings.models import EmbeddingResult
from ideamatch.embeddings.service import (
    EmbeddingService,
    EndpointEmbeddingService,
    HTTPEmbeddingService,
    LocalEmbeddingService,
    build_idea_text,
    create_embedding_service,
)

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "EndpointEmbeddingService",
    "HTTPEmbeddingService",
    "LocalEmbeddingService",
    "build_idea_text",
    "create_embedding_service",
]
