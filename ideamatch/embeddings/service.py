"""Embedding service interface and implementations."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ideamatch.config import EmbeddingProvider, EmbeddingSettings, get_settings
from ideamatch.embeddings.models import EmbeddingResult
from ideamatch.exceptions import (
    ConfigurationError,
    EmbeddingError,
    ErrorCode,
    MissingEmbeddingError,
)
from ideamatch.logging_config import get_logger
from ideamatch.observability.metrics import track_embedding_request

logger = get_logger(__name__)


def build_idea_text(title: str, content: str, tags: list[str] | None = None) -> str:
    """Compose the text embedded for an idea.

    Args:
        title: Idea title.
        content: Idea body.
        tags: Idea tags.

    Returns:
        ``"{title} {content} {tags...}"`` with surrounding whitespace removed.
    """
    return f"{title} {content} {' '.join(tags or [])}".strip()


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If embedding fails.
            MissingEmbeddingError: If the backend returns an empty vector.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed.

        Returns:
            List of EmbeddingResult objects.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None


class _RemoteEmbeddingService(EmbeddingService):
    """Shared plumbing for HTTP-backed embedding services."""

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions, learned from the first response."""
        if self._dimensions is not None:
            return self._dimensions
        return self._settings.dimensions

    def _truncate(self, text: str) -> str:
        return text[: self._settings.max_input_chars]

    def _headers(self) -> dict[str, str]:
        if self._settings.api_key is None:
            return {}
        return {"Authorization": f"Bearer {self._settings.api_key.get_secret_value()}"}

    async def _post(self, url: str, payload: dict[str, Any]) -> Any:
        """POST a JSON payload and return the decoded body.

        Raises:
            EmbeddingError: On HTTP, connection or decoding failure.
        """
        client = await self._get_client()
        start = time.perf_counter()

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e
        except ValueError as e:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        track_embedding_request(self.model_name, time.perf_counter() - start)
        return data

    def _to_result(self, text: str, embedding: list[float]) -> EmbeddingResult:
        if not embedding:
            raise MissingEmbeddingError(
                "Embedding service returned an empty vector",
                details={"model": self.model_name},
            )
        if self._dimensions is None:
            self._dimensions = len(embedding)
        return EmbeddingResult(
            text=text,
            embedding=embedding,
            model=self.model_name,
            dimensions=len(embedding),
        )


class HTTPEmbeddingService(_RemoteEmbeddingService):
    """Embedding service using an OpenAI-compatible HTTP API.

    Compatible with OpenAI-style embedding APIs and
    text-embeddings-inference (TEI) servers.
    """

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text."""
        results = await self.embed_batch([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, in batches."""
        if not texts:
            return []

        url = f"{self._settings.base_url.rstrip('/')}/embeddings"

        all_results: list[EmbeddingResult] = []
        batch_size = self._settings.batch_size

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            all_results.extend(await self._embed_batch_request(url, batch))

        return all_results

    async def _embed_batch_request(
        self,
        url: str,
        texts: list[str],
    ) -> list[EmbeddingResult]:
        """Make embedding request for a batch.

        Args:
            url: Embedding endpoint URL.
            texts: Batch of texts.

        Returns:
            List of EmbeddingResult objects.

        Raises:
            EmbeddingError: If request fails.
        """
        payload = {
            "input": [self._truncate(t) for t in texts],
            "model": self._settings.model,
            "encoding_format": "float",
        }

        data = await self._post(url, payload)

        try:
            embeddings = data["data"]
            if len(embeddings) != len(texts):
                raise ValueError(
                    f"expected {len(texts)} embeddings, got {len(embeddings)}"
                )
            return [
                self._to_result(texts[i], emb_data.get("embedding") or [])
                for i, emb_data in enumerate(embeddings)
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e


class EndpointEmbeddingService(_RemoteEmbeddingService):
    """Embedding service calling an ``/embedding`` endpoint.

    The endpoint takes ``{"text": ...}`` and answers ``{"embedding": [...]}``,
    one text per request.
    """

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text."""
        url = f"{self._settings.base_url.rstrip('/')}/embedding"
        data = await self._post(url, {"text": self._truncate(text)})

        try:
            return self._to_result(text, data.get("embedding") or [])
        except (AttributeError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding endpoint: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Embed texts one request at a time."""
        return [await self.embed(text) for text in texts]


class LocalEmbeddingService(EmbeddingService):
    """Embedding service backed by a bundled sentence-transformers model.

    The model loads on first use, which makes the first call slow.
    Encoding runs in a worker thread so the event loop is not blocked.
    """

    DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        model: Any | None = None,
    ) -> None:
        """Initialize the local embedding service.

        Args:
            settings: Embedding configuration.
            model: Preloaded model exposing ``encode`` (for testing).
        """
        self._settings = settings or get_settings().embedding
        self._model = model
        self._lock = asyncio.Lock()

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model or self.DEFAULT_MODEL

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions."""
        return self._settings.dimensions

    async def _get_model(self) -> Any:
        async with self._lock:
            if self._model is None:
                try:
                    from sentence_transformers import SentenceTransformer
                except ImportError as e:
                    raise ConfigurationError(
                        "Local embeddings require the 'local' extra (sentence-transformers)",
                        details={"model": self.model_name},
                    ) from e

                logger.info(f"Loading embedding model: {self.model_name}")
                self._model = await asyncio.to_thread(SentenceTransformer, self.model_name)
                logger.info(f"Loaded embedding model: {self.model_name}")
        return self._model

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text."""
        results = await self.embed_batch([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts."""
        if not texts:
            return []

        model = await self._get_model()
        start = time.perf_counter()

        try:
            vectors = await asyncio.to_thread(
                model.encode,
                texts,
                batch_size=self._settings.batch_size,
                normalize_embeddings=True,
                convert_to_numpy=True,
            )
        except Exception as e:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            logger.error(f"Local embedding failed: {e}")
            raise EmbeddingError(
                f"Local embedding failed: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"model": self.model_name},
            ) from e

        track_embedding_request(self.model_name, time.perf_counter() - start)

        results: list[EmbeddingResult] = []
        for text, vector in zip(texts, vectors):
            embedding = [float(x) for x in vector]
            if not embedding:
                raise MissingEmbeddingError(
                    "Local model produced an empty vector",
                    details={"model": self.model_name},
                )
            results.append(
                EmbeddingResult(
                    text=text,
                    embedding=embedding,
                    model=self.model_name,
                    dimensions=len(embedding),
                )
            )
        return results


def create_embedding_service(
    settings: EmbeddingSettings | None = None,
) -> EmbeddingService:
    """Build the configured embedding strategy.

    Args:
        settings: Embedding configuration. Uses defaults if not provided.

    Returns:
        An EmbeddingService for ``settings.provider``.
    """
    settings = settings or get_settings().embedding

    if settings.provider == EmbeddingProvider.LOCAL:
        return LocalEmbeddingService(settings=settings)
    if settings.provider == EmbeddingProvider.ENDPOINT:
        return EndpointEmbeddingService(settings=settings)
    return HTTPEmbeddingService(settings=settings)
