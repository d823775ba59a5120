"""Tests for embedding services."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from ideamatch.config import EmbeddingProvider, EmbeddingSettings
from ideamatch.embeddings.models import EmbeddingResult
from ideamatch.embeddings.service import (
    EndpointEmbeddingService,
    HTTPEmbeddingService,
    LocalEmbeddingService,
    build_idea_text,
    create_embedding_service,
)
from ideamatch.exceptions import EmbeddingError, MissingEmbeddingError


def _json_response(body: object) -> MagicMock:
    mock_response = MagicMock()
    mock_response.json.return_value = body
    mock_response.raise_for_status = MagicMock()
    return mock_response


class TestEmbeddingResult:
    """Tests for EmbeddingResult model."""

    def test_valid_result(self) -> None:
        """Valid embedding result is created."""
        result = EmbeddingResult(
            text="test",
            embedding=[0.1, 0.2, 0.3],
            model="test-model",
            dimensions=3,
        )
        assert result.text == "test"
        assert result.dimensions == 3

    def test_dimensions_mismatch(self) -> None:
        """Mismatched dimensions raise error."""
        with pytest.raises(ValueError, match="dimensions"):
            EmbeddingResult(
                text="test",
                embedding=[0.1, 0.2, 0.3],
                model="test-model",
                dimensions=5,
            )


class TestBuildIdeaText:
    """Tests for the embedded idea text."""

    def test_joins_title_content_and_tags(self) -> None:
        """Title, content and tags are space separated."""
        text = build_idea_text("Solar drones", "Charge in flight", ["energy", "robotics"])
        assert text == "Solar drones Charge in flight energy robotics"

    def test_no_tags(self) -> None:
        """Missing tags leave no trailing space."""
        assert build_idea_text("Title", "Body") == "Title Body"


class TestHTTPEmbeddingService:
    """Tests for HTTPEmbeddingService."""

    def test_model_name(self) -> None:
        """Service returns configured model name."""
        settings = EmbeddingSettings(model="test-model")
        service = HTTPEmbeddingService(settings=settings)
        assert service.model_name == "test-model"

    def test_dimensions_default_to_settings(self) -> None:
        """Before any response, dimensions come from configuration."""
        settings = EmbeddingSettings(dimensions=1024)
        service = HTTPEmbeddingService(settings=settings)
        assert service.dimensions == 1024

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        """Single text embedding works."""
        settings = EmbeddingSettings(base_url="http://test:8080", model="test-model")

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"data": [{"embedding": [0.1, 0.2, 0.3]}]})

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        result = await service.embed("test text")

        assert result.text == "test text"
        assert result.embedding == [0.1, 0.2, 0.3]
        assert result.model == "test-model"
        assert service.dimensions == 3

        url = mock_client.post.call_args.args[0]
        assert url == "http://test:8080/embeddings"

    @pytest.mark.asyncio
    async def test_input_truncated(self) -> None:
        """Input text is cut to the configured character limit."""
        settings = EmbeddingSettings(base_url="http://test:8080", max_input_chars=2000)

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"data": [{"embedding": [0.1]}]})

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        result = await service.embed("x" * 5000)

        payload = mock_client.post.call_args.kwargs["json"]
        assert len(payload["input"][0]) == 2000
        # The result still reports the text it was asked to embed
        assert len(result.text) == 5000

    @pytest.mark.asyncio
    async def test_sends_bearer_key(self) -> None:
        """A configured API key is sent as a bearer token."""
        settings = EmbeddingSettings(base_url="http://test:8080", api_key="sk-test")

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"data": [{"embedding": [0.1]}]})

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        await service.embed("text")

        headers = mock_client.post.call_args.kwargs["headers"]
        assert headers == {"Authorization": "Bearer sk-test"}

    @pytest.mark.asyncio
    async def test_embed_batch(self) -> None:
        """Batch embedding works."""
        settings = EmbeddingSettings(base_url="http://test:8080", batch_size=10)

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response(
            {"data": [{"embedding": [0.1, 0.2]}, {"embedding": [0.3, 0.4]}]}
        )

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        results = await service.embed_batch(["text1", "text2"])

        assert len(results) == 2
        assert results[0].text == "text1"
        assert results[1].embedding == [0.3, 0.4]

    @pytest.mark.asyncio
    async def test_embed_empty_list(self) -> None:
        """Empty list returns empty results."""
        service = HTTPEmbeddingService(settings=EmbeddingSettings())
        results = await service.embed_batch([])
        assert results == []

    @pytest.mark.asyncio
    async def test_count_mismatch(self) -> None:
        """A response with the wrong number of vectors is rejected."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"data": [{"embedding": [0.1]}]})

        service = HTTPEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(EmbeddingError, match="expected 2"):
            await service.embed_batch(["a", "b"])

    @pytest.mark.asyncio
    async def test_empty_vector(self) -> None:
        """An empty vector is a missing embedding, not a zero match."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"data": [{"embedding": []}]})

        service = HTTPEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(MissingEmbeddingError):
            await service.embed("text")

    @pytest.mark.asyncio
    async def test_embed_http_error(self) -> None:
        """HTTP error raises EmbeddingError."""
        mock_response = MagicMock()
        mock_response.status_code = 500
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Server error",
            request=MagicMock(),
            response=mock_response,
        )

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response

        service = HTTPEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(EmbeddingError) as exc_info:
            await service.embed("test")

        assert exc_info.value.details["status_code"] == 500

    @pytest.mark.asyncio
    async def test_embed_connection_error(self) -> None:
        """Connection error raises EmbeddingError."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.RequestError("Connection failed")

        service = HTTPEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(EmbeddingError):
            await service.embed("test")

    @pytest.mark.asyncio
    async def test_batch_chunking(self) -> None:
        """Large batches are chunked correctly."""
        settings = EmbeddingSettings(base_url="http://test:8080", batch_size=2)

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = lambda *_a, **_kw: _json_response(
            {"data": [{"embedding": [0.1]}, {"embedding": [0.2]}]}
        )

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        results = await service.embed_batch(["t1", "t2", "t3", "t4"])

        assert len(results) == 4
        assert mock_client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        """Service closes owned client."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        service = HTTPEmbeddingService(settings=EmbeddingSettings(), client=mock_client)
        service._owns_client = True

        await service.close()
        mock_client.aclose.assert_called_once()


class TestEndpointEmbeddingService:
    """Tests for the single-text /embedding endpoint."""

    @pytest.mark.asyncio
    async def test_embed(self) -> None:
        """Posts {text} and reads {embedding}."""
        settings = EmbeddingSettings(base_url="http://embedder:3000/api")

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"embedding": [0.5, 0.5]})

        service = EndpointEmbeddingService(settings=settings, client=mock_client)
        result = await service.embed("hello")

        assert result.embedding == [0.5, 0.5]
        assert mock_client.post.call_args.args[0] == "http://embedder:3000/api/embedding"
        assert mock_client.post.call_args.kwargs["json"] == {"text": "hello"}

    @pytest.mark.asyncio
    async def test_missing_embedding_key(self) -> None:
        """A body without an embedding is a missing embedding."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response({"error": "model not loaded"})

        service = EndpointEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(MissingEmbeddingError):
            await service.embed("hello")

    @pytest.mark.asyncio
    async def test_non_object_body(self) -> None:
        """A body that is not an object is an embedding error."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response([0.1, 0.2])

        service = EndpointEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(EmbeddingError):
            await service.embed("hello")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"embedding": ["not-a-number"]}, {"embedding": "abc"}, {"embedding": 7}],
    )
    async def test_non_numeric_embedding(self, body: object) -> None:
        """A vector that is not a list of numbers is an embedding error."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _json_response(body)

        service = EndpointEmbeddingService(settings=EmbeddingSettings(), client=mock_client)

        with pytest.raises(EmbeddingError, match="Invalid response"):
            await service.embed("hello")


class TestLocalEmbeddingService:
    """Tests for the in-process sentence-transformers service."""

    @pytest.mark.asyncio
    async def test_embed_batch_uses_model(self) -> None:
        """Vectors come from the model's encode, normalized."""
        model = MagicMock()
        model.encode.return_value = [[0.6, 0.8], [1.0, 0.0]]

        service = LocalEmbeddingService(settings=EmbeddingSettings(), model=model)
        results = await service.embed_batch(["a", "b"])

        assert [r.embedding for r in results] == [[0.6, 0.8], [1.0, 0.0]]
        assert model.encode.call_args.kwargs["normalize_embeddings"] is True

    @pytest.mark.asyncio
    async def test_encode_failure(self) -> None:
        """Model errors surface as EmbeddingError."""
        model = MagicMock()
        model.encode.side_effect = RuntimeError("out of memory")

        service = LocalEmbeddingService(settings=EmbeddingSettings(), model=model)

        with pytest.raises(EmbeddingError, match="out of memory"):
            await service.embed("a")


class TestCreateEmbeddingService:
    """Tests for provider selection."""

    @pytest.mark.parametrize(
        ("provider", "expected"),
        [
            (EmbeddingProvider.OPENAI, HTTPEmbeddingService),
            (EmbeddingProvider.ENDPOINT, EndpointEmbeddingService),
            (EmbeddingProvider.LOCAL, LocalEmbeddingService),
        ],
    )
    def test_provider(self, provider: EmbeddingProvider, expected: type) -> None:
        """Each provider maps to its service."""
        service = create_embedding_service(EmbeddingSettings(provider=provider))
        assert isinstance(service, expected)
