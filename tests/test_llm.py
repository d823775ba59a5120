"""Tests for LLM module."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from ideamatch.config import LLMSettings
from ideamatch.exceptions import ConfigurationError, ErrorCode, LLMError
from ideamatch.llm.client import OpenAICompatibleClient
from ideamatch.llm.models import GenerationResult, Message, Role
from ideamatch.llm.prompts import GroupNamePromptTemplate, TagExtractionPromptTemplate


def _configured(**kwargs: object) -> LLMSettings:
    return LLMSettings(base_url="http://test:8000/v1", api_key="sk-test", **kwargs)


def _chat_response(content: str | None, **extra: object) -> MagicMock:
    mock_response = MagicMock()
    mock_response.json.return_value = {
        "choices": [{"message": {"content": content}, "finish_reason": "stop"}],
        "usage": {},
        **extra,
    }
    mock_response.raise_for_status = MagicMock()
    return mock_response


class TestMessage:
    """Tests for Message model."""

    def test_create_message(self) -> None:
        """Message can be created."""
        msg = Message(role=Role.USER, content="Hello")
        assert msg.role == Role.USER
        assert msg.content == "Hello"

    def test_role_values(self) -> None:
        """Role enum has expected values."""
        assert Role.SYSTEM.value == "system"
        assert Role.USER.value == "user"
        assert Role.ASSISTANT.value == "assistant"


class TestGenerationResult:
    """Tests for GenerationResult model."""

    def test_create_result(self) -> None:
        """Result can be created."""
        result = GenerationResult(
            content="Generated text",
            model="test-model",
            prompt_tokens=10,
            completion_tokens=20,
            total_tokens=30,
        )
        assert result.content == "Generated text"
        assert result.total_tokens == 30
        assert result.truncated is False

    def test_truncated_on_length(self) -> None:
        """A length stop means the answer was cut off."""
        result = GenerationResult(content='["a", "b', model="m", finish_reason="length")
        assert result.truncated is True


class TestOpenAICompatibleClient:
    """Tests for OpenAICompatibleClient."""

    def test_model_name(self) -> None:
        """Client returns configured model name."""
        client = OpenAICompatibleClient(settings=LLMSettings(model="Qwen/Qwen2.5-7B-Instruct"))
        assert client.model_name == "Qwen/Qwen2.5-7B-Instruct"

    def test_is_configured(self) -> None:
        """Only a client with a key is configured."""
        assert OpenAICompatibleClient(settings=_configured()).is_configured is True
        assert OpenAICompatibleClient(settings=LLMSettings(api_key="")).is_configured is False

    @pytest.mark.asyncio
    async def test_generate_without_key(self) -> None:
        """Generating without a key is a configuration error, not a request."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        client = OpenAICompatibleClient(settings=LLMSettings(api_key=""), client=mock_client)

        with pytest.raises(ConfigurationError):
            await client.generate([Message(role=Role.USER, content="Hello")])

        mock_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_generate(self) -> None:
        """Client generates text."""
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": "Generated response"}}],
            "model": "test-model",
            "usage": {
                "prompt_tokens": 10,
                "completion_tokens": 20,
                "total_tokens": 30,
            },
        }
        mock_response.raise_for_status = MagicMock()

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response

        client = OpenAICompatibleClient(settings=_configured(model="test-model"), client=mock_client)

        result = await client.generate([Message(role=Role.USER, content="Hello")])

        assert result.content == "Generated response"
        assert result.model == "test-model"
        assert result.total_tokens == 30

        call = mock_client.post.call_args
        assert call.args[0] == "http://test:8000/v1/chat/completions"
        assert call.kwargs["headers"] == {"Authorization": "Bearer sk-test"}

    @pytest.mark.asyncio
    async def test_generate_text(self) -> None:
        """Client generates text from simple prompt."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _chat_response("Response")

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)

        result = await client.generate_text(
            prompt="Extract tags",
            system_prompt="You extract tags.",
            temperature=0.0,
        )

        assert result.content == "Response"

        payload = mock_client.post.call_args.kwargs["json"]
        assert [m["role"] for m in payload["messages"]] == ["system", "user"]
        # An explicit zero temperature is kept, not replaced by the default
        assert payload["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_null_content(self) -> None:
        """A null message content becomes an empty string."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _chat_response(None)

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)
        result = await client.generate_text("Hi")

        assert result.content == ""

    @pytest.mark.asyncio
    async def test_malformed_response(self) -> None:
        """A body without choices raises LLMError."""
        mock_response = MagicMock()
        mock_response.json.return_value = {"error": "bad"}
        mock_response.raise_for_status = MagicMock()

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)

        with pytest.raises(LLMError, match="Invalid response"):
            await client.generate_text("Hi")

    @pytest.mark.asyncio
    async def test_timeout_error(self) -> None:
        """Timeout raises LLMError with correct code."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.TimeoutException("Timeout")

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)

        with pytest.raises(LLMError) as exc_info:
            await client.generate([Message(role=Role.USER, content="Hello")])

        assert exc_info.value.code == ErrorCode.LLM_TIMEOUT

    @pytest.mark.asyncio
    async def test_rate_limit_error(self) -> None:
        """Rate limit returns correct error code."""
        mock_response = MagicMock()
        mock_response.status_code = 429
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Rate limit",
            request=MagicMock(),
            response=mock_response,
        )

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)

        with pytest.raises(LLMError) as exc_info:
            await client.generate([Message(role=Role.USER, content="Hello")])

        assert exc_info.value.code == ErrorCode.LLM_RATE_LIMIT

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        """Connection error raises LLMError."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.RequestError("Connection failed")

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)

        with pytest.raises(LLMError) as exc_info:
            await client.generate([Message(role=Role.USER, content="Hello")])

        assert exc_info.value.code == ErrorCode.LLM_SERVICE_ERROR

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        """Client closes properly."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)

        client = OpenAICompatibleClient(settings=_configured(), client=mock_client)
        client._owns_client = True

        await client.close()

        mock_client.aclose.assert_called_once()


class TestTagExtractionPromptTemplate:
    """Tests for TagExtractionPromptTemplate."""

    def test_default_prompts(self) -> None:
        """Template asks for a JSON array."""
        template = TagExtractionPromptTemplate()
        assert "JSON array" in template.system_prompt

    def test_build_prompt(self) -> None:
        """Title, content and tag range are rendered."""
        template = TagExtractionPromptTemplate()
        _, user = template.build_prompt("Solar drones", "Charge in flight", max_tags=5)

        assert "Title: Solar drones" in user
        assert "Content: Charge in flight" in user
        assert "3-5" in user

    def test_missing_fields(self) -> None:
        """Empty fields render as (none)."""
        template = TagExtractionPromptTemplate()
        _, user = template.build_prompt("", "Only content", max_tags=2)

        assert "Title: (none)" in user
        assert "2-2" in user

    def test_custom_prompts(self) -> None:
        """Custom prompts can be provided."""
        template = TagExtractionPromptTemplate(
            system_prompt="Custom system",
            user_template="{title}|{content}|{min_tags}|{max_tags}",
        )
        system, user = template.build_prompt("T", "C", max_tags=4)
        assert system == "Custom system"
        assert user == "T|C|3|4"


class TestGroupNamePromptTemplate:
    """Tests for GroupNamePromptTemplate."""

    def test_format_ideas_caps_titles(self) -> None:
        """Only the first three titles are shown."""
        template = GroupNamePromptTemplate()
        rendered = template.format_ideas(["A", "B", "C", "D"])

        assert rendered == "Idea 1: A\nIdea 2: B\nIdea 3: C"

    def test_build_prompt(self) -> None:
        """Titles are rendered into the user prompt."""
        template = GroupNamePromptTemplate()
        system, user = template.build_prompt(["Solar drones"])

        assert system == template.system_prompt
        assert "Idea 1: Solar drones" in user
