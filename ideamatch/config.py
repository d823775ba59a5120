"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingProvider(str, Enum):
    """Vectorizer strategy."""

    OPENAI = "openai"
    ENDPOINT = "endpoint"
    LOCAL = "local"


class CandidateSourceKind(str, Enum):
    """Where match candidates come from by default."""

    LOCAL = "local"
    REMOTE = "remote"


class LLMSettings(BaseSettings):
    """LLM service configuration.

    Used for tag extraction and group naming via an OpenAI-compatible
    chat completions API.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default="https://api.siliconflow.cn/v1",
        description="LLM API base URL",
    )
    model: str = Field(
        default="Qwen/Qwen2.5-7B-Instruct",
        description="Model name to use for generation",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key (tag extraction is unavailable without it)",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=512,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.3,
        description="Sampling temperature (lower = more deterministic)",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    provider: EmbeddingProvider = Field(
        default=EmbeddingProvider.OPENAI,
        description="Vectorizer strategy: openai, endpoint or local",
    )
    base_url: str = Field(
        default="https://api.siliconflow.cn/v1",
        description="Embedding service base URL",
    )
    model: str = Field(
        default="BAAI/bge-small-en-v1.5",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer key for the embedding API (optional)",
    )
    dimensions: int = Field(
        default=384,
        description="Expected vector dimensions",
    )
    batch_size: int = Field(
        default=32,
        description="Batch size for embedding requests",
    )
    max_input_chars: int = Field(
        default=2000,
        description="Text is truncated to this many characters before remote calls",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )


class RankingSettings(BaseSettings):
    """Remote ranking RPC configuration."""

    model_config = SettingsConfigDict(env_prefix="RANKING_")

    base_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the database REST gateway",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Gateway API key",
    )
    function: str = Field(
        default="match_ideas",
        description="Name of the ranking RPC function",
    )
    timeout: float = Field(
        default=15.0,
        description="Request timeout in seconds",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="ideas",
        description="Collection holding idea records",
    )


class MatchingSettings(BaseSettings):
    """Similarity matching configuration.

    The threshold lives here and nowhere else; call sites may still pass
    an explicit override.
    """

    model_config = SettingsConfigDict(env_prefix="MATCHING_")

    threshold: float = Field(
        default=0.8,
        ge=-1.0,
        le=1.0,
        description="Minimum cosine similarity for a match",
    )
    match_count: int = Field(
        default=10,
        ge=1,
        description="Maximum candidates returned per match",
    )
    group_threshold: float = Field(
        default=0.85,
        ge=-1.0,
        le=1.0,
        description="Minimum similarity for linking ideas into a collaboration group",
    )
    strict_dimensions: bool = Field(
        default=False,
        description="Reject dimension-mismatched candidates instead of skipping them",
    )
    source: CandidateSourceKind = Field(
        default=CandidateSourceKind.LOCAL,
        description="Default candidate source",
    )


class TaggingSettings(BaseSettings):
    """Tag extraction configuration."""

    model_config = SettingsConfigDict(env_prefix="TAGGING_")

    max_tags: int = Field(
        default=5,
        ge=1,
        description="Maximum tags kept from model output",
    )
    temperature: float = Field(
        default=0.3,
        description="Sampling temperature for tag extraction",
    )
    max_tokens: int = Field(
        default=100,
        description="Maximum tokens for tag extraction",
    )
    min_content_chars: int = Field(
        default=5,
        description="Untitled ideas shorter than this are not auto-tagged",
    )
    default_group_name: str = Field(
        default="Idea Circle",
        description="Group name used when the model returns nothing",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    ranking: RankingSettings = Field(default_factory=RankingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    tagging: TaggingSettings = Field(default_factory=TaggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
