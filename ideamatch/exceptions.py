"""Application exception hierarchy.

All custom exceptions inherit from IdeaMatchError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "IDM-1000"
    CONFIGURATION_ERROR = "IDM-1001"
    VALIDATION_ERROR = "IDM-1002"

    # Matching errors (2xxx)
    MISSING_EMBEDDING = "IDM-2000"
    DIMENSION_MISMATCH = "IDM-2001"

    # Upstream errors (3xxx)
    UPSTREAM_UNAVAILABLE = "IDM-3000"
    EMBEDDING_SERVICE_ERROR = "IDM-3001"
    RANKING_SERVICE_ERROR = "IDM-3002"
    LLM_SERVICE_ERROR = "IDM-3003"
    LLM_TIMEOUT = "IDM-3004"
    LLM_RATE_LIMIT = "IDM-3005"

    # Storage errors (4xxx)
    VECTOR_STORE_ERROR = "IDM-4000"
    COLLECTION_NOT_FOUND = "IDM-4001"
    PERSISTENCE_ERROR = "IDM-4002"

    # Tagging errors (5xxx)
    TAG_PARSE_ERROR = "IDM-5000"


class IdeaMatchError(Exception):
    """Base exception for all idea match service errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(IdeaMatchError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(IdeaMatchError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class MissingEmbeddingError(IdeaMatchError):
    """A required vector is absent.

    This is a precondition violation, never a "zero results" case.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.MISSING_EMBEDDING, details)


class DimensionMismatchError(IdeaMatchError):
    """Two vectors of different length were compared."""

    def __init__(
        self,
        left: int,
        right: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.left = left
        self.right = right
        super().__init__(
            f"Vector dimension mismatch: {left} vs {right}",
            ErrorCode.DIMENSION_MISMATCH,
            {"left": left, "right": right, **(details or {})},
        )


class UpstreamUnavailableError(IdeaMatchError):
    """A remote collaborator is unreachable or erroring."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UPSTREAM_UNAVAILABLE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingError(UpstreamUnavailableError):
    """Embedding service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class RankingError(UpstreamUnavailableError):
    """Remote ranking RPC error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RANKING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LLMError(UpstreamUnavailableError):
    """LLM service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorStoreError(IdeaMatchError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class TagParseError(IdeaMatchError):
    """Model output did not contain a parseable JSON array of tags."""

    def __init__(
        self,
        message: str,
        raw_text: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.raw_text = raw_text
        super().__init__(
            message,
            ErrorCode.TAG_PARSE_ERROR,
            {"raw_text": raw_text[:200], **(details or {})},
        )
