"""LLM client module."""

from ideamatch.llm.client import LLMClient, OpenAICompatibleClient
from ideamatch.llm.models import GenerationResult, Message, Role
from ideamatch.llm.prompts import (
    GroupNamePromptTemplate,
    PromptTemplate,
    TagExtractionPromptTemplate,
)

__all__ = [
    "GenerationResult",
    "GroupNamePromptTemplate",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "PromptTemplate",
    "Role",
    "TagExtractionPromptTemplate",
]
