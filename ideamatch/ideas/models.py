"""Idea data models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(UTC)


class IdeaDraft(BaseModel):
    """A freshly authored idea, before it has an id or embedding.

    Attributes:
        title: Short idea title.
        content: Idea body text.
        tags: Tags entered by the author.
        author_id: Submitting author.
        is_public: Whether the idea is visible to the community.
    """

    title: str = Field(min_length=1, description="Idea title")
    content: str = Field(min_length=1, description="Idea body text")
    tags: list[str] = Field(default_factory=list, description="Author tags")
    author_id: str = Field(min_length=1, description="Submitting author")
    is_public: bool = Field(default=True, description="Community visibility")


class Idea(BaseModel):
    """A stored idea.

    Attributes:
        id: Idea identifier.
        title: Short idea title.
        content: Idea body text.
        tags: Tag list.
        author_ids: One or more author identifiers.
        is_public: Community visibility flag.
        created_at: Creation timestamp.
        embedding: Stored embedding vector, if one was computed.
    """

    id: str = Field(description="Idea identifier")
    title: str = Field(default="", description="Idea title")
    content: str = Field(default="", description="Idea body text")
    tags: list[str] = Field(default_factory=list, description="Tags")
    author_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("author_ids", "author_id"),
        description="Author identifiers",
    )
    is_public: bool = Field(default=True, description="Community visibility")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation time")
    embedding: list[float] | None = Field(default=None, description="Embedding vector")

    @field_validator("author_ids", mode="before")
    @classmethod
    def _coerce_author_ids(cls, value: Any) -> Any:
        """Storage rows carry either a single author or an array."""
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    def shares_author(self, authors: set[str] | frozenset[str]) -> bool:
        """Check whether any author of this idea is in ``authors``."""
        return not authors.isdisjoint(self.author_ids)

    @property
    def has_embedding(self) -> bool:
        """Whether a non-empty embedding is stored."""
        return bool(self.embedding)
