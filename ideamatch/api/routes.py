"""API routes for embedding, tagging and matching."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from ideamatch.api.dependencies import (
    get_default_source,
    get_embedding_service,
    get_orchestrator,
    get_tag_extractor,
)
from ideamatch.config import get_settings
from ideamatch.embeddings.service import EmbeddingService
from ideamatch.exceptions import IdeaMatchError, ValidationError
from ideamatch.ideas.models import Idea
from ideamatch.logging_config import get_logger
from ideamatch.matching.grouping import CollaborationGroup, build_collaboration_groups
from ideamatch.matching.models import MatchDecision
from ideamatch.matching.orchestrator import MatchOrchestrator
from ideamatch.matching.sources import CandidateSource, LocalListSource
from ideamatch.tagging.service import TagExtractor

logger = get_logger(__name__)

# Routes the web client calls directly
router = APIRouter(tags=["Ideas"])

# Matching and grouping
matching_router = APIRouter(prefix="/api/v1", tags=["Matching"])


class EmbeddingRequest(BaseModel):
    """Request body for text embedding."""

    text: str = Field(default="", description="Text to embed")


class EmbeddingResponse(BaseModel):
    """Embedding of one text."""

    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used")
    dimensions: int = Field(description="Vector length")


class ExtractTagsRequest(BaseModel):
    """Request body for tag extraction."""

    title: str = Field(default="", description="Idea title")
    content: str = Field(default="", description="Idea body text")


class ExtractTagsResponse(BaseModel):
    """Suggested tags."""

    tags: list[str] = Field(description="Suggested tags")


class GroupIdea(BaseModel):
    title: str = Field(default="", description="Idea title")
    content: str = Field(default="", description="Idea body text")


class GroupNameRequest(BaseModel):
    """Request body for group naming."""

    ideas: list[GroupIdea] = Field(min_length=1, description="Grouped ideas, source first")


class GroupNameResponse(BaseModel):
    group_name: str = Field(description="Suggested group name")


class MatchRequest(BaseModel):
    """Request body for matching a new idea."""

    text: str = Field(min_length=1, description="Idea text to embed")
    author_id: str = Field(min_length=1, description="Submitting author")
    tags: list[str] = Field(default_factory=list, description="Idea tags")
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Similarity cutoff; configured default if omitted",
    )
    candidates: list[Idea] | None = Field(
        default=None,
        description="Ideas to match against; stored ideas if omitted",
    )


class GroupsRequest(BaseModel):
    """Request body for collaboration group detection."""

    ideas: list[Idea] = Field(description="Ideas with embeddings")
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class GroupsResponse(BaseModel):
    groups: list[CollaborationGroup] = Field(description="Detected groups")


@router.post("/embedding", response_model=EmbeddingResponse)
async def embedding_endpoint(
    request: EmbeddingRequest,
    embedding_service: Annotated[EmbeddingService, Depends(get_embedding_service)],
) -> EmbeddingResponse:
    """Embed a text with the configured model."""
    if not request.text.strip():
        raise ValidationError("Text is required")

    result = await embedding_service.embed(request.text)
    return EmbeddingResponse(
        embedding=result.embedding,
        model=result.model,
        dimensions=result.dimensions,
    )


@router.post("/extract-tags", response_model=ExtractTagsResponse)
async def extract_tags_endpoint(
    request: ExtractTagsRequest,
    extractor: Annotated[TagExtractor, Depends(get_tag_extractor)],
) -> ExtractTagsResponse:
    """Suggest tags for an idea."""
    tags = await extractor.extract_tags(request.title, request.content)
    return ExtractTagsResponse(tags=tags)


@router.post("/generate-group-name", response_model=GroupNameResponse)
async def generate_group_name_endpoint(
    request: GroupNameRequest,
    extractor: Annotated[TagExtractor, Depends(get_tag_extractor)],
) -> GroupNameResponse:
    """Suggest a name for a group of similar ideas."""
    name = await extractor.suggest_group_name([idea.title for idea in request.ideas])
    return GroupNameResponse(group_name=name)


@matching_router.post("/match", response_model=MatchDecision)
async def match_endpoint(
    request: MatchRequest,
    http_request: Request,
    orchestrator: Annotated[MatchOrchestrator, Depends(get_orchestrator)],
) -> MatchDecision:
    """Embed an idea and match it against candidates.

    Embedding or ranking failures come back as an ``aborted`` decision,
    not as an error response.
    """
    source: CandidateSource
    if request.candidates is not None:
        source = LocalListSource(
            request.candidates,
            strict=get_settings().matching.strict_dimensions,
        )
    else:
        try:
            source = await get_default_source(http_request)
        except IdeaMatchError as e:
            return orchestrator.abort(e, request.author_id)

    return await orchestrator.submit_idea_and_match(
        request.text,
        request.tags,
        request.author_id,
        source,
        request.threshold,
    )


@matching_router.post("/groups", response_model=GroupsResponse)
async def groups_endpoint(request: GroupsRequest) -> GroupsResponse:
    """Find collaboration groups among the given ideas."""
    groups = build_collaboration_groups(request.ideas, request.threshold)
    logger.info(f"Found {len(groups)} collaboration groups", extra={"idea_count": len(request.ideas)})
    return GroupsResponse(groups=groups)
