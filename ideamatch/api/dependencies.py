"""Service providers for request handlers.

Services live on ``app.state``. The lifespan creates them at startup; a
provider builds one on first use when the lifespan did not run.
"""

from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import Request

from ideamatch.config import CandidateSourceKind, get_settings
from ideamatch.embeddings.service import EmbeddingService, create_embedding_service
from ideamatch.llm.client import LLMClient, OpenAICompatibleClient
from ideamatch.matching.orchestrator import MatchOrchestrator
from ideamatch.matching.sources import CandidateSource, LocalListSource, RemoteRankedSource
from ideamatch.storage.service import IdeaStore, QdrantIdeaStore
from ideamatch.tagging.service import TagExtractor

T = TypeVar("T")


def _get_or_create(request: Request, name: str, factory: Callable[[], T]) -> T:
    state = request.app.state
    service: Any = getattr(state, name, None)
    if service is None:
        service = factory()
        setattr(state, name, service)
    return service


def get_embedding_service(request: Request) -> EmbeddingService:
    return _get_or_create(request, "embedding_service", create_embedding_service)


def get_llm_client(request: Request) -> LLMClient:
    return _get_or_create(request, "llm_client", OpenAICompatibleClient)


def get_idea_store(request: Request) -> IdeaStore:
    return _get_or_create(request, "idea_store", QdrantIdeaStore)


def get_tag_extractor(request: Request) -> TagExtractor:
    return _get_or_create(request, "tag_extractor", lambda: TagExtractor(get_llm_client(request)))


def get_orchestrator(request: Request) -> MatchOrchestrator:
    return _get_or_create(
        request,
        "orchestrator",
        lambda: MatchOrchestrator(get_embedding_service(request)),
    )


async def get_default_source(request: Request) -> CandidateSource:
    """Candidate source used when a request brings no candidates.

    The remote source is shared; the local one is a fresh snapshot of
    stored ideas per request.
    """
    settings = get_settings().matching
    if settings.source == CandidateSourceKind.REMOTE:
        return _get_or_create(request, "remote_source", RemoteRankedSource)

    ideas = await get_idea_store(request).list_ideas()
    return LocalListSource(ideas, strict=settings.strict_dimensions)
