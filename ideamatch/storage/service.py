"""Idea persistence interface and Qdrant implementation."""

from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointIdsList, PointStruct, VectorParams

from ideamatch.config import QdrantSettings, get_settings
from ideamatch.exceptions import ErrorCode, VectorStoreError
from ideamatch.ideas.models import Idea, IdeaDraft
from ideamatch.logging_config import get_logger

logger = get_logger(__name__)

# Named vector so that ideas without an embedding can still be stored.
VECTOR_NAME = "embedding"
SCROLL_PAGE_SIZE = 256


class IdeaStore(ABC):
    """Abstract base class for idea persistence."""

    @abstractmethod
    async def insert(self, draft: IdeaDraft, embedding: list[float] | None) -> Idea:
        """Persist a new idea and return it with its server id.

        Raises:
            VectorStoreError: If the write fails.
        """
        ...

    @abstractmethod
    async def list_ideas(self, limit: int | None = None) -> list[Idea]:
        """Return stored ideas newest first, embeddings included.

        Args:
            limit: Keep only the newest ``limit`` ideas; all if omitted.
        """
        ...

    @abstractmethod
    async def update_tags(self, idea_id: str, tags: list[str]) -> None:
        """Replace the tags of a stored idea."""
        ...

    @abstractmethod
    async def delete(self, idea_id: str) -> None:
        """Delete a stored idea."""
        ...


def _point_to_idea(point: Any) -> Idea:
    payload = dict(point.payload or {})
    vector = point.vector
    if isinstance(vector, dict):
        vector = vector.get(VECTOR_NAME)
    return Idea.model_validate({**payload, "id": str(point.id), "embedding": vector or None})


class QdrantIdeaStore(IdeaStore):
    """Stores one Qdrant point per idea; the payload holds the idea fields."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(url=self._settings.url, api_key=api_key)
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def ensure_collection(self, dimensions: int) -> bool:
        """Create the idea collection if it does not exist.

        Returns:
            True if the collection was created.
        """
        client = await self._get_client()

        try:
            if await client.collection_exists(self.collection):
                return False

            await client.create_collection(
                collection_name=self.collection,
                vectors_config={
                    VECTOR_NAME: VectorParams(size=dimensions, distance=Distance.COSINE),
                },
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to create collection: {e}",
                details={"collection": self.collection, "error": str(e)},
            ) from e

        logger.info(f"Created collection: {self.collection}", extra={"dimensions": dimensions})
        return True

    async def insert(self, draft: IdeaDraft, embedding: list[float] | None) -> Idea:
        """Write the idea as a new point."""
        client = await self._get_client()
        idea = Idea(
            id=str(uuid4()),
            title=draft.title,
            content=draft.content,
            tags=draft.tags,
            author_ids=[draft.author_id],
            is_public=draft.is_public,
            embedding=embedding or None,
        )
        payload = idea.model_dump(mode="json", exclude={"id", "embedding"})

        try:
            await client.upsert(
                collection_name=self.collection,
                points=[
                    PointStruct(
                        id=idea.id,
                        vector={VECTOR_NAME: embedding} if embedding else {},
                        payload=payload,
                    )
                ],
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to save idea: {e}",
                code=ErrorCode.PERSISTENCE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        logger.debug("Saved idea", extra={"idea_id": idea.id, "has_embedding": idea.has_embedding})
        return idea

    async def list_ideas(self, limit: int | None = None) -> list[Idea]:
        """Scroll through every page of the collection, then sort newest first.

        Qdrant scrolls in point-id order, which is random for uuid4 ids, so
        the whole collection is read before ``limit`` is applied.
        """
        client = await self._get_client()
        ideas: list[Idea] = []
        offset = None

        while True:
            try:
                points, offset = await client.scroll(
                    collection_name=self.collection,
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=True,
                    with_vectors=True,
                )
            except Exception as e:
                raise VectorStoreError(
                    f"Failed to list ideas: {e}",
                    details={"collection": self.collection, "error": str(e)},
                ) from e

            ideas.extend(_point_to_idea(point) for point in points)
            if offset is None:
                break

        ideas.sort(key=lambda idea: idea.created_at, reverse=True)
        return ideas if limit is None else ideas[:limit]

    async def update_tags(self, idea_id: str, tags: list[str]) -> None:
        client = await self._get_client()

        try:
            await client.set_payload(
                collection_name=self.collection,
                payload={"tags": tags},
                points=[idea_id],
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to update tags: {e}",
                code=ErrorCode.PERSISTENCE_ERROR,
                details={"idea_id": idea_id, "error": str(e)},
            ) from e

    async def delete(self, idea_id: str) -> None:
        client = await self._get_client()

        try:
            await client.delete(
                collection_name=self.collection,
                points_selector=PointIdsList(points=[idea_id]),
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to delete idea: {e}",
                details={"idea_id": idea_id, "error": str(e)},
            ) from e

        logger.debug("Deleted idea", extra={"idea_id": idea_id})
