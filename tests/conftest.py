"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from ideamatch.api.app import app
from ideamatch.ideas.models import Idea


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_idea() -> Callable[..., Idea]:
    """Factory for stored ideas; later calls get later timestamps."""
    base = datetime(2024, 1, 1, tzinfo=UTC)
    counter = {"n": 0}

    def _make(
        idea_id: str,
        embedding: list[float] | None,
        author: str = "alice",
        title: str = "",
        content: str = "",
        tags: list[str] | None = None,
        is_public: bool = True,
    ) -> Idea:
        counter["n"] += 1
        return Idea(
            id=idea_id,
            title=title or f"Idea {idea_id}",
            content=content or f"Content of {idea_id}",
            tags=tags or [],
            author_ids=[author],
            is_public=is_public,
            created_at=base + timedelta(minutes=counter["n"]),
            embedding=embedding,
        )

    return _make
