"""Candidate sources: where ideas to match against come from.

Both implementations honour the same contract as ``rank_candidates``:
excluded authors never appear, every score clears the threshold and the
result is sorted most similar first.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ideamatch.config import RankingSettings, get_settings
from ideamatch.exceptions import ErrorCode, MissingEmbeddingError, RankingError
from ideamatch.ideas.models import Idea
from ideamatch.logging_config import get_logger
from ideamatch.matching.models import MatchCandidate
from ideamatch.matching.similarity import rank_candidates

logger = get_logger(__name__)


class CandidateSource(ABC):
    """Abstract base class for candidate sources."""

    @abstractmethod
    async def rank(
        self,
        query: Sequence[float] | None,
        exclude_authors: set[str] | frozenset[str],
        threshold: float,
        limit: int | None = None,
        exclude_idea_id: str | None = None,
    ) -> list[MatchCandidate]:
        """Rank stored ideas against a query vector.

        Args:
            query: Embedding of the idea being matched.
            exclude_authors: Authors whose ideas never match.
            threshold: Minimum similarity to keep a candidate.
            limit: Maximum number of candidates to return.
            exclude_idea_id: Id of the source idea itself, if stored.

        Returns:
            Ranked matches, most similar first.

        Raises:
            MissingEmbeddingError: If ``query`` is missing.
            RankingError: If a remote source fails.
        """
        ...


class LocalListSource(CandidateSource):
    """Ranks an already-fetched list of ideas in process."""

    def __init__(self, ideas: Iterable[Idea], strict: bool = False) -> None:
        """Initialize the source.

        Args:
            ideas: Ideas to match against. Snapshotted; later changes to
                the caller's list are not seen.
            strict: Raise on dimension mismatch instead of skipping.
        """
        self._ideas: tuple[Idea, ...] = tuple(ideas)
        self._strict = strict

    def __len__(self) -> int:
        return len(self._ideas)

    async def rank(
        self,
        query: Sequence[float] | None,
        exclude_authors: set[str] | frozenset[str],
        threshold: float,
        limit: int | None = None,
        exclude_idea_id: str | None = None,
    ) -> list[MatchCandidate]:
        """Rank the snapshot in memory."""
        matches = rank_candidates(
            query,
            self._ideas,
            exclude_authors,
            threshold,
            exclude_idea_id=exclude_idea_id,
            strict=self._strict,
        )
        return matches[:limit] if limit is not None else matches


class RemoteRankedSource(CandidateSource):
    """Delegates top-K ranking to a database RPC over HTTP.

    The RPC receives ``{query_embedding, match_threshold, match_count,
    exclude_author, exclude_idea_id}`` and returns rows of
    ``{id, author_id, title, content, tags, created_at, similarity}``.
    """

    def __init__(
        self,
        settings: RankingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the remote source.

        Args:
            settings: Ranking RPC configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().ranking
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def url(self) -> str:
        """RPC endpoint URL."""
        base = self._settings.base_url.rstrip("/")
        return f"{base}/rest/v1/rpc/{self._settings.function}"

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._settings.api_key is not None:
            key = self._settings.api_key.get_secret_value()
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        return headers

    async def rank(
        self,
        query: Sequence[float] | None,
        exclude_authors: set[str] | frozenset[str],
        threshold: float,
        limit: int | None = None,
        exclude_idea_id: str | None = None,
    ) -> list[MatchCandidate]:
        """Run the remote ranking RPC."""
        if not query:
            raise MissingEmbeddingError("Query idea has no embedding; cannot rank candidates")

        excluded = frozenset(exclude_authors)
        match_count = limit or get_settings().matching.match_count
        payload: dict[str, Any] = {
            "query_embedding": list(query),
            "match_threshold": threshold,
            "match_count": match_count,
            # The RPC filters a single author; the rest are filtered below.
            "exclude_author": min(excluded) if excluded else None,
            "exclude_idea_id": exclude_idea_id,
        }

        client = await self._get_client()
        url = self.url

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Ranking RPC failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise RankingError(
                f"Ranking RPC returned {e.response.status_code}",
                code=ErrorCode.RANKING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Ranking RPC error: {e}", extra={"url": url})
            raise RankingError(
                f"Failed to connect to ranking RPC: {e}",
                code=ErrorCode.RANKING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            rows = response.json()
            if not isinstance(rows, list):
                raise ValueError("expected a JSON array of rows")
            candidates = [self._row_to_candidate(row) for row in rows]
        except (AttributeError, KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise RankingError(
                f"Invalid response from ranking RPC: {e}",
                code=ErrorCode.RANKING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        matches = [
            c
            for c in candidates
            if c.similarity >= threshold
            and not c.idea.shares_author(excluded)
            and (exclude_idea_id is None or c.idea.id != exclude_idea_id)
        ]
        matches.sort(key=lambda m: m.similarity, reverse=True)

        logger.debug(
            f"Remote ranking returned {len(matches)} matches",
            extra={"rows": len(candidates), "threshold": threshold},
        )
        return matches[:match_count]

    @staticmethod
    def _row_to_candidate(row: dict[str, Any]) -> MatchCandidate:
        similarity = float(row["similarity"])
        idea = Idea.model_validate({k: v for k, v in row.items() if k != "similarity"})
        return MatchCandidate(idea=idea, similarity=similarity)
