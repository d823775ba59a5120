"""Idea submission: optimistic display, persistence and matching."""

import asyncio
from uuid import uuid4

from ideamatch.config import MatchingSettings, get_settings
from ideamatch.embeddings.service import EmbeddingService, build_idea_text
from ideamatch.exceptions import EmbeddingError, IdeaMatchError
from ideamatch.ideas.models import IdeaDraft
from ideamatch.logging_config import get_logger
from ideamatch.matching.models import MatchDecision
from ideamatch.matching.orchestrator import MatchOrchestrator
from ideamatch.matching.sources import CandidateSource, LocalListSource
from ideamatch.storage.service import IdeaStore
from ideamatch.submission.models import SubmissionRecord, SubmissionResult
from ideamatch.submission.state import AppState

logger = get_logger(__name__)


class SubmissionService:
    """Submits ideas and matches them against what the session already sees."""

    def __init__(
        self,
        store: IdeaStore,
        orchestrator: MatchOrchestrator,
        embedding_service: EmbeddingService,
        settings: MatchingSettings | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Where ideas are persisted.
            orchestrator: Match orchestrator.
            embedding_service: Vectorizer for idea text.
            settings: Matching configuration.
        """
        self._store = store
        self._orchestrator = orchestrator
        self._embedding_service = embedding_service
        self._settings = settings or get_settings().matching

    async def _embed(self, text: str) -> tuple[list[float] | None, IdeaMatchError | None]:
        try:
            result = await self._embedding_service.embed(text)
        except IdeaMatchError as e:
            logger.warning(f"Embedding failed, storing idea without one: {e.message}")
            return None, e
        except Exception as e:
            logger.exception("Unexpected embedding failure, storing idea without one")
            return None, EmbeddingError(
                f"Unexpected embedding failure: {e}",
                details={"error_type": type(e).__name__},
            )
        return result.embedding, None

    async def submit(
        self,
        draft: IdeaDraft,
        state: AppState,
        source: CandidateSource | None = None,
    ) -> SubmissionResult:
        """Submit an idea.

        The idea is shown in ``state`` at once under a local id. The
        embedding is computed once from the submitted text; persistence and
        matching then run concurrently and may finish in either order.
        A persistence failure rolls the idea back but the match decision is
        still returned.

        Args:
            draft: The idea as authored.
            state: Session state to update.
            source: Candidates to match against. Defaults to the ideas in
                ``state`` before this submission.

        Returns:
            The commit outcome and match decision.
        """
        if source is None:
            source = LocalListSource(state.snapshot(), strict=self._settings.strict_dimensions)

        record = SubmissionRecord(local_id=f"tmp-{uuid4().hex}", draft=draft)
        state.add_provisional(record)

        text = build_idea_text(draft.title, draft.content, draft.tags)
        embedding, embed_error = await self._embed(text)

        if embed_error is not None:
            matching = self._aborted(embed_error, draft.author_id)
        else:
            matching = self._orchestrator.match_embedding(embedding, draft.author_id, source)

        stored, decision = await asyncio.gather(
            self._store.insert(draft, embedding),
            matching,
            return_exceptions=True,
        )

        error = None
        if isinstance(stored, IdeaMatchError):
            state.rollback(record, stored.message)
            logger.error(
                f"Failed to save idea: {stored.message}",
                extra={"local_id": record.local_id, "error_code": stored.code.value},
            )
            error, stored = stored.to_dict(), None
        elif isinstance(stored, BaseException):
            state.rollback(record, str(stored))
            raise stored
        else:
            state.commit(record, stored)

        if isinstance(decision, BaseException):
            raise decision

        logger.info(
            "Idea submitted",
            extra={
                "local_id": record.local_id,
                "commit_state": record.state.value,
                "outcome": decision.outcome.value,
            },
        )
        return SubmissionResult(record=record, decision=decision, idea=stored, error=error)

    async def _aborted(self, error: IdeaMatchError, author_id: str) -> MatchDecision:
        return self._orchestrator.abort(error, author_id)
