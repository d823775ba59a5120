"""Match orchestrator: embed a new idea, rank candidates, classify."""

from collections.abc import Sequence

from ideamatch.config import MatchingSettings, get_settings
from ideamatch.embeddings.service import EmbeddingService
from ideamatch.exceptions import IdeaMatchError
from ideamatch.logging_config import get_logger
from ideamatch.matching.models import (
    MatchAborted,
    MatchCandidate,
    MatchDecision,
    MatchOutcome,
    MatchState,
    MultiMatch,
    NoMatch,
    SingleMatch,
)
from ideamatch.matching.sources import CandidateSource
from ideamatch.observability.metrics import track_match_decision

logger = get_logger(__name__)


def classify_matches(candidates: Sequence[MatchCandidate]) -> MatchDecision:
    """Classify ranked candidates.

    One match suggests a conversation; two or more suggest a group.

    Args:
        candidates: Ranked matches, most similar first.

    Returns:
        NoMatch, SingleMatch or MultiMatch.
    """
    if not candidates:
        return NoMatch()
    if len(candidates) == 1:
        return SingleMatch(candidate=candidates[0])
    return MultiMatch(candidates=list(candidates))


class MatchOrchestrator:
    """Runs the matching branch of an idea submission.

    Stateless between calls: the caller supplies the candidate source and
    receives a decision. Failures never escape; they become MatchAborted.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        settings: MatchingSettings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            embedding_service: Vectorizer for idea text.
            settings: Matching configuration.
        """
        self._embedding_service = embedding_service
        self._settings = settings or get_settings().matching

    def _transition(self, state: MatchState, author_id: str) -> None:
        logger.debug(f"Match state -> {state.value}", extra={"author_id": author_id})

    async def submit_idea_and_match(
        self,
        text: str,
        tags: list[str],
        author_id: str,
        source: CandidateSource,
        threshold: float | None = None,
        *,
        idea_id: str | None = None,
    ) -> MatchDecision:
        """Embed a freshly authored idea and match it against a source.

        Args:
            text: Idea text, embedded exactly as given.
            tags: Idea tags, carried for logging only.
            author_id: Submitting author; their ideas never match.
            source: Where candidates come from.
            threshold: Similarity cutoff; defaults to configuration.
            idea_id: Id of the idea if already stored, to skip itself.

        Returns:
            The match decision.
        """
        self._transition(MatchState.START, author_id)
        self._transition(MatchState.EMBEDDING_PENDING, author_id)

        try:
            result = await self._embedding_service.embed(text)
        except IdeaMatchError as e:
            self._transition(MatchState.EMBEDDING_FAILED, author_id)
            return self.abort(e, author_id)

        self._transition(MatchState.EMBEDDING_OK, author_id)
        logger.debug(
            "Embedded idea for matching",
            extra={"dimensions": result.dimensions, "tag_count": len(tags)},
        )
        return await self.match_embedding(
            result.embedding,
            author_id,
            source,
            threshold,
            idea_id=idea_id,
        )

    async def match_embedding(
        self,
        embedding: Sequence[float] | None,
        author_id: str,
        source: CandidateSource,
        threshold: float | None = None,
        *,
        idea_id: str | None = None,
    ) -> MatchDecision:
        """Rank and classify for an already computed embedding.

        Args:
            embedding: Vector of the submitted text.
            author_id: Submitting author.
            source: Where candidates come from.
            threshold: Similarity cutoff; defaults to configuration.
            idea_id: Id of the idea if already stored.

        Returns:
            The match decision.
        """
        cutoff = self._settings.threshold if threshold is None else threshold
        self._transition(MatchState.MATCHING, author_id)

        try:
            candidates = await source.rank(
                embedding,
                {author_id},
                cutoff,
                limit=self._settings.match_count,
                exclude_idea_id=idea_id,
            )
        except IdeaMatchError as e:
            return self.abort(e, author_id)

        decision = classify_matches(candidates)
        self._transition(MatchState(decision.outcome.value), author_id)

        track_match_decision(
            decision.outcome.value,
            len(candidates),
            candidates[0].similarity if candidates else None,
        )
        logger.info(
            "Matching finished",
            extra={
                "outcome": decision.outcome.value,
                "match_count": len(candidates),
                "threshold": cutoff,
            },
        )
        return decision

    def abort(self, error: IdeaMatchError, author_id: str) -> MatchAborted:
        """Record a failed run and return the abort decision."""
        self._transition(MatchState.ABORT_MATCH, author_id)
        logger.warning(
            f"Matching aborted: {error.message}",
            extra={"error_code": error.code.value, "author_id": author_id},
        )
        track_match_decision(MatchOutcome.ABORTED.value, 0, None)
        return MatchAborted(reason=error.message, error_code=error.code.value)
