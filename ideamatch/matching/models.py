"""Matching data models."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from ideamatch.ideas.models import Idea


class MatchOutcome(str, Enum):
    """Terminal outcome of a matching run."""

    NO_MATCH = "no_match"
    SINGLE_MATCH = "single_match"
    MULTI_MATCH = "multi_match"
    ABORTED = "aborted"


class MatchState(str, Enum):
    """States of a single submission's matching flow."""

    START = "start"
    EMBEDDING_PENDING = "embedding_pending"
    EMBEDDING_OK = "embedding_ok"
    EMBEDDING_FAILED = "embedding_failed"
    MATCHING = "matching"
    NO_MATCH = "no_match"
    SINGLE_MATCH = "single_match"
    MULTI_MATCH = "multi_match"
    ABORT_MATCH = "abort_match"


class MatchCandidate(BaseModel):
    """An existing idea paired with its similarity to the query.

    Attributes:
        idea: The candidate idea.
        similarity: Cosine similarity to the query vector.
    """

    idea: Idea = Field(description="Candidate idea")
    similarity: float = Field(description="Cosine similarity")


class NoMatch(BaseModel):
    """Matching ran and no candidate passed the threshold."""

    outcome: Literal[MatchOutcome.NO_MATCH] = MatchOutcome.NO_MATCH


class SingleMatch(BaseModel):
    """Exactly one candidate passed; suggest a conversation."""

    outcome: Literal[MatchOutcome.SINGLE_MATCH] = MatchOutcome.SINGLE_MATCH
    candidate: MatchCandidate = Field(description="The matching idea")


class MultiMatch(BaseModel):
    """Two or more candidates passed; suggest forming a group."""

    outcome: Literal[MatchOutcome.MULTI_MATCH] = MatchOutcome.MULTI_MATCH
    candidates: list[MatchCandidate] = Field(
        min_length=2,
        description="Matching ideas, most similar first",
    )


class MatchAborted(BaseModel):
    """Matching never completed; the idea is still persisted."""

    outcome: Literal[MatchOutcome.ABORTED] = MatchOutcome.ABORTED
    reason: str = Field(description="Why matching did not run to completion")
    error_code: str = Field(description="Structured error code")


MatchDecision = Annotated[
    NoMatch | SingleMatch | MultiMatch | MatchAborted,
    Field(discriminator="outcome"),
]
