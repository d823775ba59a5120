"""Submission data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ideamatch.ideas.models import Idea, IdeaDraft
from ideamatch.matching.models import MatchDecision


class CommitState(str, Enum):
    """Lifecycle of an optimistically shown idea."""

    PROVISIONAL = "provisional"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class SubmissionRecord(BaseModel):
    """Tracks one idea from optimistic display to its final state.

    Attributes:
        local_id: Client-side id shown before the server answers.
        draft: What the author submitted.
        state: Commit lifecycle state.
        committed_id: Id assigned by storage once committed.
        error: Why the idea was rolled back.
    """

    local_id: str = Field(description="Client-side id")
    draft: IdeaDraft = Field(description="Submitted idea")
    state: CommitState = Field(default=CommitState.PROVISIONAL, description="Commit state")
    committed_id: str | None = Field(default=None, description="Storage id")
    error: str | None = Field(default=None, description="Rollback reason")

    def provisional_idea(self) -> Idea:
        """The idea as shown before storage confirms it."""
        return Idea(
            id=self.local_id,
            title=self.draft.title,
            content=self.draft.content,
            tags=self.draft.tags,
            author_ids=[self.draft.author_id],
            is_public=self.draft.is_public,
        )


class SubmissionResult(BaseModel):
    """Outcome of submitting an idea: persistence and matching together."""

    record: SubmissionRecord
    decision: MatchDecision
    idea: Idea | None = Field(default=None, description="Stored idea, if committed")
    error: dict[str, Any] | None = Field(default=None, description="Persistence error")

    @property
    def committed(self) -> bool:
        return self.record.state == CommitState.COMMITTED
