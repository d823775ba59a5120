"""Explicit application state for a session."""

from ideamatch.ideas.models import Idea
from ideamatch.logging_config import get_logger
from ideamatch.submission.models import CommitState, SubmissionRecord

logger = get_logger(__name__)


class AppState:
    """Ideas visible to a session and who is signed in.

    Passed explicitly to the code that reads or mutates it. Newest ideas
    come first.
    """

    def __init__(self, ideas: list[Idea] | None = None, current_author_id: str | None = None) -> None:
        self._ideas: list[Idea] = list(ideas or [])
        self.current_author_id = current_author_id

    def __len__(self) -> int:
        return len(self._ideas)

    def snapshot(self) -> tuple[Idea, ...]:
        """Read-only view of the current ideas."""
        return tuple(self._ideas)

    def get(self, idea_id: str) -> Idea | None:
        for idea in self._ideas:
            if idea.id == idea_id:
                return idea
        return None

    def _index_of(self, idea_id: str) -> int | None:
        for i, idea in enumerate(self._ideas):
            if idea.id == idea_id:
                return i
        return None

    def add_provisional(self, record: SubmissionRecord) -> None:
        """Show the submitted idea before storage confirms it."""
        if record.state != CommitState.PROVISIONAL:
            raise ValueError(f"Record {record.local_id} is {record.state.value}, not provisional")
        self._ideas.insert(0, record.provisional_idea())

    def commit(self, record: SubmissionRecord, idea: Idea) -> None:
        """Replace the provisional entry with the stored idea."""
        if record.state != CommitState.PROVISIONAL:
            raise ValueError(f"Record {record.local_id} is {record.state.value}, not provisional")

        index = self._index_of(record.local_id)
        if index is None:
            self._ideas.insert(0, idea)
        else:
            self._ideas[index] = idea

        record.committed_id = idea.id
        record.state = CommitState.COMMITTED
        logger.debug("Committed idea", extra={"local_id": record.local_id, "idea_id": idea.id})

    def rollback(self, record: SubmissionRecord, error: str | None = None) -> None:
        """Remove the provisional entry, recording why."""
        if record.state != CommitState.PROVISIONAL:
            raise ValueError(f"Record {record.local_id} is {record.state.value}, not provisional")

        index = self._index_of(record.local_id)
        if index is not None:
            del self._ideas[index]

        record.error = error
        record.state = CommitState.ROLLED_BACK
        logger.debug("Rolled back idea", extra={"local_id": record.local_id, "error": error})
