"""Idea submission and session state."""

from ideamatch.submission.models import CommitState, SubmissionRecord, SubmissionResult
from ideamatch.submission.service import SubmissionService
from ideamatch.submission.state import AppState

__all__ = [
    "AppState",
    "CommitState",
    "SubmissionRecord",
    "SubmissionResult",
    "SubmissionService",
]
