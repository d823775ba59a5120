"""Semantic idea matching."""

from ideamatch.matching.grouping import CollaborationGroup, build_collaboration_groups
from ideamatch.matching.models import (
    MatchAborted,
    MatchCandidate,
    MatchDecision,
    MatchOutcome,
    MultiMatch,
    NoMatch,
    SingleMatch,
)
from ideamatch.matching.orchestrator import MatchOrchestrator, classify_matches
from ideamatch.matching.similarity import cosine_similarity, rank_candidates
from ideamatch.matching.sources import CandidateSource, LocalListSource, RemoteRankedSource

__all__ = [
    "CandidateSource",
    "CollaborationGroup",
    "LocalListSource",
    "MatchAborted",
    "MatchCandidate",
    "MatchDecision",
    "MatchOrchestrator",
    "MatchOutcome",
    "MultiMatch",
    "NoMatch",
    "RemoteRankedSource",
    "SingleMatch",
    "build_collaboration_groups",
    "classify_matches",
    "cosine_similarity",
    "rank_candidates",
]
