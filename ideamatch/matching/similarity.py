"""Cosine similarity and candidate ranking.

Everything here is pure: inputs in, ranked candidates out. No I/O and no
shared state, so the same inputs always produce the same ordered output.
"""

import math
from collections.abc import Iterable, Sequence

from ideamatch.exceptions import DimensionMismatchError, MissingEmbeddingError
from ideamatch.ideas.models import Idea
from ideamatch.logging_config import get_logger
from ideamatch.matching.models import MatchCandidate

logger = get_logger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        a: First vector.
        b: Second vector, same length as ``a``.

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_candidates(
    query: Sequence[float] | None,
    candidates: Iterable[Idea],
    exclude_authors: set[str] | frozenset[str],
    threshold: float,
    *,
    exclude_idea_id: str | None = None,
    strict: bool = False,
) -> list[MatchCandidate]:
    """Rank candidate ideas against a query vector.

    Candidates without an embedding, candidates sharing an author with
    ``exclude_authors`` and the idea ``exclude_idea_id`` are skipped.
    Survivors scoring at least ``threshold`` are returned most similar first;
    ties keep their input order.

    Args:
        query: Embedding of the idea being matched.
        candidates: Existing ideas to compare against.
        exclude_authors: Authors whose ideas never match.
        threshold: Minimum similarity to keep a candidate.
        exclude_idea_id: Id of the source idea itself, if already stored.
        strict: Raise on dimension mismatch instead of skipping the candidate.

    Returns:
        Ranked list of matches, possibly empty.

    Raises:
        MissingEmbeddingError: If ``query`` is missing or empty.
        DimensionMismatchError: On a mismatched candidate when ``strict``.
    """
    if not query:
        raise MissingEmbeddingError("Query idea has no embedding; cannot rank candidates")

    excluded = frozenset(exclude_authors)
    matches: list[MatchCandidate] = []

    for idea in candidates:
        if exclude_idea_id is not None and idea.id == exclude_idea_id:
            continue
        if idea.shares_author(excluded):
            continue
        if not idea.embedding:
            continue

        try:
            similarity = cosine_similarity(query, idea.embedding)
        except DimensionMismatchError as e:
            if strict:
                raise
            logger.warning(
                "Skipping candidate with mismatched embedding",
                extra={"idea_id": idea.id, "query_dims": e.left, "candidate_dims": e.right},
            )
            continue

        if similarity >= threshold:
            matches.append(MatchCandidate(idea=idea, similarity=similarity))

    # list.sort is stable, including with reverse=True
    matches.sort(key=lambda m: m.similarity, reverse=True)
    return matches
