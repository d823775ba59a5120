"""Collaboration group detection.

Links ideas from different authors whose embeddings are close, then groups
the links transitively: if A~B and B~C, all three land in one group even
when A and C alone fall under the threshold.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, Field

from ideamatch.config import get_settings
from ideamatch.exceptions import DimensionMismatchError
from ideamatch.ideas.models import Idea
from ideamatch.logging_config import get_logger
from ideamatch.matching.similarity import cosine_similarity

logger = get_logger(__name__)


@dataclass(frozen=True)
class SimilarPair:
    """Two ideas by different authors above the grouping threshold."""

    idea_a: str
    idea_b: str
    similarity: float


class CollaborationGroup(BaseModel):
    """Ideas that could seed a shared discussion group.

    Attributes:
        idea_ids: Ideas in the group, in input order.
        author_ids: Distinct authors involved, sorted.
        max_similarity: Strongest link inside the group.
        anchor_idea_id: Newest idea in the group.
    """

    idea_ids: list[str] = Field(description="Grouped idea ids")
    author_ids: list[str] = Field(description="Distinct authors")
    max_similarity: float = Field(description="Strongest pairwise similarity")
    anchor_idea_id: str = Field(description="Newest idea in the group")


class _UnionFind:
    """Path-compressed union-find over idea ids."""

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}
        self._rank: dict[str, int] = {}

    def __contains__(self, x: object) -> bool:
        return x in self._parent

    def find(self, x: str) -> str:
        if x not in self._parent:
            self._parent[x] = x
            self._rank[x] = 0
        if self._parent[x] != x:
            self._parent[x] = self.find(self._parent[x])
        return self._parent[x]

    def union(self, x: str, y: str) -> None:
        rx, ry = self.find(x), self.find(y)
        if rx == ry:
            return
        if self._rank[rx] < self._rank[ry]:
            rx, ry = ry, rx
        self._parent[ry] = rx
        if self._rank[rx] == self._rank[ry]:
            self._rank[rx] += 1


def find_similar_pairs(ideas: Sequence[Idea], threshold: float) -> list[SimilarPair]:
    """Find pairs of ideas from disjoint author sets above ``threshold``.

    Ideas without embeddings and pairs with mismatched dimensions are
    skipped.

    Returns:
        Pairs sorted by descending similarity.
    """
    embedded = [idea for idea in ideas if idea.embedding]
    pairs: list[SimilarPair] = []

    for i, first in enumerate(embedded):
        for second in embedded[i + 1 :]:
            if first.shares_author(frozenset(second.author_ids)):
                continue
            try:
                similarity = cosine_similarity(first.embedding, second.embedding)  # type: ignore[arg-type]
            except DimensionMismatchError:
                logger.warning(
                    "Skipping idea pair with mismatched embeddings",
                    extra={"idea_a": first.id, "idea_b": second.id},
                )
                continue
            if similarity >= threshold:
                pairs.append(SimilarPair(first.id, second.id, similarity))

    pairs.sort(key=lambda p: p.similarity, reverse=True)
    return pairs


def build_collaboration_groups(
    ideas: Sequence[Idea],
    threshold: float | None = None,
) -> list[CollaborationGroup]:
    """Group similar ideas into potential collaboration groups.

    Args:
        ideas: Ideas to consider.
        threshold: Minimum similarity for linking two ideas; defaults to
            the configured group threshold.

    Returns:
        Groups with at least two distinct authors, largest first, then by
        strongest link.
    """
    if threshold is None:
        threshold = get_settings().matching.group_threshold

    pairs = find_similar_pairs(ideas, threshold)
    if not pairs:
        return []

    uf = _UnionFind()
    strongest: dict[str, float] = {}
    for pair in pairs:
        uf.union(pair.idea_a, pair.idea_b)

    for pair in pairs:
        root = uf.find(pair.idea_a)
        strongest[root] = max(strongest.get(root, pair.similarity), pair.similarity)

    members: dict[str, list[Idea]] = {}
    for idea in ideas:
        if idea.id in uf:
            members.setdefault(uf.find(idea.id), []).append(idea)

    groups: list[CollaborationGroup] = []
    for root, group_ideas in members.items():
        authors = sorted({author for idea in group_ideas for author in idea.author_ids})
        if len(authors) < 2:
            continue
        anchor = max(group_ideas, key=lambda idea: idea.created_at)
        groups.append(
            CollaborationGroup(
                idea_ids=[idea.id for idea in group_ideas],
                author_ids=authors,
                max_similarity=strongest[root],
                anchor_idea_id=anchor.id,
            )
        )

    groups.sort(key=lambda g: (len(g.idea_ids), g.max_similarity), reverse=True)
    return groups
