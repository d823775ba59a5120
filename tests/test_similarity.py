"""Tests for cosine similarity and candidate ranking."""

import math
from collections.abc import Callable

import pytest

from ideamatch.exceptions import DimensionMismatchError, MissingEmbeddingError
from ideamatch.ideas.models import Idea
from ideamatch.matching.similarity import cosine_similarity, rank_candidates


def _vector_at(similarity: float) -> list[float]:
    """A unit vector whose cosine with [1, 0] is ``similarity``."""
    return [similarity, math.sqrt(1.0 - similarity**2)]


QUERY = [1.0, 0.0]


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    @pytest.mark.parametrize(
        "vector",
        [[1.0, 2.0, 3.0], [0.001, -5.0], [-1.0, -1.0, -1.0, -1.0]],
    )
    def test_self_similarity(self, vector: list[float]) -> None:
        """Any non-zero vector is fully similar to itself."""
        assert abs(cosine_similarity(vector, vector) - 1.0) < 1e-9

    def test_symmetric(self) -> None:
        """Argument order does not matter."""
        a = [0.3, -0.2, 0.9]
        b = [0.1, 0.4, -0.5]
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_orthogonal(self) -> None:
        """Orthogonal vectors score zero."""
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite(self) -> None:
        """Opposite vectors score minus one."""
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_zero_vector(self) -> None:
        """A zero vector scores zero instead of dividing by zero."""
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    def test_dimension_mismatch(self) -> None:
        """Vectors of different length are rejected."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

        assert exc_info.value.left == 2
        assert exc_info.value.right == 3


class TestRankCandidates:
    """Tests for rank_candidates."""

    def test_missing_query(self, make_idea: Callable[..., Idea]) -> None:
        """A missing query is an error, not an empty result."""
        ideas = [make_idea("b", _vector_at(0.9), author="bob")]

        with pytest.raises(MissingEmbeddingError):
            rank_candidates(None, ideas, {"alice"}, 0.8)
        with pytest.raises(MissingEmbeddingError):
            rank_candidates([], ideas, {"alice"}, 0.8)

    def test_excludes_authors_regardless_of_score(self, make_idea: Callable[..., Idea]) -> None:
        """An excluded author never matches, even at 0.99."""
        ideas = [make_idea("own", _vector_at(0.99), author="alice")]

        assert rank_candidates(QUERY, ideas, {"alice"}, 0.8) == []

    def test_excludes_any_shared_author(self, make_idea: Callable[..., Idea]) -> None:
        """An idea co-authored by an excluded author is skipped."""
        idea = make_idea("co", _vector_at(0.95), author="bob")
        idea.author_ids.append("alice")

        assert rank_candidates(QUERY, [idea], {"alice"}, 0.8) == []

    def test_threshold_is_inclusive(self, make_idea: Callable[..., Idea]) -> None:
        """Scores equal to the threshold are kept; lower ones dropped."""
        ideas = [
            make_idea("at", [1.0, 0.0], author="bob"),
            make_idea("below", _vector_at(0.79), author="carol"),
        ]

        result = rank_candidates(QUERY, ideas, {"alice"}, 1.0)

        assert [m.idea.id for m in result] == ["at"]

    def test_sorted_descending(self, make_idea: Callable[..., Idea]) -> None:
        """Results are ordered most similar first."""
        ideas = [
            make_idea("c", _vector_at(0.82), author="carol"),
            make_idea("b", _vector_at(0.95), author="bob"),
            make_idea("d", _vector_at(0.88), author="dave"),
        ]

        result = rank_candidates(QUERY, ideas, {"alice"}, 0.8)

        assert [m.idea.id for m in result] == ["b", "d", "c"]
        scores = [m.similarity for m in result]
        assert scores == sorted(scores, reverse=True)

    def test_ties_keep_input_order(self, make_idea: Callable[..., Idea]) -> None:
        """Equal scores stay in the order they came in."""
        ideas = [
            make_idea("first", [2.0, 0.0], author="bob"),
            make_idea("second", [3.0, 0.0], author="carol"),
        ]

        result = rank_candidates(QUERY, ideas, set(), 0.5)

        assert [m.idea.id for m in result] == ["first", "second"]

    def test_idempotent(self, make_idea: Callable[..., Idea]) -> None:
        """Same inputs, same output."""
        ideas = [
            make_idea("b", _vector_at(0.85), author="bob"),
            make_idea("c", _vector_at(0.9), author="carol"),
        ]

        first = rank_candidates(QUERY, ideas, {"alice"}, 0.8)
        second = rank_candidates(QUERY, ideas, {"alice"}, 0.8)

        assert first == second

    def test_skips_candidates_without_embedding(self, make_idea: Callable[..., Idea]) -> None:
        """Ideas that were never embedded cannot match."""
        ideas = [make_idea("none", None, author="bob"), make_idea("empty", [], author="carol")]

        assert rank_candidates(QUERY, ideas, set(), 0.0) == []

    def test_skips_own_idea_id(self, make_idea: Callable[..., Idea]) -> None:
        """The stored copy of the query idea is skipped."""
        ideas = [make_idea("self", [1.0, 0.0], author="bob")]

        assert rank_candidates(QUERY, ideas, set(), 0.5, exclude_idea_id="self") == []

    def test_dimension_mismatch_skipped(self, make_idea: Callable[..., Idea]) -> None:
        """By default a mismatched candidate is skipped."""
        ideas = [
            make_idea("wrong", [1.0, 0.0, 0.0], author="bob"),
            make_idea("right", [1.0, 0.0], author="carol"),
        ]

        result = rank_candidates(QUERY, ideas, set(), 0.5)

        assert [m.idea.id for m in result] == ["right"]

    def test_dimension_mismatch_strict(self, make_idea: Callable[..., Idea]) -> None:
        """In strict mode a mismatched candidate raises."""
        ideas = [make_idea("wrong", [1.0, 0.0, 0.0], author="bob")]

        with pytest.raises(DimensionMismatchError):
            rank_candidates(QUERY, ideas, set(), 0.5, strict=True)

    def test_empty_candidates(self) -> None:
        """No candidates, no matches."""
        assert rank_candidates(QUERY, [], {"alice"}, 0.8) == []
