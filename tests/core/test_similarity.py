"""
Test suite for cosine similarity helpers.

System role: Verification of semantic scoring
"""

import pytest

from docsearch.core.similarity import cosine_similarity, cosine_similarity_many


class TestCosineSimilarity:
    """Test suite for cosine_similarity()."""

    def test_identical_vectors_should_score_one(self) -> None:
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors_should_score_zero(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors_should_score_minus_one(self) -> None:
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ([], []),
            ([1.0, 2.0], [1.0, 2.0, 3.0]),
            ([0.0, 0.0], [1.0, 1.0]),
        ],
    )
    def test_degenerate_input_should_score_zero(self, a: list[float], b: list[float]) -> None:
        assert cosine_similarity(a, b) == 0.0


class TestCosineSimilarityMany:
    """Test suite for cosine_similarity_many()."""

    def test_should_score_each_candidate_in_order(self) -> None:
        # Act
        scores = cosine_similarity_many([1.0, 0.0], [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        # Assert
        assert scores[0] == pytest.approx(1.0)
        assert scores[1] == pytest.approx(0.0)
        assert scores[2] == pytest.approx(0.7071, abs=1e-4)

    def test_should_skip_missing_and_mismatched_candidates(self) -> None:
        scores = cosine_similarity_many([1.0, 0.0], [None, [1.0, 0.0, 0.0], [2.0, 0.0]])

        assert scores[0] is None
        assert scores[1] is None
        assert scores[2] == pytest.approx(1.0)

    def test_zero_candidate_should_score_zero(self) -> None:
        assert cosine_similarity_many([1.0, 1.0], [[0.0, 0.0]]) == [0.0]

    def test_zero_query_should_score_zero(self) -> None:
        assert cosine_similarity_many([0.0, 0.0], [[1.0, 1.0]]) == [0.0]

    def test_matches_pairwise_definition(self) -> None:
        query = [0.3, -0.2, 0.9]
        candidates = [[0.1, 0.4, 0.2], [-0.5, 0.5, 0.5]]

        scores = cosine_similarity_many(query, candidates)

        for candidate, score in zip(candidates, scores):
            assert score == pytest.approx(cosine_similarity(query, candidate))
