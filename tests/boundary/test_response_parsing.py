"""
Test suite for embedding response parsing.

System role: Verification of the multi-shape embedding parser
"""

import pytest

from docsearch.boundary.model_service.response_parsing import parse_embedding_response
from docsearch.core.exceptions import MalformedResponseError


class TestParseEmbeddingResponse:
    """Test suite for parse_embedding_response()."""

    @pytest.mark.parametrize(
        "data",
        [
            {"embedding": [1, 2.5]},
            {"data": [{"embedding": [1, 2.5]}]},
            {"embeddings": [[1, 2.5], [9, 9]]},
        ],
    )
    def test_should_accept_known_shapes(self, data: dict) -> None:
        assert parse_embedding_response(data) == [1.0, 2.5]

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"embedding": []},
            {"embedding": ["a", "b"]},
            {"embedding": [True, False]},
            {"data": []},
            {"embeddings": []},
            [0.1, 0.2],
            None,
        ],
    )
    def test_should_reject_anything_else(self, data) -> None:
        with pytest.raises(MalformedResponseError):
            parse_embedding_response(data)

    def test_first_matching_shape_wins(self) -> None:
        data = {"embedding": [1.0], "data": [{"embedding": [2.0]}]}

        assert parse_embedding_response(data) == [1.0]
