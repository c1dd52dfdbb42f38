"""
Embedding response parsing.

Accepts the response shapes produced by the supported embedding services:
Ollama ({"embedding": [...]}), OpenAI-compatible ({"data": [{"embedding": [...]}]})
and batch Ollama ({"embeddings": [[...]]}).

Dependencies: docsearch.core.exceptions
System role: Response normalization for the embedding client
"""

from numbers import Real
from typing import Any

from docsearch.core.exceptions import MalformedResponseError


def _as_vector(value: Any) -> list[float] | None:
    if not isinstance(value, list) or not value:
        return None
    if not all(isinstance(v, Real) and not isinstance(v, bool) for v in value):
        return None
    return [float(v) for v in value]


def parse_embedding_response(data: Any) -> list[float]:
    """
    Extract the embedding vector from a service response.

    Args:
        data: Decoded JSON body

    Returns:
        list[float]: Non-empty embedding vector

    Raises:
        MalformedResponseError: If no known shape yields a numeric vector
    """
    if isinstance(data, dict):
        vector = _as_vector(data.get("embedding"))
        if vector is not None:
            return vector

        items = data.get("data")
        if isinstance(items, list) and items and isinstance(items[0], dict):
            vector = _as_vector(items[0].get("embedding"))
            if vector is not None:
                return vector

        embeddings = data.get("embeddings")
        if isinstance(embeddings, list) and embeddings:
            vector = _as_vector(embeddings[0])
            if vector is not None:
                return vector

    keys = sorted(data.keys()) if isinstance(data, dict) else type(data).__name__
    raise MalformedResponseError(
        "Unrecognized embedding response shape",
        details={"keys": keys},
    )
