"""
Vector similarity.

The single cosine similarity definition used by query-time code.

Dependencies: numpy
System role: Scoring for semantic retrieval
"""

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Vectors of different length, empty vectors and zero-norm vectors score 0.0.

    Args:
        a: First vector
        b: Second vector

    Returns:
        float: Similarity in [-1.0, 1.0]
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def cosine_similarity_many(
    query: Sequence[float],
    candidates: Sequence[Sequence[float] | None],
) -> list[float | None]:
    """
    Score many candidate vectors against one query vector.

    Candidates that are None or have a different dimension get None so callers
    can skip them.

    Args:
        query: Query embedding
        candidates: Stored embeddings, possibly missing

    Returns:
        list[float | None]: One score per candidate, in input order
    """
    q = np.asarray(query, dtype=np.float64)
    q_norm = float(np.linalg.norm(q))
    dim = q.shape[0] if q.ndim == 1 else 0

    scores: list[float | None] = [None] * len(candidates)
    rows: list[int] = []
    vectors: list[Sequence[float]] = []
    for i, vec in enumerate(candidates):
        if vec is None or dim == 0 or len(vec) != dim:
            continue
        rows.append(i)
        vectors.append(vec)

    if not rows:
        return scores
    if q_norm == 0.0:
        for i in rows:
            scores[i] = 0.0
        return scores

    matrix = np.asarray(vectors, dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1)
    dots = matrix @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0, dots / (norms * q_norm), 0.0)
    for i, s in zip(rows, sims):
        scores[i] = float(s)
    return scores
