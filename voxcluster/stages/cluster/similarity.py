"""Cosine similarity and vector normalization shared by the clustering code."""

import numpy as np

from voxcluster.errors import ContractViolationError


def as_matrix(vectors) -> np.ndarray:
    """Stack vectors into a 2D float array, checking the clustering preconditions.

    Args:
        vectors: Sequence of equal-length, non-empty numeric vectors

    Returns:
        Array with shape (n_vectors, dimension)

    Raises:
        ContractViolationError: If a vector is empty or lengths differ
    """
    if len(vectors) == 0:
        raise ContractViolationError("No vectors passed to clustering")
    lengths = {len(v) for v in vectors}
    if 0 in lengths:
        raise ContractViolationError("Empty embedding vector passed to clustering")
    if len(lengths) > 1:
        raise ContractViolationError(
            f"Embedding vectors have mismatched lengths: {sorted(lengths)}"
        )
    matrix = np.asarray(vectors, dtype=np.float64)
    if not np.all(np.isfinite(matrix)):
        raise ContractViolationError("Embedding vectors contain non-finite values")
    return matrix


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Scale every row to unit length.

    Raises:
        ContractViolationError: If a row has zero magnitude
    """
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    if np.any(norms == 0):
        zero_rows = np.flatnonzero(norms[:, 0] == 0).tolist()
        raise ContractViolationError(f"Zero-magnitude embedding at indices {zero_rows}")
    return matrix / norms


def similarity(a, b) -> float:
    """Cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector of the same, positive length

    Returns:
        Similarity in [-1, 1]

    Raises:
        ContractViolationError: If the vectors are empty, differ in length or
            one of them has zero magnitude
    """
    vec_a, vec_b = normalize_rows(as_matrix([a, b]))
    return float(np.clip(np.dot(vec_a, vec_b), -1.0, 1.0))
