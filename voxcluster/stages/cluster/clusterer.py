"""Deterministic cosine k-means for grouping similar embeddings."""

import logging
from typing import Callable

import numpy as np

from voxcluster.schemas import Cluster, ClusterResult
from voxcluster.stages.cluster.policy import clamp_group_count
from voxcluster.stages.cluster.similarity import as_matrix, normalize_rows

DEFAULT_MAX_ITERATIONS = 50

# Candidates at least this similar to a chosen centroid are duplicates of it
DUPLICATE_SIMILARITY = 1.0 - 1e-9


class CosineKMeansClusterer:
    """K-means on unit vectors using cosine similarity for assignment.

    Runs are reproducible: centroids are seeded by deterministic
    farthest-point selection and every tie resolves to the lowest index.
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        """Initialize the clusterer.

        Args:
            max_iterations: Upper bound on assignment/update rounds
        """
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self.max_iterations = max_iterations

    def cluster(self, vectors, policy: Callable[[int], int]) -> ClusterResult:
        """Partition vectors into groups.

        Args:
            vectors: N >= 1 non-empty embedding vectors of equal length
            policy: Maps N to the desired number of groups K

        Returns:
            ClusterResult whose clusters partition ``[0, N)``

        Raises:
            ContractViolationError: If the vectors break the preconditions
        """
        points = normalize_rows(as_matrix(vectors))
        n_items = len(points)
        k = clamp_group_count(policy(n_items), n_items)

        centroids = _seed_centroids(points, k)
        labels = None

        for iteration in range(self.max_iterations):
            # argmax picks the first maximum, so ties go to the lowest centroid
            raw_labels = np.argmax(points @ centroids.T, axis=1)
            converged = labels is not None and np.array_equal(raw_labels, labels)

            occupied = np.unique(raw_labels)
            if len(occupied) < len(centroids):
                logging.debug(
                    f"Dropping {len(centroids) - len(occupied)} empty centroids "
                    f"at iteration {iteration}"
                )
                centroids = centroids[occupied]
                raw_labels = np.searchsorted(occupied, raw_labels)

            labels = raw_labels
            centroids = _update_centroids(points, labels, centroids)

            if converged:
                logging.debug(f"Converged after {iteration + 1} iterations")
                break

        clusters = []
        for cluster_id, centroid in enumerate(centroids):
            members = np.flatnonzero(labels == cluster_id)
            clusters.append(
                Cluster(
                    id=cluster_id,
                    member_indices=tuple(int(i) for i in members),
                    confidence=_confidence(points[members], centroid),
                )
            )

        return ClusterResult(clusters=tuple(clusters), n_items=n_items)


def partition(vectors, policy: Callable[[int], int], max_iterations: int = DEFAULT_MAX_ITERATIONS) -> ClusterResult:
    """Partition vectors with a fresh CosineKMeansClusterer."""
    return CosineKMeansClusterer(max_iterations=max_iterations).cluster(vectors, policy)


def _seed_centroids(points: np.ndarray, k: int) -> np.ndarray:
    """Pick up to k seed points by greedy farthest-point selection.

    The first seed is the point closest to the global mean direction. Each
    next seed is the point whose highest similarity to the seeds chosen so
    far is lowest. Seeding stops early when only duplicates remain.
    """
    mean = points.mean(axis=0)
    mean_norm = np.linalg.norm(mean)
    first = int(np.argmax(points @ (mean / mean_norm))) if mean_norm > 0 else 0

    chosen = [first]
    max_similarity = points @ points[first]
    max_similarity[first] = np.inf

    while len(chosen) < k:
        candidate = int(np.argmin(max_similarity))
        if max_similarity[candidate] >= DUPLICATE_SIMILARITY:
            break
        chosen.append(candidate)
        max_similarity = np.maximum(max_similarity, points @ points[candidate])
        max_similarity[chosen] = np.inf

    return points[chosen].copy()


def _update_centroids(points: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Recompute each centroid as the normalized mean of its members."""
    updated = centroids.copy()
    for cluster_id in range(len(centroids)):
        members = points[labels == cluster_id]
        mean = members.mean(axis=0)
        norm = np.linalg.norm(mean)
        # Members cancelling out leave the previous direction in place
        if norm > 0:
            updated[cluster_id] = mean / norm
    return updated


def _confidence(members: np.ndarray, centroid: np.ndarray) -> float:
    """Mean member-to-centroid cosine similarity, clamped to [0, 1]."""
    if len(members) == 1:
        return 1.0
    score = float(np.mean(members @ centroid))
    return float(np.clip(score, 0.0, 1.0))
