"""
Deterministic k-means over standardized segment features.

Seeding picks evenly spaced rows of the input instead of random ones, so
the same features always produce the same labels. Centroids are dense
``(k, dim)`` arrays indexed by cluster id.
"""

import logging

import numpy as np
from scipy.spatial.distance import cdist

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 25


def seed_centroids(normalized: np.ndarray, k: int) -> np.ndarray:
    """Pick k evenly spaced rows (first and last included) as initial centroids."""
    count = len(normalized)
    if k == 1:
        return normalized[[0]].copy()
    indices = [int(round(c * (count - 1) / (k - 1))) for c in range(k)]
    return normalized[indices].copy()


def cluster_normalized(
    normalized: np.ndarray,
    k: int,
    max_iterations: int = MAX_ITERATIONS
) -> np.ndarray:
    """
    Lloyd's k-means with deterministic seeding.

    Points go to the nearest centroid by squared Euclidean distance; ties
    keep the lower cluster index. An empty cluster is re-seeded from row
    ``c * n // k``. Stops when no label changes or after max_iterations.

    Args:
        normalized: Array of shape (n, dim), n >= 1
        k: Number of clusters, 1 <= k

    Returns:
        Integer labels in [0, k), one per row.
    """
    normalized = np.asarray(normalized, dtype=np.float64)
    count = len(normalized)
    centroids = seed_centroids(normalized, k)
    labels = np.full(count, -1, dtype=int)

    for iteration in range(max_iterations):
        distances = cdist(normalized, centroids, metric='sqeuclidean')
        # argmin returns the first minimum, i.e. the lower index on ties
        assigned = np.argmin(distances, axis=1)
        changed = not np.array_equal(assigned, labels)
        labels = assigned

        for c in range(k):
            members = labels == c
            if not np.any(members):
                centroids[c] = normalized[(c * count) // k]
                continue
            centroids[c] = normalized[members].mean(axis=0)

        if not changed:
            logger.debug(f"k-means (k={k}) converged after {iteration + 1} iterations")
            break

    return labels


def build_centroids(labels: np.ndarray, normalized: np.ndarray) -> np.ndarray:
    """
    Mean feature vector per cluster id.

    Returns:
        Array of shape (max_label + 1, dim); rows of ids with no members
        are NaN.
    """
    labels = np.asarray(labels, dtype=int)
    normalized = np.asarray(normalized, dtype=np.float64)
    size = int(labels.max()) + 1 if len(labels) else 0
    centroids = np.full((size, normalized.shape[1]), np.nan)
    for c in range(size):
        members = labels == c
        if np.any(members):
            centroids[c] = normalized[members].mean(axis=0)
    return centroids


def build_cluster_counts(labels: np.ndarray, k: int) -> np.ndarray:
    """Member count for each cluster id in [0, k); out-of-range labels are ignored."""
    labels = np.asarray(labels, dtype=int)
    valid = labels[(labels >= 0) & (labels < k)]
    return np.bincount(valid, minlength=k)[:k]


def squared_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Squared Euclidean distance between two vectors."""
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.dot(diff, diff))
