"""
Clustering quality and label-sequence statistics.

These metrics feed speaker count selection and the post-processing
veto. All of them work on standardized features and integer label
arrays and are defined for degenerate inputs (empty clusters, a single
segment) rather than raising.
"""

from typing import Sequence

import numpy as np
from scipy.spatial.distance import cdist, pdist

from speaker_labeler.models import TranscriptSegment

# Score for k=1 and for clusterings where no point can be scored
SILHOUETTE_BASELINE = -0.25


def silhouette_score(normalized: np.ndarray, labels: np.ndarray, k: int) -> float:
    """
    Mean silhouette coefficient over scorable points.

    A point is scored only if its own cluster has at least two members
    and some other cluster is non-empty.

    Args:
        normalized: Standardized features, shape (n, dim)
        labels: Cluster label per row, in [0, k)
        k: Number of clusters

    Returns:
        Mean silhouette in [-1, 1], or -0.25 when no point was scorable.
    """
    normalized = np.asarray(normalized, dtype=np.float64)
    labels = np.asarray(labels, dtype=int)
    members = [np.flatnonzero(labels == c) for c in range(k)]
    distances = cdist(normalized, normalized, metric='euclidean')

    total = 0.0
    scored = 0
    for i in range(len(normalized)):
        own = members[labels[i]]
        if len(own) <= 1:
            continue

        # Self-distance is zero, so dividing by size-1 excludes the point itself
        a = distances[i, own].sum() / (len(own) - 1)
        b = np.inf
        for c in range(k):
            if c == labels[i] or len(members[c]) == 0:
                continue
            candidate = distances[i, members[c]].mean()
            if candidate < b:
                b = candidate

        if not np.isfinite(b):
            continue

        denominator = max(a, b)
        total += 0.0 if denominator <= 1e-9 else (b - a) / denominator
        scored += 1

    return SILHOUETTE_BASELINE if scored == 0 else total / scored


def calculate_switch_rate(labels: Sequence[int]) -> float:
    """Fraction of adjacent label pairs that differ; 0 for fewer than two labels."""
    labels = np.asarray(labels)
    if len(labels) <= 1:
        return 0.0
    switches = np.count_nonzero(labels[1:] != labels[:-1])
    return switches / (len(labels) - 1)


def average_segment_seconds(segments: Sequence[TranscriptSegment]) -> float:
    """Mean segment duration in seconds; negative durations count as zero."""
    if not segments:
        return 0.0
    return sum(seg.duration for seg in segments) / len(segments)


def estimate_global_variance(normalized: np.ndarray) -> float:
    """Mean pairwise Euclidean distance between standardized feature vectors."""
    normalized = np.asarray(normalized, dtype=np.float64)
    if len(normalized) <= 1:
        return 0.0
    return float(pdist(normalized, metric='euclidean').mean())


def min_centroid_separation(centroids: np.ndarray) -> float:
    """
    Smallest Euclidean distance between any two centroids.

    NaN rows (cluster ids without members) are ignored. Returns infinity
    when fewer than two centroids remain.
    """
    present = centroids[~np.isnan(centroids).any(axis=1)]
    if len(present) <= 1:
        return float('inf')
    return float(pdist(present, metric='euclidean').min())
