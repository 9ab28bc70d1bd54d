"""
Feature conditioning ahead of clustering.

Smoothing damps segment-to-segment jitter; standardization puts the four
feature dimensions (which live on very different scales, e.g. pitch in Hz
versus zero-crossing rate) on a common z-score footing.
"""

import numpy as np

STD_EPSILON = 1e-9


def smooth_features(features: np.ndarray) -> np.ndarray:
    """
    3-tap moving average over the segment sequence.

    Row i becomes the mean of rows [i-1, i+1] clamped to the sequence,
    so the first and last rows average two neighbours only. Sequences of
    two rows or fewer are returned as a copy.
    """
    features = np.asarray(features, dtype=np.float64)
    count = len(features)
    if count <= 2:
        return features.copy()

    smoothed = np.empty_like(features)
    for i in range(count):
        lo = max(0, i - 1)
        hi = min(count - 1, i + 1)
        smoothed[i] = features[lo:hi + 1].sum(axis=0) / (hi - lo + 1)
    return smoothed


def standardize(features: np.ndarray) -> np.ndarray:
    """
    Per-dimension z-score normalization.

    Uses the sample standard deviation (n-1 denominator) plus a small
    epsilon, so constant dimensions map to zero instead of dividing by
    zero.

    Returns:
        New array of the same shape.
    """
    features = np.asarray(features, dtype=np.float64)
    count = len(features)
    if count == 0:
        return features.copy()

    means = features.mean(axis=0)
    centered = features - means
    std = np.sqrt((centered ** 2).sum(axis=0) / max(1, count - 1)) + STD_EPSILON
    return centered / std
