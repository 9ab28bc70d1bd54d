"""
Automatic speaker count selection.

Sweeps k = 1..max_k, clusters the standardized features for each k and
scores the result with a silhouette coefficient penalized for model
complexity, singleton clusters, size imbalance and rapid speaker
switching. A split into several speakers must beat the single-speaker
baseline by a configurable margin and must not flip speakers too often;
otherwise one speaker is assumed.
"""

import logging
from typing import NamedTuple, Optional, Sequence

import numpy as np

from speaker_labeler.config import SpeakerLabelingOptions
from speaker_labeler.diarization.kmeans import build_cluster_counts, cluster_normalized
from speaker_labeler.diarization.normalization import standardize
from speaker_labeler.diarization.scoring import (
    SILHOUETTE_BASELINE,
    average_segment_seconds,
    calculate_switch_rate,
    estimate_global_variance,
    silhouette_score,
)
from speaker_labeler.models import TranscriptSegment

logger = logging.getLogger(__name__)

# Recordings with this many segments or fewer are always one speaker
MIN_SEGMENTS_FOR_SPLIT = 6
# Largest/smallest cluster size ratio tolerated before penalizing
IMBALANCE_TOLERANCE = 2.2
# Mean segment duration separating "short" from "long" switch penalties
SHORT_SEGMENT_SECONDS = 2.6


class ScoreResult(NamedTuple):
    """Penalized score of one candidate speaker count."""

    k: int
    score: float
    switch_rate: float


def score_clustering(
    normalized: np.ndarray,
    segments: Sequence[TranscriptSegment],
    k: int,
    options: SpeakerLabelingOptions
) -> ScoreResult:
    """
    Cluster into k groups and compute the penalized quality score.

    Args:
        normalized: Standardized features, one row per segment
        segments: Segments matching the feature rows
        k: Candidate speaker count
        options: Tuning options supplying penalty weights

    Returns:
        ScoreResult for this k.
    """
    labels = cluster_normalized(normalized, k)
    silhouette = SILHOUETTE_BASELINE if k == 1 else silhouette_score(normalized, labels, k)

    counts = build_cluster_counts(labels, k)
    singleton_clusters = int(np.count_nonzero(counts < 2))
    non_zero = counts[counts > 0]
    min_non_zero = int(non_zero.min()) if len(non_zero) else 1
    imbalance = counts.max() / max(1, min_non_zero)
    switch_rate = calculate_switch_rate(labels)

    if average_segment_seconds(segments) < SHORT_SEGMENT_SECONDS:
        switch_weight = options.effective_switch_penalty_short
    else:
        switch_weight = options.effective_switch_penalty_long

    score = (
        silhouette
        - (k - 1) * options.effective_complexity_penalty_per_speaker
        - singleton_clusters * options.effective_singleton_cluster_penalty
        - max(0.0, imbalance - IMBALANCE_TOLERANCE) * options.effective_imbalance_penalty_factor
        - switch_rate * switch_weight
    )

    logger.debug(
        f"k={k}: silhouette={silhouette:.3f}, counts={counts.tolist()}, "
        f"switch_rate={switch_rate:.3f}, score={score:.3f}"
    )
    return ScoreResult(k=k, score=float(score), switch_rate=switch_rate)


def estimate_speaker_count(
    features: np.ndarray,
    segments: Sequence[TranscriptSegment],
    max_candidate_speakers: int,
    options: SpeakerLabelingOptions,
    normalized: Optional[np.ndarray] = None
) -> int:
    """
    Pick the number of speakers for a recording.

    Args:
        features: Smoothed (not yet standardized) features
        segments: Segments matching the feature rows
        max_candidate_speakers: Largest k to try
        options: Tuning options
        normalized: Standardized form of ``features`` if already computed

    Returns:
        Speaker count in [1, max_candidate_speakers].
    """
    if len(features) <= 1 or max_candidate_speakers <= 1:
        return 1

    if normalized is None:
        normalized = standardize(features)

    if len(features) <= MIN_SEGMENTS_FOR_SPLIT:
        logger.debug(f"Only {len(features)} segments, assuming a single speaker")
        return 1

    global_variance = estimate_global_variance(normalized)
    if global_variance < options.effective_global_variance_gate:
        logger.info(
            f"Feature spread {global_variance:.3f} below gate "
            f"{options.effective_global_variance_gate:.3f}, assuming a single speaker"
        )
        return 1

    k_one = score_clustering(normalized, segments, 1, options)
    best = k_one
    for k in range(2, max_candidate_speakers + 1):
        candidate = score_clustering(normalized, segments, k, options)
        if candidate.score > best.score:
            best = candidate

    if best.k > 1 and best.score - k_one.score < options.effective_min_score_gain_for_split:
        logger.info(
            f"Best split k={best.k} gains only {best.score - k_one.score:.3f} "
            f"over one speaker, keeping one"
        )
        return 1

    # Frequent flip-flopping usually means noise, not a conversation
    if best.k > 1 and best.switch_rate > options.effective_max_switch_rate_for_split:
        logger.info(
            f"Best split k={best.k} switches speakers at rate {best.switch_rate:.2f}, "
            f"keeping one"
        )
        return 1

    logger.info(f"Estimated {best.k} speaker(s) (score={best.score:.3f})")
    return best.k
