"""
Temporal cleanup of raw cluster labels.

Clustering treats segments independently, which leaves one-segment
flickers and tiny clusters that are almost never real speakers. Each
stage below is a pure function: it takes a label array and returns a
new one, leaving its input untouched. ``post_process_labels`` composes
them in order.
"""

import logging
from typing import List, Sequence

import numpy as np

from speaker_labeler.config import SpeakerLabelingOptions
from speaker_labeler.diarization.kmeans import build_centroids, squared_distance
from speaker_labeler.diarization.scoring import calculate_switch_rate, min_centroid_separation
from speaker_labeler.models import TranscriptSegment

logger = logging.getLogger(__name__)


def _first_appearance_order(labels: np.ndarray) -> List[int]:
    """Distinct labels in the order they first occur."""
    seen: List[int] = []
    for label in labels.tolist():
        if label not in seen:
            seen.append(label)
    return seen


def _nearest(point: np.ndarray, candidates: Sequence[int], centroids: np.ndarray) -> int:
    """Candidate whose centroid is closest to point; earlier candidates win ties."""
    best = candidates[0]
    best_distance = squared_distance(point, centroids[best])
    for candidate in candidates[1:]:
        distance = squared_distance(point, centroids[candidate])
        if distance < best_distance:
            best = candidate
            best_distance = distance
    return best


def smooth_single_segment_islands(labels: np.ndarray) -> np.ndarray:
    """
    Overwrite A-B-A patterns to A-A-A.

    Scans left to right, so a rewrite at position i is visible when
    position i+1 is examined.
    """
    result = np.array(labels, dtype=int, copy=True)
    for i in range(1, len(result) - 1):
        if result[i - 1] == result[i + 1] and result[i] != result[i - 1]:
            result[i] = result[i - 1]
    return result


def merge_tiny_clusters(
    labels: np.ndarray,
    normalized: np.ndarray,
    min_count: int
) -> np.ndarray:
    """
    Dissolve clusters with fewer than min_count members.

    Members move to the nearest centroid among clusters that are large
    enough. Nothing changes when there is at most one distinct label or
    no cluster meets min_count.
    """
    result = np.array(labels, dtype=int, copy=True)
    distinct = _first_appearance_order(result)
    if len(distinct) <= 1:
        return result

    counts = {label: int(np.count_nonzero(result == label)) for label in distinct}
    valid = [label for label in distinct if counts[label] >= min_count]
    if not valid or len(valid) == len(distinct):
        return result

    logger.info(
        f"Dissolving {len(distinct) - len(valid)} tiny clusters (<{min_count} segments) "
        f"into {len(valid)} remaining"
    )
    centroids = build_centroids(result, normalized)
    for i in range(len(result)):
        if counts[result[i]] >= min_count:
            continue
        replacement = _nearest(normalized[i], valid, centroids)
        logger.debug(f"Segment {i}: tiny cluster {result[i]} -> {replacement}")
        result[i] = replacement
    return result


def merge_short_runs(
    labels: np.ndarray,
    segments: Sequence[TranscriptSegment],
    normalized: np.ndarray,
    short_run_merge_seconds: float
) -> np.ndarray:
    """
    Absorb brief single-segment runs into a neighbouring speaker.

    A run of one segment shorter than short_run_merge_seconds takes the
    label shared by both neighbours, otherwise the label of whichever
    neighbour's centroid is nearer. A run at either end of the sequence
    takes its only neighbour's label. Centroids are computed once from
    the input labels.
    """
    result = np.array(labels, dtype=int, copy=True)
    count = len(result)
    if count <= 2:
        return result

    centroids = build_centroids(result, normalized)
    i = 0
    while i < count:
        j = i
        while j + 1 < count and result[j + 1] == result[i]:
            j += 1

        run_length = j - i + 1
        duration = sum(
            segments[idx].end - segments[idx].start
            for idx in range(i, min(j + 1, len(segments)))
        )

        if run_length == 1 and duration < short_run_merge_seconds:
            left = int(result[i - 1]) if i > 0 else None
            right = int(result[j + 1]) if j < count - 1 else None

            if left is not None and right is not None and left == right:
                result[i] = left
            else:
                candidates = []
                for neighbour in (left, right):
                    if neighbour is not None and neighbour not in candidates:
                        candidates.append(neighbour)
                if candidates:
                    result[i] = _nearest(normalized[i], candidates, centroids)

            logger.debug(
                f"Short run at segment {i} ({duration:.2f}s) -> label {result[i]}"
            )

        i = j + 1
    return result


def post_process_labels(
    labels: np.ndarray,
    normalized: np.ndarray,
    segments: Sequence[TranscriptSegment],
    options: SpeakerLabelingOptions,
    preserve_speaker_count: bool
) -> np.ndarray:
    """
    Run the cleanup stages in order.

    1. island smoothing
    2. tiny-cluster merge (min size 1 when preserving the speaker count)
    3. short-run merge (skipped when preserving the speaker count)
    4. island smoothing again, since merges can create new islands

    Sequences of two labels or fewer are returned unchanged.
    """
    result = np.array(labels, dtype=int, copy=True)
    if len(result) <= 2:
        return result

    min_count = 1 if preserve_speaker_count else max(1, options.effective_min_cluster_size)

    result = smooth_single_segment_islands(result)
    result = merge_tiny_clusters(result, normalized, min_count)
    if not preserve_speaker_count:
        result = merge_short_runs(
            result, segments, normalized, options.effective_short_run_merge_seconds
        )
    result = smooth_single_segment_islands(result)
    return result


def should_collapse_to_single_speaker(
    labels: np.ndarray,
    normalized: np.ndarray,
    options: SpeakerLabelingOptions
) -> bool:
    """
    Decide whether a multi-speaker labeling is more likely noise.

    True when at most one label remains, when labels switch more often
    than the configured limit, or when two speaker centroids sit closer
    than the minimum separation.
    """
    labels = np.asarray(labels, dtype=int)
    if len(np.unique(labels)) <= 1:
        return True

    switch_rate = calculate_switch_rate(labels)
    if switch_rate > options.effective_max_switch_rate_for_split:
        logger.info(
            f"Switch rate {switch_rate:.2f} exceeds "
            f"{options.effective_max_switch_rate_for_split:.2f}, collapsing to one speaker"
        )
        return True

    separation = min_centroid_separation(build_centroids(labels, normalized))
    if separation < options.effective_min_cluster_separation:
        logger.info(
            f"Closest speakers only {separation:.2f} apart (minimum "
            f"{options.effective_min_cluster_separation:.2f}), collapsing to one speaker"
        )
        return True
    return False


def remap_by_first_appearance(labels: np.ndarray) -> np.ndarray:
    """Relabel to 0..m-1 in order of first occurrence."""
    labels = np.asarray(labels, dtype=int)
    mapping = {label: new for new, label in enumerate(_first_appearance_order(labels))}
    return np.array([mapping[label] for label in labels.tolist()], dtype=int)
