"""
Tests for clustering quality metrics and automatic speaker count selection.

Tests cover:
- Silhouette score, including excluded points and the baseline sentinel
- Switch rate, mean duration and global variance helpers
- Early exits and split vetoes in estimate_speaker_count
"""

import numpy as np
import pytest

from conftest import make_segments
from speaker_labeler.config import SpeakerLabelingOptions
from speaker_labeler.diarization.normalization import standardize
from speaker_labeler.diarization.scoring import (
    SILHOUETTE_BASELINE,
    average_segment_seconds,
    calculate_switch_rate,
    estimate_global_variance,
    min_centroid_separation,
    silhouette_score,
)
from speaker_labeler.diarization.selection import estimate_speaker_count, score_clustering
from speaker_labeler.models import TranscriptSegment


def _blocks(first: int, second: int) -> np.ndarray:
    """Two tight groups of feature rows, one after the other."""
    return np.vstack([np.zeros((first, 4)), np.ones((second, 4))])


class TestSilhouetteScore:
    """Tests for silhouette_score."""

    def test_perfect_separation(self):
        points = np.array([[0.0], [0.0], [10.0], [10.0]])
        assert silhouette_score(points, np.array([0, 0, 1, 1]), 2) == pytest.approx(1.0)

    def test_known_value(self):
        points = np.array([[0.0], [1.0], [4.0], [5.0]])
        # a = 1 for every point; b = 3.5 for the inner points, 4.5 for the outer ones
        expected = np.mean([1 - 1 / 4.5, 1 - 1 / 3.5, 1 - 1 / 3.5, 1 - 1 / 4.5])
        score = silhouette_score(points, np.array([0, 0, 1, 1]), 2)
        assert score == pytest.approx(expected)

    def test_singletons_are_excluded(self):
        points = np.array([[0.0], [0.0], [0.0], [10.0]])
        # Only the three points of cluster 0 are scored, each with s = 1
        assert silhouette_score(points, np.array([0, 0, 0, 1]), 2) == pytest.approx(1.0)

    def test_all_points_excluded(self):
        points = np.array([[0.0], [5.0]])
        assert silhouette_score(points, np.array([0, 1]), 2) == SILHOUETTE_BASELINE

    def test_coincident_clusters_score_zero(self):
        points = np.zeros((4, 2))
        assert silhouette_score(points, np.array([0, 0, 1, 1]), 2) == 0.0


class TestSequenceStatistics:
    """Tests for switch rate, durations and spread."""

    def test_switch_rate(self):
        assert calculate_switch_rate([0, 0, 1, 1, 0]) == pytest.approx(0.5)
        assert calculate_switch_rate([0, 1, 0, 1]) == pytest.approx(1.0)
        assert calculate_switch_rate([3]) == 0.0
        assert calculate_switch_rate([]) == 0.0

    def test_average_segment_seconds(self):
        segments = [TranscriptSegment(0.0, 2.0, 'a'), TranscriptSegment(5.0, 4.0, 'inverted')]
        assert average_segment_seconds(segments) == pytest.approx(1.0)
        assert average_segment_seconds([]) == 0.0

    def test_global_variance(self):
        points = np.array([[0.0, 0.0], [3.0, 4.0], [0.0, 0.0]])
        # Pairwise distances: 5, 0, 5
        assert estimate_global_variance(points) == pytest.approx(10 / 3)
        assert estimate_global_variance(points[:1]) == 0.0

    def test_min_centroid_separation_skips_missing_clusters(self):
        centroids = np.array([[0.0, 0.0], [np.nan, np.nan], [3.0, 4.0], [6.0, 8.0]])
        assert min_centroid_separation(centroids) == pytest.approx(5.0)
        assert min_centroid_separation(centroids[:2]) == float('inf')


class TestScoreClustering:
    """Tests for the penalized score of one candidate k."""

    def test_single_speaker_baseline(self, default_options):
        normalized = standardize(_blocks(5, 5))
        result = score_clustering(normalized, make_segments(10), 1, default_options)
        assert result.k == 1
        assert result.score == pytest.approx(SILHOUETTE_BASELINE)
        assert result.switch_rate == 0.0

    def test_two_block_split(self, default_options):
        normalized = standardize(_blocks(5, 5))
        result = score_clustering(normalized, make_segments(10), 2, default_options)
        # silhouette 1 - complexity 0.1025 - one switch in nine at the long-segment weight 0.16
        assert result.score == pytest.approx(1.0 - 0.1025 - 0.16 / 9)
        assert result.switch_rate == pytest.approx(1 / 9)

    def test_short_segments_use_short_switch_penalty(self, default_options):
        normalized = standardize(_blocks(5, 5))
        result = score_clustering(normalized, make_segments(10, duration=1.0), 2, default_options)
        assert result.score == pytest.approx(1.0 - 0.1025 - 0.2625 / 9)

    def test_empty_cluster_counts_as_singleton(self, default_options):
        normalized = standardize(_blocks(5, 5))
        result = score_clustering(normalized, make_segments(10), 3, default_options)
        # One cluster stays empty: extra complexity plus the singleton penalty
        assert result.score == pytest.approx(1.0 - 2 * 0.1025 - 0.225 - 0.16 / 9)


class TestEstimateSpeakerCount:
    """Tests for estimate_speaker_count."""

    def test_two_blocks(self, default_options):
        features = _blocks(5, 5)
        assert estimate_speaker_count(features, make_segments(10), 4, default_options) == 2

    def test_accepts_precomputed_normalization(self, default_options):
        features = _blocks(5, 5)
        count = estimate_speaker_count(
            features, make_segments(10), 4, default_options, normalized=standardize(features)
        )
        assert count == 2

    def test_few_segments_is_one_speaker(self, default_options):
        features = _blocks(3, 3)
        assert estimate_speaker_count(features, make_segments(6), 3, default_options) == 1

    def test_single_candidate(self, default_options):
        assert estimate_speaker_count(_blocks(5, 5), make_segments(10), 1, default_options) == 1

    def test_single_feature_row(self, default_options):
        assert estimate_speaker_count(np.ones((1, 4)), make_segments(1), 4, default_options) == 1

    def test_low_spread_is_one_speaker(self, default_options):
        features = np.tile([[-1.2, 0.05, 140.0, 0.02]], (10, 1))
        assert estimate_speaker_count(features, make_segments(10), 4, default_options) == 1

    def test_rapid_switching_is_vetoed(self, default_options):
        """A perfect split that alternates every segment is treated as noise."""
        features = np.tile([[0.0] * 4, [1.0] * 4], (5, 1))
        assert estimate_speaker_count(features, make_segments(10), 4, default_options) == 1

    def test_switching_allowed_when_limit_raised(self):
        options = SpeakerLabelingOptions(sensitivity=25, max_switch_rate_for_split=1.0)
        features = np.tile([[0.0] * 4, [1.0] * 4], (5, 1))
        assert estimate_speaker_count(features, make_segments(10), 4, options) == 2

    def test_required_gain_vetoes_split(self):
        options = SpeakerLabelingOptions(sensitivity=25, min_score_gain_for_split=1.0)
        features = _blocks(5, 5)
        # A clean split gains about 1.13 over one speaker
        assert estimate_speaker_count(features, make_segments(10), 4, options) == 2

        weak = np.vstack([_blocks(5, 5), [[0.5] * 4]])
        assert estimate_speaker_count(weak, make_segments(11), 4, options) == 1
