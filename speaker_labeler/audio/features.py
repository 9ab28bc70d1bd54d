"""
Per-segment acoustic features for speaker clustering.

Each transcript segment is reduced to a 4-dimensional descriptor computed
directly from the waveform:

    [log10(RMS + 1e-6), zero-crossing rate, pitch (Hz), flux]

Flux here is the mean absolute sample-to-sample difference, a cheap
time-domain proxy rather than an FFT spectral flux. The clustering
thresholds in ``speaker_labeler.config`` are tuned against this exact
definition.
"""

import logging
from typing import Sequence

import numpy as np

from speaker_labeler.models import TranscriptSegment

logger = logging.getLogger(__name__)

FEATURE_NAMES = ('log_rms', 'zcr', 'pitch_hz', 'flux')
FEATURE_DIM = len(FEATURE_NAMES)

MIN_WINDOW_SAMPLES = 16
RMS_FLOOR = 1e-6

# Pitch search band in Hz
PITCH_MIN_HZ = 70
PITCH_MAX_HZ = 350
PITCH_MIN_CORRELATION = 0.15
PITCH_LAG_MARGIN = 8


def segment_window(
    num_samples: int,
    sample_rate: int,
    start: float,
    end: float
) -> tuple:
    """
    Map a segment's [start, end) seconds onto buffer indices.

    Inverted or empty windows become half a second from ``start``.
    Windows shorter than half a second are widened by a quarter second
    on each side so short utterances still yield stable statistics.
    All indices stay within the buffer.

    Returns:
        Tuple of (start_idx, end_idx).
    """
    start_idx = int(np.clip(int(start * sample_rate), 0, num_samples))
    end_idx = int(np.clip(int(end * sample_rate), 0, num_samples))

    half_second = sample_rate // 2
    if end_idx <= start_idx:
        end_idx = min(num_samples, start_idx + half_second)

    if end_idx - start_idx < half_second:
        pad = sample_rate // 4
        start_idx = max(0, start_idx - pad)
        end_idx = min(num_samples, end_idx + pad)

    return start_idx, end_idx


def estimate_pitch(window: np.ndarray, sample_rate: int) -> float:
    """
    Estimate fundamental frequency by normalized autocorrelation.

    Scans lags covering roughly 70-350 Hz and keeps the first lag with
    the strictly highest correlation.

    Args:
        window: Samples of one segment (float64)
        sample_rate: Audio sample rate

    Returns:
        Pitch in Hz, or 0.0 when the window is too short or unvoiced.
    """
    min_lag = sample_rate // PITCH_MAX_HZ
    max_lag = sample_rate // PITCH_MIN_HZ
    size = len(window)
    if size <= max_lag + PITCH_LAG_MARGIN:
        return 0.0

    # Prefix sums of energy give both norms for every lag in O(1)
    energy = np.concatenate(([0.0], np.cumsum(window * window)))
    total = energy[-1]

    best_corr = 0.0
    best_lag = 0
    for lag in range(min_lag, max_lag + 1):
        head = window[:size - lag]
        tail = window[lag:]
        corr = float(np.dot(head, tail))
        norm_a = energy[size - lag]
        norm_b = total - energy[lag]
        score = corr / (np.sqrt(max(norm_a * norm_b, 0.0)) + 1e-9)
        if score > best_corr:
            best_corr = score
            best_lag = lag

    if best_corr < PITCH_MIN_CORRELATION or best_lag == 0:
        return 0.0

    return sample_rate / best_lag


def build_feature_vector(
    samples: np.ndarray,
    sample_rate: int,
    start: float,
    end: float
) -> np.ndarray:
    """
    Compute the acoustic descriptor for one segment.

    Args:
        samples: Full mono sample buffer
        sample_rate: Audio sample rate
        start: Segment start in seconds
        end: Segment end in seconds

    Returns:
        Array [log10(rms + 1e-6), zcr, pitch_hz, flux]; all zeros when
        the window holds 16 samples or fewer.
    """
    start_idx, end_idx = segment_window(len(samples), sample_rate, start, end)
    length = end_idx - start_idx
    if length <= MIN_WINDOW_SAMPLES:
        return np.zeros(FEATURE_DIM)

    window = np.asarray(samples[start_idx:end_idx], dtype=np.float64)
    prev = window[:-1]
    curr = window[1:]

    rms = np.sqrt(np.mean(window * window))
    crossings = np.count_nonzero(((prev >= 0) & (curr < 0)) | ((prev < 0) & (curr >= 0)))
    zcr = crossings / max(1, length - 1)
    flux = float(np.sum(np.abs(curr - prev))) / max(1, length - 1)
    pitch = estimate_pitch(window, sample_rate)

    return np.array([np.log10(rms + RMS_FLOOR), zcr, pitch, flux])


def extract_features(
    samples: np.ndarray,
    sample_rate: int,
    segments: Sequence[TranscriptSegment]
) -> np.ndarray:
    """
    Build one feature vector per segment, preserving segment order.

    Returns:
        Array of shape (len(segments), 4).
    """
    features = np.zeros((len(segments), FEATURE_DIM))
    degenerate = 0
    for i, seg in enumerate(segments):
        features[i] = build_feature_vector(samples, sample_rate, seg.start, seg.end)
        if not np.any(features[i]):
            degenerate += 1

    if degenerate:
        logger.warning(
            f"{degenerate}/{len(segments)} segments had too little audio for features"
        )
    logger.debug(f"Extracted features for {len(segments)} segments")
    return features
