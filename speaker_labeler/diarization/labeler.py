"""
Acoustic speaker labeling for finished transcripts.

Assigns ``Speaker 1``, ``Speaker 2``, ... to each transcript segment using
only low-level waveform features, with no speech model or external
service involved.

Pipeline:
1. Extract one feature vector per segment from the audio
2. Smooth features over neighbouring segments and standardize them
3. Choose the speaker count (explicit, or estimated by penalized
   silhouette sweep)
4. Cluster with deterministic k-means
5. Clean up labels (islands, tiny clusters, short runs) and, for
   estimated counts, veto splits that look like noise
6. Number speakers by first appearance, so Speaker 1 always speaks first

The labeler keeps no state between calls: the same audio, transcript and
options always give the same labels.

Example:
    >>> labeler = SpeakerLabeler()
    >>> labeled = labeler.label_speakers(transcript, 'recording_16k.wav')
    >>> labeled.speakers
    ['Speaker 1', 'Speaker 2']
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from speaker_labeler.audio.features import extract_features
from speaker_labeler.audio.loader import AudioSource, resolve_audio
from speaker_labeler.config import SpeakerLabelingOptions, clamp
from speaker_labeler.diarization.kmeans import cluster_normalized
from speaker_labeler.diarization.normalization import smooth_features, standardize
from speaker_labeler.diarization.postprocess import (
    post_process_labels,
    remap_by_first_appearance,
    should_collapse_to_single_speaker,
)
from speaker_labeler.diarization.selection import estimate_speaker_count
from speaker_labeler.models import Transcript

logger = logging.getLogger(__name__)

SPEAKER_LABEL_FORMAT = "Speaker {}"


@dataclass
class LabelingSummary:
    """
    Outcome of one labeling run.

    Attributes:
        speaker_count: Distinct speakers in the final labels
        clustered_speakers: k used for clustering, before post-processing
        requested_speakers: Explicit count asked for (0 = auto-detect)
        auto_detected: Whether k was estimated rather than given
        collapsed: Whether the noise veto folded everything into one speaker
        segments_per_speaker: Segment count for each speaker label
    """

    speaker_count: int = 0
    clustered_speakers: int = 0
    requested_speakers: int = 0
    auto_detected: bool = True
    collapsed: bool = False
    segments_per_speaker: Dict[str, int] = field(default_factory=dict)


class SpeakerLabeler:
    """
    Assigns speaker labels to transcript segments from acoustic features.

    Attributes:
        options: Default tuning options used when a call supplies none
    """

    def __init__(self, options: Optional[SpeakerLabelingOptions] = None):
        """
        Initialize the labeler.

        Args:
            options: Default tuning options; read from SPEAKER_* environment
                variables when not provided
        """
        self.options = (options or SpeakerLabelingOptions.from_env()).normalized()
        logger.debug(f"SpeakerLabeler initialized: {self.options.describe()}")

    def label_speakers(
        self,
        transcript: Transcript,
        audio: AudioSource,
        speaker_count: int = 0,
        options: Optional[SpeakerLabelingOptions] = None
    ) -> Transcript:
        """
        Label every segment of a transcript with a speaker.

        Args:
            transcript: Transcript with ordered, finalized segments
            audio: AudioBuffer, (samples, sample_rate) tuple, or path to a
                16 kHz mono WAV
            speaker_count: Exact number of speakers, or 0 to estimate
            options: Tuning options for this call

        Returns:
            New transcript whose segments carry 'Speaker n' labels.

        Raises:
            AudioSourceError: If the audio file is missing.
            ValueError: If speaker_count is negative.
        """
        labeled, _ = self.label_with_summary(transcript, audio, speaker_count, options)
        return labeled

    def label_with_summary(
        self,
        transcript: Transcript,
        audio: AudioSource,
        speaker_count: int = 0,
        options: Optional[SpeakerLabelingOptions] = None
    ) -> Tuple[Transcript, LabelingSummary]:
        """
        Label a transcript and report how the labels were reached.

        Same arguments as ``label_speakers``.

        Returns:
            Tuple of (labeled_transcript, LabelingSummary)
        """
        if speaker_count < 0:
            raise ValueError("Speaker count must be >= 0")

        segments = transcript.segments
        if not segments:
            return transcript, LabelingSummary(requested_speakers=speaker_count)

        buffer = resolve_audio(audio)
        tuned = (options or self.options).normalized()
        explicit = speaker_count > 0

        logger.info(
            f"Labeling speakers for {len(segments)} segments "
            f"({buffer.duration:.1f}s audio, "
            f"{'target speakers: ' + str(speaker_count) if explicit else 'auto speaker count'}, "
            f"sensitivity: {tuned.sensitivity})"
        )

        features = extract_features(buffer.samples, buffer.sample_rate, segments)
        smoothed = smooth_features(features)
        normalized = standardize(smoothed)

        max_candidate_speakers = min(
            tuned.effective_max_auto_speakers,
            max(1, len(segments) // 2)
        )

        if explicit:
            k = int(clamp(speaker_count, 1, max_candidate_speakers))
        else:
            k = estimate_speaker_count(
                smoothed, segments, max_candidate_speakers, tuned, normalized=normalized
            )

        labels = cluster_normalized(normalized, k)
        labels = post_process_labels(
            labels, normalized, segments, tuned, preserve_speaker_count=explicit
        )

        collapsed = False
        if not explicit and should_collapse_to_single_speaker(labels, normalized, tuned):
            collapsed = len(np.unique(labels)) > 1
            labels = np.zeros(len(labels), dtype=int)

        labels = remap_by_first_appearance(labels)

        labeled_segments = [
            seg.with_speaker(SPEAKER_LABEL_FORMAT.format(label + 1))
            for seg, label in zip(segments, labels.tolist())
        ]
        labeled = transcript.with_segments(labeled_segments)

        distribution = Counter(seg.speaker for seg in labeled_segments)
        summary = LabelingSummary(
            speaker_count=len(distribution),
            clustered_speakers=k,
            requested_speakers=speaker_count,
            auto_detected=not explicit,
            collapsed=collapsed,
            segments_per_speaker=dict(distribution)
        )

        logger.info(
            f"Speaker labeling complete: {summary.speaker_count} speaker(s), "
            f"distribution: {summary.segments_per_speaker}"
        )
        return labeled, summary


def label_speakers(
    transcript: Transcript,
    audio: AudioSource,
    speaker_count: int = 0,
    options: Optional[SpeakerLabelingOptions] = None
) -> Transcript:
    """
    Label a transcript with a default-configured SpeakerLabeler.

    See ``SpeakerLabeler.label_speakers``.
    """
    return SpeakerLabeler(options).label_speakers(transcript, audio, speaker_count)
