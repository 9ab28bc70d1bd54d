"""Shared fixtures: synthetic speech-like audio and matching transcripts."""

import numpy as np
import pytest

from speaker_labeler.config import SpeakerLabelingOptions
from speaker_labeler.models import Transcript, TranscriptSegment

SAMPLE_RATE = 16000


def make_tone(
    frequency: float,
    amplitude: float,
    duration: float,
    sample_rate: int = SAMPLE_RATE
) -> np.ndarray:
    """Sine tone as float32 samples."""
    t = np.arange(int(duration * sample_rate)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


def make_segments(count: int, duration: float = 3.0, gap: float = 0.0):
    """Back-to-back segments of equal duration."""
    segments = []
    for i in range(count):
        start = i * (duration + gap)
        segments.append(TranscriptSegment(
            start=start,
            end=start + duration,
            text=f"Utterance number {i + 1}."
        ))
    return segments


# Two clearly different "voices": loud and low versus quiet and high
VOICE_A = (125.0, 0.5)
VOICE_B = (220.0, 0.08)


def make_turns(turns, segment_seconds: float = 3.0) -> np.ndarray:
    """
    Concatenate one tone per segment.

    Args:
        turns: Sequence of (frequency, amplitude), one per segment
        segment_seconds: Length of each segment
    """
    return np.concatenate([
        make_tone(freq, amp, segment_seconds) for freq, amp in turns
    ])


@pytest.fixture
def default_options():
    """Options at the default sensitivity, independent of the environment."""
    return SpeakerLabelingOptions(sensitivity=25)


@pytest.fixture
def two_speaker_recording():
    """Ten 3-second segments: five from voice A, then five from voice B."""
    audio = make_turns([VOICE_A] * 5 + [VOICE_B] * 5)
    transcript = Transcript(model='base', language='en', segments=make_segments(10))
    return transcript, (audio, SAMPLE_RATE)


@pytest.fixture
def monotone_recording():
    """Ten 2-second segments carrying the exact same noise burst."""
    rng = np.random.default_rng(7)
    chunk = (0.2 * rng.standard_normal(2 * SAMPLE_RATE)).astype(np.float32)
    audio = np.tile(chunk, 10)
    transcript = Transcript(
        model='base', language='en', segments=make_segments(10, duration=2.0)
    )
    return transcript, (audio, SAMPLE_RATE)
