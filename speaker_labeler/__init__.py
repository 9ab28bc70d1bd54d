"""
Speaker Labeler - Core Package

Acoustic speaker diarization for finished transcripts: assigns a speaker
label to every transcript segment from waveform features alone.
"""

__version__ = "0.1.0"
__author__ = "Speaker Labeler Team"

from .config import SpeakerLabelingOptions
from .exceptions import AudioFormatError, AudioSourceError, SpeakerLabelingError
from .models import Transcript, TranscriptSegment, WordTiming
from .diarization import LabelingSummary, SpeakerLabeler, label_speakers

__all__ = [
    'SpeakerLabelingOptions',
    'AudioFormatError',
    'AudioSourceError',
    'SpeakerLabelingError',
    'Transcript',
    'TranscriptSegment',
    'WordTiming',
    'LabelingSummary',
    'SpeakerLabeler',
    'label_speakers',
]
