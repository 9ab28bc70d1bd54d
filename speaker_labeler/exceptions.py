"""
Exceptions raised by the speaker labeling engine.

Only the audio source can fail; every numerical edge case inside the
pipeline falls back to a documented default instead of raising.
"""


class SpeakerLabelingError(Exception):
    """Base class for speaker labeling failures."""


class AudioSourceError(SpeakerLabelingError, FileNotFoundError):
    """Audio file for speaker labeling is missing or unavailable."""


class AudioFormatError(SpeakerLabelingError, ValueError):
    """Audio file exists but cannot be decoded as PCM WAV."""
