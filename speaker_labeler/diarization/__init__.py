"""
Unsupervised speaker diarization over transcript segments.

This module provides:
- Feature smoothing and standardization
- Deterministic k-means clustering
- Penalized speaker count selection
- Temporal label post-processing
- The SpeakerLabeler orchestrator
"""

from .labeler import LabelingSummary, SpeakerLabeler, label_speakers

__all__ = [
    'LabelingSummary',
    'SpeakerLabeler',
    'label_speakers',
]
