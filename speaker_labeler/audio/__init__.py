"""
Audio input for speaker labeling.

This module provides:
- WAV loading into mono float32 buffers
- Per-segment acoustic feature extraction
"""

from .loader import AudioBuffer, load_wav, resolve_audio
from .features import build_feature_vector, estimate_pitch, extract_features

__all__ = [
    'AudioBuffer',
    'load_wav',
    'resolve_audio',
    'build_feature_vector',
    'estimate_pitch',
    'extract_features',
]
