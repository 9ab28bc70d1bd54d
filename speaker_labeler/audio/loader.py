"""
PCM WAV loading for speaker labeling.

Reads the normalized 16 kHz mono WAV produced upstream into a float32
sample buffer in [-1, 1]. Multi-channel files are down-mixed by
averaging channels; the sample rate is reported as found in the file.
"""

import logging
import os
import wave
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from speaker_labeler.exceptions import AudioFormatError, AudioSourceError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 16000


@dataclass(frozen=True)
class AudioBuffer:
    """
    Mono PCM samples with their sample rate.

    Attributes:
        samples: float32 samples, nominally in [-1, 1]
        sample_rate: Samples per second
    """

    samples: np.ndarray
    sample_rate: int = DEFAULT_SAMPLE_RATE

    @property
    def duration(self) -> float:
        """Buffer length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


AudioSource = Union[AudioBuffer, Tuple[np.ndarray, int], str, os.PathLike]


def load_wav(wav_path: Union[str, os.PathLike]) -> AudioBuffer:
    """
    Load a PCM WAV file as mono float32 samples.

    Args:
        wav_path: Path to the WAV file.

    Returns:
        AudioBuffer with samples scaled to [-1, 1].

    Raises:
        AudioSourceError: If wav_path does not exist.
        AudioFormatError: If the file cannot be read as PCM WAV.
    """
    if not os.path.exists(wav_path):
        raise AudioSourceError(f"WAV file not found for speaker labeling: {wav_path}")

    try:
        with wave.open(str(wav_path), 'rb') as wf:
            num_channels = wf.getnchannels()
            sample_width = wf.getsampwidth()
            sample_rate = wf.getframerate()
            raw_data = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise AudioFormatError(f"Failed to read WAV file {wav_path}: {e}") from e

    samples = _decode_pcm(raw_data, sample_width)

    # Convert stereo/multi-channel to mono by averaging channels
    if num_channels > 1:
        usable = (len(samples) // num_channels) * num_channels
        samples = samples[:usable].reshape(-1, num_channels).mean(axis=1)

    buffer = AudioBuffer(samples=samples.astype(np.float32), sample_rate=sample_rate)
    if len(buffer.samples) == 0:
        logger.warning(f"WAV file contains no audio data: {wav_path}")
    logger.debug(
        f"Loaded {wav_path}: {buffer.duration:.1f}s, {sample_rate} Hz, "
        f"{num_channels} channel(s)"
    )
    return buffer


def _decode_pcm(raw_data: bytes, sample_width: int) -> np.ndarray:
    """Convert raw little-endian PCM bytes to normalized float32 samples."""
    if sample_width == 1:
        # 8-bit unsigned
        return (np.frombuffer(raw_data, dtype=np.uint8).astype(np.float32) - 128.0) / 128.0
    if sample_width == 2:
        return np.frombuffer(raw_data, dtype='<i2').astype(np.float32) / 32768.0
    if sample_width == 3:
        # Pad each 3-byte sample into the top of an int32 to keep the sign
        triples = np.frombuffer(raw_data[:len(raw_data) - len(raw_data) % 3], dtype=np.uint8)
        triples = triples.reshape(-1, 3).astype(np.uint32)
        packed = (triples[:, 0] << 8) | (triples[:, 1] << 16) | (triples[:, 2] << 24)
        return (packed.view(np.int32) >> 8).astype(np.float32) / 8388608.0
    if sample_width == 4:
        return np.frombuffer(raw_data, dtype='<i4').astype(np.float32) / 2147483648.0
    raise AudioFormatError(f"Unsupported sample width: {sample_width} bytes")


def resolve_audio(source: AudioSource) -> AudioBuffer:
    """
    Turn any supported audio source into an AudioBuffer.

    Args:
        source: AudioBuffer, (samples, sample_rate) tuple, or WAV path.

    Returns:
        AudioBuffer ready for feature extraction.

    Raises:
        AudioSourceError: If the source is missing.
    """
    if source is None:
        raise AudioSourceError("No audio source provided for speaker labeling")
    if isinstance(source, AudioBuffer):
        return source
    if isinstance(source, tuple):
        samples, sample_rate = source
        return AudioBuffer(samples=np.asarray(samples, dtype=np.float32), sample_rate=int(sample_rate))
    return load_wav(source)
