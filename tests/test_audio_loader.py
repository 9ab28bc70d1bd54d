"""
Tests for WAV loading.

Tests cover:
- 16-bit mono, stereo down-mix and 24-bit decoding
- Missing and invalid files
- Resolving in-memory audio sources
"""

import wave

import numpy as np
import pytest

from speaker_labeler.audio.loader import AudioBuffer, load_wav, resolve_audio
from speaker_labeler.exceptions import AudioFormatError, AudioSourceError


def _write_wav(path, frames: bytes, sample_width: int = 2, channels: int = 1,
               sample_rate: int = 16000):
    with wave.open(str(path), 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(frames)
    return path


class TestLoadWav:
    """Tests for load_wav."""

    def test_16bit_mono(self, tmp_path):
        pcm = np.array([0, 16384, -16384, 32767], dtype='<i2')
        path = _write_wav(tmp_path / 'mono.wav', pcm.tobytes())

        buffer = load_wav(path)

        assert buffer.sample_rate == 16000
        assert buffer.samples.dtype == np.float32
        np.testing.assert_allclose(buffer.samples, [0.0, 0.5, -0.5, 32767 / 32768], atol=1e-6)

    def test_stereo_is_averaged(self, tmp_path):
        # Left/right pairs
        pcm = np.array([16384, 0, -16384, -16384], dtype='<i2')
        path = _write_wav(tmp_path / 'stereo.wav', pcm.tobytes(), channels=2)

        buffer = load_wav(path)

        np.testing.assert_allclose(buffer.samples, [0.25, -0.5], atol=1e-6)

    def test_24bit(self, tmp_path):
        # 0, +0.5 and -0.5 full scale as little-endian 24-bit
        frames = bytes([0, 0, 0, 0, 0, 0x40, 0, 0, 0xC0])
        path = _write_wav(tmp_path / 'deep.wav', frames, sample_width=3)

        buffer = load_wav(path)

        np.testing.assert_allclose(buffer.samples, [0.0, 0.5, -0.5], atol=1e-6)

    def test_duration(self, tmp_path):
        pcm = np.zeros(8000, dtype='<i2')
        path = _write_wav(tmp_path / 'half.wav', pcm.tobytes())
        assert load_wav(path).duration == pytest.approx(0.5)

    def test_missing_file(self, tmp_path):
        with pytest.raises(AudioSourceError, match="not found"):
            load_wav(tmp_path / 'nope.wav')

    def test_missing_file_is_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_wav(tmp_path / 'nope.wav')

    def test_not_a_wav(self, tmp_path):
        path = tmp_path / 'notes.wav'
        path.write_text('definitely not RIFF data')
        with pytest.raises(AudioFormatError):
            load_wav(path)


class TestResolveAudio:
    """Tests for resolve_audio."""

    def test_buffer_passes_through(self):
        buffer = AudioBuffer(samples=np.zeros(10, dtype=np.float32), sample_rate=16000)
        assert resolve_audio(buffer) is buffer

    def test_tuple(self):
        buffer = resolve_audio(([0.1, 0.2], 8000))
        assert buffer.sample_rate == 8000
        assert buffer.samples.dtype == np.float32
        assert buffer.duration == pytest.approx(2 / 8000)

    def test_none_is_unavailable(self):
        with pytest.raises(AudioSourceError):
            resolve_audio(None)
