"""Microphone level helpers used by the test-microphone command."""

from __future__ import annotations

import math
import wave
from dataclasses import dataclass

import numpy as np

# Below this level a test recording is reported as silence
SILENCE_DBFS = -60.0


@dataclass
class AudioLevel:
    rms: float
    dbfs: float

    @property
    def is_silent(self) -> bool:
        return self.dbfs < SILENCE_DBFS


def compute_rms(audio_bytes: bytes) -> float:
    """Compute RMS (root mean square) of int16 audio samples.

    Args:
        audio_bytes: Raw audio bytes in int16 format

    Returns:
        RMS value as float (0 for silence/empty input)
    """
    if not audio_bytes:
        return 0.0

    samples = np.frombuffer(audio_bytes, dtype=np.int16)
    if len(samples) == 0:
        return 0.0

    rms = np.sqrt(np.mean(samples.astype(np.float64) ** 2))
    return float(rms)


def compute_dbfs(audio_bytes: bytes) -> float:
    """Compute dBFS (decibels relative to full scale) of int16 audio samples."""
    rms = compute_rms(audio_bytes)
    if rms <= 0:
        return -100.0

    full_scale = 32767.0
    return 20 * math.log10(rms / full_scale)


def measure_wav_level(path: str) -> AudioLevel:
    """Measure the level of a 16-bit PCM WAV file."""
    with wave.open(path, "rb") as wav_file:
        if wav_file.getsampwidth() != 2:
            raise ValueError(f"expected 16-bit PCM, got {wav_file.getsampwidth() * 8}-bit")
        frames = wav_file.readframes(wav_file.getnframes())
    return AudioLevel(rms=compute_rms(frames), dbfs=compute_dbfs(frames))


__all__ = ["AudioLevel", "SILENCE_DBFS", "compute_rms", "compute_dbfs", "measure_wav_level"]
