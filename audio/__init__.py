"""Audio capability adapters: ffmpeg capture, whisper.cpp STT and system TTS."""

from .errors import PipelineError, RecordingError, SpeechError, TranscriptionError
from .process import Cancelled, CommandTimeout

__all__ = [
    "PipelineError",
    "RecordingError",
    "TranscriptionError",
    "SpeechError",
    "Cancelled",
    "CommandTimeout",
]
