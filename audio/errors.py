"""Error types raised by the audio capability adapters."""

from __future__ import annotations


class PipelineError(Exception):
    """A failure in one stage of the voice pipeline.

    ``stage`` names the step that failed (recording, transcription, synthesis)
    so the session can report it in a single log line.
    """

    stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class RecordingError(PipelineError):
    stage = "recording"


class TranscriptionError(PipelineError):
    stage = "transcription"


class SpeechError(PipelineError):
    stage = "synthesis"


__all__ = ["PipelineError", "RecordingError", "TranscriptionError", "SpeechError"]
