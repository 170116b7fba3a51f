"""Microphone capture through an external ffmpeg process."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from audio.errors import RecordingError
from audio.process import Cancelled, CommandTimeout, run_command

logger = logging.getLogger("deskpet")

ARTIFACT_PREFIX = "desk_pet_recording_"
# Extra seconds ffmpeg gets on top of the requested duration before it is killed
GRACE_PERIOD_SECONDS = 2


@dataclass
class Utterance:
    """One recorded audio artifact."""

    path: str
    duration: int
    created_at: datetime

    def exists(self) -> bool:
        return os.path.exists(self.path) and os.path.getsize(self.path) > 0

    def delete(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


@dataclass
class RecordingResult:
    utterance: Utterance
    ok: bool


class FFmpegRecorder:
    """Record fixed-length WAV clips with ffmpeg."""

    def __init__(
        self,
        command: str = "ffmpeg",
        input_format: str = "pulse",
        input_device: str = "default",
        sample_rate: int = 22050,
        channels: int = 1,
        scratch_dir: str = "work/temp",
    ) -> None:
        self.command = command
        self.input_format = input_format
        self.input_device = input_device
        self.sample_rate = sample_rate
        self.channels = channels
        self.scratch_dir = self._prepare_scratch_dir(scratch_dir)
        self.last_utterance: Optional[Utterance] = None

    @staticmethod
    def _prepare_scratch_dir(scratch_dir: str) -> Path:
        path = Path(scratch_dir)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot create %s (%s), using system temp dir", scratch_dir, exc)
            path = Path(tempfile.gettempdir())
        # Absolute so whisper.cpp can run from its own directory
        return path.resolve()

    def new_artifact_path(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        return str(self.scratch_dir / f"{ARTIFACT_PREFIX}{timestamp}.wav")

    def build_args(self, duration: int, output_path: str) -> list[str]:
        return [
            self.command,
            "-hide_banner",
            "-loglevel", "error",
            "-f", self.input_format,
            "-i", self.input_device,
            "-t", str(duration),
            "-ar", str(self.sample_rate),
            "-ac", str(self.channels),
            "-y",
            output_path,
        ]

    def record(self, duration: int, cancel_event: Optional[threading.Event] = None) -> RecordingResult:
        """Record ``duration`` seconds of audio.

        Returns:
            RecordingResult whose ``ok`` is False when ffmpeg exited cleanly
            but left no usable file behind.

        Raises:
            RecordingError: ffmpeg is missing or not executable, failed, or hung.
                Any partial artifact is removed first
            Cancelled: ``cancel_event`` was set while recording
        """
        utterance = Utterance(
            path=self.new_artifact_path(),
            duration=duration,
            created_at=datetime.now(),
        )
        self.last_utterance = utterance
        args = self.build_args(duration, utterance.path)

        logger.info(
            "🎤 Recording %ss (sample_rate=%s, channels=%s)",
            duration, self.sample_rate, self.channels,
        )

        def report_progress(elapsed: float) -> None:
            progress = min(elapsed / duration, 1.0) * 100 if duration > 0 else 100.0
            logger.info("🔴 Recording progress %.0f%%", progress)

        try:
            result = run_command(
                args,
                timeout=duration + GRACE_PERIOD_SECONDS,
                cancel_event=cancel_event,
                on_tick=report_progress,
            )
        except FileNotFoundError as exc:
            raise RecordingError(f"recorder '{self.command}' not found") from exc
        except OSError as exc:
            raise RecordingError(f"cannot run recorder '{self.command}': {exc}") from exc
        except CommandTimeout as exc:
            utterance.delete()
            raise RecordingError(str(exc)) from exc
        except Cancelled:
            utterance.delete()
            raise

        if result.returncode != 0:
            utterance.delete()
            stderr = (result.stderr or "").strip()
            if stderr:
                logger.debug("ffmpeg stderr: %s", stderr)
            raise RecordingError(
                f"{self.command} exited with status {result.returncode}: {stderr[-300:]}"
            )

        if not utterance.exists():
            logger.warning("Recording produced no audio file at %s", utterance.path)
            utterance.delete()
            return RecordingResult(utterance=utterance, ok=False)

        logger.info("⏹️ Recording complete: %s", utterance.path)
        return RecordingResult(utterance=utterance, ok=True)

    def cleanup(self) -> None:
        """Remove the last recorded artifact if it is still on disk."""
        if self.last_utterance is None:
            return
        if ARTIFACT_PREFIX in os.path.basename(self.last_utterance.path):
            try:
                os.remove(self.last_utterance.path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise RecordingError(f"failed to remove audio file: {exc}") from exc
        self.last_utterance = None


__all__ = ["FFmpegRecorder", "RecordingResult", "Utterance", "ARTIFACT_PREFIX", "GRACE_PERIOD_SECONDS"]
