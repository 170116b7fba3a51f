"""Speech-to-text using an external whisper.cpp binary."""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import Iterable, Optional

from audio.errors import TranscriptionError
from audio.process import CommandTimeout, command_responds, run_command

logger = logging.getLogger("deskpet")

TRANSCRIBE_TIMEOUT_SECONDS = 30

# Probed in order after the configured path
SEARCH_PATHS = (
    "./work/repos/whisper.cpp/build/bin/whisper-cli",
    "./work/repos/whisper.cpp/build/bin/main",
    "./whisper.cpp/build/bin/whisper-cli",
    "./whisper.cpp/build/bin/main",
    "/usr/local/bin/whisper-cli",
    "/usr/local/bin/whisper",
    "whisper-cli",
    "whisper",
)

_TIMESTAMP = r"\[\s*\d{2}:\d{2}:\d{2}[.,]\d{3}\s*-->\s*\d{2}:\d{2}:\d{2}[.,]\d{3}\s*\]"
TIMESTAMP_LINE_RE = re.compile(rf"^\s*{_TIMESTAMP}\s*$")
TIMESTAMP_PREFIX_RE = re.compile(rf"^\s*{_TIMESTAMP}\s*")

DEBUG_PREFIXES = (
    "output_txt: saving output to",
    "output_vtt: saving output to",
    "output_srt: saving output to",
    "whisper_print_timings:",
    "load time =",
    "fallbacks =",
    "main:",
)

PLACEHOLDER_TOKENS = (
    "[BLANK_AUDIO]",
    "(silence)",
    "(music)",
    "[música]",
    "[MÚSICA]",
)

_WHITESPACE_RE = re.compile(r"\s+")


def is_timestamp_line(line: str) -> bool:
    return bool(TIMESTAMP_LINE_RE.match(line))


def is_debug_line(line: str) -> bool:
    lowered = line.lower()
    return any(prefix in lowered for prefix in DEBUG_PREFIXES)


def parse_whisper_output(output: str) -> str:
    """Keep only transcript lines from whisper.cpp stdout."""
    text_lines = []
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or is_timestamp_line(line) or is_debug_line(line):
            continue
        line = TIMESTAMP_PREFIX_RE.sub("", line)
        if line:
            text_lines.append(line)
    return " ".join(text_lines)


def clean_transcription(text: str) -> str:
    for token in PLACEHOLDER_TOKENS:
        text = text.replace(token, "")
    return _WHITESPACE_RE.sub(" ", text).strip()


class WhisperCppTranscriber:
    """Transcribe WAV files with whisper.cpp."""

    def __init__(
        self,
        configured_path: str = "",
        model_path: str = "./work/repos/whisper.cpp/models/ggml-small.bin",
        threads: int = 4,
        search_paths: Iterable[str] = SEARCH_PATHS,
    ) -> None:
        self.model_path = os.path.abspath(model_path)
        self.threads = threads
        self.binary_path = self.find_whisper_cpp(configured_path, search_paths)
        logger.info("✅ Found whisper.cpp at: %s", self.binary_path)

    @staticmethod
    def find_whisper_cpp(configured_path: str, search_paths: Iterable[str]) -> str:
        candidates = []
        if configured_path:
            candidates.append(configured_path)
        candidates.extend(p for p in search_paths if p not in candidates)

        for path in candidates:
            if command_responds([path, "--help"]):
                return path
            logger.debug("whisper.cpp candidate rejected: %s", path)

        raise TranscriptionError(
            "whisper.cpp binary not found. Run: bash scripts/setup_whisper_cpp.sh "
            "or set WHISPER_CPP_PATH"
        )

    def build_args(self, audio_path: str, language: str) -> list[str]:
        return [
            self.binary_path,
            "--language", language,
            "--threads", str(self.threads),
            "--file", audio_path,
            "--output-txt",
            "--no-timestamps",
            "--no-prints",
            "-m", self.model_path,
        ]

    def transcribe(
        self,
        audio_path: str,
        language: str = "es",
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Transcribe ``audio_path``; an empty string means no speech was detected."""
        abs_path = os.path.abspath(audio_path)
        if not os.path.exists(abs_path):
            raise TranscriptionError(f"audio file does not exist: {abs_path}")

        cwd = None
        if os.sep in self.binary_path:
            cwd = os.path.dirname(os.path.abspath(self.binary_path))

        try:
            result = run_command(
                self.build_args(abs_path, language),
                timeout=TRANSCRIBE_TIMEOUT_SECONDS,
                cancel_event=cancel_event,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise TranscriptionError(f"whisper.cpp not found at {self.binary_path}") from exc
        except OSError as exc:
            raise TranscriptionError(f"cannot run whisper.cpp at {self.binary_path}: {exc}") from exc
        except CommandTimeout as exc:
            raise TranscriptionError(str(exc)) from exc

        if result.returncode != 0:
            raise TranscriptionError(
                f"whisper.cpp exited with status {result.returncode}: "
                f"{(result.stderr or '').strip()[-300:]}"
            )

        transcription = parse_whisper_output(result.stdout or "")

        # whisper.cpp writes <file>.wav.txt next to the input
        txt_path = abs_path + ".txt"
        if os.path.exists(txt_path):
            try:
                if not transcription:
                    with open(txt_path, "r", encoding="utf-8", errors="replace") as handle:
                        transcription = parse_whisper_output(handle.read())
                os.remove(txt_path)
            except OSError as exc:
                raise TranscriptionError(f"cannot read whisper.cpp output {txt_path}: {exc}") from exc

        return clean_transcription(transcription)


__all__ = [
    "WhisperCppTranscriber",
    "parse_whisper_output",
    "clean_transcription",
    "is_timestamp_line",
    "is_debug_line",
]
