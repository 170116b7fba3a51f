"""Text-to-speech through system speech commands (espeak-ng, espeak, spd-say, say)."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from audio.errors import SpeechError
from audio.process import CommandTimeout, command_responds, run_command

logger = logging.getLogger("deskpet")

SPEAK_TIMEOUT_SECONDS = 30

# ASCII word characters plus the Latin-1 accented letters; other scripts are dropped
_LATIN_ACCENTS = "À-ÖØ-öø-ÿ"
_DISALLOWED_RE = re.compile(rf"[^\w\s.,!?:;\-()'\"{_LATIN_ACCENTS}]", re.ASCII)
_MARKDOWN_RES = (
    re.compile(r"\*+"),  # bold/italic
    re.compile(r"#+"),  # headings
    re.compile(r"`+"),  # code fences
    re.compile(r"_+"),
)
_NEWLINES_RE = re.compile(r"\n+")
_WHITESPACE_RE = re.compile(r"\s+")
_REPEATED_PERIODS_RE = re.compile(r"\.{2,}")
_WORD_RE = re.compile(rf"[A-Za-z0-9{_LATIN_ACCENTS}]")


@dataclass(frozen=True)
class TTSBackend:
    command: str
    args: tuple[str, ...]
    probe: tuple[str, ...] = ("--help",)


def default_backends(voice: str = "es", rate: int = 160) -> list[TTSBackend]:
    """Candidate speech commands in order of preference."""
    return [
        TTSBackend("espeak-ng", ("-v", voice, "-s", str(rate))),
        TTSBackend("espeak", ("-v", voice, "-s", str(rate))),
        TTSBackend("spd-say", ("-w", "-l", voice)),
        TTSBackend("say", ("-r", str(rate)), probe=("-v", "?")),
    ]


def clean_text_for_speech(text: str) -> str:
    """Strip emojis, markdown and layout so the text reads well aloud."""
    clean = _DISALLOWED_RE.sub(" ", text)
    for pattern in _MARKDOWN_RES:
        clean = pattern.sub("", clean)
    clean = _NEWLINES_RE.sub(". ", clean)
    clean = _WHITESPACE_RE.sub(" ", clean)
    clean = _REPEATED_PERIODS_RE.sub(".", clean)
    clean = clean.strip()
    # Punctuation alone is not speakable
    if not _WORD_RE.search(clean):
        return ""
    return clean


class SystemTTS:
    """Speak text with the first available system TTS command."""

    def __init__(self, backends: Optional[Sequence[TTSBackend]] = None, voice: str = "es", rate: int = 160) -> None:
        if backends is None:
            backends = default_backends(voice=voice, rate=rate)
        self.backend = self.detect_tts_system(backends)
        logger.info("🔊 TTS system detected: %s", self.backend.command)

    @staticmethod
    def detect_tts_system(backends: Sequence[TTSBackend]) -> TTSBackend:
        tried = []
        for backend in backends:
            tried.append(backend.command)
            if command_responds([backend.command, *backend.probe], timeout=3):
                return backend
        raise SpeechError(f"no supported TTS system found (tried: {', '.join(tried)})")

    def speak(self, text: str, cancel_event: Optional[threading.Event] = None) -> None:
        clean = clean_text_for_speech(text or "")
        if not clean:
            logger.debug("No speakable text after cleaning")
            return

        logger.info("🔊 Speaking response...")
        args = [self.backend.command, *self.backend.args, clean]
        try:
            result = run_command(args, timeout=SPEAK_TIMEOUT_SECONDS, cancel_event=cancel_event)
        except FileNotFoundError as exc:
            raise SpeechError(f"TTS command '{self.backend.command}' not found") from exc
        except OSError as exc:
            raise SpeechError(f"cannot run TTS command '{self.backend.command}': {exc}") from exc
        except CommandTimeout as exc:
            raise SpeechError(str(exc)) from exc

        if result.returncode != 0:
            raise SpeechError(
                f"TTS command failed with status {result.returncode}: {(result.stderr or '').strip()}"
            )
        logger.info("✅ TTS completed")


__all__ = ["SystemTTS", "TTSBackend", "default_backends", "clean_text_for_speech"]
