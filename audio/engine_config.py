"""Configuration and factories for the recorder, STT and TTS backends."""

from __future__ import annotations

from enum import Enum
from typing import Any

from config import TTSConfig, VoiceConfig


class STTEngine(str, Enum):
    """Available STT engine options."""
    WHISPER_CPP = "whisper-cpp"


class TTSEngine(str, Enum):
    """Available TTS engine options, in probe order for ``auto``."""
    AUTO = "auto"
    ESPEAK_NG = "espeak-ng"
    ESPEAK = "espeak"
    SPD_SAY = "spd-say"
    SAY = "say"


def create_recorder(config: VoiceConfig) -> Any:
    """Factory function to create the ffmpeg recorder from voice settings."""
    from audio.recorder import FFmpegRecorder

    return FFmpegRecorder(
        command=config.recorder_command,
        input_format=config.input_format,
        input_device=config.input_device,
        sample_rate=config.sample_rate,
        channels=config.channels,
        scratch_dir=config.scratch_dir,
    )


def create_stt_engine(
    config: VoiceConfig,
    engine: STTEngine | str = STTEngine.WHISPER_CPP,
) -> Any:
    """Factory function to create STT engine.

    Args:
        config: Voice settings (binary path, model path, threads)
        engine: STT engine to use

    Returns:
        STT engine instance

    Raises:
        TranscriptionError: No working whisper.cpp binary was found
    """
    engine = STTEngine(engine)

    if engine == STTEngine.WHISPER_CPP:
        from audio.stt_whisper_cpp import WhisperCppTranscriber

        return WhisperCppTranscriber(
            configured_path=config.whisper_cpp_path,
            model_path=config.whisper_model_path,
            threads=config.whisper_threads,
        )

    raise ValueError(f"Unknown STT engine: {engine}")


def create_tts_engine(
    config: TTSConfig,
    engine: TTSEngine | str = TTSEngine.AUTO,
) -> Any:
    """Factory function to create TTS engine.

    With ``TTSEngine.AUTO`` every known command is probed in order; otherwise
    only the named one is.

    Args:
        config: TTS settings (voice, rate)
        engine: TTS engine to use

    Returns:
        TTS engine instance

    Raises:
        SpeechError: None of the candidate commands responded
    """
    from audio.tts_system import SystemTTS, default_backends

    engine = TTSEngine(engine)
    backends = default_backends(voice=config.voice, rate=config.rate)
    if engine != TTSEngine.AUTO:
        backends = [b for b in backends if b.command == engine.value]

    return SystemTTS(backends=backends)


__all__ = [
    "STTEngine",
    "TTSEngine",
    "create_recorder",
    "create_stt_engine",
    "create_tts_engine",
]
