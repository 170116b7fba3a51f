"""Configuration loading from `.env` and environment variables.

Values in the real environment win over the `.env` file. Keep names aligned
with `env.example`.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")


@dataclass
class VertexAIConfig:
    project_id: str = ""
    location: str = "us-east5"
    model: str = "claude-sonnet-4@20250514"
    max_tokens: int = 1000
    temperature: float = 0.7
    system_prompt: str = ""
    enable_auto_search: bool = True
    request_timeout: float = 120.0


@dataclass
class VoiceConfig:
    whisper_cpp_path: str = "./work/repos/whisper.cpp/build/bin/whisper-cli"
    whisper_model_path: str = "./work/repos/whisper.cpp/models/ggml-small.bin"
    whisper_threads: int = 4
    language: str = "es"
    sample_rate: int = 22050
    channels: int = 1
    recorder_command: str = "ffmpeg"
    input_format: str = "pulse"
    input_device: str = "default"
    scratch_dir: str = "work/temp"


@dataclass
class TTSConfig:
    enabled: bool = True
    rate: int = 160
    voice: str = "es"


@dataclass
class Config:
    vertex_ai: VertexAIConfig = field(default_factory=VertexAIConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    tts: TTSConfig = field(default_factory=TTSConfig)


def _get_str(key: str, default: str) -> str:
    value = os.getenv(key, "")
    return value if value else default


def _get_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, ""))
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, ""))
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    value = os.getenv(key, "").strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return default


def _default_input() -> tuple[str, str]:
    # ffmpeg capture backend: AVFoundation on macOS, PulseAudio elsewhere
    if sys.platform == "darwin":
        return "avfoundation", ":0"
    return "pulse", "default"


def load_config(env_file: str = ".env") -> Config:
    """Load configuration from ``env_file`` (optional) and the environment."""
    if os.path.exists(env_file):
        load_dotenv(env_file, override=False)

    input_format, input_device = _default_input()

    vertex_ai = VertexAIConfig(
        project_id=_get_str("ANTHROPIC_VERTEX_PROJECT_ID", ""),
        location=_get_str("CLOUD_ML_REGION", "us-east5"),
        model=_get_str("ANTHROPIC_MODEL", "claude-sonnet-4@20250514"),
        max_tokens=_get_int("MAX_TOKENS", 1000),
        temperature=_get_float("TEMPERATURE", 0.7),
        system_prompt=_get_str("SYSTEM_PROMPT", ""),
        enable_auto_search=_get_bool("ENABLE_AUTO_SEARCH", True),
        request_timeout=_get_float("REQUEST_TIMEOUT", 120.0),
    )
    voice = VoiceConfig(
        whisper_cpp_path=_get_str("WHISPER_CPP_PATH", VoiceConfig.whisper_cpp_path),
        whisper_model_path=_get_str("WHISPER_CPP_MODEL", VoiceConfig.whisper_model_path),
        whisper_threads=_get_int("WHISPER_THREADS", 4),
        language=_get_str("LANGUAGE", "es"),
        sample_rate=_get_int("SAMPLE_RATE", 22050),
        channels=_get_int("CHANNELS", 1),
        recorder_command=_get_str("RECORDER_COMMAND", "ffmpeg"),
        input_format=_get_str("RECORD_INPUT_FORMAT", input_format),
        input_device=_get_str("RECORD_INPUT_DEVICE", input_device),
        scratch_dir=_get_str("SCRATCH_DIR", "work/temp"),
    )
    tts = TTSConfig(
        enabled=not _get_bool("TTS_DISABLED", False),
        rate=_get_int("TTS_RATE", 160),
        voice=_get_str("TTS_VOICE", "es"),
    )

    return Config(vertex_ai=vertex_ai, voice=voice, tts=tts)


__all__ = ["Config", "VertexAIConfig", "VoiceConfig", "TTSConfig", "load_config"]
