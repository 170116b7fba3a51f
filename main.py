"""
DeskPet Voice Assistant Entrypoint
==================================

Single entrypoint for the desk pet voice assistant. Commands are typed one per
line; each voice command runs the whole pipeline before the next is read.

High-level pipeline:
1) Listen: ffmpeg records a fixed-length clip from the microphone
2) Transcribe: whisper.cpp converts audio → text
3) Think: Claude on Vertex AI answers (augmented with current info when needed)
4) Speak: a system TTS command (espeak-ng, espeak, spd-say, say) reads the reply

Configuration precedence:
- CLI flags override `.env`
- Real environment variables override `.env`
- `.env` overrides built-in defaults in config.py

COMMANDS:
  r   Record and process voice (7 seconds)
  l   Long recording (12 seconds)
  t   Test microphone levels
  x   Test TTS voice
  s   Toggle speech
  q   Quit

ENVIRONMENT VARIABLES (from .env file):
  # Claude on Vertex AI
  ANTHROPIC_VERTEX_PROJECT_ID - Google Cloud project (default: from gcloud ADC)
  CLOUD_ML_REGION     - Vertex AI region (default: us-east5)
  ANTHROPIC_MODEL     - Model id (default: claude-sonnet-4@20250514)
  MAX_TOKENS          - Max reply tokens (default: 1000)
  TEMPERATURE         - Sampling temperature (default: 0.7)
  SYSTEM_PROMPT       - System prompt (default: built-in informal prompt)
  ENABLE_AUTO_SEARCH  - Augment replies with current info (default: true)
  REQUEST_TIMEOUT     - Seconds per Claude request (default: 120)

  # Recording and STT
  WHISPER_CPP_PATH    - whisper.cpp binary (default: ./work/repos/whisper.cpp/build/bin/whisper-cli)
  WHISPER_CPP_MODEL   - ggml model file (default: ./work/repos/whisper.cpp/models/ggml-small.bin)
  WHISPER_THREADS     - Transcription threads (default: 4)
  LANGUAGE            - Spoken language (default: es)
  SAMPLE_RATE         - Recording sample rate in Hz (default: 22050)
  CHANNELS            - Recording channels (default: 1)
  RECORDER_COMMAND    - ffmpeg executable (default: ffmpeg)
  RECORD_INPUT_FORMAT - ffmpeg input format (default: pulse, avfoundation on macOS)
  RECORD_INPUT_DEVICE - ffmpeg input device (default: default, :0 on macOS)
  SCRATCH_DIR         - Where recordings are written (default: work/temp)

  # TTS
  TTS_DISABLED        - Start with speech off (default: false)
  TTS_RATE            - Words per minute (default: 160)
  TTS_VOICE           - Voice / language (default: es)
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading

from audio.engine_config import TTSEngine
from config import load_config
from voice_interface import InitializationError, ShutdownError, VoiceSession

__version__ = "1.0.0"

# =============================================================================
# Logging Configuration
# =============================================================================


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configure logging with optional debug level.

    Args:
        debug: If True, enable DEBUG level logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if debug else logging.INFO

    formatter = logging.Formatter(
        fmt='%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    logger = logging.getLogger('deskpet')
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(console_handler)

    return logger


# Initialize logger (will be reconfigured in main() based on --debug flag)
logger = logging.getLogger('deskpet')


def install_signal_handlers(cancel_event: threading.Event) -> None:
    """Set ``cancel_event`` on SIGINT/SIGTERM instead of raising KeyboardInterrupt."""

    def handle_signal(signum, frame):
        logger.info("👋 Interrupt signal received")
        cancel_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def main(
    env_file: str = ".env",
    tts_engine: str = "auto",
    no_tts: bool = False,
) -> int:
    """Main entry point for the voice assistant.

    Args:
        env_file: Path to the .env file with configuration
        tts_engine: TTS command to use, or 'auto' to probe all of them
        no_tts: Start with speech disabled

    Returns:
        Process exit code (0 on normal quit, 1 on startup failure)
    """
    try:
        config = load_config(env_file)
    except OSError as e:
        logger.error("Failed to load configuration from %s: %s", env_file, e)
        return 1

    if no_tts:
        config.tts.enabled = False

    print("-> 🤖 DeskPet voice assistant")
    logger.debug("Configuration: %s", config)

    cancel_event = threading.Event()
    install_signal_handlers(cancel_event)

    session = VoiceSession(config, tts_engine=TTSEngine(tts_engine))
    exit_code = 0
    try:
        session.initialize()
        session.run(cancel_event)
    except InitializationError as e:
        logger.error("❌ Failed to initialize voice interface: %s", e)
        exit_code = 1
    finally:
        try:
            session.shutdown()
        except ShutdownError as e:
            for error in e.errors:
                logger.error("Shutdown error: %s", error)

    print("-> Goodbye!")
    return exit_code


# =============================================================================
# CLI Argument Parser
# =============================================================================

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="DeskPet voice assistant (whisper.cpp + Claude on Vertex AI)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default configuration from .env
  python main.py

  # Use another env file and verbose logs
  python main.py --config staging.env --debug

  # Force espeak-ng, or start silent
  python main.py --tts-engine espeak-ng
  python main.py --no-tts
        """,
    )

    parser.add_argument(
        "--config",
        default=".env",
        help="Path to .env configuration file (default: .env)",
    )
    parser.add_argument(
        "--tts-engine",
        choices=[e.value for e in TTSEngine],
        default=TTSEngine.AUTO.value,
        help="TTS command to use (default: auto-detect)",
    )
    parser.add_argument(
        "--no-tts",
        action="store_true",
        help="Start with text-to-speech disabled",
    )
    parser.add_argument(
        "--debug", "-v",
        action="store_true",
        help="Enable detailed debug logging for troubleshooting",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args()

    # Setup logging based on debug flag
    setup_logging(debug=args.debug)

    sys.exit(main(
        env_file=args.config,
        tts_engine=args.tts_engine,
        no_tts=args.no_tts,
    ))
