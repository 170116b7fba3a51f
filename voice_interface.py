"""Command-driven voice session: record → transcribe → ask Claude → speak.

The session reads single-letter commands from a line reader and runs each one
to completion before reading the next. Failures inside a command are logged
and the loop keeps going; only failures while building the components at
startup are fatal.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
import wave
from typing import Any, Callable, Optional, TextIO

from audio.engine_config import TTSEngine, create_recorder, create_stt_engine, create_tts_engine
from audio.errors import PipelineError, RecordingError, SpeechError
from audio.levels import measure_wav_level
from audio.process import Cancelled
from audio.recorder import Utterance
from config import Config
from llm.smart_client import SmartClient
from llm.vertex import LLMError, Message, VertexClient

logger = logging.getLogger("deskpet")

PROMPT = "Command (r/l/t/x/s/q): "
SHORT_RECORDING_SECONDS = 7
LONG_RECORDING_SECONDS = 12
MIC_TEST_SECONDS = 3
TEST_PHRASE = "Hello, this is a voice test. Everything is working correctly."
READ_POLL_INTERVAL = 0.1


class InitializationError(Exception):
    """A required component could not be set up; the session cannot start."""


class ShutdownError(Exception):
    """One or more components failed to shut down cleanly."""

    def __init__(self, errors: list[BaseException]) -> None:
        super().__init__("; ".join(str(e) for e in errors))
        self.errors = errors


class LineReader:
    """Read lines from a stream on a background thread.

    ``read_line`` can then wait on the next line and on a cancellation event
    at the same time.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        prompt: str = PROMPT,
        output: Optional[TextIO] = None,
    ) -> None:
        self.stream = stream if stream is not None else sys.stdin
        self.output = output if output is not None else sys.stdout
        self.prompt = prompt
        self._lines: queue.Queue[Optional[str]] = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._closed = threading.Event()
        self._eof = False

    def start(self) -> None:
        if self._thread is None:
            self._thread = threading.Thread(target=self._read_loop, name="line-reader", daemon=True)
            self._thread.start()

    def _read_loop(self) -> None:
        while not self._closed.is_set():
            try:
                line = self.stream.readline()
            except (OSError, ValueError) as exc:
                logger.debug("Input stream closed: %s", exc)
                line = ""
            if not line:
                self._lines.put(None)
                return
            self._lines.put(line)

    def read_line(self, cancel_event: Optional[threading.Event] = None) -> Optional[str]:
        """Wait for the next line.

        Returns:
            The line without its trailing newline, or None on EOF or when
            ``cancel_event`` is set
        """
        self.start()
        if self._eof or self._closed.is_set():
            return None

        self.output.write(self.prompt)
        self.output.flush()

        while True:
            if cancel_event is not None and cancel_event.is_set():
                return None
            try:
                line = self._lines.get(timeout=READ_POLL_INTERVAL)
            except queue.Empty:
                continue
            if line is None:
                self._eof = True
                return None
            return line.rstrip("\r\n")

    def close(self) -> None:
        # A readline() already blocked on stdin cannot be interrupted; the thread is a daemon
        self._closed.set()


class VoiceSession:
    """Owns every pipeline component plus the speech on/off state."""

    def __init__(
        self,
        config: Config,
        recorder: Any = None,
        transcriber: Any = None,
        smart_client: Optional[SmartClient] = None,
        tts: Any = None,
        reader: Optional[LineReader] = None,
        tts_engine: TTSEngine | str = TTSEngine.AUTO,
    ) -> None:
        self.config = config
        self.recorder = recorder
        self.transcriber = transcriber
        self.smart_client = smart_client
        self.tts = tts
        self.reader = reader
        self.tts_engine = tts_engine
        self.tts_enabled = config.tts.enabled
        self.active_utterance: Optional[Utterance] = None

        self._commands: dict[str, tuple[str, Callable[[threading.Event], Any]]] = {
            "r": ("Voice command", self.record_short),
            "l": ("Long voice command", self.record_long),
            "t": ("Microphone test", self.test_microphone),
            "x": ("TTS test", self.test_tts),
            "s": ("TTS toggle", self.toggle_tts),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Build transcriber, smart client, recorder, TTS and line reader, in that order.

        Raises:
            InitializationError: Any component except TTS failed
        """
        logger.info("🔄 Initializing voice interface...")

        if self.transcriber is None:
            logger.info("🔄 Setting up whisper.cpp...")
            try:
                self.transcriber = create_stt_engine(self.config.voice)
            except PipelineError as e:
                raise InitializationError(f"failed to initialize transcriber: {e}") from e
            logger.info("✅ whisper.cpp ready")

        logger.info("🔄 Connecting to Claude...")
        if self.smart_client is None:
            self.smart_client = SmartClient(
                VertexClient(self.config.vertex_ai),
                auto_search_enabled=self.config.vertex_ai.enable_auto_search,
            )
        try:
            self.smart_client.initialize()
        except LLMError as e:
            raise InitializationError(f"failed to initialize Claude client: {e}") from e
        logger.info("✅ Claude connected")

        if self.recorder is None:
            logger.info("🔄 Setting up audio recorder...")
            self.recorder = create_recorder(self.config.voice)
            logger.info("✅ Audio recorder ready")

        if self.tts is None and self.config.tts.enabled:
            logger.info("🔄 Setting up text-to-speech...")
            try:
                self.tts = create_tts_engine(self.config.tts, engine=self.tts_engine)
                logger.info("✅ TTS ready")
            except SpeechError as e:
                logger.warning("Failed to initialize TTS, speech disabled: %s", e)
                self.tts = None
                self.tts_enabled = False

        if self.reader is None:
            self.reader = LineReader()

        logger.info("🎉 Voice interface ready!")

    def shutdown(self) -> None:
        """Release the line reader, the Claude client and the recorder, in that order.

        Raises:
            ShutdownError: Carries every failure, not just the first
        """
        logger.info("Shutting down voice interface")
        errors: list[BaseException] = []

        steps: list[tuple[str, Optional[Callable[[], None]]]] = [
            ("input reader", self.reader.close if self.reader is not None else None),
            ("Claude client", self.smart_client.shutdown if self.smart_client is not None else None),
            ("audio recorder", self.recorder.cleanup if self.recorder is not None else None),
        ]
        for name, step in steps:
            if step is None:
                continue
            try:
                step()
            except Exception as e:
                logger.error("Failed to shut down %s: %s", name, e)
                errors.append(e)

        self._release_utterance()

        if errors:
            raise ShutdownError(errors)

    # ------------------------------------------------------------------
    # Command loop
    # ------------------------------------------------------------------

    def print_help(self) -> None:
        logger.info("🎯 Commands:")
        logger.info("  • 'r' + ENTER: Record and process voice (%d seconds)", SHORT_RECORDING_SECONDS)
        logger.info("  • 'l' + ENTER: Long recording (%d seconds)", LONG_RECORDING_SECONDS)
        logger.info("  • 't' + ENTER: Test microphone levels")
        logger.info("  • 'x' + ENTER: Test TTS voice")
        logger.info("  • 's' + ENTER: Toggle speech (currently %s)", "ON" if self.tts_enabled else "OFF")
        logger.info("  • 'q' + ENTER: Quit")
        if self.tts is not None:
            logger.info("🔊 TTS: %s", self.tts.backend.command)
        else:
            logger.info("🔊 TTS: not available")
        logger.info("🎤 Speech Recognition: whisper.cpp (%s)", self.config.voice.language)

    def run(self, cancel_event: threading.Event) -> None:
        """Read and dispatch commands until quit, EOF or ``cancel_event``."""
        if self.reader is None:
            raise InitializationError("session used before initialize()")

        self.print_help()

        while not cancel_event.is_set():
            line = self.reader.read_line(cancel_event)
            if line is None:
                if cancel_event.is_set():
                    logger.info("👋 Interrupt received")
                else:
                    logger.info("👋 EOF received")
                return

            command = line.strip().lower()
            if not command:
                continue
            if command == "q":
                logger.info("👋 Goodbye!")
                return

            try:
                self.handle_command(command, cancel_event)
            except Cancelled:
                logger.info("👋 Interrupted")
                return

    def handle_command(self, command: str, cancel_event: threading.Event) -> None:
        entry = self._commands.get(command)
        if entry is None:
            logger.warning("❓ Unknown command: %r (available: r/l/t/x/s/q)", command)
            return

        label, handler = entry
        try:
            handler(cancel_event)
        except (PipelineError, LLMError) as e:
            logger.error("%s failed (stage=%s): %s", label, e.stage, e)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def record_short(self, cancel_event: threading.Event) -> Optional[str]:
        return self.process_voice_command(SHORT_RECORDING_SECONDS, cancel_event)

    def record_long(self, cancel_event: threading.Event) -> Optional[str]:
        logger.info("🎤 Long recording mode...")
        return self.process_voice_command(LONG_RECORDING_SECONDS, cancel_event)

    def process_voice_command(self, duration: int, cancel_event: threading.Event) -> Optional[str]:
        """Run one full turn: record, transcribe, ask Claude, speak.

        Args:
            duration: Recording length in seconds
            cancel_event: Aborts the running subprocess when set

        Returns:
            Claude's reply, or None when there was nothing to send
        """
        if self.active_utterance is not None:
            raise RecordingError("previous recording has not been processed yet")

        result = self.recorder.record(duration, cancel_event=cancel_event)
        if not result.ok:
            logger.warning("Recording was not successful")
            result.utterance.delete()
            return None

        self.active_utterance = result.utterance
        try:
            logger.info("🔄 Transcribing...")
            transcription = self.transcriber.transcribe(
                result.utterance.path,
                language=self.config.voice.language,
                cancel_event=cancel_event,
            )
        finally:
            self._release_utterance()

        if not transcription:
            logger.warning("❌ No speech detected")
            return None

        logger.info("👤 You said: %s", transcription)
        logger.info("🤖 Claude is thinking...")

        response = self.smart_client.send_message([Message(role="user", content=transcription)])
        logger.info("🎯 Claude: %s", response)

        if self.tts_enabled and self.tts is not None:
            self.tts.speak(response, cancel_event=cancel_event)

        return response

    def test_microphone(self, cancel_event: threading.Event) -> None:
        """Record a short clip and report its level; nothing is transcribed."""
        logger.info("🎤 Testing microphone (%ds)...", MIC_TEST_SECONDS)

        result = self.recorder.record(MIC_TEST_SECONDS, cancel_event=cancel_event)
        try:
            if not result.ok:
                logger.warning("Recording was not successful")
                return
            try:
                level = measure_wav_level(result.utterance.path)
            except (OSError, ValueError, wave.Error) as e:
                raise RecordingError(f"cannot read test recording: {e}") from e
        finally:
            result.utterance.delete()

        logger.info("📊 Input level: %.1f dBFS (rms=%.0f)", level.dbfs, level.rms)
        if level.is_silent:
            logger.warning("⚠️ No audio detected, check the microphone and input device")
        logger.info("✅ Microphone test complete!")

    def test_tts(self, cancel_event: threading.Event) -> None:
        if not self.tts_enabled or self.tts is None:
            logger.info("⚠️ TTS is disabled or not available")
            return
        logger.info("🔊 Testing TTS...")
        self.tts.speak(TEST_PHRASE, cancel_event=cancel_event)
        logger.info("✅ TTS test complete!")

    def toggle_tts(self, cancel_event: Optional[threading.Event] = None) -> bool:
        self.tts_enabled = not self.tts_enabled
        logger.info("🔊 TTS toggled: %s", "ON" if self.tts_enabled else "OFF")
        if self.tts_enabled and self.tts is None:
            logger.info("⚠️ No TTS system available, nothing will be spoken")
        return self.tts_enabled

    def _release_utterance(self) -> None:
        if self.active_utterance is not None:
            self.active_utterance.delete()
            self.active_utterance = None


__all__ = [
    "VoiceSession",
    "LineReader",
    "InitializationError",
    "ShutdownError",
    "PROMPT",
    "TEST_PHRASE",
]
