"""Unit tests for recorder/STT/TTS factories in audio/engine_config.py."""

import unittest
from unittest.mock import patch


class TestSTTEngineEnum(unittest.TestCase):
    """Tests for STTEngine enum."""

    def test_stt_engine_values(self):
        """Verify STTEngine enum has expected values."""
        from audio.engine_config import STTEngine

        self.assertEqual(STTEngine.WHISPER_CPP.value, "whisper-cpp")

    def test_stt_engine_from_string(self):
        """Verify STTEngine can be created from string."""
        from audio.engine_config import STTEngine

        self.assertEqual(STTEngine("whisper-cpp"), STTEngine.WHISPER_CPP)


class TestTTSEngineEnum(unittest.TestCase):
    """Tests for TTSEngine enum."""

    def test_tts_engine_values(self):
        """Verify TTSEngine enum has expected values."""
        from audio.engine_config import TTSEngine

        self.assertEqual(TTSEngine.AUTO.value, "auto")
        self.assertEqual(TTSEngine.ESPEAK_NG.value, "espeak-ng")
        self.assertEqual(TTSEngine.ESPEAK.value, "espeak")
        self.assertEqual(TTSEngine.SPD_SAY.value, "spd-say")
        self.assertEqual(TTSEngine.SAY.value, "say")

    def test_invalid_engine_rejected(self):
        """Verify unknown engine names raise ValueError."""
        from audio.engine_config import TTSEngine

        with self.assertRaises(ValueError):
            TTSEngine("kokoro")


class TestCreateSTTEngine(unittest.TestCase):
    """Tests for create_stt_engine() factory."""

    @patch('audio.stt_whisper_cpp.command_responds', return_value=True)
    def test_create_whisper_cpp(self, mock_responds):
        """Verify factory passes voice settings to the whisper.cpp adapter."""
        from audio.engine_config import create_stt_engine
        from audio.stt_whisper_cpp import WhisperCppTranscriber
        from config import VoiceConfig

        config = VoiceConfig(whisper_cpp_path="/opt/whisper-cli", whisper_threads=6)
        engine = create_stt_engine(config)

        self.assertIsInstance(engine, WhisperCppTranscriber)
        self.assertEqual(engine.binary_path, "/opt/whisper-cli")
        self.assertEqual(engine.threads, 6)

    def test_invalid_engine_raises(self):
        """Verify unknown engine name raises ValueError."""
        from audio.engine_config import create_stt_engine
        from config import VoiceConfig

        with self.assertRaises(ValueError):
            create_stt_engine(VoiceConfig(), engine="faster-whisper")


class TestCreateTTSEngine(unittest.TestCase):
    """Tests for create_tts_engine() factory."""

    @patch('audio.tts_system.command_responds', return_value=True)
    def test_auto_picks_first_backend(self, mock_responds):
        """Verify auto mode picks the first responding backend with config voice/rate."""
        from audio.engine_config import create_tts_engine
        from config import TTSConfig

        tts = create_tts_engine(TTSConfig(voice="en", rate=180))

        self.assertEqual(tts.backend.command, "espeak-ng")
        self.assertIn("en", tts.backend.args)
        self.assertIn("180", tts.backend.args)

    @patch('audio.tts_system.command_responds', return_value=True)
    def test_named_engine_only(self, mock_responds):
        """Verify a named engine restricts detection to that command."""
        from audio.engine_config import TTSEngine, create_tts_engine
        from config import TTSConfig

        tts = create_tts_engine(TTSConfig(), engine=TTSEngine.SAY)

        self.assertEqual(tts.backend.command, "say")
        mock_responds.assert_called_once()

    @patch('audio.tts_system.command_responds', return_value=False)
    def test_no_backend_raises(self, mock_responds):
        """Verify SpeechError when no TTS command is available."""
        from audio.engine_config import create_tts_engine
        from audio.errors import SpeechError
        from config import TTSConfig

        with self.assertRaises(SpeechError):
            create_tts_engine(TTSConfig())


class TestCreateRecorder(unittest.TestCase):
    """Tests for create_recorder() factory."""

    def test_recorder_uses_voice_settings(self):
        """Verify the recorder takes command, device and rate from config."""
        import tempfile
        from audio.engine_config import create_recorder
        from config import VoiceConfig

        with tempfile.TemporaryDirectory() as tmpdir:
            config = VoiceConfig(
                recorder_command="/usr/bin/ffmpeg",
                input_format="alsa",
                input_device="hw:1",
                sample_rate=16000,
                scratch_dir=tmpdir,
            )
            recorder = create_recorder(config)

            self.assertEqual(recorder.command, "/usr/bin/ffmpeg")
            self.assertEqual(recorder.input_format, "alsa")
            self.assertEqual(recorder.input_device, "hw:1")
            self.assertEqual(recorder.sample_rate, 16000)


if __name__ == "__main__":
    unittest.main()
