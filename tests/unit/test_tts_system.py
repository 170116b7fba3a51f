"""Unit tests for the system TTS adapter in audio/tts_system.py."""

import subprocess
import unittest
from unittest.mock import patch


class TestCleanTextForSpeech(unittest.TestCase):
    """Tests for clean_text_for_speech()."""

    def test_markdown_removed(self):
        """Verify emphasis, heading and code markers are stripped."""
        from audio.tts_system import clean_text_for_speech

        self.assertEqual(clean_text_for_speech("**Hola** `amigo`"), "Hola amigo")
        self.assertEqual(clean_text_for_speech("# Title"), "Title")

    def test_newlines_become_periods(self):
        """Verify line breaks turn into sentence ends."""
        from audio.tts_system import clean_text_for_speech

        self.assertEqual(clean_text_for_speech("Line one\nLine two"), "Line one. Line two")

    def test_repeated_periods_collapsed(self):
        """Verify ellipses collapse into a single period."""
        from audio.tts_system import clean_text_for_speech

        self.assertEqual(clean_text_for_speech("Wait... what"), "Wait. what")

    def test_accents_kept(self):
        """Verify Spanish accented letters survive cleaning."""
        from audio.tts_system import clean_text_for_speech

        self.assertEqual(clean_text_for_speech("¡Qué día! 😀"), "Qué día!")

    def test_non_latin_scripts_removed(self):
        """Verify letters outside ASCII and Latin-1 accents are stripped."""
        from audio.tts_system import clean_text_for_speech

        self.assertEqual(clean_text_for_speech("Hola Привет 你好 ça"), "Hola ça")
        self.assertEqual(clean_text_for_speech("Привет 你好"), "")

    def test_only_disallowed_characters_is_empty(self):
        """Verify text made only of disallowed characters cleans to empty."""
        from audio.tts_system import clean_text_for_speech

        for text in ("😀🎉", "***", "   ", "🤖\n🤖", "..."):
            self.assertEqual(clean_text_for_speech(text), "", text)


class TestDetectTTSSystem(unittest.TestCase):
    """Tests for backend detection."""

    @patch('audio.tts_system.command_responds')
    def test_first_responding_backend_chosen(self, mock_responds):
        """Verify detection stops at the first responding command."""
        from audio.tts_system import SystemTTS, default_backends

        mock_responds.side_effect = lambda args, timeout=5.0: args[0] == "espeak"

        tts = SystemTTS(backends=default_backends())
        self.assertEqual(tts.backend.command, "espeak")

    @patch('audio.tts_system.command_responds', return_value=False)
    def test_no_backend_raises(self, mock_responds):
        """Verify SpeechError lists every command tried."""
        from audio.errors import SpeechError
        from audio.tts_system import SystemTTS, default_backends

        with self.assertRaises(SpeechError) as ctx:
            SystemTTS(backends=default_backends())
        self.assertIn("espeak-ng", str(ctx.exception))
        self.assertIn("say", str(ctx.exception))


class TestSpeak(unittest.TestCase):
    """Tests for SystemTTS.speak()."""

    def setUp(self):
        patcher = patch('audio.tts_system.command_responds', return_value=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    @patch('audio.tts_system.run_command')
    def test_speak_invokes_backend(self, mock_run):
        """Verify the cleaned text is passed to the detected command."""
        from audio.tts_system import SPEAK_TIMEOUT_SECONDS, SystemTTS

        mock_run.return_value = subprocess.CompletedProcess([], 0, "", "")
        tts = SystemTTS(voice="es", rate=150)

        tts.speak("**Hola**")

        args = mock_run.call_args.args[0]
        self.assertEqual(args[0], "espeak-ng")
        self.assertEqual(args[-1], "Hola")
        self.assertIn("150", args)
        self.assertEqual(mock_run.call_args.kwargs["timeout"], SPEAK_TIMEOUT_SECONDS)

    @patch('audio.tts_system.run_command')
    def test_unspeakable_text_is_noop(self, mock_run):
        """Verify no subprocess is spawned for text that cleans to nothing."""
        from audio.tts_system import SystemTTS

        tts = SystemTTS()
        tts.speak("🤖🤖🤖")
        tts.speak("")

        mock_run.assert_not_called()

    @patch('audio.tts_system.run_command')
    def test_failure_raises_speech_error(self, mock_run):
        """Verify a failing command raises SpeechError with the synthesis stage."""
        from audio.errors import SpeechError
        from audio.tts_system import SystemTTS

        mock_run.return_value = subprocess.CompletedProcess([], 2, "", "bad voice")

        with self.assertRaises(SpeechError) as ctx:
            SystemTTS().speak("Hola")
        self.assertEqual(ctx.exception.stage, "synthesis")

    @patch('audio.tts_system.run_command')
    def test_unexecutable_command_raises_speech_error(self, mock_run):
        """Verify a command that cannot be executed raises SpeechError."""
        from audio.errors import SpeechError
        from audio.tts_system import SystemTTS

        mock_run.side_effect = PermissionError(13, "Permission denied")

        with self.assertRaises(SpeechError) as ctx:
            SystemTTS().speak("Hola")
        self.assertEqual(ctx.exception.stage, "synthesis")

    @patch('audio.tts_system.run_command')
    def test_timeout_raises_speech_error(self, mock_run):
        """Verify a hung command raises SpeechError."""
        from audio.errors import SpeechError
        from audio.process import CommandTimeout
        from audio.tts_system import SystemTTS

        mock_run.side_effect = CommandTimeout(["espeak-ng"], 30)

        with self.assertRaises(SpeechError):
            SystemTTS().speak("Hola")


if __name__ == "__main__":
    unittest.main()
