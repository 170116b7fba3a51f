"""Unit tests for configuration loading in config.py."""

import os
import tempfile
import unittest
from unittest.mock import patch


class TestLoadConfig(unittest.TestCase):
    """Tests for load_config()."""

    def test_defaults_without_env(self):
        """Verify defaults are used when nothing is set."""
        from config import load_config

        with patch.dict(os.environ, {}, clear=True):
            config = load_config(env_file="/nonexistent/.env")

        self.assertEqual(config.vertex_ai.location, "us-east5")
        self.assertEqual(config.vertex_ai.model, "claude-sonnet-4@20250514")
        self.assertEqual(config.vertex_ai.max_tokens, 1000)
        self.assertAlmostEqual(config.vertex_ai.temperature, 0.7)
        self.assertTrue(config.vertex_ai.enable_auto_search)
        self.assertEqual(config.voice.language, "es")
        self.assertEqual(config.voice.sample_rate, 22050)
        self.assertEqual(config.voice.channels, 1)
        self.assertTrue(config.tts.enabled)
        self.assertEqual(config.tts.rate, 160)

    def test_environment_overrides(self):
        """Verify environment variables override defaults."""
        from config import load_config

        env = {
            "ANTHROPIC_VERTEX_PROJECT_ID": "my-project",
            "MAX_TOKENS": "500",
            "TEMPERATURE": "0.2",
            "ENABLE_AUTO_SEARCH": "false",
            "LANGUAGE": "en",
            "TTS_DISABLED": "yes",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config(env_file="/nonexistent/.env")

        self.assertEqual(config.vertex_ai.project_id, "my-project")
        self.assertEqual(config.vertex_ai.max_tokens, 500)
        self.assertAlmostEqual(config.vertex_ai.temperature, 0.2)
        self.assertFalse(config.vertex_ai.enable_auto_search)
        self.assertEqual(config.voice.language, "en")
        self.assertFalse(config.tts.enabled)

    def test_invalid_numbers_fall_back(self):
        """Verify unparseable numbers keep their defaults."""
        from config import load_config

        with patch.dict(os.environ, {"MAX_TOKENS": "lots", "TEMPERATURE": "warm"}, clear=True):
            config = load_config(env_file="/nonexistent/.env")

        self.assertEqual(config.vertex_ai.max_tokens, 1000)
        self.assertAlmostEqual(config.vertex_ai.temperature, 0.7)

    def test_env_file_loaded_without_overriding_environment(self):
        """Verify .env values apply but real environment variables win."""
        from config import load_config

        with tempfile.TemporaryDirectory() as tmpdir:
            env_file = os.path.join(tmpdir, ".env")
            with open(env_file, "w") as f:
                f.write("CLOUD_ML_REGION=europe-west1\nWHISPER_THREADS=8\n")

            with patch.dict(os.environ, {"WHISPER_THREADS": "2"}, clear=True):
                config = load_config(env_file=env_file)

        self.assertEqual(config.vertex_ai.location, "europe-west1")
        self.assertEqual(config.voice.whisper_threads, 2)

    @patch('config.sys.platform', 'darwin')
    def test_macos_input_defaults(self):
        """Verify macOS records through AVFoundation."""
        from config import load_config

        with patch.dict(os.environ, {}, clear=True):
            config = load_config(env_file="/nonexistent/.env")

        self.assertEqual(config.voice.input_format, "avfoundation")
        self.assertEqual(config.voice.input_device, ":0")


if __name__ == "__main__":
    unittest.main()
