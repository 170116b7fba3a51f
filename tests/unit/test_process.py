"""Unit tests for the cancellable subprocess runner in audio/process.py.

The child processes are the current Python interpreter running one-liners,
so these tests need no external tools.
"""

import sys
import threading
import time
import unittest


class TestRunCommand(unittest.TestCase):
    """Tests for run_command()."""

    def test_captures_output_and_status(self):
        """Verify stdout, stderr and the exit status are returned."""
        from audio.process import run_command

        result = run_command(
            [sys.executable, "-c", "import sys; print('hello'); sys.stderr.write('oops'); sys.exit(3)"],
            timeout=10,
        )

        self.assertEqual(result.returncode, 3)
        self.assertEqual(result.stdout.strip(), "hello")
        self.assertEqual(result.stderr.strip(), "oops")

    def test_timeout_kills_child(self):
        """Verify a child outliving its timeout raises CommandTimeout."""
        from audio.process import CommandTimeout, run_command

        start = time.monotonic()
        with self.assertRaises(CommandTimeout) as ctx:
            run_command([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)

        self.assertLess(time.monotonic() - start, 10)
        self.assertEqual(ctx.exception.timeout, 0.5)

    def test_cancel_event_kills_child(self):
        """Verify setting the event mid-run raises Cancelled."""
        from audio.process import Cancelled, run_command

        cancel_event = threading.Event()
        timer = threading.Timer(0.3, cancel_event.set)
        timer.start()
        try:
            start = time.monotonic()
            with self.assertRaises(Cancelled):
                run_command(
                    [sys.executable, "-c", "import time; time.sleep(30)"],
                    timeout=20,
                    cancel_event=cancel_event,
                )
            self.assertLess(time.monotonic() - start, 10)
        finally:
            timer.cancel()

    def test_already_cancelled_does_not_spawn(self):
        """Verify a set event raises before any child is started."""
        from unittest.mock import patch
        from audio.process import Cancelled, run_command

        cancel_event = threading.Event()
        cancel_event.set()

        with patch('audio.process.subprocess.Popen') as mock_popen:
            with self.assertRaises(Cancelled):
                run_command(["anything"], timeout=1, cancel_event=cancel_event)
            mock_popen.assert_not_called()

    def test_on_tick_called_while_waiting(self):
        """Verify progress callbacks fire during a long-running child."""
        from audio.process import run_command

        ticks = []
        run_command(
            [sys.executable, "-c", "import time; time.sleep(1.0)"],
            timeout=10,
            on_tick=ticks.append,
            tick_interval=0.2,
        )

        self.assertGreater(len(ticks), 0)
        self.assertTrue(all(t >= 0.2 for t in ticks))

    def test_missing_executable_raises(self):
        """Verify a missing executable raises FileNotFoundError."""
        from audio.process import run_command

        with self.assertRaises(FileNotFoundError):
            run_command(["definitely-not-a-real-command-xyz"], timeout=1)


class TestCommandResponds(unittest.TestCase):
    """Tests for command_responds()."""

    def test_zero_exit_responds(self):
        """Verify a command exiting 0 counts as responding."""
        from audio.process import command_responds

        self.assertTrue(command_responds([sys.executable, "-c", "pass"]))

    def test_nonzero_exit_does_not_respond(self):
        """Verify a failing command does not count."""
        from audio.process import command_responds

        self.assertFalse(command_responds([sys.executable, "-c", "import sys; sys.exit(1)"]))

    def test_missing_command_does_not_respond(self):
        """Verify a missing command returns False instead of raising."""
        from audio.process import command_responds

        self.assertFalse(command_responds(["definitely-not-a-real-command-xyz", "--help"]))


if __name__ == "__main__":
    unittest.main()
