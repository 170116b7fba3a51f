"""Subprocess helpers shared by the recorder, transcriber and TTS adapters.

Every external command runs through :func:`run_command` so that a single
``threading.Event`` can cancel it: the child is polled, and killed as soon as
the event is set or its timeout passes.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from typing import Callable, Optional, Sequence

logger = logging.getLogger("deskpet")

POLL_INTERVAL = 0.1


class Cancelled(Exception):
    """Raised when the cancellation event fires while a command is running."""


class CommandTimeout(Exception):
    """Raised when a command outlives its timeout."""

    def __init__(self, args: Sequence[str], timeout: float) -> None:
        super().__init__(f"'{args[0]}' timed out after {timeout:.0f}s")
        self.args_list = list(args)
        self.timeout = timeout


def _kill(proc: subprocess.Popen) -> None:
    proc.kill()
    try:
        proc.communicate(timeout=5)
    except subprocess.TimeoutExpired:
        logger.warning("Process %s did not exit after kill", proc.pid)


def run_command(
    args: Sequence[str],
    timeout: float,
    cancel_event: Optional[threading.Event] = None,
    cwd: Optional[str] = None,
    on_tick: Optional[Callable[[float], None]] = None,
    tick_interval: float = 1.0,
) -> subprocess.CompletedProcess:
    """Run ``args`` to completion and return its captured output.

    Args:
        args: Command and arguments
        timeout: Seconds before the child is killed
        cancel_event: Kills the child when set
        cwd: Working directory for the child
        on_tick: Called with the elapsed seconds about every ``tick_interval``
        tick_interval: Seconds between ``on_tick`` calls

    Returns:
        CompletedProcess with text stdout/stderr

    Raises:
        OSError: The executable does not exist or cannot be run
        Cancelled: ``cancel_event`` was set before the child exited
        CommandTimeout: The child ran longer than ``timeout``
    """
    if cancel_event is not None and cancel_event.is_set():
        raise Cancelled()

    logger.debug("Running: %s", " ".join(args))
    proc = subprocess.Popen(
        list(args),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )

    start = time.monotonic()
    next_tick = start + tick_interval
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            now = time.monotonic()
            if cancel_event is not None and cancel_event.is_set():
                _kill(proc)
                raise Cancelled()
            if now - start >= timeout:
                _kill(proc)
                raise CommandTimeout(args, timeout)
            if on_tick is not None and now >= next_tick:
                on_tick(now - start)
                next_tick += tick_interval

    return subprocess.CompletedProcess(list(args), proc.returncode, stdout, stderr)


def command_responds(args: Sequence[str], timeout: float = 5.0) -> bool:
    """Liveness probe: True only if the command runs and exits with status 0."""
    try:
        result = subprocess.run(
            list(args),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


__all__ = ["Cancelled", "CommandTimeout", "run_command", "command_responds"]
