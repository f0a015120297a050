"""Engine process — a readline shell on a pty, with its output pumped into an OutputBuffer.

Spawning writes a temporary inputrc that binds the trigger byte to the
export command and points INPUTRC at it. A daemon thread copies
everything the engine writes into the session's buffer.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Sequence

import pexpect

from rlcomplete.core.exceptions import SessionError
from rlcomplete.services.output_buffer import OutputBuffer
from rlcomplete.services.wire_codec import DEFAULT_TRIGGER, control_file_line

logger = logging.getLogger(__name__)

# Seconds the reader waits per poll before re-checking for shutdown.
_POLL_INTERVAL = 0.1
_READ_SIZE = 4096

DEFAULT_ROWS = 24
DEFAULT_COLS = 512


def write_control_file(trigger: bytes = DEFAULT_TRIGGER) -> Path:
    """Write the engine's startup inputrc to a temporary file and return its path."""
    fd, name = tempfile.mkstemp(prefix="rlcomplete-", suffix=".inputrc")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(control_file_line(trigger))
    return Path(name)


def engine_environment(control_file: Path, extra: dict[str, str] | None = None) -> dict[str, str]:
    """Return the environment for one engine spawn."""
    env = os.environ.copy()
    env["INPUTRC"] = str(control_file)
    # Keep readline's redisplay free of escape sequences
    env["TERM"] = "dumb"
    # Completion probes must not land in the user's history
    env["HISTFILE"] = ""
    env["HISTSIZE"] = "0"
    if extra:
        env.update(extra)
    return env


class EngineProcess:
    """One spawned engine plus the thread feeding its output into a buffer."""

    def __init__(self, child: pexpect.spawn, buffer: OutputBuffer, control_file: Path | None = None) -> None:
        self._child = child
        self._buffer = buffer
        self._control_file = control_file
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._reader = threading.Thread(target=self._pump, name=f"rlcomplete-reader-{child.pid}", daemon=True)
        self._reader.start()

    @classmethod
    def spawn(
        cls,
        command: str,
        args: Sequence[str],
        cwd: str,
        buffer: OutputBuffer,
        trigger: bytes = DEFAULT_TRIGGER,
        env: dict[str, str] | None = None,
    ) -> "EngineProcess":
        """Start the engine in cwd. Raises SessionError if it cannot be spawned."""
        control_file = write_control_file(trigger)
        try:
            child = pexpect.spawn(
                command,
                list(args),
                cwd=cwd,
                env=engine_environment(control_file, env),
                echo=False,
                dimensions=(DEFAULT_ROWS, DEFAULT_COLS),
            )
        except (pexpect.ExceptionPexpect, OSError) as e:
            control_file.unlink(missing_ok=True)
            raise SessionError(f"Failed to spawn {command}: {e}") from e
        logger.info("Spawned engine %s (pid %s) in %s", command, child.pid, cwd)
        return cls(child, buffer, control_file)

    @property
    def pid(self) -> int:
        return self._child.pid

    @property
    def is_alive(self) -> bool:
        return not self._stop.is_set() and self._child.isalive()

    def send(self, data: bytes) -> None:
        """Write raw bytes to the engine's terminal."""
        with self._lock:
            if self._stop.is_set():
                raise SessionError("engine has been closed")
            try:
                self._child.send(data)
            except OSError as e:
                raise SessionError(f"Failed to write to engine: {e}") from e

    def close(self) -> None:
        """Kill the engine unconditionally and drop its control file."""
        with self._lock:
            if self._stop.is_set():
                return
            self._stop.set()
        self._reader.join(timeout=_POLL_INTERVAL * 5)
        try:
            if self._child.isalive():
                self._child.terminate(force=True)
            self._child.close(force=True)
        except (pexpect.ExceptionPexpect, OSError) as e:
            logger.debug("Engine %s did not close cleanly: %s", self._child.pid, e)
        if self._control_file is not None:
            self._control_file.unlink(missing_ok=True)
        self._buffer.mark_eof()
        logger.info("Closed engine (pid %s)", self._child.pid)

    def _pump(self) -> None:
        """Reader thread: copy engine output into the buffer until EOF or close()."""
        while not self._stop.is_set():
            try:
                chunk = self._child.read_nonblocking(size=_READ_SIZE, timeout=_POLL_INTERVAL)
            except pexpect.TIMEOUT:
                continue
            except (pexpect.EOF, OSError, ValueError):
                break
            self._buffer.feed(chunk)
        self._buffer.mark_eof()
