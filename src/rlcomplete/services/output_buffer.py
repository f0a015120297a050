"""Growable output buffer shared by an engine's reader thread and the response parser."""

from __future__ import annotations

import threading
import time

from rlcomplete.core.exceptions import SessionError


class OutputBuffer:
    """Append-only bytes with a read cursor.

    The reader thread calls feed(); everything else runs on the thread
    that owns the session.
    """

    def __init__(self) -> None:
        self._data = bytearray()
        self._cursor = 0
        self._eof = False
        self._last_feed: float | None = None
        self._cond = threading.Condition()

    @property
    def cursor(self) -> int:
        with self._cond:
            return self._cursor

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet consumed."""
        with self._cond:
            return bytes(self._data[self._cursor:])

    @property
    def at_eof(self) -> bool:
        with self._cond:
            return self._eof

    def feed(self, chunk: bytes) -> None:
        """Append engine output and wake any waiting reader."""
        if not chunk:
            return
        with self._cond:
            self._data.extend(chunk)
            self._last_feed = time.monotonic()
            self._cond.notify_all()

    def mark_eof(self) -> None:
        """Record that the engine will produce no more output."""
        with self._cond:
            self._eof = True
            self._cond.notify_all()

    def read_line(self, pos: int, deadline: float | None = None) -> tuple[bytes, int] | None:
        """Return (line, next_pos) for the first newline-terminated line at pos.

        Blocks until the line is complete. deadline is a time.monotonic()
        value; None waits indefinitely. Returns None when the deadline
        passes. Never moves the cursor.
        """
        with self._cond:
            while True:
                idx = self._data.find(b"\n", pos)
                if idx != -1:
                    return bytes(self._data[pos:idx + 1]), idx + 1
                if self._eof:
                    raise SessionError("completion engine closed its output")
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)

    def advance(self, pos: int) -> None:
        """Move the cursor past fully parsed data."""
        with self._cond:
            if pos < self._cursor or pos > len(self._data):
                raise ValueError(f"cursor {pos} outside buffer [{self._cursor}, {len(self._data)}]")
            self._cursor = pos

    def clear(self) -> None:
        """Discard all buffered bytes and reset the cursor."""
        with self._cond:
            self._data.clear()
            self._cursor = 0

    def wait_quiet(self, quiet: float, max_wait: float) -> bool:
        """Block until output has arrived and then stopped for quiet seconds.

        Returns False if max_wait passes first, or if the engine closes
        its output without having written anything.
        """
        deadline = time.monotonic() + max_wait
        with self._cond:
            while True:
                now = time.monotonic()
                if self._last_feed is not None and now - self._last_feed >= quiet:
                    return True
                if self._eof:
                    return self._last_feed is not None
                if now >= deadline:
                    return False
                wake = deadline if self._last_feed is None else min(deadline, self._last_feed + quiet)
                self._cond.wait(max(wake - now, 0.0))
