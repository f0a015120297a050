"""Response parser — pulls one engine response out of a session's output buffer."""

from __future__ import annotations

import logging
import time

from rlcomplete.core.exceptions import ResponseTimeout
from rlcomplete.models.response import ParsedResponse
from rlcomplete.services.output_buffer import OutputBuffer
from rlcomplete.services.wire_codec import decode_response

logger = logging.getLogger(__name__)


class ResponseParser:
    """Decodes responses from an OutputBuffer, waiting for output as needed.

    timeout bounds the wait for one whole response, or for a batch of
    responses sharing a deadline, in seconds. None waits indefinitely.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def deadline(self) -> float | None:
        """A time.monotonic() value timeout seconds from now, or None."""
        return None if self.timeout is None else time.monotonic() + self.timeout

    def parse(self, buffer: OutputBuffer, deadline: float | None = None) -> ParsedResponse | None:
        """Decode the next response. The cursor only moves when decoding succeeds.

        deadline defaults to timeout seconds from now. Callers decoding
        several responses pass one shared deadline.
        """
        if deadline is None:
            deadline = self.deadline()
        pos = buffer.cursor

        def readline() -> bytes:
            nonlocal pos
            result = buffer.read_line(pos, deadline)
            if result is None:
                raise ResponseTimeout(f"no complete response within {self.timeout}s")
            line, pos = result
            return line

        response = decode_response(readline)
        buffer.advance(pos)
        logger.debug(
            "Parsed response: %s",
            "no completions" if response is None else f"{len(response.completions)} candidate(s)",
        )
        return response
