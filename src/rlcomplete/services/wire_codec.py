"""Wire codec — request encoding and response decoding for the readline engine.

Request:  <input> <\\x02 * point_offset> "2" <trigger>
Response: <leading line>
          <N>        count, including the common-prefix entry
          <T>        word being completed
          <S>:<E>    span of T within the input
          N completion lines
Every line ends with a newline.
"""

from __future__ import annotations

from typing import Callable

from rlcomplete.core.exceptions import InvalidArgument, ProtocolViolation
from rlcomplete.models.request import CompletionRequest
from rlcomplete.models.response import ParsedResponse

CURSOR_BACK = b"\x02"
LISTING_MODE = b"2"
DEFAULT_TRIGGER = b"\x1e"
EXPORT_COMMAND = "export-completions"


def encode_request(request: CompletionRequest, trigger: bytes = DEFAULT_TRIGGER) -> bytes:
    """Encode a request into the bytes written to the engine's terminal."""
    if request.point_offset < 0:
        raise InvalidArgument(f"point_offset must be >= 0, got {request.point_offset}")
    return request.text.encode("utf-8") + CURSOR_BACK * request.point_offset + LISTING_MODE + trigger


def control_file_line(trigger: bytes = DEFAULT_TRIGGER) -> str:
    """Return the inputrc line binding the trigger byte to the export command."""
    if len(trigger) != 1:
        raise InvalidArgument(f"trigger must be a single byte, got {trigger!r}")
    return f'"\\{trigger[0]:03o}": {EXPORT_COMMAND}\n'


def strip_terminator(line: bytes) -> bytes:
    """Remove the newline (and any carriage return a pty added before it)."""
    if not line.endswith(b"\n"):
        raise ProtocolViolation(f"truncated response line: {line!r}")
    return line[:-1].rstrip(b"\r")


def parse_count(line: bytes) -> int:
    text = line.strip()
    try:
        return int(text)
    except ValueError:
        raise ProtocolViolation(f"invalid completion count: {text!r}") from None


def parse_span(line: bytes) -> tuple[int, int]:
    """Parse "S:E" into (start, end)."""
    head, sep, tail = line.strip().partition(b":")
    if not sep:
        raise ProtocolViolation(f"missing ':' in word span: {line!r}")
    try:
        start, end = int(head), int(tail)
    except ValueError:
        raise ProtocolViolation(f"invalid word span: {line!r}") from None
    if start < 0 or start > end:
        raise ProtocolViolation(f"word span out of order: {start}:{end}")
    return start, end


def trim_candidates(candidates: list[str], count: int) -> list[str]:
    """Drop the engine's common-prefix entry when there are two or more candidates."""
    if count < 2:
        return list(candidates)
    return list(candidates[1:])


def decode_response(readline: Callable[[], bytes]) -> ParsedResponse | None:
    """Decode one response, pulling newline-terminated lines from readline.

    Consumes exactly the response's lines. Returns None when the engine
    reported no completions.
    """
    # Normally blank; a pty engine may redraw its prompt here.
    strip_terminator(readline())
    count = parse_count(strip_terminator(readline()))
    word = strip_terminator(readline()).decode("utf-8", errors="replace")
    start, end = parse_span(strip_terminator(readline()))

    candidates = [
        strip_terminator(readline()).decode("utf-8", errors="replace")
        for _ in range(max(count, 0))
    ]
    if count < 1:
        return None
    return ParsedResponse(
        word=word,
        word_start=start,
        word_end=end,
        completions=trim_candidates(candidates, count),
    )


def encode_response(word: str, start: int, end: int, completions: list[str]) -> bytes:
    """Build a response the way the engine writes it. Used by fake engines in tests."""
    lines = ["", str(len(completions)), word, f"{start}:{end}", *completions]
    return "".join(f"{line}\n" for line in lines).encode("utf-8")
