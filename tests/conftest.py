"""Shared fixtures: an in-process fake engine that speaks the export-completions protocol."""

from __future__ import annotations

import os

import pytest

from rlcomplete.services.completion_service import CompletionService
from rlcomplete.services.context import CompletionContext
from rlcomplete.services.coordinator import RequestCoordinator
from rlcomplete.services.output_buffer import OutputBuffer
from rlcomplete.services.response_parser import ResponseParser
from rlcomplete.services.session_manager import Session, SessionManager
from rlcomplete.services.wire_codec import CURSOR_BACK, DEFAULT_TRIGGER, LISTING_MODE, encode_response

VOCABULARY = ["add ", "address", "checkout ", "commit ", "install ", "interactive ", "invoke "]


def decode_request(data: bytes, trigger: bytes = DEFAULT_TRIGGER) -> tuple[str, int]:
    """Split an encoded request back into (text, point_offset)."""
    assert data.endswith(LISTING_MODE + trigger), data
    body = data[: -len(LISTING_MODE + trigger)]
    stripped = body.rstrip(CURSOR_BACK)
    return stripped.decode("utf-8"), len(body) - len(stripped)


def vocabulary_response(text: str, point_offset: int) -> bytes:
    """Complete the word before the point against VOCABULARY, the way readline reports it."""
    point = len(text) - point_offset
    start = text.rfind(" ", 0, point) + 1
    word = text[start:point]
    matches = [w for w in VOCABULARY if w.startswith(word)]
    if len(matches) > 1:
        matches = [os.path.commonprefix(matches)] + matches
    # readline reports the span in bytes
    return encode_response(word, len(text[:start].encode()), len(text[:point].encode()), matches)


class FakeEngine:
    """Answers each request in order. With hold=True, answers wait for release()."""

    def __init__(self, buffer: OutputBuffer, trigger: bytes = DEFAULT_TRIGGER, hold: bool = False) -> None:
        self.buffer = buffer
        self.trigger = trigger
        self.hold = hold
        self.requests: list[tuple[str, int]] = []
        self.held: list[bytes] = []
        self.responder = vocabulary_response
        self.alive = True
        self.closed = False
        self.command = ""
        self.cwd = ""

    @property
    def is_alive(self) -> bool:
        return self.alive

    def send(self, data: bytes) -> None:
        text, point_offset = decode_request(data, self.trigger)
        self.requests.append((text, point_offset))
        response = self.responder(text, point_offset)
        if self.hold:
            self.held.append(response)
        else:
            self.buffer.feed(response)

    def release(self) -> None:
        for response in self.held:
            self.buffer.feed(response)
        self.held.clear()

    def close(self) -> None:
        self.alive = False
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engines():
    """Every FakeEngine spawned during the test, in spawn order."""
    return []


@pytest.fixture
def spawner(engines):
    def spawn(command, args, cwd, buffer, trigger):
        engine = FakeEngine(buffer, trigger=trigger)
        engine.command = command
        engine.cwd = cwd
        engines.append(engine)
        return engine

    return spawn


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(spawner, clock):
    return SessionManager(shell="/bin/bash", spawner=spawner, idle_timeout=60.0, startup_quiet=0.0, clock=clock)


@pytest.fixture
def service(manager):
    coordinator = RequestCoordinator(ResponseParser(timeout=2.0), manager.trigger)
    return CompletionService(manager, coordinator)


@pytest.fixture
def context(tmp_path):
    ctx = CompletionContext(tmp_path)
    yield ctx
    ctx.close()


@pytest.fixture
def held_session():
    """A session whose engine answers only when released."""
    buffer = OutputBuffer()
    engine = FakeEngine(buffer, hold=True)
    return Session(engine, buffer, cwd="/tmp", owner_id="ctx")
