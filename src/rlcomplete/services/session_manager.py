"""Session manager — one engine session per context, created lazily, torn down on exit or idle."""

from __future__ import annotations

import logging
import threading
import time
import weakref
from pathlib import Path
from typing import Callable, Protocol, Sequence

from rlcomplete.core.exceptions import EnvironmentMismatch, SessionError
from rlcomplete.models.base import new_id
from rlcomplete.services.context import CompletionContext
from rlcomplete.services.engine_process import EngineProcess
from rlcomplete.services.output_buffer import OutputBuffer
from rlcomplete.services.wire_codec import DEFAULT_TRIGGER

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 300.0
DEFAULT_STARTUP_QUIET = 0.25
DEFAULT_STARTUP_TIMEOUT = 5.0


class Engine(Protocol):
    """What a session needs from its engine process."""

    @property
    def is_alive(self) -> bool: ...

    def send(self, data: bytes) -> None: ...

    def close(self) -> None: ...


Spawner = Callable[[str, Sequence[str], str, OutputBuffer, bytes], Engine]


def spawn_engine(command: str, args: Sequence[str], cwd: str, buffer: OutputBuffer, trigger: bytes) -> Engine:
    return EngineProcess.spawn(command, args, cwd, buffer, trigger=trigger)


class Session:
    """An engine, its output buffer, and the request bookkeeping for one context."""

    def __init__(
        self,
        engine: Engine,
        buffer: OutputBuffer,
        cwd: str,
        owner_id: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.id = new_id()
        self.engine = engine
        self.buffer = buffer
        self.cwd = cwd
        self.owner_id = owner_id
        self.outstanding = 0
        self._clock = clock
        self.last_activity = clock()

    @property
    def is_alive(self) -> bool:
        return self.engine.is_alive

    def touch(self) -> None:
        self.last_activity = self._clock()

    def idle_for(self, now: float | None = None) -> float:
        return (self._clock() if now is None else now) - self.last_activity

    def write(self, data: bytes) -> None:
        self.engine.send(data)
        self.touch()

    def close(self) -> None:
        self.engine.close()
        self.buffer.mark_eof()


class SessionManager:
    """Creates, reuses, and destroys engine sessions for completion contexts."""

    def __init__(
        self,
        shell: str = "bash",
        args: Sequence[str] = ("-i",),
        expected_engine: str = "bash",
        trigger: bytes = DEFAULT_TRIGGER,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        startup_quiet: float = DEFAULT_STARTUP_QUIET,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
        spawner: Spawner = spawn_engine,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.shell = shell
        self.args = tuple(args)
        self.expected_engine = expected_engine
        self.trigger = trigger
        self.idle_timeout = idle_timeout
        self.startup_quiet = startup_quiet
        self.startup_timeout = startup_timeout
        self._spawner = spawner
        self._clock = clock
        self._contexts: "weakref.WeakSet[CompletionContext]" = weakref.WeakSet()
        self._hooked: "weakref.WeakSet[CompletionContext]" = weakref.WeakSet()

    def check_engine(self) -> None:
        """Raise EnvironmentMismatch if the configured shell is not the expected engine."""
        if self.expected_engine and Path(self.shell).name != self.expected_engine:
            raise EnvironmentMismatch(
                f"Shell {self.shell!r} is not {self.expected_engine!r}; completion disabled"
            )

    def acquire(self, context: CompletionContext) -> Session:
        """Return the context's live session, creating one if needed.

        Raises SessionError for a closed context, which can no longer tear
        a new engine down.
        """
        with context.lock:
            if context.closed:
                raise SessionError(f"Context {context.id} is closed")
            session = context.session
            if session is not None:
                if session.is_alive:
                    session.touch()
                    return session
                logger.info("Engine for session %s exited; recreating", session.id)
                self.destroy(context)

            self.check_engine()
            buffer = OutputBuffer()
            engine = self._spawner(self.shell, self.args, context.cwd, buffer, self.trigger)
            self._await_startup(engine, buffer)
            session = Session(engine, buffer, cwd=context.cwd, owner_id=context.id, clock=self._clock)
            context.session = session
            self._contexts.add(context)
            if context not in self._hooked:
                ref = weakref.ref(context)
                context.add_exit_hook(lambda: self._destroy_ref(ref))
                self._hooked.add(context)
            logger.info("Created session %s for context %s", session.id, context.id)
            return session

    def _await_startup(self, engine: Engine, buffer: OutputBuffer) -> None:
        """Let the engine finish its startup output, then drop it.

        Startup output such as the first prompt would otherwise be read
        as the answer to the first request.
        """
        if self.startup_quiet <= 0:
            return
        if not buffer.wait_quiet(self.startup_quiet, self.startup_timeout):
            logger.warning("Engine still silent or busy after %.1fs; sending anyway", self.startup_timeout)
        if buffer.at_eof:
            engine.close()
            raise SessionError("completion engine exited during startup")
        buffer.clear()

    def destroy(self, context: CompletionContext) -> None:
        """Tear down the context's session, if any. Outstanding responses are lost."""
        with context.lock:
            session, context.session = context.session, None
        if session is not None:
            session.close()
            logger.info("Destroyed session %s", session.id)

    def release_idle(self, now: float | None = None) -> int:
        """Destroy sessions idle past idle_timeout with nothing outstanding. Returns the count."""
        now = self._clock() if now is None else now
        released = 0
        for context in list(self._contexts):
            if not context.lock.acquire(blocking=False):
                continue
            try:
                session = context.session
                if session is None or session.outstanding:
                    continue
                if session.idle_for(now) >= self.idle_timeout:
                    logger.debug("Session %s idle for %.1fs", session.id, session.idle_for(now))
                    self.destroy(context)
                    released += 1
            finally:
                context.lock.release()
        return released

    def _destroy_ref(self, ref: "weakref.ref[CompletionContext]") -> None:
        context = ref()
        if context is not None:
            self.destroy(context)


class IdleSweeper:
    """Runs SessionManager.release_idle every interval seconds on a daemon timer."""

    def __init__(self, manager: SessionManager, interval: float = 60.0) -> None:
        self.manager = manager
        self.interval = interval
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        try:
            released = self.manager.release_idle()
            if released:
                logger.info("Idle sweep released %d session(s)", released)
        finally:
            with self._lock:
                if self._running:
                    self._schedule()
