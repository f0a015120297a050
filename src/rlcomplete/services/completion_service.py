"""Completion service — the public get_completions operation."""

from __future__ import annotations

import logging
from typing import Any

from rlcomplete.core.config import load_config, read_timeout, resolve_shell
from rlcomplete.core.exceptions import (
    EnvironmentMismatch,
    InvalidArgument,
    PreconditionViolation,
    ProtocolViolation,
    ResponseTimeout,
)
from rlcomplete.models.request import CompletionRequest
from rlcomplete.models.response import CompletionResult
from rlcomplete.services.context import CompletionContext
from rlcomplete.services.coordinator import RequestCoordinator
from rlcomplete.services.response_parser import ResponseParser
from rlcomplete.services.result_cache import MISS, CacheKey
from rlcomplete.services.session_manager import IdleSweeper, SessionManager

logger = logging.getLogger(__name__)


class CompletionService:
    """Answers completion questions for contexts, reusing sessions and cached answers."""

    def __init__(
        self,
        manager: SessionManager,
        coordinator: RequestCoordinator | None = None,
        use_cache: bool = True,
        recreate_on_error: bool = True,
    ) -> None:
        self.manager = manager
        self.coordinator = coordinator or RequestCoordinator(trigger=manager.trigger)
        self.use_cache = use_cache
        self.recreate_on_error = recreate_on_error

    @classmethod
    def from_config(cls, config: dict[str, Any] | None = None, timeout: float | None = None) -> "CompletionService":
        """Build the service from the TOML config. timeout overrides session.read_timeout."""
        if config is None:
            config = load_config()
        engine = config.get("engine", {})
        session = config.get("session", {})
        trigger = bytes([int(engine.get("trigger_byte", 0x1E))])
        manager = SessionManager(
            shell=resolve_shell(config),
            args=engine.get("args", ["-i"]),
            expected_engine=engine.get("expected", "bash"),
            trigger=trigger,
            idle_timeout=float(session.get("idle_timeout", 300.0)),
            startup_quiet=float(session.get("startup_quiet", 0.25)),
            startup_timeout=float(session.get("startup_timeout", 5.0)),
        )
        parser = ResponseParser(timeout if timeout is not None else read_timeout(config))
        return cls(
            manager,
            RequestCoordinator(parser, trigger),
            use_cache=bool(config.get("cache", {}).get("enabled", True)),
            recreate_on_error=bool(session.get("recreate_on_error", True)),
        )

    def start_sweeper(self, interval: float) -> IdleSweeper:
        """Start a scheduled idle sweep for every context this service has served."""
        sweeper = IdleSweeper(self.manager, interval)
        sweeper.start()
        return sweeper

    def get_completions(
        self,
        context: CompletionContext,
        text: str,
        input_offset: int = 0,
        point_offset: int = 0,
    ) -> CompletionResult | None:
        """Return the region and candidates for completing text, or None.

        Raises ResponseTimeout, ProtocolViolation, SessionError,
        PreconditionViolation, and InvalidArgument. EnvironmentMismatch is
        raised once; the context is disabled and later calls return None.
        """
        if point_offset < 0:
            raise InvalidArgument(f"point_offset must be >= 0, got {point_offset}")

        with context.lock:
            if context.disabled:
                return None
            try:
                session = self.manager.acquire(context)
            except EnvironmentMismatch:
                context.disabled = True
                logger.warning("Completion disabled for context %s", context.id)
                raise

            if session.cwd != context.cwd:
                raise PreconditionViolation(
                    f"Session directory {session.cwd!r} does not match context directory {context.cwd!r}"
                )

            key = CacheKey(session.id, text, input_offset, point_offset)
            if self.use_cache:
                cached = context.cache.lookup(key)
                if cached is not MISS:
                    logger.debug("Cache hit for %r", text)
                    return cached

            request = CompletionRequest(text=text, input_offset=input_offset, point_offset=point_offset)
            self.coordinator.send(session, request)
            try:
                response = self.coordinator.resolve_latest(session, input_offset)
            except (ResponseTimeout, ProtocolViolation) as e:
                if self.recreate_on_error:
                    logger.warning("Discarding session %s after %s", session.id, type(e).__name__)
                    self.manager.destroy(context)
                raise

            result = None if response is None else CompletionResult.from_response(response)
            if self.use_cache:
                context.cache.store(key, result)
            return result
