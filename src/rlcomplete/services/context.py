"""Completion context — the caller-owned state for one editing context."""

from __future__ import annotations

import logging
import os
import threading
from typing import TYPE_CHECKING, Callable

from rlcomplete.models.base import new_id
from rlcomplete.services.result_cache import ResultCache

if TYPE_CHECKING:
    from rlcomplete.services.session_manager import Session

logger = logging.getLogger(__name__)


class CompletionContext:
    """Holds the session, cache, and disabled flag for one front-end context.

    Every bridge operation takes the context explicitly; nothing is kept
    in module-level state. Use as a context manager, or call close(), to
    run the registered teardown hooks.
    """

    def __init__(self, cwd: str | os.PathLike[str] | None = None) -> None:
        self.id = new_id()
        self.cwd = os.path.abspath(os.fspath(cwd)) if cwd is not None else os.getcwd()
        self.session: Session | None = None
        self.cache = ResultCache()
        self.disabled = False
        self.lock = threading.RLock()
        self._exit_hooks: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def chdir(self, path: str | os.PathLike[str]) -> None:
        """Change the context's working directory (relative paths resolve against the current one)."""
        self.cwd = os.path.abspath(os.path.join(self.cwd, os.fspath(path)))

    def add_exit_hook(self, hook: Callable[[], None]) -> None:
        """Register a callable to run when the context ends."""
        self._exit_hooks.append(hook)

    def close(self) -> None:
        """End the context, running exit hooks once in reverse registration order."""
        with self.lock:
            if self._closed:
                return
            self._closed = True
            hooks, self._exit_hooks = self._exit_hooks, []
        for hook in reversed(hooks):
            try:
                hook()
            except Exception:
                logger.exception("Context exit hook failed")

    def __enter__(self) -> "CompletionContext":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
