"""prompt_toolkit completer backed by the readline completion engine."""

from __future__ import annotations

import logging
from typing import Iterable

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from rlcomplete.core.exceptions import RLCompleteError
from rlcomplete.services.completion_service import CompletionService
from rlcomplete.services.context import CompletionContext

logger = logging.getLogger(__name__)


class ShellCompleter(Completer):
    """Asks the engine to complete the whole line at the cursor."""

    def __init__(self, service: CompletionService, context: CompletionContext) -> None:
        self._service = service
        self._context = context

    def get_completions(
        self, document: Document, complete_event: CompleteEvent
    ) -> Iterable[Completion]:
        text = document.text
        cursor = document.cursor_position
        try:
            result = self._service.get_completions(self._context, text, 0, len(text) - cursor)
        except RLCompleteError as e:
            # A failed lookup just means no menu this time
            logger.debug("Completion failed: %s", e)
            return
        if result is None:
            return

        # The region is in bytes of the encoded line; prompt_toolkit counts
        # characters and can only replace text before the cursor
        start = len(text.encode("utf-8")[: result.start].decode("utf-8", errors="ignore"))
        start_position = min(0, start - cursor)
        for candidate in result.candidates:
            yield Completion(candidate, start_position=start_position)
