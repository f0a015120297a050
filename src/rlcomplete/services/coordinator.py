"""Request coordinator — pipelined sends and drain-to-latest response resolution."""

from __future__ import annotations

import logging

from rlcomplete.models.request import CompletionRequest
from rlcomplete.models.response import ParsedResponse
from rlcomplete.services.response_parser import ResponseParser
from rlcomplete.services.session_manager import Session
from rlcomplete.services.wire_codec import DEFAULT_TRIGGER, encode_request

logger = logging.getLogger(__name__)


class RequestCoordinator:
    """Matches responses to requests by order alone.

    The engine answers every request exactly once, in send order, so
    draining as many responses as were sent always ends on the answer to
    the most recent request.
    """

    def __init__(self, parser: ResponseParser | None = None, trigger: bytes = DEFAULT_TRIGGER) -> None:
        self.parser = parser or ResponseParser()
        self.trigger = trigger

    def send(self, session: Session, request: CompletionRequest) -> None:
        """Write a request without waiting for any earlier answer."""
        payload = encode_request(request, self.trigger)
        if session.outstanding == 0:
            # Nothing is owed to us, so anything left over is stale framing.
            session.buffer.clear()
        session.write(payload)
        session.outstanding += 1
        logger.debug("Sent request to session %s (%d outstanding)", session.id, session.outstanding)

    def resolve_latest(self, session: Session, input_offset: int = 0) -> ParsedResponse | None:
        """Drain every outstanding response and return the last, shifted by input_offset.

        The parser's timeout bounds the whole drain, not each response.
        Errors propagate with the counter left where the failure happened.
        """
        deadline = self.parser.deadline()
        latest: ParsedResponse | None = None
        drained = 0
        while session.outstanding > 0:
            latest = self.parser.parse(session.buffer, deadline)
            session.outstanding -= 1
            drained += 1
        if drained > 1:
            logger.debug("Discarded %d superseded response(s) from session %s", drained - 1, session.id)
        session.touch()
        if latest is None:
            return None
        return latest.shifted(input_offset)
