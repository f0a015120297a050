"""Completion request sent to the engine."""

from __future__ import annotations

from rlcomplete.models.base import BridgeModel


class CompletionRequest(BridgeModel):
    """One completion question, alive only for the encode-and-send step.

    input_offset: position of the input's first character in the front end's buffer.
    point_offset: characters between the completion point and the end of the input.
    """

    text: str
    input_offset: int = 0
    point_offset: int = 0
