"""Parsed engine responses and public completion results."""

from __future__ import annotations

from pydantic import Field, model_validator

from rlcomplete.models.base import BridgeModel


class ParsedResponse(BridgeModel):
    """One decoded engine response.

    word_start/word_end are offsets into the isolated input string until
    shifted() moves them into the front end's coordinate space.
    """

    word: str = ""
    word_start: int
    word_end: int
    completions: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_span(self) -> "ParsedResponse":
        if self.word_start > self.word_end:
            raise ValueError(f"word_start {self.word_start} is after word_end {self.word_end}")
        return self

    def shifted(self, offset: int) -> "ParsedResponse":
        """Return a copy with both word offsets moved by offset."""
        return self.model_copy(
            update={"word_start": self.word_start + offset, "word_end": self.word_end + offset}
        )


class CompletionResult(BridgeModel):
    """Region of the front end's buffer to replace, and the candidates for it."""

    start: int
    end: int
    candidates: list[str] = Field(default_factory=list)

    @classmethod
    def from_response(cls, response: ParsedResponse) -> "CompletionResult":
        return cls(start=response.word_start, end=response.word_end, candidates=list(response.completions))

    def as_tuple(self) -> tuple[int, int, list[str]]:
        return self.start, self.end, list(self.candidates)
