"""Tests for request encoding and response decoding."""

from __future__ import annotations

import io

import pytest

from rlcomplete.core.exceptions import InvalidArgument, ProtocolViolation
from rlcomplete.models.request import CompletionRequest
from rlcomplete.services.wire_codec import (
    control_file_line,
    decode_response,
    encode_request,
    parse_span,
    trim_candidates,
)


def _decode(raw: bytes):
    stream = io.BytesIO(raw)
    return decode_response(stream.readline), stream


class TestEncodeRequest:
    def test_plain_request(self):
        assert encode_request(CompletionRequest(text="git in")) == b"git in2\x1e"

    def test_point_offset_adds_cursor_back_bytes(self):
        data = encode_request(CompletionRequest(text="git in foo", point_offset=4))
        assert data == b"git in foo\x02\x02\x02\x022\x1e"

    def test_custom_trigger(self):
        assert encode_request(CompletionRequest(text="ls"), trigger=b"\x1f") == b"ls2\x1f"

    def test_utf8_input(self):
        assert encode_request(CompletionRequest(text="cat é")) == "cat é".encode("utf-8") + b"2\x1e"

    def test_negative_point_offset_rejected(self):
        with pytest.raises(InvalidArgument):
            encode_request(CompletionRequest(text="ls", point_offset=-1))


class TestControlFile:
    def test_binds_trigger_to_export(self):
        assert control_file_line(b"\x1e") == '"\\036": export-completions\n'

    def test_rejects_multi_byte_trigger(self):
        with pytest.raises(InvalidArgument):
            control_file_line(b"\x1e\x1f")


class TestDecodeResponse:
    def test_single_candidate_kept(self):
        response, _ = _decode(b"\n1\na\n4:5\nadd \n")
        assert response.completions == ["add "]
        assert (response.word, response.word_start, response.word_end) == ("a", 4, 5)

    def test_common_prefix_entry_dropped(self):
        response, _ = _decode(b"\n3\na\n0:1\na\nadd \naddress\n")
        assert response.completions == ["add ", "address"]

    def test_zero_count_is_no_completions(self):
        response, stream = _decode(b"\n0\nzz\n0:2\n")
        assert response is None
        assert stream.read() == b""

    def test_negative_count_is_no_completions(self):
        response, _ = _decode(b"\n-1\nzz\n0:2\n")
        assert response is None

    def test_consumes_exactly_one_response(self):
        raw = b"\n1\na\n0:1\nadd \n" + b"\n0\nb\n0:1\n"
        first, stream = _decode(raw)
        assert first.completions == ["add "]
        assert stream.read() == b"\n0\nb\n0:1\n"

    def test_leading_line_content_ignored(self):
        response, _ = _decode(b"$ git in\n1\nin\n4:6\ninstall \n")
        assert response.completions == ["install "]

    def test_carriage_returns_stripped(self):
        response, _ = _decode(b"\r\n2\r\nin\r\n4:6\r\nin\r\ninstall \r\n")
        assert response.completions == ["install "]
        assert response.word == "in"

    def test_invalid_count(self):
        with pytest.raises(ProtocolViolation, match="count"):
            _decode(b"\nmany\na\n0:1\n")

    def test_truncated_stream(self):
        with pytest.raises(ProtocolViolation, match="truncated"):
            _decode(b"\n2\na\n0:1\nadd \n")


class TestSpanAndTrim:
    def test_parse_span(self):
        assert parse_span(b"4:6") == (4, 6)

    @pytest.mark.parametrize("raw", [b"46", b"a:6", b"6:4", b"-1:2"])
    def test_bad_span(self, raw):
        with pytest.raises(ProtocolViolation):
            parse_span(raw)

    def test_trim_keeps_short_lists(self):
        assert trim_candidates([], 0) == []
        assert trim_candidates(["add "], 1) == ["add "]

    def test_trim_drops_first_of_many(self):
        assert trim_candidates(["in", "install ", "invoke "], 3) == ["install ", "invoke "]
