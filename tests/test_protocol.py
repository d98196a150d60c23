"""Wire token tests: STATUS:<state>:<counter> parsing and formatting."""

import pytest

from devicelink.core.errors import MalformedToken
from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.link.protocol import MAX_COUNTER_DIGITS, encode_line, format_status_token, parse_status_token


class TestFormat:
    def test_format_each_state(self):
        assert format_status_token(StatusRecord(DeviceStatus.IDLE, 0)) == "STATUS:IDLE:0"
        assert format_status_token(StatusRecord(DeviceStatus.EXECUTE, 7)) == "STATUS:EXECUTE:7"
        assert format_status_token(StatusRecord(DeviceStatus.COMPLETE, 12)) == "STATUS:COMPLETE:12"

    def test_encode_line_appends_newline(self):
        assert encode_line("STATUS:IDLE:1") == b"STATUS:IDLE:1\n"

    def test_encode_line_rejects_embedded_newline(self):
        with pytest.raises(ValueError):
            encode_line("STATUS:IDLE:1\nSTATUS:IDLE:2")


class TestParse:
    def test_parse_bytes_with_terminator(self):
        assert parse_status_token(b"STATUS:EXECUTE:3\n") == StatusRecord(DeviceStatus.EXECUTE, 3)

    def test_parse_str_with_crlf(self):
        assert parse_status_token("STATUS:COMPLETE:0\r\n") == StatusRecord(DeviceStatus.COMPLETE, 0)

    def test_large_counter(self):
        assert parse_status_token(b"STATUS:IDLE:123456789012").invocation_counter == 123456789012

    def test_longest_accepted_counter(self):
        counter = "9" * MAX_COUNTER_DIGITS
        assert parse_status_token(f"STATUS:IDLE:{counter}").invocation_counter == int(counter)

    def test_overlong_counter_is_malformed(self):
        with pytest.raises(MalformedToken) as exc:
            parse_status_token(b"STATUS:IDLE:" + b"9" * 5000)
        assert exc.value.reason == "counter out of range"

    @pytest.mark.parametrize(
        "line",
        [
            b"",
            b"STATUS:READY:0",
            b"STATUS:idle:0",
            b"STATUS:IDLE:-1",
            b"STATUS:IDLE:",
            b"STATUS:IDLE:1.5",
            b"STATUS:IDLE",
            b"STATE:IDLE:0",
            b" STATUS:IDLE:0",
            b"STATUS:IDLE:0:extra",
            "STATUS:IDLE:١".encode("utf-8"),
            b"\xff\xfe",
        ],
    )
    def test_malformed(self, line):
        with pytest.raises(MalformedToken):
            parse_status_token(line)

    def test_unknown_state_reason(self):
        with pytest.raises(MalformedToken) as exc:
            parse_status_token(b"STATUS:RUNNING:1")
        assert "RUNNING" in exc.value.reason

    def test_malformed_is_value_error(self):
        with pytest.raises(ValueError):
            parse_status_token("garbage")
