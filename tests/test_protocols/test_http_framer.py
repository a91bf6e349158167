"""Tests for the HTTP/1.1 message framer."""

from __future__ import annotations

import pytest

from framehttp.protocols.body import reader_from_memory
from framehttp.protocols.buffer import GrowableBuffer
from framehttp.protocols.errors import HTTPError
from framehttp.protocols.http import (
    BAD_FIELD_STATUS,
    HTTPResponse,
    cut_message,
    encode_response_head,
    field_get,
    parse_dec,
    parse_http_request,
    parse_request_line,
    split_lines,
    status_line,
    validate_header,
)


def _buffer(data: bytes) -> GrowableBuffer:
    buf = GrowableBuffer()
    buf.append(data)
    return buf


class TestSplitLines:
    def test_crlf_lines(self):
        assert split_lines(b"a\r\nb\r\n") == [b"a", b"b"]

    def test_trailing_fragment_is_kept(self):
        assert split_lines(b"a\r\nbc") == [b"a", b"bc"]

    def test_empty_line_at_end_of_header_block(self):
        assert split_lines(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n") == [
            b"GET / HTTP/1.1", b"Host: x", b"",
        ]

    def test_bare_lf_is_not_a_separator(self):
        assert split_lines(b"a\nb") == [b"a\nb"]


class TestRequestLine:
    def test_valid(self):
        assert parse_request_line(b"GET /path HTTP/1.1") == ("GET", b"/path", "1.1")

    def test_uri_kept_as_bytes(self):
        method, uri, version = parse_request_line(b"GET /caf\xe9 HTTP/1.0")
        assert uri == b"/caf\xe9"
        assert version == "1.0"

    @pytest.mark.parametrize("line", [
        b"GET / ",
        b"GET /",
        b"GET / HTTP/1.1 extra",
        b"",
    ])
    def test_wrong_token_count(self, line):
        with pytest.raises(HTTPError) as exc_info:
            parse_request_line(line)
        assert exc_info.value.code == 400

    def test_version_prefix_required(self):
        with pytest.raises(HTTPError) as exc_info:
            parse_request_line(b"GET / FTP/1.1")
        assert exc_info.value.code == 400


class TestHeaders:
    @pytest.mark.parametrize("line", [
        b"Host: example.com",
        b"X-Custom_Header:value",
        b"  Content-Length : 5",
        b"Empty:",
    ])
    def test_valid_fields(self, line):
        assert validate_header(line)

    @pytest.mark.parametrize("line", [
        b": no-name",
        b"NoColon",
        b"Bad Name: x",
        b"Bad@Name: x",
        b"",
    ])
    def test_invalid_fields(self, line):
        assert not validate_header(line)

    def test_field_get_case_insensitive_first_match(self):
        headers = [b"Host: a", b"content-length:  12 ", b"Content-Length: 99"]
        assert field_get(headers, "Content-Length") == b"12"
        assert field_get(headers, "HOST") == b"a"
        assert field_get(headers, "Missing") is None

    def test_parse_dec(self):
        assert parse_dec(b"0") == 0
        assert parse_dec(b" 42 ") == 42

    @pytest.mark.parametrize("value", [b"", b"abc", b"12abc", b"-1", b"+5", b"1 2", b"\xd9\xa3"])
    def test_parse_dec_rejects_non_numeric(self, value):
        with pytest.raises(HTTPError) as exc_info:
            parse_dec(value)
        assert exc_info.value.code == 400


class TestParseRequest:
    def test_full_header_block(self):
        req = parse_http_request(
            b"POST /submit HTTP/1.1\r\nHost: x\r\nContent-Length: 3\r\n\r\n"
        )
        assert req.method == "POST"
        assert req.uri == b"/submit"
        assert req.version == "1.1"
        assert req.headers == [b"Host: x", b"Content-Length: 3"]
        assert req.header("content-length") == b"3"

    def test_bad_field(self):
        with pytest.raises(HTTPError) as exc_info:
            parse_http_request(b"GET / HTTP/1.1\r\nbroken header\r\n\r\n")
        assert exc_info.value.code == BAD_FIELD_STATUS == 400
        assert exc_info.value.message == "Bad field"

    def test_unterminated_block(self):
        with pytest.raises(HTTPError):
            parse_http_request(b"GET / HTTP/1.1")


class TestCutMessage:
    def test_need_more_data(self):
        buf = _buffer(b"GET / HTTP/1.1\r\nHost: x\r\n")
        assert cut_message(buf) is None
        assert len(buf) == len(b"GET / HTTP/1.1\r\nHost: x\r\n")

    def test_consumes_header_block_only(self):
        buf = _buffer(b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello")
        req = cut_message(buf)
        assert req is not None
        assert req.method == "POST"
        assert bytes(buf.view()) == b"hello"

    def test_pipelined_requests(self):
        buf = _buffer(b"GET /a HTTP/1.1\r\n\r\nGET /b HTTP/1.1\r\n\r\n")
        first = cut_message(buf)
        second = cut_message(buf)
        assert first.uri == b"/a"
        assert second.uri == b"/b"
        assert len(buf) == 0
        assert cut_message(buf) is None

    def test_too_large_without_terminator(self):
        buf = _buffer(b"GET / HTTP/1.1\r\n" + b"X-Fill: " + b"a" * 8200)
        with pytest.raises(HTTPError) as exc_info:
            cut_message(buf)
        assert exc_info.value.code == 413

    def test_exactly_limit_without_terminator(self):
        buf = _buffer(b"a" * 8192)
        with pytest.raises(HTTPError) as exc_info:
            cut_message(buf)
        assert exc_info.value.code == 413

    def test_just_below_limit_waits(self):
        buf = _buffer(b"a" * 8191)
        assert cut_message(buf) is None

    def test_terminator_beyond_limit_is_rejected(self):
        buf = _buffer(b"GET / HTTP/1.1\r\nX-Fill: " + b"a" * 8200 + b"\r\n\r\n")
        with pytest.raises(HTTPError) as exc_info:
            cut_message(buf)
        assert exc_info.value.code == 413

    def test_custom_limit(self):
        buf = _buffer(b"GET / HTTP/1.1\r\n")
        with pytest.raises(HTTPError):
            cut_message(buf, max_header_bytes=10)

    def test_split_arrival_matches_single_arrival(self):
        message = b"PUT /x%20y HTTP/1.1\r\nHost: h\r\nX-A: 1\r\n\r\n"
        whole = cut_message(_buffer(message))
        for cut in range(1, len(message)):
            buf = GrowableBuffer()
            buf.append(message[:cut])
            assert cut_message(buf) is None
            buf.append(message[cut:])
            assert cut_message(buf) == whole


class TestEncodeResponse:
    @pytest.mark.parametrize("code,line", [
        (200, b"HTTP/1.1 200 OK"),
        (400, b"HTTP/1.1 400 Bad Request"),
        (404, b"HTTP/1.1 404 Not Found"),
        (413, b"HTTP/1.1 413 Payload Too Large"),
        (501, b"HTTP/1.1 501 Not Implemented"),
        (204, b"HTTP/1.1 204"),
        (500, b"HTTP/1.1 500"),
    ])
    def test_status_line(self, code, line):
        assert status_line(code) == line

    def test_headers_verbatim_in_order(self):
        resp = HTTPResponse(
            code=200,
            headers=[b"Server: t", b"X-B: 2", b"X-A: 1"],
            body=reader_from_memory(b""),
        )
        assert encode_response_head(resp) == (
            b"HTTP/1.1 200 OK\r\nServer: t\r\nX-B: 2\r\nX-A: 1\r\n\r\n"
        )

    def test_no_headers(self):
        resp = HTTPResponse(code=404, headers=[], body=reader_from_memory(b""))
        assert encode_response_head(resp) == b"HTTP/1.1 404 Not Found\r\n\r\n"
