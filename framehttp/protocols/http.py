"""HTTP/1.1 메시지 프레이머: 헤더 경계 탐지, 요청 라인/헤더 파싱, 응답 헤더 인코딩.

URI와 헤더 값은 디코딩하지 않은 bytes로 유지한다. 구조적 구분자(':', SP, CRLF)
외에는 텍스트 인코딩을 가정하지 않는다.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from framehttp.protocols.buffer import GrowableBuffer
from framehttp.protocols.errors import HTTPError

if TYPE_CHECKING:
    from framehttp.protocols.body import BodyReader

MAX_HEADER_BYTES = 8 * 1024

_CRLF        = b"\r\n"
_HEADER_END  = b"\r\n\r\n"
_FIELD_NAME  = re.compile(rb"[A-Za-z0-9_\-]+")

# 참조 구현은 잘못된 헤더 필드에 404를 반환한다. 여기서는 400을 사용한다.
BAD_FIELD_STATUS = 400

_STATUS_PHRASES: dict[int, str] = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    413: "Payload Too Large",
    501: "Not Implemented",
}


@dataclass
class HTTPRequest:
    """파싱된 요청 헤더 블록."""
    method: str
    uri: bytes
    version: str
    headers: list[bytes] = field(default_factory=list)

    def header(self, name: str) -> bytes | None:
        """이름으로 헤더 값을 조회한다 (대소문자 무시, 첫 번째 일치)."""
        return field_get(self.headers, name)


@dataclass
class HTTPResponse:
    """핸들러가 생성한 응답. Content-Length는 프레이머가 추가한다."""
    code: int
    headers: list[bytes]
    body: BodyReader


def split_lines(data: bytes) -> list[bytes]:
    """CRLF 기준으로 줄을 나눈다. 종결자가 없는 마지막 조각도 포함한다."""
    lines: list[bytes] = []
    start = 0
    while True:
        idx = data.find(_CRLF, start)
        if idx < 0:
            break
        lines.append(data[start:idx])
        start = idx + 2
    if start < len(data):
        lines.append(data[start:])
    return lines


def parse_request_line(line: bytes) -> tuple[str, bytes, str]:
    """요청 라인 'METHOD SP URI SP HTTP/VERSION'을 (method, uri, version)으로 파싱한다."""
    parts = line.split(b" ")
    if len(parts) != 3:
        raise HTTPError(400, "Invalid request line")

    method, uri, version = parts
    if not version.startswith(b"HTTP/"):
        raise HTTPError(400, "Invalid HTTP version")

    return method.decode("latin-1"), uri, version[5:].decode("latin-1")


def validate_header(line: bytes) -> bool:
    """'name: value' 형식의 헤더 라인인지 검증한다."""
    colon = line.find(b":")
    if colon <= 0:
        return False
    name = line[:colon].strip()
    return _FIELD_NAME.fullmatch(name) is not None


def field_get(headers: list[bytes], name: str) -> bytes | None:
    """헤더 목록에서 name의 첫 번째 값을 공백 제거하여 반환한다."""
    target = name.lower().encode("latin-1")
    for line in headers:
        colon = line.find(b":")
        if colon <= 0:
            continue
        if line[:colon].strip().lower() == target:
            return line[colon + 1:].strip()
    return None


def parse_dec(value: bytes, message: str = "bad Content-Length.") -> int:
    """ASCII 10진수만 허용한다. 부호, 공백, 후행 문자가 있으면 400으로 실패한다."""
    value = value.strip()
    if not value or not value.isdigit():
        raise HTTPError(400, message)
    return int(value)


def parse_http_request(data: bytes) -> HTTPRequest:
    """빈 줄로 끝나는 헤더 블록 전체를 파싱한다."""
    lines = split_lines(data)
    if not lines:
        raise HTTPError(400, "Invalid request line")

    method, uri, version = parse_request_line(lines[0])

    headers: list[bytes] = []
    for line in lines[1:-1]:
        if not validate_header(line):
            raise HTTPError(BAD_FIELD_STATUS, "Bad field")
        headers.append(bytes(line))

    if len(lines) < 2 or lines[-1]:
        raise HTTPError(400, "Header block is not terminated by an empty line")

    return HTTPRequest(method=method, uri=uri, version=version, headers=headers)


def cut_message(buf: GrowableBuffer, max_header_bytes: int = MAX_HEADER_BYTES) -> HTTPRequest | None:
    """버퍼 앞부분에서 요청 헤더 하나를 잘라 파싱한다.

    종결자(CRLF CRLF)가 아직 없으면 None을 반환한다. 종결자 없이
    max_header_bytes 이상이 쌓였거나, 헤더 블록 자체가 한도를 넘으면 413으로 실패한다.
    """
    idx = buf.find(_HEADER_END)
    if idx < 0:
        if len(buf) >= max_header_bytes:
            raise HTTPError(413, "header is too large")
        return None

    end = idx + len(_HEADER_END)
    if end > max_header_bytes:
        raise HTTPError(413, "header is too large")

    request = parse_http_request(bytes(buf.view()[:end]))
    buf.consume_prefix(end)
    return request


def status_line(code: int) -> bytes:
    """'HTTP/1.1 CODE[ reason]' 상태 라인 (CRLF 제외)."""
    phrase = _STATUS_PHRASES.get(code)
    if phrase:
        return f"HTTP/1.1 {code} {phrase}".encode("latin-1")
    return f"HTTP/1.1 {code}".encode("latin-1")


def encode_response_head(resp: HTTPResponse) -> bytes:
    """상태 라인과 헤더 라인들을 빈 줄로 끝나는 바이트열로 인코딩한다."""
    parts = [status_line(resp.code)]
    parts.extend(resp.headers)
    parts.append(b"")
    parts.append(b"")
    return _CRLF.join(parts)
