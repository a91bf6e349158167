"""요청/응답 본문을 청크 단위로 지연 읽기하는 BodyReader."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from framehttp.protocols.buffer import GrowableBuffer
from framehttp.protocols.errors import HTTPError, UnexpectedEOFError
from framehttp.protocols.http import HTTPRequest, parse_dec

if TYPE_CHECKING:
    from framehttp.transport.connection import FlowControlledConnection

# 본문을 가지지 않는 것으로 간주하는 메서드
_BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class BodyReader(abc.ABC):
    """한 번만 순회 가능한 유한 바이트 청크 시퀀스.

    read()는 빈 bytes를 반환하여 본문의 끝을 알린다.
    length는 선언된 전체 길이이며, 알 수 없으면 -1이다.
    """

    length: int = -1

    @abc.abstractmethod
    async def read(self) -> bytes:
        """다음 청크를 반환한다. 끝이면 b""."""

    async def drain(self) -> int:
        """남은 본문을 모두 읽어 버린다. 버린 바이트 수를 반환한다."""
        total = 0
        while True:
            chunk = await self.read()
            if not chunk:
                return total
            total += len(chunk)

    async def read_all(self) -> bytes:
        """남은 본문 전체를 메모리로 읽는다. 작은 본문에만 사용한다."""
        chunks: list[bytes] = []
        while True:
            chunk = await self.read()
            if not chunk:
                return b"".join(chunks)
            chunks.append(chunk)


class LengthBodyReader(BodyReader):
    """연결 버퍼와 스트림에서 정확히 remain 바이트를 읽는다."""

    def __init__(self, conn: FlowControlledConnection, buf: GrowableBuffer, remain: int) -> None:
        self.length  = remain
        self._conn   = conn
        self._buf    = buf
        self._remain = remain

    @property
    def remaining(self) -> int:
        return self._remain

    async def read(self) -> bytes:
        if self._remain == 0:
            return b""
        if not self._buf:
            data = await self._conn.read()
            if not data:
                raise UnexpectedEOFError(
                    f"Unexpected EOF from HTTP body ({self._remain} bytes missing)"
                )
            self._buf.append(data)

        consume = min(len(self._buf), self._remain)
        self._remain -= consume
        return self._buf.pop_prefix(consume)


class MemoryBodyReader(BodyReader):
    """메모리에 미리 적재된 blob을 한 번에 반환한다."""

    def __init__(self, data: bytes) -> None:
        self.length = len(data)
        self._data  = data
        self._done  = False

    async def read(self) -> bytes:
        if self._done:
            return b""
        self._done = True
        return self._data


def reader_from_memory(data: bytes) -> BodyReader:
    """인메모리 데이터용 BodyReader (정적/오류 응답용)."""
    return MemoryBodyReader(data)


def reader_from_request(
    conn: FlowControlledConnection,
    buf: GrowableBuffer,
    req: HTTPRequest,
) -> BodyReader:
    """요청 헤더와 메서드로 본문 프레이밍을 결정한다."""
    body_len = -1
    content_len = req.header("Content-Length")
    if content_len is not None:
        body_len = parse_dec(content_len)

    encoding = req.header("Transfer-Encoding")
    chunked  = encoding is not None and encoding.lower() == b"chunked"

    if req.method in _BODYLESS_METHODS:
        if body_len > 0 or chunked:
            raise HTTPError(400, "HTTP body not allowed.")
        return LengthBodyReader(conn, buf, 0)

    # Content-Length와 함께 와도 chunked를 우선한다
    if chunked:
        raise HTTPError(501, "Chunked encoding not implemented")
    if body_len >= 0:
        return LengthBodyReader(conn, buf, body_len)

    # Content-Length가 없으면 길이 0으로 간주한다 (연결 종료까지 읽지 않음)
    return LengthBodyReader(conn, buf, 0)
