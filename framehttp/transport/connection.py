"""이벤트 기반 asyncio 스트림을 순차적 read()/write() API로 감싸는 흐름 제어 연결.

프로토콜 콜백(data_received, eof_received, connection_lost)은 대기 중인
단일 read 퓨처를 완료하거나 실패시키기만 한다. 수신 방향 역압은
청크 하나를 전달할 때마다 pause_reading()을 호출하고, 다음 read() 직전에
resume_reading()을 호출하는 방식으로만 이루어진다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from framehttp.protocols.errors import ProtocolContractError

logger = logging.getLogger("framehttp.transport.connection")


class FlowControlledConnection:
    """연결 하나의 상태: 마지막 오류, EOF 플래그, 대기 중인 read 퓨처."""

    def __init__(
        self,
        transport: asyncio.Transport,
        read_timeout: float | None = None,
        write_timeout: float | None = None,
    ) -> None:
        self.transport      = transport
        self.read_timeout   = read_timeout
        self.write_timeout  = write_timeout
        self.err: BaseException | None = None
        self.ended          = False
        self._reader: asyncio.Future[bytes] | None = None
        self._drain_waiter: asyncio.Future[None] | None = None
        self._write_paused  = False

    @property
    def peername(self) -> tuple | None:
        return self.transport.get_extra_info("peername")

    # ── 스트림 이벤트 브리지 ──────────────────────────────────────────

    def on_data(self, data: bytes) -> None:
        """데이터 도착: 추가 전달을 멈추고 대기 중인 read에 전달한다."""
        self.transport.pause_reading()
        reader = self._reader
        if reader is None or reader.done():
            raise ProtocolContractError("data delivered with no pending read")
        self._reader = None
        reader.set_result(data)

    def on_end(self) -> None:
        """스트림 종료: EOF를 기록하고 대기 중인 read를 b""로 완료한다."""
        self.ended = True
        reader, self._reader = self._reader, None
        if reader is not None and not reader.done():
            reader.set_result(b"")

    def on_error(self, exc: BaseException) -> None:
        """스트림 오류: 오류를 기록하고 대기 중인 read/write를 실패시킨다."""
        logger.debug("Stream error on %s: %r", self.peername, exc)
        self.err = exc
        reader, self._reader = self._reader, None
        if reader is not None and not reader.done():
            reader.set_exception(exc)
        self._wake_writer(exc)

    def on_closed(self) -> None:
        """오류 없이 전송이 닫혔다: 읽기는 EOF로, 대기 중인 쓰기는 실패로 끝낸다."""
        self.on_end()
        self._wake_writer(ConnectionResetError("Connection lost"))

    def on_pause_writing(self) -> None:
        self._write_paused = True

    def on_resume_writing(self) -> None:
        self._write_paused = False
        self._wake_writer(None)

    def _wake_writer(self, exc: BaseException | None) -> None:
        waiter, self._drain_waiter = self._drain_waiter, None
        if waiter is None or waiter.done():
            return
        if exc is None:
            waiter.set_result(None)
        else:
            waiter.set_exception(exc)

    # ── 순차 API ─────────────────────────────────────────────────────

    async def read(self) -> bytes:
        """다음 청크를 반환한다. 스트림이 끝났으면 b""를 반환한다."""
        if self._reader is not None:
            raise ProtocolContractError("concurrent read() on one connection")
        if self.err is not None:
            raise self.err
        if self.ended:
            return b""

        loop   = asyncio.get_running_loop()
        reader = loop.create_future()
        self._reader = reader
        self.transport.resume_reading()
        try:
            if self.read_timeout:
                return await asyncio.wait_for(reader, self.read_timeout)
            return await reader
        finally:
            if self._reader is reader:
                # 타임아웃/취소로 철회된 read: 다시 수신을 멈춘다
                self._reader = None
                if not self.transport.is_closing():
                    self.transport.pause_reading()

    async def write(self, data: bytes) -> None:
        """data를 전송 버퍼에 넘기고, 버퍼가 고수위 아래로 내려갈 때까지 기다린다."""
        if not data:
            raise ProtocolContractError("write() requires non-empty data")
        if self.err is not None:
            raise self.err
        if self.transport.is_closing():
            raise ConnectionResetError("Connection lost")

        self.transport.write(data)
        if not self._write_paused:
            return

        waiter = asyncio.get_running_loop().create_future()
        self._drain_waiter = waiter
        if self.write_timeout:
            await asyncio.wait_for(waiter, self.write_timeout)
        else:
            await waiter

    def close(self) -> None:
        """하부 스트림을 닫는다. 이미 넘긴 쓰기 데이터는 전송 후 닫힌다."""
        self.transport.close()

    def abort(self) -> None:
        """하부 스트림을 즉시 끊는다. 전송 버퍼에 남은 데이터는 버린다."""
        self.transport.abort()


class _StreamProtocol(asyncio.Protocol):
    """asyncio Protocol. 전송 이벤트를 FlowControlledConnection에 전달한다."""

    def __init__(
        self,
        on_connect: Callable[[FlowControlledConnection], None],
        read_timeout: float | None = None,
        write_timeout: float | None = None,
    ) -> None:
        self._on_connect    = on_connect
        self._read_timeout  = read_timeout
        self._write_timeout = write_timeout
        self.conn: FlowControlledConnection | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        # 첫 read() 전까지 수신을 멈춘다
        transport.pause_reading()
        self.conn = FlowControlledConnection(
            transport, self._read_timeout, self._write_timeout,
        )
        self._on_connect(self.conn)

    def data_received(self, data: bytes) -> None:
        self.conn.on_data(data)

    def eof_received(self) -> bool:
        self.conn.on_end()
        # 반쪽 닫힘 상태에서도 응답을 쓸 수 있도록 전송을 유지한다
        return True

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            self.conn.on_error(exc)
        else:
            self.conn.on_closed()

    def pause_writing(self) -> None:
        self.conn.on_pause_writing()

    def resume_writing(self) -> None:
        self.conn.on_resume_writing()
