"""HTTPListener: asyncio TCP 리스너. 연결마다 독립된 드라이버 태스크를 띄운다."""

from __future__ import annotations

import asyncio
import logging

from framehttp.protocols.http import MAX_HEADER_BYTES
from framehttp.server.driver import RequestHandler, handle_connection
from framehttp.transport.connection import FlowControlledConnection, _StreamProtocol

logger = logging.getLogger("framehttp.server.listener")


class HTTPListener:
    """host:port에서 연결을 받아 Connection Driver로 넘기는 서비스.

    app.py에서 start() / stop()으로 수명주기를 관리한다.
    """

    def __init__(
        self,
        handler: RequestHandler,
        host: str = "127.0.0.1",
        port: int = 3000,
        backlog: int = 100,
        max_header_bytes: int = MAX_HEADER_BYTES,
        read_timeout: float | None = None,
        write_timeout: float | None = None,
        handler_timeout: float | None = None,
    ) -> None:
        self._handler          = handler
        self._host             = host
        self._port             = port
        self._backlog          = backlog
        self._max_header_bytes = max_header_bytes
        self._read_timeout     = read_timeout
        self._write_timeout    = write_timeout
        self._handler_timeout  = handler_timeout
        self._server: asyncio.Server | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def port(self) -> int:
        """실제로 바인딩된 포트 (port=0으로 시작한 경우 OS가 고른 값)."""
        if self._server is None or not self._server.sockets:
            return self._port
        return self._server.sockets[0].getsockname()[1]

    @property
    def active_connections(self) -> int:
        return len(self._tasks)

    async def start(self) -> None:
        """리스닝 소켓을 열고 연결 수락을 시작한다."""
        loop = asyncio.get_running_loop()
        self._server = await loop.create_server(
            lambda: _StreamProtocol(
                self._on_connect, self._read_timeout, self._write_timeout,
            ),
            host=self._host,
            port=self._port,
            backlog=self._backlog,
        )
        logger.info("HTTP listener on %s:%d", self._host, self.port)

    def _on_connect(self, conn: FlowControlledConnection) -> None:
        task = asyncio.create_task(
            handle_connection(
                conn, self._handler, self._max_header_bytes, self._handler_timeout,
            )
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def stop(self) -> None:
        """리스닝 소켓을 닫고 진행 중인 연결 태스크를 취소한다."""
        if self._server is None:
            return
        self._server.close()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._server.wait_closed()
        self._server = None
        logger.info("HTTP listener stopped (%d connections cancelled)", len(tasks))
