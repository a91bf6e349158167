"""Shared fixtures for framehttp tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from framehttp.protocols.body import BodyReader, reader_from_memory
from framehttp.protocols.http import HTTPRequest, HTTPResponse
from framehttp.transport.connection import FlowControlledConnection
from framehttp.utils.config import Config


class ScriptedTransport:
    """asyncio.Transport 대역. resume_reading()마다 준비된 청크를 하나씩 전달한다.

    청크가 모두 소진되면 eof=True일 때 스트림 종료를, 아니면 아무것도 전달하지 않는다.
    error가 주어지면 청크 소진 후 EOF 대신 오류를 전달한다.
    """

    def __init__(
        self,
        chunks: list[bytes] | None = None,
        eof: bool = True,
        error: BaseException | None = None,
    ) -> None:
        self.chunks   = list(chunks or [])
        self.eof      = eof
        self.error    = error
        self.written  = bytearray()
        self.paused   = False
        self.closed   = False
        self.aborted  = False
        self.resumes  = 0
        self.conn: FlowControlledConnection | None = None

    # asyncio.Transport 인터페이스 일부
    def get_extra_info(self, name: str, default=None):
        if name == "peername":
            return ("127.0.0.1", 40000)
        return default

    def pause_reading(self) -> None:
        self.paused = True

    def resume_reading(self) -> None:
        self.paused = False
        self.resumes += 1
        asyncio.get_running_loop().call_soon(self._deliver)

    def _deliver(self) -> None:
        if self.conn is None or self.paused:
            return
        if self.chunks:
            self.conn.on_data(self.chunks.pop(0))
        elif self.error is not None:
            self.conn.on_error(self.error)
        elif self.eof:
            self.conn.on_end()

    def write(self, data: bytes) -> None:
        self.written.extend(data)

    def is_closing(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True

    def abort(self) -> None:
        self.closed  = True
        self.aborted = True


def _make_conn(
    chunks: list[bytes] | None = None,
    eof: bool = True,
    error: BaseException | None = None,
    **kwargs,
) -> tuple[FlowControlledConnection, ScriptedTransport]:
    """ScriptedTransport에 연결된 FlowControlledConnection을 만든다."""
    transport = ScriptedTransport(chunks, eof=eof, error=error)
    conn = FlowControlledConnection(transport, **kwargs)
    transport.conn = conn
    return conn, transport


async def _hello_handler(req: HTTPRequest, body: BodyReader) -> HTTPResponse:
    """본문을 읽지 않고 URI를 돌려주는 핸들러."""
    return HTTPResponse(
        code=200,
        headers=[b"Server: test"],
        body=reader_from_memory(req.uri + b"\n"),
    )


@pytest.fixture
def make_conn():
    """ScriptedTransport 기반 연결을 만드는 팩토리."""
    return _make_conn


@pytest.fixture
def hello_handler():
    return _hello_handler


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config pointing to a test-specific log directory."""
    yaml_content = f"""
framehttp:
  server:
    host: "127.0.0.1"
    port: 0
  timeouts:
    read_seconds: 5
    write_seconds: 5
    handler_seconds: 0
  logging:
    level: DEBUG
    directory: "{tmp_path / 'logs'}"
  handler:
    public_dir: "{tmp_path / 'public'}"
    server_name: "framehttp-test"
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml_content)
    return Config.load(config_file)
