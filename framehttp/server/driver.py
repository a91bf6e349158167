"""연결 드라이버: 요청 프레이밍 → 핸들러 호출 → 응답 쓰기 → 본문 소진 루프."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from typing import Awaitable, Callable

from framehttp.protocols.body import BodyReader, reader_from_memory, reader_from_request
from framehttp.protocols.buffer import GrowableBuffer
from framehttp.protocols.errors import HTTPError, ProtocolContractError
from framehttp.protocols.http import (
    MAX_HEADER_BYTES,
    HTTPRequest,
    HTTPResponse,
    cut_message,
    encode_response_head,
    field_get,
)
from framehttp.transport.connection import FlowControlledConnection
from framehttp.web import metrics

logger = logging.getLogger("framehttp.server.driver")

RequestHandler = Callable[[HTTPRequest, BodyReader], Awaitable[HTTPResponse]]


async def write_response(conn: FlowControlledConnection, resp: HTTPResponse) -> None:
    """응답 헤더에 Content-Length를 붙여 쓰고, 본문을 청크 단위로 전송한다."""
    if resp.body.length < 0:
        raise NotImplementedError("chunked response encoding is not supported")
    if field_get(resp.headers, "Content-Length") is not None:
        raise ProtocolContractError("handler must not set Content-Length")

    head = dataclasses.replace(
        resp,
        headers=[*resp.headers, f"Content-Length: {resp.body.length}".encode("latin-1")],
    )
    await conn.write(encode_response_head(head))

    while True:
        chunk = await resp.body.read()
        if not chunk:
            break
        await conn.write(chunk)
        metrics.body_bytes_sent.inc(len(chunk))


async def serve_client(
    conn: FlowControlledConnection,
    handler: RequestHandler,
    max_header_bytes: int = MAX_HEADER_BYTES,
    handler_timeout: float | None = None,
) -> None:
    """한 연결에서 요청을 순차 처리한다. 피어가 요청 사이에 닫으면 정상 반환한다."""
    buf = GrowableBuffer()
    while True:
        req = cut_message(buf, max_header_bytes)
        if req is None:
            data = await conn.read()
            buf.append(data)
            if not data and not buf:
                return
            if not data:
                raise HTTPError(400, "Unexpected EOF.")
            continue

        body    = reader_from_request(conn, buf, req)
        started = time.monotonic()
        if handler_timeout:
            resp = await asyncio.wait_for(handler(req, body), handler_timeout)
        else:
            resp = await handler(req, body)
        await write_response(conn, resp)

        metrics.requests_total.labels(req.method, str(resp.code)).inc()
        metrics.request_duration.labels(req.method).observe(time.monotonic() - started)
        logger.debug(
            "%s %s HTTP/%s -> %d",
            req.method, req.uri.decode("latin-1"), req.version, resp.code,
        )

        # 핸들러가 읽지 않은 본문이 다음 요청 헤더로 새지 않도록 소진한다
        await body.drain()

        if req.version == "1.0":
            return


async def handle_connection(
    conn: FlowControlledConnection,
    handler: RequestHandler,
    max_header_bytes: int = MAX_HEADER_BYTES,
    handler_timeout: float | None = None,
) -> None:
    """serve_client를 실행하고, 종료 방식과 관계없이 스트림을 닫는다.

    상태 코드가 있는 실패(HTTPError)는 최소한의 오류 응답으로 최선을 다해 전달한다.
    상태 코드가 없는 실패와 타임아웃은 로그를 남기고, 취소를 포함한 비정상 종료는
    연결을 강제로 끊는다.
    정상 종료나 오류 응답 전달 후에만 남은 쓰기 데이터를 보내고 닫는다.
    """
    peer = conn.peername
    metrics.connections_total.inc()
    metrics.connections_active.inc()
    logger.debug("Connection from %s", peer)
    graceful = False
    try:
        await serve_client(conn, handler, max_header_bytes, handler_timeout)
        graceful = True
    except HTTPError as exc:
        logger.info("Protocol error %d from %s: %s", exc.code, peer, exc.message)
        metrics.protocol_errors_total.labels(str(exc.code)).inc()
        resp = HTTPResponse(
            code=exc.code,
            headers=[],
            body=reader_from_memory((exc.message + "\n").encode("utf-8")),
        )
        try:
            await write_response(conn, resp)
            graceful = True
        except Exception:
            logger.debug("Could not deliver error response to %s", peer, exc_info=True)
    except (OSError, asyncio.TimeoutError) as exc:
        metrics.stream_errors_total.inc()
        logger.warning("Connection %s dropped: %r", peer, exc)
    except Exception:
        metrics.stream_errors_total.inc()
        logger.exception("Connection %s failed", peer)
    finally:
        if graceful:
            conn.close()
        else:
            conn.abort()
        metrics.connections_active.dec()
        logger.debug("Connection from %s closed", peer)
