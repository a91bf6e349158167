"""Tests for DefaultHandler routing."""

from __future__ import annotations

from pathlib import Path

import pytest

from framehttp.handlers.default import DefaultHandler
from framehttp.protocols.body import LengthBodyReader, reader_from_memory
from framehttp.protocols.buffer import GrowableBuffer
from framehttp.protocols.http import HTTPRequest, field_get


def _get(uri: bytes, method: str = "GET") -> HTTPRequest:
    return HTTPRequest(method=method, uri=uri, version="1.1", headers=[])


@pytest.fixture
def handler(tmp_path: Path) -> DefaultHandler:
    return DefaultHandler(public_dir=tmp_path, server_name="unit")


@pytest.mark.asyncio
async def test_default_route(handler):
    resp = await handler(_get(b"/anything"), reader_from_memory(b""))
    assert resp.code == 200
    assert field_get(resp.headers, "Server") == b"unit"
    assert field_get(resp.headers, "Access-Control-Allow-Origin") == b"*"
    assert field_get(resp.headers, "Content-Length") is None
    assert await resp.body.read() == b"hello world.\n"


@pytest.mark.asyncio
async def test_options_preflight(handler):
    resp = await handler(_get(b"/echo", method="OPTIONS"), reader_from_memory(b""))
    assert resp.code == 204
    assert resp.body.length == 0
    assert field_get(resp.headers, "Access-Control-Allow-Methods").startswith(b"GET")


@pytest.mark.asyncio
async def test_index_fallback_page(handler):
    resp = await handler(_get(b"/"), reader_from_memory(b""))
    assert field_get(resp.headers, "Content-Type") == b"text/html; charset=utf-8"
    assert b"<h1>framehttp</h1>" in await resp.body.read()


@pytest.mark.asyncio
async def test_index_from_public_dir(handler, tmp_path):
    (tmp_path / "index.html").write_bytes(b"<p>custom</p>")
    resp = await handler(_get(b"/"), reader_from_memory(b""))
    assert await resp.body.read() == b"<p>custom</p>"


@pytest.mark.asyncio
async def test_echo_returns_request_body_reader(handler, make_conn):
    conn, _ = make_conn([b"payload"])
    body = LengthBodyReader(conn, GrowableBuffer(), 7)
    resp = await handler(_get(b"/echo", method="POST"), body)
    assert resp.body is body
    assert resp.body.length == 7
    assert await resp.body.read() == b"payload"


@pytest.mark.asyncio
async def test_metrics_exposition(handler):
    resp = await handler(_get(b"/metrics"), reader_from_memory(b""))
    assert b"framehttp_connections_total" in await resp.body.read()
