"""기본 요청 핸들러: 데모 페이지, 에코, 메트릭, 기본 응답."""

from __future__ import annotations

import logging
from pathlib import Path

from framehttp.protocols.body import BodyReader, reader_from_memory
from framehttp.protocols.http import HTTPRequest, HTTPResponse
from framehttp.web.metrics import get_metrics_output

logger = logging.getLogger("framehttp.handlers.default")

_CORS_HEADERS = [
    b"Access-Control-Allow-Origin: *",
    b"Access-Control-Allow-Methods: GET, POST, PUT, PATCH, DELETE, OPTIONS",
    b"Access-Control-Allow-Headers: Content-Type, X-Custom-Header",
]

_TEXT_PLAIN = b"Content-Type: text/plain; charset=utf-8"
_TEXT_HTML  = b"Content-Type: text/html; charset=utf-8"

_FALLBACK_HTML = b"""<!DOCTYPE html>
<html>
<head><title>framehttp</title></head>
<body>
    <h1>framehttp</h1>
    <p>Server is running. Put an <code>index.html</code> in the public directory to replace this page.</p>
    <ul>
        <li><a href="/echo">/echo</a> - echoes the request body (POST data)</li>
        <li><a href="/metrics">/metrics</a> - Prometheus metrics</li>
        <li><a href="/test">/test</a> - default response</li>
    </ul>
</body>
</html>
"""


class DefaultHandler:
    """URI 기준으로 응답을 고르는 샘플 핸들러.

    Content-Length는 프레이머가 추가하므로 여기서는 설정하지 않는다.
    """

    def __init__(self, public_dir: str | Path = "public", server_name: str = "framehttp") -> None:
        self._public_dir = Path(public_dir)
        self._server_hdr = f"Server: {server_name}".encode("latin-1")

    def _index_page(self) -> bytes:
        """public_dir/index.html을 읽는다. 없으면 내장 페이지를 반환한다."""
        index = self._public_dir / "index.html"
        try:
            return index.read_bytes()
        except OSError:
            logger.debug("No index page at %s, using fallback", index)
            return _FALLBACK_HTML

    async def __call__(self, req: HTTPRequest, body: BodyReader) -> HTTPResponse:
        headers = [self._server_hdr, *_CORS_HEADERS]

        # CORS preflight
        if req.method == "OPTIONS":
            return HTTPResponse(code=204, headers=headers, body=reader_from_memory(b""))

        uri = req.uri.decode("latin-1")
        if uri == "/":
            headers.append(_TEXT_HTML)
            resp_body = reader_from_memory(self._index_page())
        elif uri == "/echo":
            headers.append(_TEXT_PLAIN)
            resp_body = body
        elif uri == "/metrics":
            headers.append(b"Content-Type: text/plain; version=0.0.4; charset=utf-8")
            resp_body = reader_from_memory(get_metrics_output())
        else:
            headers.append(_TEXT_PLAIN)
            resp_body = reader_from_memory(b"hello world.\n")

        return HTTPResponse(code=200, headers=headers, body=resp_body)
