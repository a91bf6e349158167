"""메인 오케스트레이터: 로깅, 리스너, 시그널 처리 통합 관리."""

from __future__ import annotations

import asyncio
import logging
import signal

from framehttp.handlers.default import DefaultHandler
from framehttp.server.driver import RequestHandler
from framehttp.server.listener import HTTPListener
from framehttp.utils.config import Config
from framehttp.utils.logging_setup import setup_logging

logger = logging.getLogger("framehttp.app")


class FrameHTTPApp:
    """최상위 애플리케이션 오케스트레이터.

    요청 처리는 핸들러에, 연결 처리는 HTTPListener에 위임하며
    컴포넌트 연결, 시작 순서 제어, 정상 종료만 담당한다.
    """

    def __init__(self, config: Config, handler: RequestHandler | None = None) -> None:
        self.config = config
        if handler is None:
            handler = DefaultHandler(
                public_dir=config.get("handler.public_dir", "public"),
                server_name=config.get("handler.server_name", "framehttp"),
            )
        self.listener = HTTPListener(
            handler,
            host=config.get("server.host", "127.0.0.1"),
            port=int(config.get("server.port", 3000)),
            backlog=int(config.get("server.backlog", 100)),
            max_header_bytes=int(config.get("http.max_header_bytes", 8192)),
            read_timeout=config.timeout("read"),
            write_timeout=config.timeout("write"),
            handler_timeout=config.timeout("handler"),
        )
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        """run()이 종료 절차를 시작하도록 알린다."""
        self._stop_event.set()

    async def run(self) -> None:
        """메인 진입점: 리스너를 시작하고 종료 시그널을 기다린다."""
        loop = asyncio.get_running_loop()

        setup_logging(self.config)
        logger.info("framehttp starting...")

        await self.listener.start()

        # ── 시그널 처리 ─────────────────────────────────────────────────
        def _signal_handler() -> None:
            logger.info("Shutdown signal received")
            self.request_stop()

        installed: list[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _signal_handler)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # 메인 스레드가 아니거나 지원하지 않는 플랫폼
                logger.debug("Signal handler for %s not installed", sig)

        logger.info(
            "framehttp ready - http://%s:%d",
            self.config.get("server.host"), self.listener.port,
        )

        await self._stop_event.wait()

        # ── 종료 ──────────────────────────────────────────────────────────
        logger.info("Shutting down...")
        for sig in installed:
            loop.remove_signal_handler(sig)
        await self.listener.stop()
        logger.info("framehttp stopped")
