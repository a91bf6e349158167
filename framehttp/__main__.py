"""진입점: python -m framehttp"""

from __future__ import annotations

import argparse
import asyncio


def main() -> None:
    """framehttp CLI 진입점. 설정을 로드하고 애플리케이션을 실행한다."""
    parser = argparse.ArgumentParser(
        prog="framehttp",
        description="framehttp - HTTP/1.1 server over a flow-controlled byte stream",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration YAML file (default: config/default.yaml, else built-in defaults)",
    )
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides config)")
    args = parser.parse_args()

    from framehttp.app import FrameHTTPApp
    from framehttp.utils.config import Config

    overrides: dict[str, object] = {}
    if args.host is not None:
        overrides["server.host"] = args.host
    if args.port is not None:
        overrides["server.port"] = args.port
    config = Config.load(args.config, overrides=overrides)

    app = FrameHTTPApp(config)

    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
