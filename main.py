#!/usr/bin/env python3
"""Log Stream Server: entry point."""

import argparse
import asyncio
import logging
import signal
import sys
import threading

from logstream.config import load_config, load_yaml_config
from logstream.service import LogStreamService
from logstream.web import create_app, run_http

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tail log files and stream them to dashboard clients")
    parser.add_argument("--config", default=None, help="Path to YAML config file (sources and settings)")
    parser.add_argument("--host", default=None, help="Bind address for HTTP and WebSocket servers")
    parser.add_argument("--http-port", type=int, default=None, help="HTTP API port (default: 5500)")
    parser.add_argument("--ws-port", type=int, default=None, help="WebSocket port (default: 5501)")
    parser.add_argument("--poll-interval", type=float, default=None, help="Seconds between file size checks")
    parser.add_argument("--use-fs-events", action="store_true", default=None,
                        help="Also wake watchers on filesystem events (watchdog)")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


async def run(service: LogStreamService):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, service.request_shutdown)
    await service.run()


def main():
    args = build_cli_parser().parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [LOGSTREAM] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    config = load_config(args, load_yaml_config(args.config))
    logger.info("Config: http_port=%d, ws_port=%d, poll_interval=%.1f, %d source(s)",
                config.http_port, config.ws_port, config.poll_interval, len(config.sources))

    async def _main():
        service = LogStreamService(config)
        app = create_app(service.registry, service.hub, config)
        http_thread = threading.Thread(
            target=run_http, args=(app, config.host, config.http_port), daemon=True
        )
        http_thread.start()
        logger.info("HTTP API running on http://%s:%d", config.host, config.http_port)
        await run(service)

    asyncio.run(_main())


if __name__ == "__main__":
    main()
