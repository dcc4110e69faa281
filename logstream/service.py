"""LogStreamService: wires registry, watchers, hub and transport together."""

import asyncio
import logging

from logstream.config import Config
from logstream.hub import SubscriberHub
from logstream.notify import ChangeNotifier
from logstream.registry import SourceRegistry
from logstream.watcher import GrowthWatcher
from logstream.ws_server import LogStreamSocketServer

logger = logging.getLogger(__name__)


class LogStreamService:
    def __init__(self, config: Config, registry: SourceRegistry | None = None):
        self.config = config
        self.registry = registry or SourceRegistry.from_mapping(config.sources)
        self.hub = SubscriberHub(
            self.registry,
            snapshot_limit=config.snapshot_limit,
            send_timeout=config.send_timeout,
            queue_size=config.queue_size,
        )
        self.watchers = [
            GrowthWatcher(source, on_batch=self.hub.broadcast, poll_interval=config.poll_interval)
            for source in self.registry
        ]
        self.socket_server = LogStreamSocketServer(self.hub, config.host, config.ws_port)
        self._notifier: ChangeNotifier | None = None
        self._tasks: list[asyncio.Task] = []
        self._shutdown = asyncio.Event()

    async def start(self):
        """Start watcher tasks, the optional fs notifier, and the WebSocket server."""
        self._tasks = [
            asyncio.create_task(w.run(), name=f"watch-{w.source.name}") for w in self.watchers
        ]
        if self.config.use_fs_events:
            self._notifier = ChangeNotifier(self.watchers)
            self._notifier.start()
        await self.socket_server.start()
        logger.info("Monitoring log files: %s", list(self.registry.paths().values()))

    async def run(self):
        """Start and block until ``request_shutdown`` is called, then stop."""
        await self.start()
        try:
            await self._shutdown.wait()
        finally:
            await self.stop()

    def request_shutdown(self):
        self._shutdown.set()

    async def stop(self):
        logger.info("Shutting down...")
        if self._notifier is not None:
            self._notifier.stop()
            self._notifier = None
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self.socket_server.stop()
        await self.hub.close()
        logger.info("Log stream service stopped.")
