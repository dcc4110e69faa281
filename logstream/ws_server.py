"""WebSocket transport: one hub subscription per connection."""

import logging

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from logstream.hub import SubscriberHub

logger = logging.getLogger(__name__)


class LogStreamSocketServer:
    """Accepts WebSocket clients and subscribes each to the hub.

    Incoming frames are read and discarded; the connection stays subscribed
    until it closes or errors.
    """

    def __init__(self, hub: SubscriberHub, host: str = "0.0.0.0", port: int = 5501):
        self._hub = hub
        self._host = host
        self._port = port
        self._server = None

    @property
    def port(self) -> int:
        """Bound port (useful when started with port 0)."""
        if self._server is None:
            return self._port
        return self._server.sockets[0].getsockname()[1]

    async def _handle(self, websocket):
        subscriber_id = await self._hub.subscribe(websocket)
        try:
            async for _ in websocket:
                pass
        except ConnectionClosed as e:
            logger.debug("Connection %s closed: %s", subscriber_id, e)
        finally:
            self._hub.unsubscribe(subscriber_id)

    async def start(self):
        self._server = await serve(self._handle, self._host, self._port)
        logger.info("WebSocket server listening on ws://%s:%d", self._host, self.port)

    async def stop(self):
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("WebSocket server stopped")
