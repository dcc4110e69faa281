"""SubscriberHub: owns the live subscriber set and fans updates out to it."""

import asyncio
import json
import logging
import uuid

from logstream.models import (
    LogRecord,
    Subscriber,
    SubscriberState,
    UpdateBatch,
    snapshot_event,
    update_event,
)
from logstream.registry import SourceRegistry
from logstream.snapshot import read_snapshot

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_LIMIT = 1000
DEFAULT_SEND_TIMEOUT = 5.0
DEFAULT_QUEUE_SIZE = 1000

# WebSocket close codes (RFC 6455)
CLOSE_INTERNAL_ERROR = 1011
CLOSE_TRY_AGAIN_LATER = 1013


class SubscriberHub:
    """Tracks subscriber connections and delivers snapshot and update events.

    Each subscriber gets a bounded outbound queue drained by its own sender
    task, so ``broadcast`` never waits on a connection. A subscriber whose
    send fails, times out, or whose queue overflows is dropped and its
    connection closed, so the client sees the disconnect and can reconnect.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        snapshot_limit: int = DEFAULT_SNAPSHOT_LIMIT,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self._registry = registry
        self._snapshot_limit = snapshot_limit
        self._send_timeout = send_timeout
        self._queue_size = queue_size
        self._subscribers: dict[str, Subscriber] = {}
        self._closing: set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def is_subscribed(self, subscriber_id: str) -> bool:
        return subscriber_id in self._subscribers

    async def subscribe(self, connection) -> str:
        """Register ``connection`` and send it the initial snapshot.

        Offsets are captured in the same step the subscriber is registered,
        and the snapshot is cut at those offsets. Anything the watchers emit
        afterwards lands in the subscriber's queue behind the snapshot.
        """
        sub = Subscriber(
            id=uuid.uuid4().hex,
            connection=connection,
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        offsets = {source.name: source.last_known_size for source in self._registry}
        self._subscribers[sub.id] = sub
        logger.info("Client connected: %s (%d active)", sub.id, len(self._subscribers))

        try:
            logs = await asyncio.to_thread(self._collect_snapshot, offsets)
            payload = json.dumps(snapshot_event(logs))
            await asyncio.wait_for(connection.send(payload), timeout=self._send_timeout)
        except Exception as e:
            logger.warning("Failed to send initial logs to %s: %r", sub.id, e)
            self._drop(sub, CLOSE_INTERNAL_ERROR, "initial snapshot failed")
            return sub.id

        if sub.is_open:
            sub.sender = asyncio.create_task(self._drain(sub), name=f"subscriber-{sub.id}")
        return sub.id

    def unsubscribe(self, subscriber_id: str):
        """Remove a subscriber. Unknown or already-removed ids are ignored."""
        sub = self._subscribers.pop(subscriber_id, None)
        if sub is None:
            return
        sub.state = SubscriberState.CLOSED
        if sub.sender is not None:
            sub.sender.cancel()
            sub.sender = None
        logger.info("Client disconnected: %s (%d active)", subscriber_id, len(self._subscribers))

    def broadcast(self, batch: UpdateBatch) -> int:
        """Queue an update event for every open subscriber. Returns how many got it."""
        if not self._subscribers:
            return 0
        payload = json.dumps(update_event(batch))
        delivered = 0
        for sub in list(self._subscribers.values()):
            if not sub.is_open:
                continue
            try:
                sub.queue.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("Subscriber %s is not keeping up, dropping it", sub.id)
                self._drop(sub, CLOSE_TRY_AGAIN_LATER, "subscriber too slow")
                continue
            delivered += 1
        return delivered

    async def close(self):
        """Unsubscribe everyone and wait for sender and close tasks to finish."""
        tasks = [s.sender for s in self._subscribers.values() if s.sender is not None]
        for subscriber_id in list(self._subscribers):
            self.unsubscribe(subscriber_id)
        tasks.extend(self._closing)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _drop(self, sub: Subscriber, code: int, reason: str):
        """Remove a failed subscriber and close its connection so the client can reconnect."""
        self.unsubscribe(sub.id)
        close = getattr(sub.connection, "close", None)
        if close is None:
            return
        task = asyncio.create_task(self._close_connection(sub.id, close, code, reason))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close_connection(self, subscriber_id: str, close, code: int, reason: str):
        try:
            await asyncio.wait_for(close(code=code, reason=reason), timeout=self._send_timeout)
        except Exception as e:
            logger.debug("Closing connection for %s failed: %r", subscriber_id, e)

    def _collect_snapshot(self, offsets: dict[str, int]) -> dict[str, list[LogRecord]]:
        return {
            source.name: read_snapshot(source, self._snapshot_limit, end_offset=offsets.get(source.name))
            for source in self._registry
        }

    async def _drain(self, sub: Subscriber):
        while True:
            payload = await sub.queue.get()
            try:
                await asyncio.wait_for(sub.connection.send(payload), timeout=self._send_timeout)
            except Exception as e:
                logger.warning("Send to %s failed, removing subscriber: %r", sub.id, e)
                sub.sender = None
                self._drop(sub, CLOSE_INTERNAL_ERROR, "send failed")
                return
